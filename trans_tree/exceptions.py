# trans_tree/exceptions.py
"""
本模块定义了 Trans-Tree 项目中所有自定义的、语义化的异常类型。

注意：翻译请求管线中的失败（网络失败、单条目失败）不会以异常的形式
穿过异步边界，而是以 `TranslationError` 条目的形式交付给调用者。
只有配置类的致命错误会在标记阶段同步抛出。
"""


class TransTreeError(Exception):
    """
    所有 Trans-Tree 自定义异常的通用基类。
    捕获此异常可以处理所有源自本项目的预期错误。
    """


class ConfigurationError(TransTreeError):
    """
    表示在加载、解析或验证配置时发生的错误，
    或者在持久化时缺少必需的身份信息。
    """


class NestedTranslationError(ConfigurationError):
    """
    在标记 UI 树时，于树的内部遇到了另一个翻译单元（或已被标记过的节点）。
    翻译单元不允许嵌套，这是不可重试的配置错误。
    """


class APIError(TransTreeError):
    """
    表示与远程翻译服务交互时发生的传输层错误。
    例如网络问题、服务返回错误状态码或响应体无法解析。
    """
