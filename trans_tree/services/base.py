# trans_tree/services/base.py
"""
本模块定义了批量翻译服务适配器必须继承的抽象基类（ABC）。

调度器只依赖这个接口：把一个批量请求体交给服务，得到与请求顺序一致的逐条结果。
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

_ConfigType = TypeVar("_ConfigType", bound="BaseServiceConfig")


class BaseServiceConfig(BaseModel):
    """所有服务配置模型的基类。"""

    pass


class BaseTranslationService(ABC, Generic[_ConfigType]):
    """批量翻译服务的纯异步抽象基类。"""

    CONFIG_MODEL: type[_ConfigType]
    VERSION: str = "1.0.0"

    def __init__(self, config: _ConfigType):
        self.config = config
        self.initialized: bool = False

    @property
    def name(self) -> str:
        """从类名自动推断服务的名称。"""
        return self.__class__.__name__.replace("TranslationService", "").lower()

    async def initialize(self) -> None:
        """服务的异步初始化钩子，用于设置连接池等。"""
        self.initialized = True

    async def close(self) -> None:
        """服务的异步关闭钩子，用于安全释放资源。"""
        self.initialized = False

    @abstractmethod
    async def translate_batch(self, body: dict[str, Any]) -> Any:
        """
        [子类实现] 发送一个批量翻译请求。

        Returns:
            服务返回的原始响应体。正常情况下是一个与 `body["requests"]`
            顺序一致的列表，逐条校验由调用者负责。

        Raises:
            APIError: 传输层失败（网络错误、错误状态码、响应无法解析）。
        """
        ...
