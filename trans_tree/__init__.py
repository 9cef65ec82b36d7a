# trans_tree/__init__.py
"""Trans-Tree: 一个把 UI 树翻译到目标语言的运行时请求管线。

提供树的标记与指纹、去重的批量调度器、两级翻译缓存，以及按 id 对齐的协调渲染器。
"""

__version__ = "0.1.0"

from .cache import TranslationTaskCache
from .config import TransTreeConfig
from .dispatcher import BatchDispatcher
from .pipeline import PreparedTree, TranslationPipeline
from .remote_cache import RemoteBundleCache
from .rendering import RenderMethod, RenderResult, RenderState, output_text, render
from .tree import (
    Branch,
    Element,
    Fragment,
    Plural,
    Text,
    Translate,
    Variable,
    fingerprint,
    serialize,
    tag,
)

__all__ = [
    "__version__",
    "BatchDispatcher",
    "Branch",
    "Element",
    "Fragment",
    "Plural",
    "PreparedTree",
    "RemoteBundleCache",
    "RenderMethod",
    "RenderResult",
    "RenderState",
    "Text",
    "TransTreeConfig",
    "Translate",
    "TranslationPipeline",
    "TranslationTaskCache",
    "Variable",
    "fingerprint",
    "output_text",
    "render",
    "serialize",
    "tag",
]
