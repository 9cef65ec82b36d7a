"""Trans-Tree 核心契约：线格式、翻译条目与请求类型。"""

from .types import (
    BASE_VARIABLE_PREFIX,
    DEFAULT_VARIABLE_NAMES,
    HTML_CONTENT_PROPS,
    BundleLookup,
    DataFormat,
    LookupState,
    NodeKind,
    ResolvedEntry,
    SourceIdentity,
    TranslationEntry,
    TranslationError,
    TranslationLoading,
    TranslationRequest,
    TranslationSuccess,
    VariableType,
    WireChild,
    WireChildren,
    WireElement,
    WireVariable,
    is_wire_element,
    is_wire_variable,
)

__all__ = [
    "BASE_VARIABLE_PREFIX",
    "DEFAULT_VARIABLE_NAMES",
    "HTML_CONTENT_PROPS",
    "BundleLookup",
    "DataFormat",
    "LookupState",
    "NodeKind",
    "ResolvedEntry",
    "SourceIdentity",
    "TranslationEntry",
    "TranslationError",
    "TranslationLoading",
    "TranslationRequest",
    "TranslationSuccess",
    "VariableType",
    "WireChild",
    "WireChildren",
    "WireElement",
    "WireVariable",
    "is_wire_element",
    "is_wire_variable",
]
