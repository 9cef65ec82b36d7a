# trans_tree/core/types.py
"""
本模块定义了 Trans-Tree 系统的核心数据类型。
这些类型是标记器、序列化器、调度器、缓存与渲染器之间的数据交换契约。

线格式（wire tree）使用 TypedDict 描述，是纯 JSON 数据；
翻译条目与请求使用 Pydantic 模型描述，便于校验来自远端的数据。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, NotRequired, TypedDict, Union

from pydantic import BaseModel, Field


class VariableType(str, Enum):
    """变量节点的类型。值为线格式中使用的缩写。"""

    VARIABLE = "v"
    NUMBER = "n"
    DATETIME = "d"
    CURRENCY = "c"

    @classmethod
    def from_wire(cls, value: Any) -> "VariableType":
        """从线格式缩写（或完整名称）解析变量类型，无法识别时视为普通变量。"""
        if isinstance(value, VariableType):
            return value
        try:
            return cls(value)
        except ValueError:
            return _VARIABLE_TYPE_NAMES.get(str(value), cls.VARIABLE)


_VARIABLE_TYPE_NAMES = {
    "variable": VariableType.VARIABLE,
    "number": VariableType.NUMBER,
    "datetime": VariableType.DATETIME,
    "currency": VariableType.CURRENCY,
}

# 未显式命名的变量使用的默认名称，生成的回退键形如 `_gt_n_3`
DEFAULT_VARIABLE_NAMES: dict[VariableType, str] = {
    VariableType.VARIABLE: "value",
    VariableType.NUMBER: "n",
    VariableType.DATETIME: "date",
    VariableType.CURRENCY: "cost",
}
BASE_VARIABLE_PREFIX = "_gt_"


class NodeKind(str, Enum):
    """被标记节点的种类（封闭的和类型）。"""

    ELEMENT = "element"
    VARIABLE = "variable"
    PLURAL = "plural"
    BRANCH = "branch"
    FRAGMENT = "fragment"


class DataFormat(str, Enum):
    """参与指纹计算的源数据格式。"""

    JSX = "JSX"
    STRING = "STRING"


# ---------------------------------------------------------------------------
# 线格式
# ---------------------------------------------------------------------------


class WireVariable(TypedDict):
    """变量占位符：只有结构与名称，没有运行时值。"""

    i: int
    k: str
    v: str


class WireData(TypedDict, total=False):
    """元素的附加数据：可翻译的内容属性，以及复数/分支集合的分支表。"""

    t: Literal["p", "b"]
    b: dict[str, "WireChildren"]
    pl: str
    ti: str
    alt: str
    arl: str
    arb: str
    ard: str


class WireElement(TypedDict):
    t: str
    i: int
    d: NotRequired[WireData]
    c: NotRequired["WireChildren"]


WireChild = Union[str, WireVariable, WireElement]
WireChildren = Union[WireChild, list[WireChild]]

# 可翻译的 HTML 内容属性：缩写 -> 完整属性名
HTML_CONTENT_PROPS: dict[str, str] = {
    "pl": "placeholder",
    "ti": "title",
    "alt": "alt",
    "arl": "aria-label",
    "arb": "aria-labelledby",
    "ard": "aria-describedby",
}


def is_wire_variable(value: Any) -> bool:
    """判断一个线格式节点是否为变量占位符。"""
    return isinstance(value, dict) and isinstance(value.get("k"), str) and "t" not in value


def is_wire_element(value: Any) -> bool:
    """判断一个线格式节点是否为结构元素。"""
    return isinstance(value, dict) and "t" in value


# ---------------------------------------------------------------------------
# 源身份与翻译条目
# ---------------------------------------------------------------------------


class SourceIdentity(BaseModel):
    """一个可翻译单元的身份：结构哈希，以及可选的显式 id 与上下文。"""

    hash: str
    id: str | None = None
    context: str | None = None

    @property
    def lookup_key(self) -> str:
        """缓存与查找优先使用显式 id。"""
        return self.id or self.hash

    def as_metadata(self) -> dict[str, str]:
        metadata = {"hash": self.hash}
        if self.id:
            metadata["id"] = self.id
        if self.context:
            metadata["context"] = self.context
        return metadata


class TranslationLoading(BaseModel):
    """翻译请求已入队，尚未有结果。"""

    state: Literal["loading"] = "loading"


class TranslationSuccess(BaseModel):
    """翻译成功，`target` 为翻译后的线格式树或字符串。"""

    state: Literal["success"] = "success"
    target: Any
    hash: str | None = None


class TranslationError(BaseModel):
    """翻译失败，携带错误信息与错误码。"""

    state: Literal["error"] = "error"
    error: str = "Translation failed."
    code: int = 500


TranslationEntry = Union[TranslationLoading, TranslationSuccess, TranslationError]
ResolvedEntry = Union[TranslationSuccess, TranslationError]


class LookupState(str, Enum):
    """翻译包查找结果的三种显式状态。"""

    NOT_CHECKED = "not_checked"
    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True)
class BundleLookup:
    """在翻译包中查找一个源身份的结果。"""

    state: LookupState
    entry: TranslationEntry | None = None

    @classmethod
    def not_checked(cls) -> "BundleLookup":
        return cls(LookupState.NOT_CHECKED)

    @classmethod
    def absent(cls) -> "BundleLookup":
        return cls(LookupState.ABSENT)


class TranslationRequest(BaseModel):
    """调用者创建的翻译请求，入队后由请求队列持有，派发后由批量调度器持有。"""

    source: Any
    target_locale: str
    identity: SourceIdentity
    data_format: DataFormat = DataFormat.JSX
    revalidate: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def fingerprint(self) -> str:
        return self.identity.hash

    @property
    def cache_key(self) -> tuple[str, str]:
        return (self.target_locale, self.identity.hash)

    def to_wire(self) -> dict[str, Any]:
        """转换为批量翻译端点所需的单条请求体。"""
        return {
            "source": self.source,
            "metadata": {**self.metadata, **self.identity.as_metadata()},
            "dataFormat": self.data_format.value,
        }
