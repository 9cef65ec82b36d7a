# trans_tree/tree/nodes.py
"""
UI 树的节点类型。

节点是不可变的 dataclass，构成一个封闭的和类型：
`Text | Element | Fragment | Variable | Plural | Branch | Translate`。
纯字符串与数字也被接受为文本；`None` 与布尔值作为空子节点被忽略。
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from trans_tree.core.types import NodeKind, VariableType

# 复数集合接受的分支名称
PLURAL_FORMS: tuple[str, ...] = (
    "zero",
    "one",
    "two",
    "few",
    "many",
    "other",
    "singular",
    "plural",
    "dual",
)


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Element:
    """一个带有序子节点的结构元素，例如 `<b>`、`<a href=...>`。"""

    tag: str
    children: tuple[Any, ...] = ()
    props: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _as_tuple(self.children))


@dataclass(frozen=True)
class Fragment:
    children: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _as_tuple(self.children))


@dataclass(frozen=True)
class Variable:
    """
    一个动态值。值本身不参与翻译，只有名称与类型进入线格式。

    Attributes:
        value: 运行时值（数字、日期、任意对象）。
        name: 显式变量名；省略时由类型与 id 派生回退名称。
        type: 变量类型，决定渲染时的格式化方式。
        options: 传递给格式化器的选项，例如 `{"currency": "EUR"}`。
    """

    value: Any = None
    name: str | None = None
    type: VariableType = VariableType.VARIABLE
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Plural:
    """根据数值选择器 `n` 与复数规则选择分支；`children` 为缺省分支。"""

    n: float | int
    branches: Mapping[str, Any] = field(default_factory=dict)
    children: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _as_tuple(self.children))


@dataclass(frozen=True)
class Branch:
    """根据选择器值 `branch` 选择命名分支；`children` 为缺省分支。"""

    branch: Any
    branches: Mapping[str, Any] = field(default_factory=dict)
    children: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _as_tuple(self.children))


@dataclass(frozen=True)
class Translate:
    """翻译单元标记。只能出现在被标记树的根部。"""

    children: tuple[Any, ...] = ()
    id: str | None = None
    context: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _as_tuple(self.children))


Node = Union[Text, Element, Fragment, Variable, Plural, Branch, Translate]


@dataclass(frozen=True)
class TaggedNode:
    """
    标记后的节点：原始节点加上一次标记过程中分配的不可变整数 id。

    `children` 与 `branches` 中的内容已被递归标记；文本以纯字符串保存。
    变量节点不递归其内容。
    """

    id: int
    kind: NodeKind
    node: Node
    children: tuple[TaggedChild, ...] = ()
    branches: Mapping[str, TaggedChildren] | None = None
    variable_type: VariableType | None = None

    @property
    def tag(self) -> str:
        if isinstance(self.node, Element):
            return self.node.tag
        return self.kind.value


TaggedChild = Union[str, TaggedNode]
TaggedChildren = Union[TaggedChild, list[TaggedChild]]


def _as_tuple(children: Any) -> tuple[Any, ...]:
    if children is None:
        return ()
    if isinstance(children, tuple):
        return children
    if isinstance(children, Sequence) and not isinstance(children, str):
        return tuple(children)
    return (children,)
