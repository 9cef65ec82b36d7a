# trans_tree/tree/serializer.py
"""
序列化器：把标记后的树转换为最小的、保持顺序的线格式。

线格式中不含任何运行时值，变量被替换为 `{"i": id, "k": key, "v": type}`，
因此基于线格式计算的指纹与变量的运行时值无关。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from trans_tree.core.types import (
    BASE_VARIABLE_PREFIX,
    DEFAULT_VARIABLE_NAMES,
    HTML_CONTENT_PROPS,
    NodeKind,
    VariableType,
    WireChild,
    WireChildren,
    WireData,
    WireElement,
    WireVariable,
)
from trans_tree.tree.nodes import Element, TaggedChild, TaggedChildren, TaggedNode, Variable


def fallback_variable_name(variable_type: VariableType) -> str:
    """变量类型对应的默认名称，例如数字变量为 `n`。"""
    return DEFAULT_VARIABLE_NAMES.get(variable_type, "value")


def variable_key(variable_type: VariableType, node_id: int, name: str | None = None) -> str:
    """
    变量在线格式中的键。

    显式命名的变量直接使用其名称；未命名的变量使用 `_gt_{默认名}_{id}`，
    带前缀的回退名称不会与任何显式名称冲突。
    """
    if name:
        return name
    return f"{BASE_VARIABLE_PREFIX}{fallback_variable_name(variable_type)}_{node_id}"


def content_props(props: Mapping[str, Any]) -> dict[str, str]:
    """提取元素上可翻译的内容属性，键为线格式缩写。"""
    return {
        minified: props[full]
        for minified, full in HTML_CONTENT_PROPS.items()
        if isinstance(props.get(full), str) and props[full]
    }


def serialize(tagged: TaggedChildren) -> WireChildren:
    """将标记后的树序列化为线格式。单个子节点得到单个线节点，序列得到列表。"""
    if isinstance(tagged, list):
        return [_serialize_child(child) for child in tagged]
    return _serialize_child(tagged)


def _serialize_tuple(children: tuple[TaggedChild, ...]) -> list[WireChild]:
    return [_serialize_child(child) for child in children]


def _serialize_child(child: TaggedChild) -> WireChild:
    if isinstance(child, str):
        return child
    if child.kind is NodeKind.VARIABLE:
        return _serialize_variable(child)
    return _serialize_element(child)


def _serialize_variable(child: TaggedNode) -> WireVariable:
    node = child.node
    assert isinstance(node, Variable)
    variable_type = child.variable_type or VariableType.VARIABLE
    return {
        "i": child.id,
        "k": variable_key(variable_type, child.id, node.name),
        "v": variable_type.value,
    }


def _serialize_element(child: TaggedNode) -> WireElement:
    element: WireElement = {"t": child.tag, "i": child.id}
    data: WireData = {}
    if isinstance(child.node, Element):
        data.update(content_props(child.node.props))  # type: ignore[typeddict-item]
    if child.kind in (NodeKind.PLURAL, NodeKind.BRANCH) and child.branches:
        data["t"] = "p" if child.kind is NodeKind.PLURAL else "b"
        data["b"] = {name: serialize(branch) for name, branch in child.branches.items()}
    if data:
        element["d"] = data
    if child.children:
        element["c"] = _serialize_tuple(child.children)
    return element
