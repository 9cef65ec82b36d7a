# trans_tree/rendering/renderer.py
"""
协调渲染器：把标记后的源树与任意形状的翻译目标树按 id 同步遍历，
重建原始结构，填入目标语言文本，并重新插入变量与分支。

渲染输出是一个扁平列表，元素为 `str`、`Element` 与 `Fragment`；
变量与分支的渲染结果被拼接进父节点。
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

import structlog

from trans_tree.core.types import (
    BASE_VARIABLE_PREFIX,
    DEFAULT_VARIABLE_NAMES,
    HTML_CONTENT_PROPS,
    NodeKind,
    VariableType,
    is_wire_element,
    is_wire_variable,
)
from trans_tree.rendering.formatting import BabelFormatter, Formatter
from trans_tree.rendering.plurals import get_plural_branch
from trans_tree.tree.nodes import (
    Branch,
    Element,
    Fragment,
    Plural,
    TaggedChild,
    TaggedChildren,
    TaggedNode,
    Variable,
)
from trans_tree.tree.serializer import variable_key

logger = structlog.get_logger(__name__)

OutputChild = Union[str, Element, Fragment]


class MalformedTargetError(ValueError):
    """目标树的形状无法被解释。"""


@dataclass(frozen=True)
class _RenderContext:
    variables: Mapping[str, Any]
    locale: str
    formatter: Formatter


def render(
    source: TaggedChildren,
    target: Any = None,
    variables: Mapping[str, Any] | None = None,
    locales: Sequence[str] = ("en",),
    formatter: Formatter | None = None,
) -> list[OutputChild]:
    """
    渲染一棵标记后的源树。

    Args:
        source: 标记后的源树。
        target: 翻译后的线格式树、字符串，或 None（没有翻译）。
        variables: 调用者提供的变量值，优先于源节点上携带的值。
        locales: 渲染语言列表，第一个为目标语言，最后一个为默认语言。

    目标树为 None 时按默认语言渲染源树；目标树形状异常时同样回退，而不会抛出异常。
    """
    locales = list(locales) or ["en"]
    formatter = formatter or BabelFormatter()
    if target is None:
        return render_default(source, variables, locales[-1], formatter)
    if isinstance(target, str):
        return [target]
    try:
        return render_translated(source, target, variables, locales[0], formatter)
    except MalformedTargetError as e:
        logger.warning("翻译树形状异常，回退到默认语言渲染", error=str(e))
        return render_default(source, variables, locales[-1], formatter)


def render_default(
    source: TaggedChildren,
    variables: Mapping[str, Any] | None = None,
    locale: str = "en",
    formatter: Formatter | None = None,
) -> list[OutputChild]:
    """按默认语言渲染源树：格式化变量，并使用源选择器选择复数/分支。"""
    ctx = _RenderContext(variables or {}, locale, formatter or BabelFormatter())
    return _default_children(source, ctx)


def render_translated(
    source: TaggedChildren,
    target: Any,
    variables: Mapping[str, Any] | None = None,
    locale: str = "en",
    formatter: Formatter | None = None,
) -> list[OutputChild]:
    """
    按 id 把目标树与源树对齐后渲染。

    Raises:
        MalformedTargetError: 目标树中出现无法解释的节点。
    """
    ctx = _RenderContext(variables or {}, locale, formatter or BabelFormatter())
    index = dict(_index(source))
    return _translated_children(target, index, ctx)


def output_text(output: Sequence[OutputChild] | OutputChild) -> str:
    """拼接渲染输出中的全部可见文本。"""
    if isinstance(output, str):
        return output
    if isinstance(output, (Element, Fragment)):
        return output_text(output.children)
    return "".join(output_text(child) for child in output)


# ---------------------------------------------------------------------------
# 默认语言渲染
# ---------------------------------------------------------------------------


def _default_children(children: Any, ctx: _RenderContext) -> list[OutputChild]:
    if isinstance(children, (list, tuple)):
        output: list[OutputChild] = []
        for child in children:
            output.extend(_default_child(child, ctx))
        return output
    return _default_child(children, ctx)


def _default_child(child: TaggedChild, ctx: _RenderContext) -> list[OutputChild]:
    if isinstance(child, str):
        return [child]
    if child.kind is NodeKind.VARIABLE:
        return [_format_variable(child, ctx)]
    if child.kind in (NodeKind.PLURAL, NodeKind.BRANCH):
        name = _select_branch(child, child.branches or {}, ctx.locale)
        if name is not None:
            assert child.branches is not None
            return _default_children(child.branches[name], ctx)
        return _default_children(child.children, ctx)
    children = tuple(_default_children(child.children, ctx))
    if child.kind is NodeKind.FRAGMENT:
        return [Fragment(children)]
    node = child.node
    assert isinstance(node, Element)
    return [Element(node.tag, children, dict(node.props))]


# ---------------------------------------------------------------------------
# 翻译渲染
# ---------------------------------------------------------------------------


def _translated_children(
    target: Any, index: dict[int, TaggedNode], ctx: _RenderContext
) -> list[OutputChild]:
    if isinstance(target, list):
        output: list[OutputChild] = []
        for child in target:
            output.extend(_translated_child(child, index, ctx))
        return output
    return _translated_child(target, index, ctx)


def _translated_child(
    target: Any, index: dict[int, TaggedNode], ctx: _RenderContext
) -> list[OutputChild]:
    if isinstance(target, str):
        return [target]
    if is_wire_variable(target):
        return _translated_variable(target, index, ctx)
    if not is_wire_element(target):
        raise MalformedTargetError(f"无法解释的目标节点: {target!r}")

    source = index.get(_target_id(target, required=True))
    if source is None:
        logger.warning(
            "翻译树中的节点在源树中不存在，已丢弃", id=target.get("i"), tag=target.get("t")
        )
        return []
    if source.kind is NodeKind.VARIABLE:
        return [_format_variable(source, ctx)]

    data = target.get("d") or {}
    if not isinstance(data, dict):
        raise MalformedTargetError(f"目标节点的数据字段不是对象: {data!r}")

    if source.kind in (NodeKind.PLURAL, NodeKind.BRANCH):
        branches = data.get("b") or {}
        if not isinstance(branches, dict):
            raise MalformedTargetError(f"目标节点的分支表不是对象: {branches!r}")
        name = _select_branch(source, branches, ctx.locale)
        if name is not None:
            return _translated_children(branches[name], index, ctx)
        if "c" in target:
            return _translated_children(target["c"], index, ctx)
        return _default_child(source, ctx)

    if "c" in target:
        children = tuple(_translated_children(target["c"], index, ctx))
    else:
        children = tuple(_default_children(source.children, ctx))
    if source.kind is NodeKind.FRAGMENT:
        return [Fragment(children)]
    node = source.node
    assert isinstance(node, Element)
    return [Element(node.tag, children, _translated_props(node.props, data))]


def _translated_variable(
    target: Mapping[str, Any], index: dict[int, TaggedNode], ctx: _RenderContext
) -> list[OutputChild]:
    id = _target_id(target, required=False)
    source = index.get(id) if id is not None else None
    if source is not None and source.kind is NodeKind.VARIABLE:
        return [_format_variable(source, ctx)]
    key = target["k"]
    for candidate in index.values():
        if candidate.kind is NodeKind.VARIABLE and _key_of(candidate) == key:
            return [_format_variable(candidate, ctx)]
    if key in ctx.variables:
        variable_type = VariableType.from_wire(target.get("v"))
        return [ctx.formatter(variable_type, ctx.variables[key], ctx.locale, {})]
    logger.warning("翻译树中的变量在源树中不存在，已丢弃", key=key)
    return []


def _translated_props(props: Mapping[str, Any], data: Mapping[str, Any]) -> dict[str, Any]:
    translated = dict(props)
    for minified, full in HTML_CONTENT_PROPS.items():
        value = data.get(minified)
        if full in translated and isinstance(value, str):
            translated[full] = value
    return translated


# ---------------------------------------------------------------------------
# 辅助函数
# ---------------------------------------------------------------------------


def _index(children: Any) -> Iterator[tuple[int, TaggedNode]]:
    """遍历源树（包括所有分支）中带 id 的节点。"""
    if isinstance(children, (list, tuple)):
        for child in children:
            yield from _index(child)
        return
    if not isinstance(children, TaggedNode):
        return
    yield children.id, children
    yield from _index(children.children)
    for branch in (children.branches or {}).values():
        yield from _index(branch)


def _target_id(target: Mapping[str, Any], *, required: bool) -> int | None:
    """读取目标节点的 id。结构节点必须携带整数 id；变量可以只靠名称匹配。"""
    value = target.get("i")
    if value is None and not required:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedTargetError(f"目标节点的 id 无效: {value!r}")
    return value


def _key_of(tagged: TaggedNode) -> str:
    node = tagged.node
    assert isinstance(node, Variable)
    return variable_key(tagged.variable_type or VariableType.VARIABLE, tagged.id, node.name)


def _variable_value(tagged: TaggedNode, variables: Mapping[str, Any]) -> Any:
    node = tagged.node
    assert isinstance(node, Variable)
    key = _key_of(tagged)
    if key in variables:
        return variables[key]
    if key.startswith(BASE_VARIABLE_PREFIX):
        fallback = DEFAULT_VARIABLE_NAMES.get(
            tagged.variable_type or VariableType.VARIABLE, "value"
        )
        if fallback in variables:
            return variables[fallback]
    return node.value


def _format_variable(tagged: TaggedNode, ctx: _RenderContext) -> str:
    node = tagged.node
    assert isinstance(node, Variable)
    return ctx.formatter(
        tagged.variable_type or VariableType.VARIABLE,
        _variable_value(tagged, ctx.variables),
        ctx.locale,
        node.options,
    )


def _select_branch(
    source: TaggedNode, branches: Mapping[str, Any], locale: str
) -> str | None:
    """使用源节点上的选择器，在给定的分支表中选择分支名称。"""
    node = source.node
    if isinstance(node, Plural):
        return get_plural_branch(node.n, locale, branches)
    if isinstance(node, Branch):
        name = str(node.branch)
        return name if name in branches else None
    return None
