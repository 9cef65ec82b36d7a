# trans_tree/tree/tagger.py
"""
树标记器：一次深度优先、从左到右的遍历，为每个可翻译节点分配文档顺序的整数 id。

- 根部的 `Translate` 标记被转换为普通的 `Fragment`；
- 树内部再次出现 `Translate`（或已被标记的节点）属于致命配置错误；
- 变量节点只记录名称与类型，不递归其内容；
- 复数/分支集合的每个分支独立标记，但共享同一个 id 计数器，
  因此 id 在所有分支之间全局唯一。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from trans_tree.core.types import NodeKind
from trans_tree.exceptions import NestedTranslationError
from trans_tree.tree.nodes import (
    PLURAL_FORMS,
    Branch,
    Element,
    Fragment,
    Plural,
    TaggedChild,
    TaggedChildren,
    TaggedNode,
    Text,
    Translate,
    Variable,
)

logger = structlog.get_logger(__name__)


class _Counter:
    """在一次标记过程中共享的 id 计数器。"""

    def __init__(self, start: int) -> None:
        self.value = start

    def next(self) -> int:
        self.value += 1
        return self.value


def tag(tree: Any, start_id: int = 0) -> tuple[TaggedChildren, int]:
    """
    标记一棵 UI 树。

    Args:
        tree: 单个节点或节点序列。
        start_id: 计数器种子，第一个分配的 id 为 `start_id + 1`。

    Returns:
        (标记后的树, 最后使用的 id)。把返回的 id 作为下一次调用的种子可保持 id 唯一。

    Raises:
        NestedTranslationError: 在树内部遇到翻译单元或已标记的节点。
    """
    counter = _Counter(start_id)
    if isinstance(tree, Translate):
        tagged: TaggedChildren = _tag_fragment(tree.children, tree, counter)
    else:
        tagged = _tag_children(tree, counter)
    return tagged, counter.value


def _tag_children(children: Any, counter: _Counter) -> TaggedChildren:
    if isinstance(children, (list, tuple)):
        result: list[TaggedChild] = []
        for child in children:
            tagged = _tag_child(child, counter)
            if tagged is not None:
                result.append(tagged)
        return result
    tagged = _tag_child(children, counter)
    return tagged if tagged is not None else []


def _tag_tuple(children: tuple[Any, ...], counter: _Counter) -> tuple[TaggedChild, ...]:
    tagged = _tag_children(list(children), counter)
    assert isinstance(tagged, list)
    return tuple(tagged)


def _tag_child(child: Any, counter: _Counter) -> TaggedChild | None:
    if child is None or isinstance(child, bool):
        return None
    if isinstance(child, str):
        return child
    if isinstance(child, (int, float)):
        return str(child)
    if isinstance(child, Text):
        return child.value
    if isinstance(child, Translate):
        raise NestedTranslationError(
            "翻译单元不允许嵌套：在被标记的树内部发现了另一个翻译单元。"
            f" (id={child.id!r})"
        )
    if isinstance(child, TaggedNode):
        raise NestedTranslationError(
            f"节点已被标记过 (id={child.id})，同一棵树不能被嵌套标记。"
        )
    if isinstance(child, Variable):
        return TaggedNode(
            id=counter.next(),
            kind=NodeKind.VARIABLE,
            node=child,
            variable_type=child.type,
        )
    if isinstance(child, Plural):
        node_id = counter.next()
        branches = {
            name: _tag_children(branch, counter)
            for name, branch in child.branches.items()
            if name in PLURAL_FORMS
        }
        dropped = set(child.branches) - set(branches)
        if dropped:
            logger.warning("复数集合中存在不被接受的分支名称，已忽略", branches=sorted(dropped))
        return TaggedNode(
            id=node_id,
            kind=NodeKind.PLURAL,
            node=child,
            children=_tag_tuple(child.children, counter),
            branches=branches or None,
        )
    if isinstance(child, Branch):
        node_id = counter.next()
        branches = _tag_branch_map(child.branches, counter)
        return TaggedNode(
            id=node_id,
            kind=NodeKind.BRANCH,
            node=child,
            children=_tag_tuple(child.children, counter),
            branches=branches or None,
        )
    if isinstance(child, Fragment):
        return _tag_fragment(child.children, child, counter)
    if isinstance(child, Element):
        return TaggedNode(
            id=counter.next(),
            kind=NodeKind.ELEMENT,
            node=child,
            children=_tag_tuple(child.children, counter),
        )
    raise TypeError(f"无法标记的节点类型: {type(child).__name__}")


def _tag_fragment(
    children: tuple[Any, ...], node: Fragment | Translate, counter: _Counter
) -> TaggedNode:
    node_id = counter.next()
    fragment = node if isinstance(node, Fragment) else Fragment(children)
    return TaggedNode(
        id=node_id,
        kind=NodeKind.FRAGMENT,
        node=fragment,
        children=_tag_tuple(children, counter),
    )


def _tag_branch_map(
    branches: Mapping[str, Any], counter: _Counter
) -> dict[str, TaggedChildren]:
    return {str(name): _tag_children(branch, counter) for name, branch in branches.items()}
