# trans_tree/rendering/state.py
"""
渲染状态机：`NOT_REQUESTED -> LOADING -> {SUCCESS | ERROR}`。

尚未请求或加载中时，按调用者选择的渲染方式输出占位内容；
失败时总是按默认语言渲染。
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from trans_tree.core.types import (
    ResolvedEntry,
    TranslationEntry,
    TranslationError,
    TranslationSuccess,
)
from trans_tree.rendering.renderer import OutputChild

logger = structlog.get_logger(__name__)

Output = list[OutputChild]


class RenderState(str, Enum):
    NOT_REQUESTED = "not_requested"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class RenderMethod(str, Enum):
    """加载期间的渲染方式。"""

    SKELETON = "skeleton"
    REPLACE = "replace"
    DEFAULT = "default"
    HANG = "hang"


@dataclass
class RenderResult:
    """
    一次渲染的结果。

    Attributes:
        state: 渲染时翻译条目所处的状态。
        output: 当前可以展示的输出。
        pending: 仍在加载时，调用后返回一个等待最终结果的协程；不调用则不会创建任何任务。
    """

    state: RenderState
    output: Output
    pending: Callable[[], Awaitable["RenderResult"]] | None = None


def state_of(entry: TranslationEntry | None) -> RenderState:
    if entry is None:
        return RenderState.NOT_REQUESTED
    if isinstance(entry, TranslationSuccess):
        return RenderState.SUCCESS
    if isinstance(entry, TranslationError):
        return RenderState.ERROR
    return RenderState.LOADING


def placeholder_output(
    method: RenderMethod, render_default: Callable[[], Output], same_language: bool
) -> Output:
    """加载期间的占位输出。`default` 方式仅在目标语言与默认语言同语种时显示默认语言。"""
    if method is RenderMethod.REPLACE:
        return render_default()
    if method is RenderMethod.DEFAULT and same_language:
        return render_default()
    return []


def settled(
    entry: ResolvedEntry,
    render_target: Callable[[Any], Output],
    render_default: Callable[[], Output],
) -> RenderResult:
    if isinstance(entry, TranslationSuccess):
        return RenderResult(RenderState.SUCCESS, render_target(entry.target))
    return RenderResult(RenderState.ERROR, render_default())


async def wait_for_entry(
    future: "asyncio.Future[ResolvedEntry]",
    render_target: Callable[[Any], Output],
    render_default: Callable[[], Output],
    timeout: int | None = None,
) -> RenderResult:
    """
    等待翻译结果并渲染。`timeout` 为毫秒；超时或请求被取消时按默认语言渲染。
    等待超时不会取消底层请求。
    """
    await asyncio.wait({future}, timeout=timeout / 1000 if timeout else None)
    if not future.done():
        logger.warning("等待翻译超时，使用默认语言渲染", timeout_ms=timeout)
        return RenderResult(RenderState.ERROR, render_default())
    if future.cancelled():
        return RenderResult(RenderState.ERROR, render_default())
    return settled(future.result(), render_target, render_default)


def resolve(
    entry: TranslationEntry | None,
    *,
    render_target: Callable[[Any], Output],
    render_default: Callable[[], Output],
    method: RenderMethod = RenderMethod.DEFAULT,
    same_language: bool = False,
    pending: Callable[[], Awaitable[RenderResult]] | None = None,
) -> RenderResult:
    """根据翻译条目的状态选择输出。提供了 `pending` 时，条目视为加载中。"""
    if isinstance(entry, (TranslationSuccess, TranslationError)):
        return settled(entry, render_target, render_default)
    state = state_of(entry)
    if pending is not None and state is RenderState.NOT_REQUESTED:
        state = RenderState.LOADING
    return RenderResult(
        state, placeholder_output(method, render_default, same_language), pending
    )
