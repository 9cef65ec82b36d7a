# trans_tree/cache.py
"""
本模块提供第一级缓存：进行中/已完成的翻译任务缓存。

同一 `(locale, hash)` 的并发调用者共享同一个 future，从而保证每个指纹
在任意时刻最多只有一个未完成的请求。失败的条目会被移除，以便稍后重试。
"""

import asyncio
from dataclasses import dataclass

import structlog

from trans_tree.core.types import ResolvedEntry, TranslationError, TranslationSuccess

logger = structlog.get_logger(__name__)

CacheKey = tuple[str, str]


@dataclass
class _TaskEntry:
    future: "asyncio.Future[ResolvedEntry]"
    refs: int = 1


class TranslationTaskCache:
    """一个按 `(locale, hash)` 索引、带引用计数的共享 future 映射。"""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, _TaskEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, locale: str, hash: str) -> "asyncio.Future[ResolvedEntry] | None":
        entry = self._entries.get((locale, hash))
        return entry.future if entry else None

    def acquire(
        self, locale: str, hash: str
    ) -> tuple["asyncio.Future[ResolvedEntry]", bool]:
        """
        获取（或创建）一个共享 future，并增加其引用计数。

        Returns:
            (future, created)。`created` 为 True 表示调用者需要负责派发请求。
        """
        key = (locale, hash)
        entry = self._entries.get(key)
        if entry is not None:
            entry.refs += 1
            return entry.future, False
        future: asyncio.Future[ResolvedEntry] = (
            asyncio.get_running_loop().create_future()
        )
        self._entries[key] = _TaskEntry(future)
        return future, True

    def release(
        self, locale: str, hash: str, future: "asyncio.Future[ResolvedEntry]"
    ) -> bool:
        """
        减少一个持有者。只作用于仍持有同一个 future 的条目，
        因此失败后重新创建的条目不会被旧的持有者释放。

        Returns:
            条目是否已经没有持有者且仍未完成。
        """
        entry = self._entries.get((locale, hash))
        if entry is None or entry.future is not future:
            return False
        entry.refs = max(entry.refs - 1, 0)
        return entry.refs == 0 and not entry.future.done()

    def resolve(self, locale: str, hash: str, result: ResolvedEntry) -> None:
        """完成一个条目。失败结果会把条目移出缓存，成功结果则被保留。"""
        key = (locale, hash)
        entry = self._entries.get(key)
        if entry is None:
            return
        if not entry.future.done():
            entry.future.set_result(result)
        if isinstance(result, TranslationError):
            del self._entries[key]
            logger.debug("翻译任务失败，已从任务缓存中移除", locale=locale, hash=hash)

    def resolved(self, locale: str, hash: str) -> TranslationSuccess | None:
        """在不等待的情况下返回一个已成功完成的结果。"""
        future = self.get(locale, hash)
        if future is None or not future.done() or future.cancelled():
            return None
        result = future.result()
        return result if isinstance(result, TranslationSuccess) else None

    def clear(self) -> None:
        self._entries.clear()
