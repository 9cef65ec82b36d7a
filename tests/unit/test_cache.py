# tests/unit/test_cache.py
"""
针对 `trans_tree.cache` 模块的单元测试。

验证共享 future 的去重、引用计数，以及失败条目被移除以便重试。
"""

import pytest

from trans_tree.cache import TranslationTaskCache
from trans_tree.core.types import TranslationError, TranslationSuccess


@pytest.mark.asyncio
async def test_acquire_shares_one_future() -> None:
    cache = TranslationTaskCache()
    first, created_first = cache.acquire("fr", "h1")
    second, created_second = cache.acquire("fr", "h1")
    other, created_other = cache.acquire("de", "h1")

    assert created_first and not created_second and created_other
    assert first is second
    assert other is not first
    assert len(cache) == 2


@pytest.mark.asyncio
async def test_success_is_kept_and_resolved_without_waiting() -> None:
    cache = TranslationTaskCache()
    future, _ = cache.acquire("fr", "h1")
    assert cache.resolved("fr", "h1") is None

    cache.resolve("fr", "h1", TranslationSuccess(target="Bonjour"))

    assert (await future).target == "Bonjour"
    resolved = cache.resolved("fr", "h1")
    assert resolved is not None and resolved.target == "Bonjour"
    again, created = cache.acquire("fr", "h1")
    assert again is future and not created


@pytest.mark.asyncio
async def test_failure_evicts_entry_so_later_calls_retry() -> None:
    cache = TranslationTaskCache()
    future, _ = cache.acquire("fr", "h1")
    cache.resolve("fr", "h1", TranslationError())

    result = await future
    assert isinstance(result, TranslationError)
    assert ("fr", "h1") not in cache
    assert cache.resolved("fr", "h1") is None
    retry, created = cache.acquire("fr", "h1")
    assert created and retry is not future


@pytest.mark.asyncio
async def test_release_reports_when_last_holder_leaves_pending_entry() -> None:
    cache = TranslationTaskCache()
    future, _ = cache.acquire("fr", "h1")
    cache.acquire("fr", "h1")

    assert not cache.release("fr", "h1", future)
    assert cache.release("fr", "h1", future)
    assert not future.done()
    assert ("fr", "h1") in cache


@pytest.mark.asyncio
async def test_release_of_settled_entry_keeps_the_result() -> None:
    cache = TranslationTaskCache()
    future, _ = cache.acquire("fr", "h1")
    cache.resolve("fr", "h1", TranslationSuccess(target="Bonjour"))

    assert not cache.release("fr", "h1", future)
    resolved = cache.resolved("fr", "h1")
    assert resolved is not None and resolved.target == "Bonjour"


@pytest.mark.asyncio
async def test_stale_holder_cannot_release_a_newer_entry() -> None:
    cache = TranslationTaskCache()
    stale, _ = cache.acquire("fr", "h1")
    cache.resolve("fr", "h1", TranslationError())
    fresh, created = cache.acquire("fr", "h1")
    assert created

    assert not cache.release("fr", "h1", stale)
    assert cache.release("fr", "h1", fresh)
