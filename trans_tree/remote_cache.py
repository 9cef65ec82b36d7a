# trans_tree/remote_cache.py
"""
本模块提供第二级缓存：按语言缓存从远端获取的完整翻译包。

缓存对象需要显式创建，并以引用的方式传给需要它的管线实例；
它的生命周期与应用的启动/关闭绑定。
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import httpx
import structlog
from cachetools import TTLCache

from trans_tree.core.types import (
    BundleLookup,
    LookupState,
    ResolvedEntry,
    SourceIdentity,
    TranslationError,
    TranslationSuccess,
)
from trans_tree.utils import standardize_locale

logger = structlog.get_logger(__name__)

Bundle = dict[str, ResolvedEntry]
BundleKey = tuple[str, str, str | None]


def parse_bundle_entry(value: Any) -> ResolvedEntry:
    """
    解析翻译包中的一条记录。

    支持三种形式：带 `state` 的条目、`{"k": hash, "t": target}` 记录，
    以及直接存放的翻译结果。
    """
    if isinstance(value, dict):
        if value.get("state") == "error":
            return TranslationError.model_validate(value)
        if value.get("state") == "success":
            return TranslationSuccess.model_validate(value)
        if "k" in value and "t" in value and "i" not in value:
            return TranslationSuccess(target=value["t"], hash=value["k"])
    return TranslationSuccess(target=value)


class RemoteBundleCache:
    """一个带 TTL 的、按 `(project_id, locale, version_id)` 索引的翻译包缓存。"""

    def __init__(
        self,
        cache_url: str,
        project_id: str,
        *,
        version_id: str | None = None,
        ttl: int = 60000,
        maxsize: int = 128,
        timer: Callable[[], float] = time.monotonic,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            ttl: 有效期（毫秒）。`now - fetched_at <= ttl` 期间翻译包保持新鲜。
            timer: 返回秒数的时钟，测试中可注入假时钟。
        """
        self.cache_url = cache_url.rstrip("/")
        self.project_id = project_id
        self.version_id = version_id
        self.ttl = ttl
        # TTLCache 在 now >= expires 时过期，按整毫秒计时并多留 1 毫秒。
        self._bundles: TTLCache[BundleKey, Bundle] = TTLCache(
            maxsize=maxsize, ttl=ttl + 1, timer=lambda: round(timer() * 1000)
        )
        self._fetches: dict[BundleKey, asyncio.Task[Bundle]] = {}
        self._requested: set[BundleKey] = set()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

    def _key(self, locale: str) -> BundleKey:
        return (self.project_id, standardize_locale(locale), self.version_id)

    def bundle_url(self, locale: str) -> str:
        url = f"{self.cache_url}/{self.project_id}/{standardize_locale(locale)}"
        if self.version_id:
            url = f"{url}/{self.version_id}"
        return url

    def is_fresh(self, locale: str) -> bool:
        """是否持有该语言未过期的翻译包。"""
        return self._key(locale) in self._bundles

    def peek(self, locale: str) -> Bundle | None:
        """返回未过期的翻译包，不触发获取。"""
        return self._bundles.get(self._key(locale))

    async def get(self, locale: str) -> Bundle:
        """
        返回该语言的翻译包。缓存过期或不存在时重新获取；
        同一语言的并发调用共享一次获取。
        """
        key = self._key(locale)
        bundle = self._bundles.get(key)
        if bundle is not None:
            return bundle
        task = self._fetches.get(key)
        if task is None:
            task = asyncio.create_task(self._fetch(locale, key))
            self._fetches[key] = task
            task.add_done_callback(lambda _: self._fetches.pop(key, None))
        return await asyncio.shield(task)

    async def _fetch(self, locale: str, key: BundleKey) -> Bundle:
        url = self.bundle_url(locale)
        bundle: Bundle = {}
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"翻译包应为 JSON 对象，实际为 {type(payload).__name__}")
            bundle = {str(k): parse_bundle_entry(v) for k, v in payload.items()}
            logger.debug("已获取远端翻译包", locale=key[1], entries=len(bundle))
        except (httpx.HTTPError, ValueError) as e:
            logger.error("获取远端翻译包失败，按空翻译包处理", url=url, error=str(e))
        self._bundles[key] = bundle
        self._requested.add(key)
        return bundle

    def lookup(self, locale: str, identity: SourceIdentity) -> BundleLookup:
        """
        在未过期的翻译包中查找一个源身份。

        没有持有翻译包时返回 NOT_CHECKED；持有翻译包但没有条目时返回 ABSENT。
        显式 id 优先于哈希。
        """
        bundle = self.peek(locale)
        if bundle is None:
            return BundleLookup.not_checked()
        entry = None
        if identity.id:
            entry = bundle.get(identity.id)
        if entry is None:
            entry = bundle.get(identity.hash)
        if entry is None:
            return BundleLookup.absent()
        if (
            isinstance(entry, TranslationSuccess)
            and entry.hash
            and entry.hash != identity.hash
        ):
            logger.warning(
                "缓存的翻译与当前源内容不一致，源内容可能已被修改",
                locale=locale,
                id=identity.id,
                cached_hash=entry.hash,
                current_hash=identity.hash,
            )
        return BundleLookup(LookupState.PRESENT, entry)

    def set_translations(
        self, locale: str, identity: SourceIdentity, entry: ResolvedEntry
    ) -> bool:
        """
        把一条按需翻译的结果写入已持有的翻译包。

        没有持有未过期的翻译包时不写入；写入不会延长翻译包的获取时间。

        Returns:
            是否写入。
        """
        bundle = self.peek(locale)
        if bundle is None:
            logger.debug("未持有该语言的翻译包，跳过写入", locale=locale)
            return False
        if isinstance(entry, TranslationSuccess) and entry.hash is None:
            entry = entry.model_copy(update={"hash": identity.hash})
        bundle[identity.lookup_key] = entry
        return True

    def was_requested(self, locale: str) -> bool:
        """本次会话中是否已经获取过该语言的翻译包（无论成功与否）。"""
        return self._key(locale) in self._requested

    def clear(self) -> None:
        self._bundles.clear()
        self._requested.clear()

    async def close(self) -> None:
        for task in list(self._fetches.values()):
            task.cancel()
        if self._owns_client and not self.client.is_closed:
            await self.client.aclose()
