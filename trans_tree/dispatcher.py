# trans_tree/dispatcher.py
"""
本模块包含请求队列与批量调度器。

调度器运行在单线程的事件循环中：`enqueue` 与 `tick` 都是同步的原子步骤，
只负责调度异步的后续工作，因此共享状态不需要加锁。
"""

import asyncio
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from trans_tree.cache import TranslationTaskCache
from trans_tree.core.types import (
    ResolvedEntry,
    TranslationError,
    TranslationRequest,
    TranslationSuccess,
)
from trans_tree.exceptions import APIError
from trans_tree.remote_cache import RemoteBundleCache
from trans_tree.services.base import BaseTranslationService
from trans_tree.utils import standardize_locale

logger = structlog.get_logger(__name__)

FAILED_MESSAGE = "Translation failed."
CANCELLED_MESSAGE = "Request cancelled."
CANCELLED_CODE = 499


class _ItemReference(BaseModel):
    id: str | None = None
    key: str | None = None


class _ItemSuccess(BaseModel):
    translation: Any
    reference: _ItemReference | None = None


class _ItemError(BaseModel):
    error: str
    code: int = 500


def _failed() -> TranslationError:
    return TranslationError(error=FAILED_MESSAGE, code=500)


def _cancelled() -> TranslationError:
    return TranslationError(error=CANCELLED_MESSAGE, code=CANCELLED_CODE)


class BatchDispatcher:
    """去重、受并发上限与批大小上限约束的批量调度器。"""

    def __init__(
        self,
        service: BaseTranslationService[Any],
        *,
        max_concurrent_requests: int = 100,
        max_batch_size: int = 25,
        batch_interval: int = 50,
        task_cache: TranslationTaskCache | None = None,
        remote_cache: RemoteBundleCache | None = None,
        global_metadata: dict[str, Any] | None = None,
        version_id: str | None = None,
    ):
        self.service = service
        self.max_concurrent_requests = max_concurrent_requests
        self.max_batch_size = max_batch_size
        self.batch_interval = batch_interval
        self.task_cache = task_cache or TranslationTaskCache()
        self.remote_cache = remote_cache
        self.global_metadata = global_metadata or {}
        self.version_id = version_id

        self.active_requests = 0
        self._queue: list[TranslationRequest] = []
        self._active_tasks: set[asyncio.Task[None]] = set()
        self._timer_task: asyncio.Task[None] | None = None

    @property
    def queued(self) -> int:
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def enqueue(self, request: TranslationRequest) -> "asyncio.Future[ResolvedEntry]":
        """
        将请求放入队列并返回其结果的 future。

        相同 `(target_locale, hash)` 的请求共享同一个 future，只会入队一次。
        返回的 future 总是以 `TranslationSuccess` 或 `TranslationError` 完成。
        """
        locale, hash = request.cache_key
        future, created = self.task_cache.acquire(locale, hash)
        if created:
            self._queue.append(request)
            logger.debug("翻译请求已入队", locale=locale, hash=hash, queued=len(self._queue))
        return future

    def tick(self) -> "asyncio.Task[None] | None":
        """
        执行一次定时器步骤：并发未满时，取出最旧的请求以及同一目标语言的
        后续请求（最多 `max_batch_size` 条）作为一个批次派发。
        """
        if not self._queue or self.active_requests >= self.max_concurrent_requests:
            return None
        batch = self._take_batch()
        self.active_requests += 1
        task = asyncio.create_task(self._send_batch(batch))
        self._active_tasks.add(task)
        task.add_done_callback(self._active_tasks.discard)
        return task

    def _take_batch(self) -> list[TranslationRequest]:
        locale = self._queue[0].target_locale
        batch: list[TranslationRequest] = []
        remaining: list[TranslationRequest] = []
        for request in self._queue:
            if request.target_locale == locale and len(batch) < self.max_batch_size:
                batch.append(request)
            else:
                remaining.append(request)
        self._queue = remaining
        return batch

    def build_body(self, batch: list[TranslationRequest]) -> dict[str, Any]:
        """构造批量翻译端点的请求体。"""
        metadata = dict(self.global_metadata)
        if any(request.revalidate for request in batch):
            metadata["revalidate"] = True
        body: dict[str, Any] = {
            "requests": [request.to_wire() for request in batch],
            "targetLocale": batch[0].target_locale,
            "metadata": metadata,
        }
        if self.version_id:
            body["versionId"] = self.version_id
        return body

    async def _send_batch(self, batch: list[TranslationRequest]) -> None:
        locale = batch[0].target_locale
        log = logger.bind(locale=locale, size=len(batch))
        try:
            try:
                results = await self.service.translate_batch(self.build_body(batch))
                if not isinstance(results, list):
                    raise APIError(
                        f"翻译服务的响应体应为列表，实际为 {type(results).__name__}"
                    )
            except APIError as e:
                log.error("批量翻译请求失败，批次内所有请求均标记为失败", error=str(e))
                for request in batch:
                    self._resolve(request, _failed(), persist=False)
                return
            except Exception:
                log.error("批量翻译时发生意外错误", exc_info=True)
                for request in batch:
                    self._resolve(request, _failed(), persist=False)
                return

            for index, request in enumerate(batch):
                raw = results[index] if index < len(results) else None
                self._resolve(request, self._parse_item(request, raw), persist=True)
            log.debug("批量翻译完成")
        finally:
            self.active_requests -= 1

    def _parse_item(self, request: TranslationRequest, raw: Any) -> ResolvedEntry:
        if not isinstance(raw, dict):
            return _failed()
        if raw.get("error") is not None:
            try:
                item_error = _ItemError.model_validate(raw)
            except ValidationError:
                return _failed()
            return TranslationError(error=item_error.error, code=item_error.code)
        if raw.get("translation") is None:
            return _failed()
        try:
            item = _ItemSuccess.model_validate(raw)
        except ValidationError:
            return _failed()
        if item.reference is not None and item.reference.key != request.identity.hash:
            logger.warning(
                "翻译结果的引用键与请求的哈希不一致，仍然应用该翻译",
                expected=request.identity.hash,
                received=item.reference.key,
            )
        return TranslationSuccess(target=item.translation, hash=request.identity.hash)

    def _resolve(
        self, request: TranslationRequest, result: ResolvedEntry, *, persist: bool
    ) -> None:
        locale, hash = request.cache_key
        self.task_cache.resolve(locale, hash, result)
        if persist and not request.revalidate and self.remote_cache is not None:
            self.remote_cache.set_translations(locale, request.identity, result)

    def release(
        self, locale: str, hash: str, future: "asyncio.Future[ResolvedEntry]"
    ) -> bool:
        """
        一个调用者不再等待某个结果。

        最后一个持有者离开且请求仍在队列中时，撤回该请求并以取消结果完成；
        已派发的请求照常完成，结果保留在任务缓存中。

        Returns:
            请求是否被撤回。
        """
        if not self.task_cache.release(locale, hash, future):
            return False
        for request in self._queue:
            if request.cache_key == (locale, hash):
                self._queue.remove(request)
                self._resolve(request, _cancelled(), persist=False)
                logger.debug("已撤回无人等待的翻译请求", locale=locale, hash=hash)
                return True
        return False

    def clear_locale(self, locale: str) -> int:
        """取消某个语言中所有尚未派发的请求，返回被取消的数量。"""
        target = standardize_locale(locale)
        cancelled = [
            r for r in self._queue if standardize_locale(r.target_locale) == target
        ]
        if not cancelled:
            return 0
        self._queue = [
            r for r in self._queue if standardize_locale(r.target_locale) != target
        ]
        for request in cancelled:
            self._resolve(request, _cancelled(), persist=False)
        logger.info("已取消尚未派发的翻译请求", locale=target, count=len(cancelled))
        return len(cancelled)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.batch_interval / 1000)
            self.tick()

    def start(self) -> None:
        """启动定时器任务。"""
        if self.running:
            return
        self._timer_task = asyncio.create_task(self._run())
        logger.debug("批量调度器已启动", interval_ms=self.batch_interval)

    async def close(self) -> None:
        """停止定时器，等待进行中的批次，并取消仍在队列中的请求。"""
        if self._timer_task is not None:
            self._timer_task.cancel()
            await asyncio.gather(self._timer_task, return_exceptions=True)
            self._timer_task = None
        if self._active_tasks:
            await asyncio.gather(*self._active_tasks, return_exceptions=True)
        for request in self._queue:
            self._resolve(request, _cancelled(), persist=False)
        self._queue = []
