# trans_tree/pipeline.py
"""本模块包含翻译管线的门面：连接标记器、缓存、调度器与渲染器。"""

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from trans_tree.cache import TranslationTaskCache
from trans_tree.config import TransTreeConfig
from trans_tree.core.types import (
    BundleLookup,
    DataFormat,
    LookupState,
    ResolvedEntry,
    SourceIdentity,
    TranslationLoading,
    TranslationRequest,
    TranslationSuccess,
    WireChildren,
)
from trans_tree.dispatcher import BatchDispatcher
from trans_tree.exceptions import ConfigurationError
from trans_tree.remote_cache import RemoteBundleCache
from trans_tree.rendering.formatting import BabelFormatter, Formatter
from trans_tree.rendering.renderer import OutputChild, render, render_default
from trans_tree.rendering.state import (
    RenderMethod,
    RenderResult,
    RenderState,
    resolve,
    wait_for_entry,
)
from trans_tree.services.base import BaseTranslationService
from trans_tree.services.runtime import RuntimeServiceConfig, RuntimeTranslationService
from trans_tree.tree.fingerprint import identify
from trans_tree.tree.nodes import TaggedChildren, Translate
from trans_tree.tree.serializer import serialize
from trans_tree.tree.tagger import tag
from trans_tree.utils import is_same_language, requires_translation, standardize_locale

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True)
class PreparedTree:
    """一棵已标记、已序列化并计算了指纹的源树。"""

    tagged: TaggedChildren
    wire: WireChildren
    identity: SourceIdentity


class TranslationPipeline:
    """翻译管线实例。远端翻译包缓存可以在多个实例之间共享。"""

    def __init__(
        self,
        config: TransTreeConfig,
        *,
        service: BaseTranslationService[Any] | None = None,
        remote_cache: RemoteBundleCache | None = None,
        formatter: Formatter | None = None,
        task_cache: TranslationTaskCache | None = None,
    ):
        self.config = config
        self.formatter = formatter or BabelFormatter()
        self.task_cache = task_cache or TranslationTaskCache()
        self.locale: str | None = None
        self.initialized = False

        if service is None and config.runtime_translation_enabled:
            service = RuntimeTranslationService(RuntimeServiceConfig.from_config(config))
        self.service = service

        self._owns_remote_cache = remote_cache is None
        if remote_cache is None and config.remote_cache_enabled:
            if config.cache_url is None or config.project_id is None:
                raise ConfigurationError("启用远端缓存需要配置 cache_url 与 project_id。")
            remote_cache = RemoteBundleCache(
                config.cache_url,
                config.project_id,
                version_id=config.version_id,
                ttl=config.cache_ttl,
            )
        self.remote_cache = remote_cache

        self.dispatcher: BatchDispatcher | None = None
        if self.service is not None:
            global_metadata: dict[str, Any] = {"sourceLocale": config.default_locale}
            if config.project_id:
                global_metadata["projectId"] = config.project_id
            self.dispatcher = BatchDispatcher(
                self.service,
                max_concurrent_requests=config.max_concurrent_requests,
                max_batch_size=config.max_batch_size,
                batch_interval=config.batch_interval,
                task_cache=self.task_cache,
                remote_cache=self.remote_cache,
                global_metadata=global_metadata,
                version_id=config.version_id,
            )

    async def initialize(self) -> None:
        """初始化翻译服务并启动调度器的定时器。"""
        if self.initialized:
            return
        logger.info("翻译管线初始化开始...")
        if self.service is not None and not self.service.initialized:
            await self.service.initialize()
        if self.dispatcher is not None:
            self.dispatcher.start()
        self.initialized = True
        logger.info(
            "翻译管线初始化完成。",
            runtime_translation=self.dispatcher is not None,
            remote_cache=self.remote_cache is not None,
        )

    async def close(self) -> None:
        """优雅地关闭调度器、翻译服务与自有的远端缓存。"""
        if not self.initialized:
            return
        logger.info("开始优雅停机...")
        if self.dispatcher is not None:
            await self.dispatcher.close()
        closers = []
        if self.service is not None:
            closers.append(self.service.close())
        if self.remote_cache is not None and self._owns_remote_cache:
            closers.append(self.remote_cache.close())
        await asyncio.gather(*closers, return_exceptions=True)
        self.initialized = False
        logger.info("优雅停机完成。")

    @property
    def default_locale(self) -> str:
        return self.config.default_locale

    def requires_translation(self, locale: str) -> bool:
        return self.config.translation_enabled and requires_translation(
            self.default_locale, locale, self.config.approved_locales
        )

    def set_locale(self, locale: str) -> None:
        """切换当前目标语言；旧语言尚未派发的请求会被取消。"""
        previous = self.locale
        self.locale = standardize_locale(locale)
        if previous and previous != self.locale and self.dispatcher is not None:
            self.dispatcher.clear_locale(previous)

    def prepare(
        self,
        tree: Any,
        *,
        id: str | None = None,
        context: str | None = None,
        start_id: int = 0,
    ) -> PreparedTree:
        """标记、序列化并计算指纹。根部 `Translate` 上的 id 与上下文作为默认值。"""
        if isinstance(tree, Translate):
            id = id or tree.id
            context = context or tree.context
        tagged, _ = tag(tree, start_id)
        wire = serialize(tagged)
        return PreparedTree(tagged, wire, identify(wire, context, id))

    def register_for_translation(
        self,
        source: Any,
        target_locale: str,
        metadata: Mapping[str, Any] | None = None,
        *,
        identity: SourceIdentity | None = None,
        data_format: DataFormat = DataFormat.JSX,
    ) -> "asyncio.Future[ResolvedEntry]":
        """将一个线格式树或字符串登记为待翻译，返回结果的 future。"""
        if self.dispatcher is None:
            raise ConfigurationError(
                "运行时翻译未启用：需要项目 ID、运行时地址与 API 密钥。"
            )
        metadata = dict(metadata or {})
        if identity is None:
            identity = identify(
                source, metadata.pop("context", None), metadata.pop("id", None), data_format
            )
        locale = standardize_locale(target_locale)
        # 本次会话尚未获取过该语言的翻译包时，请服务端刷新它。
        revalidate = (
            self.remote_cache is not None and not self.remote_cache.was_requested(locale)
        )
        request = TranslationRequest(
            source=source,
            target_locale=locale,
            identity=identity,
            data_format=data_format,
            revalidate=revalidate,
            metadata=metadata,
        )
        return self.dispatcher.enqueue(request)

    async def load(self, locale: str) -> None:
        """预先获取某个语言的远端翻译包。"""
        if self.remote_cache is not None:
            await self.remote_cache.get(locale)

    def lookup(self, locale: str, identity: SourceIdentity) -> BundleLookup:
        """在任务缓存与远端翻译包中查找一个源身份。"""
        locale = standardize_locale(locale)
        resolved = self.task_cache.resolved(locale, identity.hash)
        if resolved is not None:
            return BundleLookup(LookupState.PRESENT, resolved)
        if self.remote_cache is None:
            return BundleLookup.not_checked()
        return self.remote_cache.lookup(locale, identity)

    def render(
        self,
        tagged: TaggedChildren,
        target: Any = None,
        variables: Mapping[str, Any] | None = None,
        locale: str | None = None,
    ) -> list[OutputChild]:
        locale = locale or self.locale or self.default_locale
        return render(
            tagged, target, variables, [locale, self.default_locale], self.formatter
        )

    async def translate_tree(
        self,
        tree: Any,
        locale: str | None = None,
        *,
        variables: Mapping[str, Any] | None = None,
        id: str | None = None,
        context: str | None = None,
        method: RenderMethod | None = None,
        timeout: int | None = None,
    ) -> RenderResult:
        """
        翻译并渲染一棵 UI 树。

        按顺序尝试：远端翻译包（或已完成的任务），按需运行时翻译，
        最后是默认语言渲染。`hang` 渲染方式会等待结果后再返回。
        """
        locale = standardize_locale(locale or self.locale or self.default_locale)
        method = method or RenderMethod(self.config.render_settings.method)
        if timeout is None:
            timeout = self.config.render_settings.timeout
        prepared = self.prepare(tree, id=id, context=context)

        def render_default_output() -> list[OutputChild]:
            return render_default(
                prepared.tagged, variables, self.default_locale, self.formatter
            )

        def render_target(target: Any) -> list[OutputChild]:
            return self.render(prepared.tagged, target, variables, locale)

        if not self.requires_translation(locale):
            return RenderResult(RenderState.NOT_REQUESTED, render_default_output())

        await self.load(locale)
        found = self.lookup(locale, prepared.identity)
        if found.state is LookupState.PRESENT:
            return resolve(
                found.entry,
                render_target=render_target,
                render_default=render_default_output,
            )
        if self.dispatcher is None:
            return RenderResult(RenderState.NOT_REQUESTED, render_default_output())

        future = self.register_for_translation(
            prepared.wire, locale, identity=prepared.identity
        )

        def pending() -> Awaitable[RenderResult]:
            return self._await_translation(
                locale,
                prepared.identity,
                future,
                wait_for_entry(future, render_target, render_default_output, timeout),
            )

        if method is RenderMethod.HANG:
            return await pending()
        if future.done() and not future.cancelled():
            return resolve(
                future.result(),
                render_target=render_target,
                render_default=render_default_output,
            )
        return resolve(
            TranslationLoading(),
            render_target=render_target,
            render_default=render_default_output,
            method=method,
            same_language=is_same_language(locale, self.default_locale),
            pending=pending,
        )

    async def _await_translation(
        self,
        locale: str,
        identity: SourceIdentity,
        future: "asyncio.Future[ResolvedEntry]",
        waiter: Awaitable[_T],
    ) -> _T:
        """等待结果；结束后释放对请求的持有，无人等待的排队请求会被撤回。"""
        try:
            return await waiter
        finally:
            if self.dispatcher is not None:
                self.dispatcher.release(locale, identity.hash, future)

    async def translate_string(
        self,
        content: str,
        locale: str | None = None,
        *,
        id: str | None = None,
        context: str | None = None,
        timeout: int | None = None,
    ) -> str:
        """翻译一个纯字符串并等待结果；没有可用翻译时返回原文。"""
        locale = standardize_locale(locale or self.locale or self.default_locale)
        if not content or not self.requires_translation(locale):
            return content
        identity = identify(content, context, id, DataFormat.STRING)
        await self.load(locale)
        found = self.lookup(locale, identity)
        if found.state is LookupState.PRESENT:
            entry = found.entry
        elif self.dispatcher is None:
            return content
        else:
            future = self.register_for_translation(
                content, locale, identity=identity, data_format=DataFormat.STRING
            )
            if timeout is None:
                timeout = self.config.render_settings.timeout
            done, _ = await self._await_translation(
                locale,
                identity,
                future,
                asyncio.wait({future}, timeout=timeout / 1000 if timeout else None),
            )
            if future not in done or future.cancelled():
                logger.warning("等待字符串翻译超时，返回原文", locale=locale)
                return content
            entry = future.result()
        if isinstance(entry, TranslationSuccess) and isinstance(entry.target, str):
            return entry.target
        return content
