# tests/helpers/factories.py
"""
提供用于创建一致、可预测的测试数据的工厂函数与测试替身。
"""

from __future__ import annotations

import asyncio
from typing import Any

from trans_tree.core.types import SourceIdentity, TranslationRequest
from trans_tree.exceptions import APIError
from trans_tree.services.base import BaseServiceConfig, BaseTranslationService

# ---- 定义一组全局共享的、可预测的常量 ----
TEST_PROJECT_ID = "test-project-01"
TEST_SOURCE_LOCALE = "en"
TEST_TARGET_LOCALE = "fr"


class FakeClock:
    """一个可手动推进的时钟，单位为秒。"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


def create_request(
    hash: str,
    *,
    locale: str = TEST_TARGET_LOCALE,
    source: Any = None,
    id: str | None = None,
    revalidate: bool = False,
) -> TranslationRequest:
    """创建一个翻译请求；源内容默认为哈希本身，便于在响应中识别。"""
    return TranslationRequest(
        source=source if source is not None else f"source {hash}",
        target_locale=locale,
        identity=SourceIdentity(hash=hash, id=id),
        revalidate=revalidate,
    )


class ScriptedService(BaseTranslationService[BaseServiceConfig]):
    """
    一个可控的批量翻译服务。

    每次调用都会记录请求体；`gate` 未被设置时调用会一直挂起，
    用于观察调度器在批次进行中的行为。`responses` 可按哈希覆盖单条结果。
    """

    CONFIG_MODEL = BaseServiceConfig

    def __init__(self, *, blocked: bool = False):
        super().__init__(BaseServiceConfig())
        self.calls: list[dict[str, Any]] = []
        self.responses: dict[str, Any] = {}
        self.failure: Exception | None = None
        self.gate = asyncio.Event()
        if not blocked:
            self.gate.set()

    async def translate_batch(self, body: dict[str, Any]) -> Any:
        self.calls.append(body)
        await self.gate.wait()
        if self.failure is not None:
            raise self.failure
        results = []
        for item in body["requests"]:
            key = item["metadata"]["hash"]
            if key in self.responses:
                results.append(self.responses[key])
            else:
                results.append(
                    {
                        "translation": f"[{body['targetLocale']}] {item['source']}",
                        "reference": {"id": item["metadata"].get("id"), "key": key},
                    }
                )
        return results

    def fail_transport(self, message: str = "connection reset") -> None:
        self.failure = APIError(message)
