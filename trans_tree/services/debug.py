# trans_tree/services/debug.py
"""提供一个用于开发和测试的调试翻译服务。"""

from typing import Any

from pydantic import Field

from trans_tree.core.types import is_wire_element
from trans_tree.services.base import BaseServiceConfig, BaseTranslationService


class DebugServiceConfig(BaseServiceConfig):
    """Debug 服务的配置模型。"""

    mode: str = Field(default="SUCCESS", description="SUCCESS, FAIL, or PARTIAL_FAIL")
    fail_on_hash: str | None = Field(default=None)
    error_code: int = Field(default=500)
    translation_map: dict[str, Any] = Field(default_factory=dict)


class DebugTranslationService(BaseTranslationService[DebugServiceConfig]):
    """
    一个简单的调试翻译服务实现。

    文本被改写为 `[locale] 原文`，结构保持不变；`translation_map` 可以按哈希
    或显式 id 指定固定的翻译结果。所有收到的请求体都记录在 `calls` 中。
    """

    CONFIG_MODEL = DebugServiceConfig
    VERSION = "1.0.0"

    def __init__(self, config: DebugServiceConfig | None = None):
        super().__init__(config or DebugServiceConfig())
        self.calls: list[dict[str, Any]] = []

    async def translate_batch(self, body: dict[str, Any]) -> Any:
        """[实现] 为每条请求构造一个成功或失败的结果。"""
        self.calls.append(body)
        locale = body["targetLocale"]
        if self.config.mode == "FAIL":
            return [
                {"error": "DebugTranslationService is in FAIL mode.", "code": self.config.error_code}
                for _ in body["requests"]
            ]

        results: list[dict[str, Any]] = []
        for index, item in enumerate(body["requests"]):
            metadata = item.get("metadata", {})
            item_hash = metadata.get("hash", "")
            if (self.config.fail_on_hash and item_hash == self.config.fail_on_hash) or (
                self.config.mode == "PARTIAL_FAIL" and index % 2 == 1
            ):
                results.append(
                    {"error": f"模拟失败：{item_hash}", "code": self.config.error_code}
                )
                continue

            key = metadata.get("id") or item_hash
            if key in self.config.translation_map:
                translation = self.config.translation_map[key]
            else:
                translation = _mark(item["source"], locale)
            results.append(
                {
                    "translation": translation,
                    "reference": {"id": metadata.get("id"), "key": item_hash},
                }
            )
        return results


def _mark(source: Any, locale: str) -> Any:
    """递归地给线格式树中的每段文本加上目标语言前缀。"""
    if isinstance(source, str):
        return f"[{locale}] {source}" if source.strip() else source
    if isinstance(source, list):
        return [_mark(child, locale) for child in source]
    if is_wire_element(source):
        marked = dict(source)
        if "c" in source:
            marked["c"] = _mark(source["c"], locale)
        data = source.get("d")
        if data and "b" in data:
            marked["d"] = {
                **data,
                "b": {name: _mark(branch, locale) for name, branch in data["b"].items()},
            }
        return marked
    return source
