# trans_tree/services/runtime.py
"""提供一个通过 HTTP 调用远程运行时翻译端点的服务适配器。"""

from typing import Any

import httpx
import structlog
from pydantic import Field, SecretStr

from trans_tree.config import TransTreeConfig
from trans_tree.exceptions import APIError, ConfigurationError
from trans_tree.services.base import BaseServiceConfig, BaseTranslationService

logger = structlog.get_logger(__name__)


class RuntimeServiceConfig(BaseServiceConfig):
    """运行时翻译服务的配置模型。"""

    project_id: str
    runtime_url: str
    api_key: SecretStr | None = None
    dev_api_key: SecretStr | None = None
    timeout: float | None = Field(default=None, description="HTTP 超时（秒）")

    @classmethod
    def from_config(cls, config: TransTreeConfig) -> "RuntimeServiceConfig":
        if not config.project_id or not config.runtime_url:
            raise ConfigurationError(
                "运行时翻译配置错误: 缺少项目 ID (TT_PROJECT_ID) 或运行时地址 (TT_RUNTIME_URL)。"
            )
        return cls(
            project_id=config.project_id,
            runtime_url=config.runtime_url,
            api_key=config.api_key,
            dev_api_key=config.dev_api_key,
            timeout=config.http_timeout,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.runtime_url.rstrip('/')}/v1/runtime/{self.project_id}/server"


class RuntimeTranslationService(BaseTranslationService[RuntimeServiceConfig]):
    """通过 `POST {runtime_url}/v1/runtime/{project_id}/server` 批量翻译。"""

    CONFIG_MODEL = RuntimeServiceConfig
    VERSION = "1.0.0"

    def __init__(
        self,
        config: RuntimeServiceConfig,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config)
        if not config.api_key and not config.dev_api_key:
            raise ConfigurationError(
                "运行时翻译配置错误: 缺少 API 密钥 (TT_API_KEY 或 TT_DEV_API_KEY)。"
            )
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(config.timeout))

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["x-gt-api-key"] = self.config.api_key.get_secret_value()
        elif self.config.dev_api_key:
            headers["x-gt-dev-api-key"] = self.config.dev_api_key.get_secret_value()
        return headers

    async def close(self) -> None:
        if self._owns_client and not self.client.is_closed:
            await self.client.aclose()
            logger.info("运行时翻译服务的 HTTP 客户端已关闭。")
        await super().close()

    async def translate_batch(self, body: dict[str, Any]) -> Any:
        """[实现] 发送批量请求并返回解析后的 JSON 响应体。"""
        try:
            response = await self.client.post(
                self.config.endpoint, json=body, headers=self._headers()
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise APIError(
                f"翻译服务返回错误状态码 {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise APIError(f"无法连接到翻译服务 '{self.config.endpoint}': {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"翻译服务的响应体不是有效的 JSON: {e}") from e
