# tests/unit/services/test_runtime.py
"""使用 httpx.MockTransport 测试运行时翻译服务适配器。"""

import json
from collections.abc import Callable

import httpx
import pytest
from pydantic import SecretStr

from trans_tree.config import TransTreeConfig
from trans_tree.exceptions import APIError, ConfigurationError
from trans_tree.services.runtime import RuntimeServiceConfig, RuntimeTranslationService

BODY = {"requests": [], "targetLocale": "fr", "metadata": {}}


def _service(
    handler: Callable[[httpx.Request], httpx.Response], **kwargs: object
) -> RuntimeTranslationService:
    config = RuntimeServiceConfig(
        project_id="proj",
        runtime_url="https://runtime.example.com",
        api_key=SecretStr("key"),
        **kwargs,  # type: ignore[arg-type]
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RuntimeTranslationService(config, client=client)


@pytest.mark.asyncio
async def test_posts_batch_to_project_endpoint() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"translation": "Bonjour"}])

    service = _service(handler)
    assert await service.translate_batch(BODY) == [{"translation": "Bonjour"}]

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://runtime.example.com/v1/runtime/proj/server"
    assert request.headers["x-gt-api-key"] == "key"
    assert json.loads(request.content) == BODY


@pytest.mark.asyncio
async def test_dev_key_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    config = RuntimeServiceConfig(
        project_id="proj",
        runtime_url="https://runtime.example.com",
        dev_api_key=SecretStr("dev"),
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = RuntimeTranslationService(config, client=client)
    await service.translate_batch(BODY)
    assert seen[0].headers["x-gt-dev-api-key"] == "dev"
    assert "x-gt-api-key" not in seen[0].headers


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(503, text="unavailable"),
        lambda request: httpx.Response(200, content=b"<html>"),
    ],
)
async def test_transport_problems_raise_api_error(handler) -> None:
    service = _service(handler)
    with pytest.raises(APIError):
        await service.translate_batch(BODY)


@pytest.mark.asyncio
async def test_connection_error_raises_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    service = _service(handler)
    with pytest.raises(APIError, match="无法连接到翻译服务"):
        await service.translate_batch(BODY)


def test_missing_keys_are_a_configuration_error() -> None:
    config = RuntimeServiceConfig(project_id="proj", runtime_url="https://r.example.com")
    with pytest.raises(ConfigurationError):
        RuntimeTranslationService(config)


def test_from_config() -> None:
    config = TransTreeConfig(  # type: ignore[call-arg]
        _env_file=None, project_id="proj", api_key="k", http_timeout=5
    )
    service_config = RuntimeServiceConfig.from_config(config)
    assert service_config.endpoint == "https://runtime.gtx.dev/v1/runtime/proj/server"
    assert service_config.timeout == 5

    with pytest.raises(ConfigurationError):
        RuntimeServiceConfig.from_config(TransTreeConfig(_env_file=None))  # type: ignore[call-arg]


@pytest.mark.asyncio
async def test_close_releases_owned_client() -> None:
    config = RuntimeServiceConfig(
        project_id="proj", runtime_url="https://r.example.com", api_key=SecretStr("k")
    )
    service = RuntimeTranslationService(config)
    await service.initialize()
    assert service.initialized
    await service.close()
    assert service.client.is_closed
    assert not service.initialized
