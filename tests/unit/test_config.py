# tests/unit/test_config.py
"""针对 `trans_tree.config` 的单元测试。"""

import pytest
from pydantic import ValidationError

from trans_tree.config import Environment, TransTreeConfig


def test_defaults() -> None:
    config = TransTreeConfig(_env_file=None)  # type: ignore[call-arg]
    assert config.max_concurrent_requests == 100
    assert config.max_batch_size == 25
    assert config.batch_interval == 50
    assert config.cache_ttl == 60000
    assert config.http_timeout is None
    assert config.render_settings.method == "default"
    assert config.render_settings.timeout == 8000
    assert config.default_locale == "en"


def test_loads_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TT_PROJECT_ID", "proj")
    monkeypatch.setenv("TT_API_KEY", "secret")
    monkeypatch.setenv("TT_MAX_BATCH_SIZE", "5")
    monkeypatch.setenv("TT_LOCALES", '["fr", "de"]')
    config = TransTreeConfig(_env_file=None)  # type: ignore[call-arg]
    assert config.project_id == "proj"
    assert config.api_key is not None
    assert config.api_key.get_secret_value() == "secret"
    assert config.max_batch_size == 5
    assert config.approved_locales == ["en", "fr", "de"]
    assert config.runtime_translation_enabled


def test_runtime_translation_requires_key_and_project() -> None:
    config = TransTreeConfig(_env_file=None, project_id="proj")  # type: ignore[call-arg]
    assert not config.runtime_translation_enabled
    assert config.remote_cache_enabled
    assert config.translation_enabled


def test_dev_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError, match="dev_api_key"):
        TransTreeConfig(  # type: ignore[call-arg]
            _env_file=None,
            dev_api_key="dev",
            environment=Environment.PRODUCTION,
        )


def test_invalid_locale_rejected() -> None:
    with pytest.raises(ValidationError):
        TransTreeConfig(_env_file=None, locales=["german"])  # type: ignore[call-arg]


def test_urls_are_normalized() -> None:
    config = TransTreeConfig(  # type: ignore[call-arg]
        _env_file=None, runtime_url="https://runtime.example.com/", cache_url="  "
    )
    assert config.runtime_url == "https://runtime.example.com"
    assert config.cache_url is None
    assert not config.remote_cache_enabled
