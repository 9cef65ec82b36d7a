# trans_tree/config.py

import enum
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trans_tree.utils import validate_lang_codes


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "console"


class RenderSettings(BaseModel):
    method: Literal["skeleton", "replace", "default", "hang"] = "default"
    timeout: int | None = Field(
        default=8000, description="hang 模式下等待翻译的超时（毫秒）", gt=0
    )


class TransTreeConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TT_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_id: str | None = None
    api_key: SecretStr | None = None
    dev_api_key: SecretStr | None = None
    runtime_url: str | None = "https://runtime.gtx.dev"
    cache_url: str | None = "https://cdn.gtx.dev"
    version_id: str | None = None
    environment: Environment = Environment.DEVELOPMENT

    default_locale: str = "en"
    locales: list[str] = Field(default_factory=list)
    runtime_translation: bool = True
    remote_cache: bool = True

    max_concurrent_requests: int = Field(default=100, gt=0)
    max_batch_size: int = Field(default=25, gt=0)
    batch_interval: int = Field(
        default=50, description="调度器定时器的间隔（毫秒）", gt=0
    )
    cache_ttl: int = Field(
        default=60000, description="远端翻译包缓存的过期时间（毫秒）", gt=0
    )
    http_timeout: float | None = Field(
        default=None, description="单次批量请求的 HTTP 超时（秒），None 表示不限制"
    )

    render_settings: RenderSettings = Field(default_factory=RenderSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("default_locale")
    @classmethod
    def validate_default_locale(cls, v: str) -> str:
        validate_lang_codes([v])
        return v

    @field_validator("locales")
    @classmethod
    def validate_locales(cls, v: list[str]) -> list[str]:
        validate_lang_codes(v)
        return v

    @field_validator("runtime_url", "cache_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip().rstrip("/")
        return v or None

    @model_validator(mode="after")
    def check_dev_key_environment(self) -> "TransTreeConfig":
        if self.dev_api_key is not None and self.environment is Environment.PRODUCTION:
            raise ValueError("开发 API 密钥 (dev_api_key) 不能在生产环境中使用")
        return self

    @property
    def approved_locales(self) -> list[str]:
        """批准的语言列表；配置了 locales 时总是包含默认语言。"""
        if not self.locales:
            return []
        if self.default_locale in self.locales:
            return list(self.locales)
        return [self.default_locale, *self.locales]

    @property
    def runtime_translation_enabled(self) -> bool:
        return bool(
            self.runtime_translation
            and self.project_id
            and self.runtime_url
            and (self.api_key or self.dev_api_key)
        )

    @property
    def remote_cache_enabled(self) -> bool:
        return bool(self.remote_cache and self.cache_url and self.project_id)

    @property
    def translation_enabled(self) -> bool:
        return self.runtime_translation_enabled or self.remote_cache_enabled
