"""批量翻译服务适配器。"""

from .base import BaseServiceConfig, BaseTranslationService
from .debug import DebugServiceConfig, DebugTranslationService
from .runtime import RuntimeServiceConfig, RuntimeTranslationService

__all__ = [
    "BaseServiceConfig",
    "BaseTranslationService",
    "DebugServiceConfig",
    "DebugTranslationService",
    "RuntimeServiceConfig",
    "RuntimeTranslationService",
]
