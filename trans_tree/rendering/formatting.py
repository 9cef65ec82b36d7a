# trans_tree/rendering/formatting.py
"""变量值的本地化格式化。默认实现基于 Babel。"""

from collections.abc import Mapping
from datetime import date, datetime, time
from functools import lru_cache
from typing import Any, Protocol

import structlog
from babel import Locale, UnknownLocaleError
from babel.dates import format_date, format_datetime, format_time
from babel.numbers import format_currency, format_decimal

from trans_tree.core.types import VariableType

logger = structlog.get_logger(__name__)


class Formatter(Protocol):
    """按 `(类型, 值, 语言, 选项)` 把变量值格式化为字符串。"""

    def __call__(
        self,
        type: VariableType,
        value: Any,
        locale: str,
        options: Mapping[str, Any],
    ) -> str: ...


@lru_cache(maxsize=256)
def parse_locale(locale: str) -> Locale | None:
    """解析 BCP 47 语言代码；未知的地区退回到语言本身，仍然失败时返回 None。"""
    for candidate in (locale, locale.replace("_", "-").split("-")[0]):
        try:
            return Locale.parse(candidate, sep="-")
        except (UnknownLocaleError, ValueError, TypeError):
            continue
    return None


class BabelFormatter:
    """使用 Babel 格式化数字、货币与日期时间。"""

    def __init__(self, default_currency: str = "USD"):
        self.default_currency = default_currency

    def __call__(
        self,
        type: VariableType,
        value: Any,
        locale: str,
        options: Mapping[str, Any],
    ) -> str:
        if value is None:
            return ""
        babel_locale = parse_locale(locale)
        if babel_locale is None or type is VariableType.VARIABLE:
            return str(value)
        try:
            if type is VariableType.NUMBER:
                return format_decimal(
                    value, format=options.get("format"), locale=babel_locale
                )
            if type is VariableType.CURRENCY:
                return format_currency(
                    value,
                    options.get("currency", self.default_currency),
                    format=options.get("format"),
                    locale=babel_locale,
                )
            if type is VariableType.DATETIME:
                return self._format_datetime(value, babel_locale, options)
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning(
                "变量格式化失败，使用原始值", type=type.value, locale=locale, error=str(e)
            )
        return str(value)

    def _format_datetime(
        self, value: Any, babel_locale: Locale, options: Mapping[str, Any]
    ) -> str:
        fmt = options.get("format", "medium")
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if isinstance(value, datetime):
            return format_datetime(value, format=fmt, locale=babel_locale)
        if isinstance(value, date):
            return format_date(value, format=fmt, locale=babel_locale)
        if isinstance(value, time):
            return format_time(value, format=fmt, locale=babel_locale)
        if isinstance(value, (int, float)):
            return format_datetime(
                datetime.fromtimestamp(value), format=fmt, locale=babel_locale
            )
        raise TypeError(f"无法格式化为日期时间的值: {type(value).__name__}")
