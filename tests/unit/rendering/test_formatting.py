# tests/unit/rendering/test_formatting.py
"""测试基于 Babel 的变量格式化器。"""

from datetime import datetime

from trans_tree.core.types import VariableType
from trans_tree.rendering.formatting import BabelFormatter, parse_locale


def test_numbers_follow_locale() -> None:
    fmt = BabelFormatter()
    assert fmt(VariableType.NUMBER, 1234.5, "en", {}) == "1,234.5"
    assert fmt(VariableType.NUMBER, 1234.5, "de", {}) == "1.234,5"


def test_currency_uses_option_or_default() -> None:
    fmt = BabelFormatter(default_currency="EUR")
    assert fmt(VariableType.CURRENCY, 10, "en-US", {"currency": "USD"}) == "$10.00"
    assert fmt(VariableType.CURRENCY, 10, "en-US", {}) == "€10.00"


def test_datetime_accepts_iso_strings() -> None:
    fmt = BabelFormatter()
    value = datetime(2024, 3, 1, 9, 30)
    assert fmt(VariableType.DATETIME, value.isoformat(), "en", {"format": "short"}) == (
        fmt(VariableType.DATETIME, value, "en", {"format": "short"})
    )


def test_unformattable_values_fall_back_to_str() -> None:
    fmt = BabelFormatter()
    assert fmt(VariableType.NUMBER, "many", "en", {}) == "many"
    assert fmt(VariableType.VARIABLE, 42, "en", {}) == "42"
    assert fmt(VariableType.NUMBER, None, "en", {}) == ""


def test_unknown_region_falls_back_to_language() -> None:
    locale = parse_locale("fr-ZZ")
    assert locale is not None and locale.language == "fr"
    assert parse_locale("qq") is None
