# trans_tree/rendering/plurals.py
"""复数分支选择：精确匹配优先，其次是 CLDR 规则及其别名。"""

from collections.abc import Mapping
from typing import Any

from trans_tree.rendering.formatting import parse_locale


def plural_category(n: float | int, locale: str) -> str:
    """返回 `n` 在该语言下的 CLDR 复数类别，未知语言按英语规则处理。"""
    babel_locale = parse_locale(locale) or parse_locale("en")
    assert babel_locale is not None
    return babel_locale.plural_form(abs(n))


def get_plural_branch(
    n: float | int, locale: str, branches: Mapping[str, Any]
) -> str | None:
    """
    为数值 `n` 选择一个分支名称；没有可用分支时返回 None（使用缺省子节点）。

    优先级：精确的 zero/one/two（及 singular/dual 别名）、CLDR 类别、
    类别对应的别名、plural，最后是 other。
    """
    if not branches:
        return None
    absolute = abs(n)
    category = plural_category(n, locale)
    candidates: list[str] = []
    if absolute == 0:
        candidates.append("zero")
    elif absolute == 1:
        candidates.extend(["singular", "one"])
    elif absolute == 2:
        candidates.extend(["dual", "two"])
    candidates.append(category)
    if category == "one":
        candidates.append("singular")
    elif category == "two":
        candidates.append("dual")
    if category != "one":
        candidates.append("plural")
    candidates.append("other")
    for name in candidates:
        if name in branches:
            return name
    return None
