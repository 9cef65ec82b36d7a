# trans_tree/utils.py
"""
本模块包含项目范围内的通用语言代码工具函数。
全部基于 langcodes 库实现 BCP 47 的校验、标准化与匹配。
"""

import re
from collections.abc import Sequence

import langcodes
from langcodes import Language
from langcodes.tag_parser import LanguageTagError

# 语言子标签应该由 2-3 个字母组成 (BCP 47)
LANGUAGE_SUBTAG_PATTERN = re.compile(r"^[a-zA-Z]{2,3}$")

# 在 determine_locale 中被视为“可接受”的最大标签距离
MAX_LOCALE_DISTANCE = 10


def validate_lang_codes(lang_codes: Sequence[str]) -> None:
    """使用 `langcodes` 库校验语言代码列表中的每个代码是否符合 BCP 47 规范。"""
    for code in lang_codes:
        try:
            lang = Language.get(code)
            if not lang.language or not LANGUAGE_SUBTAG_PATTERN.match(lang.language):
                raise LanguageTagError(
                    f"Tag '{code}' lacks a valid 2-3 letter language subtag."
                )
        except LanguageTagError as e:
            raise ValueError(f"提供的语言代码 '{code}' 格式无效。原因: {e}") from e


def standardize_locale(locale: str) -> str:
    """将语言代码标准化（例如 'en_us' -> 'en-US'）；无法解析时原样返回。"""
    try:
        return langcodes.standardize_tag(locale)
    except (LanguageTagError, ValueError):
        return locale


def is_same_language(*locales: str) -> bool:
    """判断给定的若干语言代码是否属于同一种语言（忽略地区、书写系统）。"""
    languages = set()
    for locale in locales:
        try:
            languages.add(Language.get(locale).language)
        except LanguageTagError:
            return False
    return len(languages) == 1


def requires_translation(
    default_locale: str,
    target_locale: str,
    approved_locales: Sequence[str] | None = None,
) -> bool:
    """
    判断从默认语言渲染到目标语言时是否需要翻译。

    - 目标语言与默认语言标准化后完全相同时不需要翻译；
    - 提供了批准列表时，不在列表中（也无同语言条目）的目标语言不需要翻译。
    """
    default = standardize_locale(default_locale)
    target = standardize_locale(target_locale)
    if default == target:
        return False
    if approved_locales:
        approved = {standardize_locale(loc) for loc in approved_locales}
        if target not in approved and not any(
            is_same_language(target, loc) for loc in approved
        ):
            return False
    return True


def determine_locale(
    candidate_locales: Sequence[str],
    approved_locales: Sequence[str],
    default_locale: str | None = None,
) -> str | None:
    """
    按优先级从候选语言中选出第一个能与批准列表匹配的语言。

    先尝试精确匹配，再使用 `langcodes.closest_match` 做就近匹配。
    全部失败时返回 `default_locale`。
    """
    approved = [standardize_locale(loc) for loc in approved_locales]
    if not approved:
        return standardize_locale(candidate_locales[0]) if candidate_locales else default_locale
    for candidate in candidate_locales:
        standardized = standardize_locale(candidate)
        if standardized in approved:
            return standardized
        try:
            match, distance = langcodes.closest_match(
                standardized, approved, max_distance=MAX_LOCALE_DISTANCE
            )
        except LanguageTagError:
            continue
        if match != "und" and distance <= MAX_LOCALE_DISTANCE:
            return match
    return default_locale
