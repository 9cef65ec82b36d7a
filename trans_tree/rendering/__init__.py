"""协调渲染器、变量格式化与渲染状态机。"""

from .formatting import BabelFormatter, Formatter, parse_locale
from .plurals import get_plural_branch, plural_category
from .renderer import (
    MalformedTargetError,
    OutputChild,
    output_text,
    render,
    render_default,
    render_translated,
)
from .state import RenderMethod, RenderResult, RenderState, resolve, state_of

__all__ = [
    "BabelFormatter",
    "Formatter",
    "MalformedTargetError",
    "OutputChild",
    "RenderMethod",
    "RenderResult",
    "RenderState",
    "get_plural_branch",
    "output_text",
    "parse_locale",
    "plural_category",
    "render",
    "render_default",
    "render_translated",
    "resolve",
    "state_of",
]
