# trans_tree/logging_config.py
"""
本模块负责集中配置 Trans-Tree 的日志系统。

`console` 格式通过 Rich 把每条日志渲染为一个面板，便于在开发时阅读批次、
语言与指纹等上下文；`json` 格式用于生产环境的机器可读输出。
"""

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Literal

import structlog
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from structlog.typing import Processor

if TYPE_CHECKING:
    from trans_tree.config import TransTreeConfig

APP_LOGGER_NAME = "trans_tree"


class PanelRenderer:
    """把 structlog 事件字典渲染为 Rich 面板的最终处理器。"""

    LEVEL_STYLES = {
        "debug": ("blue", "DEBUG   "),
        "info": ("green", "INFO    "),
        "warning": ("yellow", "WARNING "),
        "error": ("bold red", "ERROR   "),
        "critical": ("bold magenta", "CRITICAL"),
    }

    def __init__(
        self,
        kv_truncate_at: int = 80,
        show_timestamp: bool = True,
        show_logger_name: bool = True,
        kv_key_width: int = 15,
        console: Console | None = None,
    ):
        """
        Args:
            kv_truncate_at: 键值对中值的最大显示长度，超长时去掉引号并折行。
            show_timestamp: 是否在面板右下角显示时间戳。
            show_logger_name: 是否在面板标题中显示记录器名称。
            kv_key_width: 键列的固定宽度，用于对齐。
            console: 用于捕获输出的 Rich 控制台，测试中可以注入。
        """
        self._console = console or Console()
        self._kv_truncate_at = kv_truncate_at
        self._show_timestamp = show_timestamp
        self._show_logger_name = show_logger_name
        self._kv_key_width = kv_key_width

    def __call__(
        self, logger: Any, name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        event = str(event_dict.pop("event", "")).strip()
        if not event:
            return ""
        timestamp = event_dict.pop("timestamp", "")
        level = event_dict.pop("level", "info").lower()
        logger_name = event_dict.pop("logger", "unknown")
        style, level_text = self.LEVEL_STYLES.get(level, ("default", level.upper()))

        title = f"[{style}]{level_text}[/]"
        if self._show_logger_name:
            title += f" [cyan dim]({logger_name})[/]"

        body: list[Any] = [Text(event)]
        if event_dict:
            body.append(self._kv_table(event_dict))

        subtitle = (
            Text(str(timestamp), style="dim")
            if self._show_timestamp and timestamp
            else None
        )
        with self._console.capture() as capture:
            self._console.print(
                Panel(
                    Group(*body),
                    title=Text.from_markup(title),
                    title_align="left",
                    subtitle=subtitle,
                    subtitle_align="right",
                    border_style=style,
                    expand=False,
                )
            )
        return capture.get().rstrip()

    def _kv_table(self, kv: MutableMapping[str, Any]) -> Table:
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1))
        table.add_column(style="dim", justify="right", width=self._kv_key_width)
        table.add_column(style="bright_white", overflow="fold")
        for key, value in sorted(kv.items()):
            value_repr = repr(value)
            if len(value_repr) > self._kv_truncate_at and value_repr[:1] in "'\"":
                value_repr = value_repr[1:-1]
            table.add_row(f"{key} :", Text(value_repr))
        return table


class PassthroughFormatter(logging.Formatter):
    """直接传递 structlog 已经渲染好的字符串。"""

    def format(self, record: logging.LogRecord) -> str:
        return str(record.getMessage())


def build_processors(
    log_format: Literal["json", "console"] = "console",
    show_timestamp: bool = True,
    show_logger_name: bool = True,
    kv_truncate_at: int = 80,
) -> list[Processor]:
    """构建 structlog 处理器链，最后一个处理器负责最终渲染。"""
    timestamper = (
        structlog.processors.TimeStamper(fmt="iso", utc=True)
        if log_format == "json"
        else structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
    )
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            PanelRenderer(
                kv_truncate_at=kv_truncate_at,
                show_timestamp=show_timestamp,
                show_logger_name=show_logger_name,
            )
        )
    return processors


def setup_logging(
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "console",
    show_timestamp: bool = True,
    show_logger_name: bool = True,
    kv_truncate_at: int = 80,
) -> None:
    """
    配置全局的 structlog 日志系统。

    Args:
        log_level: `trans_tree` 记录器的最低日志级别。
        log_format: 'console' 用于开发环境，'json' 用于生产环境。
        show_timestamp: 是否在日志中包含时间戳。
        show_logger_name: 是否在日志中包含记录器名称 (例如 'trans_tree.dispatcher')。
        kv_truncate_at: console 模式下键值对的折行阈值。
    """
    structlog.configure(
        processors=build_processors(
            log_format, show_timestamp, show_logger_name, kv_truncate_at
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(PassthroughFormatter())
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    # 根记录器级别较高，屏蔽 httpx 等第三方库的噪音
    root_logger.setLevel(logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(log_level.upper())
    app_logger.propagate = True

    structlog.get_logger(f"{APP_LOGGER_NAME}.logging_config").debug(
        "日志系统已配置完成。", log_format=log_format, app_log_level=log_level.upper()
    )


def setup_logging_from_config(config: "TransTreeConfig") -> None:
    """按 `config.logging` 配置日志系统。"""
    setup_logging(log_level=config.logging.level, log_format=config.logging.format)
