"""
Logger configuration for smartcode.

structlog is bridged into the standard logging module so the indexer, the
HTTP server and the CLI share one handler setup. The CLI keeps stdout clean
by default and can divert everything to a log file instead.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter
from structlog.typing import Processor

_PRE_CHAIN: tuple[Processor, ...] = (
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def _configure_structlog(min_level: int) -> None:
    structlog.configure(
        processors=_PRE_CHAIN + (ProcessorFormatter.wrap_for_formatter,),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _build_formatter() -> ProcessorFormatter:
    return ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=False),
        foreign_pre_chain=_PRE_CHAIN,
    )


def configure_logging(
    level: int = logging.INFO,
    enable_console: bool = True,
    console_level: int | None = None,
) -> None:
    """
    Configure global logging.

    Parameters
    ----------
    level:
        Base logging level for the root logger and the structlog filter.
    enable_console:
        When False, log records are swallowed by a ``NullHandler`` so command
        output stays readable.
    console_level:
        Threshold for the console handler. Defaults to ``level``.
    """
    _configure_structlog(level)
    logging.captureWarnings(True)

    handler: logging.Handler
    if enable_console:
        handler = logging.StreamHandler()
        handler.setLevel(console_level if console_level is not None else level)
        handler.setFormatter(_build_formatter())
    else:
        handler = logging.NullHandler()

    logging.basicConfig(level=level, handlers=[handler], force=True)


def get_logger(name: Optional[str] = None) -> BoundLogger:
    """Retrieve a structlog logger with the provided name."""
    return structlog.get_logger(name)


def redirect_logging_to_file(path: Path, level: int = logging.INFO) -> None:
    """Send every log record to ``path`` instead of the console."""
    _configure_structlog(level)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(_build_formatter())
    root.addHandler(handler)
    root.setLevel(level)
