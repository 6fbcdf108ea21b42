import logging
import sys
from typing import Any

import structlog


def configure_logging(level: int | str = logging.INFO, *, json_output: bool = True) -> None:
    """Configure the structlog/standard logging bridge.

    Logs go to stderr so rendered rule groups on stdout stay pipeable.
    ``json_output=False`` switches to the human readable console renderer.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr, force=True)


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Bind fields to every log emitted in the current context.

    Used to tag a whole sync run (tenant, definition id, version).
    """

    structlog.contextvars.bind_contextvars(**kwargs)
    return structlog.get_logger()


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
