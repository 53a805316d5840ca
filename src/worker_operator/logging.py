"""
Structured logging for the operator.

Log lines go to stderr so that commands printing manifests keep stdout clean.
"""

import logging
import sys
from typing import Any

import structlog

# Chatty loggers of the Kubernetes client stack.
_NOISY_LOGGERS = ("kubernetes", "urllib3")


def configure_logging(
    level: int | str = logging.INFO,
    json_output: bool = True,
    component: str = "worker-operator",
) -> None:
    """Configure structlog over standard logging, rendering JSON or console lines."""

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.CallsiteParameterAdder(
                {structlog.processors.CallsiteParameter.MODULE}
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(component=component)

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.getLogger().level, logging.WARNING))
