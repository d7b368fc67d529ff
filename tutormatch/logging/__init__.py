"""Structured logging helpers for the matching engine."""

import logging
from typing import Optional, Union

from .config import configure_logging
from .context import clear_log_context, get_log_context, log_context, submit_with_context

__all__ = [
    "ComponentLoggerAdapter",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_log_context",
    "clear_log_context",
    "submit_with_context",
]


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its component field into each call's extra."""

    def process(self, msg, kwargs):
        # Fields passed on the call win over the adapter defaults
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a logger, optionally tagging every record with a component.

    Args:
        name: Logger name (typically __name__)
        component: Component label such as ``"matching"`` or ``"fanout"``

    Returns:
        Plain logger, or a ComponentLoggerAdapter when component is given

    Example:
        >>> logger = get_logger(__name__, component="matching")
        >>> logger.info("Run started", extra={"event": "match.push.started"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger
