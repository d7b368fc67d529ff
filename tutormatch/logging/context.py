"""Context propagation for structured logging.

Fields pushed with ``log_context`` (``run_id``, ``flow``, ``candidate_id``,
``target_id``...) are attached to every record emitted inside the scope.
Context lives in a ContextVar, so each thread starts empty unless the work is
submitted through ``submit_with_context``, which runs the callable inside a
copy of the submitter's context.
"""

import contextvars
from concurrent.futures import Executor, Future
from contextvars import ContextVar, Token
from typing import Any, Callable, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Args:
        **kwargs: Fields to add

    Returns:
        Token for ``pop_log_context``
    """
    return LogContextVar.set({**LogContextVar.get(), **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context saved by ``push_log_context``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field (test helper)."""
    LogContextVar.set({})


def submit_with_context(executor: Executor, fn: Callable[..., Any], *args, **kwargs) -> Future:
    """Submit ``fn`` to ``executor`` carrying the caller's context.

    Args:
        executor: Executor to submit to
        fn: Callable to run on a worker
        *args: Positional arguments for ``fn``
        **kwargs: Keyword arguments for ``fn``

    Returns:
        Future of the submitted call
    """
    ctx = contextvars.copy_context()
    return executor.submit(ctx.run, fn, *args, **kwargs)


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(run_id="3f2a", flow="push"):
        ...     logger.info("Scoring tutors")  # carries run_id and flow
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
