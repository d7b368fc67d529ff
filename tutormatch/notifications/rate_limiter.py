"""Minimum spacing between outbound SMTP sends."""

import threading
import time
from typing import Callable, Optional

from ..logging import get_logger

logger = get_logger(__name__, component="notification")


class SendRateLimiter:
    """Serialize sends and keep at least ``min_interval`` seconds between them.

    Used as a context manager around the network send only::

        with limiter:
            smtp_client.send(message, env_config, use_tls)

    Entering blocks until the previous send has finished and the interval has
    elapsed since it finished. Rendering and retry backoff happen outside.

    Args:
        min_interval: Seconds between the end of one send and the start of the next
        clock: Monotonic clock (injectable for tests)
        sleep: Sleep function (injectable for tests)
    """

    def __init__(
        self,
        min_interval: float = 1.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_send: Optional[float] = None

    def __enter__(self):
        self._lock.acquire()
        try:
            if self._last_send is not None:
                wait = self._last_send + self.min_interval - self._clock()
                if wait > 0:
                    logger.debug(
                        f"Throttling send for {wait:.2f}s",
                        extra={"event": "notification.throttle", "wait_seconds": round(wait, 3)},
                    )
                    self._sleep(wait)
        except BaseException:
            self._lock.release()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._last_send = self._clock()
        self._lock.release()
        return False
