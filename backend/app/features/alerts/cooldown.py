"""Per-key alert suppression window.

State is process-local and intentionally not persisted: a restart simply
forgets which keys were recently alerted.
"""

import threading
import time
from typing import Callable, Dict

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN_SECONDS = 3.0


class CooldownController:
    """Tracks the last send time per alert key.

    :param window_seconds: Minimum spacing between two sends for the same key
    :param clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_sent: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _permits(self, key: str, now: float) -> bool:
        last = self._last_sent.get(key)
        return last is None or now - last >= self.window_seconds

    def should_send(self, key: str) -> bool:
        """True when ``key`` has no send inside the current window."""
        with self._lock:
            return self._permits(key, self._clock())

    def mark_sent(self, key: str) -> None:
        with self._lock:
            self._last_sent[key] = self._clock()

    def acquire(self, key: str) -> bool:
        """Check and record a send for ``key`` under a single lock.

        :returns: True when the caller may send; the send is already recorded
        """
        with self._lock:
            now = self._clock()
            if not self._permits(key, now):
                logger.debug("Alert suppressed by cooldown", alert_key=key)
                return False
            self._last_sent[key] = now
            return True

    def prune(self) -> int:
        """Forget keys whose window has elapsed.

        :returns: Number of keys removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key
                for key, sent_at in self._last_sent.items()
                if now - sent_at >= self.window_seconds
            ]
            for key in expired:
                del self._last_sent[key]
        if expired:
            logger.debug("Pruned alert cooldowns", removed=len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._last_sent.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_sent)
