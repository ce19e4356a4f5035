"""Replay protection for scanned attendance tokens."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime, timedelta
from functools import lru_cache
from threading import Lock

from campus_checkin.core.settings import settings
from campus_checkin.db.time import utcnow

Clock = Callable[[], datetime]


class ReplayGuard:
    """Short-horizon cache of recently accepted token signatures.

    Entries live for ``window`` and are pruned on every access. Keys are kept
    oldest first, so pruning only touches expired entries. The cache is per
    process only; the durable guard against double attendance is the unique
    constraint on attendance records.
    """

    def __init__(self, window: timedelta | None = None, clock: Clock = utcnow) -> None:
        self.window = settings.replay_window if window is None else window
        self._clock = clock
        self._accepted: OrderedDict[str, datetime] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._accepted)

    def _prune_locked(self, now: datetime) -> None:
        cutoff = now - self.window
        while self._accepted:
            oldest_key, accepted_at = next(iter(self._accepted.items()))
            if accepted_at >= cutoff:
                break
            del self._accepted[oldest_key]

    def _store_locked(self, key: str, now: datetime) -> None:
        self._accepted[key] = now
        self._accepted.move_to_end(key)

    def prune(self) -> None:
        """Drop entries older than the replay window."""
        with self._lock:
            self._prune_locked(self._clock())

    def seen(self, key: str) -> bool:
        """Return True if ``key`` was accepted within the replay window."""
        with self._lock:
            self._prune_locked(self._clock())
            return key in self._accepted

    def record(self, key: str) -> None:
        """Mark ``key`` as accepted now."""
        with self._lock:
            now = self._clock()
            self._prune_locked(now)
            self._store_locked(key, now)

    def check_and_record(self, key: str) -> bool:
        """Atomically record ``key`` unless it was already seen.

        Returns:
            True if the key was fresh and is now recorded; False on replay.
        """
        with self._lock:
            now = self._clock()
            self._prune_locked(now)
            if key in self._accepted:
                return False
            self._store_locked(key, now)
            return True

    def discard(self, key: str) -> None:
        """Forget ``key`` so the same token may be accepted again."""
        with self._lock:
            self._accepted.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._accepted.clear()


@lru_cache(maxsize=1)
def get_replay_guard() -> ReplayGuard:
    """Return the process-wide replay guard."""
    return ReplayGuard()
