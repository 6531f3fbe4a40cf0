"""
Attempt Tracker
===============
Keyed attempt and failure bookkeeping that lives outside any single retry loop.

Used when retry history must be visible or resettable across several
non-contiguous calls sharing a logical key (e.g. an idempotency key).
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class AttemptTrackerEntry:
    """Attempt count and ordered failures for one key."""
    attempts: int = 0
    failures: List[BaseException] = field(default_factory=list)


class AttemptTracker:
    """
    Thread-safe registry of attempt counts and failures by key.

    Example:
        tracker = AttemptTracker()
        tracker.record_attempt("order-123")
        tracker.record_failure("order-123", exc)
        tracker.get_attempts("order-123")  # 1
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self._entries: Dict[str, AttemptTrackerEntry] = {}
        self._lock = threading.Lock()

    def record_attempt(self, key: str) -> int:
        """Increment the attempt count for ``key`` and return the new value."""
        with self._lock:
            entry = self._entries.setdefault(key, AttemptTrackerEntry())
            entry.attempts += 1
            return entry.attempts

    def record_failure(self, key: str, fault: BaseException) -> None:
        """Append a failure to ``key``'s history."""
        with self._lock:
            entry = self._entries.setdefault(key, AttemptTrackerEntry())
            entry.failures.append(fault)

    def get_attempts(self, key: str) -> int:
        with self._lock:
            entry = self._entries.get(key)
            return entry.attempts if entry else 0

    def get_failures(self, key: str) -> List[BaseException]:
        """Return a copy of ``key``'s failures, oldest first."""
        with self._lock:
            entry = self._entries.get(key)
            return list(entry.failures) if entry else []

    def snapshot(self, key: str) -> AttemptTrackerEntry:
        """Return a detached copy of ``key``'s entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return AttemptTrackerEntry()
            return AttemptTrackerEntry(attempts=entry.attempts, failures=list(entry.failures))

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def reset(self, key: str) -> None:
        """Forget everything recorded against ``key``."""
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug("attempts_reset", tracker=self.name, key=key)

    def clear(self) -> None:
        """Forget every key."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("attempts_cleared", tracker=self.name, keys=count)
