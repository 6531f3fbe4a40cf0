"""
Tests for the attempt tracker.
"""

import threading

from resilience_core.retry import AttemptTracker


class TestAttemptTracker:
    """Tests for keyed attempt bookkeeping."""

    def test_unknown_key_defaults(self):
        """Unknown keys should read as zero attempts and no failures."""
        tracker = AttemptTracker()

        assert tracker.get_attempts("missing") == 0
        assert tracker.get_failures("missing") == []

    def test_record_attempt_returns_new_count(self):
        tracker = AttemptTracker()

        assert tracker.record_attempt("order-1") == 1
        assert tracker.record_attempt("order-1") == 2
        assert tracker.get_attempts("order-1") == 2

    def test_failures_keep_order(self):
        tracker = AttemptTracker()
        first, second = ValueError("first"), ValueError("second")

        tracker.record_failure("order-1", first)
        tracker.record_failure("order-1", second)

        assert tracker.get_failures("order-1") == [first, second]

    def test_get_failures_returns_copy(self):
        """Mutating the returned list should not change the tracker."""
        tracker = AttemptTracker()
        tracker.record_failure("k", ValueError("x"))

        tracker.get_failures("k").clear()

        assert len(tracker.get_failures("k")) == 1

    def test_reset_is_per_key(self):
        """Resetting one key should leave other keys untouched."""
        tracker = AttemptTracker()
        tracker.record_attempt("a")
        tracker.record_failure("a", ValueError("a"))
        tracker.record_attempt("b")
        tracker.record_failure("b", ValueError("b"))

        tracker.reset("a")

        assert tracker.get_attempts("a") == 0
        assert tracker.get_failures("a") == []
        assert tracker.get_attempts("b") == 1
        assert len(tracker.get_failures("b")) == 1

    def test_reset_unknown_key_is_noop(self):
        tracker = AttemptTracker()

        tracker.reset("never-seen")

        assert tracker.keys() == []

    def test_clear(self):
        tracker = AttemptTracker()
        tracker.record_attempt("a")
        tracker.record_attempt("b")

        tracker.clear()

        assert tracker.keys() == []
        assert tracker.get_attempts("a") == 0

    def test_snapshot_is_detached(self):
        tracker = AttemptTracker()
        tracker.record_attempt("a")

        snapshot = tracker.snapshot("a")
        tracker.record_attempt("a")

        assert snapshot.attempts == 1
        assert tracker.get_attempts("a") == 2

    def test_concurrent_attempts_are_not_lost(self):
        """Parallel increments from many threads should all be counted."""
        tracker = AttemptTracker()

        def worker():
            for _ in range(1000):
                tracker.record_attempt("shared")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tracker.get_attempts("shared") == 8000
