"""
Unit tests for the betting lock gate
"""

from datetime import datetime, timedelta, timezone

from app.core.clock import FixedClock
from app.services.betting_lock import is_betting_open, is_locked


DEADLINE = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)


class TestBettingLock:
    def test_open_before_deadline(self):
        assert is_betting_open(DEADLINE, DEADLINE - timedelta(seconds=1)) is True
        assert is_betting_open(DEADLINE, DEADLINE - timedelta(days=30)) is True

    def test_closed_at_deadline(self):
        """Equality resolves to closed."""
        assert is_betting_open(DEADLINE, DEADLINE) is False
        assert is_locked(DEADLINE, DEADLINE) is True

    def test_closed_after_deadline(self):
        assert is_betting_open(DEADLINE, DEADLINE + timedelta(microseconds=1)) is False

    def test_naive_deadline_from_storage_is_utc(self):
        """Mongo returns naive datetimes; they are compared as UTC."""
        naive = DEADLINE.replace(tzinfo=None)

        assert is_betting_open(naive, DEADLINE - timedelta(minutes=1)) is True
        assert is_betting_open(naive, DEADLINE) is False

    def test_other_timezones_are_normalised(self):
        prague = timezone(timedelta(hours=1))
        now = datetime(2026, 3, 1, 18, 59, tzinfo=prague)  # 17:59 UTC

        assert is_betting_open(DEADLINE, now) is True

    def test_fixed_clock_drives_the_gate(self):
        clock = FixedClock(DEADLINE - timedelta(minutes=5))
        assert is_betting_open(DEADLINE, clock.now()) is True

        clock.advance(minutes=5)
        assert is_betting_open(DEADLINE, clock.now()) is False
