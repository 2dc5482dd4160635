"""
Betting lock gate.

A pick can be written while now < deadline. At the deadline itself betting
is already closed.
"""

from datetime import datetime

from app.core.clock import as_utc


def is_betting_open(deadline: datetime, now: datetime) -> bool:
    return as_utc(now) < as_utc(deadline)


def is_locked(deadline: datetime, now: datetime) -> bool:
    """Picks of other participants are only revealed once locked"""
    return not is_betting_open(deadline, now)
