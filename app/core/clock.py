"""Injectable time source.

All timestamps are naive UTC, matching what the database columns store.
"""

from datetime import datetime, timezone


class Clock:
    """Wall clock. Swap for a fixed clock in tests."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock(Clock):

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, delta) -> None:
        self.current = self.current + delta
