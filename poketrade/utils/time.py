"""
Time and clock abstractions for deterministic simulation.

Price points are stamped with "now" from a Clock object instead of calling
datetime.now() directly. Tests inject a FrozenClock or ManualClock so that
every timestamp in a simulated session is reproducible.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """
    Abstract time source protocol.

    **Conceptual**: A Clock answers "what time is it right now?". The
    simulation only uses wall-clock time to label price points for display;
    ordering always comes from the point's sequence number. Depending on
    this abstraction keeps seeded series and tick timestamps deterministic
    in tests.

    **Usage**: Pass a RealClock for interactive sessions and a FrozenClock
    or ManualClock in tests.
    """

    def now(self) -> datetime:
        """
        Return the current time according to this clock.

        Returns:
            Timezone-aware datetime (UTC).
        """
        ...


class RealClock:
    """Clock that returns the actual current system time (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """
    Clock that always returns a fixed timestamp.

    **Usage**:
        clock = FrozenClock(datetime(2025, 3, 1, tzinfo=timezone.utc))
        clock.now()  # always 2025-03-01T00:00:00+00:00
    """

    def __init__(self, fixed_now: datetime):
        """
        Args:
            fixed_now: The datetime to return on every call to now().
                       Should be timezone-aware (UTC recommended).
        """
        self._fixed_now = fixed_now

    def now(self) -> datetime:
        return self._fixed_now


class ManualClock:
    """
    Clock that only moves when told to.

    **Conceptual**: Sits between FrozenClock and RealClock. A test can step a
    simulation tick by tick and advance the clock by the tick interval in
    between, producing realistic, evenly spaced timestamps without sleeping.
    """

    def __init__(self, start: datetime):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        """
        Move the clock forward.

        Args:
            seconds: Amount of time to advance (must be non-negative).

        Returns:
            The new current time.

        Raises:
            ValueError: If seconds is negative (clocks never run backwards).
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance a clock backwards, got {seconds}")
        self._now = self._now + timedelta(seconds=seconds)
        return self._now


def get_real_clock() -> Clock:
    """Factory function to create a RealClock instance."""
    return RealClock()
