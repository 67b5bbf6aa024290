"""
Simulated price feed for the synthetic exchange.

**Conceptual**: There is no real market behind the demo. Each tick, the mid
price takes a small, uniformly random step up or down from the previous price.
That random walk is the only source of "market movement" in the simulation;
the orderbook, fills, and PnL all key off the mid price it produces.

**Mathematical**: For each tick t:
    P_{t+1} = max(min_price, round(P_t + U(-b, +b), 2))
where b is the drift bound (0.75 by default) and min_price is the floor (1.0).

**Why floor the price?**
  - A pure random walk can wander to zero or below. A collectible never trades
    for a non-positive price, and downstream code (spread = mid * 1%) assumes
    a positive mid.
  - The floor is applied after rounding, so the invariant P >= min_price holds
    exactly, even under a run of maximally negative draws.

The generator is stateless apart from its configuration. The caller owns the
accumulated sequence; PriceSeries below implements the retention window.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

import pandas as pd

from poketrade.utils.errors import InvalidInputError
from poketrade.utils.random import RandomSource
from poketrade.utils.time import Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricePoint:
    """
    One observation of the simulated mid price.

    Attributes:
        sequence: Monotonic ordering key (0, 1, 2, ...). Never reused within a series.
        timestamp: Wall-clock label from the injected Clock (display only).
        price: Mid price, always >= the generator's min_price.
    """
    sequence: int
    timestamp: pd.Timestamp
    price: float


class PriceGenerator:
    """
    Bounded random-drift price generator.

    **Conceptual**: next_price() is a pure function of the previous price plus
    one draw from the injected random source. Given the same source state it
    always returns the same price, which is what makes seeded sessions and
    scripted tests reproducible.
    """

    def __init__(
        self,
        rng: RandomSource,
        drift_bound: float = 0.75,
        min_price: float = 1.0,
        decimals: int = 2,
    ):
        """
        Args:
            rng: Random source providing uniform(low, high).
            drift_bound: Drift is drawn from [-drift_bound, +drift_bound]. Must be >= 0.
            min_price: Floor for every generated price. Must be positive.
            decimals: Number of decimal places prices are rounded to.

        Raises:
            InvalidInputError: If drift_bound < 0 or min_price <= 0.
        """
        if drift_bound < 0:
            raise InvalidInputError(f"drift_bound must be non-negative, got {drift_bound}")
        if min_price <= 0:
            raise InvalidInputError(f"min_price must be positive, got {min_price}")

        self._rng = rng
        self._drift_bound = drift_bound
        self._min_price = min_price
        self._decimals = decimals

    @property
    def min_price(self) -> float:
        return self._min_price

    def next_price(self, previous: float) -> float:
        """
        Produce the next mid price from the previous one.

        Args:
            previous: Last known mid price.

        Returns:
            previous + drift, rounded to `decimals` places and floored at min_price.
        """
        drift = float(self._rng.uniform(-self._drift_bound, self._drift_bound))
        stepped = round(previous + drift, self._decimals)
        return max(self._min_price, stepped)

    def generate_initial_series(
        self,
        base_price: float,
        count: int,
        clock: Clock,
        interval_seconds: float = 1.0,
    ) -> list[PricePoint]:
        """
        Generate a price history used to pre-populate the display.

        **Functionally**:
          - Each point drifts from the previous one via next_price(), starting
            from base_price (so the first point is already one step away).
          - Timestamps are spaced interval_seconds apart and end at clock.now(),
            as if the feed had been running before the session started.
          - Sequence numbers run 0..count-1.

        Args:
            base_price: Starting price for the walk (must be positive).
            count: Number of points to generate (must be >= 1).
            clock: Time source for the newest point's timestamp.
            interval_seconds: Spacing between consecutive timestamps.

        Returns:
            List of `count` PricePoints, oldest first.

        Raises:
            InvalidInputError: If count < 1 or base_price <= 0.
        """
        if count < 1:
            raise InvalidInputError(f"count must be at least 1, got {count}")
        if base_price <= 0:
            raise InvalidInputError(f"base_price must be positive, got {base_price}")

        end = pd.Timestamp(clock.now())
        step = pd.Timedelta(seconds=interval_seconds)

        points = []
        price = base_price
        for i in range(count):
            price = self.next_price(price)
            points.append(
                PricePoint(
                    sequence=i,
                    timestamp=end - step * (count - 1 - i),
                    price=price,
                )
            )
        return points


class PriceSeries:
    """
    Sliding window over the most recent price points.

    **Invariant**: len(series) <= retention_window after every append. When
    the window is full, the oldest point is discarded first (FIFO).

    **Why a deque?**
      - deque(maxlen=N) evicts from the left in O(1) on every append, which is
        exactly the FIFO retention rule.
    """

    def __init__(self, retention_window: int = 120, points: Iterable[PricePoint] = ()):
        """
        Args:
            retention_window: Maximum number of points retained (must be >= 1).
            points: Optional initial points, oldest first. Only the newest
                    retention_window of them are kept.

        Raises:
            InvalidInputError: If retention_window < 1.
        """
        if retention_window < 1:
            raise InvalidInputError(
                f"retention_window must be at least 1, got {retention_window}"
            )
        self._retention_window = retention_window
        self._points: deque[PricePoint] = deque(maxlen=retention_window)
        self._next_sequence = 0
        self.extend(points)

    @property
    def retention_window(self) -> int:
        return self._retention_window

    @property
    def last_price(self) -> float | None:
        """Most recent price, or None if the series is empty."""
        if not self._points:
            return None
        return self._points[-1].price

    def __len__(self) -> int:
        return len(self._points)

    def extend(self, points: Iterable[PricePoint]) -> None:
        """Append existing points (e.g. a seeded history), keeping their order."""
        for point in points:
            if point.price <= 0:
                raise InvalidInputError(f"price must be positive, got {point.price}")
            if point.sequence < self._next_sequence:
                raise InvalidInputError(
                    f"sequence {point.sequence} is not after the last retained "
                    f"sequence {self._next_sequence - 1}"
                )
            self._points.append(point)
            self._next_sequence = point.sequence + 1

    def append(self, price: float, timestamp: datetime | pd.Timestamp) -> PricePoint:
        """
        Append a new price, evicting the oldest point if the window is full.

        Args:
            price: New mid price (must be positive).
            timestamp: Wall-clock label for the point.

        Returns:
            The PricePoint that was appended (with its assigned sequence).

        Raises:
            InvalidInputError: If price is not positive.
        """
        if price <= 0:
            raise InvalidInputError(f"price must be positive, got {price}")

        point = PricePoint(
            sequence=self._next_sequence,
            timestamp=pd.Timestamp(timestamp),
            price=price,
        )
        self._points.append(point)
        self._next_sequence += 1
        logger.debug("price tick seq=%d price=%.2f", point.sequence, point.price)
        return point

    def snapshot(self) -> tuple[PricePoint, ...]:
        """Read-only copy of the retained points, oldest first."""
        return tuple(self._points)

    def to_frame(self) -> pd.DataFrame:
        """
        Retained points as a DataFrame with columns sequence, timestamp, price.

        Rows are ordered oldest first (the natural order for a price chart).
        """
        return pd.DataFrame(
            {
                "sequence": [p.sequence for p in self._points],
                "timestamp": [p.timestamp for p in self._points],
                "price": [p.price for p in self._points],
            },
            columns=["sequence", "timestamp", "price"],
        )
