"""
Random sources for the price feed and synthetic orderbook.

**Conceptual**: All randomness in the simulation (price drift, orderbook level
sizes) is drawn from a source that is passed in, never from a global
generator. Production sessions use numpy's Generator; tests pass a scripted
source that returns exactly the draws a scenario needs.

**Why numpy's Generator?**
  - `np.random.default_rng(seed)` gives an isolated, reproducible stream.
    Two simulations with the same seed produce identical sessions.
  - Its `uniform(low, high)` and `integers(low, high)` methods cover every
    draw the simulation makes, so they double as the protocol below.
"""

from typing import Protocol

import numpy as np


class RandomSource(Protocol):
    """
    The subset of numpy.random.Generator used by the simulation.

    Any object implementing these two methods can drive a simulation.
    """

    def uniform(self, low: float, high: float) -> float:
        """Draw a float uniformly from [low, high)."""
        ...

    def integers(self, low: int, high: int) -> int:
        """Draw an integer uniformly from [low, high) (high exclusive)."""
        ...


def make_random_source(seed: int | None = None) -> np.random.Generator:
    """
    Create a numpy Generator, seeded for reproducibility when seed is given.

    Args:
        seed: Integer seed, or None for fresh OS entropy.

    Returns:
        numpy.random.Generator instance.
    """
    return np.random.default_rng(seed)
