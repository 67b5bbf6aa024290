"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import poketrade...' works,
and provides a scripted random source for deterministic scenarios.
"""
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


class ScriptedRandom:
    """
    Random source that returns queued values instead of random draws.

    Implements the two methods of numpy.random.Generator the simulation uses.
    When a queue is empty, uniform() returns 0.0 (no drift) and integers()
    returns `low` (smallest level size). Every call is recorded so tests can
    check the bounds that were requested.
    """

    def __init__(self, uniforms=(), integers=()):
        self._uniforms = list(uniforms)
        self._integers = list(integers)
        self.uniform_calls = []
        self.integer_calls = []

    def queue_uniform(self, *values):
        self._uniforms.extend(values)

    def queue_integers(self, *values):
        self._integers.extend(values)

    def uniform(self, low, high):
        self.uniform_calls.append((low, high))
        return self._uniforms.pop(0) if self._uniforms else 0.0

    def integers(self, low, high):
        self.integer_calls.append((low, high))
        return self._integers.pop(0) if self._integers else low


@pytest.fixture
def scripted_rng():
    """Factory fixture: scripted_rng(uniforms=[...], integers=[...])."""
    return ScriptedRandom
