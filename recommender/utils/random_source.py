"""
Random source used by the exploration strategies.

Strategies never touch a global generator: callers pass anything that provides the
three numpy.random.Generator methods below. Production code passes a
numpy Generator (seeded or not); tests may pass a scripted stand-in.
"""

from typing import Optional, Protocol

import numpy as np


class RandomSource(Protocol):
    """Subset of numpy.random.Generator the strategies rely on."""

    def random(self) -> float:
        """Uniform draw in [0, 1)."""
        ...

    def standard_normal(self) -> float:
        """Standard normal draw."""
        ...

    def integers(self, low: int, high: int) -> int:
        """Uniform integer in [low, high)."""
        ...


def make_random_source(seed: Optional[int] = None) -> np.random.Generator:
    """Return a numpy Generator; a fixed seed makes every draw reproducible."""
    return np.random.default_rng(seed)
