"""
Random stream helpers.

Every consumer of entropy (camera lens sampling, material scattering,
pixel jitter, scene generation) receives an explicit numpy ``Generator``
so that a seeded render is fully reproducible.
"""

from __future__ import annotations
from typing import List, Optional
import numpy as np

# Upper bound on candidates drawn by a rejection sampling loop
MAX_REJECTION_ATTEMPTS = 1000


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create a random stream, seeded for reproducible output if seed is given."""
    return np.random.default_rng(seed)


def spawn_streams(seed: Optional[int], count: int) -> List[np.random.Generator]:
    """Derive ``count`` independent random streams from a single seed.

    Stream ``i`` depends only on ``seed`` and ``i``, so work split across
    any number of workers sees the same random numbers.
    """
    children = np.random.SeedSequence(seed).spawn(count)
    return [np.random.default_rng(child) for child in children]


def random_double(rng: np.random.Generator, min_val: float = 0.0, max_val: float = 1.0) -> float:
    """Return a uniform real in [min_val, max_val)."""
    return min_val + (max_val - min_val) * float(rng.random())


def clamp(x: float, min_val: float, max_val: float) -> float:
    if x < min_val:
        return min_val
    if x > max_val:
        return max_val
    return x
