"""
Random source capability.

The engine never touches a global generator. Anything that needs
randomness receives a RandomSource, which only has to produce uniform
floats in [0, 1). Tests pass a seeded source for reproducible draws.
"""

import random
import secrets
import threading
from typing import Protocol

from cardclash.config import settings


class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1)."""

    def next_uniform(self) -> float: ...


class SeededRandomSource:
    """
    Seedable random source backed by random.Random.

    The generator is guarded by a lock so one instance can be shared
    between threads. Sessions should still get their own instance so that
    a fixed seed reproduces the same sequence per session.
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed if seed is not None else secrets.randbits(64)
        self._rng = random.Random(self.seed)
        self._lock = threading.Lock()

    def next_uniform(self) -> float:
        with self._lock:
            return self._rng.random()


class SequenceRandomSource:
    """Replays a fixed list of uniform values, cycling when exhausted."""

    def __init__(self, values: list[float]):
        if not values:
            raise ValueError("SequenceRandomSource needs at least one value")
        for value in values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Uniform value {value} outside [0, 1)")
        self._values = list(values)
        self._index = 0

    def next_uniform(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


def uniform_index(source: RandomSource, size: int) -> int:
    """Uniformly pick an index in [0, size)."""
    if size <= 0:
        raise ValueError("Cannot pick from an empty range")
    # min() guards against a source returning a value that rounds up to size
    return min(int(source.next_uniform() * size), size - 1)


def uniform_int(source: RandomSource, low: int, high: int) -> int:
    """Uniformly pick an integer in [low, high]."""
    return low + uniform_index(source, high - low + 1)


def new_session_source() -> SeededRandomSource:
    """
    Create a random source for one draw request or match session.

    With settings.rng_seed set, every session replays the same sequence.
    """
    return SeededRandomSource(settings.rng_seed)
