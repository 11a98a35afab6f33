import secrets
import random
from typing import Callable, Optional

# Any zero-argument callable returning a float in [0.0, 1.0)
RandomSource = Callable[[], float]


class TrueRNG:
    """
    A wrapper around Python's `secrets` module to provide cryptographically strong
    random numbers for flip outcomes, chance rolls and random face selection.
    """

    @staticmethod
    def random_float() -> float:
        """Returns a random float in the range [0.0, 1.0)."""
        # secrets.randbelow(n) returns [0, n). We use a large integer range to approximate a float.
        precision = 10**12
        return secrets.randbelow(precision) / precision

    def __call__(self) -> float:
        return self.random_float()


class SeededRNG:
    """
    Replayable random source for simulations and tests.
    The same seed always produces the same sequence of draws.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def random_float(self) -> float:
        return self._random.random()

    def __call__(self) -> float:
        return self._random.random()


class SequenceRNG:
    """Returns the given draws in order, cycling when exhausted."""

    def __init__(self, draws):
        if not draws:
            raise ValueError("SequenceRNG needs at least one draw")
        self._draws = list(draws)
        self._index = 0

    def __call__(self) -> float:
        value = self._draws[self._index % len(self._draws)]
        self._index += 1
        return value


rng = TrueRNG()
