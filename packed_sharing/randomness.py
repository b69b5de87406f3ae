"""
Packed Sharing: randomness sources.

Sharing needs `threshold` uniform field elements per call. The source is
passed in per call so tests can pin the randomness without touching the
sharing code. Only SystemRandomSource is suitable for real use: a weak
generator silently destroys the privacy of the shares.
"""

import secrets
from abc import ABC, abstractmethod


class RandomSource(ABC):
    """Capability that hands out uniform elements of GF(prime)."""

    @abstractmethod
    def field_elements(self, count: int, prime: int) -> list:
        pass


class SystemRandomSource(RandomSource):
    """OS CSPRNG via the secrets module."""

    def field_elements(self, count: int, prime: int) -> list:
        return [secrets.randbelow(prime) for _ in range(count)]


class FixedRandomSource(RandomSource):
    """
    Replays a fixed sequence of values. For tests only.

    Each call consumes values from where the previous call stopped.
    """

    def __init__(self, values):
        self._values = list(values)
        self._position = 0

    def field_elements(self, count: int, prime: int) -> list:
        end = self._position + count
        if end > len(self._values):
            raise ValueError(
                f"Fixed randomness exhausted: need {count}, "
                f"{len(self._values) - self._position} left"
            )
        drawn = self._values[self._position:end]
        for value in drawn:
            if not 0 <= value < prime:
                raise ValueError(f"Fixed random value {value} outside GF({prime})")
        self._position = end
        return drawn
