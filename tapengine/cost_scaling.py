from __future__ import annotations

import math
from typing import Callable


class CostScaling:
    """Determines how a purchase price changes with the owned level."""

    def __init__(self, fn: Callable[[int, int], float]) -> None:
        self._fn = fn

    def compute(self, base_cost: int, level: int) -> int:
        """Price of going from *level* to *level + 1*, floored."""
        return math.floor(self._fn(base_cost, level))

    def total(self, base_cost: int, level: int, levels: int) -> int:
        """Price of buying *levels* consecutive levels starting at *level*."""
        return sum(self.compute(base_cost, level + i) for i in range(levels))

    @classmethod
    def fixed(cls) -> CostScaling:
        """Cost never changes."""
        return cls(lambda base, _level: base)

    @classmethod
    def geometric(cls, scale: float = 1.15) -> CostScaling:
        """Cost = base * scale^level."""
        sc = scale  # capture

        def _compute(base: int, level: int) -> float:
            return base * sc ** level

        return cls(_compute)

    @classmethod
    def tiered(cls, tier: int, scale: float = 1.5) -> CostScaling:
        """Cost = base * 2^(tier-1) * scale^level. Used for weapon upgrades."""
        tier_mult = 2 ** (tier - 1)
        sc = scale

        def _compute(base: int, level: int) -> float:
            return base * tier_mult * sc ** level

        return cls(_compute)

    @classmethod
    def custom(cls, fn: Callable[[int, int], float]) -> CostScaling:
        """Arbitrary cost function."""
        return cls(fn)
