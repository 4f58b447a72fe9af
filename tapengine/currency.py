from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tapengine.errors import InsufficientResources


class Currency(Enum):
    SCRAP = "scrap"
    DATA = "data"
    CORE_FRAGMENTS = "core_fragments"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Currency.SCRAP: "Scrap",
    Currency.DATA: "Data",
    Currency.CORE_FRAGMENTS: "Core Fragments",
}

# Attribute holding each currency on PlayerProgress.
_FIELDS = {
    Currency.SCRAP: "scrap",
    Currency.DATA: "data_points",
    Currency.CORE_FRAGMENTS: "core_fragments",
}


def balance_of(progress, currency: Currency) -> int:
    return getattr(progress, _FIELDS[currency])


def debit(progress, costs: dict[Currency, int]) -> None:
    """Deduct *costs* from *progress*, or raise without touching any balance."""
    for cur, amount in costs.items():
        if amount < 0:
            raise ValueError(f"Negative cost for {cur.value}: {amount}")
        if balance_of(progress, cur) < amount:
            raise InsufficientResources(f"Not enough {cur.display_name.lower()}")
    for cur, amount in costs.items():
        setattr(progress, _FIELDS[cur], balance_of(progress, cur) - amount)


@dataclass(frozen=True)
class Balances:
    """Server-confirmed currency totals carried in a mutation response."""

    scrap: int
    data_points: int
    core_fragments: int

    @classmethod
    def of(cls, progress) -> Balances:
        return cls(
            scrap=progress.scrap,
            data_points=progress.data_points,
            core_fragments=progress.core_fragments,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "scrap": self.scrap,
            "data_points": self.data_points,
            "core_fragments": self.core_fragments,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Balances:
        return cls(
            scrap=int(data["scrap"]),
            data_points=int(data["data_points"]),
            core_fragments=int(data["core_fragments"]),
        )
