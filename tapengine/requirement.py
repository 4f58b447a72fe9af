from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

from tapengine._types import compare
from tapengine.currency import Currency, balance_of

if TYPE_CHECKING:
    from tapengine.state import PlayerRecord


class Requirement(ABC):
    """Base class for all requirements: boolean conditions on a player record."""

    @abstractmethod
    def evaluate(self, record: PlayerRecord) -> bool: ...

    def __and__(self, other: Requirement) -> Requirement:
        return _AllRequirement([self, other])

    def __or__(self, other: Requirement) -> Requirement:
        return _AnyRequirement([self, other])


# ── Private implementations ──────────────────────────────────────────


class _MetricRequirement(Requirement):
    def __init__(self, metric: Callable[[PlayerRecord], float], op: str, threshold: float) -> None:
        self.metric = metric
        self.op = op
        self.threshold = threshold

    def evaluate(self, record: PlayerRecord) -> bool:
        return compare(self.metric(record), self.op, self.threshold)


class _AllRequirement(Requirement):
    def __init__(self, reqs: list[Requirement]) -> None:
        self.reqs = reqs

    def evaluate(self, record: PlayerRecord) -> bool:
        return all(r.evaluate(record) for r in self.reqs)


class _AnyRequirement(Requirement):
    def __init__(self, reqs: list[Requirement]) -> None:
        self.reqs = reqs

    def evaluate(self, record: PlayerRecord) -> bool:
        return any(r.evaluate(record) for r in self.reqs)


class _CustomRequirement(Requirement):
    def __init__(self, fn: Callable[[PlayerRecord], bool]) -> None:
        self.fn = fn

    def evaluate(self, record: PlayerRecord) -> bool:
        return self.fn(record)


# ── Public factory ───────────────────────────────────────────────────


class Req:
    """Factory for built-in requirement types."""

    @staticmethod
    def stage(op: str, threshold: int) -> Requirement:
        """Highest stage reached this run."""
        return _MetricRequirement(lambda r: r.progress.highest_stage, op, threshold)

    @staticmethod
    def resource(currency: Currency, op: str, threshold: float) -> Requirement:
        return _MetricRequirement(lambda r: balance_of(r.progress, currency), op, threshold)

    @staticmethod
    def bosses_killed(op: str, threshold: int) -> Requirement:
        return _MetricRequirement(lambda r: r.bosses_killed(), op, threshold)

    @staticmethod
    def taps(op: str, threshold: int) -> Requirement:
        return _MetricRequirement(lambda r: r.taps(), op, threshold)

    @staticmethod
    def machine_levels(op: str, threshold: int) -> Requirement:
        """Sum of levels over all owned machines."""
        return _MetricRequirement(lambda r: r.total_machine_levels(), op, threshold)

    @staticmethod
    def all(*reqs: Requirement) -> Requirement:
        return _AllRequirement(list(reqs))

    @staticmethod
    def any(*reqs: Requirement) -> Requirement:
        return _AnyRequirement(list(reqs))

    @staticmethod
    def custom(fn: Callable[[PlayerRecord], bool]) -> Requirement:
        return _CustomRequirement(fn)
