from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class EffectType(Enum):
    DAMAGE_BOOST = "damage_boost"
    AUTO_TAP = "auto_tap"
    DATA_BOOST = "data_boost"
    SCRAP_BOOST = "scrap_boost"
    CRIT_BOOST = "crit_boost"
    REWARD_BOOST = "reward_boost"
    INSTANT_DAMAGE = "instant_damage"

    @property
    def is_instant(self) -> bool:
        return self is EffectType.INSTANT_DAMAGE


@dataclass(frozen=True)
class EffectSpec:
    """What a consumable or skill does when activated.

    For timed effects ``value`` is a multiplier (or taps per second for
    AUTO_TAP). For INSTANT_DAMAGE it is the fraction of boss max HP removed
    and ``duration_ms`` is ignored.
    """

    type: EffectType
    value: float
    duration_ms: int = 0

    def __post_init__(self) -> None:
        if not self.type.is_instant and self.duration_ms <= 0:
            raise ValueError(f"Timed effect {self.type.value} needs a positive duration")


@dataclass(frozen=True)
class ActiveEffect:
    type: EffectType
    value: float
    ends_at: int  # epoch ms

    def is_active(self, now: int) -> bool:
        return self.ends_at > now


@dataclass
class EffectManager:
    """Time-boxed buffs. Same-type effects compound multiplicatively, uncapped."""

    effects: list[ActiveEffect] = field(default_factory=list)

    def add(self, type: EffectType, value: float, duration_ms: int, now: int) -> ActiveEffect:
        if type.is_instant:
            raise ValueError("Instant effects are applied directly, never stored")
        effect = ActiveEffect(type=type, value=value, ends_at=now + duration_ms)
        self.effects = [*self.effects, effect]
        return effect

    def activate(self, spec: EffectSpec, now: int) -> ActiveEffect:
        return self.add(spec.type, spec.value, spec.duration_ms, now)

    def aggregate(self, type: EffectType, now: int) -> float:
        """Product of every unexpired effect of *type*; 1.0 when none."""
        mult = 1.0
        for eff in self.effects:
            if eff.type is type and eff.is_active(now):
                mult *= eff.value
        return mult

    def is_active(self, type: EffectType, now: int) -> bool:
        return any(e.type is type and e.is_active(now) for e in self.effects)

    def strongest(self, type: EffectType, now: int) -> ActiveEffect | None:
        active = [e for e in self.effects if e.type is type and e.is_active(now)]
        return max(active, key=lambda e: e.value) if active else None

    def sweep(self, now: int) -> list[ActiveEffect]:
        """Drop expired effects. Returns the same list object when none expired."""
        remaining = [e for e in self.effects if e.is_active(now)]
        if len(remaining) == len(self.effects):
            return self.effects
        self.effects = remaining
        return self.effects

    def consume(self, type: EffectType, now: int) -> int:
        """Remove active effects of *type*. Returns how many were removed."""
        remaining = [e for e in self.effects if not (e.type is type and e.is_active(now))]
        removed = len(self.effects) - len(remaining)
        if removed:
            self.effects = remaining
        return removed

    def clear(self) -> None:
        self.effects = []
