"""Typed messages consumed by GameRuntime.dispatch. Timestamps are epoch ms."""

from __future__ import annotations

from dataclasses import dataclass

from tapengine.wire import MutationDelta, Snapshot


@dataclass(frozen=True)
class Action:
    pass


@dataclass(frozen=True)
class LoadSnapshot(Action):
    snapshot: Snapshot
    now: int


@dataclass(frozen=True)
class Tap(Action):
    now: int


@dataclass(frozen=True)
class DefeatBoss(Action):
    now: int


@dataclass(frozen=True)
class IdleTick(Action):
    now: int
    seconds: float = 1.0


@dataclass(frozen=True)
class SweepEffects(Action):
    now: int


@dataclass(frozen=True)
class ExpireDamageNumbers(Action):
    now: int
    ttl_ms: int = 600


@dataclass(frozen=True)
class UseSkill(Action):
    skill_id: str
    now: int


@dataclass(frozen=True)
class ApplyMutation(Action):
    """Merge a server-confirmed spend. Balances are replaced, never added."""

    delta: MutationDelta


@dataclass(frozen=True)
class CollectOffline(Action):
    """Apply a collected offline claim after the server credited it."""

    delta: MutationDelta


@dataclass(frozen=True)
class DismissOffline(Action):
    pass


@dataclass(frozen=True)
class ResetAfterPrestige(Action):
    snapshot: Snapshot
    now: int


@dataclass(frozen=True)
class MarkSaved(Action):
    revision: int


@dataclass(frozen=True)
class Logout(Action):
    pass
