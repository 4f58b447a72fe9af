from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tapengine.requirement import Requirement

if TYPE_CHECKING:
    from tapengine.definition import GameDefinition
    from tapengine.state import PlayerRecord


@dataclass(frozen=True)
class AchievementDef:
    """A named one-time unlock that fires when its trigger is met."""

    key: str
    name: str
    description: str = ""
    trigger: Requirement | None = None


def unlock_achievements(
    definition: GameDefinition, record: PlayerRecord, now: int
) -> list[str]:
    """Record newly met achievements on *record*. Returns the new keys."""
    unlocked: list[str] = []
    for adef in definition.achievements:
        if adef.key in record.achievements:
            continue
        if adef.trigger is not None and adef.trigger.evaluate(record):
            record.achievements[adef.key] = now
            unlocked.append(adef.key)
    return unlocked
