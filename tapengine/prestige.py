from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tapengine import constants as C
from tapengine.formulas import boss_info, prestige_core_fragments
from tapengine.state import PlayerProgress

if TYPE_CHECKING:
    from tapengine.state import PlayerRecord


@dataclass(frozen=True)
class PrestigeResult:
    """Outcome of a prestige attempt."""

    success: bool
    core_fragments_earned: int = 0
    total_core_fragments: int = 0
    reason: str = ""
    upgrades_kept: list[str] = field(default_factory=list)


def can_prestige(record: PlayerRecord, min_stage: int = C.PRESTIGE_MIN_STAGE) -> bool:
    return record.progress.highest_stage >= min_stage


def preview_core_fragments(record: PlayerRecord) -> int:
    return prestige_core_fragments(
        record.progress.highest_stage, record.upgrade_level("perm_prestige_bonus")
    )


def apply_prestige(
    record: PlayerRecord, min_stage: int = C.PRESTIGE_MIN_STAGE
) -> PrestigeResult:
    """Reset the run on *record* in place and grant core fragments."""
    progress = record.progress
    if not can_prestige(record, min_stage):
        return PrestigeResult(
            success=False,
            reason=f"Reach stage {min_stage} to reboot (highest: {progress.highest_stage})",
        )

    earned = preview_core_fragments(record)

    stats = record.prestige_stats
    stats.total_prestiges += 1
    stats.lifetime_scrap += progress.run_scrap_earned
    stats.lifetime_data += progress.run_data_earned
    stats.lifetime_bosses_killed += progress.run_bosses_killed
    stats.lifetime_taps += progress.total_taps
    stats.lifetime_core_fragments += earned
    stats.best_stage = max(stats.best_stage, progress.highest_stage)

    starting_scrap = C.STARTING_SCRAP_PER_LEVEL * record.upgrade_level("perm_starting_scrap")
    boss = boss_info(1)
    record.progress = PlayerProgress(
        scrap=starting_scrap,
        core_fragments=progress.core_fragments + earned,
        offline_cap_level=progress.offline_cap_level,
        current_boss_hp=boss.max_hp,
        current_boss_max_hp=boss.max_hp,
    )
    record.inventory = []
    record.machines = {}
    record.upgrades = {k: u for k, u in record.upgrades.items() if u.is_permanent}

    return PrestigeResult(
        success=True,
        core_fragments_earned=earned,
        total_core_fragments=record.progress.core_fragments,
        upgrades_kept=sorted(record.upgrades),
    )
