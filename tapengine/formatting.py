from __future__ import annotations

from typing import TYPE_CHECKING

from tapengine.offline import offline_cap_for

if TYPE_CHECKING:
    from tapengine.state import GameState

_SUFFIXES = (
    (10**15, "Q"),
    (10**12, "T"),
    (10**9, "B"),
    (10**6, "M"),
    (10**3, "K"),
)


def format_number(value: float) -> str:
    """Abbreviate large balances: 1500 -> '1.50K'."""
    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"{value / threshold:.2f}{suffix}"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.2f}"
    return f"{int(value):,}"


def format_duration(seconds: float) -> str:
    """'2h 5m' or '45m'. Seconds are dropped."""
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_status_report(state: GameState) -> str:
    """Format a player's current run for console output."""
    progress = state.progress
    lines: list[str] = []

    title = f" {state.username or 'guest'} "
    lines.append("=" * 20 + title + "=" * 20)
    lines.append(f"Stage: {progress.current_stage} (highest {progress.highest_stage})")
    boss = state.boss
    if boss is not None:
        lines.append(
            f"Boss: {boss.name} {format_number(boss.hp)}/{format_number(boss.max_hp)} HP"
        )
    lines.append("")

    lines.append("BALANCES:")
    lines.append(f"  Scrap: {format_number(progress.scrap)}")
    lines.append(f"  Data: {format_number(progress.data_points)}")
    lines.append(f"  Core Fragments: {format_number(progress.core_fragments)}")
    lines.append("")

    if state.machines:
        lines.append("MACHINES:")
        for machine_type, ms in sorted(state.machines.items()):
            lines.append(f"  {machine_type:.<24s} lv {ms.level}")
        lines.append("")

    lines.append(f"Offline storage: {format_duration(offline_cap_for(state))}")
    if state.pending_offline is not None:
        pending = state.pending_offline
        lines.append(
            f"Unclaimed: {format_number(pending.scrap)} scrap, "
            f"{format_number(pending.data)} data over {format_duration(pending.capped_at)}"
        )
    return "\n".join(lines)
