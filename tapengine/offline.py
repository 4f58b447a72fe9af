from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from tapengine.formulas import offline_cap_seconds
from tapengine.pipeline import compute_idle_production

if TYPE_CHECKING:
    from tapengine.state import PlayerRecord


@dataclass(frozen=True)
class OfflineEarnings:
    """A pending claim for production accrued while away.

    ``damage`` is the turret damage for the capped window; it is applied
    to the boss when the claim is collected.
    """

    scrap: int
    data: int
    damage: int
    time_away: int  # seconds
    capped_at: int  # seconds actually credited
    was_capped: bool

    @property
    def is_empty(self) -> bool:
        return self.scrap == 0 and self.data == 0 and self.damage == 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> OfflineEarnings:
        return cls(
            scrap=int(data["scrap"]),
            data=int(data["data"]),
            damage=int(data.get("damage", 0)),
            time_away=int(data["time_away"]),
            capped_at=int(data["capped_at"]),
            was_capped=bool(data["was_capped"]),
        )

    def merge(self, other: OfflineEarnings) -> OfflineEarnings:
        """Combine two unclaimed windows."""
        return OfflineEarnings(
            scrap=self.scrap + other.scrap,
            data=self.data + other.data,
            damage=self.damage + other.damage,
            time_away=self.time_away + other.time_away,
            capped_at=self.capped_at + other.capped_at,
            was_capped=self.was_capped or other.was_capped,
        )


def offline_cap_for(record: PlayerRecord) -> int:
    return offline_cap_seconds(
        record.progress.offline_cap_level, record.upgrade_level("perm_storage_boost")
    )


def compute_offline_earnings(
    record: PlayerRecord, since_ms: int, now_ms: int, cap_seconds: int | None = None
) -> OfflineEarnings:
    """Earnings between two instants, clamped to the storage cap.

    *cap_seconds* overrides the cap, e.g. with what is left of it when an
    earlier window is still unclaimed.
    """
    seconds_away = max(0, (now_ms - since_ms) // 1000)
    cap = offline_cap_for(record) if cap_seconds is None else max(0, cap_seconds)
    credited = min(seconds_away, cap)
    rates = compute_idle_production(record.machine_levels(), record.upgrade_levels())
    return OfflineEarnings(
        scrap=math.floor(rates.scrap * credited),
        data=math.floor(rates.data * credited),
        damage=math.floor(rates.dps * credited),
        time_away=seconds_away,
        capped_at=credited,
        was_capped=seconds_away > cap,
    )
