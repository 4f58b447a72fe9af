from __future__ import annotations

import os
from dataclasses import dataclass, fields

from tapengine.constants import PRESTIGE_MIN_STAGE

_ENV_PREFIX = "TAPENGINE_"


@dataclass
class EngineConfig:
    """Timing and retry settings for a client session."""

    idle_tick_interval: float = 1.0
    effect_sweep_interval: float = 1.0
    damage_number_ttl: float = 0.6
    autosave_interval: float = 2.0
    save_retries: int = 2
    retry_backoff: float = 1.0
    prestige_min_stage: int = PRESTIGE_MIN_STAGE

    def __post_init__(self) -> None:
        if self.idle_tick_interval <= 0:
            raise ValueError("idle_tick_interval must be positive")
        if self.save_retries < 0:
            raise ValueError("save_retries cannot be negative")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EngineConfig:
        """Build a config from ``TAPENGINE_*`` variables, e.g. TAPENGINE_SAVE_RETRIES."""
        env = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = int(raw) if f.type in ("int", int) else float(raw)
        return cls(**values)
