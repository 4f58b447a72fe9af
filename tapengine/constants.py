"""Tuning constants for the economy curves."""

BASE_DAMAGE = 1
BASE_CRIT_CHANCE = 0.05
BASE_CRIT_MULTIPLIER = 2.0
BASE_BOSS_HP = 100
BASE_SCRAP_REWARD = 10
BASE_DATA_REWARD = 5

HP_SCALE_PER_STAGE = 1.12
REWARD_SCALE_PER_STAGE = 1.08
DATA_SCALE_PER_STAGE = 1.06
DATA_REWARD_BONUS = 1.5
DATA_REWARD_MIN_STAGE = 10

# Per-level multipliers applied by upgrades.
TAP_POWER_PER_LEVEL = 0.10
PERM_DAMAGE_PER_LEVEL = 0.25
CRIT_CHANCE_PER_LEVEL = 0.01
CRIT_DAMAGE_PER_LEVEL = 0.10
IDLE_POWER_PER_LEVEL = 0.10
PERM_IDLE_PER_LEVEL = 0.10
DROP_RATE_PER_LEVEL = 0.05
PRESTIGE_BONUS_PER_LEVEL = 0.10
STARTING_SCRAP_PER_LEVEL = 1000

WEAPON_DAMAGE_PER_LEVEL = 0.20
WEAPON_UPGRADE_BASE_COST = 500
WEAPON_UPGRADE_COST_SCALE = 1.5

# Offline storage tiers, indexed by offline_cap_level - 1.
OFFLINE_CAP_HOURS = (2, 3, 4, 6, 8, 12, 18, 24)
OFFLINE_CAP_COSTS = (0, 10_000, 50_000, 200_000, 1_000_000, 5_000_000, 25_000_000, 100_000_000)
OFFLINE_CAP_PER_PERM_LEVEL_HOURS = 1

PRESTIGE_MIN_STAGE = 50
PRESTIGE_FRAGMENT_MIN_STAGE = 10

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
