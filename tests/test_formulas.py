"""Tests for formulas module."""
import pytest

from tapengine.formulas import (
    base_tap_damage,
    boss_hp,
    boss_info,
    crit_chance,
    crit_multiplier,
    data_reward,
    machine_cost,
    machine_production,
    offline_cap_seconds,
    prestige_core_fragments,
    scrap_reward,
    storage_upgrade_cost,
    tap_damage,
    upgrade_cost,
    upgrade_effect,
    weapon_damage_at_level,
    weapon_upgrade_cost,
)


class _Roll:
    """RNG stand-in that always rolls the same value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


NO_CRIT = _Roll(0.99)


# ── Bosses ──────────────────────────────────────────────────────────


def test_boss_hp_stage_one():
    assert boss_hp(1) == 100


def test_boss_hp_grows_each_stage():
    for stage in range(1, 60):
        if stage % 10 and (stage + 1) % 10:
            assert boss_hp(stage + 1) > boss_hp(stage)


def test_major_boss_spike():
    assert boss_hp(100) / boss_hp(99) >= 5


def test_mini_boss_doubles():
    assert boss_hp(10) == int(100 * 1.12 ** 9 * 2)


def test_data_reward_starts_at_stage_ten():
    assert data_reward(1) == 0
    assert data_reward(9) == 0
    assert data_reward(10) == 15


def test_scrap_reward():
    assert scrap_reward(1) == 10
    assert scrap_reward(10) == int(10 * 1.08 ** 9 * 2)


def test_boss_info_named_and_tiers():
    boss = boss_info(10)
    assert boss.name == "GREET-R 1.0"
    assert boss.is_mini

    boss = boss_info(50)
    assert boss.is_named
    assert not boss.is_mini

    boss = boss_info(100)
    assert boss.is_major
    assert boss.name == "HR-Liquidator"


def test_boss_info_unnamed_major():
    boss = boss_info(600)
    assert boss.name == "ADMIN-6"


def test_boss_info_restores_hp():
    boss = boss_info(3, hp=5)
    assert boss.hp == 5
    assert boss.max_hp == boss_hp(3)
    assert not boss.is_defeated


def test_boss_info_clamps_hp():
    assert boss_info(3, hp=10**12).hp == boss_hp(3)
    assert boss_info(3, hp=-5).is_defeated


def test_boss_info_rejects_stage_zero():
    with pytest.raises(ValueError, match="Stage"):
        boss_info(0)


# ── Damage ──────────────────────────────────────────────────────────


def test_tap_damage_no_gear():
    result = tap_damage(0, {}, rng=NO_CRIT)
    assert result.damage == 1
    assert not result.is_critical


def test_tap_damage_crit():
    result = tap_damage(0, {}, rng=_Roll(0.0))
    assert result.is_critical
    assert result.damage == 2


def test_tap_damage_force_crit():
    result = tap_damage(10, {}, force_crit=True, rng=NO_CRIT)
    assert result.is_critical
    assert result.damage == 22


def test_tap_damage_boost():
    assert tap_damage(0, {}, damage_boost=6.0, rng=NO_CRIT).damage == 6


def test_tap_damage_never_below_one():
    assert tap_damage(0, {}, damage_boost=0.01, rng=NO_CRIT).damage == 1


def test_base_tap_damage_upgrades():
    assert base_tap_damage(4, {"tap_power": 10}) == pytest.approx(10.0)
    assert base_tap_damage(0, {"perm_starting_damage": 4}) == pytest.approx(2.0)


def test_crit_chance():
    assert crit_chance({}) == pytest.approx(0.05)
    assert crit_chance({"crit_chance": 5}, 0.10) == pytest.approx(0.20)


def test_crit_multiplier():
    assert crit_multiplier({}) == 2.0
    assert crit_multiplier({"crit_damage": 10}) == pytest.approx(3.0)


def test_weapon_damage_at_level():
    assert weapon_damage_at_level(100, 0) == 100
    assert weapon_damage_at_level(100, 5) == 200


def test_weapon_upgrade_cost():
    assert weapon_upgrade_cost(1, 0) == 500
    assert weapon_upgrade_cost(2, 1) == 1500


# ── Machines and upgrades ───────────────────────────────────────────


def test_machine_production_doubles():
    assert machine_production("scrap_collector", 0) == 0
    assert machine_production("scrap_collector", 1) == 1
    assert machine_production("scrap_collector", 4) == 8


def test_machine_cost_single_level():
    assert machine_cost("scrap_collector", 0) == 1000
    assert machine_cost("scrap_collector", 1) == 1150


def test_machine_cost_is_sum_of_levels():
    assert machine_cost("scrap_collector", 0, levels=2) == 2150
    total = machine_cost("auto_turret", 3, levels=5)
    assert total == sum(machine_cost("auto_turret", 3 + i) for i in range(5))


def test_unknown_machine():
    with pytest.raises(ValueError, match="Unknown machine"):
        machine_cost("teleporter", 0)


def test_upgrade_cost_and_effect():
    assert upgrade_cost("tap_power", 0) == 100
    assert upgrade_cost("tap_power", 2) == 225
    assert upgrade_effect("tap_power", 3) == pytest.approx(0.3)


# ── Offline and prestige ────────────────────────────────────────────


def test_offline_cap_tiers():
    assert offline_cap_seconds(1) == 2 * 3600
    assert offline_cap_seconds(8) == 24 * 3600
    assert offline_cap_seconds(99) == 24 * 3600
    assert offline_cap_seconds(1, permanent_bonus_level=2) == 4 * 3600


def test_storage_upgrade_cost():
    assert storage_upgrade_cost(1) == 10_000
    assert storage_upgrade_cost(8) is None


def test_prestige_core_fragments():
    assert prestige_core_fragments(9) == 0
    assert prestige_core_fragments(10) == 1
    assert prestige_core_fragments(100) == 3
    assert prestige_core_fragments(100, bonus_level=10) == 6
