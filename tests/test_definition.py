"""Tests for definition and content modules."""
from tapengine.content import ITEMS, MACHINES, SKILLS, define_game
from tapengine.cost_scaling import CostScaling
from tapengine.currency import Currency
from tapengine.definition import GameConfig, GameDefinition
from tapengine.effect import EffectSpec, EffectType
from tapengine.element import ItemDef, ItemType, MachineDef, SkillDef, UpgradeDef


def test_shipped_game_is_valid():
    defn = define_game()
    assert defn.validate() == []
    assert defn.config.name == "Scrapyard Reboot"


def test_lookups():
    defn = define_game()
    assert defn.get_item(1).name == "Rusty Pipe"
    assert defn.get_item(999) is None
    assert defn.get_machine("auto_turret").unlock_stage == 50
    assert defn.get_upgrade("crit_chance").max_level == 25
    assert defn.get_skill("emp_burst").effect.type is EffectType.INSTANT_DAMAGE


def test_consumables_keyed_by_id():
    defn = define_game()
    consumables = {i.id: i.effect.type for i in ITEMS if i.type is ItemType.CONSUMABLE}
    assert consumables[301] is EffectType.DAMAGE_BOOST
    assert consumables[302] is EffectType.AUTO_TAP
    assert consumables[306] is EffectType.REWARD_BOOST
    assert defn.get_item(302).effect.value == 5.0


def test_permanent_upgrades():
    perms = define_game().permanent_upgrades()
    assert len(perms) == 5
    assert all(u.cost_currency is Currency.CORE_FRAGMENTS for u in perms)


def test_machines_registry():
    assert set(MACHINES) == {"scrap_collector", "data_miner", "auto_turret", "efficiency_bot"}


def test_skills():
    assert [s.id for s in SKILLS] == ["overclock", "emp_burst", "data_surge"]


def test_validate_duplicates():
    item = ItemDef(1, "Pipe", ItemType.WEAPON)
    defn = GameDefinition(config=GameConfig(name="Bad"), items=[item, item])
    assert any("Duplicate item" in e for e in defn.validate())


def test_validate_consumable_without_effect():
    defn = GameDefinition(items=[ItemDef(1, "Dud", ItemType.CONSUMABLE)])
    assert any("has no effect" in e for e in defn.validate())


def test_validate_equippable_with_effect():
    spec = EffectSpec(EffectType.DAMAGE_BOOST, 2.0, 1000)
    defn = GameDefinition(items=[ItemDef(1, "Odd", ItemType.ARMOR, effect=spec)])
    assert any("equippable" in e for e in defn.validate())


def test_validate_machine_currency():
    m = MachineDef("warp", "Warp", cost_currency=Currency.CORE_FRAGMENTS,
                   cost_scaling=CostScaling.fixed())
    assert GameDefinition(machines=[m]).validate()


def test_validate_permanent_upgrade_currency():
    u = UpgradeDef("cheap_perm", "Cheap", base_cost=1, cost_currency=Currency.SCRAP,
                   is_permanent=True)
    assert any("permanent" in e for e in GameDefinition(upgrades=[u]).validate())


def test_validate_skill_cooldown():
    s = SkillDef("spam", "Spam", "", 0, EffectSpec(EffectType.INSTANT_DAMAGE, 0.5))
    assert any("cooldown" in e for e in GameDefinition(skills=[s]).validate())
