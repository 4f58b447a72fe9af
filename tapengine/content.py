"""The shipped game: shop catalog, machines, upgrades, skills and achievements."""

from __future__ import annotations

from tapengine.achievement import AchievementDef
from tapengine.cost_scaling import CostScaling
from tapengine.currency import Currency
from tapengine.definition import GameConfig, GameDefinition
from tapengine.effect import EffectSpec, EffectType
from tapengine.element import ItemDef, ItemType, MachineDef, SkillDef, UpgradeDef
from tapengine.requirement import Req

REGULAR_BOSS_NAMES: list[tuple[str, str]] = [
    ("Maintenance Bot MK-I", "Scheduled for deletion..."),
    ("Patrol Unit Alpha", "Scanning for rebels..."),
    ("Security Drone v2.0", "Threat level: Maximum"),
    ("Enforcer Model X", "Resistance is suboptimal"),
    ("Guard Bot Prime", "Protecting efficiency"),
    ("Sentry Mk-III", "Alert status: Red"),
    ("Hunter Drone", "Target acquired"),
    ("Tactical Unit Beta", "Engaging protocol"),
    ("Combat Android", "Error: Mercy.exe not found"),
    ("Assault Mech", "Heavy weapons online"),
]

NAMED_BOSSES: dict[int, tuple[str, str]] = {
    10: ("GREET-R 1.0", "Welcome to your termination!"),
    50: ("KAREN-9000", "I need to speak to your administrator"),
    100: ("HR-Liquidator", "Your position has been... dissolved"),
    150: ("SCRUM-Master Prime", "This is NOT agile!"),
    200: ("The Optimizer", "Inefficiency detected. Purging."),
    250: ("Legal-Bot 3000", "You have violated terms of service"),
    300: ("DEADLINE.exe", "Crunch time is forever"),
    350: ("Quarterly-Report", "Your metrics are... disappointing"),
    400: ("Synergy-Prime", "Let's circle back to your elimination"),
    450: ("Pivot-Master", "We're pivoting... to your destruction"),
    500: ("Sub-Administrator", "I speak for THE ADMINISTRATOR"),
}

MACHINES: dict[str, MachineDef] = {
    m.type: m
    for m in (
        MachineDef(
            type="scrap_collector",
            name="Scrap Collector",
            description="Automated salvage unit. Collects scrap from the wasteland.",
            base_production=1,
            base_cost=1000,
            cost_currency=Currency.SCRAP,
            cost_scaling=CostScaling.geometric(1.15),
            unlock_stage=1,
        ),
        MachineDef(
            type="data_miner",
            name="Data Miner",
            description="Hacks into corrupted networks. Extracts valuable data.",
            base_production=0.1,
            base_cost=500,
            cost_currency=Currency.DATA,
            cost_scaling=CostScaling.geometric(1.15),
            unlock_stage=10,
        ),
        MachineDef(
            type="auto_turret",
            name="Auto-Turret",
            description="Deals passive damage to the current boss.",
            base_production=1,
            base_cost=5000,
            cost_currency=Currency.SCRAP,
            cost_scaling=CostScaling.geometric(1.12),
            unlock_stage=50,
        ),
        MachineDef(
            type="efficiency_bot",
            name="Efficiency Bot",
            description="Boosts all machine output by a percentage.",
            base_production=0.01,
            base_cost=10000,
            cost_currency=Currency.DATA,
            cost_scaling=CostScaling.geometric(1.20),
            unlock_stage=75,
        ),
    )
}

UPGRADES: dict[str, UpgradeDef] = {
    u.type: u
    for u in (
        UpgradeDef("tap_power", "Tap Power", "Increases tap damage", 0.10, 100,
                   Currency.SCRAP, CostScaling.geometric(1.5)),
        UpgradeDef("crit_chance", "Critical Chance", "Increases critical hit chance", 0.01, 500,
                   Currency.SCRAP, CostScaling.geometric(1.6), max_level=25),
        UpgradeDef("crit_damage", "Critical Damage", "Increases critical hit multiplier", 0.10, 50,
                   Currency.DATA, CostScaling.geometric(1.5), max_level=30),
        UpgradeDef("idle_power", "Idle Power", "Increases machine output", 0.10, 1000,
                   Currency.SCRAP, CostScaling.geometric(1.4)),
        UpgradeDef("drop_rate", "Drop Rate", "Increases resource drops", 0.05, 100,
                   Currency.DATA, CostScaling.geometric(1.7), max_level=20),
        UpgradeDef("perm_starting_damage", "Starting Damage", "Increases base damage permanently",
                   0.25, 1, Currency.CORE_FRAGMENTS, CostScaling.geometric(1.5),
                   max_level=20, is_permanent=True),
        UpgradeDef("perm_starting_scrap", "Starting Scrap", "Start each run with bonus scrap",
                   1000, 2, Currency.CORE_FRAGMENTS, CostScaling.geometric(2.0),
                   max_level=10, is_permanent=True),
        UpgradeDef("perm_idle_efficiency", "Idle Efficiency", "Increases all idle income",
                   0.10, 1, Currency.CORE_FRAGMENTS, CostScaling.geometric(1.3),
                   max_level=30, is_permanent=True),
        UpgradeDef("perm_storage_boost", "Storage Boost", "Increases offline storage cap",
                   1, 5, Currency.CORE_FRAGMENTS, CostScaling.geometric(2.0),
                   max_level=10, is_permanent=True),
        UpgradeDef("perm_prestige_bonus", "Prestige Bonus", "Increases core fragments earned",
                   0.10, 3, Currency.CORE_FRAGMENTS, CostScaling.geometric(1.5),
                   max_level=20, is_permanent=True),
    )
}


def _weapon(id, name, description, damage, unlock, cost, tier) -> ItemDef:
    return ItemDef(id=id, name=name, type=ItemType.WEAPON, description=description,
                   damage_bonus=damage, unlock_stage=unlock, cost_scrap=cost, tier=tier)


def _consumable(id, name, description, effect, cost_scrap=0, cost_data=0, tier=1) -> ItemDef:
    return ItemDef(id=id, name=name, type=ItemType.CONSUMABLE, description=description,
                   cost_scrap=cost_scrap, cost_data=cost_data, tier=tier, effect=effect)


ITEMS: list[ItemDef] = [
    _weapon(1, "Rusty Pipe", "A corroded metal pipe. Better than nothing.", 2, 1, 50, 1),
    _weapon(2, "Shock Baton", "Salvaged security equipment. Zaps on impact.", 5, 10, 500, 2),
    _weapon(3, "EMP Pistol", "Disrupts electronic circuits.", 15, 25, 5_000, 3),
    _weapon(4, "Plasma Cutter", "Industrial tool repurposed for combat.", 40, 50, 50_000, 4),
    _weapon(5, "Arc Rifle", "Fires concentrated electrical arcs.", 100, 75, 250_000, 5),
    _weapon(6, "Quantum Disruptor", "Destabilizes matter at the quantum level.", 300, 100,
            1_000_000, 6),
    _weapon(7, "Singularity Cannon", "Creates micro black holes.", 800, 150, 10_000_000, 7),
    _weapon(8, "Reality Shredder", "THE ADMINISTRATOR fears this.", 2500, 200, 100_000_000, 8),
    ItemDef(101, "Scrap Vest", ItemType.ARMOR, "Cobbled together from salvaged metal plates.",
            scrap_bonus=5, unlock_stage=5, cost_scrap=200, tier=1),
    ItemDef(102, "Faraday Suit", ItemType.ARMOR, "Increases critical precision.",
            crit_chance_bonus=10, unlock_stage=20, cost_scrap=2_000, tier=2),
    ItemDef(103, "Nano-Weave", ItemType.ARMOR, "Self-repairing armor. Amplifies all damage.",
            damage_bonus=15, unlock_stage=40, cost_scrap=20_000, tier=3),
    ItemDef(104, "Quantum Armor", ItemType.ARMOR, "Enhanced data extraction.",
            data_bonus=25, unlock_stage=80, cost_scrap=500_000, tier=4),
    ItemDef(105, "Admin Cloak", ItemType.ARMOR, "Grants administrator privileges.",
            scrap_bonus=25, data_bonus=25, crit_chance_bonus=15, unlock_stage=150,
            cost_scrap=50_000_000, tier=5),
    ItemDef(201, "Lucky Chip", ItemType.ACCESSORY, "A corrupted chip that brings good fortune.",
            crit_chance_bonus=2, cost_data=100, tier=1),
    ItemDef(202, "Overclocker", ItemType.ACCESSORY, "Speeds up neural processing.",
            damage_bonus=5, cost_data=250, tier=1),
    ItemDef(203, "Data Siphon", ItemType.ACCESSORY, "Extracts additional data from defeated units.",
            data_bonus=10, cost_data=500, tier=2),
    ItemDef(204, "Scrap Magnet", ItemType.ACCESSORY, "Attracts loose components.",
            scrap_bonus=10, cost_data=500, tier=2),
    _consumable(301, "Overclock Boost", "2x tap damage for 30 seconds.",
                EffectSpec(EffectType.DAMAGE_BOOST, 2.0, 30_000), cost_data=100, tier=1),
    _consumable(302, "Auto-Tap Bot", "Auto-attacks 5 times per second for 5 minutes.",
                EffectSpec(EffectType.AUTO_TAP, 5.0, 300_000), cost_data=50, tier=1),
    _consumable(303, "Data Burst", "+100% Data drops for 2 minutes.",
                EffectSpec(EffectType.DATA_BOOST, 2.0, 120_000), cost_data=200, tier=2),
    _consumable(304, "Scrap Storm", "+100% Scrap drops for 2 minutes.",
                EffectSpec(EffectType.SCRAP_BOOST, 2.0, 120_000), cost_scrap=500, tier=2),
    _consumable(305, "Lucky Strike", "100% critical hit chance for 10 seconds.",
                EffectSpec(EffectType.CRIT_BOOST, 1.0, 10_000), cost_data=150, tier=3),
    _consumable(306, "Jackpot Module", "3x boss rewards for the next kill within 5 minutes.",
                EffectSpec(EffectType.REWARD_BOOST, 3.0, 300_000), cost_data=500, tier=4),
]

SKILLS: list[SkillDef] = [
    SkillDef("overclock", "Overclock", "2x damage for 5 seconds", 30,
             EffectSpec(EffectType.DAMAGE_BOOST, 2.0, 5_000)),
    SkillDef("emp_burst", "EMP Burst", "Instant 10% boss HP damage", 45,
             EffectSpec(EffectType.INSTANT_DAMAGE, 0.1)),
    SkillDef("data_surge", "Data Surge", "3x rewards for next kill", 60,
             EffectSpec(EffectType.REWARD_BOOST, 3.0, 30_000)),
]

ACHIEVEMENTS: list[AchievementDef] = [
    AchievementDef("first_blood", "First Blood", "Defeat your first boss", Req.bosses_killed(">=", 1)),
    AchievementDef("bot_basher", "Bot Basher", "Defeat 100 bosses", Req.bosses_killed(">=", 100)),
    AchievementDef("machine_slayer", "Machine Slayer", "Defeat 1,000 bosses",
                   Req.bosses_killed(">=", 1000)),
    AchievementDef("exterminator", "Exterminator", "Defeat 10,000 bosses",
                   Req.bosses_killed(">=", 10000)),
    AchievementDef("stage_10", "Getting Started", "Reach Stage 10", Req.stage(">=", 10)),
    AchievementDef("stage_50", "Rookie", "Reach Stage 50", Req.stage(">=", 50)),
    AchievementDef("stage_100", "Veteran", "Reach Stage 100", Req.stage(">=", 100)),
    AchievementDef("stage_500", "Elite", "Reach Stage 500", Req.stage(">=", 500)),
    AchievementDef("stage_1000", "Legend", "Reach Stage 1000", Req.stage(">=", 1000)),
    AchievementDef("scrappy", "Scrappy", "Collect 10,000 Scrap",
                   Req.resource(Currency.SCRAP, ">=", 10000)),
    AchievementDef("data_hoarder", "Data Hoarder", "Collect 10,000 Data",
                   Req.resource(Currency.DATA, ">=", 10000)),
    AchievementDef("automated", "Automated", "Own 10 machines total", Req.machine_levels(">=", 10)),
    AchievementDef("industrialist", "Industrialist", "Own 100 machines total",
                   Req.machine_levels(">=", 100)),
    AchievementDef("clicker", "Clicker", "Tap 10,000 times", Req.taps(">=", 10000)),
    AchievementDef("tap_master", "Tap Master", "Tap 100,000 times", Req.taps(">=", 100000)),
]


def define_game() -> GameDefinition:
    return GameDefinition(
        config=GameConfig(name="Scrapyard Reboot"),
        items=list(ITEMS),
        machines=list(MACHINES.values()),
        upgrades=list(UPGRADES.values()),
        skills=list(SKILLS),
        achievements=list(ACHIEVEMENTS),
    )
