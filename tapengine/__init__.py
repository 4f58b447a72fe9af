# tapengine: Tap-to-Fight Idle Game Engine with an Authoritative Server

from tapengine._types import Clock, ManualClock, system_clock, compare
from tapengine.requirement import Requirement, Req
from tapengine.cost_scaling import CostScaling
from tapengine.currency import Currency, Balances
from tapengine.effect import EffectType, EffectSpec, ActiveEffect, EffectManager
from tapengine.element import ItemType, ItemDef, MachineDef, UpgradeDef, SkillDef, InventoryItem
from tapengine.achievement import AchievementDef
from tapengine.definition import GameDefinition, GameConfig
from tapengine.content import define_game
from tapengine.config import EngineConfig
from tapengine.errors import (
    GameError,
    ValidationError,
    InsufficientResources,
    NotFound,
    Unauthorized,
    StaleSnapshot,
    TransientServerError,
    TransportError,
    ClientDesyncError,
)
from tapengine.formulas import Boss, boss_info, tap_damage
from tapengine.state import GameState, PlayerRecord, PlayerProgress, DamageNumber, LootDrop
from tapengine.combat import CombatPhase
from tapengine.pipeline import IdleProduction, compute_idle_production
from tapengine.offline import OfflineEarnings, compute_offline_earnings
from tapengine.prestige import PrestigeResult
from tapengine.runtime import GameRuntime
from tapengine.ledger import Account, Ledger
from tapengine.authority import GameServer
from tapengine.transport import Response, Transport, InProcessTransport
from tapengine.reconcile import MutationOutcome, MutationStatus, Reconciler
from tapengine.session import GameSession
from tapengine.formatting import format_number, format_duration, format_status_report

__all__ = [
    # Types
    "Clock",
    "ManualClock",
    "system_clock",
    "compare",
    # Requirements
    "Requirement",
    "Req",
    # Cost
    "CostScaling",
    "Currency",
    "Balances",
    # Effects
    "EffectType",
    "EffectSpec",
    "ActiveEffect",
    "EffectManager",
    # Data model
    "ItemType",
    "ItemDef",
    "MachineDef",
    "UpgradeDef",
    "SkillDef",
    "InventoryItem",
    "AchievementDef",
    # Definition
    "GameDefinition",
    "GameConfig",
    "define_game",
    "EngineConfig",
    # Errors
    "GameError",
    "ValidationError",
    "InsufficientResources",
    "NotFound",
    "Unauthorized",
    "StaleSnapshot",
    "TransientServerError",
    "TransportError",
    "ClientDesyncError",
    # Rules
    "Boss",
    "boss_info",
    "tap_damage",
    "CombatPhase",
    "IdleProduction",
    "compute_idle_production",
    "OfflineEarnings",
    "compute_offline_earnings",
    "PrestigeResult",
    # State
    "GameState",
    "PlayerRecord",
    "PlayerProgress",
    "DamageNumber",
    "LootDrop",
    # Runtime
    "GameRuntime",
    # Server
    "Account",
    "Ledger",
    "GameServer",
    # Client
    "Response",
    "Transport",
    "InProcessTransport",
    "MutationOutcome",
    "MutationStatus",
    "Reconciler",
    "GameSession",
    # Formatting
    "format_number",
    "format_duration",
    "format_status_report",
]
