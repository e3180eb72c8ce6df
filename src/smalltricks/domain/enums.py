"""Enumerations for the SmallTricks domain."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class Faction(IntEnum):
    """The two sides of the game."""

    ONE = 1
    TWO = 2

    @property
    def enemy(self) -> Faction:
        return Faction.TWO if self is Faction.ONE else Faction.ONE


class UnitKind(IntEnum):
    """The closed catalog of unit types, keyed by their catalog id."""

    ARCHERS = 1
    CANNON = 2
    MOUNTED = 3
    ASSAULT_BEASTS = 4
    SPEARS = 5
    JESTERS = 6
    MUSKETS = 7
    AERIAL = 8
    COMMANDER = 9
    MILITIA = 10
    BATTERY_RAM = 11


class GamePhase(StrEnum):
    """Phases of the round state machine."""

    SETUP = "setup"
    FACTION_1 = "faction_1"
    FACTION_2 = "faction_2"
    ABILITY_TARGETING = "ability_targeting"
    RESOLUTION_COMBAT = "resolution_combat"
    RESOLUTION_MELEE = "resolution_melee"
    RESOLUTION_RANGED = "resolution_ranged"
    RESOLUTION_CASTLE = "resolution_castle"
    GAME_OVER = "game_over"


class DecisionKind(StrEnum):
    """Kinds of input the engine may need from a player mid-action."""

    DAMAGE_ALLOCATION = "damage_allocation"
    CHARGE_TARGET = "charge_target"
    ABILITY_TARGET = "ability_target"
    FORWARD_TARGET = "forward_target"


class SetupMode(StrEnum):
    """How armies are chosen and placed before round 1."""

    DEMO = "demo"
    RANDOM = "random"
    DRAFT = "draft"
