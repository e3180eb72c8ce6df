"""Declarative rule configuration for the SmallTricks domain."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BoardRules:
    """Board geometry and stacking."""

    size: int = 6
    max_friendly_per_hex: int = 2
    faction_1_placement_rows: tuple[int, ...] = (3, 4, 5)
    faction_2_placement_rows: tuple[int, ...] = (0, 1, 2)
    faction_1_random_rows: tuple[int, ...] = (4, 5)
    faction_2_random_rows: tuple[int, ...] = (0, 1)
    random_placement_attempts: int = 20


@dataclass(frozen=True, slots=True)
class UnitRules:
    """Unit stats and identity palettes."""

    max_hp: int = 5
    army_size: int = 6
    faction_1_palette: tuple[str, ...] = (
        "#60a5fa",
        "#38bdf8",
        "#a78bfa",
        "#818cf8",
        "#2dd4bf",
        "#6366f1",
    )
    faction_2_palette: tuple[str, ...] = (
        "#fb923c",
        "#f87171",
        "#fbbf24",
        "#facc15",
        "#fb7185",
        "#fdba74",
    )


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Engagement damage values."""

    base_damage: int = 2
    militia_damage: int = 3
    duel_damage_total: int = 2


@dataclass(frozen=True, slots=True)
class AbilityRules:
    """Ability ranges and damage values."""

    ranged_range: int = 2
    forward_range: int = 2
    volley_base_damage: int = 2
    volley_moved_penalty: int = 1
    volley_new_target_penalty: int = 1
    mortar_damage: int = 1
    musket_damage: int = 1
    pierce_damage: int = 1
    charge_bonus_damage: int = 2
    charge_hex_steps: int = 2
    counter_charge_damage: int = 3


@dataclass(frozen=True, slots=True)
class VictoryRules:
    """Castle damage win thresholds."""

    decisive_difference: int = 2
    narrow_difference: int = 1
    streak_rounds: int = 2


@dataclass(frozen=True, slots=True)
class DraftRules:
    """Draft pool size and snake pick order."""

    pool_size: int = 12
    pick_order: tuple[int, ...] = (1, 2, 2, 1, 1, 2, 2, 1, 1, 2, 2, 1)


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    board: BoardRules = BoardRules()
    units: UnitRules = UnitRules()
    combat: CombatRules = CombatRules()
    abilities: AbilityRules = AbilityRules()
    victory: VictoryRules = VictoryRules()
    draft: DraftRules = DraftRules()


DEFAULT_RULES = RulesConfig()
