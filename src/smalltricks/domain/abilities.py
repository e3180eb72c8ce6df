"""Unit ability rules: target enumeration, damage and the resolution passes."""

from __future__ import annotations

import logging

from smalltricks.domain.board import (
    apply_damage,
    check_stacking,
    faction_units_at,
    find_unit,
    format_hp,
    is_engaged,
    log_message,
    remove_dead_units,
)
from smalltricks.domain.enums import UnitKind
from smalltricks.domain.models import GameState, TargetSelection, Unit
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.domain.units import display_name
from smalltricks.utils.hex_math import HexCoord, hex_distance, hex_neighbors

logger = logging.getLogger(__name__)

ABILITY_NAMES: dict[UnitKind, str] = {
    UnitKind.ARCHERS: "Volley",
    UnitKind.CANNON: "Mortar",
    UnitKind.MUSKETS: "Fire!",
    UnitKind.SPEARS: "Pierce",
    UnitKind.JESTERS: "Taunt",
    UnitKind.MOUNTED: "Charge",
}

# Abilities whose owner picks a target during the targeting phase.
TARGETED_KINDS = frozenset({UnitKind.ARCHERS, UnitKind.CANNON, UnitKind.SPEARS, UnitKind.JESTERS})
MELEE_KINDS = frozenset({UnitKind.SPEARS, UnitKind.JESTERS})
RANGED_KINDS = frozenset({UnitKind.ARCHERS, UnitKind.CANNON, UnitKind.MUSKETS})


# ---------------------------------------------------------------------------
# Target enumeration


def _enemies_within(
    state: GameState, unit: Unit, min_distance: int, max_distance: int
) -> list[Unit]:
    targets = []
    for enemy in state.units:
        if not enemy.is_alive or enemy.faction == unit.faction:
            continue
        distance = hex_distance(unit.position, enemy.position)
        if min_distance <= distance <= max_distance:
            targets.append(enemy)
    return targets


def volley_targets(
    state: GameState, unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[Unit]:
    return _enemies_within(state, unit, 1, rules.abilities.ranged_range)


def mortar_targets(
    state: GameState, unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[Unit]:
    if unit.moved_this_turn:
        return []
    return _enemies_within(state, unit, 1, rules.abilities.ranged_range)


def musket_targets(state: GameState, unit: Unit) -> list[Unit]:
    if unit.moved_this_turn:
        return []
    return [
        enemy
        for enemy in state.units
        if enemy.is_alive and enemy.faction != unit.faction and enemy.col == unit.col
    ]


def adjacent_targets(state: GameState, unit: Unit) -> list[Unit]:
    """Enemies exactly one hex away (Pierce and Taunt)."""

    return _enemies_within(state, unit, 1, 1)


def ability_targets(
    state: GameState, unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[Unit]:
    """Ordered enemies ``unit``'s standalone ability could hit right now."""

    match unit.kind:
        case UnitKind.ARCHERS:
            return volley_targets(state, unit, rules=rules)
        case UnitKind.CANNON:
            return mortar_targets(state, unit, rules=rules)
        case UnitKind.MUSKETS:
            return musket_targets(state, unit)
        case UnitKind.SPEARS | UnitKind.JESTERS:
            return adjacent_targets(state, unit)
        case (
            UnitKind.MOUNTED
            | UnitKind.ASSAULT_BEASTS
            | UnitKind.AERIAL
            | UnitKind.COMMANDER
            | UnitKind.MILITIA
            | UnitKind.BATTERY_RAM
        ):
            # Movement-triggered or passive abilities only.
            return []


def can_act(state: GameState, unit: Unit) -> bool:
    """Unengaged, alive, and sat out this pass's combat."""

    return unit.is_alive and not is_engaged(state, unit) and unit.id not in state.units_in_combat


def needs_target_selection(
    state: GameState, unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> bool:
    if unit.kind not in TARGETED_KINDS or not unit.is_alive or is_engaged(state, unit):
        return False
    return bool(ability_targets(state, unit, rules=rules))


def selection_at(
    state: GameState, unit: Unit, hex_: HexCoord, *, rules: RulesConfig = DEFAULT_RULES
) -> tuple[TargetSelection | None, list[Unit]]:
    """Interpret a click on ``hex_`` as a target for ``unit``'s ability.

    Returns the selection when it is unambiguous, otherwise the candidate
    units on that hex (empty when nothing there is a valid target).
    """

    candidates = [
        target for target in ability_targets(state, unit, rules=rules) if target.position == hex_
    ]
    if unit.kind is UnitKind.CANNON:
        return (TargetSelection(hex=hex_) if candidates else None), candidates
    if len(candidates) == 1:
        return TargetSelection(unit_id=candidates[0].id), candidates
    return None, candidates


# ---------------------------------------------------------------------------
# Damage


def volley_damage(unit: Unit, target: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Archers: base 2, -1 after moving, -1 when switching targets; never negative."""

    damage = rules.abilities.volley_base_damage
    if unit.moved_this_turn:
        damage -= rules.abilities.volley_moved_penalty
    if unit.last_target is not None and unit.last_target != target.id:
        damage -= rules.abilities.volley_new_target_penalty
    return max(0, damage)


def mortar_damage(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    return 0 if unit.moved_this_turn else rules.abilities.mortar_damage


def musket_damage(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    return 0 if unit.moved_this_turn else rules.abilities.musket_damage


def pierce_damage(unit: Unit, target: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:  # noqa: ARG001
    return rules.abilities.pierce_damage


def _hit(state: GameState, source: Unit, ability: str, target: Unit, damage: int) -> None:
    source_name = display_name(state, source)
    target_name = display_name(state, target)
    apply_damage(state, target, damage, quiet=True)
    log_message(
        state,
        f"{source_name} {ability}: {target_name} takes {damage} damage "
        f"{format_hp(target)} at {target.position}",
    )


# ---------------------------------------------------------------------------
# Charge / Counter Charge (triggered by movement)


def counter_charging_spears(
    state: GameState, charger: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[Unit]:
    """Unengaged enemy Spears adjacent to the hex ``charger`` just entered."""

    spears = []
    for hex_ in hex_neighbors(charger.position, rules.board.size):
        for unit in faction_units_at(state, hex_, charger.faction.enemy):
            if unit.kind is UnitKind.SPEARS and not is_engaged(state, unit):
                spears.append(unit)
    return spears


def apply_counter_charge(
    state: GameState, spears: Unit, charger: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> None:
    _hit(state, spears, "Counter Charge", charger, rules.abilities.counter_charge_damage)
    log_message(state, f"{display_name(state, charger)}'s charge is countered!")


def apply_charge_bonus(
    state: GameState, charger: Unit, target: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> None:
    _hit(state, charger, "Charge", target, rules.abilities.charge_bonus_damage)


# ---------------------------------------------------------------------------
# Resolution passes


def _recorded_selection(state: GameState, unit: Unit) -> TargetSelection | None:
    session = state.ability_targeting
    if session is None:
        return None
    return session.selections.get(unit.id)


def _pick_unit_target(
    state: GameState, unit: Unit, targets: list[Unit], *, prefer_last: bool = False
) -> Unit | None:
    selection = _recorded_selection(state, unit)
    if selection is not None:
        chosen = find_unit(state, selection.unit_id)
        if chosen is None or chosen not in targets:
            log_message(
                state,
                f"{display_name(state, unit)} {ABILITY_NAMES[unit.kind]}: "
                "chosen target is no longer valid",
            )
            return None
        return chosen

    if not targets:
        return None
    if prefer_last and unit.last_target is not None:
        for target in targets:
            if target.id == unit.last_target:
                return target
    return targets[0]


def _pierce(state: GameState, unit: Unit, rules: RulesConfig) -> None:
    target = _pick_unit_target(state, unit, adjacent_targets(state, unit))
    if target is None:
        return
    _hit(state, unit, "Pierce", target, pierce_damage(unit, target, rules=rules))


def _taunt(state: GameState, unit: Unit, rules: RulesConfig) -> None:
    target = _pick_unit_target(state, unit, adjacent_targets(state, unit))
    if target is None:
        return
    target.position = unit.position
    check_stacking(state, unit.position, target.faction, rules=rules)
    log_message(
        state,
        f"{display_name(state, unit)} Taunt: {display_name(state, target)} is forced "
        f"to move to {unit.position}",
    )


def _volley(state: GameState, unit: Unit, rules: RulesConfig) -> None:
    targets = volley_targets(state, unit, rules=rules)
    target = _pick_unit_target(state, unit, targets, prefer_last=True)
    if target is None:
        return
    damage = volley_damage(unit, target, rules=rules)
    if damage <= 0:
        return
    _hit(state, unit, "Volley", target, damage)
    unit.last_target = target.id


def _mortar(state: GameState, unit: Unit, rules: RulesConfig) -> None:
    selection = _recorded_selection(state, unit)
    if selection is not None and selection.hex is not None:
        target_hex: HexCoord | None = selection.hex
    else:
        targets = mortar_targets(state, unit, rules=rules)
        target_hex = targets[0].position if targets else None
    if target_hex is None:
        return

    distance = hex_distance(unit.position, target_hex)
    if not 0 < distance <= rules.abilities.ranged_range:
        log_message(
            state, f"{display_name(state, unit)} Mortar: {target_hex} is out of range"
        )
        return

    damage = mortar_damage(unit, rules=rules)
    if damage <= 0:
        return
    for enemy in faction_units_at(state, target_hex, unit.faction.enemy):
        _hit(state, unit, "Mortar", enemy, damage)


def _fire(state: GameState, unit: Unit, rules: RulesConfig) -> None:
    damage = musket_damage(unit, rules=rules)
    if damage <= 0:
        return
    for target in musket_targets(state, unit):
        _hit(state, unit, "Fire!", target, damage)


def resolve_melee_abilities(state: GameState, *, rules: RulesConfig = DEFAULT_RULES) -> None:
    """Pierce and Taunt for every eligible unit, then clear the dead."""

    log_message(state, "Resolving melee abilities...")
    for unit in list(state.units):
        if unit.kind not in MELEE_KINDS or not can_act(state, unit):
            continue
        if unit.kind is UnitKind.SPEARS:
            _pierce(state, unit, rules)
        else:
            _taunt(state, unit, rules)
    remove_dead_units(state)


def resolve_ranged_abilities(state: GameState, *, rules: RulesConfig = DEFAULT_RULES) -> None:
    """Volley, Mortar and Fire! for every eligible unit, then clear the dead."""

    log_message(state, "Resolving ranged abilities...")
    for unit in list(state.units):
        if unit.kind not in RANGED_KINDS or not can_act(state, unit):
            continue
        match unit.kind:
            case UnitKind.ARCHERS:
                _volley(state, unit, rules)
            case UnitKind.CANNON:
                _mortar(state, unit, rules)
            case UnitKind.MUSKETS:
                _fire(state, unit, rules)
    remove_dead_units(state)
