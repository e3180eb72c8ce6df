"""Movement rules for SmallTricks units."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from smalltricks.domain import abilities
from smalltricks.domain.board import (
    check_stacking,
    faction_units_at,
    is_engaged,
    log_message,
    units_at,
)
from smalltricks.domain.enums import DecisionKind, UnitKind
from smalltricks.domain.models import GameState, PendingDecision, Unit, UnitID
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.domain.units import display_name
from smalltricks.utils.hex_math import (
    HexCoord,
    all_hexes,
    enemy_castle_row,
    hex_distance,
    hex_neighbors,
)

# Radius of a single movement action; Mounted gets two such actions per turn.
STEP_RADIUS = 1


@dataclass(slots=True)
class MoveOutcome:
    """What happened when a unit was relocated."""

    distance: int
    engaged_with: list[UnitID] = field(default_factory=list)
    charged: bool = False
    countered: bool = False
    pending_second_move: bool = False
    decision: PendingDecision | None = None


def legal_moves(
    state: GameState, unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[HexCoord]:
    """Destinations ``unit`` may pick for its next movement action.

    For the Commander these are the hexes of friendly units it can order
    Forward!, not places the Commander itself may go.
    """

    if is_engaged(state, unit) and unit.kind is not UnitKind.ASSAULT_BEASTS:
        return []

    match unit.kind:
        case UnitKind.COMMANDER:
            return _forward_hexes(state, unit, rules)
        case UnitKind.AERIAL:
            return _aerial_hexes(state, unit, rules)
        case _:
            return _stepping_hexes(state, unit, rules)


def ordered_moves(
    state: GameState, unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[HexCoord]:
    """Destinations for a unit carrying out a Commander's Forward! order.

    An ordered Commander takes a single step rather than issuing orders.
    """

    if unit.kind is UnitKind.COMMANDER:
        if is_engaged(state, unit):
            return []
        return _stepping_hexes(state, unit, rules)
    return legal_moves(state, unit, rules=rules)


def _forward_hexes(state: GameState, unit: Unit, rules: RulesConfig) -> list[HexCoord]:
    hexes: list[HexCoord] = []
    for friendly in state.units:
        if friendly.id == unit.id or friendly.faction != unit.faction or not friendly.is_alive:
            continue
        distance = hex_distance(unit.position, friendly.position)
        if 0 < distance <= rules.abilities.forward_range and friendly.position not in hexes:
            hexes.append(friendly.position)
    return hexes


def _aerial_hexes(state: GameState, unit: Unit, rules: RulesConfig) -> list[HexCoord]:
    forbidden_row = enemy_castle_row(unit.faction, rules.board.size)
    return [
        hex_
        for hex_ in all_hexes(rules.board.size)
        if hex_ != unit.position and hex_.row != forbidden_row and not units_at(state, hex_)
    ]


def _stepping_hexes(state: GameState, unit: Unit, rules: RulesConfig) -> list[HexCoord]:
    moves: list[HexCoord] = []
    visited: set[HexCoord] = set()
    queue: deque[tuple[HexCoord, int]] = deque([(unit.position, 0)])

    while queue:
        hex_, distance = queue.popleft()
        if hex_ in visited or distance > STEP_RADIUS:
            continue
        visited.add(hex_)

        if distance > 0:
            friendly = faction_units_at(state, hex_, unit.faction)
            if len(friendly) < rules.board.max_friendly_per_hex:
                moves.append(hex_)

        if distance < STEP_RADIUS:
            for neighbor in hex_neighbors(hex_, rules.board.size):
                if neighbor not in visited:
                    queue.append((neighbor, distance + 1))

    # Standing still is always allowed.
    moves.append(unit.position)
    return moves


def forward_candidates(state: GameState, commander: Unit, hex_: HexCoord) -> list[Unit]:
    """Friendly units on ``hex_`` the Commander could order Forward!."""

    return [
        unit
        for unit in faction_units_at(state, hex_, commander.faction)
        if unit.id != commander.id
    ]


def apply_move(
    state: GameState,
    unit: Unit,
    destination: HexCoord,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> MoveOutcome:
    """Relocate ``unit`` and trigger engagement-entry effects.

    Legality is the caller's concern; this only enforces the stacking
    invariant after the fact.
    """

    distance = hex_distance(unit.position, destination)
    unit.position = destination
    unit.moved_this_turn = True
    unit.hexes_moved += distance
    unit.moves_this_turn += 1
    is_mounted = unit.kind is UnitKind.MOUNTED
    is_second_move = is_mounted and unit.moves_this_turn == 2
    check_stacking(state, destination, unit.faction, rules=rules)

    outcome = MoveOutcome(distance=distance)
    if is_mounted and unit.moves_this_turn == 1:
        state.pending_second_move = unit.id
        outcome.pending_second_move = True
    else:
        state.activated_units.add(unit.id)
        state.pending_second_move = None

    name = display_name(state, unit)
    enemies = faction_units_at(state, destination, unit.faction.enemy)
    if enemies:
        outcome.engaged_with = [enemy.id for enemy in enemies]
        enemy_names = " & ".join(display_name(state, enemy) for enemy in enemies)
        log_message(state, f"{name} engages with {enemy_names} at {destination}!")

        if is_second_move and unit.hexes_moved == rules.abilities.charge_hex_steps:
            _resolve_charge(state, unit, enemies, outcome, rules)

    log_message(state, f"{name} moves to {destination}")
    if outcome.decision is not None:
        state.pending_decision = outcome.decision
    return outcome


def _resolve_charge(
    state: GameState,
    unit: Unit,
    enemies: list[Unit],
    outcome: MoveOutcome,
    rules: RulesConfig,
) -> None:
    spears = abilities.counter_charging_spears(state, unit, rules=rules)
    if spears:
        abilities.apply_counter_charge(state, spears[0], unit, rules=rules)
        outcome.countered = True
        return

    outcome.charged = True
    if len(enemies) == 1:
        abilities.apply_charge_bonus(state, unit, enemies[0], rules=rules)
        return

    outcome.decision = PendingDecision(
        kind=DecisionKind.CHARGE_TARGET,
        faction=unit.faction,
        options=tuple(enemy.id for enemy in enemies),
        source_id=unit.id,
        hex=unit.position,
    )
