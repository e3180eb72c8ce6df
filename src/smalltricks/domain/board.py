"""Occupancy queries, damage application and the message log."""

from __future__ import annotations

import logging

from smalltricks.domain.enums import Faction
from smalltricks.domain.errors import InvariantViolation
from smalltricks.domain.models import ActionResult, GameState, Unit, UnitID
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.domain.units import display_name
from smalltricks.utils.hex_math import HexCoord

logger = logging.getLogger(__name__)


def log_message(state: GameState, message: str) -> None:
    """Append to the game log and mirror it to the module logger."""

    state.log.append(message)
    logger.debug(message)


def find_unit(state: GameState, unit_id: UnitID | None) -> Unit | None:
    """Return the living unit with ``unit_id``, or None if it is gone."""

    if unit_id is None:
        return None
    for unit in state.units:
        if unit.id == unit_id and unit.is_alive:
            return unit
    return None


def living_units(state: GameState, faction: Faction | None = None) -> list[Unit]:
    return [
        unit
        for unit in state.units
        if unit.is_alive and (faction is None or unit.faction == faction)
    ]


def units_at(state: GameState, hex_: HexCoord) -> list[Unit]:
    """Living units of either faction on ``hex_``."""

    return [unit for unit in state.units if unit.position == hex_ and unit.is_alive]


def faction_units_at(state: GameState, hex_: HexCoord, faction: Faction) -> list[Unit]:
    return [unit for unit in units_at(state, hex_) if unit.faction == faction]


def is_engaged(state: GameState, unit: Unit) -> bool:
    """True when ``unit`` shares its hex with a living enemy."""

    return bool(faction_units_at(state, unit.position, unit.faction.enemy))


def check_stacking(
    state: GameState, hex_: HexCoord, faction: Faction, *, rules: RulesConfig = DEFAULT_RULES
) -> None:
    """Raise if more friendly units occupy ``hex_`` than the stacking limit allows."""

    count = len(faction_units_at(state, hex_, faction))
    if count > rules.board.max_friendly_per_hex:
        logger.error("stacking limit broken at %s for faction %d: %d units", hex_, faction, count)
        raise InvariantViolation(
            f"{count} units of faction {int(faction)} share hex {hex_}; "
            f"limit is {rules.board.max_friendly_per_hex}"
        )


def apply_damage(state: GameState, unit: Unit, amount: int, *, quiet: bool = False) -> None:
    """Add ``amount`` damage to ``unit``.

    ``quiet`` suppresses the generic damage line when the caller logs its own
    ability-specific message. Destruction is always logged.
    """

    if amount < 0:
        raise InvariantViolation(f"damage must be non-negative, got {amount}")
    unit.damage += amount
    name = display_name(state, unit)
    if not quiet:
        log_message(state, f"{name} takes {amount} damage ({unit.hp}/{unit.max_hp})")
    if not unit.is_alive:
        log_message(state, f"{name} is destroyed!")


def remove_dead_units(state: GameState) -> list[Unit]:
    """Move destroyed units to the destroying faction's list and off the board."""

    dead = [unit for unit in state.units if not unit.is_alive]
    for unit in dead:
        state.destroyed_units[unit.faction.enemy].append(unit)
    if dead:
        state.units = [unit for unit in state.units if unit.is_alive]
    return dead


def format_hp(unit: Unit) -> str:
    return f"({unit.hp}/{unit.max_hp})"


def reject(state: GameState, detail: str) -> ActionResult:
    """Log a refused player action and report it."""

    log_message(state, detail)
    logger.debug("rejected action: %s", detail)
    return ActionResult(accepted=False, detail=detail)
