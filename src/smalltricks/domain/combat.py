"""Combat resolution for engaged hexes.

Both sides of every engagement strike simultaneously: each side's total is
fixed from its roster before any damage lands, and every participant is
marked as having fought before the first hit is applied.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from smalltricks.domain.board import apply_damage, log_message, remove_dead_units
from smalltricks.domain.enums import Faction, UnitKind
from smalltricks.domain.models import GameState, Unit, UnitID, split_evenly
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.utils.hex_math import HexCoord


@dataclass(frozen=True, slots=True)
class EngagedGroup:
    """Living units of both factions sharing one hex."""

    hex: HexCoord
    faction_1_units: tuple[Unit, ...]
    faction_2_units: tuple[Unit, ...]

    def units_of(self, faction: Faction) -> tuple[Unit, ...]:
        return self.faction_1_units if faction is Faction.ONE else self.faction_2_units

    @property
    def participants(self) -> tuple[Unit, ...]:
        return self.faction_1_units + self.faction_2_units


@dataclass(frozen=True, slots=True)
class Strike:
    """One side's outgoing damage at an engaged hex."""

    hex: HexCoord
    attacker: Faction
    total: int
    targets: tuple[UnitID, ...]

    @property
    def needs_allocation(self) -> bool:
        return len(self.targets) > 1


Allocation = Mapping[UnitID, int]
Allocator = Callable[[Strike, list[Unit]], Allocation]


def engaged_groups(state: GameState) -> list[EngagedGroup]:
    """One group per hex holding living units of both factions, in first-seen order."""

    by_hex: dict[HexCoord, dict[Faction, list[Unit]]] = {}
    for unit in state.units:
        if not unit.is_alive:
            continue
        sides = by_hex.setdefault(unit.position, {Faction.ONE: [], Faction.TWO: []})
        sides[unit.faction].append(unit)

    return [
        EngagedGroup(
            hex=hex_,
            faction_1_units=tuple(sides[Faction.ONE]),
            faction_2_units=tuple(sides[Faction.TWO]),
        )
        for hex_, sides in by_hex.items()
        if sides[Faction.ONE] and sides[Faction.TWO]
    ]


def unit_damage(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Damage a single unit contributes to its side's strike."""

    match unit.kind:
        case UnitKind.MILITIA:
            return rules.combat.militia_damage
        case _:
            return rules.combat.base_damage


def side_damage(units: tuple[Unit, ...] | list[Unit], *, rules: RulesConfig = DEFAULT_RULES) -> int:
    return sum(unit_damage(unit, rules=rules) for unit in units)


def plan_strikes(state: GameState, *, rules: RulesConfig = DEFAULT_RULES) -> list[Strike]:
    """Fix every strike of this pass and mark all participants as having fought."""

    strikes: list[Strike] = []
    for group in engaged_groups(state):
        for unit in group.participants:
            state.units_in_combat.add(unit.id)
        for attacker in (Faction.ONE, Faction.TWO):
            strikes.append(
                Strike(
                    hex=group.hex,
                    attacker=attacker,
                    total=side_damage(group.units_of(attacker), rules=rules),
                    targets=tuple(unit.id for unit in group.units_of(attacker.enemy)),
                )
            )
    return strikes


def apply_strike(state: GameState, strike: Strike, allocation: Allocation | None = None) -> None:
    """Apply ``strike``; a lone defender takes everything, otherwise ``allocation`` or an even split.

    Entries naming units outside the strike's targets, or that are already
    gone, are ignored; so are non-positive shares.
    """

    if not strike.needs_allocation:
        allocation = {strike.targets[0]: strike.total}
    elif allocation is None:
        allocation = split_evenly(strike.total, strike.targets)

    for unit_id, damage in allocation.items():
        if unit_id not in strike.targets or damage <= 0:
            continue
        target = _strike_target(state, unit_id)
        if target is not None:
            apply_damage(state, target, damage)


def _strike_target(state: GameState, unit_id: UnitID) -> Unit | None:
    # Dead units stay in the live set until cleanup and still absorb their share.
    for unit in state.units:
        if unit.id == unit_id:
            return unit
    return None


def start_combat(state: GameState, *, rules: RulesConfig = DEFAULT_RULES) -> list[Strike]:
    """Log the pass header and return its strikes."""

    strikes = plan_strikes(state, rules=rules)
    if not strikes:
        log_message(state, "No combats to resolve")
    else:
        log_message(state, f"Resolving {len(strikes) // 2} engagement(s)...")
    return strikes


def resolve_combat(
    state: GameState,
    allocator: Allocator | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Unit]:
    """Run the whole combat step synchronously and return the destroyed units.

    ``allocator`` is consulted only for strikes with more than one defender;
    without one, damage is split evenly.
    """

    for strike in start_combat(state, rules=rules):
        allocation = None
        if strike.needs_allocation and allocator is not None:
            defenders = [unit for unit in state.units if unit.id in strike.targets]
            allocation = allocator(strike, defenders)
        apply_strike(state, strike, allocation)
    return remove_dead_units(state)


def allocate_duel_damage(
    state: GameState,
    first: Unit,
    second: Unit,
    damage_to_second: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Split the fixed duel total: ``damage_to_second`` to ``second``, the rest to ``first``."""

    total = rules.combat.duel_damage_total
    if not 0 <= damage_to_second <= total:
        raise ValueError(f"damage_to_second must be within [0, {total}], got {damage_to_second}")
    damage_to_first = total - damage_to_second
    if damage_to_first > 0:
        apply_damage(state, first, damage_to_first)
    if damage_to_second > 0:
        apply_damage(state, second, damage_to_second)
