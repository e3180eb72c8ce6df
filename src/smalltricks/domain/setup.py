"""Army selection and pre-game placement.

Three setup modes exist:

* demo: a fixed, balanced layout that starts play immediately;
* random: each faction gets a seeded shuffle of the catalog, spawned on its
  two back rows, then both players may reposition;
* draft: a snake draft over a seeded pool, then placement on the default grid.

None of these functions change ``state.phase``; the state machine in
:mod:`smalltricks.domain.phases` owns every transition.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from smalltricks.domain.board import faction_units_at, find_unit, log_message, reject
from smalltricks.domain.enums import Faction, SetupMode, UnitKind
from smalltricks.domain.models import (
    ActionResult,
    DraftSession,
    DraftSlot,
    DraftSlotID,
    GameState,
    PlacementSession,
    Unit,
    UnitID,
)
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.domain.units import UNIT_TYPES, UnitFactory
from smalltricks.utils.hex_math import HexCoord
from smalltricks.utils.rng import generate_seed, random_choice, random_int, shuffled

logger = logging.getLogger(__name__)

DEMO_LAYOUT: dict[Faction, tuple[tuple[UnitKind, int, int], ...]] = {
    Faction.ONE: (
        (UnitKind.MOUNTED, 3, 0),
        (UnitKind.SPEARS, 3, 2),
        (UnitKind.ARCHERS, 4, 2),
        (UnitKind.ARCHERS, 4, 3),
        (UnitKind.SPEARS, 3, 3),
        (UnitKind.MOUNTED, 3, 5),
    ),
    Faction.TWO: (
        (UnitKind.CANNON, 1, 1),
        (UnitKind.ASSAULT_BEASTS, 2, 1),
        (UnitKind.SPEARS, 1, 2),
        (UnitKind.MOUNTED, 2, 5),
        (UnitKind.ASSAULT_BEASTS, 2, 3),
        (UnitKind.CANNON, 1, 4),
    ),
}


def setup_demo(state: GameState, factory: UnitFactory) -> list[Unit]:
    """Spawn the recommended first-game layout for both factions."""

    state.setup_mode = SetupMode.DEMO
    log_message(state, "⚔️ Welcome to SmallTricks! A balanced demo battle awaits.")
    units = [
        factory.create(kind, faction, row, col)
        for faction, layout in DEMO_LAYOUT.items()
        for kind, row, col in layout
    ]
    state.units.extend(units)
    return units


# ---------------------------------------------------------------------------
# Random armies


def random_army(seed: str, faction: Faction, *, rules: RulesConfig = DEFAULT_RULES) -> list[UnitKind]:
    """Distinct unit kinds drawn from a seeded shuffle of the full catalog."""

    order = shuffled(generate_seed(seed, int(faction), "army_shuffle"), list(UnitKind))
    return order[: rules.units.army_size]


def generate_random_placement(
    factory: UnitFactory,
    faction: Faction,
    kinds: Sequence[UnitKind],
    existing_units: Iterable[Unit] = (),
    *,
    seed: str,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Unit]:
    """Create ``kinds`` for ``faction`` on its two back rows without stacking.

    Each unit gets a bounded number of seeded attempts at an unoccupied hex;
    when all fail it lands on the first row regardless.
    """

    rows = list(
        rules.board.faction_1_random_rows
        if faction is Faction.ONE
        else rules.board.faction_2_random_rows
    )
    last_col = rules.board.size - 1
    occupied = {unit.position for unit in existing_units if unit.faction == faction}
    units: list[Unit] = []

    for index, kind in enumerate(kinds):
        placed: Unit | None = None
        for attempt in range(rules.board.random_placement_attempts):
            context = f"placement_{index}_{attempt}"
            row = random_choice(generate_seed(seed, int(faction), f"{context}_row"), rows)["choice"]
            col = random_int(generate_seed(seed, int(faction), f"{context}_col"), 0, last_col)["value"]
            if HexCoord(row, col) not in occupied:
                placed = factory.create(kind, faction, row, col)
                break

        if placed is None:
            logger.debug(
                "no free back-row hex for %s after %d attempts",
                kind.name,
                rules.board.random_placement_attempts,
            )
            col = random_int(generate_seed(seed, int(faction), f"fallback_{index}"), 0, last_col)["value"]
            placed = factory.create(kind, faction, rows[0], col)

        occupied.add(placed.position)
        units.append(placed)
    return units


def setup_random(
    state: GameState, factory: UnitFactory, *, seed: str, rules: RulesConfig = DEFAULT_RULES
) -> list[Unit]:
    """Roll both armies and open placement for faction 1."""

    state.setup_mode = SetupMode.RANDOM
    log_message(state, "🎲 Welcome to SmallTricks! Random armies assembled.")
    session = PlacementSession(
        current_player=Faction.ONE,
        armies={faction: random_army(seed, faction, rules=rules) for faction in Faction},
        layout_seed=seed,
    )
    return start_placement(state, factory, session, rules=rules)


# ---------------------------------------------------------------------------
# Draft


def draft_pool(seed: str, *, rules: RulesConfig = DEFAULT_RULES) -> list[DraftSlot]:
    """Seeded pool of pickable unit kinds; duplicates are allowed."""

    kinds = list(UnitKind)
    return [
        DraftSlot(
            slot_id=DraftSlotID(f"draft-{index}"),
            kind=random_choice(generate_seed(seed, 0, f"draft_pool_{index}"), kinds)["choice"],
        )
        for index in range(rules.draft.pool_size)
    ]


def setup_draft(state: GameState, *, seed: str, rules: RulesConfig = DEFAULT_RULES) -> DraftSession:
    state.setup_mode = SetupMode.DRAFT
    log_message(state, "🎯 Welcome to SmallTricks! Draft your army wisely.")
    state.draft = DraftSession(
        pool=draft_pool(seed, rules=rules),
        pick_order=tuple(Faction(player) for player in rules.draft.pick_order),
    )
    log_message(state, "Draft mode: Players take turns selecting units")
    return state.draft


def draft_pick(
    state: GameState,
    factory: UnitFactory,
    slot_id: DraftSlotID | str,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ActionResult:
    """Give the pool slot to the current picker; the last pick opens placement."""

    draft = state.draft
    picker = draft.current_picker if draft is not None else None
    if draft is None or picker is None:
        return reject(state, "No draft in progress")

    slot = next((entry for entry in draft.pool if entry.slot_id == slot_id), None)
    if slot is None:
        return reject(state, f"Draft slot {slot_id} is not available")

    draft.picks[picker].append(slot.kind)
    draft.pool.remove(slot)
    draft.pick_index += 1
    log_message(state, f"Player {int(picker)} selects {UNIT_TYPES[slot.kind].name}")

    if draft.complete:
        session = PlacementSession(
            current_player=Faction.ONE,
            armies={faction: list(kinds) for faction, kinds in draft.picks.items()},
        )
        start_placement(state, factory, session, rules=rules)
    return ActionResult(accepted=True, detail=f"picked {slot.kind.name}")


# ---------------------------------------------------------------------------
# Placement


def placement_rows(faction: Faction, *, rules: RulesConfig = DEFAULT_RULES) -> tuple[int, ...]:
    if faction is Faction.ONE:
        return rules.board.faction_1_placement_rows
    return rules.board.faction_2_placement_rows


def default_position(faction: Faction, index: int) -> HexCoord:
    """Grid slot for the ``index``-th unit of an army: three per row from the front line."""

    if faction is Faction.ONE:
        return HexCoord(row=3 + index // 3, col=index % 3)
    return HexCoord(row=2 - index // 3, col=index % 3)


def spawn_army(
    state: GameState,
    factory: UnitFactory,
    faction: Faction,
    kinds: Sequence[UnitKind],
    *,
    layout_seed: str | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Unit]:
    if layout_seed is not None:
        units = generate_random_placement(
            factory, faction, kinds, state.units, seed=layout_seed, rules=rules
        )
    else:
        units = []
        for index, kind in enumerate(kinds):
            position = default_position(faction, index)
            units.append(factory.create(kind, faction, position.row, position.col))
    state.units.extend(units)
    return units


def _placement_prompt(faction: Faction, rules: RulesConfig) -> str:
    rows = placement_rows(faction, rules=rules)
    return (
        f"Player {int(faction)} - Click units to reposition them on rows "
        f"{min(rows)}-{max(rows)}. Press Confirm when ready."
    )


def start_placement(
    state: GameState,
    factory: UnitFactory,
    session: PlacementSession,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Unit]:
    """Spawn the current player's army and hand them the placement session."""

    state.placement = session
    units = spawn_army(
        state,
        factory,
        session.current_player,
        session.armies[session.current_player],
        layout_seed=session.layout_seed,
        rules=rules,
    )
    session.placed_units = [unit.id for unit in units]
    log_message(state, _placement_prompt(session.current_player, rules))
    return units


def select_placement_unit(state: GameState, unit_id: UnitID) -> ActionResult:
    """Toggle selection of one of the current player's freshly placed units."""

    session = state.placement
    if session is None:
        return reject(state, "No placement in progress")
    if unit_id not in session.placed_units or find_unit(state, unit_id) is None:
        return reject(state, "That unit cannot be repositioned now")

    session.selected_unit = None if session.selected_unit == unit_id else unit_id
    return ActionResult(accepted=True, detail="selected" if session.selected_unit else "deselected")


def can_place(
    state: GameState, unit: Unit, hex_: HexCoord, *, rules: RulesConfig = DEFAULT_RULES
) -> bool:
    if hex_.row not in placement_rows(unit.faction, rules=rules):
        return False
    if not 0 <= hex_.col < rules.board.size:
        return False
    others = [
        other for other in faction_units_at(state, hex_, unit.faction) if other.id != unit.id
    ]
    return len(others) < rules.board.max_friendly_per_hex


def reposition_unit(
    state: GameState, hex_: HexCoord, *, rules: RulesConfig = DEFAULT_RULES
) -> ActionResult:
    """Move the selected placement unit to ``hex_`` if the hex can take it."""

    session = state.placement
    if session is None or session.selected_unit is None:
        return reject(state, "Select one of your units to reposition first")

    unit = find_unit(state, session.selected_unit)
    if unit is None:
        session.selected_unit = None
        return reject(state, "Selected unit is no longer available")
    if not can_place(state, unit, hex_, rules=rules):
        return reject(state, f"Cannot place unit at {hex_}")

    unit.position = hex_
    session.selected_unit = None
    return ActionResult(accepted=True, detail=f"placed at {hex_}")


def confirm_placement(
    state: GameState, factory: UnitFactory, *, rules: RulesConfig = DEFAULT_RULES
) -> bool:
    """Finish the current player's placement.

    Returns True once both factions are placed and round 1 may begin.
    """

    session = state.placement
    if session is None:
        return False

    if session.current_player is Faction.ONE:
        next_session = PlacementSession(
            current_player=Faction.TWO,
            armies=session.armies,
            layout_seed=session.layout_seed,
        )
        start_placement(state, factory, next_session, rules=rules)
        return False

    state.placement = None
    log_message(state, "Placement complete - game starting!")
    return True


def is_valid_placement(units: Iterable[Unit], *, rules: RulesConfig = DEFAULT_RULES) -> bool:
    """True when no hex holds more than the stacking limit of one faction's units."""

    counts: dict[tuple[HexCoord, Faction], int] = {}
    for unit in units:
        key = (unit.position, unit.faction)
        counts[key] = counts.get(key, 0) + 1
        if counts[key] > rules.board.max_friendly_per_hex:
            return False
    return True
