"""Dataclasses describing every SmallTricks game entity.

The rules layer operates purely on these in-memory objects; there is no
per-cell board entity, occupancy is always derived by scanning
``GameState.units``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import NewType, TypeVar

from smalltricks.utils.hex_math import HexCoord

from .enums import DecisionKind, Faction, GamePhase, SetupMode, UnitKind

# --- Strongly typed identifiers -------------------------------------------------

UnitID = NewType("UnitID", str)
DraftSlotID = NewType("DraftSlotID", str)

_T = TypeVar("_T")


def _per_faction(factory: Callable[[], _T]) -> dict[Faction, _T]:
    return {Faction.ONE: factory(), Faction.TWO: factory()}


# --- Core dataclasses -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnitType:
    """Unit type definition (catalog entry)."""

    kind: UnitKind
    name: str
    symbol: str

    @property
    def id(self) -> int:
        return int(self.kind)


@dataclass(slots=True)
class Unit:
    """A unit on the board."""

    id: UnitID
    unit_type: UnitType
    faction: Faction
    position: HexCoord
    color: str
    number: int
    damage: int = 0
    max_hp: int = 5
    moved_this_turn: bool = False
    hexes_moved: int = 0
    moves_this_turn: int = 0
    last_target: UnitID | None = None

    @property
    def kind(self) -> UnitKind:
        return self.unit_type.kind

    @property
    def row(self) -> int:
        return self.position.row

    @property
    def col(self) -> int:
        return self.position.col

    @property
    def hp(self) -> int:
        return max(0, self.max_hp - self.damage)

    @property
    def is_alive(self) -> bool:
        return self.damage < self.max_hp


@dataclass(frozen=True, slots=True)
class TargetSelection:
    """A recorded ability target: either a unit or, for Mortar, a hex."""

    unit_id: UnitID | None = None
    hex: HexCoord | None = None


@dataclass(slots=True)
class AbilityTargetingSession:
    """Which units still owe a target choice, and what was chosen so far."""

    current_player: Faction
    units_to_target: list[UnitID]
    selections: dict[UnitID, TargetSelection] = field(default_factory=dict)
    factions: dict[UnitID, Faction] = field(default_factory=dict)

    def remaining_for(self, faction: Faction) -> list[UnitID]:
        """Units of ``faction`` that have not been given a target yet."""

        return [
            unit_id
            for unit_id in self.units_to_target
            if self.factions.get(unit_id) == faction and unit_id not in self.selections
        ]


@dataclass(frozen=True, slots=True)
class PendingDecision:
    """Input the engine is blocked on, addressed to one faction.

    ``options`` are the unit ids the answer may reference. For
    ``DAMAGE_ALLOCATION`` the answer maps every option to a share of
    ``total``; for every other kind it is a single option.
    """

    kind: DecisionKind
    faction: Faction
    options: tuple[UnitID, ...]
    total: int = 0
    source_id: UnitID | None = None
    hex: HexCoord | None = None

    def default_choice(self) -> dict[UnitID, int] | UnitID:
        """Answer used when no collaborator is supplied."""

        if self.kind is DecisionKind.DAMAGE_ALLOCATION:
            return split_evenly(self.total, self.options)
        return self.options[0]


def split_evenly(total: int, targets: Sequence[UnitID]) -> dict[UnitID, int]:
    """Spread ``total`` over ``targets``; the remainder goes one each from the front.

    Examples:
        >>> split_evenly(3, ["a", "b"])
        {'a': 2, 'b': 1}
    """

    if not targets:
        return {}
    share, remainder = divmod(total, len(targets))
    return {
        target: share + (1 if index < remainder else 0) for index, target in enumerate(targets)
    }


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of a player command.

    Rejected commands leave the state untouched apart from a log line.
    ``decision`` is set when the command left the engine waiting for input.
    """

    accepted: bool
    detail: str = ""
    decision: PendingDecision | None = None


@dataclass(frozen=True, slots=True)
class WinResult:
    """Outcome of the win check."""

    winner: Faction
    reason: str


@dataclass(slots=True)
class PlacementSession:
    """Pre-game repositioning of one faction's freshly created units.

    ``armies`` holds the unit kinds each faction brings; faction 2's are only
    spawned once faction 1 confirms. With a ``layout_seed`` armies spawn at
    seeded random back-row positions instead of the default grid.
    """

    current_player: Faction
    armies: dict[Faction, list[UnitKind]] = field(default_factory=lambda: _per_faction(list))
    placed_units: list[UnitID] = field(default_factory=list)
    selected_unit: UnitID | None = None
    layout_seed: str | None = None


@dataclass(frozen=True, slots=True)
class DraftSlot:
    """One pickable entry of the draft pool."""

    slot_id: DraftSlotID
    kind: UnitKind


@dataclass(slots=True)
class DraftSession:
    """Snake draft over a shared pool."""

    pool: list[DraftSlot]
    pick_order: tuple[Faction, ...]
    picks: dict[Faction, list[UnitKind]] = field(default_factory=lambda: _per_faction(list))
    pick_index: int = 0

    @property
    def current_picker(self) -> Faction | None:
        if self.pick_index >= len(self.pick_order):
            return None
        return self.pick_order[self.pick_index]

    @property
    def complete(self) -> bool:
        return self.pick_index >= len(self.pick_order)


@dataclass(slots=True)
class GameState:
    """The single mutable aggregate for one game."""

    phase: GamePhase = GamePhase.SETUP
    round: int = 1
    units: list[Unit] = field(default_factory=list)
    destroyed_units: dict[Faction, list[Unit]] = field(default_factory=lambda: _per_faction(list))
    castle_damage: dict[Faction, int] = field(default_factory=lambda: _per_faction(int))
    previous_castle_damage: dict[Faction, int] = field(default_factory=lambda: _per_faction(int))
    consecutive_damage_rounds: dict[Faction, int] = field(
        default_factory=lambda: _per_faction(int)
    )
    instant_win: Faction | None = None
    winner: WinResult | None = None
    selected_unit: UnitID | None = None
    legal_moves: list[HexCoord] = field(default_factory=list)
    activated_units: set[UnitID] = field(default_factory=set)
    pending_second_move: UnitID | None = None
    ability_targeting: AbilityTargetingSession | None = None
    commander_target: UnitID | None = None
    units_in_combat: set[UnitID] = field(default_factory=set)
    pending_decision: PendingDecision | None = None
    setup_mode: SetupMode | None = None
    placement: PlacementSession | None = None
    draft: DraftSession | None = None
    log: list[str] = field(default_factory=list)
