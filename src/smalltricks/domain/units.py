"""Unit catalog and per-game unit factory."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from uuid import uuid4

from smalltricks.domain.enums import Faction, UnitKind
from smalltricks.domain.models import GameState, Unit, UnitID, UnitType
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.utils.hex_math import HexCoord

UNIT_TYPES: MappingProxyType[UnitKind, UnitType] = MappingProxyType(
    {
        # Base units
        UnitKind.ARCHERS: UnitType(UnitKind.ARCHERS, "Archers", "🏹"),
        UnitKind.CANNON: UnitType(UnitKind.CANNON, "Cannon", "🚀"),
        UnitKind.MOUNTED: UnitType(UnitKind.MOUNTED, "Mounted", "🐴"),
        UnitKind.ASSAULT_BEASTS: UnitType(UnitKind.ASSAULT_BEASTS, "Assault Beasts", "🐘"),
        UnitKind.SPEARS: UnitType(UnitKind.SPEARS, "Spears", "⚔️"),
        UnitKind.JESTERS: UnitType(UnitKind.JESTERS, "Jesters", "🤡"),
        # Alternate units
        UnitKind.MUSKETS: UnitType(UnitKind.MUSKETS, "Muskets", "🔫"),
        UnitKind.AERIAL: UnitType(UnitKind.AERIAL, "Aerial", "🦅"),
        UnitKind.COMMANDER: UnitType(UnitKind.COMMANDER, "Commander", "👑"),
        UnitKind.MILITIA: UnitType(UnitKind.MILITIA, "Militia", "🗽"),
        UnitKind.BATTERY_RAM: UnitType(UnitKind.BATTERY_RAM, "Battery Ram", "🐏"),
    }
)

BASE_KINDS: tuple[UnitKind, ...] = (
    UnitKind.ARCHERS,
    UnitKind.CANNON,
    UnitKind.MOUNTED,
    UnitKind.ASSAULT_BEASTS,
    UnitKind.SPEARS,
    UnitKind.JESTERS,
)


def unit_type(kind: UnitKind) -> UnitType:
    """Look up the catalog entry for ``kind``."""

    return UNIT_TYPES[kind]


@dataclass(slots=True)
class UnitFactory:
    """Creates units for one game.

    Colors cycle through the faction palette and sequence numbers count up
    per (faction, kind). Neither counter is ever rewound, so numbers are not
    reused after a unit is destroyed.
    """

    rules: RulesConfig = DEFAULT_RULES
    color_index: dict[Faction, int] = field(
        default_factory=lambda: {Faction.ONE: 0, Faction.TWO: 0}
    )
    type_counters: dict[tuple[Faction, UnitKind], int] = field(default_factory=dict)

    def create(self, kind: UnitKind, faction: Faction | int, row: int, col: int) -> Unit:
        """Allocate a fresh unit of ``kind`` for ``faction`` at (row, col)."""

        faction = Faction(faction)
        palette = (
            self.rules.units.faction_1_palette
            if faction is Faction.ONE
            else self.rules.units.faction_2_palette
        )
        color = palette[self.color_index[faction] % len(palette)]
        self.color_index[faction] += 1

        key = (faction, kind)
        self.type_counters[key] = self.type_counters.get(key, 0) + 1

        return Unit(
            id=UnitID(uuid4().hex),
            unit_type=UNIT_TYPES[kind],
            faction=faction,
            position=HexCoord(row=row, col=col),
            color=color,
            number=self.type_counters[key],
            max_hp=self.rules.units.max_hp,
        )


def display_name(state: GameState, unit: Unit) -> str:
    """Name used in log text; numbered only while same-type siblings live."""

    siblings = sum(
        1
        for other in state.units
        if other.is_alive and other.faction == unit.faction and other.kind == unit.kind
    )
    base = f"{unit.unit_type.symbol} {unit.unit_type.name}"
    if siblings > 1:
        return f"{base} #{unit.number}"
    return base
