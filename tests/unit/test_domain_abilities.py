"""Unit tests for ability targeting, damage and the resolution passes."""

from __future__ import annotations

import pytest

from smalltricks.domain import abilities
from smalltricks.domain import models as dm
from smalltricks.domain.enums import Faction, UnitKind
from smalltricks.domain.units import UnitFactory
from smalltricks.utils.hex_math import HexCoord


def _state(*placements: tuple[UnitKind, int, int, int]) -> dm.GameState:
    factory = UnitFactory()
    return dm.GameState(
        units=[factory.create(kind, faction, row, col) for kind, faction, row, col in placements]
    )


def _select(state: dm.GameState, unit: dm.Unit, selection: dm.TargetSelection) -> None:
    state.ability_targeting = dm.AbilityTargetingSession(
        current_player=unit.faction,
        units_to_target=[unit.id],
        selections={unit.id: selection},
        factions={unit.id: unit.faction},
    )


class TestTargets:
    """Target enumeration per ability."""

    def test_volley_range_is_one_to_two(self):
        state = _state(
            (UnitKind.ARCHERS, 1, 4, 2),
            (UnitKind.CANNON, 2, 3, 2),
            (UnitKind.CANNON, 2, 2, 2),
            (UnitKind.CANNON, 2, 1, 2),
            (UnitKind.SPEARS, 1, 3, 2),
        )
        archers, near, far, out_of_range, _ = state.units
        assert abilities.volley_targets(state, archers) == [near, far]
        assert out_of_range not in abilities.ability_targets(state, archers)

    def test_mortar_requires_standing_still(self):
        state = _state((UnitKind.CANNON, 1, 4, 2), (UnitKind.SPEARS, 2, 3, 2))
        cannon, spears = state.units
        assert abilities.mortar_targets(state, cannon) == [spears]

        cannon.moved_this_turn = True
        assert abilities.mortar_targets(state, cannon) == []

    def test_muskets_hit_the_whole_column(self):
        state = _state(
            (UnitKind.MUSKETS, 1, 5, 3),
            (UnitKind.SPEARS, 2, 0, 3),
            (UnitKind.CANNON, 2, 2, 3),
            (UnitKind.CANNON, 2, 2, 4),
        )
        muskets, spears, cannon, _ = state.units
        assert abilities.musket_targets(state, muskets) == [spears, cannon]

    def test_pierce_and_taunt_hit_adjacent_only(self):
        state = _state(
            (UnitKind.SPEARS, 1, 3, 2),
            (UnitKind.JESTERS, 1, 2, 1),
            (UnitKind.CANNON, 2, 2, 2),
            (UnitKind.CANNON, 2, 1, 2),
        )
        spears, jesters, adjacent, distant = state.units
        assert abilities.ability_targets(state, spears) == [adjacent]
        assert abilities.ability_targets(state, jesters) == [adjacent]
        assert distant not in abilities.ability_targets(state, spears)

    @pytest.mark.parametrize(
        "kind",
        [
            UnitKind.MOUNTED,
            UnitKind.ASSAULT_BEASTS,
            UnitKind.AERIAL,
            UnitKind.COMMANDER,
            UnitKind.MILITIA,
            UnitKind.BATTERY_RAM,
        ],
    )
    def test_units_without_standalone_abilities(self, kind):
        state = _state((kind, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2))
        assert abilities.ability_targets(state, state.units[0]) == []

    def test_engaged_units_never_need_selection(self):
        state = _state(
            (UnitKind.ARCHERS, 1, 3, 2),
            (UnitKind.CANNON, 2, 3, 2),
            (UnitKind.CANNON, 2, 2, 2),
        )
        assert not abilities.needs_target_selection(state, state.units[0])

    def test_selection_at_hex(self):
        state = _state(
            (UnitKind.ARCHERS, 1, 4, 2),
            (UnitKind.CANNON, 2, 3, 2),
            (UnitKind.SPEARS, 2, 2, 2),
            (UnitKind.MOUNTED, 2, 2, 2),
        )
        archers, cannon, spears, mounted = state.units

        selection, _ = abilities.selection_at(state, archers, HexCoord(3, 2))
        assert selection == dm.TargetSelection(unit_id=cannon.id)

        selection, candidates = abilities.selection_at(state, archers, HexCoord(2, 2))
        assert selection is None
        assert candidates == [spears, mounted]

        selection, candidates = abilities.selection_at(state, archers, HexCoord(0, 0))
        assert selection is None and candidates == []

    def test_mortar_selection_is_a_hex(self):
        state = _state((UnitKind.CANNON, 1, 4, 2), (UnitKind.SPEARS, 2, 2, 2), (UnitKind.MOUNTED, 2, 2, 2))
        selection, _ = abilities.selection_at(state, state.units[0], HexCoord(2, 2))
        assert selection == dm.TargetSelection(hex=HexCoord(2, 2))


class TestVolleyDamage:
    """Archers damage rule."""

    def _pair(self) -> tuple[dm.Unit, dm.Unit]:
        state = _state((UnitKind.ARCHERS, 1, 4, 2), (UnitKind.CANNON, 2, 3, 2))
        return state.units[0], state.units[1]

    def test_base_damage(self):
        archers, target = self._pair()
        assert abilities.volley_damage(archers, target) == 2

    def test_moving_costs_one(self):
        archers, target = self._pair()
        archers.moved_this_turn = True
        assert abilities.volley_damage(archers, target) == 1

    def test_switching_targets_costs_one(self):
        archers, target = self._pair()
        archers.last_target = dm.UnitID("someone-else")
        assert abilities.volley_damage(archers, target) == 1

    def test_same_target_keeps_full_damage(self):
        archers, target = self._pair()
        archers.last_target = target.id
        assert abilities.volley_damage(archers, target) == 2

    def test_moved_and_new_target_floors_at_zero(self):
        archers, target = self._pair()
        archers.moved_this_turn = True
        archers.last_target = dm.UnitID("someone-else")
        assert abilities.volley_damage(archers, target) == 0


class TestMeleePass:
    """Pierce and Taunt."""

    def test_pierce_uses_first_target_without_selection(self):
        state = _state((UnitKind.SPEARS, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2))
        spears, cannon = state.units

        abilities.resolve_melee_abilities(state)

        assert cannon.damage == 1
        assert "⚔️ Spears Pierce: 🚀 Cannon takes 1 damage (4/5) at [2, 2]" in state.log

    def test_pierce_honours_selection(self):
        state = _state((UnitKind.SPEARS, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2), (UnitKind.ARCHERS, 2, 3, 1))
        spears, cannon, archers = state.units
        _select(state, spears, dm.TargetSelection(unit_id=archers.id))

        abilities.resolve_melee_abilities(state)

        assert archers.damage == 1
        assert cannon.damage == 0

    def test_stale_selection_is_dropped(self):
        state = _state((UnitKind.SPEARS, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2), (UnitKind.ARCHERS, 2, 3, 1))
        spears, cannon, archers = state.units
        _select(state, spears, dm.TargetSelection(unit_id=archers.id))
        archers.position = HexCoord(0, 5)

        abilities.resolve_melee_abilities(state)

        assert archers.damage == 0
        assert cannon.damage == 0
        assert any("no longer valid" in line for line in state.log)

    def test_units_that_fought_skip_abilities(self):
        state = _state((UnitKind.SPEARS, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2))
        spears, cannon = state.units
        state.units_in_combat.add(spears.id)

        abilities.resolve_melee_abilities(state)

        assert cannon.damage == 0

    def test_taunt_drags_target_onto_jesters(self):
        state = _state((UnitKind.JESTERS, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2))
        jesters, cannon = state.units

        abilities.resolve_melee_abilities(state)

        assert cannon.position == jesters.position
        assert cannon.damage == 0
        assert any("Taunt" in line for line in state.log)

    def test_taunted_unit_is_engaged_for_ranged_pass(self):
        state = _state(
            (UnitKind.JESTERS, 1, 3, 2),
            (UnitKind.ARCHERS, 2, 2, 2),
            (UnitKind.SPEARS, 1, 5, 5),
        )
        jesters, archers, spears = state.units

        abilities.resolve_melee_abilities(state)
        abilities.resolve_ranged_abilities(state)

        assert archers.position == HexCoord(3, 2)
        assert jesters.damage == 0
        assert spears.damage == 0

    def test_pass_removes_destroyed_units(self):
        state = _state((UnitKind.SPEARS, 1, 3, 2), (UnitKind.CANNON, 2, 2, 2))
        spears, cannon = state.units
        cannon.damage = 4

        abilities.resolve_melee_abilities(state)

        assert cannon not in state.units
        assert state.destroyed_units[Faction.ONE] == [cannon]


class TestRangedPass:
    """Volley, Mortar and Fire!."""

    def test_volley_records_last_target(self):
        state = _state((UnitKind.ARCHERS, 1, 4, 2), (UnitKind.CANNON, 2, 3, 2))
        archers, cannon = state.units

        abilities.resolve_ranged_abilities(state)

        assert cannon.damage == 2
        assert archers.last_target == cannon.id
        assert "🏹 Archers Volley: 🚀 Cannon takes 2 damage (3/5) at [3, 2]" in state.log

    def test_volley_prefers_remembered_target(self):
        state = _state((UnitKind.ARCHERS, 1, 4, 2), (UnitKind.CANNON, 2, 3, 2), (UnitKind.SPEARS, 2, 2, 2))
        archers, cannon, spears = state.units
        archers.last_target = spears.id

        abilities.resolve_ranged_abilities(state)

        assert spears.damage == 2
        assert cannon.damage == 0

    def test_zero_damage_volley_changes_nothing(self):
        state = _state((UnitKind.ARCHERS, 1, 4, 2), (UnitKind.CANNON, 2, 3, 2))
        archers, cannon = state.units
        archers.moved_this_turn = True
        archers.last_target = dm.UnitID("gone")

        abilities.resolve_ranged_abilities(state)

        assert cannon.damage == 0
        assert archers.last_target == dm.UnitID("gone")

    def test_mortar_hits_every_enemy_on_the_hex(self):
        state = _state(
            (UnitKind.CANNON, 1, 4, 2),
            (UnitKind.SPEARS, 2, 2, 2),
            (UnitKind.MOUNTED, 2, 2, 2),
            (UnitKind.ARCHERS, 2, 3, 2),
        )
        cannon, spears, mounted, archers = state.units
        _select(state, cannon, dm.TargetSelection(hex=HexCoord(2, 2)))

        abilities.resolve_ranged_abilities(state)

        assert spears.damage == 1
        assert mounted.damage == 1
        assert archers.damage == 0

    def test_moved_cannon_does_not_fire(self):
        state = _state((UnitKind.CANNON, 1, 4, 2), (UnitKind.SPEARS, 2, 3, 2))
        cannon, spears = state.units
        cannon.moved_this_turn = True

        abilities.resolve_ranged_abilities(state)

        assert spears.damage == 0

    def test_muskets_fire_down_the_column(self):
        state = _state((UnitKind.MUSKETS, 1, 5, 3), (UnitKind.SPEARS, 2, 0, 3), (UnitKind.CANNON, 2, 2, 3))
        _, spears, cannon = state.units

        abilities.resolve_ranged_abilities(state)

        assert spears.damage == 1
        assert cannon.damage == 1


class TestChargeHelpers:
    """Charge and Counter Charge primitives."""

    def test_counter_charging_spears_must_be_adjacent_and_unengaged(self):
        state = _state(
            (UnitKind.MOUNTED, 1, 2, 2),
            (UnitKind.SPEARS, 2, 1, 2),
            (UnitKind.SPEARS, 2, 0, 0),
        )
        mounted, adjacent, distant = state.units
        assert abilities.counter_charging_spears(state, mounted) == [adjacent]

    def test_counter_charge_damage_and_log(self):
        state = _state((UnitKind.MOUNTED, 1, 2, 2), (UnitKind.SPEARS, 2, 1, 2))
        mounted, spears = state.units

        abilities.apply_counter_charge(state, spears, mounted)

        assert mounted.damage == 3
        assert state.log == [
            "⚔️ Spears Counter Charge: 🐴 Mounted takes 3 damage (2/5) at [2, 2]",
            "🐴 Mounted's charge is countered!",
        ]
