"""Round state machine.

``Game`` owns one ``GameState`` and is the only thing that changes its
phase. Every player command returns an ``ActionResult``; illegal commands
are rejected with a log line and leave the state untouched.

Whenever a rule needs a choice from a player mid-command (damage
allocation, which enemy a charge hits, which of several units a click
meant, which friendly unit the Commander orders Forward!), the engine
stores a ``PendingDecision`` on the state and stops. Nothing else is
accepted until the caller answers through :meth:`Game.resolve_decision`.
With ``auto_decide=True`` every decision is answered with its default as
soon as it arises, which makes whole rounds run synchronously.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping

from smalltricks.domain import abilities, combat, setup, victory
from smalltricks.domain.board import find_unit, living_units, log_message, reject, remove_dead_units
from smalltricks.domain.enums import DecisionKind, Faction, GamePhase, SetupMode, UnitKind
from smalltricks.domain.errors import IllegalTransition, InvariantViolation
from smalltricks.domain.models import (
    AbilityTargetingSession,
    ActionResult,
    DraftSlotID,
    GameState,
    PendingDecision,
    TargetSelection,
    Unit,
    UnitID,
)
from smalltricks.domain.movement import apply_move, forward_candidates, legal_moves, ordered_moves
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.domain.units import UnitFactory, display_name
from smalltricks.utils.hex_math import HexCoord

logger = logging.getLogger(__name__)

TRANSITIONS: dict[GamePhase, frozenset[GamePhase]] = {
    GamePhase.SETUP: frozenset({GamePhase.FACTION_1}),
    GamePhase.FACTION_1: frozenset({GamePhase.FACTION_2}),
    GamePhase.FACTION_2: frozenset({GamePhase.ABILITY_TARGETING, GamePhase.RESOLUTION_COMBAT}),
    GamePhase.ABILITY_TARGETING: frozenset({GamePhase.RESOLUTION_COMBAT}),
    GamePhase.RESOLUTION_COMBAT: frozenset({GamePhase.RESOLUTION_MELEE}),
    GamePhase.RESOLUTION_MELEE: frozenset({GamePhase.RESOLUTION_RANGED}),
    GamePhase.RESOLUTION_RANGED: frozenset({GamePhase.RESOLUTION_CASTLE}),
    GamePhase.RESOLUTION_CASTLE: frozenset({GamePhase.FACTION_1, GamePhase.GAME_OVER}),
    GamePhase.GAME_OVER: frozenset(),
}

MOVEMENT_PHASES = {GamePhase.FACTION_1: Faction.ONE, GamePhase.FACTION_2: Faction.TWO}

DecisionChoice = Mapping[UnitID, int] | UnitID | str


class Game:
    """One game of SmallTricks, driven by player commands."""

    def __init__(
        self,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        factory: UnitFactory | None = None,
        state: GameState | None = None,
        auto_decide: bool = False,
    ) -> None:
        self.rules = rules
        self.factory = factory if factory is not None else UnitFactory(rules=rules)
        self.state = state if state is not None else GameState()
        self.auto_decide = auto_decide
        self._strikes: deque[combat.Strike] = deque()
        self._awaiting_strike: combat.Strike | None = None

    # ------------------------------------------------------------------
    # Introspection

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def is_over(self) -> bool:
        return self.state.phase is GamePhase.GAME_OVER

    @property
    def acting_faction(self) -> Faction | None:
        """Faction whose input the engine currently expects, if any."""

        if self.state.pending_decision is not None:
            return self.state.pending_decision.faction
        if self.state.phase in MOVEMENT_PHASES:
            return MOVEMENT_PHASES[self.state.phase]
        if self.state.phase is GamePhase.ABILITY_TARGETING and self.state.ability_targeting:
            return self.state.ability_targeting.current_player
        if self.state.placement is not None:
            return self.state.placement.current_player
        if self.state.draft is not None and not self.state.draft.complete:
            return self.state.draft.current_picker
        return None

    def current_targeting_unit(self) -> Unit | None:
        """The unit whose ability target is being chosen right now."""

        session = self.state.ability_targeting
        if self.state.phase is not GamePhase.ABILITY_TARGETING or session is None:
            return None
        for unit_id in session.remaining_for(session.current_player):
            unit = find_unit(self.state, unit_id)
            if unit is not None:
                return unit
        return None

    # ------------------------------------------------------------------
    # Transitions

    def _transition(self, target: GamePhase) -> None:
        current = self.state.phase
        if target not in TRANSITIONS[current]:
            logger.error("illegal phase transition %s -> %s", current, target)
            raise IllegalTransition(f"cannot move from {current} to {target}")
        self.state.phase = target
        logger.info("round %d: %s -> %s", self.state.round, current, target)

    def _enter_movement_phase(self, phase: GamePhase) -> None:
        self._transition(phase)
        self.state.activated_units.clear()
        self._clear_selection()
        self.state.pending_second_move = None
        log_message(self.state, f"Player {int(MOVEMENT_PHASES[phase])} faction phase")

    def _clear_selection(self) -> None:
        self.state.selected_unit = None
        self.state.commander_target = None
        self.state.legal_moves = []

    def _blocked(self) -> ActionResult | None:
        decision = self.state.pending_decision
        if decision is None:
            return None
        return reject(
            self.state,
            f"Waiting for Player {int(decision.faction)} to decide {decision.kind.value}",
        )

    def _require_phase(self, *phases: GamePhase) -> ActionResult | None:
        if blocked := self._blocked():
            return blocked
        if self.state.phase not in phases:
            return reject(self.state, f"Not allowed during {self.state.phase.value}")
        return None

    # ------------------------------------------------------------------
    # Setup

    def start(self, mode: SetupMode | str = SetupMode.DEMO, *, seed: str = "smalltricks") -> ActionResult:
        """Begin a game in the given setup mode."""

        if self.state.phase is not GamePhase.SETUP or self.state.setup_mode is not None:
            return reject(self.state, "Game has already been set up")

        try:
            mode = SetupMode(mode)
        except ValueError:
            return reject(self.state, f"Unknown setup mode {mode!r}")
        match mode:
            case SetupMode.DEMO:
                setup.setup_demo(self.state, self.factory)
                self._enter_movement_phase(GamePhase.FACTION_1)
            case SetupMode.RANDOM:
                setup.setup_random(self.state, self.factory, seed=seed, rules=self.rules)
            case SetupMode.DRAFT:
                setup.setup_draft(self.state, seed=seed, rules=self.rules)
        return ActionResult(accepted=True, detail=f"{mode.value} setup")

    def draft_pick(self, slot_id: DraftSlotID | str) -> ActionResult:
        if rejected := self._require_phase(GamePhase.SETUP):
            return rejected
        return setup.draft_pick(self.state, self.factory, slot_id, rules=self.rules)

    def select_placement_unit(self, unit_id: UnitID) -> ActionResult:
        if rejected := self._require_phase(GamePhase.SETUP):
            return rejected
        return setup.select_placement_unit(self.state, unit_id)

    def reposition_unit(self, hex_: HexCoord) -> ActionResult:
        if rejected := self._require_phase(GamePhase.SETUP):
            return rejected
        return setup.reposition_unit(self.state, hex_, rules=self.rules)

    def confirm_placement(self) -> ActionResult:
        if rejected := self._require_phase(GamePhase.SETUP):
            return rejected
        if self.state.placement is None:
            return reject(self.state, "No placement in progress")
        if setup.confirm_placement(self.state, self.factory, rules=self.rules):
            self._enter_movement_phase(GamePhase.FACTION_1)
        return ActionResult(accepted=True, detail="placement confirmed")

    # ------------------------------------------------------------------
    # Movement phases

    def select_unit(self, unit_id: UnitID) -> ActionResult:
        """Select one of the acting faction's units and compute its legal moves."""

        if rejected := self._require_phase(*MOVEMENT_PHASES):
            return rejected
        state = self.state
        faction = MOVEMENT_PHASES[state.phase]
        unit = find_unit(state, unit_id)

        if unit is None or unit.faction != faction:
            return reject(state, f"Player {int(faction)} has no such unit to select")
        if state.pending_second_move is not None and state.pending_second_move != unit.id:
            pending = find_unit(state, state.pending_second_move)
            name = display_name(state, pending) if pending else "a unit"
            return reject(state, f"Finish or skip the second move of {name} first")
        if unit.id in state.activated_units:
            return reject(state, f"{display_name(state, unit)} has already acted this phase")

        state.selected_unit = unit.id
        state.commander_target = None
        state.legal_moves = legal_moves(state, unit, rules=self.rules)
        return ActionResult(accepted=True, detail=f"{len(state.legal_moves)} legal destinations")

    def move_selected(self, hex_: HexCoord) -> ActionResult:
        """Move the selected unit, or advance the Commander's Forward! order."""

        if rejected := self._require_phase(*MOVEMENT_PHASES):
            return rejected
        state = self.state
        unit = find_unit(state, state.selected_unit)
        if unit is None:
            self._clear_selection()
            return reject(state, "No unit selected")
        if hex_ not in state.legal_moves:
            return reject(state, f"Illegal move to {hex_}")

        if unit.kind is UnitKind.COMMANDER:
            return self._advance_forward_order(unit, hex_)
        return self._move(unit, hex_)

    def _move(self, unit: Unit, hex_: HexCoord) -> ActionResult:
        state = self.state
        outcome = apply_move(state, unit, hex_, rules=self.rules)
        if outcome.pending_second_move:
            state.selected_unit = unit.id
            state.legal_moves = legal_moves(state, unit, rules=self.rules)
        else:
            self._clear_selection()
        remove_dead_units(state)

        if outcome.decision is not None:
            return self._await(outcome.decision)
        return ActionResult(accepted=True, detail=f"moved to {hex_}")

    def _advance_forward_order(self, commander: Unit, hex_: HexCoord) -> ActionResult:
        state = self.state
        target = find_unit(state, state.commander_target)
        if target is None:
            candidates = forward_candidates(state, commander, hex_)
            if len(candidates) == 1:
                return self._set_forward_target(candidates[0])
            return self._await(
                PendingDecision(
                    kind=DecisionKind.FORWARD_TARGET,
                    faction=commander.faction,
                    options=tuple(unit.id for unit in candidates),
                    source_id=commander.id,
                    hex=hex_,
                )
            )

        state.activated_units.add(commander.id)
        log_message(
            state,
            f"{display_name(state, commander)} Forward!: {display_name(state, target)} advances",
        )
        outcome = apply_move(state, target, hex_, rules=self.rules)
        if outcome.pending_second_move:
            state.selected_unit = target.id
            state.commander_target = None
            state.legal_moves = legal_moves(state, target, rules=self.rules)
        else:
            self._clear_selection()
        remove_dead_units(state)
        if outcome.decision is not None:
            return self._await(outcome.decision)
        return ActionResult(accepted=True, detail=f"ordered forward to {hex_}")

    def _set_forward_target(self, target: Unit) -> ActionResult:
        state = self.state
        state.commander_target = target.id
        state.legal_moves = ordered_moves(state, target, rules=self.rules)
        return ActionResult(
            accepted=True, detail=f"{len(state.legal_moves)} destinations for Forward!"
        )

    def skip_second_move(self) -> ActionResult:
        """Forgo the pending second move; the unit counts as having acted."""

        if rejected := self._require_phase(*MOVEMENT_PHASES):
            return rejected
        state = self.state
        if state.pending_second_move is None:
            return reject(state, "No second move is pending")
        state.activated_units.add(state.pending_second_move)
        state.pending_second_move = None
        self._clear_selection()
        return ActionResult(accepted=True, detail="second move skipped")

    def cancel_selection(self) -> ActionResult:
        """Drop the current selection; a pending second move is forfeited."""

        if rejected := self._require_phase(*MOVEMENT_PHASES):
            return rejected
        if self.state.pending_second_move is not None:
            return self.skip_second_move()
        self._clear_selection()
        return ActionResult(accepted=True, detail="selection cleared")

    def end_phase(self) -> ActionResult:
        """End the acting faction's movement phase."""

        if rejected := self._require_phase(*MOVEMENT_PHASES):
            return rejected
        state = self.state
        state.pending_second_move = None
        self._clear_selection()

        if state.phase is GamePhase.FACTION_1:
            self._enter_movement_phase(GamePhase.FACTION_2)
            return ActionResult(accepted=True, detail="player 2 to move")
        return self._begin_targeting()

    # ------------------------------------------------------------------
    # Ability targeting

    def _begin_targeting(self) -> ActionResult:
        state = self.state
        eligible = [
            unit
            for unit in living_units(state)
            if abilities.needs_target_selection(state, unit, rules=self.rules)
        ]
        if not eligible:
            return self._begin_resolution()

        factions = {unit.faction for unit in eligible}
        first = Faction.TWO if Faction.TWO in factions else Faction.ONE
        state.ability_targeting = AbilityTargetingSession(
            current_player=first,
            units_to_target=[unit.id for unit in eligible],
            factions={unit.id: unit.faction for unit in eligible},
        )
        self._transition(GamePhase.ABILITY_TARGETING)
        log_message(state, f"Player {int(first)} selecting ability targets...")
        return ActionResult(accepted=True, detail="ability targeting")

    def choose_ability_target(self, hex_: HexCoord) -> ActionResult:
        """Aim the current targeting unit's ability at ``hex_``."""

        if rejected := self._require_phase(GamePhase.ABILITY_TARGETING):
            return rejected
        state = self.state
        unit = self.current_targeting_unit()
        if unit is None:
            return self._advance_targeting()

        selection, candidates = abilities.selection_at(state, unit, hex_, rules=self.rules)
        if selection is not None:
            return self._record_selection(unit, selection)
        if candidates:
            return self._await(
                PendingDecision(
                    kind=DecisionKind.ABILITY_TARGET,
                    faction=unit.faction,
                    options=tuple(candidate.id for candidate in candidates),
                    source_id=unit.id,
                    hex=hex_,
                )
            )
        return reject(
            state,
            f"No valid targets for {display_name(state, unit)} "
            f"{abilities.ABILITY_NAMES[unit.kind]} at {hex_}",
        )

    def _record_selection(self, unit: Unit, selection: TargetSelection) -> ActionResult:
        state = self.state
        session = state.ability_targeting
        if session is None:
            raise InvariantViolation("no ability targeting session is open")
        session.selections[unit.id] = selection

        name = display_name(state, unit)
        if selection.hex is not None:
            log_message(state, f"{name} will target {selection.hex}")
        else:
            target = find_unit(state, selection.unit_id)
            target_name = display_name(state, target) if target else "unknown"
            verb = "taunt" if unit.kind is UnitKind.JESTERS else "target"
            log_message(state, f"{name} will {verb} {target_name}")
        return self._advance_targeting()

    def _advance_targeting(self) -> ActionResult:
        state = self.state
        session = state.ability_targeting
        if session is None:
            raise InvariantViolation("no ability targeting session is open")
        if self.current_targeting_unit() is not None:
            return ActionResult(accepted=True, detail="next unit")

        other = session.current_player.enemy
        if any(find_unit(state, unit_id) for unit_id in session.remaining_for(other)):
            session.current_player = other
            log_message(state, f"Player {int(other)} selecting ability targets...")
            return ActionResult(accepted=True, detail=f"player {int(other)} targeting")
        return self._begin_resolution()

    # ------------------------------------------------------------------
    # Decisions

    def _await(self, decision: PendingDecision) -> ActionResult:
        self.state.pending_decision = decision
        if self.auto_decide:
            return self.resolve_decision(decision.default_choice())
        logger.debug("awaiting %s from faction %d", decision.kind, decision.faction)
        return ActionResult(accepted=True, detail="decision required", decision=decision)

    def resolve_decision(self, choice: DecisionChoice) -> ActionResult:
        """Answer the pending decision and resume the interrupted command."""

        state = self.state
        decision = state.pending_decision
        if decision is None:
            return reject(state, "No decision is pending")

        match decision.kind:
            case DecisionKind.DAMAGE_ALLOCATION:
                return self._resolve_allocation(decision, choice)
            case DecisionKind.CHARGE_TARGET:
                return self._resolve_charge_target(decision, choice)
            case DecisionKind.ABILITY_TARGET:
                return self._resolve_ability_target(decision, choice)
            case DecisionKind.FORWARD_TARGET:
                return self._resolve_forward_target(decision, choice)

    def _single_choice(
        self, decision: PendingDecision, choice: DecisionChoice
    ) -> tuple[Unit | None, ActionResult | None]:
        """Validate a one-unit answer; a stale unit drops the decision."""

        if isinstance(choice, Mapping) or choice not in decision.options:
            return None, reject(self.state, f"{choice!r} is not one of the offered units")
        self.state.pending_decision = None
        unit = find_unit(self.state, UnitID(choice))
        if unit is None:
            log_message(self.state, "Chosen unit is no longer valid; action dropped")
            return None, ActionResult(accepted=False, detail="target no longer valid")
        return unit, None

    def _resolve_charge_target(self, decision: PendingDecision, choice: DecisionChoice) -> ActionResult:
        target, result = self._single_choice(decision, choice)
        if result is not None:
            return result
        charger = find_unit(self.state, decision.source_id)
        if charger is None or target.position != charger.position:
            log_message(self.state, "Charge target is no longer valid; charge dropped")
            return ActionResult(accepted=False, detail="target no longer valid")

        abilities.apply_charge_bonus(self.state, charger, target, rules=self.rules)
        log_message(
            self.state,
            f"{display_name(self.state, charger)} tramples {display_name(self.state, target)}!",
        )
        remove_dead_units(self.state)
        return ActionResult(accepted=True, detail="charge resolved")

    def _resolve_ability_target(self, decision: PendingDecision, choice: DecisionChoice) -> ActionResult:
        target, result = self._single_choice(decision, choice)
        if result is not None:
            return result
        unit = find_unit(self.state, decision.source_id)
        if unit is None or target not in abilities.ability_targets(self.state, unit, rules=self.rules):
            log_message(self.state, "Ability target is no longer valid; selection dropped")
            return ActionResult(accepted=False, detail="target no longer valid")
        return self._record_selection(unit, TargetSelection(unit_id=target.id))

    def _resolve_forward_target(self, decision: PendingDecision, choice: DecisionChoice) -> ActionResult:
        target, result = self._single_choice(decision, choice)
        if result is not None:
            return result
        commander = find_unit(self.state, decision.source_id)
        if commander is None or target.faction != commander.faction:
            self._clear_selection()
            return ActionResult(accepted=False, detail="target no longer valid")
        return self._set_forward_target(target)

    def _resolve_allocation(self, decision: PendingDecision, choice: DecisionChoice) -> ActionResult:
        state = self.state
        if not isinstance(choice, Mapping):
            return reject(state, "Damage allocation must map units to damage")
        if any(unit_id not in decision.options for unit_id in choice):
            return reject(state, "Damage allocation names a unit that is not in this combat")
        if any(not isinstance(amount, int) or amount < 0 for amount in choice.values()):
            return reject(state, "Damage allocation amounts must be non-negative integers")
        if sum(choice.values()) != decision.total:
            return reject(state, f"Damage allocation must total exactly {decision.total}")

        strike = self._awaiting_strike
        if strike is None:
            raise InvariantViolation("damage allocation answered with no strike awaiting it")
        state.pending_decision = None
        self._awaiting_strike = None
        combat.apply_strike(state, strike, dict(choice))
        return self._continue_combat()

    # ------------------------------------------------------------------
    # Resolution

    def _begin_resolution(self) -> ActionResult:
        self._transition(GamePhase.RESOLUTION_COMBAT)
        self.state.units_in_combat.clear()
        self._strikes = deque(combat.start_combat(self.state, rules=self.rules))
        return self._continue_combat()

    def _continue_combat(self) -> ActionResult:
        state = self.state
        while self._strikes:
            strike = self._strikes.popleft()
            if strike.needs_allocation:
                self._awaiting_strike = strike
                # An auto-decided allocation resumes this loop before returning.
                return self._await(
                    PendingDecision(
                        kind=DecisionKind.DAMAGE_ALLOCATION,
                        faction=strike.attacker,
                        options=strike.targets,
                        total=strike.total,
                        hex=strike.hex,
                    )
                )
            combat.apply_strike(state, strike)

        remove_dead_units(state)
        return self._finish_resolution()

    def _finish_resolution(self) -> ActionResult:
        state = self.state
        self._transition(GamePhase.RESOLUTION_MELEE)
        abilities.resolve_melee_abilities(state, rules=self.rules)
        self._transition(GamePhase.RESOLUTION_RANGED)
        abilities.resolve_ranged_abilities(state, rules=self.rules)
        self._transition(GamePhase.RESOLUTION_CASTLE)
        victory.apply_castle_damage(state, rules=self.rules)
        state.ability_targeting = None

        result = victory.check_win_condition(state, rules=self.rules)
        if result is not None:
            state.winner = result
            self._transition(GamePhase.GAME_OVER)
            log_message(state, f"Game Over! {result.reason}")
            return ActionResult(accepted=True, detail=result.reason)

        for unit in state.units:
            unit.moved_this_turn = False
            unit.last_target = None
            unit.hexes_moved = 0
            unit.moves_this_turn = 0
        state.round += 1
        self._enter_movement_phase(GamePhase.FACTION_1)
        return ActionResult(accepted=True, detail=f"round {state.round}")
