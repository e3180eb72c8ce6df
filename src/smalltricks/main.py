"""Headless entrypoint: play a full SmallTricks game with a scripted stand-in."""

from __future__ import annotations

import argparse
import logging

from smalltricks.config import get_settings
from smalltricks.domain.abilities import ability_targets
from smalltricks.domain.board import living_units
from smalltricks.domain.enums import GamePhase, SetupMode, UnitKind
from smalltricks.domain.models import GameState, Unit
from smalltricks.domain.phases import MOVEMENT_PHASES, Game
from smalltricks.utils.hex_math import HexCoord, enemy_castle_row

logger = logging.getLogger(__name__)


def _advance_key(unit: Unit, hex_: HexCoord, size: int) -> tuple[int, int, int]:
    return (abs(hex_.row - enemy_castle_row(unit.faction, size)), hex_.row, hex_.col)


def _play_unit(game: Game, unit: Unit) -> None:
    if not game.select_unit(unit.id).accepted:
        return
    size = game.rules.board.size
    # Mounted units get a second step while their move is pending.
    for _ in range(2):
        moves = game.state.legal_moves
        if not moves or game.is_over:
            break
        game.move_selected(min(moves, key=lambda hex_: _advance_key(unit, hex_, size)))
        if game.state.pending_second_move != unit.id:
            break
    if game.state.phase in MOVEMENT_PHASES and (
        game.state.selected_unit is not None or game.state.pending_second_move is not None
    ):
        game.cancel_selection()


def play_movement_phase(game: Game) -> None:
    """Step every unit of the acting faction toward the enemy castle row, then end the phase."""

    faction = MOVEMENT_PHASES[game.state.phase]
    for unit in list(living_units(game.state, faction)):
        if not unit.is_alive or unit.id in game.state.activated_units:
            continue
        if unit.kind is UnitKind.COMMANDER:
            continue
        _play_unit(game, unit)
    game.end_phase()


def play_targeting(game: Game) -> None:
    while game.state.phase is GamePhase.ABILITY_TARGETING:
        unit = game.current_targeting_unit()
        if unit is None:
            raise RuntimeError("targeting phase has no unit to aim")
        targets = ability_targets(game.state, unit, rules=game.rules)
        if not targets:
            raise RuntimeError(f"{unit.unit_type.name} was queued for targeting without targets")
        game.choose_ability_target(targets[0].position)


def play_setup(game: Game) -> None:
    state = game.state
    while state.draft is not None and not state.draft.complete:
        game.draft_pick(state.draft.pool[0].slot_id)
    while state.placement is not None:
        game.confirm_placement()


def play_game(mode: SetupMode, seed: str, max_rounds: int) -> GameState:
    """Run a game to completion or until ``max_rounds`` have been played."""

    game = Game(auto_decide=True)
    game.start(mode, seed=seed)
    play_setup(game)

    while not game.is_over and game.state.round <= max_rounds:
        match game.state.phase:
            case GamePhase.FACTION_1 | GamePhase.FACTION_2:
                play_movement_phase(game)
            case GamePhase.ABILITY_TARGETING:
                play_targeting(game)
            case phase:
                raise RuntimeError(f"autoplay stalled in {phase}")

    if not game.is_over:
        logger.warning("stopping after %d rounds without a winner", max_rounds)
    return game.state


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Play a headless SmallTricks game")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SetupMode],
        default=settings.setup_mode.value,
        help="Setup mode used to build both armies",
    )
    parser.add_argument("--seed", default=settings.seed, help="Root seed for random setup")
    parser.add_argument(
        "--rounds", type=int, default=settings.max_rounds, help="Maximum rounds to play"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every engine event at DEBUG level",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level.upper())

    state = play_game(SetupMode(args.mode), args.seed, args.rounds)
    for line in state.log:
        print(line)
    if state.winner is not None:
        print(f"Winner: Player {int(state.winner.winner)} ({state.winner.reason})")
    else:
        print(f"No winner after {state.round - 1} rounds")


if __name__ == "__main__":
    main()
