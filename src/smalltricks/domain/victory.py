"""Castle damage and end-of-round win evaluation."""

from __future__ import annotations

import logging

from smalltricks.domain.board import is_engaged, living_units, log_message
from smalltricks.domain.enums import Faction, UnitKind
from smalltricks.domain.models import GameState, WinResult
from smalltricks.domain.rules_config import DEFAULT_RULES, RulesConfig
from smalltricks.utils.hex_math import enemy_castle_row

logger = logging.getLogger(__name__)


def apply_castle_damage(state: GameState, *, rules: RulesConfig = DEFAULT_RULES) -> None:
    """Score one point against the enemy castle per unengaged unit standing in it.

    An unengaged Battery Ram in the enemy castle row sets the instant-win
    marker and stops the evaluation for both factions.
    """

    state.previous_castle_damage = dict(state.castle_damage)

    for faction in (Faction.ONE, Faction.TWO):
        target_row = enemy_castle_row(faction, rules.board.size)
        raiders = [unit for unit in living_units(state, faction) if unit.row == target_row]

        for unit in raiders:
            if unit.kind is UnitKind.BATTERY_RAM and not is_engaged(state, unit):
                state.instant_win = faction
                log_message(state, f"Battery Ram crashes through! Player {int(faction)} wins!")
                return

        dealt = sum(1 for unit in raiders if not is_engaged(state, unit))
        if dealt > 0:
            state.castle_damage[faction.enemy] += dealt
            log_message(state, f"Player {int(faction)} deals {dealt} damage to enemy castle!")


def check_win_condition(
    state: GameState, *, rules: RulesConfig = DEFAULT_RULES
) -> WinResult | None:
    """Evaluate the win condition once per round, updating the lead streaks.

    ``castle_damage`` counts damage *taken*, so the faction whose castle has
    taken more loses.
    """

    if state.instant_win is not None:
        return WinResult(state.instant_win, "Battery Ram crashed through enemy castle!")

    victory = rules.victory
    diff = state.castle_damage[Faction.ONE] - state.castle_damage[Faction.TWO]

    if diff >= victory.decisive_difference:
        return WinResult(Faction.TWO, "Player 1 castle took 2+ more damage")
    if diff <= -victory.decisive_difference:
        return WinResult(Faction.ONE, "Player 2 castle took 2+ more damage")

    streaks = state.consecutive_damage_rounds
    if diff == victory.narrow_difference:
        streaks[Faction.ONE] += 1
        streaks[Faction.TWO] = 0
    elif diff == -victory.narrow_difference:
        streaks[Faction.TWO] += 1
        streaks[Faction.ONE] = 0
    else:
        streaks[Faction.ONE] = 0
        streaks[Faction.TWO] = 0

    for behind in (Faction.ONE, Faction.TWO):
        if streaks[behind] >= victory.streak_rounds:
            logger.info("faction %d loses on castle damage streak", behind)
            return WinResult(
                behind.enemy,
                f"Player {int(behind)} had more damage for "
                f"{victory.streak_rounds} consecutive rounds",
            )
    return None
