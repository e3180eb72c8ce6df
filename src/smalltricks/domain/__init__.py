"""Rules engine for SmallTricks.

Everything here operates purely in-memory on the dataclasses in
:mod:`models`. It exposes:

* Enumerations and strongly-typed identifiers used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* Pure rule functions for movement, abilities, combat, castle damage and setup.
* The round state machine (see :mod:`phases`), the single entry point that
  changes a game's phase.
"""

from . import (
    abilities,
    board,
    combat,
    enums,
    errors,
    models,
    movement,
    phases,
    rules_config,
    setup,
    units,
    victory,
)

__all__ = [
    "abilities",
    "board",
    "combat",
    "enums",
    "errors",
    "models",
    "movement",
    "phases",
    "rules_config",
    "setup",
    "units",
    "victory",
]
