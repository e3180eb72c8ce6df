"""Exceptions raised by the SmallTricks rules layer.

Illegal player input is never an exception: it is rejected through an
``ActionResult`` and a log message. Only programming defects raise.
"""

from __future__ import annotations


class InvariantViolation(RuntimeError):
    """Raised when the game state breaks one of its structural invariants."""


class IllegalTransition(InvariantViolation):
    """Raised when the state machine is asked to enter a phase it cannot reach."""
