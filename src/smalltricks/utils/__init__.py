"""Utility functions for the SmallTricks game system."""

from smalltricks.utils.hex_math import (
    HexCoord,
    castle_row,
    enemy_castle_row,
    hex_distance,
    hex_neighbors,
    in_bounds,
)
from smalltricks.utils.rng import generate_seed, random_choice, random_int, shuffled

__all__ = [
    "HexCoord",
    "castle_row",
    "enemy_castle_row",
    "generate_seed",
    "hex_distance",
    "hex_neighbors",
    "in_bounds",
    "random_choice",
    "random_int",
    "shuffled",
]
