"""Deterministic Random Number Generator (RNG) system for SmallTricks.

Randomness only enters the game during setup (random armies, random
placement columns, the draft pool). Every draw is seeded from a string so
that:
- Reproducibility: Same seed always produces same results
- Fairness: No hidden randomness
- Bug reproduction: Exact setup replay from the configured root seed

Examples:
    >>> seed = generate_seed("smalltricks", 1, "draft_pool")
    >>> result = random_choice(seed, ["archers", "cannon", "mounted"])
    >>> result["choice"] in ["archers", "cannon", "mounted"]
    True
"""

from __future__ import annotations

import hashlib
import random
from typing import Any


def generate_seed(root: str, faction: int, context: str) -> str:
    """Generate a deterministic seed for a setup draw.

    Format: "root:faction:context"

    Args:
        root: Game-level root seed (from settings)
        faction: Faction the draw is for (0 for draws shared by both sides)
        context: What the draw is for (e.g., 'army_shuffle', 'placement_col_3')

    Raises:
        ValueError: If faction is negative

    Examples:
        >>> generate_seed("abc", 2, "army_shuffle")
        'abc:2:army_shuffle'
    """
    if faction < 0:
        raise ValueError(f"faction must be non-negative, got {faction}")

    return f"{root}:{faction}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random()."""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def random_choice(seed: str, options: list[Any]) -> dict[str, Any]:
    """Choose randomly from options with deterministic seed.

    Returns:
        Dictionary containing:
            - choice: The selected option
            - index: Index of the selected option
            - seed: The seed used

    Raises:
        ValueError: If options list is empty
    """
    if not options:
        raise ValueError("options list cannot be empty")

    rng = random.Random(_seed_to_int(seed))
    index = rng.randint(0, len(options) - 1)

    return {
        "choice": options[index],
        "index": index,
        "seed": seed,
    }


def random_int(seed: str, min_val: int, max_val: int) -> dict[str, Any]:
    """Generate random integer in [min_val, max_val] with deterministic seed.

    Raises:
        ValueError: If min_val > max_val
    """
    if min_val > max_val:
        raise ValueError(f"min_val ({min_val}) cannot be greater than max_val ({max_val})")

    rng = random.Random(_seed_to_int(seed))
    value = rng.randint(min_val, max_val)

    return {
        "value": value,
        "min": min_val,
        "max": max_val,
        "seed": seed,
    }


def shuffled(seed: str, options: list[Any]) -> list[Any]:
    """Return a deterministically shuffled copy of ``options``."""

    result = list(options)
    random.Random(_seed_to_int(seed)).shuffle(result)
    return result
