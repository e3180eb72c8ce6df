"""
Hexagonal coordinate mathematics for the SmallTricks board.

The board is a 6x6 grid of flat-top hexes addressed by (row, col) in an
"odd-q" offset layout: odd columns are shoved half a hex down. It supports:
- Distance calculations between hexes
- Finding adjacent hexes inside the board
- Board bounds and castle-row lookup

Coordinate Systems:
-------------------
We use two coordinate systems:

1. Offset Coordinates (row, col) - for storage and representation
   - row: 0 at the top (faction 2's castle edge), 5 at the bottom
   - col: 0 at the left
   - Used in HexCoord dataclass

2. Cube Coordinates (x, y, z) - for distance calculations
   - x, y, z: three coordinates with constraint x + y + z = 0
   - Makes distance calculation simple: max(|dx|, |dy|, |dz|)
   - Conversion: x = col, z = row - floor(col / 2), y = -x - z

References:
-----------
Based on the excellent guide at: https://www.redblobgames.com/grids/hexagons/
"""

from __future__ import annotations

from dataclasses import dataclass

BOARD_SIZE = 6


@dataclass(frozen=True, slots=True)
class HexCoord:
    """
    A hexagonal coordinate using the odd-q offset system.

    Attributes:
        row: Row index (0 = top edge)
        col: Column index (0 = left edge)

    Example:
        >>> origin = HexCoord(row=0, col=0)
        >>> neighbor = HexCoord(row=0, col=1)
        >>> hex_distance(origin, neighbor)
        1
    """

    row: int
    col: int

    def __str__(self) -> str:
        return f"[{self.row}, {self.col}]"


def offset_to_cube(coord: HexCoord) -> tuple[int, int, int]:
    """
    Convert odd-q offset coordinates (row, col) to cube coordinates (x, y, z).

    The conversion follows:
        x = col
        z = row - floor(col / 2)
        y = -x - z

    Example:
        >>> offset_to_cube(HexCoord(row=2, col=3))
        (3, -4, 1)
    """
    x = coord.col
    z = coord.row - coord.col // 2
    y = -x - z
    return x, y, z


def cube_to_offset(x: int, y: int, z: int) -> HexCoord:  # noqa: ARG001
    """
    Convert cube coordinates back to odd-q offset coordinates.

    The y parameter is accepted for API consistency with cube coordinates,
    but is not used in the conversion as it's redundant (y = -x - z).
    """
    return HexCoord(row=z + x // 2, col=x)


def hex_distance(a: HexCoord, b: HexCoord) -> int:
    """
    Calculate the distance between two hexes.

    The distance is the minimum number of hex steps to move from hex a to hex b:
        distance = max(|dx|, |dy|, |dz|)

    Example:
        >>> hex_distance(HexCoord(row=0, col=0), HexCoord(row=2, col=2))
        3
    """
    ax, ay, az = offset_to_cube(a)
    bx, by, bz = offset_to_cube(b)
    return max(abs(ax - bx), abs(ay - by), abs(az - bz))


# (d_row, d_col) offsets for the 6 neighbors; odd columns sit half a hex lower
# so their diagonal neighbors are one row further down than for even columns.
_EVEN_COL_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (0, -1),
    (-1, 0),
    (1, 0),
    (-1, 1),
    (0, 1),
)
_ODD_COL_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (0, -1),
    (1, -1),
    (-1, 0),
    (1, 0),
    (0, 1),
    (1, 1),
)


def in_bounds(coord: HexCoord, size: int = BOARD_SIZE) -> bool:
    """Return True when both row and column lie in [0, size)."""

    return 0 <= coord.row < size and 0 <= coord.col < size


def hex_neighbors(coord: HexCoord, size: int = BOARD_SIZE) -> list[HexCoord]:
    """
    Find the adjacent hexes of the given hex that lie on the board.

    Interior hexes have 6 neighbors; edge and corner hexes have fewer.

    Example:
        >>> len(hex_neighbors(HexCoord(row=2, col=2)))
        6
        >>> len(hex_neighbors(HexCoord(row=0, col=0)))
        2
    """
    directions = _ODD_COL_DIRECTIONS if coord.col % 2 == 1 else _EVEN_COL_DIRECTIONS
    neighbors = []
    for d_row, d_col in directions:
        neighbor = HexCoord(row=coord.row + d_row, col=coord.col + d_col)
        if in_bounds(neighbor, size):
            neighbors.append(neighbor)
    return neighbors


def all_hexes(size: int = BOARD_SIZE) -> list[HexCoord]:
    """Every hex on the board in row-major order."""

    return [HexCoord(row=row, col=col) for row in range(size) for col in range(size)]


def castle_row(faction: int, size: int = BOARD_SIZE) -> int:
    """
    Return a faction's own back row.

    Faction 1 defends the bottom edge (row 5), faction 2 the top edge (row 0).
    A faction's *target* is the other faction's castle row.
    """
    if faction == 1:
        return size - 1
    if faction == 2:
        return 0
    raise ValueError(f"faction must be 1 or 2, got {faction}")


def enemy_castle_row(faction: int, size: int = BOARD_SIZE) -> int:
    """Return the castle row a faction attacks."""

    return castle_row(2 if faction == 1 else 1, size)
