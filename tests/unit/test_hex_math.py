"""
Test suite for hex coordinate math operations.

The SmallTricks board is a 6x6 grid of flat-top hexes in an odd-q offset
layout. This module tests:
- Offset/cube conversion
- Distance calculations
- Bounded neighbor finding
- Castle-row lookup
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from smalltricks.utils.hex_math import (
    BOARD_SIZE,
    HexCoord,
    all_hexes,
    castle_row,
    cube_to_offset,
    enemy_castle_row,
    hex_distance,
    hex_neighbors,
    in_bounds,
    offset_to_cube,
)

board_hexes = st.builds(
    HexCoord,
    row=st.integers(min_value=0, max_value=BOARD_SIZE - 1),
    col=st.integers(min_value=0, max_value=BOARD_SIZE - 1),
)


class TestHexCoord:
    """Test the HexCoord dataclass."""

    def test_hex_coord_equality(self) -> None:
        assert HexCoord(row=1, col=2) == HexCoord(row=1, col=2)
        assert HexCoord(row=1, col=2) != HexCoord(row=2, col=1)

    def test_hex_coord_hash(self) -> None:
        """Hex coordinates can be used in sets and as dict keys."""
        assert len({HexCoord(row=1, col=2), HexCoord(row=1, col=2)}) == 1

    def test_str_uses_bracket_notation(self) -> None:
        assert str(HexCoord(row=3, col=4)) == "[3, 4]"


class TestCoordinateConversion:
    """Test conversion between offset and cube coordinates."""

    def test_origin(self) -> None:
        assert offset_to_cube(HexCoord(row=0, col=0)) == (0, 0, 0)

    def test_odd_column(self) -> None:
        x, y, z = offset_to_cube(HexCoord(row=2, col=3))
        assert (x, y, z) == (3, -4, 1)
        assert x + y + z == 0

    @given(board_hexes)
    def test_round_trip(self, coord: HexCoord) -> None:
        assert cube_to_offset(*offset_to_cube(coord)) == coord


class TestHexDistance:
    """Test distance calculations."""

    def test_same_hex(self) -> None:
        assert hex_distance(HexCoord(row=3, col=3), HexCoord(row=3, col=3)) == 0

    def test_same_column(self) -> None:
        assert hex_distance(HexCoord(row=0, col=2), HexCoord(row=4, col=2)) == 4

    def test_across_the_board(self) -> None:
        assert hex_distance(HexCoord(row=0, col=0), HexCoord(row=2, col=2)) == 3

    def test_two_steps_forward(self) -> None:
        assert hex_distance(HexCoord(row=4, col=2), HexCoord(row=2, col=2)) == 2

    @given(board_hexes)
    def test_identity(self, a: HexCoord) -> None:
        assert hex_distance(a, a) == 0

    @given(board_hexes, board_hexes)
    def test_symmetry(self, a: HexCoord, b: HexCoord) -> None:
        assert hex_distance(a, b) == hex_distance(b, a)

    @given(board_hexes, board_hexes)
    def test_zero_only_for_equal_hexes(self, a: HexCoord, b: HexCoord) -> None:
        assert (hex_distance(a, b) == 0) == (a == b)

    @given(board_hexes, board_hexes, board_hexes)
    def test_triangle_inequality(self, a: HexCoord, b: HexCoord, c: HexCoord) -> None:
        assert hex_distance(a, c) <= hex_distance(a, b) + hex_distance(b, c)


class TestHexNeighbors:
    """Test bounded neighbor finding."""

    def test_interior_even_column(self) -> None:
        neighbors = set(hex_neighbors(HexCoord(row=2, col=2)))
        assert neighbors == {
            HexCoord(row=1, col=1),
            HexCoord(row=2, col=1),
            HexCoord(row=1, col=2),
            HexCoord(row=3, col=2),
            HexCoord(row=1, col=3),
            HexCoord(row=2, col=3),
        }

    def test_interior_odd_column(self) -> None:
        neighbors = set(hex_neighbors(HexCoord(row=2, col=3)))
        assert neighbors == {
            HexCoord(row=2, col=2),
            HexCoord(row=3, col=2),
            HexCoord(row=1, col=3),
            HexCoord(row=3, col=3),
            HexCoord(row=2, col=4),
            HexCoord(row=3, col=4),
        }

    def test_corner_is_clipped(self) -> None:
        assert set(hex_neighbors(HexCoord(row=0, col=0))) == {
            HexCoord(row=0, col=1),
            HexCoord(row=1, col=0),
        }

    @given(board_hexes)
    def test_every_neighbor_is_adjacent_and_on_board(self, coord: HexCoord) -> None:
        neighbors = hex_neighbors(coord)
        assert 2 <= len(neighbors) <= 6
        for neighbor in neighbors:
            assert in_bounds(neighbor)
            assert hex_distance(coord, neighbor) == 1

    @given(board_hexes)
    def test_neighbors_cover_every_hex_at_distance_one(self, coord: HexCoord) -> None:
        expected = {other for other in all_hexes() if hex_distance(coord, other) == 1}
        assert set(hex_neighbors(coord)) == expected


class TestBoard:
    """Test bounds and castle rows."""

    def test_in_bounds(self) -> None:
        assert in_bounds(HexCoord(row=0, col=5))
        assert not in_bounds(HexCoord(row=6, col=0))
        assert not in_bounds(HexCoord(row=0, col=-1))

    def test_all_hexes_is_row_major(self) -> None:
        hexes = all_hexes()
        assert len(hexes) == BOARD_SIZE * BOARD_SIZE
        assert hexes[0] == HexCoord(row=0, col=0)
        assert hexes[1] == HexCoord(row=0, col=1)

    def test_castle_rows(self) -> None:
        assert castle_row(1) == 5
        assert castle_row(2) == 0
        assert enemy_castle_row(1) == 0
        assert enemy_castle_row(2) == 5

    def test_unknown_faction(self) -> None:
        with pytest.raises(ValueError, match="faction must be 1 or 2"):
            castle_row(3)
