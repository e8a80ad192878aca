# =========================================================
# --- core_constants.py ---
# =========================================================

from enum import IntEnum
from typing import Dict, Tuple

from gameon.utils.bitmask import bits_from_indices, set_all_bits

# =========================================================

"""
Board-related constants and the coordinate system.

This module defines:
- Colors, their abbreviations and movement directions
- The bijection between per-color points (1-24) and origins (0-23)
- Home board ranges and bitmasks over origins
- Default starting positions
"""


class Color(IntEnum):
    """
    The two sides of the board. Values double as indexes into per-color tuples.
    """
    WHITE = 0
    RED = 1

    @property
    def opponent(self) -> "Color":
        """Return the other color."""
        return Color(1 - self)

    @property
    def abbr(self) -> str:
        """Return the one-letter abbreviation used in state strings."""
        return COLOR_ABBR[self]

    def __str__(self) -> str:
        return self.name.capitalize()

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


#: Both colors in canonical (serialization) order
COLORS = (Color.WHITE, Color.RED)

COLOR_ABBR = ("W", "R")

#: Accepted spellings when reading colors from the outside
COLOR_NORM: Dict[str, Color] = {
    "W": Color.WHITE,
    "R": Color.RED,
    "White": Color.WHITE,
    "Red": Color.RED,
}

#: Number of board slots (origins 0-23)
NUM_OF_ORIGINS = 24

#: Origin used in move coordinates for a piece entering from the bar
BAR_ORIGIN = -1

#: Pip distance counted for a piece on the bar
BAR_PIPS = 25

#: Total number of stones per color
NUM_OF_ALL_STONES = 15

#: Die faces
MIN_FACE = 1
MAX_FACE = 6

#: Movement directions over origins
#: White moves "up" (+1) from origin 0, Red moves "down" (-1) from origin 23
DIRECTION = (1, -1)

#: Sign of a color's stones in the board array
#: Positive for White, negative for Red
STONE = (1, -1)


def _build_coordinates() -> Tuple[Tuple[Tuple[int, ...], ...], Tuple[Dict[int, int], ...]]:
    origin_points = ([0] * NUM_OF_ORIGINS, [0] * NUM_OF_ORIGINS)
    point_origins: Tuple[Dict[int, int], ...] = ({BAR_ORIGIN: BAR_ORIGIN}, {BAR_ORIGIN: BAR_ORIGIN})
    for origin in range(NUM_OF_ORIGINS):
        # White origin 0 is point 24, Red origin 0 is point 1
        white_point = NUM_OF_ORIGINS - origin
        red_point = origin + 1
        origin_points[Color.WHITE][origin] = white_point
        origin_points[Color.RED][origin] = red_point
        point_origins[Color.WHITE][white_point] = origin
        point_origins[Color.RED][red_point] = origin
    return tuple(tuple(points) for points in origin_points), point_origins


#: ORIGIN_POINTS[color][origin] -> point (1-24)
#: POINT_ORIGINS[color][point] -> origin (0-23), -1 maps to -1
ORIGIN_POINTS, POINT_ORIGINS = _build_coordinates()


def point_from_origin(color: Color, origin: int) -> int:
    """Return the color-relative point (1-24) for an origin, -1 for the bar."""
    if origin == BAR_ORIGIN:
        return BAR_ORIGIN
    return ORIGIN_POINTS[color][origin]


def origin_from_point(color: Color, point: int) -> int:
    """Return the origin (0-23) for a color-relative point, -1 for the bar."""
    return POINT_ORIGINS[color][point]


#: Home board origins for each color, from the 1 point outwards
INSIDE_ORIGINS = (
    tuple(POINT_ORIGINS[Color.WHITE][p] for p in range(1, 7)),
    tuple(POINT_ORIGINS[Color.RED][p] for p in range(1, 7)),
)

#: Origins outside each color's home board, from the 7 point outwards
OUTSIDE_ORIGINS = (
    tuple(POINT_ORIGINS[Color.WHITE][p] for p in range(7, 25)),
    tuple(POINT_ORIGINS[Color.RED][p] for p in range(7, 25)),
)

#: Bitmask representing all origins on the board
FULL_BOARD_MASK = set_all_bits(0, NUM_OF_ORIGINS - 1)

#: Bitmasks for each color's home board
HOME_MASK = (
    bits_from_indices(INSIDE_ORIGINS[Color.WHITE]),
    bits_from_indices(INSIDE_ORIGINS[Color.RED]),
)

#: Bitmasks for outside home board (complement of home)
OUTSIDE_HOME_MASK = (
    HOME_MASK[Color.WHITE] ^ FULL_BOARD_MASK,
    HOME_MASK[Color.RED] ^ FULL_BOARD_MASK,
)

#: Default starting positions as (point, number_of_stones)
#: Both colors share the layout in their own point numbering:
#: 2 stones on 24, 5 on 13, 3 on 8, 5 on 6
DEFAULT_POSITIONS = (
    ((24, 2), (13, 5), (8, 3), (6, 5)),
    ((24, 2), (13, 5), (8, 3), (6, 5)),
)

#: Serialized starting board
INITIAL_STATE_STRING = (
    "0|0|2:W|0:|0:|0:|0:|5:R|0:|3:R|0:|0:|0:|5:W|5:R|0:|0:|0:|3:W|0:|5:W|0:|0:|0:|0:|2:R|0|0"
)
