# =========================================================
# --- core_analyzer.py ---
# =========================================================

import logging
import math
from bisect import bisect_left, insort
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .constants import (
    Color, COLORS, NUM_OF_ORIGINS, NUM_OF_ALL_STONES, BAR_PIPS,
    DIRECTION, STONE, ORIGIN_POINTS, POINT_ORIGINS, OUTSIDE_HOME_MASK,
)
from .errors import IllegalStateError

from gameon.utils.bitmask import bits_from_indices, set_bit, clear_bit

# =========================================================

logger = logging.getLogger(__name__)


@dataclass
class OccupancyGroup:
    """
    Co-dependent occupancy aggregates for one color.

    The group is always populated as a whole from a single scan of the board
    and afterwards patched in place, so every field agrees with the others.

    Attributes:
        origins_occupied (List[int]): Origins with one or more pieces, ascending.
        points_occupied (List[int]): The same positions as points, ascending.
        origins_held (List[int]): Origins with two or more pieces, ascending.
        points_held (List[int]): The same positions as points, ascending.
        held (List[bool]): held[origin] is True iff the origin has two or more pieces.
        occupied_mask (int): Bitmask of origins_occupied.
        min_origin (Optional[int]): Lowest occupied origin, None if the color has no piece on the board.
        max_origin (Optional[int]): Highest occupied origin.
        min_point (Optional[int]): Lowest occupied point.
        max_point (Optional[int]): Highest occupied point.
    """
    origins_occupied: List[int]
    points_occupied: List[int]
    origins_held: List[int]
    points_held: List[int]
    held: List[bool]
    occupied_mask: int
    min_origin: Optional[int] = None
    max_origin: Optional[int] = None
    min_point: Optional[int] = None
    max_point: Optional[int] = None

    def copy(self) -> "OccupancyGroup":
        """Return a copy that shares no mutable sequence with this group."""
        return OccupancyGroup(
            list(self.origins_occupied),
            list(self.points_occupied),
            list(self.origins_held),
            list(self.points_held),
            list(self.held),
            self.occupied_mask,
            self.min_origin,
            self.max_origin,
            self.min_point,
            self.max_point,
        )

    def refresh_extrema(self, color: Color) -> None:
        """Derive min/max origin and point from the ends of the sorted origin list."""
        origins = self.origins_occupied
        if not origins:
            self.min_origin = self.max_origin = None
            self.min_point = self.max_point = None
            return
        self.min_origin = origins[0]
        self.max_origin = origins[-1]
        points = ORIGIN_POINTS[color]
        if DIRECTION[color] == 1:
            # White point 1 is origin 23, so the lowest origin is the highest point
            self.min_point = points[self.max_origin]
            self.max_point = points[self.min_origin]
        else:
            self.min_point = points[self.min_origin]
            self.max_point = points[self.max_origin]


def _points_for(color: Color, origins: List[int]) -> List[int]:
    """Map ascending origins to ascending points."""
    points = [ORIGIN_POINTS[color][origin] for origin in origins]
    if DIRECTION[color] == 1:
        points.reverse()
    return points


def _remove_sorted(values: List[int], value: int) -> None:
    idx = bisect_left(values, value)
    if idx == len(values) or values[idx] != value:
        raise IllegalStateError(f"Cache desync: {value} not in {values}")
    del values[idx]


def scan_occupancy(board: Any, color: Color) -> OccupancyGroup:
    """
    Build the occupancy group of a color with a full scan of the board.

    Args:
        board: The Board to scan.
        color: Color to collect.

    Returns:
        A freshly populated OccupancyGroup.
    """
    counts = board.slots * STONE[color]
    origins = np.flatnonzero(counts > 0).tolist()
    origins_held = np.flatnonzero(counts > 1).tolist()
    held = [False] * NUM_OF_ORIGINS
    for origin in origins_held:
        held[origin] = True
    group = OccupancyGroup(
        origins,
        _points_for(color, origins),
        origins_held,
        _points_for(color, origins_held),
        held,
        bits_from_indices(origins),
    )
    group.refresh_extrema(color)
    return group


class _ColorCache:
    """Per-color cache slots. None means absent."""

    __slots__ = ("group", "blot_origins", "pip_count", "may_bearoff")

    def __init__(self) -> None:
        self.group: Optional[OccupancyGroup] = None
        self.blot_origins: Optional[List[int]] = None
        self.pip_count: Optional[int] = None
        self.may_bearoff: Optional[bool] = None

    def invalidate_scalars(self) -> None:
        self.pip_count = None
        self.may_bearoff = None

    def copy(self) -> "_ColorCache":
        other = _ColorCache()
        if self.group is not None:
            other.group = self.group.copy()
        if self.blot_origins is not None:
            other.blot_origins = list(self.blot_origins)
        other.pip_count = self.pip_count
        other.may_bearoff = self.may_bearoff
        return other


@dataclass(frozen=True)
class Blot:
    """
    A single piece exposed to the opponent.

    Attributes:
        origin (int): Origin of the blot.
        point (int): Point of the blot, relative to its color.
        min_distance (float): Distance to the nearest attacker, math.inf if none.
        direct_count (int): Attackers within 6 pips.
        indirect_count (int): Attackers 7 to 11 pips away.
    """
    origin: int
    point: int
    min_distance: float
    direct_count: int
    indirect_count: int


@dataclass(frozen=True)
class Prime:
    """A run of two or more consecutive held points."""
    point_start: int
    point_end: int
    start: int
    end: int
    size: int


class BoardAnalyzer:
    """
    Derived-data cache bound to exactly one Board.

    Queries are answered from cached aggregates that are populated lazily
    and patched by the board's push/pop notifications. Cached lists are
    returned by reference; callers must copy before modifying them.

    Attributes:
        board: The Board this analyzer reads.
    """

    def __init__(self, board: Any) -> None:
        self.board = board
        self._caches: List[_ColorCache] = [_ColorCache(), _ColorCache()]
        self._disengaged: Optional[bool] = None

    # ---------- Lifecycle ----------
    def clear(self) -> None:
        """Drop every cached aggregate (after a wholesale board replacement)."""
        self._caches = [_ColorCache(), _ColorCache()]
        self._disengaged = None

    def copy(self, board: Any) -> "BoardAnalyzer":
        """Return an analyzer bound to board, with a deep copy of this cache."""
        analyzer = BoardAnalyzer(board)
        analyzer._caches = [cache.copy() for cache in self._caches]
        analyzer._disengaged = self._disengaged
        return analyzer

    def cached_group(self, color: Color) -> Optional[OccupancyGroup]:
        """Return the occupancy group of a color if populated, without populating it."""
        return self._caches[color].group

    # ---------- Board notifications ----------
    def origin_pushed(self, origin: int, color: Color, count: int) -> None:
        """
        Patch the cache after a piece of color was pushed onto origin.

        Args:
            origin: The origin that changed.
            color: Color of the pushed piece.
            count: Number of pieces on the origin after the push.
        """
        cache = self._caches[color]
        cache.invalidate_scalars()
        self._disengaged = None
        if count > 2:
            return
        cache.blot_origins = None
        group = cache.group
        if group is None:
            return
        point = ORIGIN_POINTS[color][origin]
        if count == 1:
            insort(group.origins_occupied, origin)
            insort(group.points_occupied, point)
            group.occupied_mask = set_bit(origin, group.occupied_mask)
            group.refresh_extrema(color)
        else:
            insort(group.origins_held, origin)
            insort(group.points_held, point)
            group.held[origin] = True

    def origin_popped(self, origin: int, color: Color, count: int) -> None:
        """
        Patch the cache after a piece of color was popped from origin.

        Args:
            origin: The origin that changed.
            color: Color of the popped piece.
            count: Number of pieces left on the origin.
        """
        cache = self._caches[color]
        cache.invalidate_scalars()
        self._disengaged = None
        if count > 1:
            return
        cache.blot_origins = None
        group = cache.group
        if group is None:
            return
        point = ORIGIN_POINTS[color][origin]
        if count == 1:
            _remove_sorted(group.origins_held, origin)
            _remove_sorted(group.points_held, point)
            group.held[origin] = False
        else:
            _remove_sorted(group.origins_occupied, origin)
            _remove_sorted(group.points_occupied, point)
            group.occupied_mask = clear_bit(origin, group.occupied_mask)
            group.refresh_extrema(color)

    def bar_changed(self, color: Color) -> None:
        """Invalidate the scalars that depend on the bar of color."""
        self._caches[color].invalidate_scalars()
        self._disengaged = None

    def home_changed(self, color: Color) -> None:
        """Invalidate the scalars that depend on the home of color."""
        self._caches[color].invalidate_scalars()
        self._disengaged = None

    # ---------- Occupancy ----------
    def _group(self, color: Color) -> OccupancyGroup:
        cache = self._caches[color]
        if cache.group is None:
            logger.debug("Populating occupancy of %s", color)
            cache.group = scan_occupancy(self.board, color)
        return cache.group

    def origins_occupied(self, color: Color) -> List[int]:
        """Origins with one or more pieces of color, ascending."""
        return self._group(color).origins_occupied

    def points_occupied(self, color: Color) -> List[int]:
        """Points with one or more pieces of color, ascending."""
        return self._group(color).points_occupied

    def origins_held(self, color: Color) -> List[int]:
        """Origins with two or more pieces of color, ascending."""
        return self._group(color).origins_held

    def points_held(self, color: Color) -> List[int]:
        """Points with two or more pieces of color, ascending."""
        return self._group(color).points_held

    def is_origin_held(self, color: Color, origin: int) -> bool:
        return self._group(color).held[origin]

    def occupied_mask(self, color: Color) -> int:
        return self._group(color).occupied_mask

    def min_origin_occupied(self, color: Color) -> Optional[int]:
        return self._group(color).min_origin

    def max_origin_occupied(self, color: Color) -> Optional[int]:
        return self._group(color).max_origin

    def min_point_occupied(self, color: Color) -> Optional[int]:
        return self._group(color).min_point

    def max_point_occupied(self, color: Color) -> Optional[int]:
        return self._group(color).max_point

    def blot_origins(self, color: Color) -> List[int]:
        """Origins with exactly one piece of color, ascending."""
        cache = self._caches[color]
        if cache.blot_origins is None:
            slots = self.board.slots
            cache.blot_origins = [
                origin for origin in self.origins_occupied(color)
                if abs(int(slots[origin])) == 1
            ]
        return cache.blot_origins

    # ---------- Scalars ----------
    def pip_count(self, color: Color) -> int:
        """Total pips color needs to bear off every piece."""
        cache = self._caches[color]
        if cache.pip_count is None:
            slots = self.board.slots
            points = ORIGIN_POINTS[color]
            count = int(self.board.bars[color]) * BAR_PIPS
            for origin in self.origins_occupied(color):
                count += abs(int(slots[origin])) * points[origin]
            cache.pip_count = count
        return cache.pip_count

    def pip_counts(self) -> Dict[Color, int]:
        return {color: self.pip_count(color) for color in COLORS}

    def may_bearoff(self, color: Color) -> bool:
        """True if color has no piece on the bar and none outside its home board."""
        cache = self._caches[color]
        if cache.may_bearoff is None:
            cache.may_bearoff = (
                not self.has_bar(color)
                and (self.occupied_mask(color) & OUTSIDE_HOME_MASK[color]) == 0
            )
        return cache.may_bearoff

    def is_disengaged(self) -> bool:
        """True if no further contact between the two colors is possible."""
        if self._disengaged is None:
            if self.is_all_home(Color.WHITE) or self.is_all_home(Color.RED):
                disengaged = True
            elif self.has_bar(Color.WHITE) or self.has_bar(Color.RED):
                disengaged = False
            else:
                backmost_white = self.min_origin_occupied(Color.WHITE)
                backmost_red = self.max_origin_occupied(Color.RED)
                if backmost_white is None or backmost_red is None:
                    disengaged = True
                else:
                    disengaged = backmost_white > backmost_red
            self._disengaged = disengaged
        return self._disengaged

    # ---------- Direct board reads ----------
    def has_bar(self, color: Color) -> bool:
        return bool(self.board.bars[color] > 0)

    def has_piece_behind(self, color: Color, origin: int) -> bool:
        """True if color has a piece farther from home than origin."""
        if DIRECTION[color] == 1:
            backmost = self.min_origin_occupied(color)
            return backmost is not None and backmost < origin
        backmost = self.max_origin_occupied(color)
        return backmost is not None and backmost > origin

    def can_occupy_origin(self, color: Color, origin: int) -> bool:
        """True unless the opponent holds the origin."""
        return self.board.num_of_stones(origin, color.opponent) < 2

    def occupies_origin(self, color: Color, origin: int) -> bool:
        return self.board.num_of_stones(origin, color) > 0

    def origin_occupier(self, origin: int) -> Optional[Color]:
        value = int(self.board.slots[origin])
        if value == 0:
            return None
        return Color.WHITE if value * STONE[Color.WHITE] > 0 else Color.RED

    def pieces_on_origin(self, color: Color, origin: int) -> int:
        return self.board.num_of_stones(origin, color)

    def pieces_on_point(self, color: Color, point: int) -> int:
        return self.pieces_on_origin(color, POINT_ORIGINS[color][point])

    def pieces_on_bar(self, color: Color) -> int:
        return int(self.board.bars[color])

    def pieces_home(self, color: Color) -> int:
        return int(self.board.homes[color])

    def is_all_home(self, color: Color) -> bool:
        return bool(self.board.homes[color] == NUM_OF_ALL_STONES)

    def nth_piece_on_origin(self, origin: int, n: int) -> Optional[Color]:
        """Color of the nth piece (0-based) on origin, if there is one."""
        if n < abs(int(self.board.slots[origin])):
            return self.origin_occupier(origin)
        return None

    def stat_origin(self, origin: int) -> Dict[str, Any]:
        stat: Dict[str, Any] = {"count": abs(int(self.board.slots[origin]))}
        occupier = self.origin_occupier(origin)
        if occupier is not None:
            stat["color"] = occupier
        return stat

    def stat_point(self, color: Color, point: int) -> Dict[str, Any]:
        return self.stat_origin(POINT_ORIGINS[color][point])

    # ---------- Positional analysis ----------
    def blots(self, color: Color, include_all: bool = True) -> List[Blot]:
        """
        Describe the blots of color and the opposing pieces that could hit them.

        Attackers are opponent pieces that still have to pass the blot,
        including the opponent's bar. Distances are in points relative to color.

        Args:
            color: Color whose blots are examined.
            include_all: If False, skip blots that no attacker can reach
                within 11 pips.

        Returns:
            List of Blot, ordered from the highest point down.
        """
        blots: List[Blot] = []

        origins = self.blot_origins(color)
        if not origins:
            return blots

        points, opposers = self._blot_prep(color, origins)

        if not opposers and not include_all:
            return blots

        opposer_count = len(opposers)
        min_opposer = opposers[-1] if opposers else None
        max_opposer_min_index = 0

        for point in points:

            if not include_all:
                if point < min_opposer:
                    break
                if max_opposer_min_index < opposer_count and point - opposers[max_opposer_min_index] > 11:
                    continue

            min_distance = math.inf
            direct_count = 0
            indirect_count = 0

            if min_opposer is not None and point > min_opposer:
                for j in range(max_opposer_min_index, opposer_count):
                    opposer = opposers[j]
                    if opposer > point:
                        # already past this blot, and every lower blot
                        max_opposer_min_index = j + 1
                        continue
                    distance = point - opposer
                    if distance < min_distance:
                        min_distance = distance
                    if distance < 7:
                        direct_count += 1
                    elif distance < 12:
                        indirect_count += 1
                    else:
                        break

            if min_distance > 11 and not include_all:
                continue

            blots.append(Blot(
                origin=POINT_ORIGINS[color][point],
                point=point,
                min_distance=min_distance,
                direct_count=direct_count,
                indirect_count=indirect_count,
            ))

        return blots

    def _blot_prep(self, color: Color, origins: List[int]) -> Tuple[List[int], List[int]]:
        # Opponent positions are expressed as points of color, both lists descending
        points = _points_for(color, origins)
        points.reverse()
        opposers = _points_for(color, self.origins_occupied(color.opponent))
        opposers.reverse()
        if self.has_bar(color.opponent):
            opposers.append(0)
        return points, opposers

    def primes(self, color: Color) -> List[Prime]:
        """Runs of two or more consecutive held points of color."""
        points_held = list(self.points_held(color))
        primes: List[Prime] = []
        while len(points_held) > 1:
            point_start = points_held.pop(0)
            point_end = point_start
            while points_held and points_held[0] == point_end + 1:
                point_end = points_held.pop(0)
            if point_end > point_start:
                primes.append(Prime(
                    point_start=point_start,
                    point_end=point_end,
                    start=POINT_ORIGINS[color][point_start],
                    end=POINT_ORIGINS[color][point_end],
                    size=point_end - point_start + 1,
                ))
        return primes

    # ---------- Validation ----------
    @staticmethod
    def validate_legal_board(board: Any) -> None:
        """
        Check that a board could occur in a real game.

        Raises:
            IllegalStateError: On a wrong slot count, negative counts, a color
                without exactly 15 pieces, or both colors all home / all on the bar.
        """
        if len(board.slots) != NUM_OF_ORIGINS:
            raise IllegalStateError(f"Board has {len(board.slots)} slots")
        for color in COLORS:
            bar = int(board.bars[color])
            home = int(board.homes[color])
            if bar < 0 or home < 0:
                raise IllegalStateError(f"{color} has a negative bar or home count")
            on_board = sum(board.num_of_stones(origin, color) for origin in range(NUM_OF_ORIGINS))
            total = on_board + bar + home
            if total != NUM_OF_ALL_STONES:
                logger.debug("Illegal board %s: %s has %d pieces", board, color, total)
                raise IllegalStateError(f"{color} has {total} pieces on the board")
        if all(board.homes[color] == NUM_OF_ALL_STONES for color in COLORS):
            raise IllegalStateError("both colors have 15 on home")
        if all(board.bars[color] == NUM_OF_ALL_STONES for color in COLORS):
            raise IllegalStateError("both colors have 15 on the bar")
