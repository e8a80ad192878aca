# =========================================================
# --- core_state_invariants.py ---
# =========================================================

import logging
from typing import Any

from .analyzer import scan_occupancy
from .constants import COLORS, NUM_OF_ORIGINS, NUM_OF_ALL_STONES

# =========================================================

logger = logging.getLogger(__name__)


def assert_stone_invariant(board: Any, where: str = "") -> None:
    """
    Check that the total number of stones for each color is consistent.

    This includes stones on the board, on the bar, and borne off stones.

    Args:
        board: The Board to check.
        where: Optional description of where the check is performed (for debugging).

    Raises:
        AssertionError: If the total stones for a color do not equal NUM_OF_ALL_STONES.
    """
    for color in COLORS:
        on_board = sum(board.num_of_stones(origin, color) for origin in range(NUM_OF_ORIGINS))
        bar = int(board.bars[color])
        home = int(board.homes[color])
        total = on_board + bar + home

        if total != NUM_OF_ALL_STONES:
            logger.error("Stone invariant failed at %s: %s", where, board)
            raise AssertionError(
                f"[STONE LOST] {color}: {total}/{NUM_OF_ALL_STONES} at {where}\n"
                f"Board={on_board}, Bar={bar}, Home={home}"
            )


def assert_cache_invariant(board: Any, where: str = "") -> None:
    """
    Check that every populated occupancy group agrees with a full rescan.

    Args:
        board: The Board whose analyzer is checked.
        where: Optional description of where the check is performed (for debugging).

    Raises:
        AssertionError: If a cached group differs from the board.
    """
    for color in COLORS:
        cached = board.analyzer.cached_group(color)
        if cached is None:
            continue
        expected = scan_occupancy(board, color)
        if cached != expected:
            logger.error("Cache invariant failed at %s: %s", where, board)
            raise AssertionError(
                f"[CACHE DESYNC] occupancy mismatch at {where}\n"
                f"Color={color}\n"
                f"Current ={cached}\n"
                f"Expected={expected}"
            )


def assert_board_invariant(board: Any, where: str = "") -> None:
    """
    Perform the full invariant check for a board.

    This includes:
    - Stone count consistency
    - Analyzer cache consistency

    Args:
        board: The Board to check.
        where: Optional description of where the check is performed (for debugging).

    Raises:
        AssertionError: If any invariant fails.
    """
    assert_stone_invariant(board, where)
    assert_cache_invariant(board, where)
