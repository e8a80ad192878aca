# =========================================================
# --- core_undo.py ---
# =========================================================

import logging
from collections import deque
from typing import Deque, Optional

from .board import Board
from .moves import Move

# =========================================================

logger = logging.getLogger(__name__)


class Undo:
    """
    Hybrid undo manager for a board.

    Maintains both:
        - move-based history (reversible Move undo)
        - snapshot-based history (full board snapshots)
    """

    def __init__(self, max_moves: int = 100, max_snapshots: int = 10) -> None:
        """
        Initialize the Undo manager.

        Args:
            max_moves: Maximum number of moves to store for undo.
            max_snapshots: Maximum number of board snapshots to store.
        """
        self.move_history: Deque[Move] = deque(maxlen=max_moves)
        self.snapshots: Deque[Board] = deque(maxlen=max_snapshots)

    def record_move(self, move: Move) -> None:
        """
        Record an applied move for later undo.

        Args:
            move: The Move to record.

        Raises:
            ValueError: If move is None.
        """
        if move is None:
            raise ValueError("Move cannot be None")
        self.move_history.append(move)

    def undo_last_move(self, board: Board) -> Optional[Move]:
        """
        Undo the last recorded move or snapshot.

        If no moves are available, falls back to the last snapshot.

        Args:
            board: The board to revert.

        Returns:
            The Move that was undone, or None when a snapshot was restored.

        Raises:
            ValueError: If there is nothing to undo, or the last move belongs to
                another board or is not applied.
        """
        if self.move_history:
            move = self.move_history[-1]
            if move.board is not board:
                raise ValueError("Move was recorded for another board")
            if not move.is_done:
                raise ValueError(f"Move {move} is not applied")
            move.undo()
            self.move_history.pop()
            logger.debug("Undid move %s", move)
            return move
        elif self.snapshots:
            self.undo_last_snapshot(board)
            return None
        else:
            raise ValueError("Nothing to undo")

    def record_snapshot(self, board: Board) -> None:
        """
        Record a full snapshot of the board.

        Args:
            board: The board to snapshot.
        """
        self.snapshots.append(board.copy())

    def undo_last_snapshot(self, board: Board) -> None:
        """
        Revert the board to the last recorded snapshot.

        Args:
            board: The board to revert.

        Raises:
            ValueError: If no snapshots are available.
        """
        if not self.snapshots:
            raise ValueError("No snapshots available")

        snapshot = self.snapshots.pop()
        board.set_state_string(snapshot.state_string())
        logger.debug("Restored snapshot %s", snapshot)

    def clear(self) -> None:
        """Forget all recorded moves and snapshots."""
        self.move_history.clear()
        self.snapshots.clear()
