# =========================================================
# --- core_generator.py ---
# =========================================================

from typing import TYPE_CHECKING, Iterable, List

from .constants import Color, BAR_ORIGIN, DIRECTION, ORIGIN_POINTS
from .moves import Move, BearoffMove, RegularMove, check_face

from gameon.utils.bitmask import indices_from_bits

if TYPE_CHECKING:
    from .board import Board

# =========================================================

class SingleMovesGenerator:
    """Generates legal single moves for a given die face and board."""

    def generate_moves(self, board: "Board", color: Color, face: int) -> List[Move]:
        """
        Generate all legal single moves of a color for one die face.

        With a piece on the bar only the come-in move is considered. Otherwise
        the occupied origins are walked with quick filters, and the surviving
        moves are built as already checked.

        Args:
            board: The board to move on.
            color: The moving color.
            face: Die face to use.

        Returns:
            List of legal Move instances, not yet applied.

        Raises:
            InvalidRollError: If face is not a die face.
        """
        check_face(face)
        analyzer = board.analyzer
        if analyzer.has_bar(color):
            check = Move.check(board, color, BAR_ORIGIN, face)
            return [check.build_move()] if check.is_legal else []

        moves: List[Move] = []
        may_bearoff = analyzer.may_bearoff(color)
        max_point = analyzer.max_point_occupied(color)
        points = ORIGIN_POINTS[color]
        opponent = color.opponent

        for origin in indices_from_bits(analyzer.occupied_mask(color)):
            point = points[origin]
            if point <= face:
                if not may_bearoff:
                    continue
                # Overshooting is only allowed from the rearmost point
                if point < face and point < max_point:
                    continue
                moves.append(BearoffMove(board, color, origin, face, is_checked=True))
            else:
                dest = origin + face * DIRECTION[color]
                if board.num_of_stones(dest, opponent) > 1:
                    continue
                moves.append(RegularMove(board, color, origin, face, is_checked=True))

        return moves

    def any_move_left(self, board: "Board", color: Color, faces: Iterable[int]) -> bool:
        """
        Check if a color has a legal move for any of the remaining faces.

        Args:
            board: The board to move on.
            color: The moving color.
            faces: Remaining die faces.

        Returns:
            True if at least one move is possible, False otherwise.
        """
        for face in set(faces):
            if self.generate_moves(board, color, face):
                return True
        return False
