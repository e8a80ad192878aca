import random
from typing import List

from gameon.core.board import Board
from gameon.core.constants import Color
from gameon.core.moves import Move

from states import STATES


def fetch_board(name: str, debug: bool = False) -> Board:
    """Load a named test state."""
    return Board.from_state_string(STATES[name], debug=debug)


def make_random_moves(board: Board, count: int, rng: random.Random) -> List[Move]:
    """
    Apply up to count random legal moves, alternating colors.

    Returns the applied moves in order.
    """
    moves: List[Move] = []
    color = Color.WHITE
    attempts = 0
    while len(moves) < count and attempts < count * 20 and not board.has_winner():
        attempts += 1
        face = rng.randint(1, 6)
        candidates = board.get_possible_moves_for_face(color, face)
        if candidates:
            move = rng.choice(candidates)
            move.do()
            moves.append(move)
        color = color.opponent
    return moves


def populate_caches(board: Board) -> None:
    """Pull every cached aggregate of both colors."""
    analyzer = board.analyzer
    for color in Color:
        analyzer.origins_occupied(color)
        analyzer.blot_origins(color)
        analyzer.pip_count(color)
        analyzer.may_bearoff(color)
    analyzer.is_disengaged()
