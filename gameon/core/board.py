# =========================================================
# --- core_board.py ---
# =========================================================

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import numpy as np

from .analyzer import BoardAnalyzer
from .constants import (
    Color, COLORS, COLOR_NORM, NUM_OF_ORIGINS, NUM_OF_ALL_STONES,
    STONE, POINT_ORIGINS, DEFAULT_POSITIONS, point_from_origin,
)
from .errors import (
    EmptySlotError, EmptyBarError, EmptyHomeError, IllegalStateError, StateStringError,
)
from .generator import SingleMovesGenerator
from .moves import Move
from .state_invariants import assert_board_invariant

# =========================================================

logger = logging.getLogger(__name__)

#: Number of fields in a state string: 2 bars, 24 origins, 2 homes
NUM_OF_STATE_FIELDS = NUM_OF_ORIGINS + 4

#: Offsets used by the 28-character encoding
STATE28_BASE = 64
STATE28_WHITE = 16
STATE28_COUNT = 15


@dataclass(frozen=True)
class Piece:
    """
    A single stone. Pieces of one color are interchangeable.

    Attributes:
        color (Color): The color of the piece.
    """
    color: Color

    @staticmethod
    def for_color(color: Any) -> "Piece":
        """Return the shared piece of a color (accepts Color, 'W', 'White', ...)."""
        if isinstance(color, Piece):
            return color
        if isinstance(color, str):
            color = COLOR_NORM[color]
        return PIECES[color]

    def __str__(self) -> str:
        return str(self.color)


PIECES = (Piece(Color.WHITE), Piece(Color.RED))


class Board:
    """
    The backgammon board: 24 origins, a bar and a home per color.

    Origins hold signed counts (positive for White, negative for Red), so
    one origin can never carry pieces of both colors. The board only
    changes through the six push/pop primitives, each of which reports
    the change to the bound BoardAnalyzer.

    Attributes:
        slots (np.ndarray): 24 signed piece counts indexed by origin.
        bars (np.ndarray): Pieces on the bar, indexed by Color.
        homes (np.ndarray): Pieces borne off, indexed by Color.
        analyzer (BoardAnalyzer): The derived-data cache bound to this board.
        debug (bool): Assert board invariants after every move.
    """

    def __init__(self, debug: bool = False) -> None:
        self.debug: bool = debug
        self.slots: np.ndarray = np.zeros(NUM_OF_ORIGINS, dtype=np.int8)
        self.bars: np.ndarray = np.zeros(2, dtype=np.int8)
        self.homes: np.ndarray = np.zeros(2, dtype=np.int8)
        self.analyzer: BoardAnalyzer = BoardAnalyzer(self)
        self._state_string: Optional[str] = None

    # ---------- Setup / Copy ----------
    def copy(self) -> "Board":
        """Return a deep copy of the board together with a copy of its analyzer cache."""
        board = Board(debug=self.debug)
        board.slots = self.slots.copy()
        board.bars = self.bars.copy()
        board.homes = self.homes.copy()
        board.analyzer = self.analyzer.copy(board)
        board._state_string = self._state_string
        return board

    def clear(self) -> "Board":
        """Remove every piece from the board."""
        self._replace(
            np.zeros(NUM_OF_ORIGINS, dtype=np.int8),
            np.zeros(2, dtype=np.int8),
            np.zeros(2, dtype=np.int8),
        )
        return self

    def setup(self) -> "Board":
        """Lay out the standard starting position."""
        self.place_stones_from_list(DEFAULT_POSITIONS)
        return self

    def place_stones_from_list(self, positions: Any) -> "Board":
        """
        Replace the board with a position list.

        Args:
            positions: Per color, a sequence of (point, count). Point 0 stands
                for the bar and point -1 for home.

        Raises:
            ValueError: If a color does not end up with exactly 15 stones.
        """
        slots = np.zeros(NUM_OF_ORIGINS, dtype=np.int8)
        bars = np.zeros(2, dtype=np.int8)
        homes = np.zeros(2, dtype=np.int8)
        for color in COLORS:
            total = 0
            for point, count in positions[color]:
                if point == 0:
                    bars[color] += count
                elif point == -1:
                    homes[color] += count
                else:
                    slots[POINT_ORIGINS[color][point]] = count * STONE[color]
                total += count
            if total != NUM_OF_ALL_STONES:
                raise ValueError(f"Invalid number of stones for {color}: {total}")
        self._replace(slots, bars, homes)
        return self

    def _replace(self, slots: np.ndarray, bars: np.ndarray, homes: np.ndarray) -> None:
        self.slots = slots
        self.bars = bars
        self.homes = homes
        self._state_string = None
        self.analyzer.clear()

    # ---------- Stone primitives ----------
    def num_of_stones(self, origin: int, color: Color) -> int:
        """
        Return the number of stones of a color on an origin.

        Args:
            origin (int): Board origin (0-23).
            color (Color): Color to count.

        Returns:
            int: Number of stones of the color at the origin.
        """
        val = int(self.slots[origin]) * STONE[color]
        return val if val > 0 else 0

    def has_bar(self, color: Color) -> bool:
        return bool(self.bars[color] > 0)

    def pop_origin(self, origin: int) -> Piece:
        """
        Remove the top piece of an origin.

        Raises:
            EmptySlotError: If the origin has no piece.
        """
        value = int(self.slots[origin])
        if value == 0:
            raise EmptySlotError(f"No piece on origin {origin}")
        color = Color.WHITE if value * STONE[Color.WHITE] > 0 else Color.RED
        self.slots[origin] = value - STONE[color]
        self._state_string = None
        self.analyzer.origin_popped(origin, color, abs(value) - 1)
        return PIECES[color]

    def push_origin(self, origin: int, piece: Any) -> "Board":
        """
        Add a piece to an origin.

        Callers must clear an opposing blot (to the bar) before pushing.

        Raises:
            IllegalStateError: If the origin holds pieces of the other color.
        """
        color = Piece.for_color(piece).color
        value = int(self.slots[origin])
        if value * STONE[color] < 0:
            raise IllegalStateError(f"Cannot push {color} onto origin {origin} held by {color.opponent}")
        self.slots[origin] = value + STONE[color]
        self._state_string = None
        self.analyzer.origin_pushed(origin, color, abs(value) + 1)
        return self

    def pop_bar(self, color: Color) -> Piece:
        """
        Remove a piece of a color from the bar.

        Raises:
            EmptyBarError: If the color has no piece on the bar.
        """
        if self.bars[color] <= 0:
            raise EmptyBarError(f"{color} has no piece on the bar")
        self.bars[color] -= 1
        self._state_string = None
        self.analyzer.bar_changed(color)
        return PIECES[color]

    def push_bar(self, color: Color, piece: Optional[Piece] = None) -> "Board":
        """Add a piece of a color to the bar."""
        self._check_piece(color, piece, "bar")
        self.bars[color] += 1
        self._state_string = None
        self.analyzer.bar_changed(color)
        return self

    def pop_home(self, color: Color) -> Piece:
        """
        Remove a piece of a color from home.

        Raises:
            EmptyHomeError: If the color has no piece home.
        """
        if self.homes[color] <= 0:
            raise EmptyHomeError(f"{color} has no piece home")
        self.homes[color] -= 1
        self._state_string = None
        self.analyzer.home_changed(color)
        return PIECES[color]

    def push_home(self, color: Color, piece: Optional[Piece] = None) -> "Board":
        """Add a piece of a color to home."""
        self._check_piece(color, piece, "home")
        self.homes[color] += 1
        self._state_string = None
        self.analyzer.home_changed(color)
        return self

    def _check_piece(self, color: Color, piece: Optional[Piece], where: str) -> None:
        if piece is not None and piece.color != color:
            raise IllegalStateError(f"Cannot push {piece.color} piece to {color} {where}")

    # ---------- Moves ----------
    def move(self, color: Color, origin: int, face: int) -> Move:
        """
        Build a move, apply it, and return it.

        Raises:
            IllegalMoveError: If the move is not legal.
            InvalidRollError: If face is not a die face.
        """
        move = self.build_move(color, origin, face)
        move.do()
        return move

    def build_move(self, color: Color, origin: int, face: int) -> Move:
        """
        Check and build a move without applying it.

        Raises:
            IllegalMoveError: If the move is not legal.
            InvalidRollError: If face is not a die face.
        """
        return Move.check(self, color, origin, face).build_move()

    def get_possible_moves_for_face(self, color: Color, face: int) -> List[Move]:
        """Return every legal single move of a color for one die face."""
        return SingleMovesGenerator().generate_moves(self, color, face)

    # ---------- Winner ----------
    def has_winner(self) -> bool:
        return self.get_winner() is not None

    def get_winner(self) -> Optional[Color]:
        """Return the color with all 15 stones home, if any."""
        for color in (Color.RED, Color.WHITE):
            if self.homes[color] == NUM_OF_ALL_STONES:
                return color
        return None

    # ---------- Serialization ----------
    def state_string(self) -> str:
        """
        Serialize the board.

        Format:
            <White bar>|<Red bar>|<count>:<W/R/empty>|... (24 origins) ...|<White home>|<Red home>

        Returns:
            str: The state string, memoized until the next mutation.
        """
        if self._state_string is None:
            fields = [str(int(self.bars[Color.WHITE])), str(int(self.bars[Color.RED]))]
            for value in self.slots:
                value = int(value)
                if value == 0:
                    fields.append("0:")
                else:
                    color = Color.WHITE if value * STONE[Color.WHITE] > 0 else Color.RED
                    fields.append(f"{abs(value)}:{color.abbr}")
            fields.append(str(int(self.homes[Color.WHITE])))
            fields.append(str(int(self.homes[Color.RED])))
            self._state_string = "|".join(fields)
        return self._state_string

    def set_state_string(self, text: str) -> "Board":
        """
        Load a state string (or a 28-character state28 string).

        The input is parsed completely before the board is touched.

        Raises:
            StateStringError: If the string is malformed.
        """
        if len(text) == NUM_OF_STATE_FIELDS and "|" not in text:
            return self.set_state28(text)
        fields = text.split("|")
        if len(fields) != NUM_OF_STATE_FIELDS:
            raise StateStringError(f"Expected {NUM_OF_STATE_FIELDS} fields, got {len(fields)}")
        bars = np.array([_parse_count(fields[0], "White bar"), _parse_count(fields[1], "Red bar")], dtype=np.int8)
        homes = np.array([_parse_count(fields[26], "White home"), _parse_count(fields[27], "Red home")], dtype=np.int8)
        slots = np.zeros(NUM_OF_ORIGINS, dtype=np.int8)
        for origin in range(NUM_OF_ORIGINS):
            count, color = _parse_slot(fields[origin + 2], origin)
            if color is not None:
                slots[origin] = count * STONE[color]
        logger.debug("Loaded state string %s", text)
        self._replace(slots, bars, homes)
        return self

    def state28(self) -> str:
        """
        Serialize the board into 28 printable characters.

        Each location is one character: 64 | count, plus 16 for a White origin.
        """
        codes = [STATE28_BASE | int(self.bars[Color.WHITE]), STATE28_BASE | int(self.bars[Color.RED])]
        for value in self.slots:
            value = int(value)
            code = STATE28_BASE | abs(value)
            if value * STONE[Color.WHITE] > 0:
                code |= STATE28_WHITE
            codes.append(code)
        codes.append(STATE28_BASE | int(self.homes[Color.WHITE]))
        codes.append(STATE28_BASE | int(self.homes[Color.RED]))
        return "".join(chr(code) for code in codes)

    def set_state28(self, text: str) -> "Board":
        """
        Load a 28-character state string.

        Raises:
            StateStringError: If the string is malformed.
        """
        if len(text) != NUM_OF_STATE_FIELDS:
            raise StateStringError(f"state28 must have {NUM_OF_STATE_FIELDS} characters, got {len(text)}")
        codes = [ord(char) for char in text]
        for idx, code in enumerate(codes):
            if code & ~(STATE28_BASE | STATE28_WHITE | STATE28_COUNT) or not code & STATE28_BASE:
                raise StateStringError(f"Invalid state28 character {text[idx]!r} at {idx}")
        slots = np.zeros(NUM_OF_ORIGINS, dtype=np.int8)
        for origin in range(NUM_OF_ORIGINS):
            code = codes[origin + 2]
            color = Color.WHITE if code & STATE28_WHITE else Color.RED
            slots[origin] = (code & STATE28_COUNT) * STONE[color]
        bars = np.array([codes[0] & STATE28_COUNT, codes[1] & STATE28_COUNT], dtype=np.int8)
        homes = np.array([codes[26] & STATE28_COUNT, codes[27] & STATE28_COUNT], dtype=np.int8)
        self._replace(slots, bars, homes)
        return self

    def state_to_list(self) -> List[List[Tuple[int, int]]]:
        """Serialize the board into a list of (point, count) per color, bar as 0, home as -1."""
        positions: List[List[Tuple[int, int]]] = [[], []]
        for color in COLORS:
            if self.bars[color] > 0:
                positions[color].append((0, int(self.bars[color])))
            for origin in range(NUM_OF_ORIGINS):
                count = self.num_of_stones(origin, color)
                if count > 0:
                    positions[color].append((point_from_origin(color, origin), count))
            if self.homes[color] > 0:
                positions[color].append((-1, int(self.homes[color])))
        return positions

    def inverted(self) -> "Board":
        """Return a board with the colors swapped and the origins mirrored."""
        board = Board(debug=self.debug)
        slots = -self.slots[::-1].copy()
        bars = self.bars[::-1].copy()
        homes = self.homes[::-1].copy()
        board._replace(slots, bars, homes)
        return board

    # ---------- Factories ----------
    @classmethod
    def initial(cls, debug: bool = False) -> "Board":
        return cls(debug=debug).setup()

    @classmethod
    def from_state_string(cls, text: str, debug: bool = False) -> "Board":
        return cls(debug=debug).set_state_string(text)

    @classmethod
    def from_state28(cls, text: str, debug: bool = False) -> "Board":
        return cls(debug=debug).set_state28(text)

    # ---------- Debug / Assertions ----------
    def _assert(self, where: str = "") -> None:
        """Assert board and cache invariants if debug mode is active."""
        if self.debug:
            assert_board_invariant(self, where)

    # ---------- Dunder ----------
    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            np.array_equal(self.slots, other.slots) and
            np.array_equal(self.bars, other.bars) and
            np.array_equal(self.homes, other.homes)
        )

    def __hash__(self) -> int:
        return hash(self.state_string())

    def __str__(self) -> str:
        return self.state_string()

    def __repr__(self) -> str:
        return f"<Board {self.state_string()}>"


def _parse_count(field: str, where: str) -> int:
    try:
        count = int(field)
    except ValueError:
        raise StateStringError(f"Invalid count {field!r} for {where}") from None
    if not 0 <= count <= NUM_OF_ALL_STONES:
        raise StateStringError(f"Count {count} out of range for {where}")
    return count


def _parse_slot(field: str, origin: int) -> Tuple[int, Optional[Color]]:
    count_str, _, abbr = field.partition(":")
    count = _parse_count(count_str, f"origin {origin}")
    if count == 0:
        return 0, None
    if abbr not in COLOR_NORM:
        raise StateStringError(f"Invalid color {abbr!r} for origin {origin}")
    return count, COLOR_NORM[abbr]

