# =========================================================
# --- core_moves.py ---
# =========================================================

import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Type

from .constants import (
    Color, BAR_ORIGIN, DIRECTION, NUM_OF_ORIGINS, ORIGIN_POINTS, MIN_FACE, MAX_FACE,
    point_from_origin,
)
from .errors import (
    IllegalStateError, InvalidRollError, IllegalMoveError,
    PieceOnBarError, NoPieceOnBarError, NoPieceOnSlotError, OccupiedSlotError,
    MayNotBearoffError, IllegalBearoffError, MoveOutOfRangeError,
)

if TYPE_CHECKING:
    from .board import Board

# =========================================================

class MoveType(Enum):
    """
    Enumeration of the single move variants.

    Attributes:
        COME_IN: Enter a piece from the bar.
        REGULAR: Move a piece from one origin to another.
        BEAR_OFF: Move a piece from the home board to home.
    """
    COME_IN = 1
    REGULAR = 2
    BEAR_OFF = 3


class IllegalKind(Enum):
    """Reasons a move is rejected."""
    PIECE_ON_BAR = 1
    NO_PIECE_ON_BAR = 2
    NO_PIECE_ON_SLOT = 3
    OCCUPIED_SLOT = 4
    MAY_NOT_BEAR_OFF = 5
    ILLEGAL_BEAR_OFF = 6
    MOVE_OUT_OF_RANGE = 7


_MESSAGES: Dict[IllegalKind, str] = {
    IllegalKind.PIECE_ON_BAR: "{color} has a piece on the bar",
    IllegalKind.NO_PIECE_ON_BAR: "{color} does not have a piece on the bar",
    IllegalKind.NO_PIECE_ON_SLOT: "{color} does not have a piece on point {point}",
    IllegalKind.OCCUPIED_SLOT: "{color} may not occupy point {point}",
    IllegalKind.MAY_NOT_BEAR_OFF: "{color} may not bear off",
    IllegalKind.ILLEGAL_BEAR_OFF: "{color} cannot bear off from point {point} with a piece behind",
    IllegalKind.MOVE_OUT_OF_RANGE: "{color} has no valid destination from point {point}",
}

_ERRORS: Dict[IllegalKind, Type[IllegalMoveError]] = {
    IllegalKind.PIECE_ON_BAR: PieceOnBarError,
    IllegalKind.NO_PIECE_ON_BAR: NoPieceOnBarError,
    IllegalKind.NO_PIECE_ON_SLOT: NoPieceOnSlotError,
    IllegalKind.OCCUPIED_SLOT: OccupiedSlotError,
    IllegalKind.MAY_NOT_BEAR_OFF: MayNotBearoffError,
    IllegalKind.ILLEGAL_BEAR_OFF: IllegalBearoffError,
    IllegalKind.MOVE_OUT_OF_RANGE: MoveOutOfRangeError,
}


@dataclass(frozen=True)
class Illegal:
    """
    A rejected move, cheap to produce while probing candidates.

    Attributes:
        kind (IllegalKind): Why the move was rejected.
        color (Color): The color that attempted the move.
        point (Optional[int]): The point the rejection refers to, relative to color.
    """
    kind: IllegalKind
    color: Color
    point: Optional[int] = None

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind].format(color=self.color, point=self.point)

    def error(self) -> IllegalMoveError:
        """Return the matching IllegalMoveError, ready to raise."""
        return _ERRORS[self.kind](self.message, color=self.color, point=self.point)


@dataclass(frozen=True)
class MoveBuild:
    """
    Deferred construction of a move variant.

    Attributes:
        move_class (Type[Move]): The variant to construct.
        args (Tuple[Any, ...]): Positional constructor arguments.
        is_checked (bool): Whether the arguments already passed the legality check.
    """
    move_class: Type["Move"]
    args: Tuple[Any, ...]
    is_checked: bool

    def build(self) -> "Move":
        return self.move_class(*self.args, is_checked=self.is_checked)


@dataclass(frozen=True)
class MoveCheck:
    """
    Result of Move.check.

    Attributes:
        illegal (Optional[Illegal]): None if the move is legal.
        build (Optional[MoveBuild]): How to construct the move, when a variant was resolved.
    """
    illegal: Optional[Illegal] = None
    build: Optional[MoveBuild] = None

    @property
    def is_legal(self) -> bool:
        return self.illegal is None

    def build_move(self) -> "Move":
        """
        Materialize the checked move.

        Raises:
            IllegalMoveError: If the check failed.
        """
        if self.illegal is not None:
            raise self.illegal.error()
        return self.build.build()


def check_face(face: Any) -> None:
    """
    Validate a die face.

    Raises:
        InvalidRollError: If face is not an integer from 1 to 6.
    """
    if not isinstance(face, numbers.Integral) or isinstance(face, bool):
        raise InvalidRollError("die face must be an integer")
    if face > MAX_FACE:
        raise InvalidRollError(f"die face cannot be greater than {MAX_FACE}")
    if face < MIN_FACE:
        raise InvalidRollError(f"die face cannot be less than {MIN_FACE}")


def _check_source(board: "Board", color: Color, origin: int) -> Optional[Illegal]:
    """Preconditions shared by regular and bear-off moves."""
    analyzer = board.analyzer
    if analyzer.has_bar(color):
        return Illegal(IllegalKind.PIECE_ON_BAR, color)
    if not 0 <= origin < NUM_OF_ORIGINS:
        return Illegal(IllegalKind.NO_PIECE_ON_SLOT, color)
    if not analyzer.occupies_origin(color, origin):
        return Illegal(IllegalKind.NO_PIECE_ON_SLOT, color, point_from_origin(color, origin))
    return None


class Move(ABC):
    """
    A single, reversible unit of board mutation.

    Instances are built through Move.check(...).build_move(), or directly
    with is_checked=False, in which case the constructor validates and
    raises. do() and undo() use only the board's push/pop primitives.

    Attributes:
        board (Board): The board the move applies to (shared, not owned).
        color (Color): The moving color.
        origin (int): Source origin, -1 for the bar.
        face (int): Die face used.
        dest (Optional[int]): Destination origin, None when bearing off.
        is_hit (bool): Whether the move sends an opposing blot to the bar.
        coords (Tuple[int, int]): (origin, face), the external move representation.
        hash (str): "origin:face".
    """

    move_type: MoveType

    # ---------- Check / Build ----------
    @staticmethod
    def check(board: "Board", color: Color, origin: int, face: int) -> MoveCheck:
        """
        Resolve the variant for (origin, face) and check its legality.

        Args:
            board: The board to check against.
            color: The moving color.
            origin: Source origin, -1 for the bar.
            face: Die face.

        Returns:
            MoveCheck with either an Illegal or a MoveBuild for a legal move.

        Raises:
            InvalidRollError: If face is not a die face.
        """
        check_face(face)
        if origin == BAR_ORIGIN:
            illegal = ComeInMove.legality(board, color, origin, face)
            return MoveCheck(illegal, MoveBuild(ComeInMove, (board, color, face), illegal is None))
        illegal = _check_source(board, color, origin)
        if illegal is not None:
            return MoveCheck(illegal)
        dest = origin + face * DIRECTION[color]
        if dest < 0 or dest >= NUM_OF_ORIGINS:
            move_class: Type[Move] = BearoffMove
        else:
            move_class = RegularMove
        illegal = move_class.legality(board, color, origin, face)
        return MoveCheck(illegal, MoveBuild(move_class, (board, color, origin, face), illegal is None))

    @staticmethod
    @abstractmethod
    def legality(board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        """Variant rule, assuming the preconditions Move.check already verified."""
        raise NotImplementedError

    @classmethod
    @abstractmethod
    def validate(cls, board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        """Full legality of the variant, for moves built without Move.check."""
        raise NotImplementedError

    # ---------- Instance ----------
    def __init__(self, board: "Board", color: Color, origin: int, face: int, is_checked: bool) -> None:
        if not is_checked:
            illegal = self.validate(board, color, origin, face)
            if illegal is not None:
                raise illegal.error()
        self.board = board
        self.color: Color = color
        self.origin: int = origin
        self.face: int = face
        self.coords: Tuple[int, int] = (origin, face)
        self.hash: str = f"{origin}:{face}"
        self.dest: Optional[int] = None
        self.is_hit: bool = False
        self.is_checked: bool = is_checked
        self._is_done: bool = False

    @property
    def _construct_args(self) -> Tuple[Any, ...]:
        return (self.board, self.color, self.origin, self.face)

    def copy(self) -> "Move":
        """Return a new, not yet applied move with the same arguments."""
        return type(self)(*self._construct_args, is_checked=self.is_checked)

    def copy_for_board(self, board: "Board") -> "Move":
        """Return the same move bound to another board."""
        return type(self)(board, *self._construct_args[1:], is_checked=self.is_checked)

    def do(self) -> None:
        """
        Apply the move to the board.

        Raises:
            IllegalStateError: If the move was already applied, or the board
                changed since the move was built. The board is left untouched.
        """
        if self._is_done:
            raise IllegalStateError(f"Move {self} was already done")
        self._check_applicable()
        self._do()
        self._is_done = True
        self.board._assert(f"{type(self).__name__}.do")

    def undo(self) -> None:
        """
        Revert the move, restoring any hit piece.

        Raises:
            IllegalStateError: If the move is not applied.
        """
        if not self._is_done:
            raise IllegalStateError(f"Move {self} was not done")
        self._undo()
        self._is_done = False
        self.board._assert(f"{type(self).__name__}.undo")

    @property
    def is_done(self) -> bool:
        return self._is_done

    @abstractmethod
    def _do(self) -> None:
        pass

    @abstractmethod
    def _undo(self) -> None:
        pass

    def _hits(self, dest: int) -> bool:
        return self.board.analyzer.pieces_on_origin(self.color.opponent, dest) == 1

    def _check_applicable(self) -> None:
        """Raise before any pop if the board no longer matches the move."""
        analyzer = self.board.analyzer
        if self.origin == BAR_ORIGIN:
            has_source = analyzer.has_bar(self.color)
        else:
            has_source = analyzer.occupies_origin(self.color, self.origin)
        if not has_source:
            raise IllegalStateError(f"Move {self} has no {self.color} piece to move")
        if self.dest is None:
            return
        if not analyzer.can_occupy_origin(self.color, self.dest):
            raise IllegalStateError(f"Move {self} lands on a point held by {self.color.opponent}")
        if self._hits(self.dest) != self.is_hit:
            raise IllegalStateError(f"Move {self} was built for a different hit on its destination")

    def __str__(self) -> str:
        start = "bar" if self.origin == BAR_ORIGIN else str(point_from_origin(self.color, self.origin))
        target = "home" if self.dest is None else str(point_from_origin(self.color, self.dest))
        hit = "*" if self.is_hit else ""
        return start.rjust(3) + " > " + target.rjust(4) + hit + f" ({self.face}, {self.move_type.name})"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.color} {self.hash}>"


class ComeInMove(Move):
    """Enter a piece from the bar onto the opponent's home board."""

    move_type = MoveType.COME_IN

    @staticmethod
    def entry_origin(color: Color, face: int) -> int:
        """Origin of the point a bar piece enters on with face."""
        return face - 1 if DIRECTION[color] == 1 else NUM_OF_ORIGINS - face

    @staticmethod
    def legality(board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        analyzer = board.analyzer
        if not analyzer.has_bar(color):
            return Illegal(IllegalKind.NO_PIECE_ON_BAR, color)
        dest = ComeInMove.entry_origin(color, face)
        if not analyzer.can_occupy_origin(color, dest):
            return Illegal(IllegalKind.OCCUPIED_SLOT, color, point_from_origin(color, dest))
        return None

    @classmethod
    def validate(cls, board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        check_face(face)
        return cls.legality(board, color, origin, face)

    def __init__(self, board: "Board", color: Color, face: int, is_checked: bool = False) -> None:
        super().__init__(board, color, BAR_ORIGIN, face, is_checked)
        self.dest = self.entry_origin(color, face)
        self.is_hit = self._hits(self.dest)

    @property
    def _construct_args(self) -> Tuple[Any, ...]:
        return (self.board, self.color, self.face)

    def _do(self) -> None:
        if self.is_hit:
            self.board.push_bar(self.color.opponent, self.board.pop_origin(self.dest))
        self.board.push_origin(self.dest, self.board.pop_bar(self.color))

    def _undo(self) -> None:
        self.board.push_bar(self.color, self.board.pop_origin(self.dest))
        if self.is_hit:
            self.board.push_origin(self.dest, self.board.pop_bar(self.color.opponent))


class RegularMove(Move):
    """Move a piece between two origins."""

    move_type = MoveType.REGULAR

    @staticmethod
    def legality(board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        dest = origin + face * DIRECTION[color]
        if not board.analyzer.can_occupy_origin(color, dest):
            return Illegal(IllegalKind.OCCUPIED_SLOT, color, point_from_origin(color, dest))
        return None

    @classmethod
    def validate(cls, board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        check_face(face)
        illegal = _check_source(board, color, origin)
        if illegal is not None:
            return illegal
        dest = origin + face * DIRECTION[color]
        if dest < 0 or dest >= NUM_OF_ORIGINS:
            return Illegal(IllegalKind.MOVE_OUT_OF_RANGE, color, point_from_origin(color, origin))
        return cls.legality(board, color, origin, face)

    def __init__(self, board: "Board", color: Color, origin: int, face: int, is_checked: bool = False) -> None:
        super().__init__(board, color, origin, face, is_checked)
        self.dest = origin + face * DIRECTION[color]
        self.is_hit = self._hits(self.dest)

    def _do(self) -> None:
        if self.is_hit:
            self.board.push_bar(self.color.opponent, self.board.pop_origin(self.dest))
        self.board.push_origin(self.dest, self.board.pop_origin(self.origin))

    def _undo(self) -> None:
        self.board.push_origin(self.origin, self.board.pop_origin(self.dest))
        if self.is_hit:
            self.board.push_origin(self.dest, self.board.pop_bar(self.color.opponent))


class BearoffMove(Move):
    """Move a piece from the home board to home."""

    move_type = MoveType.BEAR_OFF

    @staticmethod
    def legality(board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        analyzer = board.analyzer
        if not analyzer.may_bearoff(color):
            return Illegal(IllegalKind.MAY_NOT_BEAR_OFF, color)
        home_distance = ORIGIN_POINTS[color][origin]
        # Overshooting is only allowed from the rearmost piece
        if face > home_distance and analyzer.has_piece_behind(color, origin):
            return Illegal(IllegalKind.ILLEGAL_BEAR_OFF, color, home_distance)
        return None

    @classmethod
    def validate(cls, board: "Board", color: Color, origin: int, face: int) -> Optional[Illegal]:
        check_face(face)
        illegal = _check_source(board, color, origin)
        if illegal is not None:
            return illegal
        if face < ORIGIN_POINTS[color][origin]:
            return Illegal(IllegalKind.MOVE_OUT_OF_RANGE, color, point_from_origin(color, origin))
        return cls.legality(board, color, origin, face)

    def __init__(self, board: "Board", color: Color, origin: int, face: int, is_checked: bool = False) -> None:
        super().__init__(board, color, origin, face, is_checked)

    def _do(self) -> None:
        self.board.push_home(self.color, self.board.pop_origin(self.origin))

    def _undo(self) -> None:
        self.board.push_origin(self.origin, self.board.pop_home(self.color))
