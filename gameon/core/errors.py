# =========================================================
# --- core_errors.py ---
# =========================================================

from typing import Any, Optional

# =========================================================

class GameError(Exception):
    """
    Base class for all errors raised by the rules core.

    Attributes:
        message (str): Human-readable description.
    """

    def __init__(self, message: str = "", *args: Any) -> None:
        super().__init__(message, *args)
        self.message: str = message


class InvalidRollError(GameError):
    """A die face outside 1-6, or not an integer."""


class IllegalStateError(GameError):
    """The board or a move was used in a way its invariants do not allow."""


class EmptySlotError(IllegalStateError):
    """Pop from an origin that holds no piece."""


class EmptyBarError(IllegalStateError):
    """Pop from a bar that holds no piece."""


class EmptyHomeError(IllegalStateError):
    """Pop from a home that holds no piece."""


class StateStringError(GameError, ValueError):
    """Malformed board state string."""


class IllegalMoveError(GameError):
    """
    Base class for rejected moves.

    Attributes:
        color (Optional[Any]): The color that attempted the move.
        point (Optional[int]): The color-relative point the rejection refers to, if any.
    """

    def __init__(self, message: str = "", color: Optional[Any] = None, point: Optional[int] = None) -> None:
        super().__init__(message)
        self.color = color
        self.point = point


class PieceOnBarError(IllegalMoveError):
    pass


class NoPieceOnBarError(IllegalMoveError):
    pass


class NoPieceOnSlotError(IllegalMoveError):
    pass


class OccupiedSlotError(IllegalMoveError):
    pass


class MayNotBearoffError(IllegalMoveError):
    pass


class IllegalBearoffError(IllegalMoveError):
    pass


class MoveOutOfRangeError(IllegalMoveError):
    pass
