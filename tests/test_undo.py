import pytest

from gameon.core.analyzer import scan_occupancy
from gameon.core.board import Board
from gameon.core.constants import Color, COLORS
from gameon.core.undo import Undo

from states import STATES


class TestUndo:

    def test_record_none(self):
        with pytest.raises(ValueError):
            Undo().record_move(None)

    def test_nothing_to_undo(self, initial):
        undo = Undo()
        with pytest.raises(ValueError):
            undo.undo_last_move(initial)
        with pytest.raises(ValueError):
            undo.undo_last_snapshot(initial)

    def test_undo_moves_in_reverse(self, initial):
        undo = Undo()
        undo.record_move(initial.move(Color.WHITE, 0, 6))
        after_first = initial.state_string()
        undo.record_move(initial.move(Color.RED, 23, 1))

        move = undo.undo_last_move(initial)
        assert move.coords == (23, 1)
        assert initial.state_string() == after_first

        undo.undo_last_move(initial)
        assert initial.state_string() == STATES["Initial"]

    def test_move_history_is_bounded(self, initial):
        undo = Undo(max_moves=2)
        for origin, face in ((0, 6), (0, 6), (16, 1)):
            undo.record_move(initial.move(Color.WHITE, origin, face))
        assert len(undo.move_history) == 2

    def test_move_for_other_board(self, initial):
        undo = Undo()
        undo.record_move(initial.move(Color.WHITE, 0, 6))
        with pytest.raises(ValueError):
            undo.undo_last_move(Board.initial())
        assert len(undo.move_history) == 1

    def test_move_already_undone(self, initial):
        undo = Undo()
        move = initial.move(Color.WHITE, 0, 6)
        undo.record_move(move)
        move.undo()
        with pytest.raises(ValueError):
            undo.undo_last_move(initial)
        assert list(undo.move_history) == [move]
        assert initial.state_string() == STATES["Initial"]

    def test_snapshot_restores_board(self, initial):
        undo = Undo()
        initial.analyzer.origins_occupied(Color.WHITE)
        undo.record_snapshot(initial)
        initial.move(Color.WHITE, 0, 6)
        initial.move(Color.RED, 23, 1)

        undo.undo_last_snapshot(initial)
        assert initial.state_string() == STATES["Initial"]
        for color in COLORS:
            assert initial.analyzer.origins_occupied(color) == scan_occupancy(initial, color).origins_occupied

    def test_undo_falls_back_to_snapshot(self, initial):
        undo = Undo()
        undo.record_snapshot(initial)
        initial.move(Color.WHITE, 0, 6)
        assert undo.undo_last_move(initial) is None
        assert initial.state_string() == STATES["Initial"]
        assert not undo.snapshots

    def test_snapshot_is_a_copy(self, initial):
        undo = Undo()
        undo.record_snapshot(initial)
        initial.move(Color.WHITE, 0, 6)
        assert undo.snapshots[-1].state_string() == STATES["Initial"]

    def test_clear(self, initial):
        undo = Undo()
        undo.record_snapshot(initial)
        undo.record_move(initial.move(Color.WHITE, 0, 6))
        undo.clear()
        assert not undo.move_history
        assert not undo.snapshots
