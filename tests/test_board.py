import pytest

from gameon.core.board import Board, Piece, PIECES
from gameon.core.constants import Color, INITIAL_STATE_STRING, DEFAULT_POSITIONS
from gameon.core.errors import (
    EmptySlotError, EmptyBarError, EmptyHomeError, IllegalStateError, StateStringError,
)

from helpers import fetch_board, make_random_moves
from states import STATES, LEGAL_STATES


class TestSetup:

    def test_new_board_is_empty(self, board):
        assert board.state_string() == STATES["Blank"]
        assert not board.slots.any()

    def test_setup_matches_initial_state_string(self, board):
        board.setup()
        assert board.state_string() == INITIAL_STATE_STRING
        assert Board.initial().state_string() == STATES["Initial"]

    def test_clear(self, initial):
        initial.clear()
        assert initial.state_string() == STATES["Blank"]

    def test_place_stones_requires_fifteen(self, board):
        positions = (((24, 2), (13, 5)), DEFAULT_POSITIONS[Color.RED])
        with pytest.raises(ValueError):
            board.place_stones_from_list(positions)

    def test_place_stones_bar_and_home(self, board):
        positions = (((0, 1), (6, 4), (-1, 10)), ((1, 15),))
        board.place_stones_from_list(positions)
        assert board.bars[Color.WHITE] == 1
        assert board.homes[Color.WHITE] == 10
        assert board.num_of_stones(18, Color.WHITE) == 4
        assert board.num_of_stones(0, Color.RED) == 15

    def test_state_to_list(self, initial):
        white, red = initial.state_to_list()
        assert white == [(24, 2), (13, 5), (8, 3), (6, 5)]
        assert sorted(red) == sorted(DEFAULT_POSITIONS[Color.RED])


class TestPrimitives:

    def test_pop_origin_returns_piece(self, initial):
        piece = initial.pop_origin(0)
        assert piece is PIECES[Color.WHITE]
        assert initial.num_of_stones(0, Color.WHITE) == 1
        assert initial.pop_origin(23).color is Color.RED

    def test_pop_empty_origin(self, initial):
        with pytest.raises(EmptySlotError):
            initial.pop_origin(1)

    def test_pop_empty_bar_and_home(self, initial):
        with pytest.raises(EmptyBarError):
            initial.pop_bar(Color.WHITE)
        with pytest.raises(EmptyHomeError):
            initial.pop_home(Color.RED)

    def test_empty_errors_are_illegal_state(self, board):
        with pytest.raises(IllegalStateError):
            board.pop_origin(0)

    def test_push_onto_other_color_raises(self, initial):
        with pytest.raises(IllegalStateError):
            initial.push_origin(0, Piece(Color.RED))

    def test_push_accepts_color_names(self, board):
        board.push_origin(3, "W").push_origin(3, Color.WHITE).push_origin(4, "Red")
        assert board.num_of_stones(3, Color.WHITE) == 2
        assert board.num_of_stones(4, Color.RED) == 1

    def test_push_bar_wrong_piece(self, board):
        with pytest.raises(IllegalStateError):
            board.push_bar(Color.RED, PIECES[Color.WHITE])
        with pytest.raises(IllegalStateError):
            board.push_home(Color.RED, PIECES[Color.WHITE])

    def test_bar_and_home_round_trip(self, board):
        board.push_bar(Color.WHITE).push_home(Color.RED)
        assert board.has_bar(Color.WHITE)
        assert not board.has_bar(Color.RED)
        assert board.pop_bar(Color.WHITE).color is Color.WHITE
        assert board.pop_home(Color.RED).color is Color.RED
        assert board.state_string() == STATES["Blank"]

    def test_piece_for_color_is_shared(self):
        assert Piece.for_color("W") is PIECES[Color.WHITE]
        assert Piece.for_color(Color.RED) is PIECES[Color.RED]
        assert Piece(Color.RED) == PIECES[Color.RED]


class TestStateString:

    @pytest.mark.parametrize("name", LEGAL_STATES)
    def test_round_trip(self, name):
        board = fetch_board(name)
        assert board.state_string() == STATES[name]

    def test_bare_zero_slots(self):
        board = fetch_board("InitialShorter")
        assert board.state_string() == STATES["Initial"]

    def test_state_string_is_memoized(self, initial):
        first = initial.state_string()
        assert initial.state_string() is first
        initial.move(Color.WHITE, 0, 1)
        assert initial.state_string() != first

    @pytest.mark.parametrize("text", [
        "0|0|0",
        STATES["Initial"] + "|0",
        STATES["Initial"].replace("2:W", "2:X", 1),
        STATES["Initial"].replace("2:W", "2:", 1),
        STATES["Initial"].replace("2:W", "16:W", 1),
        "x" + STATES["Initial"][1:],
    ])
    def test_malformed(self, initial, text):
        with pytest.raises(StateStringError):
            initial.set_state_string(text)
        assert initial.state_string() == STATES["Initial"]

    def test_state_string_error_is_value_error(self, board):
        with pytest.raises(ValueError):
            board.set_state_string("nope")

    def test_load_resets_analyzer(self, initial):
        initial.analyzer.origins_occupied(Color.WHITE)
        initial.set_state_string(STATES["Bearoff4Start"])
        assert initial.analyzer.cached_group(Color.WHITE) is None
        assert initial.analyzer.origins_occupied(Color.WHITE) == [17, 18, 23]


class TestState28:

    @pytest.mark.parametrize("name", LEGAL_STATES)
    def test_round_trip(self, name):
        board = fetch_board(name)
        text = board.state28()
        assert len(text) == 28
        assert Board.from_state28(text) == board

    def test_set_state_string_accepts_state28(self, initial):
        text = initial.state28()
        board = Board().set_state_string(text)
        assert board.state_string() == STATES["Initial"]

    def test_rejects_bad_characters(self, board):
        with pytest.raises(StateStringError):
            board.set_state28("!" * 28)
        with pytest.raises(StateStringError):
            board.set_state28("@" * 27)


class TestCopy:

    def test_copy_is_independent(self, initial):
        copy = initial.copy()
        copy.move(Color.WHITE, 0, 6)
        assert initial.state_string() == STATES["Initial"]
        assert copy.state_string() != STATES["Initial"]
        assert copy.analyzer.board is copy

    def test_copy_keeps_debug(self, initial):
        assert initial.copy().debug is True

    def test_inverted_initial_is_symmetric(self, initial):
        assert initial.inverted() == initial

    @pytest.mark.parametrize("name", LEGAL_STATES)
    def test_inverted_twice_is_identity(self, name):
        board = fetch_board(name)
        assert board.inverted().inverted() == board

    def test_inverted_swaps_bar(self):
        board = fetch_board("WhiteOneOnBar").inverted()
        assert board.bars[Color.RED] == 1
        assert board.bars[Color.WHITE] == 0
        assert board.num_of_stones(23, Color.RED) == 1


class TestWinner:

    def test_no_winner_on_initial(self, initial):
        assert not initial.has_winner()
        assert initial.get_winner() is None

    def test_red_has_won(self):
        assert fetch_board("RedHasWon").get_winner() is Color.RED

    def test_white_has_won(self):
        board = fetch_board("WhiteGammon1")
        assert board.has_winner()
        assert board.get_winner() is Color.WHITE


class TestEquality:

    def test_equal_boards_hash_equal(self, initial):
        other = Board.initial()
        assert other == initial
        assert hash(other) == hash(initial)
        assert len({other, initial}) == 1

    def test_different_boards(self, initial):
        assert initial != Board()
        assert initial != STATES["Initial"]

    def test_str_is_state_string(self, initial):
        assert str(initial) == STATES["Initial"]


class TestMoves:

    def test_move_applies(self, initial):
        move = initial.move(Color.WHITE, 0, 6)
        assert move.is_done
        assert initial.num_of_stones(0, Color.WHITE) == 1
        assert initial.num_of_stones(6, Color.WHITE) == 1

    def test_build_move_does_not_apply(self, initial):
        move = initial.build_move(Color.WHITE, 0, 6)
        assert not move.is_done
        assert initial.state_string() == STATES["Initial"]

    def test_random_moves_conserve_stones(self, initial, rng):
        make_random_moves(initial, 200, rng)
        for color in Color:
            on_board = sum(initial.num_of_stones(origin, color) for origin in range(24))
            total = on_board + int(initial.bars[color]) + int(initial.homes[color])
            assert total == 15
