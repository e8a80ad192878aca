import random

import pytest

from gameon.core.board import Board


@pytest.fixture
def board():
    """An empty board with invariant assertions enabled."""
    return Board(debug=True)


@pytest.fixture
def initial():
    """The standard starting position with invariant assertions enabled."""
    return Board.initial(debug=True)


@pytest.fixture
def rng():
    return random.Random(20201031)
