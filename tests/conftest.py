import random

import pytest

from SetPuzzle.record import parse_row
from SetPuzzle.Utils.card_encoder import cards_from_codes

# Bitwise codes (red=8, blue=4, green=2, gold=1):
#   0 blue gold | 1 blue green gold | 2 red green gold | 3 red green
#   4 blue green | 5 blue | 6 red blue | 7 gold
FIXTURE_CODES = [5, 7, 11, 10, 6, 4, 12, 1]

RED = frozenset({2, 3, 6})
BLUE = frozenset({0, 1, 4, 5, 6})
GREEN = frozenset({1, 2, 3, 4})
GOLD = frozenset({0, 1, 2, 7})
ALL = frozenset(range(8))


@pytest.fixture
def cards():
    return cards_from_codes(FIXTURE_CODES)


@pytest.fixture
def row():
    """row('red ∪ green ′') -> tuple of dice."""
    return parse_row


@pytest.fixture
def rng():
    return random.Random(1234)
