import math
from pathlib import Path

import pytest

from sudokit.models import SYMBOLS
from sudokit.storage import parse_puzzle

PUZZLE_DIR = Path(__file__).resolve().parent.parent / "puzzles"

FULL_4 = ["1234", "3412", "2143", "4321"]

# Solvable with singles alone.
EASY_9 = """
**3*2*6**
9**3*5**1
**18*64**
**81*29**
7*******8
**67*82**
**26*95**
8**2*3**9
**5*1*3**
"""
EASY_9_SOLUTION = [
    "483921657",
    "967345821",
    "251876493",
    "548132976",
    "729564138",
    "136798245",
    "372689514",
    "814253769",
    "695417382",
]

# Needs guessing.
HARD_9 = """
8********
**36*****
*7**9*2**
*5***7***
****457**
***1***3*
**1****68
**85***1*
*9****4**
"""
HARD_9_SOLUTION = [
    "812753649",
    "943682175",
    "675491283",
    "154237896",
    "369845721",
    "287169534",
    "521974368",
    "438526917",
    "796318452",
]


def pattern_rows(n):
    """A valid solved grid of side n (n a perfect square)."""
    b = math.isqrt(n)
    return ["".join(SYMBOLS[(b * (r % b) + r // b + c) % n] for c in range(n)) for r in range(n)]


@pytest.fixture
def full_4_rows():
    return list(FULL_4)


@pytest.fixture
def easy_board():
    return parse_puzzle(EASY_9)


@pytest.fixture
def easy_solution():
    return list(EASY_9_SOLUTION)


@pytest.fixture
def hard_board():
    return parse_puzzle(HARD_9)


@pytest.fixture
def hard_solution():
    return list(HARD_9_SOLUTION)


@pytest.fixture
def easy_text():
    return EASY_9


@pytest.fixture
def hard_text():
    return HARD_9


@pytest.fixture
def puzzle_dir():
    return PUZZLE_DIR


@pytest.fixture
def solved_pattern():
    return pattern_rows
