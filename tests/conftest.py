import sys, os

import pytest

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from helpers import ScriptedRandom, make_game


@pytest.fixture
def rng():
    return ScriptedRandom(1234)


@pytest.fixture
def game(rng):
    """Game with zero settle delays so a whole move resolves inside the click."""
    return make_game(rng=rng)
