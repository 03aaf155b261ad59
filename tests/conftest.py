import random
import sys
from pathlib import Path

import pytest

# Make the package importable without installing it
ROOT = Path(__file__).resolve().parent.parent
if ROOT.as_posix() not in sys.path:
    sys.path.insert(0, ROOT.as_posix())

from angulario.core import VarX, Neg, parse  # noqa: E402


# Common test fixtures
@pytest.fixture
def rng():
    """Seeded random source so every run draws the same functions."""
    return random.Random(20240611)


@pytest.fixture
def x():
    return VarX()


@pytest.fixture
def minus_x():
    return Neg(VarX())


@pytest.fixture
def easy():
    return (-1, 1)


@pytest.fixture
def parsed():
    """Shortcut for building trees from text."""
    return parse
