"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from incprune.dominance import GridDominanceOracle, LPDominanceOracle
from incprune.models.tiger import TigerPOMDP
from incprune.pomdpmodel import POMDP


TIGER_POMDP = """# Tiger problem, 0: tiger left, 1: tiger right
discount: 0.95
values: reward
states: 2
actions: 3
observations: 2
start: uniform

T: 0
identity
T: 1
uniform
T: 2
uniform

O: 0
0.85 0.15
0.15 0.85
O: 1
uniform
O: 2
uniform

R: 0 : * : * : * -1
R: 1 : 0 : * : * -100
R: 1 : 1 : * : * 10
R: 2 : 0 : * : * 10
R: 2 : 1 : * : * -100
"""


@pytest.fixture
def tiger():
    return TigerPOMDP()


@pytest.fixture
def tigerfile(tmp_path):
    path = tmp_path / "tiger.pomdp"
    path.write_text(TIGER_POMDP)
    return str(path)


@pytest.fixture
def singlestate():
    """One state, one action, one observation, reward 1, discount 0.9"""
    return POMDP(
        (np.ones((1, 1, 1)), np.ones((1, 1, 1))), np.ones((1, 1)), 0.9
    )


@pytest.fixture
def perfectinfo():
    """Two states, two actions, identity transitions, the state is observed

    Action 0 pays in state 0, action 1 pays in state 1.
    """
    PT = np.stack([np.eye(2), np.eye(2)], axis=1) # S x A x S'
    PZ = np.stack([np.eye(2), np.eye(2)], axis=0) # A x S' x O
    r = np.eye(2)
    return POMDP((PT, PZ), r, 0.9)


@pytest.fixture
def gridoracle():
    return GridDominanceOracle(resolution=50)


@pytest.fixture
def lporacle():
    return LPDominanceOracle()
