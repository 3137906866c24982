"""Dominance oracle tests."""

from __future__ import annotations

import numpy as np
import pytest

from incprune.dominance import DominanceOracle, SimplexGrid
from incprune.optmodel import NumericDegeneracy, WitnessModel


def test_simplex_grid_covers_the_simplex() -> None:
    BT = SimplexGrid(3, 4)
    # C(4 + 2, 2) points
    assert BT.shape == (15, 3)
    assert np.allclose(np.sum(BT, axis=1), 1.0)
    assert np.all(BT >= 0)
    assert len({tuple(row) for row in BT}) == 15
    assert np.allclose(SimplexGrid(1, 7), [[1.0]])


@pytest.mark.parametrize("oraclename", ["gridoracle", "lporacle"])
def test_witness_found_for_vector_on_top(oraclename, request) -> None:
    oracle = request.getfixturevalue(oraclename)
    session = oracle.session(2)
    session.add(np.array([1.0, 0.0]))
    session.add(np.array([0.0, 1.0]))
    try:
        b = session.findwitness(np.array([0.6, 0.6]))
        assert b is not None
        assert np.sum(b) == pytest.approx(1.0)
        assert b @ np.array([0.6, 0.6]) > max(b[0], b[1])
        assert session.findwitness(np.array([0.4, 0.4])) is None
        assert session.findwitness(np.array([0.5, 0.5])) is None
    finally:
        session.close()


@pytest.mark.parametrize("oraclename", ["gridoracle", "lporacle"])
def test_no_witness_for_convex_combination_dominated_vector(oraclename, request) -> None:
    oracle = request.getfixturevalue(oraclename)
    session = oracle.session(3)
    for u in np.eye(3) * 3.0:
        session.add(u)
    try:
        assert session.findwitness(np.array([0.9, 0.9, 0.9])) is None
        b = session.findwitness(np.array([1.1, 1.1, 1.1]))
        assert b is not None
        assert np.allclose(b, 1.0 / 3, atol=0.05)
    finally:
        session.close()


def test_lp_oracle_without_accepted_vectors_is_degenerate(lporacle) -> None:
    session = lporacle.session(2)
    try:
        with pytest.raises(NumericDegeneracy):
            session.findwitness(np.array([1.0, 0.0]))
    finally:
        session.close()


def test_lp_oracle_counts_solves(lporacle) -> None:
    session = lporacle.session(2)
    session.add(np.array([1.0, 0.0]))
    try:
        session.findwitness(np.array([0.0, 1.0]))
        session.findwitness(np.array([0.0, 0.5]))
    finally:
        session.close()
    assert session.numlps == 2


def test_base_oracle_requires_session() -> None:
    with pytest.raises(NotImplementedError):
        DominanceOracle().session(2)


def test_witness_lp_tolerances_follow_the_oracle_tolerance() -> None:
    model = WitnessModel(2, tol=1e-7)
    try:
        assert model.grbmodel.Params.FeasibilityTol == pytest.approx(1e-8)
        assert model.grbmodel.Params.OptimalityTol == pytest.approx(1e-8)
    finally:
        model.dispose()
    # clipped to what Gurobi accepts
    model = WitnessModel(2, tol=1e-12)
    try:
        assert model.grbmodel.Params.OptimalityTol == pytest.approx(1e-9)
    finally:
        model.dispose()


@pytest.mark.parametrize("oraclename", ["gridoracle", "lporacle"])
def test_gap_is_signed(oraclename, request) -> None:
    oracle = request.getfixturevalue(oraclename)
    session = oracle.session(2)
    session.add(np.array([1.0, 0.0]))
    session.add(np.array([0.0, 1.0]))
    try:
        assert session.gap(np.array([0.6, 0.6])) == pytest.approx(0.1, abs=1e-7)
        assert session.gap(np.array([0.2, 0.2])) == pytest.approx(-0.3, abs=1e-7)
    finally:
        session.close()


def test_witness_model_counts_accepted_vectors() -> None:
    model = WitnessModel(2)
    try:
        assert model.numconstr == 0
        model.addvector(np.array([1.0, 0.0]))
        model.addvector(np.array([0.0, 1.0]))
        assert model.numconstr == 2
        delta, b, proven = model.witness(np.array([0.7, 0.7]))
        assert proven
        assert delta == pytest.approx(0.2, abs=1e-7)
        assert np.allclose(b, [0.5, 0.5], atol=1e-6)
    finally:
        model.dispose()
