"""POMDP model construction and validation tests."""

from __future__ import annotations

import numpy as np
import pytest

from incprune.pomdpmodel import POMDP, FromFunctions, InvalidModel


def test_tiger_dimensions_and_kernels(tiger) -> None:
    assert (tiger.S, tiger.A, tiger.O) == (2, 3, 2)
    assert tiger.P.shape == (2, 3, 2, 2)
    assert np.allclose(np.sum(tiger.P, axis=(2, 3)), 1.0)
    assert np.allclose(tiger.PT[:, 0, :], np.eye(2))
    assert np.allclose(tiger.PZ[0], [[0.85, 0.15], [0.15, 0.85]])
    assert tiger.observationprob(1, 0, 0) == pytest.approx(0.15)
    assert tiger.transitionprob(0, 1, 1) == pytest.approx(0.5)
    assert tiger.reward(0, 1) == -100


def test_pao_matrices_match_dense_kernel(tiger) -> None:
    v = np.array([[1.0, 2.0], [3.0, -1.0]])
    for a in range(tiger.A):
        for o in range(tiger.O):
            assert np.allclose(tiger.Paomult(a, o, v), tiger.P[:, a, o, :] @ v)


def test_from_functions_matches_array_model(tiger) -> None:
    model = FromFunctions(
        tiger.S, tiger.A, tiger.O,
        reward=tiger.reward,
        transitionprob=tiger.transitionprob,
        observationprob=tiger.observationprob,
        discount=tiger.discount,
    )
    assert np.allclose(model.P, tiger.P)
    assert np.allclose(model.r, tiger.r)
    assert model.discount == tiger.discount


def test_observationprob_matches_observation_kernel(tiger) -> None:
    PZ = tiger.PZ
    for a in range(tiger.A):
        for s1 in range(tiger.S):
            for o in range(tiger.O):
                assert tiger.observationprob(o, s1, a) == pytest.approx(PZ[a, s1, o])


def test_observationprob_of_unreachable_state_is_uniform() -> None:
    # every state moves to state 0, so state 1 is never reached
    PT = np.array([[[1.0, 0.0]], [[1.0, 0.0]]])
    PZ = np.array([[[0.9, 0.1], [0.3, 0.7]]])
    model = POMDP((PT, PZ), np.zeros((2, 1)), 0.9)
    assert model.observationprob(0, 0, 0) == pytest.approx(0.9)
    assert model.observationprob(1, 1, 0) == pytest.approx(0.5)
    assert model.PZ[0, 1, 1] == pytest.approx(0.5)


def test_reward_on_transitions_is_converted_to_expected_reward() -> None:
    PT = np.array([[[0.5, 0.5]], [[0.0, 1.0]]]) # S x A x S'
    PZ = np.array([[[1.0], [1.0]]]) # A x S' x O
    r = np.zeros((2, 1, 1, 2))
    r[:, :, :, 1] = 4.0 # reward for landing in state 1
    model = POMDP((PT, PZ), r, 0.9)
    assert np.allclose(model.r, [[2.0], [4.0]])


@pytest.mark.parametrize("discount", [0.0, -0.5, 1.5])
def test_discount_out_of_range_is_rejected(discount) -> None:
    with pytest.raises(InvalidModel):
        POMDP((np.ones((1, 1, 1)), np.ones((1, 1, 1))), np.ones((1, 1)), discount)


def test_discount_of_one_is_accepted() -> None:
    model = POMDP((np.ones((1, 1, 1)), np.ones((1, 1, 1))), np.ones((1, 1)), 1.0)
    assert model.discount == 1.0


def test_transition_rows_must_sum_to_one() -> None:
    PT = np.array([[[0.5, 0.4]], [[0.0, 1.0]]])
    PZ = np.ones((1, 2, 1))
    with pytest.raises(InvalidModel, match="transition"):
        POMDP((PT, PZ), np.zeros((2, 1)), 0.9)


def test_observation_rows_must_sum_to_one() -> None:
    PT = np.array([[[1.0, 0.0]], [[0.0, 1.0]]])
    PZ = np.array([[[0.7, 0.7], [0.5, 0.5]]])
    with pytest.raises(InvalidModel, match="observation"):
        POMDP((PT, PZ), np.zeros((2, 1)), 0.9)


def test_negative_probabilities_are_rejected() -> None:
    PT = np.array([[[1.5, -0.5]], [[0.0, 1.0]]])
    PZ = np.ones((1, 2, 1))
    with pytest.raises(InvalidModel):
        POMDP((PT, PZ), np.zeros((2, 1)), 0.9)


def test_reward_shape_must_match() -> None:
    with pytest.raises(InvalidModel):
        POMDP((np.ones((1, 1, 1)), np.ones((1, 1, 1))), np.ones((2, 1)), 0.9)


def test_full_joint_kernel_is_accepted() -> None:
    P = np.zeros((2, 1, 2, 2))
    P[0, 0, 0, 0] = 1.0
    P[1, 0, 1, 1] = 0.25
    P[1, 0, 0, 1] = 0.75
    model = POMDP(P, np.zeros((2, 1)), 0.5)
    assert (model.S, model.A, model.O) == (2, 1, 2)
    assert np.allclose(model.PT[:, 0, :], np.eye(2))
