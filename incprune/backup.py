"""Dynamic programming backup pieces: projection and cross-sum

Normalization: the projection for (a, o) multiplies in P(s', o|s, a) and adds
r(s, a) / O, so that summing one projected vector per observation gives
exactly r(s, a) + discount * sum_o sum_s' P(s', o|s, a) alpha_o(s').
"""

import functools
import numpy as np

from incprune.vectorset import VectorSet


def project(Model, vf, a, o):
    """Project every alpha-vector of vf through action a and observation o

    Input:
        Model: a POMDP
        vf: VectorSet of the previous stage
    Output:
        VectorSet with one vector per vector of vf, plans[v] = (v,)
    """
    alp = Model.r[:, [a]] / Model.O + Model.discount * Model.Paomult(a, o, vf.alp)
    return VectorSet(alp, a, np.arange(len(vf))[:, np.newaxis])


def crosssum(X, Y):
    """All pairwise sums x + y (x in X, y in Y), action tag taken from X

    The result is ordered x-major and plans are concatenated, so a vector
    built from x = X[i] and y = Y[j] sits at index i * len(Y) + j.
    """
    alp = (X.alp[:, :, np.newaxis] + Y.alp[:, np.newaxis, :]).reshape((X.S, -1))
    actions = np.repeat(X.actions, len(Y))
    plans = np.concatenate((
        np.repeat(X.plans, len(Y), axis=0),
        np.tile(Y.plans, (len(X), 1))
    ), axis=1)
    return VectorSet(alp, actions, plans)


def crosssumall(projections):
    """Full cross-sum over a list of per observation VectorSets (no pruning)

    Output size is the product of the input sizes.
    """
    return functools.reduce(crosssum, projections)


def incrementalcrosssum(projections, pruner):
    """Cross-sum of per observation VectorSets, pruning after every fold

    Input:
        projections: list of O VectorSets, expected to be pruned already
        pruner: callable VectorSet -> VectorSet
    """
    res = projections[0]
    for vs in projections[1:]:
        res = pruner(crosssum(res, vs))
    return res
