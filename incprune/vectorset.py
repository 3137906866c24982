"""Alpha-vector sets

A VectorSet keeps its alpha-vectors as the columns of an S x V matrix so that
the value at a belief b is simply b @ alp. Every vector is tagged with the
action that produced it and a plan pointer: plans[v, o] is the index (in the
previous generation) of the vector followed after observing o.

All arrays are read-only once the set is built.
"""

import collections
import numpy as np


ValueVector = collections.namedtuple("ValueVector", ["values", "action", "plan"])


class VectorSet():
    """Immutable set of alpha-vectors

    Properties:
    alp: S x V numpy array, column v is an alpha-vector
    actions: V integer array, actions[v] is the action tag of column v
    plans: V x k integer array, k is the number of observations folded in
        so far (0 for the horizon-0 baseline)
    """
    def __init__(self, alp, actions, plans=None):
        alp = np.array(alp, dtype=np.float64)
        if alp.ndim == 1:
            alp = alp[:, np.newaxis]
        if alp.ndim != 2:
            raise ValueError("alp should be an S x V matrix")
        V = alp.shape[1]
        actions = np.array(
            np.broadcast_to(np.asarray(actions, dtype=np.int64), (V,))
        )
        if plans is None:
            plans = np.zeros((V, 0), dtype=np.int64)
        else:
            plans = np.array(plans, dtype=np.int64)
            if plans.ndim == 1:
                plans = plans[:, np.newaxis]
        if plans.ndim != 2 or plans.shape[0] != V:
            raise ValueError("plans should be a V x k matrix")

        for arr in (alp, actions, plans):
            arr.setflags(write=False)
        self.alp = alp
        self.actions = actions
        self.plans = plans

    @property
    def S(self):
        return self.alp.shape[0]

    def __len__(self):
        return self.alp.shape[1]

    def __getitem__(self, v):
        return ValueVector(self.alp[:, v], int(self.actions[v]), tuple(self.plans[v]))

    def __iter__(self):
        for v in range(len(self)):
            yield self[v]

    def __repr__(self):
        return "VectorSet(S={0}, V={1}, actions={2})".format(
            self.S, len(self), sorted(set(self.actions.tolist()))
        )

    def subset(self, idx):
        idx = np.asarray(idx, dtype=np.int64).reshape(-1)
        return VectorSet(self.alp[:, idx], self.actions[idx], self.plans[idx])

    def withaction(self, a):
        return self.subset(np.flatnonzero(self.actions == a))

    def values(self, b):
        """V vector of b @ alpha for every alpha-vector"""
        return np.asarray(b) @ self.alp

    def max(self, b):
        if len(self) == 0:
            return -np.inf
        return np.max(self.values(b))

    def argmax(self, b):
        """Index of the first vector attaining the maximum at b"""
        if len(self) == 0:
            return None
        return int(np.argmax(self.values(b)))

    def sameas(self, other, tol=1e-9):
        """True if both sets hold the same vectors (in any order)"""
        if self.S != other.S or len(self) != len(other):
            return False
        for v in range(len(self)):
            dist = np.max(np.abs(other.alp - self.alp[:, [v]]), axis=0, initial=0.0)
            if not np.any(dist <= tol):
                return False
        return True

    def uniqueindices(self, tol=0.0):
        """Indices of vectors that are not (numerically) equal to an earlier
        vector, in first-seen order
        """
        keep = []
        for v in range(len(self)):
            if keep:
                dist = np.max(np.abs(self.alp[:, keep] - self.alp[:, [v]]), axis=0)
                if np.any(dist <= tol):
                    continue
            keep.append(v)
        return keep

    def undominatedindices(self, idx=None, tol=0.0):
        """Indices (among idx) of vectors that no other vector among idx
        point-wise dominates. idx should be free of duplicates.
        """
        if idx is None:
            idx = range(len(self))
        idx = list(idx)
        alp = self.alp[:, idx]
        keep = []
        for j, v in enumerate(idx):
            diff = alp - alp[:, [j]] # S x V
            ge = np.all(diff >= -tol, axis=0)
            gt = np.max(diff, axis=0) > tol
            if not np.any(ge & gt):
                keep.append(v)
        return keep


def EmptyVectorSet(S, k=0):
    return VectorSet(np.zeros((S, 0)), [], np.zeros((0, k), dtype=np.int64))


def Union(sets):
    """Concatenate vector sets (in order). All sets must share S and k."""
    sets = list(sets)
    if len(sets) == 0:
        raise ValueError("Union needs at least one VectorSet")
    return VectorSet(
        np.concatenate([vs.alp for vs in sets], axis=1),
        np.concatenate([vs.actions for vs in sets]),
        np.concatenate([vs.plans for vs in sets], axis=0)
    )
