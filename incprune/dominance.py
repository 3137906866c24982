"""Dominance oracles

A dominance oracle answers one question for the Pruner: given the alpha-vectors
accepted so far, is there a belief where a candidate vector is strictly better
than all of them? Oracles hand out sessions so that the accepted set can grow
incrementally (one LP model is reused for a whole prune call).

Session interface:
    session.add(u): accept alpha-vector u (S vector)
    session.findwitness(v): a witness belief (S vector) or None,
        raises NumericDegeneracy when the question cannot be settled
    session.gap(v): max_b (v @ b - max_u u @ b) over the simplex, may be
        negative; raises NumericDegeneracy when not solved to optimality
"""

import itertools
import numpy as np

from incprune.optmodel import WitnessModel, NumericDegeneracy


class DominanceOracle():
    """Base class for dominance oracles"""
    def __init__(self, tol=1e-7):
        self.tol = tol

    def session(self, S):
        raise NotImplementedError("Please implement session for DominanceOracle.")


class LPDominanceOracle(DominanceOracle):
    """Witness LP solved by Gurobi's simplex

    timelimit, iterationlimit: caps on every single LP solve
    """
    def __init__(self, tol=1e-7, timelimit=np.inf, iterationlimit=np.inf):
        super().__init__(tol)
        self.timelimit = timelimit
        self.iterationlimit = iterationlimit

    def session(self, S):
        return LPSession(self, S)


class LPSession():
    def __init__(self, oracle, S):
        self.oracle = oracle
        self.S = S
        self._lp = None
        self.numlps = 0

    def _model(self):
        if self._lp is None:
            self._lp = WitnessModel(
                self.S, tol=self.oracle.tol, timelimit=self.oracle.timelimit,
                iterationlimit=self.oracle.iterationlimit
            )
        return self._lp

    def add(self, u):
        self._model().addvector(u)

    def findwitness(self, v):
        self.numlps += 1
        delta, b, proven = self._model().witness(v)
        if delta > self.oracle.tol:
            return b
        elif proven:
            return None
        else:
            raise NumericDegeneracy("LIMIT", "(delta {0:.3g} not proven)".format(delta))

    def gap(self, v):
        self.numlps += 1
        delta, _, proven = self._model().witness(v)
        if not proven:
            raise NumericDegeneracy("LIMIT", "(gap {0:.3g} not proven)".format(delta))
        return delta

    def close(self):
        if self._lp is not None:
            self._lp.dispose()
            self._lp = None


class GridDominanceOracle(DominanceOracle):
    """Brute force search over a regular grid on the belief simplex

    Every belief whose coordinates are multiples of 1 / resolution is tried.
    Exact only up to the grid, which is enough for deterministic tests.
    """
    def __init__(self, tol=1e-7, resolution=20):
        super().__init__(tol)
        self.resolution = resolution
        self._grids = {}

    def grid(self, S):
        if S not in self._grids:
            self._grids[S] = SimplexGrid(S, self.resolution)
        return self._grids[S]

    def session(self, S):
        return GridSession(self, self.grid(S))


class GridSession():
    def __init__(self, oracle, grid):
        self.oracle = oracle
        self.BT = grid # N x S
        self.vmax = np.full(grid.shape[0], -np.inf) # N vector
        self.numlps = 0

    def add(self, u):
        self.vmax = np.maximum(self.vmax, self.BT @ u)

    def findwitness(self, v):
        gap = self.BT @ v - self.vmax
        idx = np.argmax(gap)
        if gap[idx] > self.oracle.tol:
            return self.BT[idx].copy()
        return None

    def gap(self, v):
        return np.max(self.BT @ v - self.vmax)

    def close(self):
        pass


def SimplexGrid(S, resolution):
    """All beliefs on the S-simplex with coordinates in {0, 1/n, ..., 1}

    Output:
        BT: N x S numpy array, N = C(n + S - 1, S - 1)
    """
    n = resolution
    rows = []
    # stars and bars: choose S - 1 bar positions among n + S - 1 slots
    for bars in itertools.combinations(range(n + S - 1), S - 1):
        edges = (-1,) + bars + (n + S - 1,)
        rows.append([edges[i + 1] - edges[i] - 1 for i in range(S)])
    return np.array(rows, dtype=np.float64) / n
