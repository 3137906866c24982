"""Witness-method pruning of alpha-vector sets

Removes every alpha-vector that is not the strict maximizer at some belief.
Steps:
1. numerically equal vectors collapse to the first one seen
2. point-wise dominated vectors are dropped
3. the best vector at every corner of the simplex is accepted
4. every remaining candidate is checked with a dominance oracle; when a
   witness belief is found the (lexicographically) best remaining vector at
   that belief is accepted, otherwise the candidate is dropped

An oracle that cannot settle a candidate (NumericDegeneracy) never causes a
vector to be lost: the candidate is kept.
"""

import threading
import time
import numpy as np

from incprune.dominance import LPDominanceOracle
from incprune.optmodel import NumericDegeneracy


class Pruner():
    def __init__(self, oracle=None, tol=1e-7, verbose=False, t0=None):
        """
        oracle: a DominanceOracle, defaults to LPDominanceOracle(tol)
        tol: two vectors closer than tol (max norm) count as equal
        """
        self.oracle = LPDominanceOracle(tol) if oracle is None else oracle
        self.tol = tol
        self.verbose = verbose
        self.t0 = time.time() if t0 is None else t0

        # stats
        self._lock = threading.Lock()
        self.numprunes = 0
        self.numlps = 0
        self.numdegenerate = 0
        self.timeprune = 0.0

    def __call__(self, vs):
        return self.prune(vs)[0]

    def prune(self, vs):
        """Prune a VectorSet

        Output: (pruned VectorSet, witnesses)
            witnesses: dict mapping indices of the pruned set to the belief
            that proved them (corner beliefs included); vectors kept because
            of a degenerate LP have no entry
        """
        tb0 = time.time()
        if len(vs) == 0:
            return vs, {}

        candidates = vs.undominatedindices(vs.uniqueindices(self.tol), self.tol)
        accepted = []
        witnesses = {}

        # corners of the simplex
        for s in range(vs.S):
            b = np.zeros(vs.S)
            b[s] = 1.0
            best = lexargmax(vs.alp, candidates, b, self.tol)
            if best not in accepted:
                accepted.append(best)
                witnesses[best] = b
        remaining = [v for v in candidates if v not in accepted]

        session = self.oracle.session(vs.S)
        numdegenerate = 0
        try:
            for u in accepted:
                session.add(vs.alp[:, u])
            while remaining:
                v = remaining[-1]
                try:
                    b = session.findwitness(vs.alp[:, v])
                except NumericDegeneracy as e:
                    numdegenerate += 1
                    if self.verbose:
                        print("[{0:.3f}s] NumericDegeneracy: {1}, keeping vector".format(
                            time.time() - self.t0, e))
                    remaining.pop()
                    accepted.append(v)
                    session.add(vs.alp[:, v])
                    continue
                if b is None:
                    remaining.pop()
                    continue
                best = lexargmax(vs.alp, remaining, b, self.tol)
                remaining.remove(best)
                accepted.append(best)
                witnesses[best] = b
                session.add(vs.alp[:, best])
        finally:
            session.close()

        order = sorted(accepted)
        position = {v: i for i, v in enumerate(order)}
        res = vs.subset(order)

        with self._lock:
            self.numprunes += 1
            self.numlps += session.numlps
            self.numdegenerate += numdegenerate
            self.timeprune += time.time() - tb0

        return res, {position[v]: b for v, b in witnesses.items()}


def lexargmax(alp, idx, b, tol=0.0):
    """Among the columns idx of alp, the one with the largest value at b.
    Near ties (within tol) are broken by comparing the vectors
    lexicographically, so the winner is a vertex of the value function.
    """
    idx = list(idx)
    vals = b @ alp[:, idx]
    best = np.flatnonzero(vals >= np.max(vals) - tol)
    winner = idx[best[0]]
    for j in best[1:]:
        w = idx[j]
        diff = alp[:, w] - alp[:, winner]
        nz = np.flatnonzero(np.abs(diff) > tol)
        if nz.size > 0 and diff[nz[0]] > 0:
            winner = w
    return winner
