"""POMDP Model Class
"""

import numpy as np
import scipy.sparse as spsp


class InvalidModel(ValueError):
    """Raised when the model data cannot describe a POMDP, e.g. rows of the
    transition kernel that do not sum up to 1 or a discount outside (0, 1]
    """
    pass


class POMDP():
    def __init__(self, P, r, discount, b0=None, tol=1e-6):
        """Initialize POMDP Model
        P: S x A x O x S' numpy array or tuple
           (S x A x S' numpy array, A x S' x O numpy array)
        r: S x A or S x A x O x S' numpy array
        discount: number in (0, 1]
        b0: None or S numpy array, only kept for reporting
        tol: tolerance used when checking that distributions sum up to 1

        Creates:
        self.P: S x A x O x S' numpy array, P(s', o|s, a)
        self.r: S x A numpy array
        self.discount: discount factor
        self.Pao: A x O nested list of S x S' csr matrices,
            Pao[a][o][s, s'] = P(s', o|s, a)
        """
        if isinstance(P, tuple):
            PT, PZ = np.asarray(P[0], dtype=np.float64), np.asarray(P[1], dtype=np.float64)
            if PT.ndim != 3 or PZ.ndim != 3:
                raise InvalidModel("T should be S x A x S' and Z should be A x S' x O")
            self.S, self.A, self.O = PT.shape[0], PT.shape[1], PZ.shape[2]
            if PT.shape != (self.S, self.A, self.S) or PZ.shape[:2] != (self.A, self.S):
                raise InvalidModel(
                    "Shapes of T {0} and Z {1} do not agree".format(PT.shape, PZ.shape)
                )
            _checkdistribution(PT, -1, tol, "transition")
            _checkdistribution(PZ, -1, tol, "observation")
            self.P = np.zeros((self.S, self.A, self.S, self.O))
            for s in range(self.S):
                self.P[s] = PT[s, :, :, np.newaxis] * PZ
                # A x S' x 1 mults A x S' x O so that numpy broadcasting applies
            self.P = np.swapaxes(self.P, 2, 3)
            # switch from S x A x S' x O to S x A x O x S'
        else:
            self.P = np.asarray(P, dtype=np.float64)
            if self.P.ndim != 4 or self.P.shape[0] != self.P.shape[3]:
                raise InvalidModel("P should be an S x A x O x S array")
            self.S, self.A, self.O = self.P.shape[0], self.P.shape[1], self.P.shape[2]
            _checkdistribution(self.P, (2, 3), tol, "joint observation-transition")

        if min(self.S, self.A, self.O) == 0:
            raise InvalidModel("Need at least one state, action and observation")

        r = np.asarray(r, dtype=np.float64)
        if r.shape == (self.S, self.A):
            self.r = r
        elif r.shape == (self.S, self.A, self.O, self.S):
            self.r = np.sum(self.P * r, axis=(2,3)) # convert to expected reward
        else:
            raise InvalidModel("Dimension of r should be S x A or S x A x O x S")
        if not np.all(np.isfinite(self.r)):
            raise InvalidModel("Rewards should be finite")

        if not (0 < discount <= 1):
            raise InvalidModel("Discount {0} not in (0, 1]".format(discount))
        self.discount = float(discount)

        if b0 is not None:
            b0 = np.asarray(b0, dtype=np.float64)
            if b0.shape != (self.S,):
                raise InvalidModel("b0 should be an S vector")
            _checkdistribution(b0, -1, tol, "initial belief")
        self.b0 = b0

        self.Pao = [
            [spsp.csr_matrix(self.P[:, a, o, :]) for o in range(self.O)]
            for a in range(self.A)
        ]

    @property
    def PT(self):
        return np.sum(self.P, axis=2)

    @property
    def PZ(self):
        """A x S' x O observation kernel Z(o|s', a)

        Only meaningful when o is independent of s given (a, s'), which holds
        for every model built from a (T, Z) pair. Zero rows of the transition
        kernel are reported as uniform.
        """
        PT = self.PT # S x A x S'
        joint = np.sum(self.P, axis=0) # A x O x S'
        reach = np.sum(PT, axis=0) # A x S'
        PZ = np.full((self.A, self.S, self.O), 1.0 / self.O)
        mask = reach > 0
        PZ[mask] = np.swapaxes(joint, 1, 2)[mask] / reach[mask][:, np.newaxis]
        return PZ

    def Paomult(self, a, o, v):
        """Compute w(s) = sum_{s'} P(s', o|s, a) v(s', :) for a fixed (a, o)
        Input:
            v: S' x V
        Output:
            w: S x V
        """
        return self.Pao[a][o] @ v

    def reward(self, s, a):
        return self.r[s, a]

    def transitionprob(self, s, a, s1):
        return np.sum(self.P[s, a, :, s1])

    def observationprob(self, o, s1, a):
        reach = np.sum(self.P[:, a, :, s1])
        if reach <= 0:
            return 1.0 / self.O
        return np.sum(self.P[:, a, o, s1]) / reach


def FromFunctions(S, A, O, reward, transitionprob, observationprob, discount,
                  b0=None):
    """Build a POMDP from element-wise accessors

    Input:
        S, A, O: number of states, actions and observations
        reward(s, a): immediate reward
        transitionprob(s, a, s1): Pr(s1|s, a)
        observationprob(o, s1, a): Pr(o|s1, a)
        discount: number in (0, 1]
    """
    PT = np.array([
        [[transitionprob(s, a, s1) for s1 in range(S)] for a in range(A)]
        for s in range(S)
    ], dtype=np.float64).reshape((S, A, S))
    PZ = np.array([
        [[observationprob(o, s1, a) for o in range(O)] for s1 in range(S)]
        for a in range(A)
    ], dtype=np.float64).reshape((A, S, O))
    r = np.array([
        [reward(s, a) for a in range(A)] for s in range(S)
    ], dtype=np.float64).reshape((S, A))
    return POMDP((PT, PZ), r, discount, b0)


def _checkdistribution(X, axis, tol, name):
    if not np.all(np.isfinite(X)):
        raise InvalidModel("{0} probabilities should be finite".format(name))
    if np.any(X < -tol) or np.any(X > 1 + tol):
        raise InvalidModel("{0} probabilities should lie in [0, 1]".format(name))
    sums = np.sum(X, axis=axis)
    if np.any(np.abs(sums - 1.0) > tol):
        raise InvalidModel(
            "{0} probabilities should sum up to 1, got {1}".format(
                name, np.unique(np.round(sums[np.abs(sums - 1.0) > tol], 6)))
        )
