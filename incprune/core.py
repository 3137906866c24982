"""Incremental Pruning Solver

Exact value iteration for POMDPs. Every iteration backs up the previous value
function:
    for each action a and observation o: project, then prune
    for each action a: cross-sum the projections, pruning after every fold
    union over actions, prune globally
Value functions are never modified once built; the solver keeps every
generation in self.history, indexed by iteration.
"""

import concurrent.futures
import enum
import threading
import time
import numpy as np

from incprune.backup import project, incrementalcrosssum, crosssumall
from incprune.optmodel import NumericDegeneracy
from incprune.pomdpmodel import InvalidModel
from incprune.prune import Pruner
from incprune.vectorset import VectorSet, Union


class SolverState(enum.Enum):
    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"
    HORIZON_REACHED = "horizon reached"
    CANCELLED = "cancelled"


class ValueFunction():
    """Piecewise linear convex value function of one stage

    Properties:
    vectors: VectorSet, the globally pruned alpha-vectors
    iteration: number of backups since the horizon-0 baseline
    residual: Bellman residual to the previous generation (np.inf at 0)
    numactions: number of actions of the model
    """
    def __init__(self, vectors, iteration, numactions, residual=np.inf):
        self.vectors = vectors
        self.iteration = iteration
        self.numactions = numactions
        self.residual = residual

    def __len__(self):
        return len(self.vectors)

    @property
    def S(self):
        return self.vectors.S

    def byaction(self):
        """Dictionary action -> VectorSet of its surviving vectors
        (actions that are never optimal map to an empty set)
        """
        return {a: self.vectors.withaction(a) for a in range(self.numactions)}

    def value(self, b):
        return self.vectors.max(b)

    def bestvector(self, b):
        """The ValueVector attaining the value at b"""
        return self.vectors[self.vectors.argmax(b)]

    def bestaction(self, b):
        """argmax_a max_{alpha in VectorSet(a)} b @ alpha

        Actions without surviving vectors are never returned.
        """
        vals = self.vectors.values(b)
        best, bestval = None, -np.inf
        for a, vs in self.byaction().items():
            if len(vs) == 0:
                continue
            va = np.max(vals[self.vectors.actions == a])
            if va > bestval:
                best, bestval = a, va
        return best


class IncrementalPruning():
    def __init__(self, Model, oracle=None, tolerance=1e-7, workers=1,
                 incremental=True, verbose=True, t0=None):
        """
        Model: a POMDP
        oracle: DominanceOracle used for pruning (Gurobi LP by default)
        tolerance: vectors closer than this are considered equal
        workers: number of worker threads for (action, observation) tasks
        incremental: prune after every observation fold; if False, prune the
            full cross-sum of each action once
        """
        self.t0 = time.time() if t0 is None else t0
        self.state = SolverState.INITIALIZING
        self.Model = Model
        self.workers = workers
        self.incremental = incremental
        self.verbose = verbose
        self.pruner = Pruner(oracle, tol=tolerance, verbose=verbose, t0=self.t0)
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._executor = None

        # stats
        self.timebackup = 0.0
        self.timeprojection = 0.0
        self.timeresidual = 0.0

        # horizon-0 baseline: one vector per action, the immediate reward
        baseline = VectorSet(Model.r, np.arange(Model.A))
        self.history = [
            ValueFunction(self.pruner(baseline), 0, Model.A)
        ]
        self.log("Initialization complete! {0} vectors".format(len(self.vf)))

    @property
    def vf(self):
        """Latest complete value function"""
        return self.history[-1]

    @property
    def iteration(self):
        return self.vf.iteration

    def log(self, msg):
        if self.verbose:
            print("[{0:.3f}s] {1}".format(time.time() - self.t0, msg))

    def cancel(self):
        """Ask the solver to stop before the next iteration"""
        self._cancel.set()

    def Solve(self, horizon=np.inf, epsilon=1e-6, timeout=np.inf):
        """Run value iteration

        horizon: stop after this many iterations
        epsilon: stop when the Bellman residual falls below epsilon
            (set to 0 to run until the horizon)
        timeout: time limit in seconds, checked between iterations
        Returns the latest complete ValueFunction
        """
        if horizon == np.inf:
            if self.Model.discount >= 1:
                raise InvalidModel("Infinite horizon needs a discount below 1")
            if not epsilon > 0:
                raise ValueError("Infinite horizon needs a positive epsilon")

        tstart = time.time()
        self.state = SolverState.ITERATING
        try:
            while True:
                if self.iteration >= horizon:
                    self.state = SolverState.HORIZON_REACHED
                    break
                if self._cancel.is_set():
                    self._cancel.clear()
                    self.log("Cancelled! Terminating Algorithm")
                    self.state = SolverState.CANCELLED
                    break
                if time.time() - tstart > timeout:
                    self.log("Timeout! Terminating Algorithm")
                    self.state = SolverState.CANCELLED
                    break
                try:
                    vf = self.step(epsilon)
                except KeyboardInterrupt:
                    print("User KeyboardInterrupt. Terminating Algorithm")
                    self.state = SolverState.CANCELLED
                    break
                if vf.residual < epsilon:
                    self.state = SolverState.CONVERGED
                    break
        finally:
            self.close()

        self.printstats()
        return self.vf

    def close(self):
        """Shut down the worker pool (a later step starts a new one)"""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _pool(self):
        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=self.workers
            )
        return self._executor

    def step(self, epsilon=0.0):
        """One backup of the latest value function

        epsilon: the residual is the exact value gap to the previous
            generation, unless the cheap bound is already below epsilon
        """
        tb0 = time.time()
        prev = self.vf.vectors
        A, O = self.Model.A, self.Model.O

        if self.workers > 1:
            executor = self._pool()
            pairs = [(a, o) for a in range(A) for o in range(O)]
            projected = list(executor.map(
                lambda ao: self._projectandprune(prev, *ao), pairs
            ))
            # join: every observation of an action is needed by its cross-sum
            projections = [projected[a * O:(a + 1) * O] for a in range(A)]
            actionsets = list(executor.map(self._crosssum, projections))
        else:
            actionsets = [
                self._crosssum(
                    [self._projectandprune(prev, a, o) for o in range(O)]
                )
                for a in range(A)
            ]

        # join: global prune over all actions
        vectors = self.pruner(Union(actionsets))
        residual = bellmanresidual(prev, vectors)
        if 0 < residual < np.inf and residual >= epsilon:
            tr0 = time.time()
            try:
                residual = min(residual, valuegap(prev, vectors, self.pruner.oracle))
            except NumericDegeneracy as e:
                self.log("NumericDegeneracy: {0}, keeping residual bound".format(e))
            self.timeresidual += time.time() - tr0
        vf = ValueFunction(vectors, self.iteration + 1, A, residual)
        self.history.append(vf)

        self.timebackup += time.time() - tb0
        self.log("Iteration {0}, {1} vectors, residual: {2:.6g}".format(
            vf.iteration, len(vf), residual))
        return vf

    def _projectandprune(self, prev, a, o):
        tp0 = time.time()
        vs = project(self.Model, prev, a, o)
        with self._lock:
            self.timeprojection += time.time() - tp0
        return self.pruner(vs)

    def _crosssum(self, projections):
        if self.incremental:
            return incrementalcrosssum(projections, self.pruner)
        return self.pruner(crosssumall(projections))

    def printstats(self):
        if not self.verbose:
            return
        print("Solver state: {0}".format(self.state.value))
        print("Iterations: {0}, vectors: {1}, residual: {2:.6g}".format(
            self.iteration, len(self.vf), self.vf.residual))
        print("Algorithm Time: {0:.3f}s".format(time.time() - self.t0))
        print("Time spent on Backup: {0:.3f}s".format(self.timebackup))
        print("Time spent on Projection: {0:.3f}s".format(self.timeprojection))
        print("Time spent on Pruning: {0:.3f}s".format(self.pruner.timeprune))
        print("Time spent on Residual: {0:.3f}s".format(self.timeresidual))
        print("Number of Prunes: {0}, LPs: {1}, degenerate LPs: {2}".format(
            self.pruner.numprunes, self.pruner.numlps, self.pruner.numdegenerate))


def bellmanresidual(old, new):
    """Upper bound on sup_b |V_new(b) - V_old(b)|

    For every vector of one set take the max-norm distance to the closest
    vector of the other set; the residual is the largest such distance in
    either direction.
    """
    if len(old) == 0 or len(new) == 0:
        return np.inf
    # dist[i, j] = max_s |old_i(s) - new_j(s)|
    dist = np.max(np.abs(old.alp[:, :, np.newaxis] - new.alp[:, np.newaxis, :]), axis=0)
    return max(np.max(np.min(dist, axis=0)), np.max(np.min(dist, axis=1)))


def valuegap(old, new, oracle):
    """sup_b |V_new(b) - V_old(b)| over the belief simplex

    Every vector of one set is a witness LP against the other set:
        max_b V_new(b) - V_old(b) = max_v max_b (v @ b - V_old(b))
    and symmetrically. Raises NumericDegeneracy when an LP is not solved to
    optimality.
    """
    if len(old) == 0 or len(new) == 0:
        return np.inf
    return max(_onesidedgap(old, new, oracle), _onesidedgap(new, old, oracle), 0.0)


def _onesidedgap(lower, upper, oracle):
    session = oracle.session(lower.S)
    try:
        for u in lower.alp.T:
            session.add(u)
        return max(session.gap(v) for v in upper.alp.T)
    finally:
        session.close()


def IncrementalPruningSolve(Model, horizon=np.inf, epsilon=1e-6, timeout=np.inf,
                            oracle=None, workers=1, verbose=True):
    """Incremental Pruning Algorithm

    Input:
        Model: a POMDP model
        horizon: number of backups (np.inf for infinite horizon)
        epsilon: stopping threshold on the Bellman residual
        timeout: time limit in seconds
    Output: (ValueFunction, IncrementalPruning solver)
    """
    t0 = time.time()
    Solver = IncrementalPruning(Model, oracle=oracle, workers=workers,
                                verbose=verbose, t0=t0)
    vf = Solver.Solve(horizon=horizon, epsilon=epsilon, timeout=timeout)
    return vf, Solver
