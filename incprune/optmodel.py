"""Optimization Models

All calls to Gurobi optimization studio is wrapped in the classes defined in this
file. To replace Gurobi with something else, only the classes in this file needs
to be reimplemented, no other files need to change.

"""
import threading
import numpy as np
import gurobipy as grb


class OptimizationError(Exception):
    """Raised when gurobi got some internal error that cause the
    optimization process to fail
    """
    pass


class NumericDegeneracy(OptimizationError):
    """Raised when an LP finishes without a usable answer (infeasible,
    unbounded, numerical trouble, or a time/iteration limit hit before a
    solution was found). Callers are expected to recover locally.
    """
    def __init__(self, status, msg=""):
        self.status = status
        super().__init__("LP status {0} {1}".format(status, msg).strip())


_local = threading.local()


def threadenv():
    """Gurobi environments must not be shared between threads, so each
    worker thread lazily gets its own silent environment
    """
    env = getattr(_local, "env", None)
    if env is None:
        try:
            env = grb.Env(empty=True)
            env.setParam("OutputFlag", 0)
            env.start()
        except grb.GurobiError as e:
            raise OptimizationError("Cannot start Gurobi environment: {0}".format(e))
        _local.env = env
    return env


class OptimizationModel():
    """A generic gurobi model wrapper with constraint management
    """
    def __init__(self, name, timelimit=np.inf, iterationlimit=np.inf):
        self.grbmodel = grb.Model(name, env=threadenv())
        self.grbmodel.setAttr("ModelSense", grb.GRB.MAXIMIZE)
        if timelimit < np.inf:
            self.grbmodel.setParam("TimeLimit", timelimit) # in seconds
        if iterationlimit < np.inf:
            self.grbmodel.setParam("IterationLimit", iterationlimit)
        self.constrcounter = 0

    def addLEConstr(self, expr, rhs):
        """Add a constraint expr <= rhs"""
        self.grbmodel.addConstr(expr <= rhs)
        self.constrcounter += 1

    def solve(self, expr):
        """Maximize expr, return (objective value, True if proven optimal)"""
        try:
            self.grbmodel.setObjective(expr)
            self.grbmodel.optimize()
            status = self.grbmodel.Status
            if status == grb.GRB.OPTIMAL:
                return self.grbmodel.ObjVal, True
            elif status == grb.GRB.INTERRUPTED: # user interrupt
                raise KeyboardInterrupt
            elif self.grbmodel.SolCount > 0:
                # stopped early (time limit, iteration limit, suboptimal)
                # but a feasible point is still a valid lower bound
                return self.grbmodel.ObjVal, False
            else:
                raise NumericDegeneracy(status)
        except grb.GurobiError as e:
            raise OptimizationError(e)

    def dispose(self):
        self.grbmodel.dispose()

    @property
    def numconstr(self):
        return self.constrcounter


class WitnessModel(OptimizationModel):
    """LP looking for a witness belief

    Variables: belief b on the S-simplex, free variable y.
    Every accepted alpha-vector u adds the constraint u @ b - y <= 0, so that
    y >= max_u u @ b. For a candidate v, maximizing v @ b - y gives
        delta = max_b (v @ b - max_u u @ b)
    and the maximizer b is a witness for v whenever delta > tol.

    Gurobi's feasibility and optimality tolerances are set an order of
    magnitude below tol, clipped to the range Gurobi accepts.
    """
    def __init__(self, S, tol=1e-7, timelimit=np.inf, iterationlimit=np.inf):
        super().__init__(
            "witness", timelimit=timelimit, iterationlimit=iterationlimit
        )
        lptol = min(max(tol / 10, 1e-9), 1e-6)
        self.grbmodel.setParam("FeasibilityTol", lptol)
        self.grbmodel.setParam("OptimalityTol", lptol)
        self.S = S
        self.b = [
            self.grbmodel.addVar(lb=0.0, ub=1.0, name="b[{0}]".format(s))
            for s in range(S)
        ]
        self.y = self.grbmodel.addVar(lb=-grb.GRB.INFINITY, name="y")
        # distribution sums up to 1
        self.grbmodel.addConstr(grb.quicksum(self.b) == 1)

    def addvector(self, u):
        self.addLEConstr(grb.LinExpr([float(x) for x in u], self.b) - self.y, 0.0)

    def witness(self, v):
        """Return (delta, b, proven) for candidate v"""
        if self.numconstr == 0:
            raise NumericDegeneracy("EMPTY", "(no accepted vectors)")
        delta, proven = self.solve(grb.LinExpr([float(x) for x in v], self.b) - self.y)
        b = np.array([x.X for x in self.b])
        # clean up tiny negative values coming from solver tolerances
        b = np.maximum(b, 0.0)
        b /= np.sum(b)
        return delta, b, proven
