"""Running Incremental Pruning on the Tiger problem

usage: python runtiger.py [horizon] [discount] [workers]
"""

import numpy as np
import sys
import time

from incprune.models.tiger import TigerPOMDP
from incprune.core import IncrementalPruning


def main():
    horizon = float(sys.argv[1]) if len(sys.argv) > 1 else np.inf
    discount = float(sys.argv[2]) if len(sys.argv) > 2 else 0.95
    workers = int(sys.argv[3]) if len(sys.argv) > 3 else 1
    # generate a POMDP model
    Tiger = TigerPOMDP(discount)
    # time keeping (optional)
    t0 = time.time()
    # Initialize the solver, pruning with Gurobi LPs
    Solver = IncrementalPruning(Tiger, workers=workers, t0=t0)
    # Run value iteration until the horizon or until convergence
    vf = Solver.Solve(horizon=horizon, epsilon=1e-6, timeout=3600)
    print("Value at b0: {0:.6f}, best action: {1}".format(
        vf.value(Tiger.b0), vf.bestaction(Tiger.b0)))

if __name__ == '__main__':
    main()
