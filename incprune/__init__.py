"""incprune: exact POMDP value iteration with Incremental Pruning

Basic usage:
1. Generate a POMDP model, either from numpy arrays (POMDP), from element-wise
accessors (FromFunctions) or from a .pomdp file (POMDPParser).
2. Initialize an IncrementalPruning object with the model, optionally with a
dominance oracle and a number of worker threads.
3. Run IncrementalPruning.Solve with a horizon and/or a stopping threshold.
4. Query the returned ValueFunction with bestaction(b) or value(b).

See runtiger.py for an example
"""

# POMDP models
from .pomdpmodel import POMDP, FromFunctions, InvalidModel
from .pomdpparser import POMDPParser, POMDPParseError
from .models.tiger import TigerPOMDP

# alpha-vectors and pruning
from .vectorset import VectorSet, ValueVector
from .dominance import DominanceOracle, LPDominanceOracle, GridDominanceOracle
from .optmodel import OptimizationError, NumericDegeneracy
from .prune import Pruner

# Incremental Pruning algorithm
from .core import (
    IncrementalPruning, IncrementalPruningSolve, ValueFunction, SolverState,
    valuegap
)

# persistence
from .io import SaveValueFunction, LoadValueFunction, WritePOMDP, ModelMismatchError
