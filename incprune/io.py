"""Writing a POMDP model or a value function to a file

"""
import numpy as np

from incprune.core import ValueFunction
from incprune.vectorset import VectorSet


FORMAT_VERSION = 1


class ModelMismatchError(ValueError):
    """Raised when a stored value function does not belong to the model it is
    loaded for (different numbers of states, actions or observations) or was
    written in an unknown format
    """
    pass


def SaveValueFunction(vf, Model, filename):
    """Store a ValueFunction as a .npz archive

    The archive records the (S, A, O) of the model so that loading it against
    a different model fails instead of silently producing garbage.
    """
    np.savez(
        filename,
        version=np.array(FORMAT_VERSION),
        dims=np.array([Model.S, Model.A, Model.O]),
        alp=vf.vectors.alp,
        actions=vf.vectors.actions,
        plans=vf.vectors.plans,
        iteration=np.array(vf.iteration),
        residual=np.array(vf.residual)
    )


def LoadValueFunction(filename, Model):
    """Load a ValueFunction written by SaveValueFunction for Model"""
    with np.load(filename) as data:
        if "version" not in data or int(data["version"]) != FORMAT_VERSION:
            raise ModelMismatchError("Unknown value function format in " + str(filename))
        dims = tuple(int(x) for x in data["dims"])
        if dims != (Model.S, Model.A, Model.O):
            raise ModelMismatchError(
                "Value function computed for (S, A, O) = {0}, model has {1}".format(
                    dims, (Model.S, Model.A, Model.O))
            )
        vectors = VectorSet(data["alp"], data["actions"], data["plans"])
        return ValueFunction(
            vectors, int(data["iteration"]), Model.A, float(data["residual"])
        )


def WritePOMDP(Model, filename):
    """Write a POMDP model to a .pomdp file following Cassandra's format

    States, actions and observations are written as numbers. Rewards are
    written as expected immediate rewards r(s, a). The observation kernel is
    written as Z(o|s', a), which is exact for models built from (T, Z).

    Input:
        Model: a POMDP instance
        filename: path without the .pomdp extension
    """
    content = []
    line = "discount: {0:.10f}".format(Model.discount)
    content.append(line)
    line = "values: reward"
    content.append(line)
    line = "states: {0}".format(Model.S)
    content.append(line)
    line = "actions: {0}".format(Model.A)
    content.append(line)
    line = "observations: {0}".format(Model.O)
    content.append(line)
    if Model.b0 is not None:
        line = "start: " + " ".join(
            "{0:.10f}".format(Model.b0[s]) for s in range(Model.S)
        )
        content.append(line)

    PT, PZ = Model.PT, Model.PZ
    for a in range(Model.A):
        for s in range(Model.S):
            for s1 in range(Model.S):
                if PT[s, a, s1] > 0:
                    line = "T: {a} : {start_s} : {end_s} {pr:.10f}".format(
                        a=a, start_s=s, end_s=s1, pr=PT[s, a, s1])
                    content.append(line)

    for a in range(Model.A):
        for s1 in range(Model.S):
            for o in range(Model.O):
                if PZ[a, s1, o] > 0:
                    line = "O: {a} : {end_s} : {obs} {pr:.10f}".format(
                        a=a, end_s=s1, obs=o, pr=PZ[a, s1, o])
                    content.append(line)

    for a in range(Model.A):
        for s in range(Model.S):
            line = "R: {a} : {start_s} : * : * {v:.10f}".format(
                a=a, start_s=s, v=Model.r[s, a])
            content.append(line)

    content = "\n".join(content) + "\n"
    with open(filename + ".pomdp", "w") as f:
        f.write(content)
