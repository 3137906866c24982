"""Tiger Problem

An agent stands in front of two doors, a tiger hides behind one of them and a
treasure behind the other. Listening is cheap but noisy, opening the wrong door
is expensive. See L. P. Kaelbling, M. L. Littman and A. R. Cassandra, "Planning
and acting in partially observable stochastic domains," Artificial
Intelligence, vol. 101, pp. 99-134, 1998.

"""

import numpy as np

from incprune.pomdpmodel import POMDP


def TigerPOMDP(discount=0.95, accuracy=0.85, listeningcost=1, tiger=-100,
               treasure=10):
    """Tiger problem

    States: 0 tiger behind the left door, 1 tiger behind the right door
    Actions: 0 listen, 1 open left, 2 open right
    Observations: 0 hear left, 1 hear right

    Returns:
        A POMDP model
    """
    S, A, O = 2, 3, 2
    PT = np.zeros((S, A, S))
    PZ = np.zeros((A, S, O))
    r = np.zeros((S, A))

    # listening does not move the tiger, opening a door resets the problem
    PT[:, 0, :] = np.eye(S)
    PT[:, 1:, :] = 1 / S

    # only listening is informative
    PZ[0] = accuracy * np.eye(S) + (1 - accuracy) * (1 - np.eye(S))
    PZ[1:] = 1 / O

    r[:, 0] = -listeningcost
    r[:, 1] = [tiger, treasure]
    r[:, 2] = [treasure, tiger]

    return POMDP((PT, PZ), r, discount, b0=np.ones(S) / S)
