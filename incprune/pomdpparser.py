# Parser for Cassandra's .pomdp format, after Maxwell Forbes's parser code in
# https://github.com/mbforbes/py-pomdp
# Specifying states, actions, or observations by name is not supported
import numpy as np
from incprune.pomdpmodel import POMDP


class POMDPParseError(ValueError):
    pass


class POMDPParser():
    def __init__(self, filename):
        with open(filename) as fh:
            self.contents = [
                # make sure every colon is a token of its own
                x.split('#')[0].replace(':', ' : ').strip() for x in fh
            ]
        self.contents = [x for x in self.contents if x]

        self.S, self.A, self.O = 0, 0, 0
        self.discount = None
        self.PT, self.PZ, self.r, self.b0 = None, None, None, None
        i = 0
        while i < len(self.contents):
            line = self.contents[i]
            if line.startswith("discount"):
                self.discount = float(self.__pieces(i)[0])
                i += 1
            elif line.startswith("states"):
                i, self.S = self.__get_sao(i)
            elif line.startswith("actions"):
                i, self.A = self.__get_sao(i)
            elif line.startswith("observations"):
                i, self.O = self.__get_sao(i)
            elif line.startswith("values"):
                if self.__pieces(i)[0] != "reward":
                    raise NotImplementedError("Only support reward")
                i += 1
            elif self.PT is None:
                raise POMDPParseError(
                    "states, actions and observations must come before: " + line)
            elif line.startswith("start"):
                i = self.__get_start_dist(i)
            elif line.startswith("T"):
                i = self.__get_transition_kernel(i)
            elif line.startswith("O"):
                i = self.__get_observation_kernel(i)
            elif line.startswith("R"):
                i = self.__get_rewards(i)
            else:
                raise POMDPParseError("Cannot parse line " + line)

            if (self.PT is None) and self.S > 0 and self.A > 0 and self.O > 0:
                self.PT = np.zeros((self.S, self.A, self.S))
                self.PZ = np.zeros((self.A, self.S, self.O))
                self.r = np.zeros((self.S, self.A, self.S, self.O)) # S x A x S' x O

        if self.discount is None or self.PT is None:
            raise POMDPParseError("Missing discount, states, actions or observations")

    def generatePOMDP(self):
        return POMDP(
            (self.PT, self.PZ), np.swapaxes(self.r, 2, 3), self.discount, self.b0
        )

    def __pieces(self, i):
        return [x for x in self.contents[i].split() if x != ':'][1:]

    def __floats(self, i, n):
        try:
            probs = [float(x) for x in self.contents[i].split()]
        except (ValueError, IndexError):
            raise POMDPParseError("Expected {0} numbers at line {1}".format(n, i))
        if len(probs) != n:
            raise POMDPParseError(
                "Expected {0} numbers, got {1}: {2}".format(n, len(probs), self.contents[i]))
        return np.array(probs)

    def __get_sao(self, i):
        pieces = self.__pieces(i)
        if len(pieces) != 1 or not pieces[0].isnumeric():
            raise NotImplementedError("Please specify number of " + self.contents[i].split()[0])
        return i + 1, int(pieces[0])

    def __get_start_dist(self, i):
        pieces = self.__pieces(i)
        if len(pieces) == 0:
            self.b0 = self.__floats(i + 1, self.S)
            return i + 2
        elif pieces == ["uniform"]:
            self.b0 = np.full(self.S, 1.0 / self.S)
        else:
            self.b0 = np.array([float(x) for x in pieces])
            if self.b0.size != self.S:
                raise POMDPParseError("Start distribution needs {0} entries".format(self.S))
        return i + 1

    def __get_transition_kernel(self, i):
        pieces = self.__pieces(i)
        action = _idx(pieces[0])

        if len(pieces) == 4:
            # case 1: T: <action> : <start-state> : <next-state> %f
            self.PT[_idx(pieces[1]), action, _idx(pieces[2])] = float(pieces[3])
            return i + 1
        elif len(pieces) == 3:
            # case 2: T: <action> : <start-state> : <next-state>
            # %f
            self.PT[_idx(pieces[1]), action, _idx(pieces[2])] = self.__floats(i + 1, 1)[0]
            return i + 2
        elif len(pieces) == 2:
            # case 3: T: <action> : <start-state>
            # %f %f ... %f
            self.PT[_idx(pieces[1]), action, :] = self.__floats(i + 1, self.S)
            return i + 2
        elif len(pieces) == 1:
            next_line = self.contents[i+1]
            if next_line == "identity":
                # case 4: T: <action>
                # identity
                for a in np.atleast_1d(np.arange(self.A)[action]):
                    self.PT[:, a, :] = np.eye(self.S)
                return i + 2
            elif next_line == "uniform":
                # case 5: T: <action>
                # uniform
                self.PT[:, action, :] = 1.0 / self.S
                return i + 2
            else:
                # case 6: T: <action>
                # %f %f ... %f
                # ...
                # %f %f ... %f
                for start_state in range(self.S):
                    self.PT[start_state, action, :] = self.__floats(i + 1 + start_state, self.S)
                return i + 1 + self.S
        else:
            raise POMDPParseError("Cannot parse line " + self.contents[i])

    def __get_observation_kernel(self, i):
        pieces = self.__pieces(i)
        action = _idx(pieces[0])

        if len(pieces) == 4:
            # case 1: O: <action> : <next-state> : <obs> %f
            self.PZ[action, _idx(pieces[1]), _idx(pieces[2])] = float(pieces[3])
            return i + 1
        elif len(pieces) == 3:
            # case 2: O: <action> : <next-state> : <obs>
            # %f
            self.PZ[action, _idx(pieces[1]), _idx(pieces[2])] = self.__floats(i + 1, 1)[0]
            return i + 2
        elif len(pieces) == 2:
            # case 3: O: <action> : <next-state>
            # %f %f ... %f
            self.PZ[action, _idx(pieces[1]), :] = self.__floats(i + 1, self.O)
            return i + 2
        elif len(pieces) == 1:
            next_line = self.contents[i+1]
            if next_line == "identity":
                # case 4: O: <action>
                # identity
                if self.S != self.O:
                    raise POMDPParseError("identity observation needs as many observations as states")
                self.PZ[action, :, :] = np.eye(self.S)
                return i + 2
            elif next_line == "uniform":
                # case 5: O: <action>
                # uniform
                self.PZ[action, :, :] = 1.0 / self.O
                return i + 2
            else:
                # case 6: O: <action>
                # %f %f ... %f
                # ...
                # %f %f ... %f
                for next_state in range(self.S):
                    self.PZ[action, next_state, :] = self.__floats(i + 1 + next_state, self.O)
                return i + 1 + self.S
        else:
            raise POMDPParseError("Cannot parse line: " + self.contents[i])

    def __get_rewards(self, i):
        pieces = self.__pieces(i)
        if len(pieces) < 2:
            raise POMDPParseError("Cannot parse line: " + self.contents[i])
        action = _idx(pieces[0])
        start_state = _idx(pieces[1])

        if len(pieces) >= 4:
            # case 1: R: <action> : <start-state> : <next-state> : <obs> %f
            # case 2: R: <action> : <start-state> : <next-state> : <obs>
            # %f
            next_state = _idx(pieces[2])
            obs = _idx(pieces[3])
            reward = self.__floats(i + 1, 1)[0] if len(pieces) == 4 else float(pieces[-1])
            self.r[start_state, action, next_state, obs] = reward
            return i + 1 + (len(pieces) == 4)
        elif len(pieces) == 3:
            # case 3: R: <action> : <start-state> : <next-state>
            # %f %f ... %f
            next_state = _idx(pieces[2])
            self.r[start_state, action, next_state, :] = self.__floats(i + 1, self.O)
            return i + 2
        else:
            # case 4: R: <action> : <start-state>
            # %f %f ... %f
            # ...
            # %f %f ... %f
            for next_state in range(self.S):
                self.r[start_state, action, next_state, :] = self.__floats(
                    i + 1 + next_state, self.O)
            return i + 1 + self.S


def _idx(s):
    return slice(None) if (s == "*") else int(s)
