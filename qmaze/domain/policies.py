"""Exploration policies deciding which action the agent takes next."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List

import numpy as np

from .errors import check_parameter
from .node import Node
from .qtable import QTable
from .types import Action
from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)


def sorted_actions(actions) -> List[Action]:
    """Actions in canonical order so that seeded choices are reproducible."""
    return sorted(actions, key=lambda a: a.order)


class ExplorationPolicy(ABC):
    """Chooses an action for the current node based on the Q-table."""

    @abstractmethod
    def choose_action(self, node: Node, q_table: QTable) -> Action:
        pass

    def post_processing(self, old_node: Node, action: Action, old_q_value: float,
                        new_node: Node, q_table: QTable) -> None:
        """Hook called after every Q-value update."""

    @abstractmethod
    def params(self) -> dict:
        pass

    def config_string(self) -> str:
        args = ", ".join(f"{k} = {v}" for k, v in self.params().items())
        return f"{type(self).__name__}({args})"

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.params() == other.params()

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(self.params().items()))))

    def __repr__(self) -> str:
        return self.config_string()


class GreedyPolicy(ExplorationPolicy):
    """Always picks a best action; ties are broken at random."""

    def __init__(self, seed: int):
        self.seed = seed
        self.rng = SeededRNG(seed)

    def params(self) -> dict:
        return {"seed": self.seed}

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        actions = q_table.get_actions(node)
        highest = q_table.get_highest_q_value_of_state(node)
        best = sorted_actions(a for a, value in actions.items() if value == highest)
        return best[self.rng.next_int(len(best))]


class RandomPolicy(ExplorationPolicy):
    """Picks any available action with equal probability."""

    def __init__(self, seed: int):
        self.seed = seed
        self.rng = SeededRNG(seed)

    def params(self) -> dict:
        return {"seed": self.seed}

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        actions = sorted_actions(q_table.get_actions(node))
        return actions[self.rng.next_int(len(actions))]


class EpsilonGreedyPolicy(ExplorationPolicy):
    """Explores with probability epsilon, otherwise acts greedily."""

    def __init__(self, epsilon: float, seed: int):
        self._check_epsilon(epsilon)
        self.epsilon = epsilon
        self.seed = seed
        self.rng = SeededRNG(seed)
        self.random_policy = RandomPolicy(seed)
        self.greedy_policy = GreedyPolicy(seed)

    @staticmethod
    def _check_epsilon(epsilon: float) -> None:
        check_parameter(0 <= epsilon <= 1, "epsilon", epsilon, "in [0, 1]")

    def params(self) -> dict:
        return {"epsilon": self.epsilon, "seed": self.seed}

    def set_epsilon(self, epsilon: float) -> None:
        self._check_epsilon(epsilon)
        self.epsilon = epsilon

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        if self.rng.random() <= self.epsilon:
            return self.random_policy.choose_action(node, q_table)
        return self.greedy_policy.choose_action(node, q_table)


class DecreasingEpsilonPolicy(ExplorationPolicy):
    """Epsilon-greedy whose epsilon shrinks by a constant factor after each choice."""

    def __init__(self, epsilon_0: float, reducing_factor: float, seed: int):
        check_parameter(0 <= epsilon_0 <= 1, "epsilon_0", epsilon_0, "in [0, 1]")
        check_parameter(0 < reducing_factor < 1, "reducing_factor", reducing_factor, "in (0, 1)")
        self.epsilon_0 = epsilon_0
        self.reducing_factor = reducing_factor
        self.seed = seed
        self.epsilon_greedy = EpsilonGreedyPolicy(epsilon_0, seed)

    def params(self) -> dict:
        return {"epsilon_0": self.epsilon_0, "reducing_factor": self.reducing_factor, "seed": self.seed}

    @property
    def epsilon(self) -> float:
        return self.epsilon_greedy.epsilon

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        action = self.epsilon_greedy.choose_action(node, q_table)
        self.epsilon_greedy.set_epsilon(self.epsilon * self.reducing_factor)
        logger.debug("Epsilon reduced to %s", self.epsilon)
        return action


class EpsilonFirstPolicy(ExplorationPolicy):
    """Uses an exploring epsilon for the first actions and an exploiting one afterwards."""

    def __init__(self, epsilon_explore: float, epsilon_exploit: float,
                 number_of_exploring_actions: int, seed: int):
        check_parameter(0 <= epsilon_explore <= 1, "epsilon_explore", epsilon_explore, "in [0, 1]")
        check_parameter(0 <= epsilon_exploit <= 1, "epsilon_exploit", epsilon_exploit, "in [0, 1]")
        check_parameter(number_of_exploring_actions >= 1, "number_of_exploring_actions",
                        number_of_exploring_actions, "greater than 0")
        self.epsilon_explore = epsilon_explore
        self.epsilon_exploit = epsilon_exploit
        self.number_of_exploring_actions = number_of_exploring_actions
        self.seed = seed
        self.explore_policy = EpsilonGreedyPolicy(epsilon_explore, seed)
        self.exploit_policy = EpsilonGreedyPolicy(epsilon_exploit, seed)
        self.actions_taken = 0

    def params(self) -> dict:
        return {
            "epsilon_explore": self.epsilon_explore,
            "epsilon_exploit": self.epsilon_exploit,
            "number_of_exploring_actions": self.number_of_exploring_actions,
            "seed": self.seed,
        }

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        self.actions_taken += 1
        if self.actions_taken <= self.number_of_exploring_actions:
            return self.explore_policy.choose_action(node, q_table)
        if self.actions_taken == self.number_of_exploring_actions + 1:
            logger.debug("Switching epsilon from %s to %s", self.epsilon_explore, self.epsilon_exploit)
        return self.exploit_policy.choose_action(node, q_table)


class SoftmaxPolicy(ExplorationPolicy):
    """
    Boltzmann exploration.

    Each action is chosen with probability exp(Q/temperature) normalised over
    all actions. Probabilities are rounded to precision decimal places; the
    random draw is scaled by their sum so rounding never leaves a gap.
    """

    def __init__(self, temperature: float, precision: int, seed: int):
        check_parameter(temperature > 0, "temperature", temperature, "greater than 0")
        check_parameter(precision > 0, "precision", precision, "greater than 0")
        self.temperature = temperature
        self.precision = precision
        self.seed = seed
        self.rng = SeededRNG(seed)

    def params(self) -> dict:
        return {"temperature": self.temperature, "precision": self.precision, "seed": self.seed}

    def probabilities(self, node: Node, q_table: QTable) -> Dict[Action, float]:
        actions = sorted_actions(q_table.get_actions(node))
        values = np.array([q_table.get_q_value(node, a) for a in actions], dtype=float)
        weights = np.exp((values - values.max()) / self.temperature)
        probabilities = np.round(weights / weights.sum(), self.precision)
        return dict(zip(actions, probabilities.tolist()))

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        probabilities = self.probabilities(node, q_table)
        actions = list(probabilities)
        bounds = np.cumsum(list(probabilities.values()))
        draw = bounds[-1] * self.rng.random()
        index = int(np.searchsorted(bounds, draw, side="left"))
        return actions[min(index, len(actions) - 1)]


class VDBEPolicy(ExplorationPolicy):
    """
    Value-difference based exploration (Tokic).

    Every state keeps its own epsilon. Large changes of a Q-value raise the
    epsilon of the state they happened in, small changes let it decay.
    """

    def __init__(self, inverse_sensitivity: float, epsilon_0: float, seed: int):
        check_parameter(inverse_sensitivity > 0, "inverse_sensitivity", inverse_sensitivity, "greater than 0")
        check_parameter(0 <= epsilon_0 <= 1, "epsilon_0", epsilon_0, "in [0, 1]")
        self.inverse_sensitivity = inverse_sensitivity
        self.epsilon_0 = epsilon_0
        self.seed = seed
        self.epsilon_greedy = EpsilonGreedyPolicy(epsilon_0, seed)
        self.epsilon_values: Dict[str, float] = {}

    def params(self) -> dict:
        return {"inverse_sensitivity": self.inverse_sensitivity, "epsilon_0": self.epsilon_0, "seed": self.seed}

    def epsilon(self, node: Node) -> float:
        """Epsilon of the node's state, epsilon_0 if the state was never seen."""
        return self.epsilon_values.get(node.state, self.epsilon_0)

    def choose_action(self, node: Node, q_table: QTable) -> Action:
        self.epsilon_values.setdefault(node.state, self.epsilon_0)
        self.epsilon_greedy.set_epsilon(self.epsilon(node))
        return self.epsilon_greedy.choose_action(node, q_table)

    def post_processing(self, old_node: Node, action: Action, old_q_value: float,
                        new_node: Node, q_table: QTable) -> None:
        new_q_value = q_table.get_q_value(old_node, action)
        activation = self.activation(old_q_value, new_q_value)
        learn_rate = 1 / len(old_node.passable_neighbors())
        old_epsilon = self.epsilon(old_node)
        new_epsilon = learn_rate * activation + (1 - learn_rate) * old_epsilon
        logger.debug("Epsilon of state %s changed from %s to %s", old_node.state, old_epsilon, new_epsilon)
        self.epsilon_values[old_node.state] = new_epsilon

    def activation(self, old_q_value: float, new_q_value: float) -> float:
        """Boltzmann activation |e^a - e^b| / (e^a + e^b), written as a tanh."""
        return float(abs(np.tanh((new_q_value - old_q_value) / (2 * self.inverse_sensitivity))))
