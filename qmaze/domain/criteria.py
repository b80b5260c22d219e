"""Criteria that end episodes and advance levels.

Episode-stop criteria are checked after every step. Level-change criteria are
checked only when an episode has just stopped.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .errors import check_parameter

if TYPE_CHECKING:
    from ..app.training import Training


class Criterion(ABC):
    """A predicate over the state of a running training."""

    @abstractmethod
    def is_met(self, training: "Training") -> bool:
        pass

    def reset(self) -> None:
        """Forget per-level progress. Stateless criteria have nothing to reset."""

    @abstractmethod
    def logger_string(self) -> str:
        """Label shown in logs and used to count occurrences."""

    def params(self) -> dict:
        return {}

    def config_string(self) -> str:
        args = ", ".join(f"{k} = {v}" for k, v in self.params().items())
        return f"{type(self).__name__}({args})"

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.params() == other.params()

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(self.params().items()))))

    def __lt__(self, other: "Criterion") -> bool:
        if not isinstance(other, Criterion):
            return NotImplemented
        return self.logger_string() < other.logger_string()

    def __repr__(self) -> str:
        return self.config_string()


# Episode-stop criteria

class EndStateReached(Criterion):
    """The agent stands on the end node."""

    def is_met(self, training: "Training") -> bool:
        return training.agent.current_position == training.maze.end_node

    def logger_string(self) -> str:
        return "End State Reached"


class MaxActionsReached(Criterion):
    """The agent has taken exactly max_actions actions in this episode."""

    def __init__(self, max_actions: int):
        check_parameter(max_actions > 0, "max_actions", max_actions, "greater than 0")
        self.max_actions = max_actions

    def params(self) -> dict:
        return {"max_actions": self.max_actions}

    def is_met(self, training: "Training") -> bool:
        return training.agent.number_of_actions == self.max_actions

    def logger_string(self) -> str:
        return f"Max Actions Reached ({self.max_actions} Actions)"


class AgentExceedsOptimalPathPercentage(Criterion):
    """The agent needs more than (1 + percentage) times the optimal actions."""

    def __init__(self, percentage: float):
        check_parameter(percentage >= 0, "percentage", percentage, "greater than or equal to 0")
        self.percentage = percentage

    def params(self) -> dict:
        return {"percentage": self.percentage}

    def is_met(self, training: "Training") -> bool:
        optimal = training.maze.length_of_shortest_path()
        return training.agent.number_of_actions > optimal + optimal * self.percentage

    def logger_string(self) -> str:
        return f"Exceeded Optimal Path ({self.percentage * 100}%)"


class AgentExceedsOptimalPathStatic(Criterion):
    """The agent needs more than the optimal actions plus a fixed tolerance."""

    def __init__(self, actions: int):
        check_parameter(actions >= 0, "actions", actions, "greater than or equal to 0")
        self.actions = actions

    def params(self) -> dict:
        return {"actions": self.actions}

    def is_met(self, training: "Training") -> bool:
        optimal = training.maze.length_of_shortest_path()
        return training.agent.number_of_actions > optimal + self.actions

    def logger_string(self) -> str:
        return f"Exceeded Optimal Path ({self.actions} Actions)"


# Level-change criteria

class MaxEpisodesReached(Criterion):
    """The current level has run exactly max_episodes episodes."""

    def __init__(self, max_episodes: int):
        check_parameter(max_episodes >= 0, "max_episodes", max_episodes, "greater than or equal to 0")
        self.max_episodes = max_episodes

    def params(self) -> dict:
        return {"max_episodes": self.max_episodes}

    def is_met(self, training: "Training") -> bool:
        return training.current_episode == self.max_episodes

    def logger_string(self) -> str:
        return f"Max Episodes Reached ({self.max_episodes} Episodes)"


class _PerformanceCriterion(Criterion):
    """Counts episodes finished within a tolerance of the optimal actions."""

    def __init__(self, episodes: int):
        check_parameter(episodes > 0, "episodes", episodes, "greater than 0")
        self.episodes = episodes
        self.good_episodes = 0

    @abstractmethod
    def allowed_actions(self, optimal: int) -> int:
        pass

    def is_met(self, training: "Training") -> bool:
        optimal = training.maze.length_of_shortest_path()
        if training.agent.number_of_actions <= self.allowed_actions(optimal):
            self.good_episodes += 1
        return self.good_episodes == self.episodes

    def reset(self) -> None:
        self.good_episodes = 0


class PerformanceAchievedPercentageTolerance(_PerformanceCriterion):
    """Enough episodes finished within a percentage of the optimal actions."""

    def __init__(self, episodes: int, tolerance: float):
        check_parameter(tolerance >= 0, "tolerance", tolerance, "greater than or equal to 0")
        super().__init__(episodes)
        self.tolerance = tolerance

    def params(self) -> dict:
        return {"episodes": self.episodes, "tolerance": self.tolerance}

    def allowed_actions(self, optimal: int) -> int:
        return optimal + int(optimal * self.tolerance)

    def logger_string(self) -> str:
        return f"Performance Achieved Percentage ({self.tolerance * 100}%, {self.episodes} Episodes)"


class PerformanceAchievedStaticTolerance(_PerformanceCriterion):
    """Enough episodes finished within a fixed number of extra actions."""

    def __init__(self, episodes: int, actions: int):
        check_parameter(actions >= 0, "actions", actions, "greater than or equal to 0")
        super().__init__(episodes)
        self.actions = actions

    def params(self) -> dict:
        return {"episodes": self.episodes, "actions": self.actions}

    def allowed_actions(self, optimal: int) -> int:
        return optimal + self.actions

    def logger_string(self) -> str:
        return f"Performance Achieved ({self.actions} Actions, {self.episodes} Episodes)"
