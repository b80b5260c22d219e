"""Curriculum training: episodes within levels, maze changes between levels."""

import copy
import logging
from dataclasses import replace
from typing import Callable, Optional

from ..domain.agent import Agent
from ..domain.errors import NoOperatorApplicableError
from ..domain.maze import Maze
from ..domain.maze_utils import change_maze, optimal_reward
from ..domain.node import NodeFactory
from ..domain.types import EpisodeData, LevelData
from ..utils.maze_factory import build_maze
from ..utils.rng import SeededRNG
from .config import TrainingConfig
from .fsm import TrainingState, TrainingStateMachine
from .recording import TrainingLog, TrainingLogSink

logger = logging.getLogger(__name__)


class Training:
    """
    Runs a Q-learning agent through a curriculum of ever more complex mazes.

    The config is deep-copied, so stateful components (policy random streams,
    performance counters, operator plans) never leak between two trainings
    built from the same config.
    """

    def __init__(self, config: TrainingConfig, sink: Optional[TrainingLogSink] = None):
        self.config = copy.deepcopy(config)
        self.sink = sink if sink is not None else TrainingLog(
            self.config.training_name, self.config.episode_stopping_criteria)
        self.operator_rng = SeededRNG(self.config.change_maze_seed)
        self.fsm = TrainingStateMachine()

        self.current_episode = 1
        self.current_level = 1
        self.maze: Optional[Maze] = None
        self.agent: Optional[Agent] = None
        self.complexity: Optional[float] = None
        self.level_data: Optional[LevelData] = None
        self.occurred_episode_criterion: Optional[str] = None
        self.occurred_level_criterion: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.fsm.is_finished()

    def init_simulation(self) -> None:
        """Build the initial maze and the agent, and start level 1."""
        node_factory = NodeFactory(self.config.way_node_reward, self.config.end_node_reward)
        self.maze = build_maze(self.config.initial_path_length, self.config.horizontal, node_factory)
        self.agent = Agent(self.maze.start_node, self.config.exploration_policy,
                           self.config.q_learning_alpha, self.config.q_learning_gamma,
                           self.config.initial_q_value)
        self._start_level()

    def _start_level(self) -> None:
        self.complexity = self.config.complexity_function.calculate_complexity(self.maze)
        self.level_data = LevelData(
            level_nr=self.current_level,
            maze=self.maze.copy(),
            complexity=self.complexity,
            optimal_number_of_actions=self.maze.length_of_shortest_path(),
            optimal_reward=optimal_reward(self.maze),
        )
        logger.info("Level %d: %dx%d maze, complexity %.2f", self.current_level,
                    self.maze.x_size, self.maze.y_size, self.complexity)
        self.sink.on_level_start(self.level_data)

    def do_step(self) -> bool:
        """
        Let the agent take one action and handle episode and level ends.

        Returns:
            False once the training is finished, True otherwise

        Raises:
            NoOperatorApplicableError: If no operator can change the maze for the next level
        """
        if self.is_finished:
            return False
        if self.agent is None:
            raise RuntimeError("Call init_simulation() before do_step()")

        record = self.agent.do_action()
        self.sink.on_step(replace(record, level_nr=self.current_level, episode_nr=self.current_episode))

        if not self.check_for_episode_stop_criterion():
            self.fsm.transition(TrainingState.AWAITING_ACTION)
            return True

        self.fsm.transition(TrainingState.EPISODE_ENDED)
        self.sink.on_episode_end(EpisodeData(
            episode_nr=self.current_episode,
            number_of_actions=self.agent.number_of_actions,
            total_reward=self.agent.total_reward,
            occurred_stop_criterion=self.occurred_episode_criterion,
            q_table=self.agent.q_table.copy(),
        ))

        if self.check_for_level_change_criteria():
            self.fsm.transition(TrainingState.LEVEL_ENDED)
            self.level_data.occurred_level_change_criterion = self.occurred_level_criterion
            self.sink.on_level_end(self.level_data)

            if self.current_level == self.config.number_of_levels:
                self.fsm.transition(TrainingState.TRAINING_FINISHED)
                self.sink.on_training_finished()
                logger.info("Training finished after %d levels", self.current_level)
                return False

            self._change_level()
        else:
            self.current_episode += 1

        self.fsm.transition(TrainingState.AWAITING_ACTION)
        self.agent.reset_agent_for_episode(self.maze)
        self._reset_criteria(self.config.episode_stopping_criteria)
        return True

    def _change_level(self) -> None:
        self.current_level += 1
        self.current_episode = 1
        self._reset_criteria(self.config.level_change_criteria)
        if self.config.start_each_level_with_empty_q_table:
            self.agent.reset_q_table()

        consumed = change_maze(self.maze, self.config.maze_operators, self.config.delta, self.operator_rng)
        if consumed <= 0:
            logger.error("No maze operator could be applied for level %d", self.current_level)
            raise NoOperatorApplicableError(
                "Training stopped because no maze operator could be used on the current maze")
        self._start_level()

    def do_training(self, should_cancel: Optional[Callable[[], bool]] = None) -> TrainingLogSink:
        """
        Run the whole training.

        Args:
            should_cancel: Polled between steps; the training stops early once it returns True

        Returns:
            The sink that received the training data
        """
        self.init_simulation()
        while self.do_step():
            if should_cancel is not None and should_cancel():
                logger.warning("Training cancelled in level %d, episode %d",
                               self.current_level, self.current_episode)
                break
        return self.sink

    def check_for_episode_stop_criterion(self) -> bool:
        for criterion in self.config.episode_stopping_criteria:
            if criterion.is_met(self):
                self.occurred_episode_criterion = criterion.logger_string()
                logger.debug("%s triggered", self.occurred_episode_criterion)
                return True
        return False

    def check_for_level_change_criteria(self) -> bool:
        for criterion in self.config.level_change_criteria:
            if criterion.is_met(self):
                self.occurred_level_criterion = criterion.logger_string()
                logger.debug("%s triggered", self.occurred_level_criterion)
                return True
        return False

    @staticmethod
    def _reset_criteria(criteria) -> None:
        for criterion in criteria:
            criterion.reset()
