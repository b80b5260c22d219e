"""Q-learning agent walking through a maze."""

import logging
from typing import List, Optional

from .maze import Maze
from .node import Node
from .policies import ExplorationPolicy
from .qtable import QTable
from .types import Action, StepRecord

logger = logging.getLogger(__name__)


class Agent:
    """Tabular Q-learning agent.

    The agent only ever moves to passable neighbors, so every step lands on a
    node with a finite reward.
    """

    def __init__(self, start_node: Node, policy: ExplorationPolicy, alpha: float,
                 gamma: float, initial_q_value: float):
        self.current_position = start_node
        self.policy = policy
        self.alpha = alpha
        self.gamma = gamma
        self.initial_q_value = initial_q_value
        self.q_table = QTable(initial_q_value)
        self.number_of_actions = 0
        self.total_reward = 0.0

    @staticmethod
    def create_actions(node: Node) -> List[Action]:
        """Moves to passable neighbors in the order up, right, down, left."""
        actions = []
        for action in Action:
            neighbor = node.neighbor_in_direction(action)
            if neighbor is not None and neighbor.is_passable():
                actions.append(action)
        return actions

    def move_agent(self, action: Action) -> None:
        target: Optional[Node] = self.current_position.neighbor_in_direction(action)
        if target is None:
            raise ValueError(f"Cannot move {action.name} from {self.current_position.coord}")
        self.current_position = target

    def _ensure_entry(self, node: Node) -> None:
        if not self.q_table.state_exists(node):
            self.q_table.add_entry(node, self.create_actions(node))

    def do_action(self) -> StepRecord:
        """
        Choose an action, take it and update the Q-table.

        Returns:
            StepRecord describing the step
        """
        self._ensure_entry(self.current_position)

        old_node = self.current_position
        action = self.policy.choose_action(old_node, self.q_table)
        self.move_agent(action)
        new_node = self.current_position

        reward = new_node.reward
        self.number_of_actions += 1
        self.total_reward += reward

        old_q_value = self.q_table.get_q_value(old_node, action)
        if self.q_table.state_exists(new_node):
            max_next = self.q_table.get_highest_q_value_of_state(new_node)
        else:
            self.q_table.add_entry(new_node, self.create_actions(new_node))
            max_next = self.initial_q_value

        new_q_value = old_q_value + self.alpha * (reward + self.gamma * max_next - old_q_value)
        self.q_table.set_q_value(old_node, action, new_q_value)
        self.policy.post_processing(old_node, action, old_q_value, new_node, self.q_table)

        logger.debug("Agent moved %s from %s to %s (reward %s)", action.name, old_node.coord,
                     new_node.coord, reward)
        return StepRecord(
            old_position=old_node.coord,
            old_state=old_node.state,
            action=action,
            new_position=new_node.coord,
            new_state=new_node.state,
            reward=reward,
            old_q_value=old_q_value,
            new_q_value=new_q_value,
            number_of_actions=self.number_of_actions,
            total_reward=self.total_reward,
        )

    def reset_agent_for_episode(self, maze: Maze) -> None:
        self.current_position = maze.start_node
        self.number_of_actions = 0
        self.total_reward = 0.0

    def reset_q_table(self) -> None:
        self.q_table.clear()
