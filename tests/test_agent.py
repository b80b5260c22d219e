"""Tests for the Q-table and the Q-learning agent."""

import logging

import pytest

from qmaze.domain.agent import Agent
from qmaze.domain.errors import (
    ActionNotFoundError, EmptyActionSetError, StateLookupError, StateNotFoundError,
)
from qmaze.domain.maze import Maze
from qmaze.domain.node import NodeFactory
from qmaze.domain.policies import GreedyPolicy
from qmaze.domain.qtable import CSV_HEADER, QTable
from qmaze.domain.types import Action, NodeType


@pytest.fixture
def two_cell_maze(node_factory):
    """3x3 maze with a start in the center (reward -4) and a cell to its right (reward -5)."""
    maze = Maze(3, 3, node_factory)
    maze.set_start_node(maze.node_at(1, 1), reward=-4.0)
    maze.change_node_type(maze.node_at(1, 2), NodeType.PASSABLE, -5.0)
    return maze


# =============================================================================
# Q-table
# =============================================================================


class TestQTable:
    """Lazily created entries keyed by state fingerprint."""

    def test_add_entry(self, reference_maze):
        table = QTable(initial_value=1.5)
        start = reference_maze.start_node
        assert table.add_entry(start, [Action.RIGHT, Action.LEFT])
        assert table.get_q_value(start, Action.RIGHT) == 1.5
        assert table.state_exists(start)
        assert table.action_exists(start, Action.LEFT)
        assert not table.action_exists(start, Action.UP)
        assert "0101" in table

    def test_add_entry_twice(self, reference_maze):
        table = QTable()
        start = reference_maze.start_node
        table.add_entry(start, [Action.RIGHT])
        table.set_q_value(start, Action.RIGHT, 3.0)
        assert not table.add_entry(start, [Action.RIGHT, Action.LEFT])
        assert table.get_actions(start) == {Action.RIGHT: 3.0}

    def test_forced_creation_is_reported(self, reference_maze, caplog):
        table = QTable()
        start = reference_maze.start_node
        with caplog.at_level(logging.WARNING, logger="qmaze.domain.qtable"):
            assert table.get_actions(start) == {}
        assert "Creation of state 0101 has been forced" in caplog.text
        assert not table.add_entry(start, [Action.RIGHT])
        with pytest.raises(EmptyActionSetError):
            table.get_highest_q_value_of_state(start)

    def test_nodes_with_same_pattern_share_entry(self, corridor_maze):
        table = QTable()
        table.add_entry(corridor_maze.node_at(3, 3), [Action.RIGHT, Action.LEFT])
        assert table.state_exists(corridor_maze.node_at(3, 7))
        assert len(table) == 1

    def test_lookup_errors(self, reference_maze):
        table = QTable()
        start = reference_maze.start_node
        with pytest.raises(StateNotFoundError):
            table.get_q_value(start, Action.RIGHT)
        table.add_entry(start, [Action.RIGHT])
        with pytest.raises(ActionNotFoundError):
            table.set_q_value(start, Action.UP, 1.0)
        with pytest.raises(StateLookupError):
            table.get_q_value(start, Action.DOWN)

    def test_highest_q_value(self, reference_maze):
        table = QTable()
        start = reference_maze.start_node
        table.add_entry(start, [Action.RIGHT, Action.LEFT])
        table.set_q_value(start, Action.LEFT, -2.0)
        assert table.get_highest_q_value_of_state(start) == 0.0

    def test_highest_q_value_without_actions(self, reference_maze):
        table = QTable()
        table.add_entry(reference_maze.start_node, [])
        with pytest.raises(EmptyActionSetError):
            table.get_highest_q_value_of_state(reference_maze.start_node)

    def test_copy_is_independent(self, reference_maze):
        table = QTable()
        start = reference_maze.start_node
        table.add_entry(start, [Action.RIGHT])
        clone = table.copy()
        assert clone == table
        clone.set_q_value(start, Action.RIGHT, 7.0)
        assert table.get_q_value(start, Action.RIGHT) == 0.0

    def test_to_csv(self, reference_maze):
        table = QTable()
        start = reference_maze.start_node
        table.add_entry(start, [Action.RIGHT, Action.LEFT])
        table.set_q_value(start, Action.LEFT, -1.5)
        assert table.to_csv() == f"{CSV_HEADER}\n0101;NaN;0.0;NaN;-1.5"

    def test_empty_csv_has_header_only(self):
        assert QTable().to_csv() == "State;Up;Right;Down;Left"

    def test_to_dict(self, reference_maze):
        table = QTable()
        table.add_entry(reference_maze.start_node, [Action.RIGHT])
        assert table.to_dict() == {"0101": {"right": 0.0}}

    def test_clear(self, reference_maze):
        table = QTable()
        table.add_entry(reference_maze.start_node, [Action.RIGHT])
        table.clear()
        assert table.size() == 0
        assert table.states() == []


# =============================================================================
# Agent
# =============================================================================


class TestAgent:
    """Q-learning updates on a hand-computed two-cell maze."""

    def test_create_actions(self, reference_maze):
        assert Agent.create_actions(reference_maze.start_node) == [Action.RIGHT, Action.LEFT]
        assert Agent.create_actions(reference_maze.node_at(3, 3)) == [Action.UP, Action.DOWN, Action.LEFT]

    def test_move_agent(self, reference_maze):
        agent = Agent(reference_maze.start_node, GreedyPolicy(seed=1), 0.5, 0.9, 0.0)
        agent.move_agent(Action.RIGHT)
        assert agent.current_position.coord == (1, 3)

    def test_move_outside_grid(self, two_cell_maze):
        agent = Agent(two_cell_maze.node_at(1, 2), GreedyPolicy(seed=1), 0.5, 0.9, 0.0)
        with pytest.raises(ValueError):
            agent.move_agent(Action.RIGHT)

    def test_q_learning_updates(self, two_cell_maze):
        agent = Agent(two_cell_maze.start_node, GreedyPolicy(seed=1), alpha=1.0, gamma=1.0,
                      initial_q_value=0.0)
        center = two_cell_maze.start_node
        right = two_cell_maze.node_at(1, 2)

        record = agent.do_action()
        assert record.action is Action.RIGHT
        assert agent.q_table.get_q_value(center, Action.RIGHT) == -5.0
        assert agent.total_reward == -5.0

        record = agent.do_action()
        assert record.action is Action.LEFT
        assert agent.q_table.get_q_value(right, Action.LEFT) == -9.0
        assert agent.total_reward == -9.0

        record = agent.do_action()
        assert record.old_q_value == -5.0
        assert record.new_q_value == -14.0
        assert agent.q_table.get_q_value(center, Action.RIGHT) == -14.0
        assert agent.total_reward == -14.0
        assert agent.number_of_actions == 3

    def test_step_record(self, two_cell_maze):
        agent = Agent(two_cell_maze.start_node, GreedyPolicy(seed=1), 1.0, 1.0, 0.0)
        record = agent.do_action()
        assert record.old_position == (1, 1)
        assert record.new_position == (1, 2)
        assert record.old_state == "0100"
        assert record.new_state == "0001"
        assert record.reward == -5.0
        assert record.number_of_actions == 1

    def test_no_discount(self, two_cell_maze):
        agent = Agent(two_cell_maze.start_node, GreedyPolicy(seed=1), alpha=1.0, gamma=0.0,
                      initial_q_value=0.0)
        agent.do_action()
        agent.do_action()
        assert agent.q_table.get_q_value(two_cell_maze.node_at(1, 2), Action.LEFT) == -4.0

    def test_reset_for_episode(self, reference_maze):
        agent = Agent(reference_maze.start_node, GreedyPolicy(seed=1), 0.5, 0.9, 0.0)
        agent.do_action()
        agent.reset_agent_for_episode(reference_maze)
        assert agent.current_position == reference_maze.start_node
        assert agent.number_of_actions == 0
        assert agent.total_reward == 0.0
        assert len(agent.q_table) > 0

    def test_reset_q_table(self, reference_maze):
        agent = Agent(reference_maze.start_node, GreedyPolicy(seed=1), 0.5, 0.9, 0.0)
        agent.do_action()
        agent.reset_q_table()
        assert len(agent.q_table) == 0


# =============================================================================
# Ring maze
# =============================================================================


@pytest.fixture
def ring_maze():
    """Fully passable 3x3 maze: start in the center, end in the upper right corner."""
    maze = Maze(3, 3, NodeFactory(way_reward=0.0, end_reward=10.0))
    for x in range(3):
        for y in range(3):
            maze.change_node_type(maze.node_at(x, y), NodeType.PASSABLE)
    maze.set_start_node(maze.node_at(1, 1))
    maze.set_end_node(maze.node_at(0, 2))
    return maze


class TestRingMaze:
    """Greedy Q-learning with alpha = gamma = 1 on a small ring, traced by hand.

    Ties go to the first best action in the order up, right, down, left.
    Every new state enters the table at 1.0, so each update adds the reward
    of the target cell to the best value of its (possibly just registered)
    state.
    """

    @pytest.fixture
    def agent(self, ring_maze, monkeypatch):
        policy = GreedyPolicy(seed=1)
        monkeypatch.setattr(policy.rng, "next_int", lambda bound: 0)
        return Agent(ring_maze.start_node, policy, alpha=1.0, gamma=1.0, initial_q_value=1.0)

    def test_first_step_registers_target_state(self, agent):
        record = agent.do_action()
        assert record.action is Action.UP
        assert record.new_position == (0, 1)
        # max over the new state's freshly registered actions: 0.0 + 1.0
        assert agent.q_table.to_dict() == {
            "1111": {"up": 1.0, "right": 1.0, "down": 1.0, "left": 1.0},
            "0111": {"right": 1.0, "down": 1.0, "left": 1.0},
        }

    def test_reaching_the_end(self, agent):
        agent.do_action()
        record = agent.do_action()
        assert record.action is Action.RIGHT
        assert record.new_position == (0, 2)
        assert record.new_q_value == 11.0
        assert agent.q_table.to_dict() == {
            "1111": {"up": 1.0, "right": 1.0, "down": 1.0, "left": 1.0},
            "0111": {"right": 11.0, "down": 1.0, "left": 1.0},
            "0011": {"down": 1.0, "left": 1.0},
        }

    def test_values_propagate_over_episodes(self, agent, ring_maze):
        actions = []
        for steps in (2, 2, 1):
            agent.reset_agent_for_episode(ring_maze)
            actions.extend(agent.do_action().action for _ in range(steps))

        assert actions == [Action.UP, Action.RIGHT, Action.UP, Action.RIGHT, Action.UP]
        assert agent.current_position.coord == (0, 1)
        assert agent.q_table.to_dict() == {
            "1111": {"up": 11.0, "right": 1.0, "down": 1.0, "left": 1.0},
            "0111": {"right": 11.0, "down": 1.0, "left": 1.0},
            "0011": {"down": 1.0, "left": 1.0},
        }
