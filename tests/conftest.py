"""
Shared pytest fixtures for the qmaze tests.

Mazes are written as text rows ('#' wall, '.' way, 'S' start, 'E' end) or,
for the larger complexity fixtures, as lists of passable coordinates.
"""

from typing import Iterable, Optional, Tuple

import pytest

from qmaze.domain.maze import Maze
from qmaze.domain.node import NodeFactory
from qmaze.domain.types import NodeType
from qmaze.utils.maze_factory import maze_from_rows, placeholder_maze, plain_maze

WAY_REWARD = -1.0
END_REWARD = 10.0

Coord = Tuple[int, int]


def carve(x_size: int, y_size: int, passable: Iterable[Coord],
          start: Optional[Coord] = None, end: Optional[Coord] = None) -> Maze:
    """All-wall maze with the given cells made passable."""
    maze = plain_maze(x_size, y_size, NodeFactory(WAY_REWARD, END_REWARD))
    for x, y in passable:
        maze.change_node_type(maze.node_at(x, y), NodeType.PASSABLE)
    if start is not None:
        maze.set_start_node(maze.node_at(*start))
    if end is not None:
        maze.set_end_node(maze.node_at(*end))
    return maze


@pytest.fixture
def node_factory():
    return NodeFactory(WAY_REWARD, END_REWARD)


@pytest.fixture
def reference_maze(node_factory):
    """7x5 maze whose shortest path needs 7 actions."""
    return placeholder_maze(node_factory)


@pytest.fixture
def one_bypass_maze(node_factory):
    """Shortest path of 4 actions with a single 8-node loop beside it."""
    return maze_from_rows([
        "######",
        "#S####",
        "#...E#",
        "#.#.##",
        "#...##",
        "######",
    ], node_factory)


@pytest.fixture
def two_route_maze(node_factory):
    """Two 8-node loops sharing one node of the shortest path."""
    return maze_from_rows([
        "########",
        "#S#...##",
        "#.#.#.##",
        "#.....E#",
        "#.#.####",
        "#...####",
        "########",
    ], node_factory)


@pytest.fixture
def corridor_maze(node_factory):
    """Straight corridor of 9 actions with free space above and below."""
    return maze_from_rows([
        "############",
        "############",
        "############",
        "#S........E#",
        "############",
        "############",
        "############",
    ], node_factory)


@pytest.fixture
def dead_end_maze():
    """Shortest path of 8 actions with three tree-shaped dead ends."""
    passable = [(4, y) for y in range(2, 8)] + [
        (2, 4), (2, 5), (2, 6), (3, 6), (5, 7), (3, 2), (5, 4), (6, 3), (6, 4), (6, 5),
    ]
    return carve(8, 9, passable, start=(4, 1), end=(1, 6))


@pytest.fixture
def closed_dead_end_maze():
    """The dead_end_maze with one branch closed into a parallel route."""
    passable = [(4, y) for y in range(2, 8)] + [
        (2, 4), (2, 5), (2, 6), (3, 6), (5, 7), (3, 2), (5, 4), (6, 3), (6, 4), (6, 5),
        (6, 6), (6, 7),
    ]
    return carve(8, 9, passable, start=(4, 1), end=(1, 6))


@pytest.fixture
def nested_junction_maze():
    """A single branch with 3-way junctions at depth 0, 1 and 2."""
    passable = [(6, y) for y in range(2, 7)] + [
        (5, 2), (4, 2), (3, 2), (2, 2), (1, 2), (1, 1), (1, 3), (1, 4), (1, 5),
        (2, 4), (3, 4), (4, 4), (4, 3), (3, 5),
    ]
    return carve(8, 9, passable, start=(6, 1), end=(6, 7))
