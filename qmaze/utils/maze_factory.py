"""Maze factory for building initial, reference and text-defined mazes."""

import logging
from typing import List, Optional, Sequence

from ..domain.maze import Maze, WALL_CHAR, WAY_CHAR, START_CHAR, END_CHAR
from ..domain.node import NodeFactory
from ..domain.types import NodeType

logger = logging.getLogger(__name__)

# Alternative character accepted for passable cells
ALT_WAY_CHAR = "P"

PLACEHOLDER_ROWS = [
    "#####",
    "#.S.#",
    "###.#",
    "#...#",
    "#.#.#",
    "#E###",
    "#####",
]


def build_maze(initial_path_length: int, horizontal: bool, node_factory: NodeFactory) -> Maze:
    """
    Create a maze with a single straight corridor from start to end.

    Args:
        initial_path_length: Number of corridor nodes, start and end included (>= 2)
        horizontal: Corridor runs left to right if True, top to bottom otherwise
        node_factory: Factory providing the rewards of the new nodes

    Returns:
        A 3 x (length + 2) maze, or (length + 2) x 3 if vertical

    Raises:
        ValueError: If initial_path_length < 2
    """
    if initial_path_length < 2:
        raise ValueError(f"Initial path length must be at least 2, got {initial_path_length}")

    logger.info("Creating initial maze (%s)", "horizontal" if horizontal else "vertical")
    if horizontal:
        maze = Maze(3, initial_path_length + 2, node_factory)
        corridor = [maze.node_at(1, y) for y in range(1, initial_path_length + 1)]
    else:
        maze = Maze(initial_path_length + 2, 3, node_factory)
        corridor = [maze.node_at(x, 1) for x in range(1, initial_path_length + 1)]

    for node in corridor:
        maze.change_node_type(node, NodeType.PASSABLE)
    maze.set_start_node(corridor[0])
    maze.set_end_node(corridor[-1])
    return maze


def plain_maze(x_size: int, y_size: int, node_factory: Optional[NodeFactory] = None) -> Maze:
    """All-wall maze without start and end, used as a template."""
    return Maze(x_size, y_size, node_factory or NodeFactory(0.0, 0.0))


def placeholder_maze(node_factory: Optional[NodeFactory] = None) -> Maze:
    """Small 7x5 reference maze with a winding shortest path of 7 actions."""
    return maze_from_rows(PLACEHOLDER_ROWS, node_factory)


def maze_from_rows(rows: Sequence[str], node_factory: Optional[NodeFactory] = None) -> Maze:
    """
    Build a maze from text rows.

    Args:
        rows: One string per row, '#' wall, '.' or 'P' way, 'S' start, 'E' end
        node_factory: Factory for the node rewards (defaults to way -1, end 10)

    Returns:
        The parsed maze

    Raises:
        ValueError: If rows are ragged or contain unknown characters
    """
    if not rows or any(len(row) != len(rows[0]) for row in rows):
        raise ValueError("Maze rows must be non-empty and of equal length")

    maze = Maze(len(rows), len(rows[0]), node_factory or NodeFactory(-1.0, 10.0))
    for x, row in enumerate(rows):
        for y, char in enumerate(row):
            node = maze.node_at(x, y)
            if char == WALL_CHAR:
                continue
            if char in (WAY_CHAR, ALT_WAY_CHAR):
                maze.change_node_type(node, NodeType.PASSABLE)
            elif char == START_CHAR:
                maze.set_start_node(node)
            elif char == END_CHAR:
                maze.set_end_node(node)
            else:
                raise ValueError(f"Unknown maze character {char!r} at ({x}, {y})")
    return maze


def maze_to_rows(maze: Maze) -> List[str]:
    """Text rows of a maze, the inverse of maze_from_rows."""
    return maze.to_rows()
