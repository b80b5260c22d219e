"""Complexity scores for mazes, used to compare curriculum levels."""

import math
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, Optional, Set

from .maze import Maze
from .maze_utils import all_parallel_route_nodes
from .node import Node

COMPLEXITY_PER_OPTIMAL_ACTION = 1.0
COMPLEXITY_PARALLEL_ROUTE_NODE = 0.5
COMPLEXITY_DEAD_END_NODE = 1.0
COMPLEXITY_THREE_WAY_JUNCTION = 3.0
COMPLEXITY_FOUR_WAY_JUNCTION = 4.0


class ComplexityFunction(ABC):
    """Maps a maze to a single non-negative score."""

    @abstractmethod
    def calculate_complexity(self, maze: Maze) -> float:
        pass

    def params(self) -> dict:
        return {}

    def config_string(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.params() == other.params()

    def __hash__(self) -> int:
        return hash(self.config_string())

    def __repr__(self) -> str:
        return self.config_string()


class DefaultComplexityFunction(ComplexityFunction):
    """
    Sum of three terms:

    - the length of the shortest path,
    - the parallel-route nodes that are not on the shortest path,
    - every branch hanging off the shortest path or a parallel route, where
      junctions count more the deeper they sit inside the branch.
    """

    def calculate_complexity(self, maze: Maze) -> float:
        return (self.optimal_path_complexity(maze)
                + self.parallel_route_complexity(maze)
                + self.dead_end_complexity(maze))

    def optimal_path_complexity(self, maze: Maze) -> float:
        return maze.length_of_shortest_path() * COMPLEXITY_PER_OPTIMAL_ACTION

    def parallel_route_complexity(self, maze: Maze) -> float:
        optimal = set(maze.shortest_path())
        extra = [n for n in all_parallel_route_nodes(maze) if n not in optimal]
        return len(extra) * COMPLEXITY_PARALLEL_ROUTE_NODE

    def dead_end_complexity(self, maze: Maze) -> float:
        ignore = set(maze.shortest_path()) | set(all_parallel_route_nodes(maze))
        complexity = 0.0
        for node in ignore:
            for neighbor in node.passable_neighbors():
                if neighbor not in ignore:
                    complexity += self.branch_complexity(neighbor, ignore)
        return complexity

    def branch_complexity(self, start: Node, ignore: Set[Node]) -> float:
        """
        Breadth-first walk through one branch, summing up node complexities.

        The depth of a node is the number of junctions on the way from the
        branch root, counting the node itself, minus one. The first junction
        therefore has depth 0.
        """
        complexity = 0.0
        queue = deque([start])
        visited = {start}
        depth: Dict[Node, int] = {}
        predecessor: Dict[Node, Optional[Node]] = {start: None}

        while queue:
            node = queue.popleft()
            neighbors = node.passable_neighbors()
            parent = predecessor[node]
            current_depth = depth[parent] if parent is not None else -1
            if len(neighbors) > 2:
                current_depth += 1
            depth[node] = current_depth
            complexity += self.node_complexity(node, current_depth)

            for neighbor in neighbors:
                if neighbor in visited or neighbor in ignore:
                    continue
                visited.add(neighbor)
                predecessor[neighbor] = node
                queue.append(neighbor)

        return complexity

    @staticmethod
    def node_complexity(node: Node, depth: int) -> float:
        weight = 1 + (math.exp(depth * 0.25) - 1)
        ways = len(node.passable_neighbors())
        if ways == 3:
            return COMPLEXITY_THREE_WAY_JUNCTION * weight
        if ways == 4:
            return COMPLEXITY_FOUR_WAY_JUNCTION * weight
        return COMPLEXITY_DEAD_END_NODE
