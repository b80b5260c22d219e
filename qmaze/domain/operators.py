"""Randomized, cost-budgeted operators that make a maze more complex."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from .errors import NoPathExistsError, check_parameter
from .maze import Maze
from .maze_utils import all_parallel_route_nodes, find_shortest_path
from .node import Node
from .types import NodeType
from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)

# Candidate searches stop after this many valid plans
CANDIDATES_TO_FIND = 20


def is_valid_new_way(node: Node, predecessor: Node, visited: Sequence[Node], maze: Maze,
                     allow_passable_neighbors: bool = False) -> bool:
    """
    Check whether a wall node may be carved as the next cell of a new corridor.

    The node has to be an unvisited wall away from the border, adjacent to its
    already visited predecessor, and must not touch any other visited node.
    Unless allow_passable_neighbors is set it must not touch any passable node
    other than the predecessor either.
    """
    if node in visited or node.is_passable():
        return False
    neighbors = node.direct_neighbors()
    if predecessor not in neighbors:
        return False
    if maze.is_border(node):
        return False
    for neighbor in neighbors:
        if neighbor == predecessor:
            continue
        if neighbor.is_passable() and not allow_passable_neighbors:
            return False
        if neighbor in visited:
            return False
    return predecessor in visited


def is_valid_end_of_path(node: Node, predecessor: Node, visited: Sequence[Node], maze: Maze,
                         targets: Sequence[Node]) -> bool:
    """A valid new way whose only other passable neighbor lies in targets."""
    if not is_valid_new_way(node, predecessor, visited, maze, allow_passable_neighbors=True):
        return False
    others = [n for n in node.passable_neighbors() if n != predecessor]
    return len(others) == 1 and others[0] in targets


class MazeOperator(ABC):
    """Plans a change in estimate_cost and applies it in change_maze.

    Planning never mutates the maze. change_maze applies the most recent plan
    and forgets it, returning False when there is nothing to apply.
    """

    # Growing the maze gives dropped operators a new chance
    resets_operator_pool = False

    def __init__(self, seed: int):
        self.seed = seed
        self.rng = SeededRNG(seed)

    @abstractmethod
    def estimate_cost(self, maze: Maze, allowed_cost: float) -> float:
        """Plan a change within allowed_cost. Returns its cost, 0 if nothing fits."""

    @abstractmethod
    def change_maze(self, maze: Maze) -> bool:
        """Apply the planned change."""

    @abstractmethod
    def params(self) -> dict:
        """Constructor parameters, used for equality and config export."""

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


class ResizeOperator(MazeOperator):
    """Enlarges the maze and leads a corridor from the old end to the new corner."""

    resets_operator_pool = True

    def __init__(self, costs_per_dimension: float, seed: int):
        check_parameter(costs_per_dimension > 0, "costs_per_dimension", costs_per_dimension, "greater than 0")
        super().__init__(seed)
        self.costs_per_dimension = costs_per_dimension
        self.x_increase = 0
        self.y_increase = 0

    def params(self) -> dict:
        return {"costs_per_dimension": self.costs_per_dimension, "seed": self.seed}

    def estimate_cost(self, maze: Maze, allowed_cost: float) -> float:
        max_increase = int(allowed_cost / self.costs_per_dimension)
        # The corridor is led from the end towards the new edge, which needs a wall beyond the end
        if max_increase <= 0 or maze.end_node is None or maze.is_border(maze.end_node):
            self.x_increase = self.y_increase = 0
            return 0.0

        total = 1 + self.rng.next_int(max_increase)
        x_first = self.rng.next_int(2) == 0
        first = 1 + self.rng.next_int(total)
        remaining = total - first
        second = 0 if remaining == 0 else 1 + self.rng.next_int(remaining)
        if x_first:
            self.x_increase, self.y_increase = first, second
        else:
            self.y_increase, self.x_increase = first, second
        return total * self.costs_per_dimension

    def change_maze(self, maze: Maze) -> bool:
        if self.x_increase == 0 and self.y_increase == 0:
            return False

        logger.info("Resizing maze by x += %d, y += %d", self.x_increase, self.y_increase)
        maze.resize(maze.x_size + self.x_increase, maze.y_size + self.y_increase)
        if self.y_increase > 0:
            self._extend_corridor(maze, dx=0, dy=1)
        if self.x_increase > 0:
            self._extend_corridor(maze, dx=1, dy=0)

        self.x_increase = self.y_increase = 0
        return True

    @staticmethod
    def _extend_corridor(maze: Maze, dx: int, dy: int) -> None:
        # Carve from the old end towards the far edge and put the end one cell before it.
        old_end = maze.end_node
        x, y = old_end.x + dx, old_end.y + dy
        last_x = maze.x_size - 2 if dx else old_end.x
        last_y = maze.y_size - 2 if dy else old_end.y
        while (x, y) != (last_x, last_y):
            maze.change_node_type(maze.node_at(x, y), NodeType.PASSABLE)
            x, y = x + dx, y + dy
        maze.set_end_node(maze.node_at(last_x, last_y))


class NewPathOperator(MazeOperator):
    """Builds a corridor that leaves the shortest path and joins it again.

    The corridor is always longer than the part of the shortest path it
    bypasses, so the shortest path never gets shorter.
    """

    def __init__(self, min_path_length: int, max_path_length: int, cost_per_node: float, seed: int):
        check_parameter(cost_per_node > 0, "cost_per_node", cost_per_node, "greater than 0")
        check_parameter(min_path_length > 3, "min_path_length", min_path_length, "greater than 3")
        check_parameter(max_path_length >= min_path_length, "max_path_length", max_path_length,
                        f"greater than or equal to min_path_length ({min_path_length})")
        super().__init__(seed)
        self.min_path_length = min_path_length
        self.max_path_length = max_path_length
        self.cost_per_node = cost_per_node
        self.path: Optional[List[Node]] = None

    def params(self) -> dict:
        return {
            "min_path_length": self.min_path_length,
            "max_path_length": self.max_path_length,
            "cost_per_node": self.cost_per_node,
            "seed": self.seed,
        }

    def estimate_cost(self, maze: Maze, allowed_cost: float) -> float:
        self.path = None
        if self.min_path_length * self.cost_per_node > allowed_cost:
            return 0.0

        this_max = min(int(allowed_cost / self.cost_per_node), self.max_path_length)
        optimal = maze.shortest_path()
        origins = list(optimal)
        self.rng.shuffle(origins)

        candidates: List[List[Node]] = []
        for origin in origins:
            path = self.find_path(origin, maze, this_max, optimal)
            if self.min_path_length <= len(path) <= self.max_path_length:
                if len(path) > self._bypassed_length(path, optimal):
                    candidates.append(path)
            if len(candidates) >= CANDIDATES_TO_FIND:
                break

        if not candidates:
            return 0.0
        self.path = candidates[self.rng.next_int(len(candidates))]
        return len(self.path) * self.cost_per_node

    def change_maze(self, maze: Maze) -> bool:
        if self.path is None:
            return False
        logger.info("Applying new path operator (length = %d)", len(self.path))
        for node in self.path:
            maze.change_node_type(node, NodeType.PASSABLE)
        self.path = None
        return True

    def find_path(self, origin: Node, maze: Maze, max_length: int, optimal: List[Node]) -> List[Node]:
        """
        Longest new corridor starting next to origin, empty if none is long enough.

        The returned corridor does not contain origin itself because that node
        is passable already.
        """
        path = self._search(origin, [], maze, 0, max_length, optimal)
        if path and path[0] == origin:
            path = path[1:]
        if len(path) < self.min_path_length:
            return []
        return path

    def _search(self, current: Node, visited: List[Node], maze: Maze, depth: int,
                max_length: int, optimal: List[Node]) -> List[Node]:
        visited.append(current)
        branches = []
        for neighbor in current.direct_neighbors():
            if (depth < max_length - 1 and neighbor not in visited
                    and is_valid_new_way(neighbor, current, visited, maze)):
                branch = self._search(neighbor, visited, maze, depth + 1, max_length, optimal)
                branches.append(branch)
                if len(branch) == max_length:
                    break

        if not branches:
            if depth + 1 < self.min_path_length:
                return []
            for neighbor in current.direct_neighbors():
                if is_valid_end_of_path(neighbor, current, visited, maze, optimal):
                    return [current, neighbor]
            return []

        longest = max(branches, key=len)
        if not longest:
            return []
        return [current] + longest

    @staticmethod
    def _bypassed_length(path: List[Node], optimal: List[Node]) -> float:
        # Number of shortest-path nodes between the two nodes the corridor connects.
        first = _connector(path[0], optimal)
        last = _connector(path[-1], optimal)
        if first is None or last is None:
            return float("inf")
        try:
            return len(find_shortest_path(first, last))
        except NoPathExistsError:
            return float("inf")


def _connector(node: Node, optimal: List[Node]) -> Optional[Node]:
    for neighbor in node.direct_neighbors():
        if neighbor in optimal:
            return neighbor
    return None


class DeadEndOperator(MazeOperator):
    """Attaches a dead-end corridor to a passable node.

    With probability preference the corridor starts at a node of the shortest
    path or of a parallel route, otherwise at any other passable node.
    """

    def __init__(self, min_path_length: int, max_path_length: int, cost_per_node: float,
                 preference: float, seed: int):
        check_parameter(cost_per_node > 0, "cost_per_node", cost_per_node, "greater than 0")
        check_parameter(0 <= preference <= 1, "preference", preference, "in [0, 1]")
        check_parameter(min_path_length >= 0, "min_path_length", min_path_length, "greater than or equal to 0")
        check_parameter(max_path_length >= min_path_length, "max_path_length", max_path_length,
                        f"greater than or equal to min_path_length ({min_path_length})")
        super().__init__(seed)
        self.min_path_length = min_path_length
        self.max_path_length = max_path_length
        self.cost_per_node = cost_per_node
        self.preference = preference
        self.dead_end: Optional[List[Node]] = None

    def params(self) -> dict:
        return {
            "min_path_length": self.min_path_length,
            "max_path_length": self.max_path_length,
            "cost_per_node": self.cost_per_node,
            "preference": self.preference,
            "seed": self.seed,
        }

    def estimate_cost(self, maze: Maze, allowed_cost: float) -> float:
        self.dead_end = None
        if self.min_path_length * self.cost_per_node > allowed_cost:
            return 0.0

        this_max = min(int(allowed_cost / self.cost_per_node), self.max_path_length)
        preferred, others = self._origin_pools(maze)
        self.rng.shuffle(others)
        self.rng.shuffle(preferred)

        candidates: List[List[Node]] = []
        while (preferred or others) and len(candidates) < CANDIDATES_TO_FIND:
            if not others:
                origin = preferred.pop(0)
            elif not preferred:
                origin = others.pop(0)
            elif self.rng.random() >= self.preference:
                origin = others.pop(0)
            else:
                origin = preferred.pop(0)

            dead_end = self.find_dead_end(origin, maze, this_max)
            if len(dead_end) >= self.min_path_length:
                candidates.append(dead_end)

        if not candidates:
            return 0.0
        self.dead_end = candidates[self.rng.next_int(len(candidates))]
        return len(self.dead_end) * self.cost_per_node

    def change_maze(self, maze: Maze) -> bool:
        if self.dead_end is None:
            return False
        logger.info("Applying dead end operator (length = %d)", len(self.dead_end))
        for node in self.dead_end:
            maze.change_node_type(node, NodeType.PASSABLE)
        self.dead_end = None
        return True

    @staticmethod
    def _origin_pools(maze: Maze) -> Tuple[List[Node], List[Node]]:
        end = maze.end_node
        preferred: List[Node] = []
        for node in maze.shortest_path() + all_parallel_route_nodes(maze):
            if node != end and node not in preferred:
                preferred.append(node)
        others = [n for n in maze.passable_nodes() if n != end and n not in preferred]
        return preferred, others

    def find_dead_end(self, origin: Node, maze: Maze, max_length: int) -> List[Node]:
        """Longest dead end leaving origin, empty if shorter than min_path_length."""
        dead_end = self._search(origin, [origin], -1, max_length)
        dead_end = [n for n in dead_end if n != origin]
        if len(dead_end) < self.min_path_length:
            return []
        return dead_end

    def _search(self, current: Node, visited: List[Node], depth: int, max_length: int) -> List[Node]:
        if depth == max_length:
            return []
        if current not in visited:
            visited.append(current)

        branches = []
        neighbors = current.direct_neighbors()
        self.rng.shuffle(neighbors)
        for neighbor in neighbors:
            if neighbor not in visited and is_valid_new_way(neighbor, current, visited, current.maze):
                branch = self._search(neighbor, visited, depth + 1, max_length)
                branches.append(branch)
                if len(branch) == max_length:
                    break

        if branches:
            return [current] + max(branches, key=len)
        return [current]


class ChangeOptimalPathOperator(MazeOperator):
    """Walls off a node shared by the shortest path and a parallel route.

    The shortest path then has to take the detour, which makes it longer.
    """

    def __init__(self, cost_per_increase: float, seed: int):
        check_parameter(cost_per_increase > 0, "cost_per_increase", cost_per_increase, "greater than 0")
        super().__init__(seed)
        self.cost_per_increase = cost_per_increase
        self.node_to_block: Optional[Node] = None

    def params(self) -> dict:
        return {"cost_per_increase": self.cost_per_increase, "seed": self.seed}

    def estimate_cost(self, maze: Maze, allowed_cost: float) -> float:
        self.node_to_block = None
        parallel = set(all_parallel_route_nodes(maze))
        blockable = [n for n in maze.shortest_path()
                     if n in parallel and len(n.passable_neighbors()) == 2]
        if not blockable:
            return 0.0

        self.rng.shuffle(blockable)
        for node in blockable:
            increase = self.length_increase(maze, node)
            cost = increase * self.cost_per_increase
            if cost <= allowed_cost and increase > 0:
                self.node_to_block = node
                return cost
        return 0.0

    def change_maze(self, maze: Maze) -> bool:
        if self.node_to_block is None:
            return False
        logger.info("Blocking node %s on the shortest path", self.node_to_block.coord)
        maze.change_node_type(self.node_to_block, NodeType.WALL)
        self.node_to_block = None
        return True

    @staticmethod
    def length_increase(maze: Maze, node: Node) -> float:
        """How much longer the shortest path gets if node is walled off."""
        if node == maze.start_node or node == maze.end_node:
            return float("inf")

        before = maze.length_of_shortest_path()
        reward = node.reward
        maze.change_node_type(node, NodeType.WALL)
        try:
            after = maze.length_of_shortest_path()
        except NoPathExistsError:
            return float("inf")
        finally:
            maze.change_node_type(node, NodeType.PASSABLE, reward)
        return after - before
