"""Structural analysis of mazes and the budgeted mutation driver."""

import logging
from collections import deque
from typing import Dict, List, Optional, Sequence, Set, TYPE_CHECKING

from .errors import NoPathExistsError

if TYPE_CHECKING:
    from .maze import Maze
    from .node import Node
    from .operators import MazeOperator
    from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)


# Shortest paths

def find_shortest_path(start: "Node", end: "Node") -> List["Node"]:
    """
    Breadth-first search over passable nodes.

    All moves cost the same, so the first time BFS reaches the end node it has
    found a shortest path. Neighbors are expanded in the order left, up,
    right, down which makes the chosen path deterministic.

    Args:
        start: Node to start from
        end: Node to reach

    Returns:
        Nodes from start to end, both included

    Raises:
        NoPathExistsError: If end cannot be reached from start
    """
    if start == end:
        return [start]

    predecessors: Dict["Node", Optional["Node"]] = {start: None}
    queue = deque([start])

    while queue:
        current = queue.popleft()
        for neighbor in current.passable_neighbors():
            if neighbor in predecessors:
                continue
            predecessors[neighbor] = current
            if neighbor == end:
                return _reconstruct_path(predecessors, neighbor)
            queue.append(neighbor)

    raise NoPathExistsError(f"There exists no path from {start.coord} to {end.coord}")


def _reconstruct_path(predecessors: Dict["Node", Optional["Node"]], end: "Node") -> List["Node"]:
    path = [end]
    current = predecessors[end]
    while current is not None:
        path.append(current)
        current = predecessors[current]
    path.reverse()
    return path


def shortest_path(maze: "Maze") -> List["Node"]:
    """Shortest path from the maze's start to its end node."""
    return maze.shortest_path()


def length_of_shortest_path(maze: "Maze") -> int:
    """Minimum number of actions needed to walk from start to end."""
    return maze.length_of_shortest_path()


def optimal_reward(maze: "Maze") -> float:
    """Reward collected on the shortest path. The start node does not count."""
    return sum(node.reward for node in maze.shortest_path()[1:])


# Loops and parallel routes

def all_loop_nodes(maze: "Maze") -> List["Node"]:
    """
    All nodes reachable from the start that lie on a cycle.

    A node lies on a cycle exactly when at least one of its edges is not a
    bridge, so this runs an iterative bridge search (Tarjan lowlink) over the
    component of the start node.
    """
    start = maze.start_node
    if start is None or not start.is_passable():
        return []

    order: Dict["Node", int] = {start: 0}
    low: Dict["Node", int] = {start: 0}
    parent: Dict["Node", Optional["Node"]] = {start: None}
    bridges: Set[frozenset] = set()
    stack = [(start, iter(start.passable_neighbors()))]

    while stack:
        node, neighbors = stack[-1]
        descended = False
        for neighbor in neighbors:
            if neighbor not in order:
                parent[neighbor] = node
                order[neighbor] = low[neighbor] = len(order)
                stack.append((neighbor, iter(neighbor.passable_neighbors())))
                descended = True
                break
            if neighbor != parent[node]:
                low[node] = min(low[node], order[neighbor])
        if descended:
            continue

        stack.pop()
        above = parent[node]
        if above is not None:
            low[above] = min(low[above], low[node])
            if low[node] > order[above]:
                bridges.add(frozenset((above, node)))

    return [
        node for node in order
        if any(frozenset((node, n)) not in bridges for n in node.passable_neighbors())
    ]


def all_loops(maze: "Maze") -> List[List["Node"]]:
    """
    All simple cycles through loop nodes.

    Cycles are found with a depth-first search that never steps straight back
    to the node it came from. Cycles with the same node set are reported once.
    """
    loop_nodes = all_loop_nodes(maze)
    loop_set = set(loop_nodes)
    loops: List[List["Node"]] = []
    seen: Set[frozenset] = set()

    for origin in loop_nodes:
        stack = [(origin, ())]
        while stack:
            current, path = stack.pop()
            if current in path:
                cycle = list(path[path.index(current):])
                key = frozenset(cycle)
                if key not in seen:
                    seen.add(key)
                    loops.append(cycle)
                continue

            last = path[-1] if path else None
            extended = path + (current,)
            for neighbor in reversed(current.passable_neighbors()):
                if neighbor != last and neighbor in loop_set:
                    stack.append((neighbor, extended))

    return loops


def all_parallel_routes(maze: "Maze") -> List[List["Node"]]:
    """Loops that touch the shortest path at least twice.

    A touch is a (loop node, passable neighbor) pair whose neighbor lies on the
    shortest path.
    """
    optimal = set(maze.shortest_path())
    routes = []
    for loop in all_loops(maze):
        touches = sum(1 for node in loop for n in node.passable_neighbors() if n in optimal)
        if touches >= 2:
            routes.append(loop)
    return routes


def all_parallel_route_nodes(maze: "Maze") -> List["Node"]:
    """Union of all parallel routes without duplicates."""
    nodes: List["Node"] = []
    seen: Set["Node"] = set()
    for route in all_parallel_routes(maze):
        for node in route:
            if node not in seen:
                seen.add(node)
                nodes.append(node)
    return nodes


# Mutation

def change_maze(maze: "Maze", operators: Sequence["MazeOperator"], delta: float,
                rng: "SeededRNG") -> float:
    """
    Randomly apply operators until the cost budget is used up.

    An operator is drawn uniformly from the pool, asked for a plan within the
    remaining budget and applied. Operators that plan nothing, exceed the
    budget or fail to apply are dropped from the pool without consuming any
    budget. Operators that grow the maze refill the pool because a larger maze
    may offer room to the operators dropped before.

    Args:
        maze: Maze to change in place
        operators: Operators to choose from
        delta: Cost budget, never exceeded
        rng: Random number generator choosing operators

    Returns:
        Total cost consumed
    """
    current_cost = 0.0
    pool = list(operators)

    while current_cost < delta and pool:
        operator = pool[rng.next_int(len(pool))]
        cost = operator.estimate_cost(maze, delta - current_cost)

        if 0 < cost and current_cost + cost <= delta and operator.change_maze(maze):
            current_cost += cost
            logger.info("Applied %s for cost %.2f (%.2f/%.2f used)", operator, cost, current_cost, delta)
            if operator.resets_operator_pool:
                pool = list(operators)
        else:
            pool.remove(operator)
            logger.debug("Dropped %s from operator pool", operator)

    return current_cost
