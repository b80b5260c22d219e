"""The maze: a grid of nodes with a designated start and end."""

import logging
from typing import Iterator, List, Optional

from .errors import NoPathExistsError
from .maze_utils import find_shortest_path
from .node import Node, NodeFactory
from .types import NodeType

logger = logging.getLogger(__name__)

# Characters used by the text representation of a maze
WALL_CHAR = "#"
WAY_CHAR = "."
START_CHAR = "S"
END_CHAR = "E"


class Maze:
    """A rectangular grid of nodes indexed as maze[x][y] (row, column).

    The maze is the only owner of its nodes. Every change of a node's type must
    go through the maze (or its node factory followed by invalidate_cache) so
    that the cached shortest path never goes stale.
    """

    def __init__(self, x_size: int, y_size: int, node_factory: NodeFactory):
        if x_size <= 1 or y_size <= 1:
            raise ValueError(f"Maze dimensions must be greater than 1, got {x_size}x{y_size}")

        self.node_factory = node_factory
        self._grid: List[List[Node]] = [
            [node_factory.build_node(x, y, NodeType.WALL, maze=self) for y in range(y_size)]
            for x in range(x_size)
        ]
        self._start_node: Optional[Node] = None
        self._end_node: Optional[Node] = None
        self._shortest_path: Optional[List[Node]] = None

    # Grid access

    @property
    def x_size(self) -> int:
        return len(self._grid)

    @property
    def y_size(self) -> int:
        return len(self._grid[0])

    def is_valid_coord(self, x: int, y: int) -> bool:
        return 0 <= x < self.x_size and 0 <= y < self.y_size

    def node_at(self, x: int, y: int) -> Optional[Node]:
        """Get node at coordinate, returns None if out of bounds."""
        if not self.is_valid_coord(x, y):
            return None
        return self._grid[x][y]

    def __getitem__(self, x: int) -> List[Node]:
        return self._grid[x]

    def nodes(self) -> Iterator[Node]:
        """Iterate over all nodes row by row."""
        for row in self._grid:
            yield from row

    def passable_nodes(self) -> List[Node]:
        return [n for n in self.nodes() if n.is_passable()]

    def is_border(self, node: Node) -> bool:
        return node.x in (0, self.x_size - 1) or node.y in (0, self.y_size - 1)

    def _own(self, node: Node) -> Node:
        # Accept nodes from a copy of this maze and map them onto our own.
        own = self.node_at(node.x, node.y)
        if own is None:
            raise ValueError(f"Node {node.coord} is outside the {self.x_size}x{self.y_size} maze")
        return own

    # Start and end

    @property
    def start_node(self) -> Optional[Node]:
        return self._start_node

    @property
    def end_node(self) -> Optional[Node]:
        return self._end_node

    def set_start_node(self, node: Node, reward: Optional[float] = None) -> None:
        """Move the start role to the given node.

        The previous start reverts to a plain passable node.
        """
        node = self._own(node)
        old = self._start_node
        if old is not None and old is not node and old.node_type is NodeType.START:
            self.node_factory.change_node_type(old, NodeType.PASSABLE)
        if node is self._end_node:
            self._end_node = None
        self.node_factory.change_node_type(node, NodeType.START, reward)
        self._start_node = node
        self.invalidate_cache()

    def set_end_node(self, node: Node, reward: Optional[float] = None) -> None:
        """Move the end role to the given node.

        The previous end reverts to a plain passable node.
        """
        node = self._own(node)
        old = self._end_node
        if old is not None and old is not node and old.node_type is NodeType.END:
            self.node_factory.change_node_type(old, NodeType.PASSABLE)
        if node is self._start_node:
            self._start_node = None
        self.node_factory.change_node_type(node, NodeType.END, reward)
        self._end_node = node
        self.invalidate_cache()

    def change_node_type(self, node: Node, node_type: NodeType,
                         reward: Optional[float] = None) -> None:
        """Retype a node, keeping start/end roles and the path cache consistent."""
        node = self._own(node)
        if node_type is NodeType.START:
            self.set_start_node(node, reward)
            return
        if node_type is NodeType.END:
            self.set_end_node(node, reward)
            return
        if node is self._start_node:
            self._start_node = None
        if node is self._end_node:
            self._end_node = None
        self.node_factory.change_node_type(node, node_type, reward)
        self.invalidate_cache()

    # Shortest path

    def invalidate_cache(self) -> None:
        self._shortest_path = None

    def shortest_path(self) -> List[Node]:
        """Shortest path from start to end, both included.

        Raises:
            NoPathExistsError: If start or end is missing or the end is unreachable
        """
        if self._shortest_path is None:
            if self._start_node is None or self._end_node is None:
                raise NoPathExistsError("Maze has no start or no end node")
            self._shortest_path = find_shortest_path(self._start_node, self._end_node)
        return list(self._shortest_path)

    def length_of_shortest_path(self) -> int:
        """Number of actions needed on the shortest path."""
        return len(self.shortest_path()) - 1

    def has_path(self) -> bool:
        try:
            self.shortest_path()
        except NoPathExistsError:
            return False
        return True

    # Structure

    def resize(self, new_x_size: int, new_y_size: int) -> None:
        """Enlarge the grid in place. Existing nodes are kept, new cells are walls."""
        if new_x_size < self.x_size or new_y_size < self.y_size:
            raise ValueError(
                f"Maze can only grow, got {new_x_size}x{new_y_size} for a {self.x_size}x{self.y_size} maze")

        old_x_size, old_y_size = self.x_size, self.y_size
        for x, row in enumerate(self._grid):
            row.extend(self.node_factory.build_node(x, y, NodeType.WALL, maze=self)
                       for y in range(old_y_size, new_y_size))
        for x in range(old_x_size, new_x_size):
            self._grid.append([self.node_factory.build_node(x, y, NodeType.WALL, maze=self)
                               for y in range(new_y_size)])
        self.invalidate_cache()
        logger.debug("Resized maze from %dx%d to %dx%d", old_x_size, old_y_size, new_x_size, new_y_size)

    def copy(self) -> "Maze":
        """Deep copy with independent nodes, preserving start and end."""
        clone = Maze.__new__(Maze)
        clone.node_factory = NodeFactory(self.node_factory.way_reward, self.node_factory.end_reward)
        clone._grid = [
            [Node(n.x, n.y, n.node_type, n.reward, clone) for n in row]
            for row in self._grid
        ]
        clone._start_node = clone._grid[self._start_node.x][self._start_node.y] if self._start_node else None
        clone._end_node = clone._grid[self._end_node.x][self._end_node.y] if self._end_node else None
        clone._shortest_path = None
        return clone

    def __deepcopy__(self, memo) -> "Maze":
        return self.copy()

    def to_rows(self) -> List[str]:
        """Text representation, one string per row."""
        chars = {
            NodeType.WALL: WALL_CHAR,
            NodeType.PASSABLE: WAY_CHAR,
            NodeType.START: START_CHAR,
            NodeType.END: END_CHAR,
        }
        return ["".join(chars[n.node_type] for n in row) for row in self._grid]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Maze):
            return NotImplemented
        if (self.x_size, self.y_size) != (other.x_size, other.y_size):
            return False
        return all(
            a.node_type is b.node_type and a.reward == b.reward
            for a, b in zip(self.nodes(), other.nodes())
        )

    __hash__ = None

    def __str__(self) -> str:
        return "\n".join(self.to_rows())

    def __repr__(self) -> str:
        return (f"Maze({self.x_size}x{self.y_size}, start={self._start_node and self._start_node.coord}, "
                f"end={self._end_node and self._end_node.coord})")
