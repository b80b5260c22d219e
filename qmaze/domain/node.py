"""Maze cells and the factory that keeps their type and reward consistent."""

from typing import List, Optional, TYPE_CHECKING

from .types import Action, Coord, NodeType, WALL_REWARD, ACTION_DELTAS

if TYPE_CHECKING:
    from .maze import Maze


class Node:
    """A single cell of a maze.

    The position is fixed once the node is created. Neighbors are never stored;
    they are looked up by coordinate in the owning maze, so a node never holds a
    stale reference after the maze is mutated or resized.
    """

    def __init__(self, x: int, y: int, node_type: NodeType, reward: float,
                 maze: Optional["Maze"] = None):
        self._x = x
        self._y = y
        self.node_type = node_type
        self.reward = reward
        self.maze = maze

    @property
    def x(self) -> int:
        return self._x

    @property
    def y(self) -> int:
        return self._y

    @property
    def coord(self) -> Coord:
        return (self._x, self._y)

    def is_passable(self) -> bool:
        """Check if the agent can stand on this node."""
        return self.node_type.passable

    def neighbor(self, dx: int, dy: int) -> Optional["Node"]:
        """Get the node at the given offset, None outside the grid or without a maze."""
        if self.maze is None:
            return None
        return self.maze.node_at(self._x + dx, self._y + dy)

    def neighbor_in_direction(self, action: Action) -> Optional["Node"]:
        dx, dy = ACTION_DELTAS[action]
        return self.neighbor(dx, dy)

    def up_neighbor(self) -> Optional["Node"]:
        return self.neighbor(-1, 0)

    def right_neighbor(self) -> Optional["Node"]:
        return self.neighbor(0, 1)

    def down_neighbor(self) -> Optional["Node"]:
        return self.neighbor(1, 0)

    def left_neighbor(self) -> Optional["Node"]:
        return self.neighbor(0, -1)

    def upper_left_neighbor(self) -> Optional["Node"]:
        return self.neighbor(-1, -1)

    def upper_right_neighbor(self) -> Optional["Node"]:
        return self.neighbor(-1, 1)

    def lower_left_neighbor(self) -> Optional["Node"]:
        return self.neighbor(1, -1)

    def lower_right_neighbor(self) -> Optional["Node"]:
        return self.neighbor(1, 1)

    def direct_neighbors(self) -> List["Node"]:
        """Cardinal neighbors in the order left, up, right, down."""
        candidates = (self.left_neighbor(), self.up_neighbor(),
                      self.right_neighbor(), self.down_neighbor())
        return [n for n in candidates if n is not None]

    def all_neighbors(self) -> List["Node"]:
        """All up to 8 surrounding nodes."""
        neighbors = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                n = self.neighbor(dx, dy)
                if n is not None:
                    neighbors.append(n)
        return neighbors

    def passable_neighbors(self) -> List["Node"]:
        """Cardinal neighbors the agent can move to."""
        return [n for n in self.direct_neighbors() if n.is_passable()]

    @property
    def state(self) -> str:
        """Fingerprint of the local passability pattern, used as Q-table key.

        One character per cardinal direction in the order up, right, down, left:
        '1' for passable, '0' for a wall or the outside of the grid. Computed on
        every access because neighbor types change when the maze is mutated.
        """
        bits = []
        for action in Action:
            n = self.neighbor_in_direction(action)
            bits.append("1" if n is not None and n.is_passable() else "0")
        return "".join(bits)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._x == other._x and self._y == other._y

    def __hash__(self) -> int:
        return hash((self._x, self._y))

    def __repr__(self) -> str:
        return f"Node({self._x}, {self._y}, {self.node_type.name})"


class NodeFactory:
    """Builds nodes and retypes them so that type and reward always match."""

    def __init__(self, way_reward: float, end_reward: float):
        self.way_reward = way_reward
        self.end_reward = end_reward

    def reward_for(self, node_type: NodeType) -> float:
        if node_type is NodeType.WALL:
            return WALL_REWARD
        if node_type is NodeType.END:
            return self.end_reward
        return self.way_reward

    def build_node(self, x: int, y: int, node_type: NodeType,
                   reward: Optional[float] = None, maze: Optional["Maze"] = None) -> Node:
        if reward is None or node_type is NodeType.WALL:
            reward = self.reward_for(node_type)
        return Node(x, y, node_type, reward, maze)

    def build_wall_node(self, x: int, y: int) -> Node:
        return self.build_node(x, y, NodeType.WALL)

    def build_way_node(self, x: int, y: int, reward: Optional[float] = None) -> Node:
        return self.build_node(x, y, NodeType.PASSABLE, reward)

    def build_start_node(self, x: int, y: int, reward: Optional[float] = None) -> Node:
        return self.build_node(x, y, NodeType.START, reward)

    def build_end_node(self, x: int, y: int, reward: Optional[float] = None) -> Node:
        return self.build_node(x, y, NodeType.END, reward)

    def change_node_type(self, node: Node, node_type: NodeType,
                         reward: Optional[float] = None) -> None:
        """Change type and reward of a node in one go.

        Walls always carry WALL_REWARD; a custom reward is only honoured for
        passable types.
        """
        if reward is None or node_type is NodeType.WALL:
            reward = self.reward_for(node_type)
        node.node_type = node_type
        node.reward = reward

    def __eq__(self, other) -> bool:
        if not isinstance(other, NodeFactory):
            return NotImplemented
        return self.way_reward == other.way_reward and self.end_reward == other.end_reward

    def __repr__(self) -> str:
        return f"NodeFactory(way_reward={self.way_reward}, end_reward={self.end_reward})"
