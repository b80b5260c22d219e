"""Core type definitions for the maze curriculum trainer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

# Coordinate type for grid positions, (x, y) = (row, column)
Coord = Tuple[int, int]

# Reward carried by every wall node
WALL_REWARD = float("-inf")


class NodeType(Enum):
    """Kinds of maze cells."""
    WALL = "wall"
    PASSABLE = "passable"
    START = "start"
    END = "end"

    @property
    def passable(self) -> bool:
        return self is not NodeType.WALL


class Action(Enum):
    """Moves the agent can take. Declaration order is the canonical order."""
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def delta(self) -> Coord:
        return ACTION_DELTAS[self]

    @property
    def order(self) -> int:
        return ACTION_ORDER[self]

    def __lt__(self, other: "Action") -> bool:
        if not isinstance(other, Action):
            return NotImplemented
        return self.order < other.order


ACTION_ORDER: Dict[Action, int] = {
    Action.UP: 0,
    Action.RIGHT: 1,
    Action.DOWN: 2,
    Action.LEFT: 3,
}

# Rows grow downwards, columns grow to the right
ACTION_DELTAS: Dict[Action, Coord] = {
    Action.UP: (-1, 0),
    Action.RIGHT: (0, 1),
    Action.DOWN: (1, 0),
    Action.LEFT: (0, -1),
}


@dataclass(frozen=True)
class StepRecord:
    """Everything a logger needs to know about a single agent step."""
    old_position: Coord
    old_state: str
    action: Action
    new_position: Coord
    new_state: str
    reward: float
    old_q_value: float
    new_q_value: float
    number_of_actions: int
    total_reward: float
    level_nr: int = 0
    episode_nr: int = 0


@dataclass
class EpisodeData:
    """Summary of one finished (or running) episode."""
    episode_nr: int
    number_of_actions: int = 0
    total_reward: float = 0.0
    occurred_stop_criterion: Optional[str] = None
    q_table: Optional[object] = None  # QTable snapshot, set when the episode ends


@dataclass
class LevelData:
    """Summary of one level of the curriculum."""
    level_nr: int
    maze: Optional[object] = None  # Maze snapshot taken when the level starts
    complexity: Optional[float] = None
    optimal_number_of_actions: int = 0
    optimal_reward: float = 0.0
    average_number_of_actions: float = 0.0
    average_reward: float = 0.0
    occurred_level_change_criterion: Optional[str] = None
    episode_stop_criterion_counter: Dict[str, int] = field(default_factory=dict)
    episodes: list = field(default_factory=list)

    def episode(self, episode_nr: int) -> Optional[EpisodeData]:
        """Get episode data by number, returns None if unknown."""
        for episode in self.episodes:
            if episode.episode_nr == episode_nr:
                return episode
        return None


@dataclass
class TrainingData:
    """Collected log data of a whole training run."""
    training_name: str
    levels: list = field(default_factory=list)
    finished: bool = False

    def level(self, level_nr: int) -> Optional[LevelData]:
        """Get level data by number, returns None if unknown."""
        for level in self.levels:
            if level.level_nr == level_nr:
                return level
        return None

    @property
    def total_episodes(self) -> int:
        return sum(len(level.episodes) for level in self.levels)
