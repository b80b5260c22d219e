"""Training configuration and its JSON persistence."""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Union

from ..domain.complexity import ComplexityFunction, DefaultComplexityFunction
from ..domain.criteria import (
    Criterion, EndStateReached, MaxActionsReached, MaxEpisodesReached,
    PerformanceAchievedStaticTolerance,
)
from ..domain.errors import ConfigurationError
from ..domain.operators import (
    ChangeOptimalPathOperator, DeadEndOperator, MazeOperator, NewPathOperator, ResizeOperator,
)
from ..domain.policies import EpsilonGreedyPolicy, ExplorationPolicy
from ..utils import registry

logger = logging.getLogger(__name__)

CONFIG_VERSION = "1.0"

# Fields holding a single component or a list of components, with their registry
_COMPONENT_FIELDS = {
    "exploration_policy": registry.POLICIES,
    "complexity_function": registry.COMPLEXITY_FUNCTIONS,
}
_COMPONENT_LIST_FIELDS = {
    "episode_stopping_criteria": registry.EPISODE_CRITERIA,
    "level_change_criteria": registry.LEVEL_CRITERIA,
    "maze_operators": registry.OPERATORS,
}


def _default_episode_criteria() -> List[Criterion]:
    return [EndStateReached(), MaxActionsReached(500)]


def _default_level_criteria() -> List[Criterion]:
    return [MaxEpisodesReached(100), PerformanceAchievedStaticTolerance(episodes=5, actions=2)]


def _default_operators() -> List[MazeOperator]:
    return [
        ResizeOperator(costs_per_dimension=2.0, seed=1),
        NewPathOperator(min_path_length=4, max_path_length=12, cost_per_node=1.0, seed=2),
        DeadEndOperator(min_path_length=1, max_path_length=6, cost_per_node=1.0, preference=0.5, seed=3),
        ChangeOptimalPathOperator(cost_per_increase=1.0, seed=4),
    ]


@dataclass
class TrainingConfig:
    """Configuration of a curriculum training run."""
    training_name: str = "Training"

    # Reinforcement learning
    initial_q_value: float = 0.0
    way_node_reward: float = -1.0
    end_node_reward: float = 10.0
    q_learning_alpha: float = 0.5
    q_learning_gamma: float = 0.9
    start_each_level_with_empty_q_table: bool = False
    exploration_policy: ExplorationPolicy = field(default_factory=lambda: EpsilonGreedyPolicy(0.1, seed=42))
    episode_stopping_criteria: List[Criterion] = field(default_factory=_default_episode_criteria)

    # Maze change
    level_change_criteria: List[Criterion] = field(default_factory=_default_level_criteria)
    complexity_function: ComplexityFunction = field(default_factory=DefaultComplexityFunction)
    number_of_levels: int = 5
    delta: float = 10.0
    change_maze_seed: int = 42
    maze_operators: List[MazeOperator] = field(default_factory=_default_operators)

    # Initial maze
    horizontal: bool = True
    initial_path_length: int = 5

    def __post_init__(self):
        if not 0 < self.q_learning_alpha <= 1:
            raise ConfigurationError(f"Parameter [q_learning_alpha] = {self.q_learning_alpha} has to be in (0, 1]")
        if not 0 <= self.q_learning_gamma <= 1:
            raise ConfigurationError(f"Parameter [q_learning_gamma] = {self.q_learning_gamma} has to be in [0, 1]")
        if self.number_of_levels < 1:
            raise ConfigurationError(f"Parameter [number_of_levels] = {self.number_of_levels} has to be greater than 0")
        if self.delta <= 0:
            raise ConfigurationError(f"Parameter [delta] = {self.delta} has to be greater than 0")
        if self.initial_path_length < 2:
            raise ConfigurationError(
                f"Parameter [initial_path_length] = {self.initial_path_length} has to be at least 2")
        if not self.episode_stopping_criteria:
            raise ConfigurationError("At least one episode stopping criterion is required")
        if not self.level_change_criteria:
            raise ConfigurationError("At least one level change criterion is required")
        if self.number_of_levels > 1 and not self.maze_operators:
            raise ConfigurationError("Maze operators are required for more than one level")


def config_to_dict(config: TrainingConfig) -> Dict[str, Any]:
    """Plain dictionary of a config, components written as specs."""
    data: Dict[str, Any] = {"version": CONFIG_VERSION}
    for f in fields(config):
        value = getattr(config, f.name)
        if f.name in _COMPONENT_FIELDS:
            data[f.name] = registry.to_spec(value)
        elif f.name in _COMPONENT_LIST_FIELDS:
            data[f.name] = [registry.to_spec(v) for v in value]
        else:
            data[f.name] = value
    return data


def config_from_dict(data: Dict[str, Any]) -> TrainingConfig:
    """
    Build a config from a dictionary. Missing keys keep their defaults.

    Raises:
        ConfigurationError: If a key is unknown or a component is invalid
    """
    known = {f.name for f in fields(TrainingConfig)}
    unknown = sorted(set(data) - known - {"version"})
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "version":
            continue
        if key in _COMPONENT_FIELDS:
            kwargs[key] = registry.from_spec(value, _COMPONENT_FIELDS[key])
        elif key in _COMPONENT_LIST_FIELDS:
            if not isinstance(value, list):
                raise ConfigurationError(f"Configuration key '{key}' must be a list")
            kwargs[key] = [registry.from_spec(v, _COMPONENT_LIST_FIELDS[key]) for v in value]
        else:
            kwargs[key] = value
    return TrainingConfig(**kwargs)


def save_config(config: TrainingConfig, filepath: Union[str, Path]) -> Path:
    """Save a config as JSON and return the written path."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config_to_dict(config), f, indent=2)
    logger.info("Saved configuration to %s", path)
    return path


def load_config(filepath: Union[str, Path]) -> TrainingConfig:
    """
    Load a config from a JSON file.

    Raises:
        ConfigurationError: If the file is missing, not valid JSON or invalid
    """
    path = Path(filepath)
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}") from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Configuration file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
    return config_from_dict(data)


def reseed(config: TrainingConfig, seed: int) -> TrainingConfig:
    """
    Copy of a config with every random stream derived from one seed.

    The maze change uses seed itself, the exploration policy seed + 1 and the
    i-th maze operator seed + 2 + i.
    """
    data = config_to_dict(config)
    data["change_maze_seed"] = seed
    data["exploration_policy"]["params"]["seed"] = seed + 1
    for i, spec in enumerate(data["maze_operators"]):
        spec["params"]["seed"] = seed + 2 + i
    return config_from_dict(data)
