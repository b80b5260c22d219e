"""Export of finished trainings to JSON summaries and Q-table CSV files."""

import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

from ..domain.types import LevelData, TrainingData

logger = logging.getLogger(__name__)


def maze_hash(rows: List[str]) -> str:
    """Stable hash of a maze layout."""
    maze_str = json.dumps(rows)
    return hashlib.md5(maze_str.encode()).hexdigest()


def level_summary(level: LevelData) -> Dict[str, Any]:
    """JSON-serializable summary of one level."""
    rows = level.maze.to_rows() if level.maze is not None else []
    return {
        "level_nr": level.level_nr,
        "maze": rows,
        "maze_hash": maze_hash(rows),
        "maze_size": [level.maze.x_size, level.maze.y_size] if level.maze is not None else None,
        "complexity": level.complexity,
        "optimal_number_of_actions": level.optimal_number_of_actions,
        "optimal_reward": level.optimal_reward,
        "number_of_episodes": len(level.episodes),
        "average_number_of_actions": level.average_number_of_actions,
        "average_reward": level.average_reward,
        "occurred_level_change_criterion": level.occurred_level_change_criterion,
        "episode_stop_criterion_counter": level.episode_stop_criterion_counter,
    }


def _safe_name(name: str) -> str:
    safe = "".join(c for c in name if c.isalnum() or c in (" ", "-", "_")).strip().replace(" ", "_")
    return safe or "training"


def save_training_summary(training_data: TrainingData, directory: Union[str, Path],
                          timestamp: bool = True) -> Path:
    """
    Write one JSON summary and one final Q-table CSV per level.

    Args:
        training_data: Collected data of the training
        directory: Parent directory for the export
        timestamp: Append a timestamp to the export directory name

    Returns:
        The directory the files were written to
    """
    name = _safe_name(training_data.training_name)
    if timestamp:
        name = f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    export_dir = Path(directory) / name
    export_dir.mkdir(parents=True, exist_ok=True)

    overview = {
        "training_name": training_data.training_name,
        "finished": training_data.finished,
        "number_of_levels": len(training_data.levels),
        "total_episodes": training_data.total_episodes,
        "created_at": datetime.now().isoformat(),
    }
    with open(export_dir / "training.json", "w") as f:
        json.dump(overview, f, indent=2)

    for level in training_data.levels:
        with open(export_dir / f"level_{level.level_nr}.json", "w") as f:
            json.dump(level_summary(level), f, indent=2)

        if level.episodes and level.episodes[-1].q_table is not None:
            csv_path = export_dir / f"level_{level.level_nr}_qtable.csv"
            csv_path.write_text(level.episodes[-1].q_table.to_csv())

    logger.info("Exported %d levels to %s", len(training_data.levels), export_dir)
    return export_dir
