"""Sinks receiving the data a training produces."""

import logging
from typing import Iterable, List, Optional

import numpy as np

from ..domain.criteria import Criterion
from ..domain.types import EpisodeData, LevelData, StepRecord, TrainingData

logger = logging.getLogger(__name__)


class TrainingLogSink:
    """Receives training events. All hooks do nothing by default."""

    def on_step(self, record: StepRecord) -> None:
        pass

    def on_episode_end(self, episode: EpisodeData) -> None:
        pass

    def on_level_start(self, level: LevelData) -> None:
        pass

    def on_level_end(self, level: LevelData) -> None:
        pass

    def on_training_finished(self) -> None:
        pass


class TrainingLog(TrainingLogSink):
    """
    In-memory sink collecting level and episode summaries.

    Args:
        training_name: Name stored in the collected TrainingData
        episode_criteria: Episode-stop criteria whose occurrences are counted
            per level, so that criteria which never fired show up with 0
        keep_steps: Also keep every StepRecord (memory grows with the run)
    """

    def __init__(self, training_name: str = "Training",
                 episode_criteria: Optional[Iterable[Criterion]] = None,
                 keep_steps: bool = False):
        self.training_data = TrainingData(training_name=training_name)
        self.criterion_labels = sorted(c.logger_string() for c in (episode_criteria or []))
        self.keep_steps = keep_steps
        self.steps: List[StepRecord] = []
        self.current_level: Optional[LevelData] = None

    def on_step(self, record: StepRecord) -> None:
        if self.keep_steps:
            self.steps.append(record)

    def on_level_start(self, level: LevelData) -> None:
        self.current_level = level
        self.training_data.levels.append(level)

    def on_episode_end(self, episode: EpisodeData) -> None:
        if self.current_level is None:
            raise RuntimeError("Episode ended before any level started")
        self.current_level.episodes.append(episode)

    def on_level_end(self, level: LevelData) -> None:
        if level.episodes:
            level.average_number_of_actions = float(np.mean([e.number_of_actions for e in level.episodes]))
            level.average_reward = float(np.mean([e.total_reward for e in level.episodes]))

        counter = {label: 0 for label in self.criterion_labels}
        for episode in level.episodes:
            if episode.occurred_stop_criterion is not None:
                counter[episode.occurred_stop_criterion] = counter.get(episode.occurred_stop_criterion, 0) + 1
        level.episode_stop_criterion_counter = dict(sorted(counter.items()))

        logger.info("Level %d finished after %d episodes (%s)", level.level_nr, len(level.episodes),
                    level.occurred_level_change_criterion)

    def on_training_finished(self) -> None:
        self.training_data.finished = True
