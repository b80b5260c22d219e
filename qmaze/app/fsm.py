"""Finite state machine for the phases of a curriculum training."""

from enum import Enum, auto


class TrainingState(Enum):
    """Phases a training passes through between two steps."""
    AWAITING_ACTION = auto()
    EPISODE_ENDED = auto()
    LEVEL_ENDED = auto()
    TRAINING_FINISHED = auto()


class TrainingStateMachine:
    """State machine driving Training.do_step."""

    def __init__(self):
        self.current_state = TrainingState.AWAITING_ACTION

        self._valid_transitions = {
            TrainingState.AWAITING_ACTION: {TrainingState.AWAITING_ACTION, TrainingState.EPISODE_ENDED},
            TrainingState.EPISODE_ENDED: {TrainingState.AWAITING_ACTION, TrainingState.LEVEL_ENDED},
            TrainingState.LEVEL_ENDED: {TrainingState.AWAITING_ACTION, TrainingState.TRAINING_FINISHED},
            TrainingState.TRAINING_FINISHED: set(),
        }

    def can_transition(self, to_state: TrainingState) -> bool:
        """Check if transition to target state is valid."""
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: TrainingState) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False
        self.current_state = to_state
        return True

    def is_finished(self) -> bool:
        return self.current_state == TrainingState.TRAINING_FINISHED
