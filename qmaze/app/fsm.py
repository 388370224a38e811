"""Finite State Machine for the generate, train, test pipeline."""

from enum import Enum, auto


class RLState(Enum):
    """States for RL pipeline execution."""
    IDLE = auto()
    GENERATING = auto()
    TRAINING = auto()
    TESTING = auto()
    FINISHED = auto()
    ERROR = auto()


class RLStateMachine:
    """State machine for managing RL pipeline execution."""

    def __init__(self):
        self.current_state = RLState.IDLE

        # Define valid state transitions
        self._valid_transitions = {
            RLState.IDLE: {RLState.GENERATING, RLState.TRAINING, RLState.TESTING},
            RLState.GENERATING: {RLState.IDLE, RLState.ERROR},
            RLState.TRAINING: {RLState.IDLE, RLState.ERROR},
            RLState.TESTING: {RLState.FINISHED, RLState.ERROR},
            RLState.FINISHED: {RLState.IDLE, RLState.GENERATING, RLState.TRAINING, RLState.TESTING},
            RLState.ERROR: {RLState.IDLE},
        }

    def can_transition(self, to_state: RLState) -> bool:
        """Check if transition to target state is valid."""
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: RLState) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False

        self.current_state = to_state
        return True

    def reset_to_idle(self) -> bool:
        """Reset to idle state."""
        return self.transition(RLState.IDLE)

    def fail_error(self) -> bool:
        """Transition to error state."""
        return self.transition(RLState.ERROR)

    def is_active(self) -> bool:
        """Check if the pipeline is actively running."""
        return self.current_state in {RLState.GENERATING, RLState.TRAINING, RLState.TESTING}
