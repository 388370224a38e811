"""Application controller connecting world generation, training and policy execution."""

from typing import Callable, List, Optional

from ..domain.types import World, RLConfig, QTable, TrainingEvent, TrainingResult, PolicyResult
from ..domain.qlearning import QLearningAgent
from ..domain.policy import execute_policy
from ..utils.grid_factory import generate_world
from ..utils.rng import SeededRNG
from .fsm import RLStateMachine, RLState


class RLController:
    """
    Controller that runs the generate, train, test pipeline.

    Holds the single random source for the run so that generation and
    training consume it in a fixed order. Training progress is fanned out
    to every registered listener; listeners never influence the run.
    """

    def __init__(self, config: Optional[RLConfig] = None, seed: Optional[int] = None):
        self.config = config or RLConfig()
        self.config.validate()
        self.rng = SeededRNG(seed)
        self.state_machine = RLStateMachine()

        self.world: Optional[World] = None
        self.agent: Optional[QLearningAgent] = None
        self.training_result: Optional[TrainingResult] = None
        self.policy_result: Optional[PolicyResult] = None
        self.error_message = ""

        self._listeners: List[Callable[[TrainingEvent], None]] = []
        self._stop_requested = False

    # Listener management

    def add_listener(self, listener: Callable[[TrainingEvent], None]):
        """Register a training progress listener."""
        self._listeners.append(listener)

    def _emit(self, event: TrainingEvent):
        for listener in list(self._listeners):
            listener(event)

    # Pipeline steps

    @property
    def state(self) -> RLState:
        return self.state_machine.current_state

    @property
    def q_table(self) -> Optional[QTable]:
        return self.agent.q_table if self.agent else None

    def set_world(self, world: World):
        """Use an existing world instead of generating one."""
        if self.state_machine.is_active():
            raise RuntimeError("Cannot change the world while the pipeline is running")
        self.world = world
        self.agent = None
        self.training_result = None
        self.policy_result = None

    def generate(self, width: int, height: int, goal=None, start=(0, 0)) -> World:
        """
        Generate a connected world with the configured obstacle density.

        Raises:
            GenerationExhausted: If the attempt cap is reached
            ValueError: On invalid dimensions or positions
        """
        self._enter(RLState.GENERATING)
        try:
            world = generate_world(
                width, height, self.config.obstacle_density, self.rng,
                start=start, goal=goal,
                max_attempts=self.config.max_generation_attempts
            )
        except Exception as e:
            self._fail(str(e))
            raise

        self.state_machine.reset_to_idle()
        self.set_world(world)
        return world

    def train(self, episodes: Optional[int] = None) -> TrainingResult:
        """Train a fresh agent on the current world."""
        if self.world is None:
            raise RuntimeError("No world to train on; generate or load one first")

        self._stop_requested = False
        self._enter(RLState.TRAINING)
        try:
            self.agent = QLearningAgent(self.world, self.config, self.rng)
            result = self.agent.train(
                episodes=episodes,
                observer=self._emit,
                should_stop=lambda: self._stop_requested
            )
        except Exception as e:
            self._fail(str(e))
            raise

        self.training_result = result
        self.state_machine.reset_to_idle()
        return result

    def find_path(self) -> PolicyResult:
        """Roll out the greedy policy learned by the last training run."""
        if self.agent is None or self.world is None:
            raise RuntimeError("No trained agent; call train() first")

        self._enter(RLState.TESTING)
        try:
            result = execute_policy(self.world, self.agent.q_table, self.config)
        except Exception as e:
            self._fail(str(e))
            raise

        self.policy_result = result
        self.state_machine.transition(RLState.FINISHED)
        return result

    def run(self, width: int, height: int, goal=None, episodes: Optional[int] = None) -> PolicyResult:
        """Generate (unless a world is set), train and execute in one go."""
        if self.world is None:
            self.generate(width, height, goal=goal)
        self.train(episodes)
        if self.training_result is not None and self.training_result.stopped:
            raise RuntimeError("Training was stopped before completion")
        return self.find_path()

    def stop(self):
        """Ask training to stop after the current episode."""
        self._stop_requested = True

    def _enter(self, state: RLState):
        if not self.state_machine.transition(state):
            raise RuntimeError(
                f"Cannot go from {self.state.name} to {state.name}"
            )

    def _fail(self, message: str):
        self.error_message = message
        self.state_machine.fail_error()
        self.state_machine.reset_to_idle()
