"""Core type definitions for the Q-learning grid navigation."""

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Optional, Tuple, Literal, Dict, FrozenSet, List
import numpy as np

# Grid position as (row, col)
Cell = Tuple[int, int]

# Actions the agent can take: up, down, left, right
ActionInt = Literal[0, 1, 2, 3]  # Numerical representation

NUM_ACTIONS = 4


class GenerationExhausted(RuntimeError):
    """Raised when no connected obstacle layout was found within the attempt cap."""

    def __init__(self, attempts: int, density: float):
        super().__init__(
            f"No connected layout found after {attempts} attempts "
            f"(obstacle density {density:.2f})"
        )
        self.attempts = attempts
        self.density = density


@dataclass
class RLConfig:
    """Configuration for the RL algorithm."""
    learning_rate: float = 0.1
    discount_factor: float = 0.99
    epsilon: float = 1.0  # Start fully exploratory
    epsilon_decay: float = 0.9995  # Per-episode multiplicative decay
    epsilon_min: float = 0.05
    max_episodes: int = 5000
    max_steps_per_episode: int = 400

    # World generation
    obstacle_density: float = 0.2
    max_generation_attempts: Optional[int] = 1000  # None retries forever

    # Shaped rewards
    reward_goal: float = 200.0
    reward_obstacle: float = -50.0
    reward_revisit: float = -10.0
    reward_dead_end: float = -25.0
    reward_step: float = -1.0
    distance_reward_scale: float = 2.0

    # Policy execution (heuristic recovery tuning)
    rollout_max_steps: int = 500
    stuck_threshold: int = 3  # Revisits allowed once stuck counter exceeds this
    backtrack_threshold: int = 5  # Backtrack once stuck counter exceeds this
    backtrack_count: int = 5  # Path cells popped per backtrack

    # Progress reporting
    progress_interval: int = 500

    def validate(self) -> None:
        """
        Check that all values are in range.

        Raises:
            ValueError: On the first invalid setting found
        """
        for name in ("learning_rate", "discount_factor", "epsilon", "epsilon_min",
                     "epsilon_decay", "obstacle_density"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")

        if self.epsilon_min > self.epsilon:
            raise ValueError(
                f"epsilon_min ({self.epsilon_min}) cannot exceed epsilon ({self.epsilon})"
            )

        for name in ("max_episodes", "max_steps_per_episode", "rollout_max_steps",
                     "backtrack_count", "progress_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        for name in ("stuck_threshold", "backtrack_threshold"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")

        if self.max_generation_attempts is not None and self.max_generation_attempts <= 0:
            raise ValueError(
                f"max_generation_attempts must be positive or None, got {self.max_generation_attempts}"
            )


def clamp_move(cell: Cell, action: ActionInt, width: int, height: int) -> Cell:
    """Apply an action delta and clamp each axis into the grid."""
    d_row, d_col = ACTION_DELTAS[action]
    row = min(max(cell[0] + d_row, 0), height - 1)
    col = min(max(cell[1] + d_col, 0), width - 1)
    return (row, col)


@dataclass(frozen=True)
class World:
    """A fixed grid with start, goal and an immutable obstacle set."""
    width: int
    height: int
    start: Cell
    goal: Cell
    obstacles: FrozenSet[Cell] = frozenset()
    generation_attempts: int = field(default=0, compare=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {self.width}x{self.height}")
        if not self.is_valid_cell(self.start):
            raise ValueError(f"Start position {self.start} is out of bounds")
        if not self.is_valid_cell(self.goal):
            raise ValueError(f"Goal position {self.goal} is out of bounds")
        if self.start == self.goal:
            raise ValueError("Start and goal positions cannot be the same")
        for cell in self.obstacles:
            if not self.is_valid_cell(cell):
                raise ValueError(f"Obstacle {cell} is out of bounds")
        if self.start in self.obstacles or self.goal in self.obstacles:
            raise ValueError("Obstacles cannot cover the start or goal position")

    @property
    def max_distance(self) -> int:
        """Normaliser for distance shaping."""
        return self.width + self.height

    def is_valid_cell(self, cell: Cell) -> bool:
        """Check if cell is within grid bounds."""
        row, col = cell
        return 0 <= row < self.height and 0 <= col < self.width

    def is_obstacle(self, cell: Cell) -> bool:
        return cell in self.obstacles

    def move(self, cell: Cell, action: ActionInt) -> Cell:
        """Apply an action and clamp each axis to the grid (no wrapping)."""
        return clamp_move(cell, action, self.width, self.height)


def _compare_desc(a: Tuple[int, float], b: Tuple[int, float]) -> int:
    # NaN compares as equal so the stable sort keeps action order
    if a[1] > b[1]:
        return -1
    if a[1] < b[1]:
        return 1
    return 0


class QTable:
    """Dense action-value table indexed by (row, col, action)."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._values = np.zeros((height, width, NUM_ACTIONS), dtype=np.float64)

    @classmethod
    def for_world(cls, world: World) -> "QTable":
        return cls(world.width, world.height)

    @property
    def size(self) -> int:
        """Total number of (cell, action) entries."""
        return int(self._values.size)

    def __len__(self) -> int:
        return self.size

    def _check(self, cell: Cell) -> None:
        row, col = cell
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"Cell {cell} is outside the {self.height}x{self.width} table")

    def values(self, cell: Cell) -> np.ndarray:
        """Return a read-only copy of the value row for a cell."""
        self._check(cell)
        return self._values[cell[0], cell[1]].copy()

    def get(self, cell: Cell, action: ActionInt) -> float:
        self._check(cell)
        return float(self._values[cell[0], cell[1], action])

    def set(self, cell: Cell, action: ActionInt, value: float) -> None:
        self._check(cell)
        self._values[cell[0], cell[1], action] = value

    def max_value(self, cell: Cell) -> float:
        """Get the maximum Q-value at a cell, skipping NaN (-inf if all are NaN)."""
        self._check(cell)
        return float(np.fmax.reduce(self._values[cell[0], cell[1]], initial=-np.inf))

    def best_action(self, cell: Cell) -> ActionInt:
        """Highest-valued action; on ties the lowest action index wins."""
        row = self.values(cell)
        best = 0
        for action in range(1, NUM_ACTIONS):
            if row[action] > row[best]:
                best = action
        return best

    def ranked_actions(self, cell: Cell) -> List[ActionInt]:
        """Actions by descending value, ties (and NaN) kept in index order."""
        row = self.values(cell)
        pairs = [(action, float(row[action])) for action in range(NUM_ACTIONS)]
        pairs.sort(key=cmp_to_key(_compare_desc))
        return [action for action, _ in pairs]

    def as_array(self) -> np.ndarray:
        """Return a copy of the full table."""
        return self._values.copy()


@dataclass
class Episode:
    """Represents a single training episode."""
    number: int
    steps: int
    total_reward: float
    reached_goal: bool
    epsilon_used: float
    obstacle_hits: int = 0
    elapsed_time: float = 0.0  # Time taken for this episode in seconds


@dataclass
class TrainingEvent:
    """Periodic training progress emitted to an observer."""
    episode: int
    total_episodes: int
    epsilon: float
    recent_success_rate: float


@dataclass
class TrainingResult:
    """Result of RL training."""
    episodes: List[Episode]
    total_episodes: int
    successful_episodes: int
    average_reward: float
    final_epsilon: float
    converged: bool
    stopped: bool = False

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        return self.successful_episodes / self.total_episodes if self.total_episodes > 0 else 0.0


@dataclass
class PolicyResult:
    """Result of executing the learned greedy policy."""
    path: List[Cell]
    goal: Cell
    steps_taken: int = 0
    backtracks: int = 0

    @property
    def found(self) -> bool:
        """Whether the rollout ended on the goal."""
        return bool(self.path) and self.path[-1] == self.goal

    @property
    def path_length(self) -> int:
        return len(self.path)


ACTION_DELTAS: Dict[ActionInt, Cell] = {
    0: (-1, 0),  # up
    1: (1, 0),   # down
    2: (0, -1),  # left
    3: (0, 1)    # right
}
