"""World factory for creating obstacle layouts with a reachability guarantee."""

from typing import Iterable, Optional, Set
from ..domain.types import Cell, World, GenerationExhausted
from ..domain.neighbors import reachable
from .rng import SeededRNG

DEFAULT_MAX_ATTEMPTS = 1000


def create_world(width: int, height: int, start: Cell, goal: Cell,
                 obstacles: Iterable[Cell] = (), generation_attempts: int = 0) -> World:
    """
    Create a world from an explicit layout.

    Args:
        width: Grid width (must be > 0)
        height: Grid height (must be > 0)
        start: Start cell as (row, col)
        goal: Goal cell as (row, col)
        obstacles: Blocked cells
        generation_attempts: Number of generation attempts that produced this layout

    Returns:
        New World instance

    Raises:
        ValueError: If dimensions or positions are invalid
    """
    return World(
        width=width,
        height=height,
        start=tuple(start),
        goal=tuple(goal),
        obstacles=frozenset(tuple(cell) for cell in obstacles),
        generation_attempts=generation_attempts
    )


def random_cell(width: int, height: int, rng: SeededRNG) -> Cell:
    """Draw a uniformly random cell, row first."""
    row = rng.randrange(height)
    col = rng.randrange(width)
    return (row, col)


def choose_goal(width: int, height: int, start: Cell, rng: SeededRNG) -> Cell:
    """
    Pick a random goal cell different from start.

    Raises:
        ValueError: If the grid has a single cell
    """
    if width * height < 2:
        raise ValueError("Grid needs at least two cells for a start and a goal")

    while True:
        candidate = random_cell(width, height, rng)
        if candidate != start:
            return candidate


def generate_obstacles(width: int, height: int, start: Cell, goal: Cell,
                       density: float, rng: SeededRNG) -> Set[Cell]:
    """
    Sample a random obstacle set with rejection sampling.

    Args:
        width: Grid width
        height: Grid height
        start: Start cell, never blocked
        goal: Goal cell, never blocked
        density: Obstacle density (0.0 to 1.0)
        rng: Random source

    Returns:
        Set of exactly floor(width * height * density) obstacle cells

    Raises:
        ValueError: If density is out of range or asks for more obstacles
            than there are eligible cells
    """
    if not (0.0 <= density <= 1.0):
        raise ValueError(f"Density must be between 0.0 and 1.0, got {density}")

    obstacle_count = int(width * height * density)
    eligible = width * height - 2
    if obstacle_count > eligible:
        raise ValueError(
            f"Density {density} needs {obstacle_count} obstacles but only {eligible} cells are eligible"
        )

    forbidden = {start, goal}
    obstacles: Set[Cell] = set()

    while len(obstacles) < obstacle_count:
        cell = random_cell(width, height, rng)
        if cell in forbidden:
            continue
        obstacles.add(cell)
        forbidden.add(cell)

    return obstacles


def generate_world(width: int, height: int, density: float, rng: SeededRNG,
                   start: Cell = (0, 0), goal: Optional[Cell] = None,
                   max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS) -> World:
    """
    Generate a world whose goal is guaranteed reachable from start.

    Disconnected layouts are thrown away and regenerated from scratch.

    Args:
        width: Grid width
        height: Grid height
        density: Obstacle density (0.0 to 1.0)
        rng: Random source, consumed for the goal then for each layout
        start: Start cell
        goal: Goal cell (random if None)
        max_attempts: Layout attempts before giving up (None retries forever)

    Returns:
        Connected World

    Raises:
        ValueError: If dimensions, positions or density are invalid
        GenerationExhausted: If no connected layout was found in max_attempts
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
    if max_attempts is not None and max_attempts <= 0:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    if goal is None:
        goal = choose_goal(width, height, start, rng)

    # Validates start and goal before any sampling
    create_world(width, height, start, goal)

    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        obstacles = generate_obstacles(width, height, start, goal, density, rng)
        if reachable(start, goal, obstacles, width, height):
            return create_world(width, height, start, goal, obstacles, attempts)

    raise GenerationExhausted(attempts, density)
