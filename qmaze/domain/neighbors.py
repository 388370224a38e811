"""Neighbor generation, distances and connectivity for the clamped 4-way grid."""

from collections import deque
from typing import AbstractSet, Iterable, List, Tuple
from .types import Cell, World, ActionInt, NUM_ACTIONS, clamp_move


def manhattan_distance(a: Cell, b: Cell) -> int:
    """Manhattan (L1) distance between two cells."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def free_neighbors(cell: Cell, obstacles: AbstractSet[Cell],
                   width: int, height: int) -> List[Tuple[ActionInt, Cell]]:
    """
    Get the moves out of a cell that actually go somewhere.

    A neighbor qualifies when it is not an obstacle and the clamped move did
    not leave the agent where it was (grid edges).

    Returns:
        List of (action, neighbor) in action order
    """
    neighbors = []
    for action in range(NUM_ACTIONS):
        neighbor = clamp_move(cell, action, width, height)
        if neighbor == cell or neighbor in obstacles:
            continue
        neighbors.append((action, neighbor))
    return neighbors


def reachable(start: Cell, goal: Cell, obstacles: Iterable[Cell],
              width: int, height: int) -> bool:
    """
    Breadth-first search from start over free cells.

    Args:
        start: Search origin
        goal: Cell that must be reached
        obstacles: Blocked cells
        width: Grid width
        height: Grid height

    Returns:
        True if goal can be reached from start
    """
    obstacle_set = frozenset(obstacles)
    queue = deque([start])
    visited = {start}

    while queue:
        current = queue.popleft()
        if current == goal:
            return True

        for _, neighbor in free_neighbors(current, obstacle_set, width, height):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)

    return False


def world_is_connected(world: World) -> bool:
    """Check that the world's goal is reachable from its start."""
    return reachable(world.start, world.goal, world.obstacles, world.width, world.height)


def is_dead_end(world: World, cell: Cell, visited: AbstractSet[Cell]) -> bool:
    """Check if a cell has at most one unexplored exit given the visited set."""
    exits = 0
    for _, neighbor in free_neighbors(cell, world.obstacles, world.width, world.height):
        if neighbor not in visited:
            exits += 1
    return exits <= 1
