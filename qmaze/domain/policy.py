"""Greedy policy execution with stuck detection and backtracking."""

from typing import List, Optional, Set
from .types import Cell, World, RLConfig, QTable, PolicyResult


class PolicyExecutor:
    """
    Follow the learned Q-values from start towards the goal.

    The table is only read. Moves into obstacles, moves that leave the agent
    in place and moves onto cells already on this rollout are skipped. When
    nothing qualifies the stuck counter grows; past ``stuck_threshold`` the
    agent may revisit cells, past ``backtrack_threshold`` it drops the last
    ``backtrack_count`` cells of its path and resumes from the new tail.

    These thresholds are heuristics. Nothing guarantees that repeated
    backtracking cannot cycle, so the rollout is always capped at
    ``rollout_max_steps`` iterations.
    """

    def __init__(self, world: World, q_table: QTable, config: RLConfig):
        self.world = world
        self.q_table = q_table
        self.config = config
        self.current = world.start
        self.path: List[Cell] = [world.start]
        self.visited: Set[Cell] = set()
        self.stuck_count = 0
        self.backtracks = 0
        self.steps_taken = 0

    def choose_move(self) -> Optional[Cell]:
        """Return the best admissible next cell, or None when stuck."""
        allow_revisit = self.stuck_count > self.config.stuck_threshold

        for action in self.q_table.ranked_actions(self.current):
            candidate = self.world.move(self.current, action)
            if self.world.is_obstacle(candidate) or candidate == self.current:
                continue
            if candidate not in self.visited or allow_revisit:
                return candidate

        return None

    def backtrack(self) -> List[Cell]:
        """
        Drop trailing path cells and resume from the new tail.

        Returns:
            The popped cells, most recent first
        """
        popped = []
        for _ in range(min(self.config.backtrack_count, len(self.path))):
            cell = self.path.pop()
            self.visited.discard(cell)
            popped.append(cell)

        if not self.path:
            # Ran out of path: restart from the beginning
            self.path.append(self.world.start)

        self.current = self.path[-1]
        self.stuck_count = 0
        self.backtracks += 1
        return popped

    def step(self) -> bool:
        """
        Run one rollout iteration.

        Returns:
            True if the agent moved
        """
        self.steps_taken += 1
        self.visited.add(self.current)

        next_cell = self.choose_move()
        if next_cell is not None:
            self.current = next_cell
            self.path.append(next_cell)
            self.stuck_count = 0
            return True

        self.stuck_count += 1
        if self.stuck_count > self.config.backtrack_threshold:
            self.backtrack()
        return False

    def run(self) -> PolicyResult:
        """Execute the policy until the goal or the step cap."""
        while self.steps_taken < self.config.rollout_max_steps:
            if self.current == self.world.goal:
                break
            self.step()

        return PolicyResult(
            path=list(self.path),
            goal=self.world.goal,
            steps_taken=self.steps_taken,
            backtracks=self.backtracks
        )


def execute_policy(world: World, q_table: QTable, config: RLConfig) -> PolicyResult:
    """Greedily roll out the learned policy from the world's start."""
    return PolicyExecutor(world, q_table, config).run()
