"""Q-Learning algorithm implementation for grid navigation."""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Set
from .types import (
    Cell, World, RLConfig, ActionInt, QTable, Episode, TrainingEvent,
    TrainingResult, NUM_ACTIONS
)
from .neighbors import is_dead_end, manhattan_distance
from ..utils.rng import SeededRNG

TrainingObserver = Callable[[TrainingEvent], None]


@dataclass
class StepOutcome:
    """What happened when the environment executed one action."""
    next_cell: Cell
    reward: float
    done: bool
    blocked: bool = False


class QLearningEnvironment:
    """Environment for Q-Learning navigation with a shaped reward."""

    def __init__(self, world: World, config: RLConfig):
        self.world = world
        self.config = config
        self.current_pos = world.start
        self.steps_taken = 0
        self.total_reward = 0.0

        # Cells seen during the current episode only
        self.visited_states: Set[Cell] = set()

    def reset(self) -> Cell:
        """Reset environment to initial state."""
        self.current_pos = self.world.start
        self.steps_taken = 0
        self.total_reward = 0.0
        self.visited_states = set()
        return self.current_pos

    def step(self, action: ActionInt) -> StepOutcome:
        """
        Execute action and report where the agent ended up.

        Args:
            action: Action to take (0=up, 1=down, 2=left, 3=right)

        Returns:
            StepOutcome; on an obstacle the agent stays put and blocked is set
        """
        self.steps_taken += 1
        self.visited_states.add(self.current_pos)

        candidate = self.world.move(self.current_pos, action)

        if self.world.is_obstacle(candidate):
            reward = self.config.reward_obstacle
            self.total_reward += reward
            return StepOutcome(self.current_pos, reward, False, blocked=True)

        reward = self.shaped_reward(candidate)
        self.current_pos = candidate
        self.total_reward += reward
        return StepOutcome(candidate, reward, candidate == self.world.goal)

    def shaped_reward(self, candidate: Cell) -> float:
        """Base reward for entering a cell plus the distance shaping term."""
        if candidate == self.world.goal:
            reward = self.config.reward_goal
        elif candidate in self.visited_states:
            reward = self.config.reward_revisit
        elif is_dead_end(self.world, candidate, self.visited_states):
            reward = self.config.reward_dead_end
        else:
            reward = self.config.reward_step

        # Added on goal transitions too
        return reward + self.distance_bonus(candidate)

    def distance_bonus(self, cell: Cell) -> float:
        """Reward for closeness to the goal, scaled into [0, distance_reward_scale]."""
        max_distance = self.world.max_distance
        distance = manhattan_distance(cell, self.world.goal)
        return self.config.distance_reward_scale * (max_distance - distance) / max_distance


class QLearningAgent:
    """Tabular Q-Learning agent with epsilon-greedy exploration."""

    def __init__(self, world: World, config: RLConfig, rng: SeededRNG):
        self.world = world
        self.config = config
        self.rng = rng
        self.q_table = QTable.for_world(world)
        self.epsilon = config.epsilon
        self.episodes_completed = 0
        self.training_history: List[Episode] = []

    def reset(self):
        """Reset the agent and forget everything learned."""
        self.q_table = QTable.for_world(self.world)
        self.epsilon = self.config.epsilon
        self.episodes_completed = 0
        self.training_history.clear()

    def select_action(self, state: Cell) -> ActionInt:
        """Select action using epsilon-greedy policy."""
        if self.rng.random() < self.epsilon:
            return self.rng.randint(0, NUM_ACTIONS - 1)
        return self.q_table.best_action(state)

    def update_q_value(self, state: Cell, action: ActionInt, outcome: StepOutcome):
        """Update Q-value using Q-learning update rule."""
        current_q = self.q_table.get(state, action)

        if outcome.blocked:
            # The agent never moved, so there is nothing to bootstrap from
            target = self.config.reward_obstacle
        else:
            next_q_max = self.q_table.max_value(outcome.next_cell)
            target = outcome.reward + self.config.discount_factor * next_q_max

        new_q = current_q + self.config.learning_rate * (target - current_q)
        self.q_table.set(state, action, new_q)

    def decay_epsilon(self):
        """Decay epsilon for less exploration over time."""
        self.epsilon = max(self.config.epsilon_min,
                           self.epsilon * self.config.epsilon_decay)

    def train_episode(self, env: QLearningEnvironment) -> Episode:
        """Train for one episode with timing."""
        episode_start_time = time.time()

        state = env.reset()
        episode_reward = 0.0
        episode_steps = 0
        obstacle_hits = 0
        epsilon_used = self.epsilon

        for _ in range(self.config.max_steps_per_episode):
            action = self.select_action(state)
            outcome = env.step(action)
            episode_reward += outcome.reward
            episode_steps += 1

            self.update_q_value(state, action, outcome)

            if outcome.blocked:
                obstacle_hits += 1
                continue

            state = outcome.next_cell
            if outcome.done:
                break

        episode = Episode(
            number=self.episodes_completed,
            steps=episode_steps,
            total_reward=episode_reward,
            reached_goal=(state == self.world.goal),
            epsilon_used=epsilon_used,
            obstacle_hits=obstacle_hits,
            elapsed_time=time.time() - episode_start_time
        )

        self.training_history.append(episode)
        self.episodes_completed += 1

        self.decay_epsilon()

        return episode

    def train(self, episodes: Optional[int] = None,
              observer: Optional[TrainingObserver] = None,
              should_stop: Optional[Callable[[], bool]] = None) -> TrainingResult:
        """
        Train the agent for a fixed number of episodes.

        Args:
            episodes: Episodes to run (config.max_episodes if None)
            observer: Receives a TrainingEvent every progress_interval episodes
                and after the final one
            should_stop: Polled between episodes; training ends early when it
                returns True

        Returns:
            TrainingResult for the episodes run by this call
        """
        max_episodes = episodes if episodes is not None else self.config.max_episodes
        env = QLearningEnvironment(self.world, self.config)

        episodes_list: List[Episode] = []
        successful_episodes = 0
        stopped = False

        for episode_num in range(max_episodes):
            if should_stop is not None and should_stop():
                stopped = True
                break

            episode = self.train_episode(env)
            episodes_list.append(episode)

            if episode.reached_goal:
                successful_episodes += 1

            is_last = episode_num == max_episodes - 1
            if observer is not None and (episode_num % self.config.progress_interval == 0 or is_last):
                recent_episodes = episodes_list[-self.config.progress_interval:]
                recent_success = sum(1 for ep in recent_episodes if ep.reached_goal)
                observer(TrainingEvent(
                    episode=episode_num,
                    total_episodes=max_episodes,
                    epsilon=self.epsilon,
                    recent_success_rate=recent_success / len(recent_episodes)
                ))

        # Calculate final statistics
        total_reward = sum(ep.total_reward for ep in episodes_list)
        average_reward = total_reward / len(episodes_list) if episodes_list else 0.0

        # Check convergence (last 100 episodes have >= 90% success rate)
        converged = False
        if len(episodes_list) >= 100:
            recent_success = sum(1 for ep in episodes_list[-100:] if ep.reached_goal)
            converged = recent_success >= 90

        return TrainingResult(
            episodes=episodes_list,
            total_episodes=len(episodes_list),
            successful_episodes=successful_episodes,
            average_reward=average_reward,
            final_epsilon=self.epsilon,
            converged=converged,
            stopped=stopped
        )


def train(world: World, config: RLConfig, rng: SeededRNG,
          observer: Optional[TrainingObserver] = None) -> QTable:
    """Run a full training session and return the learned value table."""
    agent = QLearningAgent(world, config, rng)
    agent.train(observer=observer)
    return agent.q_table
