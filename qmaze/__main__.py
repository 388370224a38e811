#!/usr/bin/env python3
"""
Command line entry point: generate (or load) a world, train a Q-Learning
agent on it and replay the learned policy.
"""

import argparse
import sys
from typing import List, Optional

from .app.controller import RLController
from .domain.types import RLConfig, World, PolicyResult, TrainingEvent, GenerationExhausted
from .utils.world_io import load_world, save_world


def render_path(world: World, path: List) -> str:
    """Draw the world and the final path as plain text."""
    path_cells = set(path)
    lines = []
    for row in range(world.height):
        cells = []
        for col in range(world.width):
            cell = (row, col)
            if cell == world.goal:
                cells.append("G")
            elif cell == world.start:
                cells.append("S")
            elif cell in world.obstacles:
                cells.append("#")
            elif cell in path_cells:
                cells.append("*")
            else:
                cells.append(".")
        lines.append(" ".join(cells))
    return "\n".join(lines)


def print_progress(event: TrainingEvent):
    print(f"Episode {event.episode} / {event.total_episodes}: "
          f"Success rate: {event.recent_success_rate:.1%}, Epsilon: {event.epsilon:.3f}")


def build_parser() -> argparse.ArgumentParser:
    defaults = RLConfig()
    parser = argparse.ArgumentParser(
        prog="qmaze",
        description="Q-Learning navigation through a random obstacle grid"
    )
    parser.add_argument("--width", type=int, default=20, help="Grid width")
    parser.add_argument("--height", type=int, default=20, help="Grid height")
    parser.add_argument("--density", type=float, default=defaults.obstacle_density,
                        help="Fraction of cells to block")
    parser.add_argument("--seed", type=int, help="Random seed for a reproducible run")
    parser.add_argument("--goal", type=int, nargs=2, metavar=("ROW", "COL"),
                        help="Goal cell (random if omitted)")
    parser.add_argument("--episodes", type=int, default=defaults.max_episodes,
                        help="Number of episodes to train")
    parser.add_argument("--max-steps", type=int, default=defaults.max_steps_per_episode,
                        help="Step cap per training episode")
    parser.add_argument("--rollout-steps", type=int, default=defaults.rollout_max_steps,
                        help="Step cap for the final policy rollout")
    parser.add_argument("--max-attempts", type=int, default=defaults.max_generation_attempts,
                        help="Layout attempts before giving up (0 retries forever)")
    parser.add_argument("--progress-interval", type=int, default=defaults.progress_interval,
                        help="Episodes between progress lines")
    parser.add_argument("--world", type=str, help="Load the world from a JSON file")
    parser.add_argument("--save-world", type=str, help="Save the world to a JSON file")
    parser.add_argument("--no-render", action="store_true", help="Skip the final grid picture")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = RLConfig(
        obstacle_density=args.density,
        max_episodes=args.episodes,
        max_steps_per_episode=args.max_steps,
        rollout_max_steps=args.rollout_steps,
        max_generation_attempts=args.max_attempts or None,
        progress_interval=args.progress_interval
    )

    print("🧠 Q-Learning Maze Navigator")
    print("=" * 50)

    try:
        controller = RLController(config, seed=args.seed)
        controller.add_listener(print_progress)

        if args.world:
            print(f"📁 Loading world from: {args.world}")
            controller.set_world(load_world(args.world))
        else:
            print(f"🎲 Generating world: {args.width}x{args.height}, density {args.density:.0%}")
            goal = tuple(args.goal) if args.goal else None
            controller.generate(args.width, args.height, goal=goal)

        world = controller.world
        print(f"📐 Grid: {world.width}x{world.height}")
        print(f"🎯 Start: {world.start} → Goal: {world.goal}")
        print(f"🧱 Obstacles: {len(world.obstacles)} (attempts: {world.generation_attempts})")

        if args.save_world:
            path = save_world(world, args.save_world)
            print(f"💾 World saved to: {path}")

        print(f"\n🚀 Training for {config.max_episodes} episodes...")
        training = controller.train()
        print(f"\n🎉 Training completed!")
        print(f"   Successful episodes: {training.successful_episodes} / {training.total_episodes}")
        print(f"   Success rate: {training.success_rate:.1%}")
        print(f"   Average reward: {training.average_reward:.2f}")
        print(f"   Final epsilon: {training.final_epsilon:.3f}")

        print(f"\n🧪 Executing learned policy...")
        result: PolicyResult = controller.find_path()

    except GenerationExhausted as e:
        print(f"❌ {e}. Try a lower --density or a higher --max-attempts.")
        return 1
    except (ValueError, OSError) as e:
        print(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        print(f"\n⏹️  Interrupted by user")
        return 1

    if not args.no_render:
        print()
        print(render_path(world, result.path))
        print()

    print(f"   Path length: {result.path_length}")
    print(f"   Rollout steps: {result.steps_taken}, backtracks: {result.backtracks}")
    if result.found:
        print("✅ Goal reached successfully!")
        return 0

    print("❌ Could not reach the goal!")
    return 2


if __name__ == "__main__":
    sys.exit(main())
