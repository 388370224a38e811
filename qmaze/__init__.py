"""Q-Learning Maze Navigator - tabular reinforcement learning on obstacle grids.

This package trains a Q-Learning agent to travel from a start cell to a goal
cell through a randomly generated, guaranteed-connected obstacle field, then
replays the learned greedy policy with stuck detection and backtracking.
"""

__version__ = "1.0.0"
__author__ = "Q-Learning Maze Demo"
