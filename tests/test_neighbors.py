from qmaze.domain.neighbors import (
    free_neighbors, is_dead_end, manhattan_distance, reachable, world_is_connected
)
from qmaze.domain.types import World


def test_manhattan_distance():
    assert manhattan_distance((0, 0), (2, 3)) == 5
    assert manhattan_distance((4, 1), (1, 4)) == 6
    assert manhattan_distance((2, 2), (2, 2)) == 0


def test_free_neighbors_skip_edges_and_obstacles():
    neighbors = free_neighbors((0, 0), frozenset({(0, 1)}), width=3, height=3)
    assert neighbors == [(1, (1, 0))]


def test_reachable_on_open_grid():
    assert reachable((0, 0), (4, 4), [], width=5, height=5)


def test_wall_splits_grid():
    wall = [(0, 1), (1, 1), (2, 1)]
    assert not reachable((0, 0), (0, 2), wall, width=3, height=3)
    assert reachable((0, 0), (0, 2), wall[:2], width=3, height=3)


def test_reachable_around_obstacles():
    obstacles = [(0, 1), (1, 1), (3, 1), (1, 3), (2, 3), (3, 3)]
    assert reachable((0, 0), (0, 4), obstacles, width=5, height=4)


def test_world_is_connected():
    world = World(width=3, height=1, start=(0, 0), goal=(0, 2), obstacles=frozenset({(0, 1)}))
    assert not world_is_connected(world)


def test_dead_end_counts_unvisited_exits():
    world = World(width=3, height=3, start=(0, 0), goal=(2, 2))
    assert not is_dead_end(world, (0, 0), set())
    assert is_dead_end(world, (0, 0), {(1, 0)})
    assert not is_dead_end(world, (1, 1), {(0, 1), (1, 0)})
    assert is_dead_end(world, (1, 1), {(0, 1), (1, 0), (2, 1)})


def test_dead_end_ignores_obstacle_exits():
    world = World(width=3, height=3, start=(0, 0), goal=(2, 2), obstacles=frozenset({(0, 1)}))
    assert is_dead_end(world, (0, 0), set())
