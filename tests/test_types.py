import math

import pytest

from qmaze.domain.types import QTable, RLConfig, World, PolicyResult


def test_qtable_starts_zeroed_with_fixed_size():
    q = QTable(width=5, height=3)
    assert q.size == 5 * 3 * 4
    assert len(q) == 60
    assert q.as_array().shape == (3, 5, 4)
    assert not q.as_array().any()


def test_qtable_is_bounds_checked():
    q = QTable(width=2, height=2)
    with pytest.raises(IndexError):
        q.get((2, 0), 0)
    with pytest.raises(IndexError):
        q.set((0, -1), 1, 3.0)


def test_values_returns_a_copy():
    q = QTable(width=2, height=2)
    row = q.values((0, 0))
    row[0] = 99.0
    assert q.get((0, 0), 0) == 0.0


def test_best_action_prefers_lowest_index_on_ties():
    q = QTable(width=2, height=2)
    assert q.best_action((0, 0)) == 0

    for action, value in enumerate([1.0, 5.0, 5.0, -1.0]):
        q.set((1, 1), action, value)
    assert q.best_action((1, 1)) == 1
    assert q.max_value((1, 1)) == 5.0


def test_ranked_actions_is_stable_descending():
    q = QTable(width=2, height=2)
    for action, value in enumerate([1.0, 5.0, 5.0, -1.0]):
        q.set((0, 1), action, value)
    assert q.ranked_actions((0, 1)) == [1, 2, 0, 3]


def test_ranked_actions_treats_nan_as_equal():
    q = QTable(width=2, height=2)
    q.set((0, 0), 1, math.nan)
    assert q.ranked_actions((0, 0)) == [0, 1, 2, 3]

    q.set((1, 0), 0, 1.0)
    q.set((1, 0), 2, math.nan)
    ranked = q.ranked_actions((1, 0))
    assert sorted(ranked) == [0, 1, 2, 3]
    assert ranked == q.ranked_actions((1, 0))


def test_world_move_clamps_at_edges():
    world = World(width=3, height=3, start=(0, 0), goal=(2, 2))
    assert world.move((0, 0), 0) == (0, 0)
    assert world.move((0, 0), 2) == (0, 0)
    assert world.move((0, 0), 1) == (1, 0)
    assert world.move((0, 0), 3) == (0, 1)
    assert world.move((2, 2), 1) == (2, 2)
    assert world.move((2, 2), 3) == (2, 2)


@pytest.mark.parametrize("kwargs", [
    dict(width=0, height=3, start=(0, 0), goal=(1, 1)),
    dict(width=3, height=3, start=(0, 0), goal=(0, 0)),
    dict(width=3, height=3, start=(0, 0), goal=(3, 0)),
    dict(width=3, height=3, start=(0, 0), goal=(2, 2), obstacles=frozenset({(0, 0)})),
    dict(width=3, height=3, start=(0, 0), goal=(2, 2), obstacles=frozenset({(2, 2)})),
    dict(width=3, height=3, start=(0, 0), goal=(2, 2), obstacles=frozenset({(5, 1)})),
])
def test_world_rejects_invalid_layouts(kwargs):
    with pytest.raises(ValueError):
        World(**kwargs)


def test_default_config_is_valid():
    RLConfig().validate()


@pytest.mark.parametrize("overrides", [
    dict(learning_rate=1.5),
    dict(epsilon=0.1, epsilon_min=0.2),
    dict(max_episodes=0),
    dict(backtrack_count=0),
    dict(stuck_threshold=-1),
    dict(max_generation_attempts=0),
    dict(obstacle_density=-0.1),
])
def test_config_validation(overrides):
    with pytest.raises(ValueError):
        RLConfig(**overrides).validate()


def test_policy_result_found_reads_last_cell():
    assert PolicyResult(path=[(0, 0), (0, 1)], goal=(0, 1)).found
    assert not PolicyResult(path=[(0, 0), (0, 1)], goal=(1, 1)).found
    assert PolicyResult(path=[(0, 0)], goal=(1, 1)).path_length == 1


def test_max_value_skips_nan():
    q = QTable(width=2, height=2)
    q.set((0, 0), 0, math.nan)
    q.set((0, 0), 2, 3.0)
    assert q.max_value((0, 0)) == 3.0

    for action in range(4):
        q.set((1, 1), action, math.nan)
    assert q.max_value((1, 1)) == -math.inf
