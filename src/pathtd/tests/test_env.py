import numpy as np
import pytest

from pathtd.ai.env import PathTDEnv
from pathtd.ai.obs import SCALAR_KEYS, candidate_cells, observation_size
from pathtd.ai.rewards import RewardConfig, RewardState, compute_reward, compute_reward_breakdown
from pathtd.core.config import SessionConfig
from pathtd.core.model.map import DEFAULT_MAP
from pathtd.core.rules.placement import near_path


def _env() -> PathTDEnv:
    return PathTDEnv(config=SessionConfig(frame_ms=50.0), frames_per_step=10, max_steps=5)


def test_candidate_cells_avoid_path_and_edges() -> None:
    cells = candidate_cells(DEFAULT_MAP)
    assert cells
    assert (40, 160) in cells
    assert (40, 120) not in cells
    assert all(not near_path(DEFAULT_MAP, x, y) for x, y in cells)
    assert all(x >= 20 and y >= 20 for x, y in cells)


def test_reset_returns_observation_and_mask() -> None:
    env = _env()
    obs, info = env.reset(seed=0)

    assert obs.dtype == np.float32
    assert obs.shape == (observation_size(len(env.cells)),)
    assert env.observation_space.contains(obs)
    mask = info["action_mask"]
    assert mask.shape == (env.action_space.n,)
    assert mask[0]
    n = len(env.cells)
    assert mask[1:1 + n].all()
    # Cannon and up are locked on wave 1.
    assert not mask[1 + n:].any()


def test_place_action_builds_and_marks_cell() -> None:
    env = _env()
    env.reset(seed=1)
    assert env.decode_action(0) is None
    assert env.decode_action(1) == ("basic", env.cells[0])

    obs, reward, terminated, truncated, info = env.step(1)
    assert info["placement"] == "ok"
    assert info["money"] == 50
    assert not terminated
    assert not truncated
    assert obs[-len(env.cells)] == 1.0
    assert not info["action_mask"][1]

    _, _, _, _, info = env.step(1)
    assert info["placement"] == "tower_collision"


def test_episode_truncates_at_max_steps() -> None:
    env = _env()
    env.reset(seed=2)
    truncated = False
    for _ in range(5):
        _, _, terminated, truncated, _ = env.step(0)
        assert not terminated
    assert truncated


def test_step_before_reset_raises() -> None:
    with pytest.raises(RuntimeError):
        _env().step(0)


def test_reward_breakdown_terms() -> None:
    prev = RewardState(money=75, lives=2, wave=1)
    new = RewardState(money=50, lives=1, wave=2)
    cfg = RewardConfig(invalid_action_penalty=0.5)
    parts = compute_reward_breakdown(prev, new, config=cfg, defeated=3, invalid_action=True)

    assert parts["defeats"] == 3.0
    assert parts["waves"] == 10.0
    assert parts["lives"] == -100.0
    assert parts["invalid"] == -0.5
    assert parts["terminal"] == 0.0
    assert compute_reward(prev, new, config=cfg, defeated=3, invalid_action=True) == pytest.approx(-87.5)


def test_scalar_block_size() -> None:
    assert len(SCALAR_KEYS) == 10
