from __future__ import annotations

import logging
from typing import Any

import gymnasium as gym
import numpy as np

from pathtd.core.config import SessionConfig
from pathtd.core.engine import Engine
from pathtd.core.model.map import DEFAULT_MAP, MapData
from pathtd.core.model.towers import list_tower_defs
from pathtd.core.rules.placement import collides_with_tower, is_unlocked

from .obs import build_observation, candidate_cells, observation_size
from .rewards import RewardConfig, compute_reward, reward_state_from


logger = logging.getLogger(__name__)


class PathTDEnv(gym.Env):
    """
    One engine session per episode.

    Action 0 waits; action 1 + k * n_cells + c places tower kind k on
    candidate cell c. Every step then runs `frames_per_step` engine ticks.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        *,
        map_data: MapData = DEFAULT_MAP,
        config: SessionConfig | None = None,
        frames_per_step: int = 30,
        max_steps: int = 20_000,
        reward_config: RewardConfig | None = None,
    ) -> None:
        super().__init__()
        if frames_per_step < 1:
            raise ValueError(f"frames_per_step must be >= 1, got {frames_per_step}")
        self.map_data = map_data
        self.config = config or SessionConfig()
        self.frames_per_step = int(frames_per_step)
        self.max_steps = int(max_steps)
        self.reward_config = reward_config or RewardConfig()

        self.kinds = [tower_def.kind for tower_def in list_tower_defs()]
        self.cells = candidate_cells(map_data)
        self.action_space = gym.spaces.Discrete(1 + len(self.kinds) * len(self.cells))
        self.observation_space = gym.spaces.Box(
            low=0.0,
            high=1.0,
            shape=(observation_size(len(self.cells)),),
            dtype=np.float32,
        )

        self.engine: Engine | None = None
        self.episode_seed: int | None = None
        self._step_count = 0

    def decode_action(self, action: int) -> tuple[str, tuple[int, int]] | None:
        action = int(action)
        if action <= 0:
            return None
        idx = action - 1
        kind_idx, cell_idx = divmod(idx, len(self.cells))
        if kind_idx >= len(self.kinds):
            raise ValueError(f"action {action} out of range")
        return self.kinds[kind_idx], self.cells[cell_idx]

    def _observe(self) -> np.ndarray:
        if self.engine is None:
            raise RuntimeError("Environment not reset")
        return build_observation(
            self.engine.state,
            self.map_data,
            self.cells,
            starting_lives=self.config.starting_lives,
        )

    def action_masks(self) -> np.ndarray:
        if self.engine is None:
            raise RuntimeError("Environment not reset")
        state = self.engine.state
        mask = np.zeros(self.action_space.n, dtype=bool)
        mask[0] = True
        if state.phase in ("menu", "game_over"):
            return mask
        free = np.asarray(
            [not collides_with_tower(state, self.map_data, x, y) for x, y in self.cells],
            dtype=bool,
        )
        for kind_idx, tower_def in enumerate(list_tower_defs()):
            if not is_unlocked(state, tower_def) or state.money < tower_def.cost:
                continue
            start = 1 + kind_idx * len(self.cells)
            mask[start:start + len(self.cells)] = free
        return mask

    def reset(self, *, seed: int | None = None, options: dict[str, Any] | None = None) -> tuple[np.ndarray, dict]:
        super().reset(seed=seed)
        engine_seed = int(self.np_random.integers(1, 2**31 - 1))
        self.episode_seed = engine_seed
        self.engine = Engine(self.map_data, self.config.with_overrides(seed=engine_seed))
        self.engine.start_session()
        self.engine.drain_events()
        self._step_count = 0
        info = {"engine_seed": engine_seed, "action_mask": self.action_masks()}
        return self._observe(), info

    def step(self, action: int) -> tuple[np.ndarray, float, bool, bool, dict]:
        if self.engine is None:
            raise RuntimeError("Environment not reset")
        engine = self.engine
        prev = reward_state_from(engine.state)

        placement_reason = None
        decoded = self.decode_action(action)
        if decoded is not None:
            kind, (x, y) = decoded
            placement_reason = engine.request_placement((float(x), float(y)), kind).reason

        for _ in range(self.frames_per_step):
            engine.tick()
            if engine.state.game_over:
                break
        self._step_count += 1

        events = engine.drain_events()
        defeated = sum(1 for event in events if event.kind == "enemy_defeated")
        terminated = engine.state.game_over
        truncated = not terminated and self._step_count >= self.max_steps
        reward = compute_reward(
            prev,
            reward_state_from(engine.state),
            config=self.reward_config,
            defeated=defeated,
            placed=placement_reason == "ok",
            invalid_action=placement_reason not in (None, "ok"),
            episode_done=terminated,
        )
        if terminated or truncated:
            logger.info(
                "episode end seed=%s steps=%s wave=%s money=%s terminated=%s",
                self.episode_seed,
                self._step_count,
                engine.state.wave,
                engine.state.money,
                terminated,
            )
        info = {
            "wave": engine.state.wave,
            "money": engine.state.money,
            "lives": engine.state.lives,
            "placement": placement_reason,
            "defeated": defeated,
            "action_mask": self.action_masks(),
        }
        return self._observe(), reward, terminated, truncated, info
