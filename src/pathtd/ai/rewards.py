from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class RewardState:
    money: int
    lives: int
    wave: int


@dataclass(frozen=True, slots=True)
class RewardConfig:
    money_weight: float = 0.0
    defeat_reward: float = 1.0
    wave_advance_bonus: float = 10.0
    life_loss_penalty: float = 100.0
    terminal_loss_penalty: float = 1_000.0
    placement_reward: float = 0.0
    invalid_action_penalty: float = 0.0


def reward_state_from(state) -> RewardState:
    return RewardState(
        money=int(getattr(state, "money", 0)),
        lives=int(getattr(state, "lives", 0)),
        wave=int(getattr(state, "wave", 0)),
    )


def compute_reward(prev_state: RewardState, new_state: RewardState, **kwargs: Any) -> float:
    """Scalar reward; keyword arguments as for `compute_reward_breakdown`."""
    return float(sum(compute_reward_breakdown(prev_state, new_state, **kwargs).values()))


def compute_reward_breakdown(
    prev_state: RewardState,
    new_state: RewardState,
    *,
    config: RewardConfig,
    defeated: int = 0,
    placed: bool = False,
    invalid_action: bool = False,
    episode_done: bool = False,
) -> dict[str, float]:
    lives_lost = max(0, prev_state.lives - new_state.lives)
    waves_gained = max(0, new_state.wave - prev_state.wave)
    breakdown = {
        "money": (new_state.money - prev_state.money) * config.money_weight,
        "defeats": defeated * config.defeat_reward,
        "waves": waves_gained * config.wave_advance_bonus,
        "lives": -lives_lost * config.life_loss_penalty,
        "placement": config.placement_reward if placed else 0.0,
        "invalid": -config.invalid_action_penalty if invalid_action else 0.0,
        "terminal": -config.terminal_loss_penalty if episode_done else 0.0,
    }
    return {key: float(value) for key, value in breakdown.items()}
