from __future__ import annotations

import math

import numpy as np

from pathtd.core.model.towers import list_tower_defs
from pathtd.core.rules.placement import collides_with_tower, in_bounds, near_path


PHASES = ("menu", "preparation", "active_wave", "wave_complete", "game_over")
MONEY_SCALE = 2_000.0
MAX_WAVE = 50
MAX_ENEMIES = 64
MAX_PROJECTILES = 64
MAX_TOWERS = 64
MAX_DIFFICULTY = 10.0

SCALAR_KEYS = (
    "money_norm",
    "lives_norm",
    "wave_norm",
    "difficulty_norm",
    "enemy_count_norm",
    "projectile_count_norm",
    "tower_count_norm",
    "spawns_pending",
    "enemy_health_norm",
    "enemy_progress_norm",
)


def _log_norm(value: int | float, scale: float) -> float:
    if scale <= 0:
        return 0.0
    return min(1.0, math.log1p(max(0.0, float(value))) / math.log1p(scale))


def candidate_cells(map_data) -> list[tuple[int, int]]:
    """Grid cells whose geometry allows a tower, ignoring money and locks."""
    grid = int(map_data.grid)
    cells: list[tuple[int, int]] = []
    for y in range(0, int(map_data.height), grid):
        for x in range(0, int(map_data.width), grid):
            if not in_bounds(map_data, x, y):
                continue
            if near_path(map_data, x, y):
                continue
            cells.append((x, y))
    return cells


def observation_size(n_cells: int) -> int:
    return len(SCALAR_KEYS) + len(PHASES) + 2 * len(list_tower_defs()) + n_cells


def build_observation(state, map_data, cells: list[tuple[int, int]], *, starting_lives: int = 1) -> np.ndarray:
    enemies = state.enemies
    total_health = sum(float(e.health) for e in enemies)
    total_max = sum(float(e.max_health) for e in enemies)
    segments = max(1, map_data.segment_count)
    furthest = max((e.path_index for e in enemies), default=0)

    scalars = [
        _log_norm(state.money, MONEY_SCALE),
        min(1.0, state.lives / max(1, starting_lives)),
        min(1.0, state.wave / MAX_WAVE),
        min(1.0, state.difficulty_factor / MAX_DIFFICULTY),
        min(1.0, len(enemies) / MAX_ENEMIES),
        min(1.0, len(state.projectiles) / MAX_PROJECTILES),
        min(1.0, len(state.towers) / MAX_TOWERS),
        1.0 if state.spawns_pending else 0.0,
        total_health / total_max if total_max > 0 else 0.0,
        furthest / segments,
    ]
    phase = [1.0 if state.phase == name else 0.0 for name in PHASES]
    unlocked = [1.0 if state.wave >= d.unlock_wave else 0.0 for d in list_tower_defs()]
    affordable = [1.0 if state.money >= d.cost else 0.0 for d in list_tower_defs()]
    occupied = [1.0 if collides_with_tower(state, map_data, x, y) else 0.0 for x, y in cells]

    return np.asarray(scalars + phase + unlocked + affordable + occupied, dtype=np.float32)
