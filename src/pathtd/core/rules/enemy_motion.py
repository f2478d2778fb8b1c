# src/pathtd/core/rules/enemy_motion.py
from __future__ import annotations

import logging


logger = logging.getLogger(__name__)

PULSE_STEP = 0.1


def step_enemies(state, map_data, *, dt_scale: float = 1.0) -> None:
    """
    Walk every live enemy along the path by `speed` units per tick.

    Reaching the end of the last segment is a breach: one life lost, the
    enemy is removed without reward, and at zero lives the session ends on
    the spot, leaving the remaining enemies where they stand.
    """
    if getattr(state, "game_over", False):
        return

    for enemy in list(state.enemies):
        enemy.pulse += PULSE_STEP * enemy.pulse_direction
        if enemy.pulse > 1.0 or enemy.pulse < 0.0:
            enemy.pulse_direction *= -1
            enemy.pulse = min(1.0, max(0.0, enemy.pulse))

        seg_len = map_data.segment_length(enemy.path_index)
        enemy.progress += enemy.speed * dt_scale

        if enemy.progress >= seg_len:
            enemy.progress = 0.0
            enemy.path_index += 1

            if enemy.path_index >= map_data.segment_count:
                _breach(state, enemy)
                if state.lives <= 0:
                    declare_game_over(state, "Enemy Breach Detected")
                    return
                continue

        enemy.x, enemy.y = enemy_position(map_data, enemy.path_index, enemy.progress)


def enemy_position(map_data, path_index: int, progress: float) -> tuple[float, float]:
    x1, y1, x2, y2 = map_data.segment(path_index)
    seg_len = map_data.segment_length(path_index)
    t = progress / seg_len if seg_len > 0.0 else 0.0
    return x1 + (x2 - x1) * t, y1 + (y2 - y1) * t


def _breach(state, enemy) -> None:
    state.lives -= 1
    state.remove_enemy(enemy)
    # The enemy keeps its last interpolated position for the burst.
    state.effects.breach_burst(enemy.x, enemy.y)
    state.effects.text(enemy.x, enemy.y - 30, "BREACH!", "#ef4444")
    state.emit("breach", kind=enemy.kind, lives=state.lives)
    logger.info("breach kind=%s lives=%s wave=%s", enemy.kind, state.lives, state.wave)


def declare_game_over(state, reason: str) -> None:
    if state.phase == "game_over":
        return
    state.phase = "game_over"
    state.summary = {"reason": reason, "waves_survived": state.wave}
    state.emit("game_over", reason=reason, wave=state.wave)
    logger.info("game over reason=%s wave=%s money=%s", reason, state.wave, state.money)
