# src/pathtd/core/rules/wave_director.py
from __future__ import annotations

import logging
import math

from ..model.enemies import get_enemy_def
from ..model.entities import Enemy
from ..model.towers import list_tower_defs
from ..rng import rand_float

# The director mutates state only through scheduler callbacks and the
# per-tick completion check; it never owns a clock of its own.

logger = logging.getLogger(__name__)

BASE_ENEMY_COUNT = 8
BASE_SPAWN_INTERVAL_MS = 1200
SPAWN_INTERVAL_STEP_MS = 50
MIN_SPAWN_INTERVAL_MS = 300
BASE_WAVE_BONUS = 20

SPAWN_TIMER = "spawn"
PREPARATION_TIMER = "preparation"
BONUS_TIMER = "wave_bonus"
COUNTDOWN_TIMER = "next_wave"
SECOND_MS = 1000.0


def difficulty_factor(wave: int) -> float:
    factor = 1.0 + (wave - 1) * 0.15
    if wave > 10:
        factor += math.log10(wave - 9) * 0.5
    return factor


def enemy_count(wave: int) -> int:
    return int(math.floor(BASE_ENEMY_COUNT * (1 + (wave - 1) * 0.2)))


def spawn_interval_ms(wave: int) -> int:
    return max(MIN_SPAWN_INTERVAL_MS, BASE_SPAWN_INTERVAL_MS - (wave - 1) * SPAWN_INTERVAL_STEP_MS)


def wave_bonus(wave: int) -> int:
    return int(math.floor(BASE_WAVE_BONUS + wave * 5))


def scaled_reward(base_reward: int, wave: int) -> int:
    return int(math.ceil(base_reward * (1 + (wave - 1) * 0.1)))


def scaled_health(base_health: int, factor: float) -> int:
    return int(math.floor(base_health * factor))


def select_enemy_kind(wave: int, roll: float) -> str:
    """
    Map a uniform roll in [0, 1) to an enemy kind for this wave.

    Every fifth wave is a boss wave and overrides the bands.
    """
    if wave % 5 == 0:
        return "boss" if roll < 0.3 else "strong"
    if wave <= 2:
        return "basic"
    if wave <= 4:
        return "basic" if roll < 0.7 else "fast"
    if wave <= 7:
        if roll < 0.5:
            return "basic"
        if roll < 0.8:
            return "fast"
        return "strong"
    if roll < 0.3:
        return "basic"
    if roll < 0.6:
        return "fast"
    if roll < 0.9:
        return "strong"
    return "boss"


def spawn_enemy(state, map_data, kind: str) -> Enemy:
    enemy_def = get_enemy_def(kind)
    health = scaled_health(enemy_def.health, state.difficulty_factor)
    x0, y0 = map_data.path[0]
    enemy = Enemy(
        uid=state.next_enemy_uid,
        kind=enemy_def.kind,
        x=float(x0),
        y=float(y0),
        health=health,
        max_health=health,
        speed=float(enemy_def.speed),
        reward=scaled_reward(enemy_def.reward, state.wave),
        color=enemy_def.color,
        size=enemy_def.size,
    )
    state.next_enemy_uid += 1
    state.add_enemy(enemy)
    return enemy


def start_wave(state, map_data, scheduler) -> None:
    """
    Arm the spawn schedule for `state.wave`.

    One enemy appears per interval; the timer removes itself after the last
    one, which is what `state.spawns_pending` reports.
    """
    scheduler.cancel(SPAWN_TIMER)
    state.difficulty_factor = difficulty_factor(state.wave)
    state.spawn_remaining = enemy_count(state.wave)
    state.wave_completed = False
    state.wave_started = True
    state.phase = "active_wave"

    def _spawn_next() -> None:
        if state.spawn_remaining <= 0:
            scheduler.cancel(SPAWN_TIMER)
            return
        kind = select_enemy_kind(state.wave, rand_float(state))
        spawn_enemy(state, map_data, kind)
        state.spawn_remaining -= 1
        if state.spawn_remaining <= 0:
            scheduler.cancel(SPAWN_TIMER)

    scheduler.schedule(SPAWN_TIMER, spawn_interval_ms(state.wave), _spawn_next, repeat=True)
    state.emit("wave_started", wave=state.wave, enemies=state.spawn_remaining)
    logger.info(
        "wave=%s started enemies=%s interval_ms=%s difficulty=%.3f",
        state.wave,
        state.spawn_remaining,
        spawn_interval_ms(state.wave),
        state.difficulty_factor,
    )


def begin_preparation(state, map_data, scheduler, config) -> None:
    state.phase = "preparation"
    state.preparation_left = int(config.preparation_seconds)
    cx, cy = map_data.width / 2, map_data.height / 2
    state.effects.text(cx, cy - 40, f"Preparation Phase: {state.preparation_left} seconds", "#48bb78")

    def _countdown() -> None:
        state.preparation_left -= 1
        state.effects.text(cx, cy, f"Wave {state.wave} in: {state.preparation_left}s", "#ffffff")
        if state.preparation_left <= 0:
            scheduler.cancel(PREPARATION_TIMER)
            start_wave(state, map_data, scheduler)

    scheduler.schedule(PREPARATION_TIMER, SECOND_MS, _countdown, repeat=True)


def wave_is_complete(state) -> bool:
    return (
        state.wave_started
        and not state.wave_completed
        and not state.enemies
        and not state.spawns_pending
    )


def check_wave_completion(state, map_data, scheduler, config) -> bool:
    if not wave_is_complete(state):
        return False

    state.wave_completed = True
    state.phase = "wave_complete"
    completed = state.wave
    bonus = wave_bonus(completed)
    cx, cy = map_data.width / 2, map_data.height / 2
    state.effects.text(cx, cy - 40, f"Wave {completed} Complete!", "#48bb78")
    state.emit("wave_completed", wave=completed, bonus=bonus)
    logger.info("wave=%s complete bonus=%s money=%s", completed, bonus, state.money)

    def _grant_bonus() -> None:
        state.money += bonus
        state.effects.text(cx, cy, f"+{bonus} gold!", "#f6e05e")
        state.emit("wave_bonus", wave=completed, amount=bonus)

    scheduler.schedule(BONUS_TIMER, config.bonus_delay_ms, _grant_bonus)

    state.next_wave_countdown = int(config.wave_countdown_seconds)

    def _countdown() -> None:
        state.next_wave_countdown -= 1
        if state.next_wave_countdown % 2 == 0 or state.next_wave_countdown <= 3:
            state.effects.text(cx, cy + 40, f"Next wave in {state.next_wave_countdown}...", "#ffffff")
        if state.next_wave_countdown <= 0:
            scheduler.cancel(COUNTDOWN_TIMER)
            advance_wave(state, map_data, scheduler)

    scheduler.schedule(COUNTDOWN_TIMER, SECOND_MS, _countdown, repeat=True)
    return True


def advance_wave(state, map_data, scheduler) -> None:
    state.wave += 1
    state.wave_completed = False
    refresh_unlocks(state, map_data)
    start_wave(state, map_data, scheduler)


def refresh_unlocks(state, map_data, *, announce: bool = True) -> list[str]:
    """Add every tower kind whose unlock wave has been reached; return the new ones."""
    fresh: list[str] = []
    for tower_def in list_tower_defs():
        if tower_def.unlock_wave <= state.wave and tower_def.kind not in state.unlocked:
            state.unlocked.append(tower_def.kind)
            fresh.append(tower_def.kind)
            if announce:
                state.effects.text(
                    map_data.width / 2,
                    map_data.height / 2 - 50,
                    f"New Tower Unlocked: {tower_def.title}!",
                    "#f6e05e",
                )
                state.emit("tower_unlocked", kind=tower_def.kind)
    return fresh
