import pytest

from pathtd.core.config import SessionConfig
from pathtd.core.model.map import DEFAULT_MAP
from pathtd.core.model.state import GameState
from pathtd.core.rules.wave_director import (
    COUNTDOWN_TIMER,
    SPAWN_TIMER,
    check_wave_completion,
    difficulty_factor,
    enemy_count,
    refresh_unlocks,
    scaled_health,
    scaled_reward,
    select_enemy_kind,
    spawn_interval_ms,
    start_wave,
    wave_bonus,
    wave_is_complete,
)
from pathtd.core.scheduler import Scheduler


def test_enemy_count_grows_twenty_percent_per_wave():
    assert enemy_count(1) == 8
    assert enemy_count(2) == 9
    assert enemy_count(6) == 16
    assert enemy_count(11) == 24


def test_difficulty_adds_log_term_after_wave_ten():
    assert difficulty_factor(1) == pytest.approx(1.0)
    assert difficulty_factor(10) == pytest.approx(2.35)
    assert difficulty_factor(11) == pytest.approx(2.5 + 0.5 * 0.30103, abs=1e-4)


def test_spawn_interval_has_a_floor():
    assert spawn_interval_ms(1) == 1200
    assert spawn_interval_ms(5) == 1000
    assert spawn_interval_ms(19) == 300
    assert spawn_interval_ms(40) == 300


def test_bonus_and_scaling_rounding():
    assert wave_bonus(1) == 25
    assert wave_bonus(4) == 40
    assert scaled_reward(10, 1) == 10
    assert scaled_reward(10, 3) == 12
    assert scaled_reward(50, 1) == 50
    assert scaled_health(100, 2.5) == 250
    assert scaled_health(25, 1.3) == 32


@pytest.mark.parametrize(
    "wave,roll,expected",
    [
        (1, 0.99, "basic"),
        (3, 0.69, "basic"),
        (3, 0.7, "fast"),
        (6, 0.49, "basic"),
        (6, 0.5, "fast"),
        (6, 0.8, "strong"),
        (8, 0.29, "basic"),
        (8, 0.59, "fast"),
        (8, 0.89, "strong"),
        (8, 0.9, "boss"),
        (5, 0.29, "boss"),
        (5, 0.3, "strong"),
        (10, 0.1, "boss"),
    ],
)
def test_enemy_kind_bands(wave, roll, expected):
    assert select_enemy_kind(wave, roll) == expected


def test_spawn_timer_produces_full_wave_then_stops():
    s = GameState()
    sched = Scheduler()
    start_wave(s, DEFAULT_MAP, sched)

    assert s.phase == "active_wave"
    assert s.wave_started is True
    assert s.spawns_pending

    # First enemy arrives one interval after the wave starts.
    sched.advance(1199)
    assert s.enemies == []
    for _ in range(20):
        sched.advance(1200)

    assert len(s.enemies) == 8
    assert not s.spawns_pending
    assert SPAWN_TIMER not in sched
    assert all(e.kind == "basic" for e in s.enemies)
    assert all(e.health == 40 for e in s.enemies)
    assert len({e.uid for e in s.enemies}) == 8


def test_completion_requires_a_started_wave():
    s = GameState(phase="preparation")
    sched = Scheduler()
    assert not wave_is_complete(s)
    assert check_wave_completion(s, DEFAULT_MAP, sched, SessionConfig()) is False
    assert s.wave_completed is False


def test_completion_fires_once_and_countdown_advances_wave_once():
    s = GameState(money=0)
    sched = Scheduler()
    cfg = SessionConfig()
    refresh_unlocks(s, DEFAULT_MAP, announce=False)
    start_wave(s, DEFAULT_MAP, sched)
    sched.cancel(SPAWN_TIMER)
    s.spawn_remaining = 0

    assert check_wave_completion(s, DEFAULT_MAP, sched, cfg) is True
    assert check_wave_completion(s, DEFAULT_MAP, sched, cfg) is False
    assert s.phase == "wave_complete"
    assert s.next_wave_countdown == 8

    sched.advance(999)
    assert s.money == 0
    sched.advance(1)
    assert s.money == 25

    for _ in range(7):
        sched.advance(1000)
    assert s.wave == 2
    assert s.phase == "active_wave"
    assert s.wave_completed is False
    assert COUNTDOWN_TIMER not in sched
    assert "cannon" in s.unlocked

    sched.advance(5000)
    assert s.wave == 2
    kinds = [e.kind for e in s.events]
    assert kinds.count("wave_completed") == 1
    assert kinds.count("wave_bonus") == 1
    assert kinds.count("tower_unlocked") == 1


def test_refresh_unlocks_is_cumulative():
    s = GameState(wave=7)
    fresh = refresh_unlocks(s, DEFAULT_MAP, announce=False)
    assert fresh == ["basic", "cannon", "magic", "sniper", "bomber"]
    assert refresh_unlocks(s, DEFAULT_MAP, announce=False) == []
    assert s.events == []
