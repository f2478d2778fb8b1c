from pathtd.core.config import SessionConfig
from pathtd.core.engine import Engine
from pathtd.core.model.entities import Enemy, Projectile
from pathtd.core.model.map import MapData
from pathtd.core.model.towers import get_tower_def
from pathtd.core.rules.placement import build_tower
from pathtd.core.rules.wave_director import PREPARATION_TIMER, SPAWN_TIMER


FAST = SessionConfig(frame_ms=50.0, seed=3)


def _engine(**changes) -> Engine:
    return Engine(config=FAST.with_overrides(**changes))


def _clear_wave(engine: Engine) -> None:
    s = engine.state
    engine.scheduler.cancel(SPAWN_TIMER)
    s.spawn_remaining = 0
    for enemy in list(s.enemies):
        s.remove_enemy(enemy)


def test_engine_starts_in_menu_and_does_not_tick():
    engine = _engine()
    assert engine.state.phase == "menu"
    assert engine.tick() is False
    assert engine.state.tick == 0
    assert engine.request_placement((40, 160), "basic").reason == "not_playing"


def test_preparation_counts_down_then_wave_one_spawns():
    engine = _engine()
    engine.start_session()
    s = engine.state
    assert s.phase == "preparation"
    assert s.preparation_left == 5
    assert s.unlocked == ["basic"]

    for _ in range(20):
        engine.tick()
    assert s.preparation_left == 4

    for _ in range(79):
        engine.tick()
        assert s.wave_completed is False
    assert s.phase == "preparation"
    engine.tick()
    assert s.phase == "active_wave"
    assert s.wave == 1
    assert PREPARATION_TIMER not in engine.scheduler

    for _ in range(23):
        engine.tick()
    assert s.enemies == []
    engine.tick()
    assert len(s.enemies) == 1
    assert s.enemies[0].kind == "basic"


def test_wave_cycle_pays_bonus_then_advances_once():
    engine = _engine(starting_money=0)
    engine.start_session()
    s = engine.state
    for _ in range(100):
        engine.tick()
    _clear_wave(engine)
    engine.drain_events()

    engine.tick()
    assert s.phase == "wave_complete"
    assert engine.snapshot()["next_wave_countdown"] == 8

    for _ in range(19):
        engine.tick()
    assert s.money == 0
    engine.tick()
    assert s.money == 25

    for _ in range(139):
        engine.tick()
    assert s.wave == 1
    engine.tick()
    assert s.wave == 2
    assert s.phase == "active_wave"
    assert engine.tower_availability()["cannon"]["unlocked"] is True

    kinds = [e.kind for e in engine.drain_events()]
    assert kinds == ["wave_completed", "wave_bonus", "tower_unlocked", "wave_started"]


def test_selection_then_click_places_and_clears_selection():
    engine = _engine()
    engine.start_session()
    assert engine.select_tower_kind("cannon") == "locked"
    assert engine.select_tower_kind("basic") == "ok"

    result = engine.request_placement((55.0, 179.0))
    assert result.ok
    assert (result.tower.x, result.tower.y) == (40.0, 160.0)
    assert engine.state.money == 50
    assert engine.state.selected_kind is None
    assert engine.request_placement((300.0, 500.0)).reason == "no_selection"


def test_rejected_click_reports_reason_and_changes_nothing():
    engine = _engine()
    engine.start_session()
    engine.drain_events()

    result = engine.request_placement((45.0, 125.0), "basic")

    assert result.reason == "path_proximity"
    assert engine.state.money == 75
    assert engine.state.towers == []
    events = engine.drain_events()
    assert [e.kind for e in events] == ["placement_rejected"]
    assert events[0].data == {"kind": "basic", "reason": "path_proximity"}


def test_select_requires_funds():
    engine = _engine(starting_money=10)
    engine.start_session()
    assert engine.select_tower_kind("basic") == "insufficient_funds"
    assert engine.select_tower_kind("nope") == "unknown_kind"
    assert engine.state.selected_kind is None


def test_breach_on_last_life_freezes_the_session():
    short = MapData(name="short", width=800, height=600, grid=40, path=((0.0, 300.0), (20.0, 300.0)))
    engine = Engine(short, FAST)
    engine.start_session()
    s = engine.state
    s.phase = "active_wave"
    s.wave_started = True
    runner = Enemy(uid=99, kind="fast", x=0.0, y=300.0, health=25, max_health=25, speed=25.0, reward=15)
    slow = Enemy(uid=100, kind="basic", x=0.0, y=300.0, health=40, max_health=40, speed=1.0, reward=10)
    s.add_enemy(runner)
    s.add_enemy(slow)
    s.projectiles.append(
        Projectile(
            x=300.0, y=300.0, aim_x=0.0, aim_y=300.0, target_id=100, damage=10,
            speed=5.0, kind="standard", tower_kind="basic", color="#fff", size=4.0,
        )
    )

    assert engine.tick() is True
    assert s.phase == "game_over"
    assert s.summary["reason"] == "Enemy Breach Detected"
    assert len(engine.scheduler) == 0

    assert engine.tick() is False
    assert s.projectiles[0].x == 300.0
    assert engine.request_placement((40, 160), "basic").reason == "not_playing"
    assert engine.snapshot()["summary"] == {"reason": "Enemy Breach Detected", "waves_survived": 1}


def test_reset_cancels_pending_timers():
    engine = _engine()
    engine.start_session()
    for _ in range(10):
        engine.tick()
    engine.reset_session()

    assert engine.state.phase == "menu"
    assert len(engine.scheduler) == 0
    assert engine.tick() is False

    engine.act("START")
    assert engine.state.phase == "preparation"
    assert engine.state.tick == 0


def test_step_runs_whole_frames_from_wall_time():
    engine = _engine()
    engine.start_session()
    assert engine.step(0.12) is None
    assert engine.state.tick == 2
    engine.step(0.04)
    assert engine.state.tick == 3


def test_same_seed_gives_the_same_run():
    def run() -> list[tuple[str, int]]:
        engine = Engine(config=FAST.with_overrides(seed=42))
        engine.start_session()
        engine.state.wave = 8
        for _ in range(400):
            engine.tick()
        return [(e.kind, e.health) for e in engine.state.enemies]

    first = run()
    assert first
    assert first == run()


def test_snapshot_shape():
    engine = _engine()
    engine.start_session()
    engine.request_placement((40.0, 160.0), "basic")
    snap = engine.snapshot()
    assert snap["phase"] == "preparation"
    assert snap["preparation"] is True
    assert snap["next_wave_countdown"] is None
    assert snap["towers"][0]["kind"] == "basic"
    assert snap["towers"][0]["target"] is None
    assert snap["availability"]["basic"] == {"cost": 25, "unlock_wave": 1, "unlocked": True, "affordable": True}
    assert any(effect["type"] == "text" for effect in snap["effects"])


def test_act_dispatch_and_teardown():
    engine = _engine()
    engine.act("START")
    assert engine.act("SELECT_TOWER", {"kind": "basic"}) == "ok"
    engine.act("CLEAR_SELECTION")
    assert engine.state.selected_kind is None
    assert engine.act("PLACE_TOWER", {"x": 40, "y": 160, "kind": "basic"}).ok

    engine.teardown()
    assert engine.closed
    assert engine.tick() is False
    assert engine.act("START") is None


def test_placement_through_engine_completes_every_write():
    engine = _engine()
    engine.start_session()
    engine.select_tower_kind("basic")
    engine.drain_events()

    result = engine.request_placement((40.0, 160.0))

    assert result.ok
    assert engine.state.money == 50
    assert len(engine.state.towers) == 1
    assert engine.state.selected_kind is None
    events = engine.drain_events()
    assert [e.kind for e in events] == ["tower_placed"]
    assert events[0].data["kind"] == "basic"


def test_second_wave_spawns_after_the_countdown():
    engine = _engine(starting_money=0)
    engine.start_session()
    s = engine.state
    for _ in range(100):
        engine.tick()
    _clear_wave(engine)

    # completion tick, then 8 s of countdown at 50 ms per frame
    for _ in range(161):
        engine.tick()
    assert s.wave == 2
    assert s.money == 25
    assert s.spawn_remaining == 9
    assert SPAWN_TIMER in engine.scheduler

    # wave 2 spawns every 1150 ms
    for _ in range(23):
        engine.tick()
    assert len(s.enemies) == 1
    assert s.spawn_remaining == 8
    assert s.money == 25


def test_enemy_defeat_pays_reward_during_a_tick():
    engine = _engine(starting_money=0)
    engine.start_session()
    s = engine.state
    s.phase = "active_wave"
    s.wave_started = True
    s.spawn_remaining = 1
    weak = Enemy(uid=50, kind="basic", x=150.0, y=120.0, health=1, max_health=1, speed=0.0, reward=10)
    s.add_enemy(weak)
    s.towers.append(build_tower(get_tower_def("sniper"), 150.0, 200.0))

    engine.tick()

    assert s.enemies == []
    assert s.money == 10
    assert [e.kind for e in engine.drain_events()].count("enemy_defeated") == 1


def test_snapshot_does_not_touch_tower_targets():
    engine = _engine()
    engine.start_session()
    engine.request_placement((40.0, 160.0), "basic")
    tower = engine.state.towers[0]
    tower.target_id = 42

    snap = engine.snapshot()

    assert snap["towers"][0]["target"] is None
    assert tower.target_id == 42


def test_enemy_that_breaches_is_not_shot_in_the_same_tick():
    short = MapData(name="short", width=800, height=600, grid=40, path=((0.0, 300.0), (20.0, 300.0)))
    engine = Engine(short, FAST.with_overrides(starting_lives=3))
    engine.start_session()
    s = engine.state
    s.phase = "active_wave"
    s.wave_started = True
    s.spawn_remaining = 1
    s.add_enemy(Enemy(uid=7, kind="fast", x=10.0, y=300.0, health=25, max_health=25, speed=25.0, reward=15))
    s.towers.append(build_tower(get_tower_def("basic"), 40.0, 300.0))
    engine.drain_events()

    engine.tick()

    assert s.lives == 2
    assert s.enemies == []
    assert s.projectiles == []
    assert s.towers[0].last_shot_ms == float("-inf")
    kinds = [e.kind for e in engine.drain_events()]
    assert kinds == ["breach"]
