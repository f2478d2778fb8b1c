# src/pathtd/core/engine.py
from __future__ import annotations

import logging
from typing import Any, Literal

from .config import SessionConfig
from .model.effects import EffectLedger
from .model.events import GameEvent
from .model.map import DEFAULT_MAP, MapData
from .model.state import GameState
from .model.towers import TOWER_DEFS, list_tower_defs
from .rng import seed_state
from .rules.enemy_motion import step_enemies
from .rules.placement import PlacementReason, PlacementResult, is_unlocked, place_tower, snap_to_grid
from .rules.projectiles import step_projectiles
from .rules.tower_attack import step_towers
from .rules.wave_director import begin_preparation, check_wave_completion, refresh_unlocks
from .scheduler import Scheduler


logger = logging.getLogger(__name__)

ActionType = Literal[
    "START",
    "RESET",
    "SELECT_TOWER",
    "CLEAR_SELECTION",
    "PLACE_TOWER",
]

TICKING_PHASES = ("preparation", "active_wave", "wave_complete")
REJECT_TEXT_COLOR = "#ef4444"


class Engine:
    """
    Simulation core consumed by a host UI; no rendering or audio here.

    One `tick` is one frame. Inside it the order is fixed: due timers,
    wave-completion check, enemy movement, tower fire, projectiles, effects.
    Timers only fire at the top of a tick, so no pass ever sees a wave
    transition half applied.
    """

    def __init__(self, map_data: MapData = DEFAULT_MAP, config: SessionConfig | None = None):
        self.map = map_data
        self.config = config or SessionConfig()
        self.scheduler = Scheduler()
        self.state = self._fresh_state()
        self._accum = 0.0
        self._closed = False

    def _fresh_state(self) -> GameState:
        cfg = self.config
        state = GameState(
            money=int(cfg.starting_money),
            lives=int(cfg.starting_lives),
            effects=EffectLedger(seed=cfg.seed),
        )
        seed_state(state, cfg.seed)
        return state

    @property
    def closed(self) -> bool:
        return self._closed

    # Lifecycle

    def start_session(self) -> None:
        if self._closed:
            return
        self.scheduler.cancel_all()
        self.state = self._fresh_state()
        self._accum = 0.0
        refresh_unlocks(self.state, self.map, announce=False)
        self.state.emit("session_started", money=self.state.money, lives=self.state.lives)
        begin_preparation(self.state, self.map, self.scheduler, self.config)
        logger.info(
            "session started map=%s money=%s lives=%s seed=%s",
            self.map.name,
            self.state.money,
            self.state.lives,
            self.config.seed,
        )

    def reset_session(self) -> None:
        if self._closed:
            return
        self.scheduler.cancel_all()
        self.state = self._fresh_state()
        self._accum = 0.0
        logger.info("session reset")

    def teardown(self) -> None:
        if self._closed:
            return
        self.scheduler.cancel_all()
        self.state.events.clear()
        self._closed = True
        logger.info("engine closed")

    # Host input

    def act(self, action_type: ActionType, payload: dict[str, Any] | None = None) -> Any:
        if self._closed:
            return None
        payload = payload or {}

        if action_type == "START":
            self.start_session()
            return None
        if action_type == "RESET":
            self.reset_session()
            return None
        if action_type == "SELECT_TOWER":
            return self.select_tower_kind(str(payload.get("kind", "")))
        if action_type == "CLEAR_SELECTION":
            self.clear_selection()
            return None
        if action_type == "PLACE_TOWER":
            x = payload.get("x")
            y = payload.get("y")
            if x is None or y is None:
                return PlacementResult("out_of_bounds")
            return self.request_placement((float(x), float(y)), payload.get("kind"))

        raise ValueError(f"Unknown action_type={action_type!r}")

    def select_tower_kind(self, kind: str) -> PlacementReason:
        s = self.state
        tower_def = TOWER_DEFS.get(kind)
        if tower_def is None:
            return "unknown_kind"
        cx, cy = self.map.width / 2, self.map.height / 2
        if not is_unlocked(s, tower_def):
            s.effects.text(cx, cy, f"Unlocks at wave {tower_def.unlock_wave}", REJECT_TEXT_COLOR)
            return "locked"
        if s.money < tower_def.cost:
            s.effects.text(cx, cy, "Not enough money!", REJECT_TEXT_COLOR)
            return "insufficient_funds"
        s.selected_kind = kind
        return "ok"

    def clear_selection(self) -> None:
        self.state.selected_kind = None

    def request_placement(self, position: tuple[float, float], kind: str | None = None) -> PlacementResult:
        s = self.state
        if self._closed or s.phase not in TICKING_PHASES:
            return PlacementResult("not_playing")
        tower_kind = kind if kind is not None else s.selected_kind
        if tower_kind is None:
            return PlacementResult("no_selection")

        px, py = position
        grid_x, grid_y = snap_to_grid(self.map, px, py)
        result = place_tower(s, self.map, grid_x, grid_y, tower_kind)
        if result.ok:
            s.selected_kind = None
            logger.debug("placed %s at (%s,%s) money=%s", tower_kind, grid_x, grid_y, s.money)
        else:
            s.effects.text(px, py, "Invalid position!", REJECT_TEXT_COLOR)
            s.emit("placement_rejected", kind=tower_kind, reason=result.reason)
            logger.debug("placement rejected kind=%s at (%s,%s) reason=%s", tower_kind, grid_x, grid_y, result.reason)
        return result

    # Simulation

    def tick(self, dt_ms: float | None = None) -> bool:
        """Advance one frame; False when the session is not running."""
        s = self.state
        if self._closed or s.phase not in TICKING_PHASES:
            return False
        dt = float(self.config.frame_ms if dt_ms is None else dt_ms)

        s.tick += 1
        s.clock_ms += dt
        self.scheduler.advance(dt)

        check_wave_completion(s, self.map, self.scheduler, self.config)

        step_enemies(s, self.map)
        if s.game_over:
            self.scheduler.cancel_all()
            return True

        step_towers(s, self.map, s.clock_ms)
        step_projectiles(s)
        s.effects.step()
        return True

    def step(self, dt_seconds: float) -> str | None:
        """
        Feed host wall time; runs as many fixed frames as have accumulated.
        """
        if self._closed or self.state.phase not in TICKING_PHASES:
            return None

        frame_seconds = self.config.frame_ms / 1000.0
        self._accum += max(0.0, dt_seconds)
        while self._accum >= frame_seconds:
            self._accum -= frame_seconds
            self.tick()
            if self.state.game_over:
                self._accum = 0.0
                return "game over"
        return None

    # Host output

    def drain_events(self) -> list[GameEvent]:
        events = self.state.events
        self.state.events = []
        return events

    def tower_availability(self) -> dict[str, dict[str, Any]]:
        s = self.state
        return {
            tower_def.kind: {
                "cost": tower_def.cost,
                "unlock_wave": tower_def.unlock_wave,
                "unlocked": is_unlocked(s, tower_def),
                "affordable": s.money >= tower_def.cost,
            }
            for tower_def in list_tower_defs()
        }

    def _target_uid(self, tower) -> int | None:
        enemy = self.state.live_enemy(tower.target_id)
        return None if enemy is None else enemy.uid

    def snapshot(self) -> dict[str, Any]:
        s = self.state
        return {
            "phase": s.phase,
            "money": s.money,
            "lives": s.lives,
            "wave": s.wave,
            "difficulty_factor": s.difficulty_factor,
            "preparation": s.phase == "preparation",
            "preparation_left": s.preparation_left,
            "next_wave_countdown": s.next_wave_countdown if s.phase == "wave_complete" else None,
            "spawns_pending": s.spawns_pending,
            "selected_kind": s.selected_kind,
            "unlocked": list(s.unlocked),
            "availability": self.tower_availability(),
            "tick": s.tick,
            "towers": [
                {
                    "x": t.x,
                    "y": t.y,
                    "kind": t.kind,
                    "range": t.range,
                    "angle": t.angle,
                    "target": self._target_uid(t),
                }
                for t in s.towers
            ],
            "enemies": [
                {
                    "uid": e.uid,
                    "kind": e.kind,
                    "x": e.x,
                    "y": e.y,
                    "health": e.health,
                    "max_health": e.max_health,
                    "speed": e.speed,
                    "reward": e.reward,
                    "path_index": e.path_index,
                    "color": e.color,
                    "size": e.size,
                    "pulse": e.pulse,
                }
                for e in s.enemies
            ],
            "projectiles": [
                {
                    "x": p.x,
                    "y": p.y,
                    "kind": p.kind,
                    "color": p.color,
                    "size": p.size,
                }
                for p in s.projectiles
            ],
            "effects": s.effects.snapshot(),
            "summary": dict(s.summary) if s.summary else None,
        }
