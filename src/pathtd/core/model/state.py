from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from .effects import EffectLedger
from .entities import Enemy, Projectile, Tower
from .events import EventKind, GameEvent


Phase = Literal["menu", "preparation", "active_wave", "wave_complete", "game_over"]


@dataclass(slots=True)
class GameState:
    money: int = 75
    lives: int = 1
    wave: int = 1
    difficulty_factor: float = 1.0
    phase: Phase = "menu"

    wave_started: bool = False
    wave_completed: bool = False
    spawn_remaining: int = 0
    preparation_left: int = 0
    next_wave_countdown: int = 0

    unlocked: list[str] = field(default_factory=list)
    selected_kind: str | None = None

    towers: list[Tower] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)
    projectiles: list[Projectile] = field(default_factory=list)
    effects: EffectLedger = field(default_factory=EffectLedger)
    events: list[GameEvent] = field(default_factory=list)

    tick: int = 0
    clock_ms: float = 0.0
    rng_state: int = 1
    next_enemy_uid: int = 1
    summary: dict[str, Any] | None = None

    _live: dict[int, Enemy] = field(default_factory=dict)

    @property
    def spawns_pending(self) -> bool:
        return self.spawn_remaining > 0

    @property
    def game_over(self) -> bool:
        return self.phase == "game_over"

    def add_enemy(self, enemy: Enemy) -> None:
        self.enemies.append(enemy)
        self._live[enemy.uid] = enemy

    def remove_enemy(self, enemy: Enemy) -> bool:
        """Drop a live enemy; False when it was already gone."""
        if self._live.pop(enemy.uid, None) is None:
            return False
        self.enemies.remove(enemy)
        return True

    def live_enemy(self, uid: int | None) -> Enemy | None:
        if uid is None:
            return None
        return self._live.get(uid)

    def is_live(self, enemy: Enemy) -> bool:
        return enemy.uid in self._live

    def emit(self, kind: EventKind, /, **data: Any) -> None:
        self.events.append(GameEvent(kind=kind, tick=self.tick, data=data))
