from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


ProjectileKind = Literal["standard", "bomber"]


@dataclass(slots=True)
class Tower:
    x: float
    y: float
    kind: str
    cost: int
    damage: int
    range: float
    fire_rate: float
    projectile_color: str
    projectile_size: float
    barrel_length: float
    instant_hit: bool = False
    critical_chance: float = 0.0
    critical_multiplier: float = 1.0
    explosion_radius: float = 0.0
    explosion_falloff: float = 0.0

    # Runtime
    last_shot_ms: float = float("-inf")
    target_id: int | None = None   # Enemy.uid, resolved through GameState.live_enemy
    angle: float = 0.0


@dataclass(slots=True)
class Enemy:
    uid: int
    kind: str
    x: float
    y: float

    health: int
    max_health: int
    speed: float
    reward: int

    # Route: index of the current segment, distance already walked into it
    path_index: int = 0
    progress: float = 0.0

    # Presentation
    color: str = "#ffffff"
    size: float = 20.0
    pulse: float = 0.0
    pulse_direction: int = 1


@dataclass(slots=True)
class Projectile:
    x: float
    y: float
    aim_x: float
    aim_y: float
    target_id: int
    damage: int
    speed: float
    kind: ProjectileKind
    tower_kind: str
    color: str
    size: float
    explosion_radius: float = 0.0
    falloff: float = 0.0
    trail_interval: int = 2
    trail_counter: int = 0
