from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import math
from typing import Literal

from ..model.entities import Tower
from ..model.towers import TOWER_DEFS, CriticalSpecial, ExplosionSpecial, TowerDef


PlacementReason = Literal[
    "ok",
    "no_selection",
    "not_playing",
    "unknown_kind",
    "locked",
    "insufficient_funds",
    "out_of_bounds",
    "tower_collision",
    "path_proximity",
]

EDGE_MARGIN = 20.0
PATH_CLEARANCE = 30.0
PATH_SAMPLE_STEP = 10.0


@dataclass(frozen=True, slots=True)
class PlacementResult:
    reason: PlacementReason
    tower: Tower | None = None

    @property
    def ok(self) -> bool:
        return self.reason == "ok"


def snap_to_grid(map_data, x: float, y: float) -> tuple[int, int]:
    grid = int(map_data.grid)
    return int(math.floor(x / grid)) * grid, int(math.floor(y / grid)) * grid


def in_bounds(map_data, x: float, y: float) -> bool:
    return (
        EDGE_MARGIN <= x <= map_data.width - EDGE_MARGIN
        and EDGE_MARGIN <= y <= map_data.height - EDGE_MARGIN
    )


def collides_with_tower(state, map_data, x: float, y: float) -> bool:
    grid = float(map_data.grid)
    for tower in state.towers:
        if abs(tower.x - x) < grid and abs(tower.y - y) < grid:
            return True
    return False


def path_samples(map_data, *, step: float = PATH_SAMPLE_STEP) -> list[tuple[float, float]]:
    """Points every `step` units along each segment, both endpoints included."""
    samples: list[tuple[float, float]] = []
    for x1, y1, x2, y2 in map_data.segments():
        dx = x2 - x1
        dy = y2 - y1
        steps = max(1, int(math.ceil(math.hypot(dx, dy) / step)))
        for j in range(steps + 1):
            samples.append((x1 + dx * j / steps, y1 + dy * j / steps))
    return samples


@lru_cache(maxsize=8)
def _cached_samples(map_data) -> tuple[tuple[float, float], ...]:
    return tuple(path_samples(map_data))


def near_path(map_data, x: float, y: float, *, clearance: float = PATH_CLEARANCE) -> bool:
    for px, py in _cached_samples(map_data):
        if math.hypot(px - x, py - y) < clearance:
            return True
    return False


def is_unlocked(state, tower_def: TowerDef) -> bool:
    return state.wave >= tower_def.unlock_wave


def check_placement(state, map_data, x: float, y: float, tower_kind: str) -> PlacementReason:
    tower_def = TOWER_DEFS.get(str(tower_kind))
    if tower_def is None:
        return "unknown_kind"
    if not is_unlocked(state, tower_def):
        return "locked"
    if state.money < tower_def.cost:
        return "insufficient_funds"
    if not in_bounds(map_data, x, y):
        return "out_of_bounds"
    if collides_with_tower(state, map_data, x, y):
        return "tower_collision"
    if near_path(map_data, x, y):
        return "path_proximity"
    return "ok"


def build_tower(tower_def: TowerDef, x: float, y: float) -> Tower:
    tower = Tower(
        x=float(x),
        y=float(y),
        kind=tower_def.kind,
        cost=tower_def.cost,
        damage=tower_def.damage,
        range=tower_def.range,
        fire_rate=tower_def.fire_rate,
        projectile_color=tower_def.projectile_color,
        projectile_size=tower_def.projectile_size,
        barrel_length=tower_def.barrel_length,
    )
    special = tower_def.special
    if isinstance(special, CriticalSpecial):
        tower.instant_hit = True
        tower.critical_chance = special.chance
        tower.critical_multiplier = special.multiplier
    elif isinstance(special, ExplosionSpecial):
        tower.explosion_radius = special.radius
        tower.explosion_falloff = special.falloff
    return tower


def place_tower(state, map_data, x: float, y: float, tower_kind: str) -> PlacementResult:
    """
    Validate and insert a tower at an already grid-aligned position.

    A rejected request leaves money and the tower list untouched.
    """
    reason = check_placement(state, map_data, x, y, tower_kind)
    if reason != "ok":
        return PlacementResult(reason)

    tower_def = TOWER_DEFS[str(tower_kind)]
    tower = build_tower(tower_def, x, y)
    state.money -= tower_def.cost
    state.towers.append(tower)
    state.effects.radial_burst(
        tower.x,
        tower.y,
        count=8,
        speed=2.0,
        radius=4.0,
        color=tower_def.color,
        lifetime=30,
    )
    state.emit("tower_placed", kind=tower.kind, x=tower.x, y=tower.y, cost=tower_def.cost)
    return PlacementResult("ok", tower)
