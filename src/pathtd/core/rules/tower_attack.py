# src/pathtd/core/rules/tower_attack.py
from __future__ import annotations

import logging
import math

from ..model.entities import Enemy, Projectile, Tower
from ..rng import rand_float

logger = logging.getLogger(__name__)

STANDARD_PROJECTILE_SPEED = 5.0
STANDARD_TRAIL_INTERVAL = 2
BOMBER_PROJECTILE_SPEED = 4.0
BOMBER_TRAIL_INTERVAL = 3
LASER_DOT_SPACING = 10.0
DAMAGE_TEXT_COLOR = "#ff9999"
CRITICAL_TEXT_COLOR = "#f6e05e"


def step_towers(state, map_data, now_ms: float) -> None:
    """
    Tick tower -> target -> fire.

    A tower on cooldown, or with nothing in range, does nothing this tick;
    an idle scan does not restart its cooldown.
    """
    if getattr(state, "game_over", False):
        return
    if not state.towers:
        return

    for tower in state.towers:
        if now_ms - tower.last_shot_ms < 1000.0 / tower.fire_rate:
            continue

        target, distance = select_target(tower, state.enemies)
        if target is None:
            continue

        tower.angle = math.atan2(target.y - tower.y, target.x - tower.x)
        tower.last_shot_ms = now_ms
        tower.target_id = target.uid
        _fire_tower(state, tower, target, distance)


def select_target(tower: Tower, enemies: list[Enemy]) -> tuple[Enemy | None, float]:
    """
    Closest enemy strictly inside range.

    Only a strictly smaller distance replaces the current pick, so equal
    distances resolve to the enemy that comes first in `enemies` (spawn order).
    """
    chosen: Enemy | None = None
    best = float(tower.range)
    for enemy in enemies:
        dist = math.hypot(enemy.x - tower.x, enemy.y - tower.y)
        if dist < best:
            chosen = enemy
            best = dist
    return chosen, best


def _fire_tower(state, tower: Tower, target: Enemy, distance: float) -> None:
    if tower.instant_hit:
        _fire_instant_hit(state, tower, target, distance)
    elif tower.explosion_radius > 0.0:
        spawn_bomber_projectile(state, tower, target)
    else:
        spawn_standard_projectile(state, tower, target)


def _fire_instant_hit(state, tower: Tower, target: Enemy, distance: float) -> None:
    is_critical = rand_float(state) < tower.critical_chance
    damage = int(math.floor(tower.damage * tower.critical_multiplier)) if is_critical else int(tower.damage)
    state.emit("shot_fired", tower_kind=tower.kind, instant=True)

    effects = state.effects
    dist = LASER_DOT_SPACING
    while dist <= distance:
        effects.particle(
            tower.x + math.cos(tower.angle) * dist,
            tower.y + math.sin(tower.angle) * dist,
            radius=1.0,
            color=tower.projectile_color,
            lifetime=5,
            alpha=0.7,
        )
        dist += LASER_DOT_SPACING
    effects.random_burst(
        target.x,
        target.y,
        count=8,
        min_speed=2.0,
        speed_spread=2.0,
        radius=2.0,
        color=tower.projectile_color,
        lifetime=15,
    )
    if is_critical:
        state.emit("critical_hit", tower_kind=tower.kind, damage=damage)
        effects.text(target.x, target.y - 20, f"CRITICAL! -{damage}", CRITICAL_TEXT_COLOR)
    else:
        effects.text(target.x, target.y - 20, f"-{damage}", DAMAGE_TEXT_COLOR)

    apply_damage(state, target, damage)


def _barrel_tip(tower: Tower, target: Enemy) -> tuple[float, float, float]:
    angle = math.atan2(target.y - tower.y, target.x - tower.x)
    return (
        tower.x + math.cos(angle) * tower.barrel_length,
        tower.y + math.sin(angle) * tower.barrel_length,
        angle,
    )


def spawn_standard_projectile(state, tower: Tower, target: Enemy) -> Projectile:
    x, y, _ = _barrel_tip(tower, target)
    state.emit("shot_fired", tower_kind=tower.kind, instant=False)
    projectile = Projectile(
        x=x,
        y=y,
        aim_x=float(target.x),
        aim_y=float(target.y),
        target_id=target.uid,
        damage=int(tower.damage),
        speed=STANDARD_PROJECTILE_SPEED,
        kind="standard",
        tower_kind=tower.kind,
        color=tower.projectile_color,
        size=tower.projectile_size,
        trail_interval=STANDARD_TRAIL_INTERVAL,
    )
    state.projectiles.append(projectile)
    return projectile


def spawn_bomber_projectile(state, tower: Tower, target: Enemy) -> Projectile:
    x, y, angle = _barrel_tip(tower, target)
    state.emit("shot_fired", tower_kind=tower.kind, instant=False)
    state.effects.smoke(x, y, angle)
    projectile = Projectile(
        x=x,
        y=y,
        aim_x=float(target.x),
        aim_y=float(target.y),
        target_id=target.uid,
        damage=int(tower.damage),
        speed=BOMBER_PROJECTILE_SPEED,
        kind="bomber",
        tower_kind=tower.kind,
        color=tower.projectile_color,
        size=tower.projectile_size,
        explosion_radius=tower.explosion_radius,
        falloff=tower.explosion_falloff,
        trail_interval=BOMBER_TRAIL_INTERVAL,
    )
    state.projectiles.append(projectile)
    return projectile


def apply_damage(state, target: Enemy, amount: int) -> bool:
    """
    Damage a live enemy and run the defeat path at zero health.

    Returns True when this call defeated the enemy. Enemies already removed
    are left alone.
    """
    if not state.is_live(target):
        return False
    target.health = max(0, target.health - int(amount))
    if target.health > 0:
        return False
    return defeat_enemy(state, target)


def defeat_enemy(state, target: Enemy) -> bool:
    if not state.remove_enemy(target):
        return False
    state.money += int(target.reward)
    state.effects.radial_burst(
        target.x,
        target.y,
        count=12,
        speed=3.0,
        radius=4.0,
        color=target.color,
        lifetime=20,
    )
    state.effects.text(target.x, target.y - 30, f"+{target.reward} gold!", CRITICAL_TEXT_COLOR)
    state.emit("enemy_defeated", kind=target.kind, reward=target.reward)
    logger.debug("defeated uid=%s kind=%s reward=%s money=%s", target.uid, target.kind, target.reward, state.money)
    return True
