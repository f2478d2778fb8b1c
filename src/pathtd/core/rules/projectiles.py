# src/pathtd/core/rules/projectiles.py
from __future__ import annotations

import math

from ..model.entities import Enemy, Projectile
from .tower_attack import DAMAGE_TEXT_COLOR, apply_damage

IMPACT_DISTANCE = 5.0
BOOST_RANGE = 300.0
MAX_BOOST = 0.1
TRAIL_LIFETIME = 10


def homing_speed(base_speed: float, distance: float) -> float:
    """Base speed plus up to 10% as the remaining distance drops below 300."""
    return base_speed * (1.0 + MAX_BOOST * (1.0 - min(distance, BOOST_RANGE) / BOOST_RANGE))


def splash_damage(damage: int, distance: float, radius: float, falloff: float) -> int:
    if radius <= 0.0 or distance > radius:
        return 0
    return max(0, int(math.floor(damage * (1.0 - (distance / radius) * falloff))))


def step_projectiles(state, *, dt_scale: float = 1.0) -> None:
    """
    Home, move and resolve every projectile.

    A projectile whose target is gone is dropped without dealing damage.
    """
    if getattr(state, "game_over", False):
        return
    if not state.projectiles:
        return

    keep: list[Projectile] = []
    for projectile in state.projectiles:
        target = state.live_enemy(projectile.target_id)
        if target is None:
            continue

        _emit_trail(state, projectile)

        projectile.aim_x = target.x
        projectile.aim_y = target.y
        dx = projectile.aim_x - projectile.x
        dy = projectile.aim_y - projectile.y
        distance = math.hypot(dx, dy)

        if distance < IMPACT_DISTANCE:
            resolve_impact(state, projectile, target)
            continue

        speed = homing_speed(projectile.speed, distance) * dt_scale
        projectile.x += (dx / distance) * speed
        projectile.y += (dy / distance) * speed
        keep.append(projectile)

    state.projectiles = keep


def _emit_trail(state, projectile: Projectile) -> None:
    projectile.trail_counter += 1
    if projectile.trail_counter < projectile.trail_interval:
        return
    projectile.trail_counter = 0
    state.effects.particle(
        projectile.x,
        projectile.y,
        radius=projectile.size * 0.7,
        color=projectile.color,
        lifetime=TRAIL_LIFETIME,
        alpha=0.7,
    )


def resolve_impact(state, projectile: Projectile, target: Enemy) -> None:
    if projectile.kind == "bomber":
        _resolve_explosion(state, projectile, target)
        return

    state.emit("impact", tower_kind=projectile.tower_kind, damage=projectile.damage)
    state.effects.random_burst(
        target.x,
        target.y,
        count=6,
        min_speed=1.0,
        speed_spread=2.0,
        radius=3.0,
        color=projectile.color,
        lifetime=15,
    )
    state.effects.text(target.x, target.y - 20, f"-{projectile.damage}", DAMAGE_TEXT_COLOR)
    apply_damage(state, target, projectile.damage)


def _resolve_explosion(state, projectile: Projectile, target: Enemy) -> None:
    cx, cy = projectile.aim_x, projectile.aim_y
    radius = projectile.explosion_radius
    state.emit("explosion", tower_kind=projectile.tower_kind, radius=radius)
    state.effects.explosion(cx, cy, radius)

    # Splash candidates are fixed before any damage so removals cannot skip anyone.
    bystanders = [enemy for enemy in state.enemies if enemy is not target]
    apply_damage(state, target, projectile.damage)

    for enemy in bystanders:
        if not state.is_live(enemy):
            continue
        dist = math.hypot(enemy.x - cx, enemy.y - cy)
        amount = splash_damage(projectile.damage, dist, radius, projectile.falloff)
        if amount <= 0:
            continue
        state.effects.text(enemy.x, enemy.y - 20, f"-{amount}", DAMAGE_TEXT_COLOR)
        apply_damage(state, enemy, amount)
