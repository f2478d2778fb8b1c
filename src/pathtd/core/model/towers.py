from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CriticalSpecial:
    chance: float
    multiplier: float


@dataclass(frozen=True, slots=True)
class ExplosionSpecial:
    radius: float
    falloff: float


@dataclass(frozen=True, slots=True)
class TowerDef:
    kind: str
    title: str
    cost: int
    damage: int
    range: float
    fire_rate: float
    color: str
    projectile_color: str
    projectile_size: float
    barrel_length: float
    unlock_wave: int
    description: str
    special: CriticalSpecial | ExplosionSpecial | None = None


TOWER_DEFS: dict[str, TowerDef] = {
    "basic": TowerDef(
        kind="basic",
        title="Basic Tower",
        cost=25,
        damage=10,
        range=120.0,
        fire_rate=1.0,
        color="#4299e1",
        projectile_color="#63b3ed",
        projectile_size=4.0,
        barrel_length=10.0,
        unlock_wave=1,
        description="Balanced defense with moderate rate of fire",
    ),
    "cannon": TowerDef(
        kind="cannon",
        title="Cannon Tower",
        cost=60,
        damage=30,
        range=100.0,
        fire_rate=0.5,
        color="#ed8936",
        projectile_color="#f6ad55",
        projectile_size=6.0,
        barrel_length=14.0,
        unlock_wave=2,
        description="High damage but slow rate of fire",
    ),
    "magic": TowerDef(
        kind="magic",
        title="Magic Tower",
        cost=100,
        damage=15,
        range=150.0,
        fire_rate=1.5,
        color="#9f7aea",
        projectile_color="#d6bcfa",
        projectile_size=5.0,
        barrel_length=8.0,
        unlock_wave=3,
        description="Fast-firing magical projectiles",
    ),
    "sniper": TowerDef(
        kind="sniper",
        title="Sniper Tower",
        cost=150,
        damage=80,
        range=250.0,
        fire_rate=0.25,
        color="#48bb78",
        projectile_color="#c6f6d5",
        projectile_size=3.0,
        barrel_length=18.0,
        unlock_wave=5,
        description="Extreme range and damage with laser targeting",
        special=CriticalSpecial(chance=0.2, multiplier=2.5),
    ),
    "bomber": TowerDef(
        kind="bomber",
        title="Bomber Tower",
        cost=200,
        damage=50,
        range=180.0,
        fire_rate=0.3,
        color="#f56565",
        projectile_color="#fed7d7",
        projectile_size=8.0,
        barrel_length=12.0,
        unlock_wave=7,
        description="Area damage explosions affecting multiple enemies",
        special=ExplosionSpecial(radius=60.0, falloff=0.5),
    ),
}


def get_tower_def(kind: str) -> TowerDef:
    try:
        return TOWER_DEFS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown tower kind: {kind!r}") from exc


def list_tower_defs() -> list[TowerDef]:
    return list(TOWER_DEFS.values())
