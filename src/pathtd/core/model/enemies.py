from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EnemyDef:
    kind: str
    health: int
    speed: float
    reward: int
    color: str
    outline_color: str
    size: float


ENEMY_DEFS: dict[str, EnemyDef] = {
    "basic": EnemyDef(
        kind="basic", health=40, speed=1.0, reward=10, color="#f56565", outline_color="#c53030", size=20.0
    ),
    "fast": EnemyDef(
        kind="fast", health=25, speed=2.0, reward=15, color="#ecc94b", outline_color="#b7791f", size=15.0
    ),
    "strong": EnemyDef(
        kind="strong", health=100, speed=0.7, reward=20, color="#805ad5", outline_color="#553c9a", size=25.0
    ),
    "boss": EnemyDef(
        kind="boss", health=300, speed=0.5, reward=50, color="#e53e3e", outline_color="#9b2c2c", size=35.0
    ),
}


def get_enemy_def(kind: str) -> EnemyDef:
    try:
        return ENEMY_DEFS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown enemy kind: {kind!r}") from exc
