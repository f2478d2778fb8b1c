from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


EventKind = Literal[
    "session_started",
    "tower_placed",
    "placement_rejected",
    "shot_fired",
    "critical_hit",
    "impact",
    "explosion",
    "enemy_defeated",
    "breach",
    "wave_started",
    "wave_completed",
    "wave_bonus",
    "tower_unlocked",
    "game_over",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    """Discrete gameplay event; the audio collaborator maps kinds to sounds."""
    kind: EventKind
    tick: int
    data: dict[str, Any] = field(default_factory=dict)
