from __future__ import annotations

from dataclasses import asdict, dataclass
import math
import random
from typing import Iterator, Union


ALPHA_DECAY = 0.02
TEXT_LIFETIME = 60
RING_START_RADIUS = 5.0
RING_LIFETIME = 20


@dataclass(slots=True)
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    color: str
    alpha: float
    lifetime: float
    type: str = "particle"


@dataclass(slots=True)
class FloatingText:
    x: float
    y: float
    text: str
    color: str
    alpha: float = 1.0
    lifetime: float = TEXT_LIFETIME
    vx: float = 0.0
    vy: float = -1.0
    type: str = "text"


@dataclass(slots=True)
class ExplosionRing:
    x: float
    y: float
    radius: float
    max_radius: float
    color: str = "#fed7d7"
    alpha: float = 0.7
    lifetime: float = RING_LIFETIME
    type: str = "explosion"


Effect = Union[Particle, FloatingText, ExplosionRing]


class EffectLedger:
    """
    Append/expire store for transient visuals.

    Lifetimes count ticks. Gameplay never reads back from the ledger; the
    presentation layer reads `snapshot()` once per frame.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._effects: list[Effect] = []
        self._rng = random.Random(seed)

    def __len__(self) -> int:
        return len(self._effects)

    def __iter__(self) -> Iterator[Effect]:
        return iter(self._effects)

    def clear(self) -> None:
        self._effects.clear()

    def particle(
        self,
        x: float,
        y: float,
        *,
        radius: float,
        color: str,
        lifetime: float,
        vx: float = 0.0,
        vy: float = 0.0,
        alpha: float = 1.0,
    ) -> Particle:
        p = Particle(x=x, y=y, vx=vx, vy=vy, radius=radius, color=color, alpha=alpha, lifetime=lifetime)
        self._effects.append(p)
        return p

    def text(self, x: float, y: float, text: str, color: str) -> FloatingText:
        t = FloatingText(x=x, y=y, text=text, color=color)
        self._effects.append(t)
        return t

    def ring(self, x: float, y: float, max_radius: float) -> ExplosionRing:
        r = ExplosionRing(x=x, y=y, radius=RING_START_RADIUS, max_radius=max_radius)
        self._effects.append(r)
        return r

    def radial_burst(
        self,
        x: float,
        y: float,
        *,
        count: int,
        speed: float,
        radius: float,
        color: str,
        lifetime: float,
    ) -> None:
        for i in range(count):
            angle = math.tau * (i / count)
            self.particle(
                x,
                y,
                radius=radius,
                color=color,
                lifetime=lifetime,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
            )

    def random_burst(
        self,
        x: float,
        y: float,
        *,
        count: int,
        min_speed: float,
        speed_spread: float,
        radius: float,
        color: str,
        lifetime: float,
    ) -> None:
        for _ in range(count):
            angle = self._rng.random() * math.tau
            speed = min_speed + self._rng.random() * speed_spread
            self.particle(
                x,
                y,
                radius=radius,
                color=color,
                lifetime=lifetime,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
            )

    def breach_burst(self, x: float, y: float) -> None:
        for i in range(20):
            angle = math.tau * (i / 20)
            speed = 2.0 + self._rng.random() * 3.0
            self.particle(
                x,
                y,
                radius=5.0,
                color="#ef4444",
                lifetime=60,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
            )

    def smoke(self, x: float, y: float, heading: float) -> None:
        for _ in range(5):
            angle = heading + math.pi + (self._rng.random() * 0.5 - 0.25)
            speed = 1.0 + self._rng.random()
            self.particle(
                x,
                y,
                radius=3.0 + self._rng.random() * 3.0,
                color="rgba(160, 174, 192, 0.8)",
                lifetime=10 + self._rng.random() * 10,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
                alpha=0.7,
            )

    def explosion(self, x: float, y: float, radius: float) -> None:
        self.ring(x, y, radius)
        self.particle(x, y, radius=radius * 0.4, color="rgba(255, 255, 255, 0.7)", lifetime=5, alpha=0.7)
        for _ in range(20):
            angle = self._rng.random() * math.tau
            distance = self._rng.random() * radius * 0.8
            speed = 1.0 + self._rng.random() * 3.0
            self.particle(
                x + math.cos(angle) * distance,
                y + math.sin(angle) * distance,
                radius=2.0 + self._rng.random() * 2.0,
                color="#f56565" if self._rng.random() > 0.5 else "#fed7d7",
                lifetime=15 + self._rng.random() * 15,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
                alpha=0.8,
            )
        self.text(x, y, "BOOM!", "#f56565")

    def step(self) -> None:
        keep: list[Effect] = []
        for effect in self._effects:
            effect.lifetime -= 1
            if effect.lifetime <= 0:
                continue
            if isinstance(effect, ExplosionRing):
                effect.radius += (effect.max_radius - effect.radius) / effect.lifetime
            else:
                effect.x += effect.vx
                effect.y += effect.vy
            if effect.alpha:
                effect.alpha = max(0.0, effect.alpha - ALPHA_DECAY)
            keep.append(effect)
        self._effects = keep

    def snapshot(self) -> list[dict]:
        return [asdict(effect) for effect in self._effects]
