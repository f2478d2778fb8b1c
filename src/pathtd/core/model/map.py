from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import json
import math


@dataclass(frozen=True, slots=True)
class MapData:
    """
    Playfield and the fixed route enemies walk.

    path: waypoints in traversal order; segment i joins path[i] and path[i+1].
    grid: tower placement cell size.
    """
    name: str
    width: int
    height: int
    grid: int
    path: tuple[tuple[float, float], ...]

    def __post_init__(self) -> None:
        if len(self.path) < 2:
            raise ValueError(f"Map '{self.name}' needs at least 2 waypoints, got {len(self.path)}")
        if self.width <= 0 or self.height <= 0 or self.grid <= 0:
            raise ValueError(f"Map '{self.name}' has invalid dimensions")

    @property
    def segment_count(self) -> int:
        return len(self.path) - 1

    def segment(self, index: int) -> tuple[float, float, float, float]:
        x1, y1 = self.path[index]
        x2, y2 = self.path[index + 1]
        return x1, y1, x2, y2

    def segment_length(self, index: int) -> float:
        x1, y1, x2, y2 = self.segment(index)
        return math.hypot(x2 - x1, y2 - y1)

    def segments(self) -> list[tuple[float, float, float, float]]:
        return [self.segment(i) for i in range(self.segment_count)]


DEFAULT_MAP = MapData(
    name="default",
    width=800,
    height=600,
    grid=40,
    path=(
        (0.0, 120.0),
        (200.0, 120.0),
        (200.0, 280.0),
        (400.0, 280.0),
        (400.0, 120.0),
        (600.0, 120.0),
        (600.0, 400.0),
        (800.0, 400.0),
    ),
)


def load_map_json(path: str | Path) -> MapData:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"map root must be a JSON object: {p}")

    raw_path = data.get("path")
    if not isinstance(raw_path, list):
        raise ValueError(f"map 'path' must be a list of [x, y] points: {p}")
    points: list[tuple[float, float]] = []
    for point in raw_path:
        if not isinstance(point, (list, tuple)) or len(point) != 2:
            raise ValueError(f"invalid waypoint {point!r} in {p}")
        points.append((float(point[0]), float(point[1])))

    world = data.get("world", {}) or {}
    return MapData(
        name=str(data.get("name") or p.stem),
        width=int(world.get("width", DEFAULT_MAP.width)),
        height=int(world.get("height", DEFAULT_MAP.height)),
        grid=int(world.get("grid", DEFAULT_MAP.grid)),
        path=tuple(points),
    )
