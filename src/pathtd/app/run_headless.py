from __future__ import annotations
from pathlib import Path
import argparse
import logging

from pathtd.ai.obs import candidate_cells
from pathtd.core.config import load_session_config
from pathtd.core.engine import Engine
from pathtd.core.model.map import DEFAULT_MAP, load_map_json
from pathtd.core.model.towers import list_tower_defs
from pathtd.core.rules.placement import check_placement


def _auto_build(engine: Engine, cells: list[tuple[int, int]]) -> None:
    """Spend money on the priciest affordable unlocked kind, first free cell in scan order."""
    state = engine.state
    for tower_def in sorted(list_tower_defs(), key=lambda d: d.cost, reverse=True):
        for x, y in cells:
            if check_placement(state, engine.map, x, y, tower_def.kind) == "ok":
                engine.request_placement((x, y), tower_def.kind)
                return


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--map", default=None, help="Path to a map json (default: built-in map)")
    ap.add_argument("--config", default=None, help="Session config json")
    ap.add_argument("--set", action="append", default=None, help="Config override, e.g. session.starting_money=500")
    ap.add_argument("--seconds", type=float, default=60.0)
    ap.add_argument("--auto-build", action="store_true", help="Place towers greedily every simulated second")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_session_config(args.config, args.set)
    map_arg = args.map or config.map
    map_data = load_map_json(Path(map_arg)) if map_arg else DEFAULT_MAP

    engine = Engine(map_data, config)
    engine.start_session()
    cells = candidate_cells(map_data) if args.auto_build else []

    frames_per_second = max(1, int(round(1000.0 / config.frame_ms)))
    ticks = int(args.seconds * frames_per_second)
    defeated = 0
    for i in range(ticks):
        if args.auto_build and i % frames_per_second == 0:
            _auto_build(engine, cells)
        engine.tick()
        defeated += sum(1 for event in engine.drain_events() if event.kind == "enemy_defeated")
        if engine.state.game_over:
            break

    s = engine.state
    print(
        f"phase={s.phase} wave={s.wave} money={s.money} lives={s.lives} "
        f"towers={len(s.towers)} enemies={len(s.enemies)} defeated={defeated} ticks={s.tick}"
    )
    if s.summary:
        print(f"summary reason={s.summary['reason']!r} waves_survived={s.summary['waves_survived']}")
    engine.teardown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
