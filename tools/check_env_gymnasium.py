import argparse
from pathlib import Path
import random

import gymnasium as gym
from gymnasium.utils.env_checker import check_env

from pathtd.ai.env import PathTDEnv
from pathtd.core.config import load_session_config
from pathtd.core.model.map import DEFAULT_MAP, load_map_json


def _choose_action(mask, rng: random.Random) -> int:
    valid = [idx for idx, allowed in enumerate(mask) if bool(allowed)]
    if not valid:
        raise RuntimeError("No valid actions available")
    return rng.choice(valid)


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--map", default=None, help="Path to a map json (default: built-in map)")
    ap.add_argument("--config", default=None, help="Session config json")
    ap.add_argument("--seed", type=int, default=123)
    ap.add_argument("--steps", type=int, default=200)
    ap.add_argument("--frames-per-step", type=int, default=30)
    args = ap.parse_args()

    map_data = load_map_json(Path(args.map)) if args.map else DEFAULT_MAP
    env = PathTDEnv(
        map_data=map_data,
        config=load_session_config(args.config),
        frames_per_step=args.frames_per_step,
    )
    check_env(env, skip_render_check=True)
    assert isinstance(env.action_space, gym.spaces.Discrete)

    rng = random.Random(args.seed)
    env.reset(seed=args.seed)
    episodes = 0
    for step_idx in range(args.steps):
        action = _choose_action(env.action_masks(), rng)
        _, _, terminated, truncated, info = env.step(action)
        if terminated or truncated:
            episodes += 1
            print(f"episode {episodes} ended at step {step_idx} wave={info['wave']} money={info['money']}")
            env.reset(seed=args.seed + step_idx + 1)
    print(f"ok: {args.steps} steps, {episodes} finished episodes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
