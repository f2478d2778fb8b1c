from __future__ import annotations


# Park-Miller minimal standard generator, stored on the session.
_MODULUS = 0x7FFFFFFF
_MULTIPLIER = 16807


def normalize_seed(seed: int | None) -> int:
    if seed is None:
        return 1
    seed_val = int(seed) & _MODULUS
    return seed_val if seed_val != 0 else 1


def seed_state(state, seed: int | None) -> int:
    seed_val = normalize_seed(seed)
    setattr(state, "rng_state", seed_val)
    return seed_val


def get_state_seed(state) -> int:
    return int(getattr(state, "rng_state", 1))


def rand_float(state) -> float:
    """Uniform value in [0, 1)."""
    value = (get_state_seed(state) * _MULTIPLIER) % _MODULUS
    state.rng_state = value
    return (value - 1) / (_MODULUS - 1)

