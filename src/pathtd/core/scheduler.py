from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(slots=True)
class Timer:
    name: str
    interval_ms: float
    remaining_ms: float
    repeat: bool
    callback: Callable[[], None]


class Scheduler:
    """
    Named timer table advanced by simulated time.

    Timers only fire from `advance`, which the engine calls at the top of a
    tick, so every phase transition is applied whole before the tick's
    simulation pass reads the state. Scheduling under an existing name
    replaces that timer.
    """

    def __init__(self) -> None:
        self._timers: dict[str, Timer] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._timers

    def __len__(self) -> int:
        return len(self._timers)

    def schedule(self, name: str, delay_ms: float, callback: Callable[[], None], *, repeat: bool = False) -> Timer:
        if delay_ms <= 0:
            raise ValueError(f"timer {name!r} needs a positive delay, got {delay_ms}")
        timer = Timer(name=name, interval_ms=float(delay_ms), remaining_ms=float(delay_ms), repeat=repeat, callback=callback)
        self._timers[name] = timer
        return timer

    def cancel(self, name: str) -> bool:
        return self._timers.pop(name, None) is not None

    def cancel_all(self) -> None:
        self._timers.clear()

    def remaining_ms(self, name: str) -> float | None:
        timer = self._timers.get(name)
        return None if timer is None else timer.remaining_ms

    def names(self) -> list[str]:
        return list(self._timers)

    def advance(self, dt_ms: float) -> None:
        if dt_ms <= 0:
            return
        for name in list(self._timers):
            timer = self._timers.get(name)
            if timer is None:
                continue
            timer.remaining_ms -= dt_ms
            while timer.remaining_ms <= 0:
                if not timer.repeat:
                    del self._timers[name]
                timer.callback()
                # The callback may have cancelled or replaced this timer.
                if not timer.repeat or self._timers.get(name) is not timer:
                    break
                timer.remaining_ms += timer.interval_ms
