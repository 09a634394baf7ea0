"""
Termination conditions for planner runs.

A termination condition is any zero-argument callable returning True once the run
should stop. The planner polls it once per iteration; nothing is interrupted mid
iteration.
"""

import threading
import time
from typing import Callable, Union

TerminationCondition = Callable[[], bool]


def timed(seconds: float, clock: Callable[[], float] = time.monotonic) -> TerminationCondition:
    """Stop once `seconds` have elapsed since this call."""
    deadline = clock() + float(seconds)

    def condition() -> bool:
        return clock() >= deadline

    return condition


def iteration_limit(count: int) -> TerminationCondition:
    """Allow `count` iterations of a loop that polls before each iteration."""
    if count < 0:
        raise ValueError("count must be >= 0")
    polls = [0]

    def condition() -> bool:
        polls[0] += 1
        return polls[0] > count

    return condition


def any_of(*conditions: TerminationCondition) -> TerminationCondition:
    """Stop as soon as one of the conditions does. Every condition is polled each time."""

    def condition() -> bool:
        fired = [c() for c in conditions]
        return any(fired)

    return condition


class CancellationFlag:
    """Thread-safe flag another thread can set to stop a running solve()."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


def as_condition(value: Union[TerminationCondition, float, int]) -> TerminationCondition:
    """Accept a callable as-is; treat a number as a time budget in seconds."""
    if callable(value):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timed(float(value))
    raise TypeError(f"Cannot build a termination condition from {value!r}")
