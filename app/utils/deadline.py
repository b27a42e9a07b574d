"""
CoNekt — Deadline racing for awaitables.

``run_with_deadline`` races an awaitable against a timeout and returns a
tagged result instead of raising, so callers branch on the outcome::

    outcome = await run_with_deadline(generate(), timeout=5.0)
    if isinstance(outcome, Completed):
        use(outcome.value)
    else:
        use(fallback)

On timeout the underlying task is cancelled and any late result discarded.
Exceptions raised by the awaitable itself propagate unchanged.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Completed(Generic[T]):
    value: T
    elapsed_ms: float


@dataclass(frozen=True)
class TimedOut:
    timeout_seconds: float


DeadlineResult = Union[Completed[T], TimedOut]


async def run_with_deadline(
    awaitable: Awaitable[T],
    timeout: float,
) -> DeadlineResult[T]:
    start = time.monotonic()
    try:
        value = await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        return TimedOut(timeout_seconds=timeout)
    return Completed(
        value=value,
        elapsed_ms=round((time.monotonic() - start) * 1000, 2),
    )
