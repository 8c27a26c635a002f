"""
Bounded polling primitives used instead of fixed sleeps

Both helpers take `clock` and `sleep` so tests can drive them deterministically.
"""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Union

Probe = Callable[[], Union[Any, Awaitable[Any]]]

_UNSET = object()


async def _call(fn: Probe) -> Any:
    result = fn()
    if inspect.isawaitable(result):
        result = await result
    return result


async def poll_until(predicate: Probe, timeout: float, interval: float = 0.25,
                     clock: Callable[[], float] = time.monotonic,
                     sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> bool:
    """Return True as soon as predicate() is truthy, False once timeout elapses"""
    deadline = clock() + timeout
    while True:
        if await _call(predicate):
            return True
        if clock() >= deadline:
            return False
        await sleep(interval)


async def wait_until_stable(probe: Probe, timeout: float, interval: float = 0.5,
                            settle_rounds: int = 2,
                            clock: Callable[[], float] = time.monotonic,
                            sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> bool:
    """
    Poll probe() until it returns the same value settle_rounds times in a row

    Returns False if the value was still changing when timeout elapsed.
    """
    deadline = clock() + timeout
    last = _UNSET
    unchanged = 0
    while True:
        value = await _call(probe)
        if value == last:
            unchanged += 1
            if unchanged >= settle_rounds:
                return True
        else:
            unchanged = 0
            last = value
        if clock() >= deadline:
            return False
        await sleep(interval)
