from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class Coalescer:
    """
    Debounce with fan-out.

    Every call re-arms a single timer `delay_ms` ahead. When the timer finally
    fires, `fn` runs once with the arguments of the most recent call and every
    caller collected since the previous firing gets that one result (or that
    one exception). Calls made after the firing start a new batch.

    State is confined to the running event loop; no locking is needed as long
    as the coalescer is only awaited from one loop.
    """

    def __init__(self, fn: Callable[..., Any], delay_ms: float) -> None:
        self.fn = fn
        self.delay_ms = delay_ms
        self._timer: Optional[asyncio.TimerHandle] = None
        self._waiters: List[asyncio.Future] = []
        self._args: Tuple[Any, ...] = ()
        self._kwargs: Dict[str, Any] = {}
        self._running: Optional[asyncio.Lock] = None
        self._inflight: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._waiters.append(waiter)
        self._args, self._kwargs = args, kwargs

        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(max(self.delay_ms, 0) / 1000.0, self._fire)
        return await waiter

    def _fire(self) -> None:
        waiters, self._waiters = self._waiters, []
        args, kwargs = self._args, self._kwargs
        self._timer = None

        task = asyncio.get_running_loop().create_task(self._run(waiters, args, kwargs))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run(self, waiters: List[asyncio.Future], args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> None:
        if self._running is None:
            self._running = asyncio.Lock()

        # one underlying call at a time; a batch that fires early waits its turn
        async with self._running:
            logger.debug("coalescer(%sms): running once for %d caller(s)", self.delay_ms, len(waiters))
            try:
                result = self.fn(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                for waiter in waiters:
                    if not waiter.done():
                        waiter.set_exception(exc)
                return

        # abandoned callers already hold a cancelled future
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(result)

    def cancel(self) -> None:
        """Drop the pending timer and cancel callers still waiting for it."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for waiter in self._waiters:
            if not waiter.done():
                waiter.cancel()
        self._waiters = []

    async def aclose(self) -> None:
        self.cancel()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)


def coalesce(fn: Callable[..., Awaitable[Any]], delay_ms: float) -> Coalescer:
    return Coalescer(fn, delay_ms)


class CoalescerRegistry:
    """
    One `Coalescer` around `fn` per distinct delay, created on first use and
    shared by every caller that asks for the same delay.
    """

    def __init__(self, fn: Callable[..., Awaitable[Any]]) -> None:
        self.fn = fn
        self._by_delay: Dict[float, Coalescer] = {}

    def get(self, delay_ms: float) -> Coalescer:
        coalescer = self._by_delay.get(delay_ms)
        if coalescer is None:
            coalescer = coalesce(self.fn, delay_ms)
            self._by_delay[delay_ms] = coalescer
        return coalescer

    def reset(self) -> None:
        for coalescer in self._by_delay.values():
            coalescer.cancel()
        self._by_delay.clear()

    async def aclose(self) -> None:
        coalescers = list(self._by_delay.values())
        self._by_delay.clear()
        for coalescer in coalescers:
            await coalescer.aclose()

    def __len__(self) -> int:
        return len(self._by_delay)

    def __contains__(self, delay_ms: object) -> bool:
        return delay_ms in self._by_delay
