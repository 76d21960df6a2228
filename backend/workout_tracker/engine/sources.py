"""Position sources, subscriptions and the tick timer.

Everything here runs on a single asyncio event loop: timer callbacks and
position callbacks are plain functions invoked by the loop, so they never
overlap and the session needs no locking. Cancelling a handle is
synchronous; once `cancel()` returns no further callback is delivered.
"""

import asyncio
from typing import Callable, Iterable, Optional, Protocol

from loguru import logger

from workout_tracker.engine.session import PositionSample

PositionCallback = Callable[[PositionSample], None]


class LocationUnavailableError(Exception):
    """The device refused or failed to start location updates. Retryable."""


class Subscription(Protocol):
    def cancel(self) -> None: ...


class PositionSource(Protocol):
    async def subscribe(self, callback: PositionCallback) -> Subscription: ...


class PeriodicTicker:
    """Calls `callback` every `interval` seconds on the running loop."""

    def __init__(self, interval: float, callback: Callable[[], None], loop=None):
        self.interval = interval
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Reschedule first so a slow callback does not stretch the period
        self._schedule()
        self._callback()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class _CallbackSubscription:
    def __init__(self, source: "PushPositionSource", callback: PositionCallback):
        self._source = source
        self._callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._source._callbacks.remove(self._callback)


class PushPositionSource:
    """Source fed by the caller, e.g. an HTTP endpoint receiving device fixes."""

    def __init__(self):
        self._callbacks: list[PositionCallback] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    async def subscribe(self, callback: PositionCallback) -> _CallbackSubscription:
        self._callbacks.append(callback)
        return _CallbackSubscription(self, callback)

    def push(self, sample: PositionSample) -> int:
        """Deliver a sample to current subscribers; returns how many got it."""
        delivered = 0
        for cb in list(self._callbacks):
            cb(sample)
            delivered += 1
        return delivered


class _ReplaySubscription:
    def __init__(self):
        self.handles: list[asyncio.TimerHandle] = []
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        for h in self.handles:
            h.cancel()
        self.handles.clear()


class ReplayPositionSource:
    """Replays recorded samples on the event loop.

    Samples are spaced by their timestamps when every sample has one,
    otherwise by `interval` seconds. `speedup` divides all delays.
    Each subscription replays from the first sample not yet delivered, so a
    paused-then-resumed session continues where it left off.
    """

    def __init__(self, samples: Iterable[PositionSample], interval: float = 3.0, speedup: float = 1.0):
        if speedup <= 0:
            raise ValueError("speedup must be > 0")
        self.samples = list(samples)
        self.interval = interval
        self.speedup = speedup
        self._next = 0

    @property
    def exhausted(self) -> bool:
        return self._next >= len(self.samples)

    def _offsets(self) -> list[float]:
        if self.samples and all(s.timestamp is not None for s in self.samples):
            t0 = self.samples[0].timestamp
            return [(s.timestamp - t0).total_seconds() for s in self.samples]
        return [i * self.interval for i in range(len(self.samples))]

    async def subscribe(self, callback: PositionCallback) -> _ReplaySubscription:
        loop = asyncio.get_running_loop()
        sub = _ReplaySubscription()
        offsets = self._offsets()
        if self.exhausted:
            logger.debug("Replay source exhausted; nothing to deliver")
            return sub
        base = offsets[self._next]

        def deliver(idx: int) -> None:
            if sub.cancelled:
                return
            self._next = idx + 1
            callback(self.samples[idx])

        for idx in range(self._next, len(self.samples)):
            delay = max(0.0, (offsets[idx] - base) / self.speedup)
            sub.handles.append(loop.call_later(delay, deliver, idx))
        return sub
