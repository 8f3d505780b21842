"""Server-sent-events adapter over an ``EventBus`` subscription.

``SubscriberConnection.frames()`` is an async generator suitable for a
streaming response. It yields a ``connected`` frame, then every event the bus
delivers, and a ``ping`` frame whenever the keep-alive interval passes
quietly. Closing or cancelling the generator unsubscribes from the bus.
"""

import asyncio
import threading
from collections import deque

import structlog

from logistics.realtime.bus import ALL_CHANNEL, EventBus
from logistics.realtime.events import RealtimeEvent, RealtimeEventType, make_event

logger = structlog.get_logger(__name__)


class SubscriberOverflowError(Exception):
    """The subscriber fell too far behind and is being disconnected."""


class SubscriberConnection:
    def __init__(
        self,
        bus: EventBus,
        channel: str = ALL_CHANNEL,
        keepalive_seconds: float = 30.0,
        max_pending: int = 100,
    ) -> None:
        self.bus = bus
        self.channel = channel or ALL_CHANNEL
        self.keepalive_seconds = keepalive_seconds
        self.max_pending = max_pending
        self.closed = False
        self._pending: deque[RealtimeEvent] = deque()
        self._guard = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None
        self._unsubscribe = None

    @property
    def pending(self) -> int:
        with self._guard:
            return len(self._pending)

    def _on_event(self, event: RealtimeEvent) -> None:
        # Runs on the publisher's thread
        with self._guard:
            if self.closed:
                raise SubscriberOverflowError("Connection already closed")
            if len(self._pending) >= self.max_pending:
                self.closed = True
                overflow = True
            else:
                self._pending.append(event)
                overflow = False
        self._notify()
        if overflow:
            raise SubscriberOverflowError(f"More than {self.max_pending} undelivered events")

    def _notify(self) -> None:
        if self._loop is not None and self._wakeup is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._wakeup.set)

    def _pop(self) -> RealtimeEvent | None:
        with self._guard:
            return self._pending.popleft() if self._pending else None

    def close(self) -> None:
        with self._guard:
            self.closed = True
            self._pending.clear()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.debug("Subscriber disconnected", channel=self.channel)

    async def frames(self):
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        self._unsubscribe = self.bus.subscribe(self.channel, self._on_event)
        try:
            yield make_event(RealtimeEventType.CONNECTED, {"channel": self.channel}).to_frame()
            while True:
                self._wakeup.clear()
                event = self._pop()
                while event is not None:
                    yield event.to_frame()
                    event = self._pop()
                if self.closed:
                    break
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.keepalive_seconds)
                except TimeoutError:
                    yield make_event(RealtimeEventType.PING).to_frame()
        finally:
            self.close()
