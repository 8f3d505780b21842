"""In-process publish/subscribe hub for real-time notifications.

Delivery is best-effort and at-most-once with no replay. Subscribers are
called synchronously, in registration order, on the publisher's thread. A
subscriber whose callback raises is closed and dropped; the publisher never
sees the error.

Shipment, assignment and new-shipment events go to the "shipments" channel,
vehicle events to "vehicles". Stats reach everyone. Subscribers of "all"
receive every event.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from logistics.realtime.events import RealtimeEvent, RealtimeEventType, make_event

logger = structlog.get_logger(__name__)

ALL_CHANNEL = "all"
SHIPMENTS_CHANNEL = "shipments"
VEHICLES_CHANNEL = "vehicles"

Callback = Callable[[RealtimeEvent], None]


@dataclass(eq=False)
class _Subscription:
    channel: str
    callback: Callback
    active: bool = True


class EventBus:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[_Subscription] = []

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    def subscribe(self, channel: str, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` on ``channel`` and return its unsubscribe function."""
        subscription = _Subscription(channel=channel or ALL_CHANNEL, callback=callback)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscriber added", channel=subscription.channel, subscribers=len(self))

        def unsubscribe() -> None:
            self._remove(subscription)

        return unsubscribe

    def _remove(self, subscription: _Subscription) -> None:
        with self._lock:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def subscriber_count(self, channel: str | None = None) -> int:
        with self._lock:
            if channel is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.channel == channel)

    def __len__(self) -> int:
        return self.subscriber_count()

    # -------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------
    def emit(self, channel: str, event: RealtimeEvent) -> int:
        """Deliver to subscribers of ``channel`` and of the global channel."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.channel in (channel, ALL_CHANNEL)]
        return self._deliver(targets, event)

    def broadcast(self, event: RealtimeEvent) -> int:
        """Deliver to every subscriber exactly once."""
        with self._lock:
            targets = list(self._subscriptions)
        return self._deliver(targets, event)

    def _deliver(self, targets: list[_Subscription], event: RealtimeEvent) -> int:
        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.callback(event)
                delivered += 1
            except Exception as exc:
                logger.warning(
                    "Dropping failed subscriber",
                    channel=subscription.channel,
                    event_type=event.type.value,
                    error=str(exc),
                )
                self._remove(subscription)
        return delivered

    # -------------------------------------------------------------------
    # Convenience publishers
    # -------------------------------------------------------------------
    def shipment_update(self, data: dict) -> int:
        return self.emit(SHIPMENTS_CHANNEL, make_event(RealtimeEventType.SHIPMENT_UPDATE, data))

    def vehicle_update(self, data: dict) -> int:
        return self.emit(VEHICLES_CHANNEL, make_event(RealtimeEventType.VEHICLE_UPDATE, data))

    def new_shipment(self, data: dict) -> int:
        return self.emit(SHIPMENTS_CHANNEL, make_event(RealtimeEventType.NEW_SHIPMENT, data))

    def assignment_update(self, data: dict) -> int:
        return self.emit(SHIPMENTS_CHANNEL, make_event(RealtimeEventType.ASSIGNMENT_UPDATE, data))

    def stats_update(self, data: dict | None = None) -> int:
        return self.broadcast(make_event(RealtimeEventType.STATS_UPDATE, data or {"refresh": True}))
