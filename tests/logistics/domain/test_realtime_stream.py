"""Tests for the server-sent-events subscriber connection."""

import asyncio
import json

from logistics.realtime.bus import EventBus
from logistics.realtime.stream import SubscriberConnection


def _payload(frame: str) -> dict:
    assert frame.startswith("data: ")
    return json.loads(frame[len("data: ") :].strip())


def _collect(connection, count, on_frame=None):
    """Run the frame generator until ``count`` frames arrive or it ends."""

    async def run():
        frames = []
        stream = connection.frames()
        try:
            async for frame in stream:
                frames.append(frame)
                if on_frame is not None:
                    on_frame(len(frames))
                if len(frames) >= count:
                    break
        finally:
            await stream.aclose()
        return frames

    return asyncio.run(run())


class TestFrames:
    def test_first_frame_is_connected(self):
        bus = EventBus()
        frames = _collect(SubscriberConnection(bus, keepalive_seconds=5), 1)
        assert _payload(frames[0])["type"] == "connected"

    def test_streams_published_events(self):
        bus = EventBus()

        def publish(seen):
            if seen == 1:
                bus.shipment_update({"id": "shp-1", "status": "DELIVERED"})
                bus.vehicle_update({"id": "veh-1"})

        frames = _collect(SubscriberConnection(bus, keepalive_seconds=5), 3, publish)
        assert [_payload(f)["type"] for f in frames] == ["connected", "shipment_update", "vehicle_update"]
        assert _payload(frames[1])["data"] == {"id": "shp-1", "status": "DELIVERED"}

    def test_quiet_stream_sends_ping(self):
        bus = EventBus()
        frames = _collect(SubscriberConnection(bus, keepalive_seconds=0.01), 2)
        assert _payload(frames[1])["type"] == "ping"

    def test_closing_the_stream_unsubscribes(self):
        bus = EventBus()
        connection = SubscriberConnection(bus, keepalive_seconds=5)
        _collect(connection, 1)
        assert len(bus) == 0
        assert connection.closed


class TestOverflow:
    def test_slow_subscriber_is_disconnected(self):
        bus = EventBus()
        connection = SubscriberConnection(bus, keepalive_seconds=5, max_pending=2)

        def flood(seen):
            if seen == 1:
                for i in range(3):
                    bus.shipment_update({"id": f"shp-{i}"})

        frames = _collect(connection, 10, flood)
        assert [_payload(f)["data"].get("id") for f in frames[1:]] == ["shp-0", "shp-1"]
        assert connection.closed
        assert len(bus) == 0

    def test_events_after_close_are_refused(self):
        bus = EventBus()
        connection = SubscriberConnection(bus, keepalive_seconds=5)
        connection.close()
        received = []
        bus.subscribe("all", received.append)
        bus.shipment_update({"id": "shp-1"})
        assert connection.pending == 0
        assert len(received) == 1
