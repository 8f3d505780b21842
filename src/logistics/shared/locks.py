"""Per-entity locks serializing writers of the same Shipment or Vehicle."""

import threading
from contextlib import ExitStack, contextmanager


def entity_key(kind: str, identifier) -> str:
    return f"{kind}:{identifier}"


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class EntityLocks:
    """Registry of re-entrant locks keyed by ``"<kind>:<id>"``.

    ``hold`` acquires several keys in sorted order so that two writers touching
    the same pair of entities cannot deadlock. Writers on unrelated entities
    never contend.

    Entries are reference counted: a key is dropped as soon as its last holder
    or waiter leaves, so the registry only contains entities being written.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _Entry] = {}

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _Entry()
                self._locks[key] = entry
            entry.holders += 1
            return entry

    def _checkin(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str):
        with ExitStack() as stack:
            for key in sorted({k for k in keys if k}):
                entry = self._checkout(key)
                stack.callback(self._checkin, key, entry)
                entry.lock.acquire()
                stack.callback(entry.lock.release)
            yield

    def shipment(self, shipment_id) -> str:
        return entity_key("shipment", shipment_id) if shipment_id else ""

    def vehicle(self, vehicle_id) -> str:
        return entity_key("vehicle", vehicle_id) if vehicle_id else ""

    def operator(self, user_id) -> str:
        return entity_key("operator", user_id) if user_id else ""

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
