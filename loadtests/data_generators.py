"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules
(weight above zero, coordinates in range, origin differing from destination)
and match the field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

# Hubs spread across continents so every pricing strategy gets exercised.
_HUBS = [
    {"lat": 40.7128, "lng": -74.0060, "city": "New York", "country": "US"},
    {"lat": 34.0522, "lng": -118.2437, "city": "Los Angeles", "country": "US"},
    {"lat": 41.8781, "lng": -87.6298, "city": "Chicago", "country": "US"},
    {"lat": 51.5074, "lng": -0.1278, "city": "London", "country": "GB"},
    {"lat": 35.6762, "lng": 139.6503, "city": "Tokyo", "country": "JP"},
    {"lat": -33.8688, "lng": 151.2093, "city": "Sydney", "country": "AU"},
]

# ---------- Users ----------


def valid_email() -> str:
    local = fake.user_name()[:20]
    domain = fake.free_email_domain()
    return f"{local}.{uuid.uuid4().hex[:4]}@{domain}"


def user_data(role: str = "CUSTOMER") -> dict:
    """Generate RegisterUserRequest payload."""
    payload = {
        "name": fake.name()[:100],
        "email": valid_email(),
        "role": role,
        "phone": fake.phone_number()[:30],
    }
    if role in ("DRIVER", "CAPTAIN"):
        payload["license_number"] = f"LIC-{uuid.uuid4().hex[:8].upper()}"
    return payload


# ---------- Locations ----------


def hub_location() -> dict:
    hub = random.choice(_HUBS)
    return {**hub, "address": fake.street_address()[:255]}


def nearby_location(origin: dict, max_offset_deg: float = 2.0) -> dict:
    """A point a few hundred kilometres from ``origin``, same country."""
    return {
        "lat": round(origin["lat"] + random.uniform(0.1, max_offset_deg), 4),
        "lng": round(origin["lng"] + random.uniform(0.1, max_offset_deg), 4),
        "city": fake.city()[:100],
        "country": origin.get("country"),
        "address": fake.street_address()[:255],
    }


def route(long_haul: bool | None = None) -> tuple[dict, dict]:
    """Generate an (origin, destination) pair.

    Long-haul routes join two different hubs; short routes stay near one.
    """
    if long_haul is None:
        long_haul = random.random() < 0.3
    origin = hub_location()
    if long_haul:
        destination = hub_location()
        while destination["city"] == origin["city"]:
            destination = hub_location()
        return origin, destination
    return origin, nearby_location(origin)


# ---------- Shipments ----------


def parcel_weight() -> float:
    """Mostly light parcels, occasionally freight beyond a drone's reach."""
    if random.random() < 0.7:
        return round(random.uniform(0.5, 45.0), 1)
    return round(random.uniform(50.0, 4000.0), 1)


def shipment_data(customer_id: str, long_haul: bool | None = None) -> dict:
    """Generate CreateShipmentRequest payload."""
    origin, destination = route(long_haul)
    payload = {
        "customer_id": customer_id,
        "weight": parcel_weight(),
        "origin": origin,
        "destination": destination,
        "urgency": random.choices(["low", "standard", "high", "critical"], weights=[2, 5, 2, 1])[0],
        "shipment_type": random.choices(["STANDARD", "EXPRESS"], weights=[4, 1])[0],
    }
    if random.random() < 0.2:
        payload["insurance_value"] = round(random.uniform(100.0, 5000.0), 2)
    return payload


def payment_data(max_amount: float = 500.0) -> dict:
    return {
        "amount": round(random.uniform(10.0, max_amount), 2),
        "method": random.choice(["card", "bank_transfer", "wallet"]),
    }


def note_data() -> dict:
    return {"note": fake.sentence(nb_words=8)}


def signature_data() -> dict:
    return {"signature": fake.name()[:100]}


def cancellation_reason() -> dict:
    return {
        "reason": random.choice(
            [
                "Customer changed their mind",
                "Duplicate request",
                "Address could not be verified",
            ]
        )
    }


# ---------- Vehicles ----------


def vehicle_data(vehicle_type: str | None = None) -> dict:
    """Generate ProvisionVehicleRequest payload at a random hub."""
    vehicle_type = vehicle_type or random.choices(["DRONE", "TRUCK", "SHIP"], weights=[4, 5, 1])[0]
    return {"vehicle_type": vehicle_type, "position": hub_location()}
