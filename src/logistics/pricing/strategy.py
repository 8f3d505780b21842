"""Pricing strategies — pure cost functions selected by a strategy tag.

    base  = weight * rate_per_kg + distance_km * rate_per_km
    cost  = base * type_multiplier (+ insurance_value * 0.02 when insured)

Air is the most expensive per kg and per km, Sea the cheapest.
"""

from dataclasses import dataclass
from enum import Enum

INSURANCE_RATE = 0.02


class PricingStrategy(Enum):
    GROUND = "Ground"
    AIR = "Air"
    SEA = "Sea"


class ShipmentType(Enum):
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"


@dataclass(frozen=True)
class Rates:
    name: str
    per_kg: float
    per_km: float


RATES = {
    PricingStrategy.GROUND: Rates(name="Ground Standard", per_kg=0.5, per_km=0.8),
    PricingStrategy.AIR: Rates(name="Air Express", per_kg=2.5, per_km=1.5),
    PricingStrategy.SEA: Rates(name="Sea Freight", per_kg=0.1, per_km=0.2),
}

TYPE_MULTIPLIERS = {
    ShipmentType.STANDARD: 1.0,
    ShipmentType.EXPRESS: 1.5,
}


def base_price(strategy: PricingStrategy, weight: float, distance_km: float) -> float:
    rates = RATES[PricingStrategy(strategy)]
    return weight * rates.per_kg + distance_km * rates.per_km


def calculate_cost(
    strategy: PricingStrategy,
    weight: float,
    distance_km: float,
    shipment_type: ShipmentType = ShipmentType.STANDARD,
    insurance_value: float = 0.0,
    is_insured: bool = False,
) -> float:
    """Price a shipment with the given strategy."""
    cost = base_price(strategy, weight, distance_km) * TYPE_MULTIPLIERS[ShipmentType(shipment_type)]
    if is_insured:
        cost += (insurance_value or 0.0) * INSURANCE_RATE
    return cost


def strategy_name(strategy: PricingStrategy) -> str:
    return RATES[PricingStrategy(strategy)].name
