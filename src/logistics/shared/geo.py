"""Planar geometry helpers over (lat, lng) pairs.

Distances are Euclidean in degrees, optionally scaled to kilometres with a flat
111 km/degree factor. This is not geodesic; simulation speeds and prices are
calibrated against the planar figure, so it must stay planar.
"""

import math

KM_PER_DEGREE = 111.0


def planar_distance(origin, destination) -> float:
    """Euclidean distance in degrees between two objects exposing ``lat``/``lng``."""
    lat_diff = destination.lat - origin.lat
    lng_diff = destination.lng - origin.lng
    return math.sqrt(lat_diff * lat_diff + lng_diff * lng_diff)


def distance_km(origin, destination) -> float:
    return planar_distance(origin, destination) * KM_PER_DEGREE


def bearing(origin, destination) -> float:
    """Planar heading in degrees, 0 = north, clockwise."""
    lat_diff = destination.lat - origin.lat
    lng_diff = destination.lng - origin.lng
    return math.degrees(math.atan2(lng_diff, lat_diff)) % 360.0


def step_toward(origin, destination, speed: float) -> tuple[float, float]:
    """Advance ``speed`` degrees along the straight line from origin to destination.

    Moves by the fraction ``speed / distance`` of the remaining vector. Callers
    are expected to snap to the destination once within arrival range, so the
    distance here is always positive.
    """
    distance = planar_distance(origin, destination)
    if distance == 0:
        return destination.lat, destination.lng
    ratio = speed / distance
    new_lat = origin.lat + (destination.lat - origin.lat) * ratio
    new_lng = origin.lng + (destination.lng - origin.lng) * ratio
    return new_lat, new_lng
