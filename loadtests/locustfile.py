"""Locust entry point for Fleetline load tests.

Seeds a starting fleet so the first shipments have carriers, then lets
Locust discover the user classes imported below.

Usage:
    locust -f loadtests/locustfile.py                      # web UI, all users
    locust -f loadtests/locustfile.py MixedWorkloadUser    # baseline
    locust -f loadtests/locustfile.py ShipmentFloodUser    # saturation
    locust -f loadtests/locustfile.py MixedWorkloadUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import os
import time

import requests
from locust import events

from loadtests.data_generators import vehicle_data
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.mixed import MixedWorkloadUser  # noqa: F401
from loadtests.scenarios.stress import ShipmentFloodUser, SpikeUser  # noqa: F401

logger = logging.getLogger("loadtest")

SEED_FLEET = {"DRONE": 10, "TRUCK": 10, "SHIP": 2}


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log the API's error detail for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, extract_error_detail(response))


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')} against {environment.host}")
    if os.getenv("LOADTEST_SKIP_SEED"):
        return

    provisioned = 0
    for vehicle_type, count in SEED_FLEET.items():
        for _ in range(count):
            try:
                resp = requests.post(f"{environment.host}/vehicles", json=vehicle_data(vehicle_type), timeout=5)
            except requests.RequestException as e:
                logger.warning("Fleet seeding stopped: %s", e)
                return
            if resp.status_code == 201:
                provisioned += 1
            else:
                logger.warning("Could not provision %s: %s", vehicle_type, extract_error_detail(resp))
    print(f"[LOADTEST] Seeded {provisioned} vehicles\n")


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Print the fleet snapshot when the test ends."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    try:
        resp = requests.get(f"{environment.host}/simulation", timeout=5)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Could not fetch simulation status: %s", e)
        return
    status = resp.json()
    print(f"[LOADTEST] Active deliveries: {status['active_deliveries']}")
    print(f"[LOADTEST] Vehicles in fleet: {len(status['vehicles'])}\n")
