"""Mixed logistics workload scenario.

Combines shipment and fleet journeys with weights that model a busy
dispatch floor. This is the recommended scenario for load baseline testing.
"""

from locust import HttpUser, between

from loadtests.scenarios.fleet import FleetOperatorJourney
from loadtests.scenarios.shipments import (
    ShipmentCancellationJourney,
    ShipmentDeliveryJourney,
    ShipmentPaymentJourney,
)


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    Weight distribution:

    Shipments (80%):
    - Delivery lifecycle: most common
    - Payments and refunds: frequent
    - Cancellation: occasional

    Fleet (20%):
    - Provisioning and simulation ticks, which move in-transit shipments
      toward delivery and publish position updates to SSE subscribers
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        ShipmentDeliveryJourney: 8,
        ShipmentPaymentJourney: 5,
        ShipmentCancellationJourney: 3,
        FleetOperatorJourney: 4,
    }
