"""Logistics bounded context — Shipment lifecycle, Fleet simulation, and Live tracking.

Owns shipments from request through vehicle assignment, dispatch and delivery, the
fleet of vehicles that carry them, and the real-time feed observers subscribe to.
Uses CQRS because the lifecycle is linear and the simulation owns vehicle movement.
"""

from protean.domain import Domain

logistics = Domain(name="logistics")
