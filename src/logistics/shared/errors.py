"""Domain error taxonomy.

Validation-class errors extend Protean's ``ValidationError`` and carry the usual
``{"field": [message]}`` payload, so callers that already handle
``ValidationError`` keep working. Not-found errors extend ``ObjectNotFoundError``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


# ---------------------------------------------------------------------------
# Validation family
# ---------------------------------------------------------------------------
class InvalidTransitionError(ValidationError):
    """A status change that is not an edge of the lifecycle graph."""


class CapacityExceededError(ValidationError):
    """The vehicle cannot carry the shipment's weight."""


class NegativeValueError(ValidationError):
    pass


class AlreadyInTransitError(ValidationError):
    """The shipment has moved past PENDING."""


class EmptyNoteError(ValidationError):
    pass


class NonPositiveAmountError(ValidationError):
    pass


class RefundExceedsOriginalError(ValidationError):
    pass


class NotYetDeliveredError(ValidationError):
    pass


class ProcessingStartedError(ValidationError):
    pass


class TimeInPastError(ValidationError):
    pass


class OperatorUnavailableError(ValidationError):
    """The shipment is taken or the operator is busy with another delivery."""


class NotPermittedError(ValidationError):
    """The user's role does not allow the requested fleet operation."""


# ---------------------------------------------------------------------------
# Not-found family
# ---------------------------------------------------------------------------
class PaymentNotFoundError(ObjectNotFoundError):
    pass


class CustomerNotFoundError(ObjectNotFoundError):
    pass


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
class TransientStoreError(Exception):
    """Connection-class persistence failure; safe to retry."""


class DispatchUnavailableError(Exception):
    """The asynchronous job path is not configured in this environment."""


class JobHandoffError(Exception):
    """The job executor refused or failed to accept a job."""
