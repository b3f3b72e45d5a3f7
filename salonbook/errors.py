"""Error taxonomy shared by the services and mapped to HTTP responses in main.py"""


class ConfigurationError(Exception):
    """A backend collaborator is missing its credentials; raised before any network call"""


class RemoteOperationError(Exception):
    """The data store or the payment processor reported a failure"""


class PaymentCreationError(RemoteOperationError):
    """Persisting a new payment record failed"""


class PaymentVerificationError(Exception):
    """The processor does not report the payment as settled for the expected amount"""


class NotFoundError(Exception):
    """A record the caller asked for does not exist"""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


class PermissionDeniedError(Exception):
    """The caller can see the record but may not perform this action on it"""


class SlotUnavailableError(Exception):
    """The requested time window overlaps an active booking"""


class InvalidStatusTransitionError(Exception):
    """A booking cannot move from its current status to the requested one"""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change booking status from '{current}' to '{requested}'")


class PromotionNotApplicableError(Exception):
    """A promotion failed one of its eligibility rules"""


class InvalidPromotionError(Exception):
    """A promotion update would leave the promotion inconsistent"""
