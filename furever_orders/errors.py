"""Exceptions raised by the order lifecycle service."""


class OrderServiceError(Exception):
    """Base exception for all order service errors."""

    status_code = 500


class ValidationError(OrderServiceError):
    """Raised when a request payload is malformed."""

    status_code = 400


class NotFoundError(OrderServiceError):
    """Raised when a referenced order, notification, product or user doesn't exist."""

    status_code = 404

    def __init__(self, entity: str, ref: str):
        self.entity = entity
        self.ref = ref
        super().__init__(f"{entity} not found: {ref}")


class InvalidTransitionError(OrderServiceError):
    """Raised when a status change isn't allowed from the order's current status."""

    status_code = 409

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}")


class PermissionDenied(OrderServiceError):
    """Raised when the caller may not act on another user's resources."""

    status_code = 403


class DependencyFailure(OrderServiceError):
    """Raised when the mail transport or event bus fails.

    Never reaches an HTTP caller: notification delivery is best-effort.
    """

    def __init__(self, dependency: str, reason: str):
        self.dependency = dependency
        self.reason = reason
        super().__init__(f"{dependency} failed: {reason}")
