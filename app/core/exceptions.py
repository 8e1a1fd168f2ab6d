"""
Domain Errors

Failures raised by the delivery service. Raising inside a write rolls the
transaction back, so a failed operation never leaves partial changes behind.
The HTTP layer renders them as the standard error envelope.
"""


class FoodDeliveryError(Exception):
    """Base class for domain failures that carry a caller-facing message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FoodDeliveryError):
    """A required field was empty or malformed."""

    status_code = 400


class NotFoundError(FoodDeliveryError):
    """A referenced record is absent from its collection."""

    status_code = 404
