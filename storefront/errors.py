"""Domain exceptions for storefront.

Each error carries the HTTP status code the API answers with; ``main.py``
installs a single handler that renders them.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message}


class NotFoundError(StorefrontError):
    """Raised when a variation, tier, order or cart line doesn't exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with ID {resource_id} not found")


class BadRequestError(StorefrontError):
    """Raised when input is well-formed but violates a business rule."""

    status_code = 400


class ConflictError(StorefrontError):
    """Raised when a request collides with existing state."""

    status_code = 409


class InsufficientStockError(StorefrontError):
    """Raised when one or more lines can't be covered by current stock.

    ``problems`` lists every shortage, not only the first one found.
    """

    status_code = 400

    def __init__(self, problems: list[dict], message: str | None = None):
        self.problems = problems
        if message is None:
            names = ", ".join(p["productName"] for p in problems)
            message = f"Insufficient stock for: {names}"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": "INSUFFICIENT_STOCK",
            "message": self.message,
            "problems": self.problems,
        }


class PaymentGatewayError(StorefrontError):
    """Raised when the payment gateway is unreachable or answers with an error."""

    status_code = 502

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Payment gateway {operation} failed: {reason}")
