"""
Domain errors raised by the storefront services.

Every error maps to one HTTP status and a machine-readable code so the API
layer can render them uniformly. None of them are transient; callers should
not retry.
"""
from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base class for all expected business failures."""

    status_code: int = 400
    code: str = "ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(StorefrontError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", {"entity": entity.lower(), "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStock(StorefrontError):
    status_code = 409
    code = "OUT_OF_STOCK"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            "Insufficient stock",
            {"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidCoupon(StorefrontError):
    """Coupon rejected; ``reason`` is one of the validator's reason strings."""

    status_code = 400
    code = "INVALID_COUPON"

    def __init__(self, reason: str, message: Optional[str] = None, coupon_code: Optional[str] = None):
        super().__init__(message or f"Invalid coupon: {reason}", {"reason": reason, "coupon_code": coupon_code})
        self.reason = reason
        self.coupon_code = coupon_code


class ConflictError(StorefrontError):
    status_code = 409
    code = "CONFLICT"


class InvalidStatusTransition(StorefrontError):
    status_code = 409
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move order from '{current}' to '{requested}'",
            {"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class NotAuthenticated(StorefrontError):
    status_code = 401
    code = "NOT_AUTHENTICATED"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class NotAuthorized(StorefrontError):
    status_code = 403
    code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class InvalidRequest(StorefrontError):
    """Well-formed request that breaks a business rule (e.g. a 150% coupon)."""

    status_code = 422
    code = "INVALID"
