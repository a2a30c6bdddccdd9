"""
Typed Exception Hierarchy for the Supply-Chain Order Service.

Every error carries a machine-readable ``code`` and structured attributes so
callers catch by type and the API layer renders a stable payload:

    SCMError (base)
    |
    +-- NotFoundError                 NOT_FOUND            -> 404
    |   +-- SupplierNotFoundError
    |   +-- ProductNotFoundError
    |   +-- OrderNotFoundError
    |
    +-- InvalidInputError             INVALID_INPUT        -> 400
    |   +-- InvalidQuantityError
    |   +-- EmptyOrderError
    |   +-- InvalidStatusError
    |   +-- InsufficientStockError
    |   +-- ConflictError             CONFLICT             -> 409
    |       +-- EntityInUseError
    |       +-- IntegrityConflictError
    |
    +-- TransactionFailureError       TRANSACTION_FAILURE  -> 503 (retryable)

Only ``TransactionFailureError`` is retryable; the caller decides whether to
retry. Not-found and invalid-input conditions are never retried.
"""

from typing import Any, Dict, Optional
from uuid import UUID


class SCMError(Exception):
    """Base exception for all service errors."""

    code: str = "SCM_ERROR"
    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation used by the API error handlers."""
        return {"error": self.code, "detail": self.message}


# =============================================================================
# NOT FOUND
# =============================================================================

class NotFoundError(SCMError):
    """A referenced supplier, product or order does not exist."""

    code = "NOT_FOUND"
    entity = "Entity"

    def __init__(self, entity_id: Any):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["entity"] = self.entity
        payload["entity_id"] = str(self.entity_id)
        return payload


class SupplierNotFoundError(NotFoundError):
    entity = "Supplier"


class ProductNotFoundError(NotFoundError):
    entity = "Product"


class OrderNotFoundError(NotFoundError):
    entity = "Order"


# =============================================================================
# INVALID INPUT
# =============================================================================

class InvalidInputError(SCMError):
    """The request is malformed; raised before any state is touched."""

    code = "INVALID_INPUT"


class InvalidQuantityError(InvalidInputError):
    """Order line quantity is not a positive integer."""

    def __init__(self, quantity: Any, product_id: Optional[UUID] = None):
        self.quantity = quantity
        self.product_id = product_id
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}")


class EmptyOrderError(InvalidInputError):
    """Order has no lines."""

    def __init__(self):
        super().__init__("Order must contain at least one line")


class InvalidStatusError(InvalidInputError):
    """Status value is not one of the enumerated order statuses."""

    def __init__(self, status: Any):
        self.status = status
        super().__init__(f"Unrecognized order status: {status!r}")


class InsufficientStockError(InvalidInputError):
    """Reversing a completed order would drive on-hand quantity below zero."""

    def __init__(self, product_id: UUID, on_hand: int, delta: int):
        self.product_id = product_id
        self.on_hand = on_hand
        self.delta = delta
        super().__init__(
            f"Stock adjustment of {delta} would leave product {product_id} "
            f"below zero (on hand: {on_hand})"
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["product_id"] = str(self.product_id)
        payload["on_hand"] = self.on_hand
        payload["delta"] = self.delta
        return payload


class ConflictError(InvalidInputError):
    """The request contradicts stored data; repeating it cannot succeed."""

    code = "CONFLICT"


class EntityInUseError(ConflictError):
    """A supplier or product cannot be deleted while orders reference it."""

    def __init__(self, entity: str, entity_id: Any, referenced_by: str):
        self.entity = entity
        self.entity_id = entity_id
        self.referenced_by = referenced_by
        super().__init__(f"{entity} {entity_id} is still referenced by {referenced_by}")

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["entity"] = self.entity
        payload["entity_id"] = str(self.entity_id)
        payload["referenced_by"] = self.referenced_by
        return payload


class IntegrityConflictError(ConflictError):
    """A write violated a uniqueness or foreign-key constraint."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Constraint violated during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["operation"] = self.operation
        return payload


# =============================================================================
# TRANSACTION FAILURE
# =============================================================================

class TransactionFailureError(SCMError):
    """The unit of work for an order mutation could not be committed."""

    code = "TRANSACTION_FAILURE"
    retryable = True

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Transaction failed during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["operation"] = self.operation
        payload["retryable"] = True
        return payload
