"""
Domain exceptions for the stock ledger.

Every exception carries a machine-readable code, a human-readable message and
a details dict. ``kind`` names the taxonomy bucket the error belongs to, which
the API layer uses to pick the HTTP status and callers use to decide whether a
retry makes sense.
"""

from typing import Any


class PartStockError(Exception):
    """Base exception for all ledger errors."""

    kind: str = "PartStockError"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(PartStockError):
    """Input validation failed. Raised before any write."""

    kind = "ValidationError"

    def __init__(self, field: str, message: str, value: Any = None, code: str | None = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code=code or "VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """Quantity is not a positive integer."""

    def __init__(self, value: Any, reason: str = "must be a positive integer"):
        super().__init__(
            field="quantity",
            message=reason,
            value=value,
            code="INVALID_QUANTITY",
        )


class InvalidOperationTypeError(ValidationError):
    """Movement type is not one of the supported operations."""

    def __init__(self, value: Any, allowed: list[str]):
        super().__init__(
            field="transaction_type",
            message=f"must be one of {', '.join(allowed)}",
            value=value,
            code="INVALID_OPERATION_TYPE",
        )
        self.details["allowed"] = allowed


# Not Found Exceptions
class NotFoundError(PartStockError):
    """Referenced record does not exist."""

    kind = "NotFoundError"


class PartNotFoundError(NotFoundError):
    """Part not found in storage."""

    def __init__(self, part_id: int | str):
        super().__init__(
            f"Part not found: {part_id}",
            code="PART_NOT_FOUND",
            details={"part_id": part_id},
        )


class AlertNotFoundError(NotFoundError):
    """Reorder alert not found in storage."""

    def __init__(self, alert_id: int):
        super().__init__(
            f"Reorder alert not found: {alert_id}",
            code="ALERT_NOT_FOUND",
            details={"alert_id": alert_id},
        )


# Business Rule Exceptions
class BusinessRuleViolation(PartStockError):
    """Request is well-formed but breaks an inventory rule."""

    kind = "BusinessRuleViolation"


class InsufficientStockError(BusinessRuleViolation):
    """Requested quantity exceeds stock on hand."""

    def __init__(self, part_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for part {part_id}: requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={"part_id": part_id, "requested": requested, "available": available},
        )


class InvalidStockPolicyError(BusinessRuleViolation):
    """Stock thresholds are inconsistent."""

    def __init__(self, min_stock_level: int, max_stock_level: int):
        super().__init__(
            "Maximum stock level must be greater than minimum stock level "
            f"(min={min_stock_level}, max={max_stock_level})",
            code="INVALID_STOCK_POLICY",
            details={"min_stock_level": min_stock_level, "max_stock_level": max_stock_level},
        )


class PartInactiveError(BusinessRuleViolation):
    """Part has been soft-deleted and no longer accepts movements."""

    def __init__(self, part_id: int):
        super().__init__(
            f"Part {part_id} is inactive",
            code="PART_INACTIVE",
            details={"part_id": part_id},
        )


class DuplicatePartNumberError(BusinessRuleViolation):
    """Another part already uses this part number."""

    def __init__(self, part_number: str):
        super().__init__(
            f"Part number already exists: {part_number}",
            code="DUPLICATE_PART_NUMBER",
            details={"part_number": part_number},
        )


class InvalidAlertTransitionError(BusinessRuleViolation):
    """Operator action is not allowed from the alert's current status."""

    def __init__(self, alert_id: int | None, current: str, target: str):
        super().__init__(
            f"Cannot move alert {alert_id} from {current} to {target}",
            code="INVALID_ALERT_TRANSITION",
            details={"alert_id": alert_id, "current": current, "target": target},
        )


# Concurrency Exceptions
class ConcurrencyError(PartStockError):
    """Concurrent writers collided on the same record."""

    kind = "ConcurrencyError"


class VersionConflictError(ConcurrencyError):
    """Record changed between read and conditional write. Retried internally."""

    def __init__(self, entity: str, entity_id: int | None, expected_version: int | None):
        super().__init__(
            f"{entity} {entity_id} was modified concurrently (expected version {expected_version})",
            code="VERSION_CONFLICT",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "expected_version": expected_version,
            },
        )


class DatabaseBusyError(ConcurrencyError):
    """Write lock could not be taken within the busy timeout. Retried internally."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database busy during {operation}: {error}",
            code="DATABASE_BUSY",
            details={"operation": operation, "error": error},
        )


class ConcurrentModificationError(ConcurrencyError):
    """Conflicts persisted after all retries were used."""

    def __init__(self, part_id: int, attempts: int):
        super().__init__(
            f"Stock for part {part_id} is being modified concurrently; gave up after {attempts} attempts",
            code="CONCURRENT_MODIFICATION_CONFLICT",
            details={"part_id": part_id, "attempts": attempts},
        )


# Storage Exceptions
class StorageError(PartStockError):
    """Base exception for storage operations."""

    kind = "StorageError"


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class StorageTimeoutError(StorageError):
    """Storage did not confirm the operation in time. Outcome is not applied."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"{operation} timed out after {timeout}s and was rolled back; "
            "re-check part state before retrying",
            code="STORAGE_TIMEOUT",
            details={"operation": operation, "timeout": timeout},
        )


class ConfigurationError(PartStockError):
    """Configuration error."""

    pass
