"""
Error taxonomy for the inventory core.

Four families are surfaced to callers: validation failures, unknown ids,
conflicts with a domain invariant, and failures of the underlying store.
Every error carries a stable ``code`` that callers can branch on and a
human-readable ``message`` suitable for a retryable UI notice.
"""

from typing import Optional, Any, Dict


class InventoryError(Exception):
    """Base exception for all inventory core errors."""

    kind = "error"
    default_code = "INVENTORY_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


# ============================================================================
# VALIDATION
# ============================================================================

class ValidationError(InventoryError):
    """Malformed or out-of-range input, rejected before any store access."""

    kind = "validation"
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, code: Optional[str] = None):
        super().__init__(
            message=message,
            code=code,
            details={"field": field, "value": str(value) if value is not None else None}
        )
        self.field = field


class InvalidQuantity(ValidationError):
    default_code = "INVALID_QUANTITY"

    def __init__(self, message: str, value: Any = None):
        super().__init__(message, field="quantity", value=value)


class InvalidConversionFactor(ValidationError):
    default_code = "INVALID_CONVERSION_FACTOR"

    def __init__(self, message: str, value: Any = None):
        super().__init__(message, field="conversion_factor", value=value)


class InvalidName(ValidationError):
    default_code = "INVALID_NAME"


class InvalidIconUrl(ValidationError):
    default_code = "INVALID_ICON_URL"

    def __init__(self, message: str, value: Any = None):
        super().__init__(message, field="icon_url", value=value)


class UnknownBaseUnit(ValidationError):
    default_code = "UNKNOWN_BASE_UNIT"

    def __init__(self, symbol: str):
        super().__init__(
            f"No base unit exists for symbol '{symbol}'",
            field="base_unit_symbol",
            value=symbol,
        )


# ============================================================================
# NOT FOUND
# ============================================================================

class NotFoundError(InventoryError):
    """Raised when a unit, category or product id is unknown."""

    kind = "not_found"
    default_code = "NOT_FOUND"
    entity_type = "Entity"

    def __init__(self, entity_id: Any):
        super().__init__(
            message=f"{self.entity_type} with id '{entity_id}' not found",
            details={"entity_type": self.entity_type, "entity_id": str(entity_id)}
        )
        self.entity_id = entity_id


class UnitNotFound(NotFoundError):
    default_code = "UNIT_NOT_FOUND"
    entity_type = "Unit"


class CategoryNotFound(NotFoundError):
    default_code = "CATEGORY_NOT_FOUND"
    entity_type = "Category"


class ProductNotFound(NotFoundError):
    default_code = "PRODUCT_NOT_FOUND"
    entity_type = "Product"


# ============================================================================
# CONFLICTS
# ============================================================================

class ConflictError(InventoryError):
    """Raised when a command would break a domain invariant."""

    kind = "conflict"
    default_code = "CONFLICT"


class InsufficientStock(ConflictError):
    default_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: Any, requested: int, available: int):
        super().__init__(
            message=f"Insufficient stock for product '{product_id}'. "
                    f"Requested: {requested}, Available: {available}",
            details={
                "product_id": str(product_id),
                "requested": requested,
                "available": available,
            }
        )
        self.requested = requested
        self.available = available


class DuplicateName(ConflictError):
    default_code = "DUPLICATE_NAME"

    def __init__(self, entity_type: str, name: str):
        super().__init__(
            message=f"{entity_type} named '{name}' already exists",
            details={"entity_type": entity_type, "name": name}
        )


class DuplicateConversion(ConflictError):
    default_code = "DUPLICATE_CONVERSION"

    def __init__(self, base_unit_symbol: str, conversion_factor: int, existing_name: str):
        super().__init__(
            message=f"Unit '{existing_name}' already converts to {conversion_factor} {base_unit_symbol}",
            details={
                "base_unit_symbol": base_unit_symbol,
                "conversion_factor": conversion_factor,
                "existing_name": existing_name,
            }
        )


class MaxDepthReached(ConflictError):
    default_code = "MAX_DEPTH_REACHED"

    def __init__(self, level: int, max_level: int):
        super().__init__(
            message=f"Cannot add a category at level {level}; the deepest level is {max_level}",
            details={"level": level, "max_level": max_level}
        )


class HasChildren(ConflictError):
    default_code = "HAS_CHILDREN"

    def __init__(self, category_id: Any, child_count: int):
        super().__init__(
            message=f"Category '{category_id}' still has {child_count} subcategories",
            details={"category_id": str(category_id), "child_count": child_count}
        )


class CategoryHasProducts(ConflictError):
    default_code = "CATEGORY_HAS_PRODUCTS"

    def __init__(self, category_id: Any, product_count: int):
        super().__init__(
            message=f"Category '{category_id}' classifies {product_count} products "
                    f"and cannot receive subcategories",
            details={"category_id": str(category_id), "product_count": product_count}
        )


class CategoryNotSelectable(ConflictError):
    default_code = "CATEGORY_NOT_SELECTABLE"

    def __init__(self, category_id: Any):
        super().__init__(
            message=f"Category '{category_id}' has subcategories; only leaf categories can classify products",
            details={"category_id": str(category_id)}
        )


class IncompatibleUnits(ConflictError):
    default_code = "INCOMPATIBLE_UNITS"

    def __init__(self, unit_name: str, base_unit_symbol: str, expected_symbol: str):
        super().__init__(
            message=f"Unit '{unit_name}' measures {base_unit_symbol}, but this product is counted in {expected_symbol}",
            details={
                "unit_name": unit_name,
                "base_unit_symbol": base_unit_symbol,
                "expected_symbol": expected_symbol,
            }
        )


class UnitInUse(ConflictError):
    default_code = "UNIT_IN_USE"

    def __init__(self, unit_name: str, product_count: int, transaction_count: int):
        super().__init__(
            message=f"Unit '{unit_name}' is still referenced by {product_count} products "
                    f"and {transaction_count} stock transactions",
            details={
                "unit_name": unit_name,
                "product_count": product_count,
                "transaction_count": transaction_count,
            }
        )


class BaseUnitProtected(ConflictError):
    default_code = "BASE_UNIT_PROTECTED"

    def __init__(self, unit_name: str, action: str):
        super().__init__(
            message=f"Base unit '{unit_name}' cannot be {action}",
            details={"unit_name": unit_name, "action": action}
        )


# ============================================================================
# STORE
# ============================================================================

class StoreError(InventoryError):
    """Underlying persistence failure, tagged with the failed operation."""

    kind = "store"
    default_code = "STORE_ERROR"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(
            message=f"{operation} failed: {cause}" if cause else f"{operation} failed",
            details={"operation": operation, "cause": type(cause).__name__ if cause else None}
        )
        self.operation = operation
        self.cause = cause
