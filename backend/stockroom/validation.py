"""
Input checks shared by the command layer.

Everything here runs on the caller's thread before a job is queued, so a
malformed command never reaches the store.
"""
from typing import Any, Optional
import uuid

from .config import engine_settings
from .exceptions import InvalidName, InvalidQuantity, ValidationError


def require_id(value: Any, field: str) -> uuid.UUID:
    """Coerce ``value`` to a UUID or raise ``ValidationError``."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field, code="INVALID_ID")
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        raise ValidationError(
            f"'{value}' is not a valid {field}", field=field, value=value, code="INVALID_ID"
        )


def optional_id(value: Any, field: str) -> Optional[uuid.UUID]:
    if value is None:
        return None
    return require_id(value, field)


def require_integer(value: Any, field: str = "quantity") -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"{field} must be a whole number, got {value!r}", value)
    return value


def require_quantity(value: Any, allow_zero: bool = False) -> int:
    quantity = require_integer(value)
    if quantity < 0:
        raise InvalidQuantity(f"Quantity cannot be negative: {quantity}", quantity)
    if quantity == 0 and not allow_zero:
        raise InvalidQuantity("Quantity must be greater than zero", quantity)
    return quantity


def clean_text(value: Any, field: str, max_length: int) -> str:
    """Strip ``value`` and check it is a non-empty string of bounded length."""
    if not isinstance(value, str):
        raise InvalidName(f"{field} must be text", field=field, value=value)
    cleaned = value.strip()
    if not cleaned:
        raise InvalidName(f"{field} cannot be empty", field=field, value=value)
    if len(cleaned) > max_length:
        raise InvalidName(
            f"{field} cannot exceed {max_length} characters", field=field, value=cleaned
        )
    return cleaned


def require_within_stock_limit(value: int, field: str = "quantity") -> int:
    """Reject base quantities the ledger columns cannot store."""
    ceiling = engine_settings.max_stock_quantity
    if abs(value) > ceiling:
        raise InvalidQuantity(f"{field} cannot exceed {ceiling} base units, got {value}", value)
    return value


def clean_query(value: Any, field: str = "query") -> str:
    """Search terms: None reads as blank, anything else must be text."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text", field=field, value=value)
    return value.strip()
