"""
Command results.

Nothing is thrown across the command boundary: every command and query
returns a ``CommandResult`` carrying either a value or a typed error.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar
from django.db import DatabaseError
import logging

from .exceptions import InventoryError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[InventoryError] = None
    operation: str = ""

    @classmethod
    def success(cls, value: Optional[T] = None, operation: str = "") -> "CommandResult[T]":
        return cls(ok=True, value=value, operation=operation)

    @classmethod
    def failure(cls, error: InventoryError, operation: str = "") -> "CommandResult[T]":
        return cls(ok=False, error=error, operation=operation)

    @property
    def kind(self) -> Optional[str]:
        """Error family: ``validation``, ``not_found``, ``conflict`` or ``store``."""
        return self.error.kind if self.error else None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    def unwrap(self) -> T:
        """Return the value, re-raising the carried error on failure."""
        if not self.ok:
            raise self.error
        return self.value


def capture(operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> CommandResult[T]:
    """
    Run ``func`` and convert its outcome into a ``CommandResult``.

    Domain errors become typed failures; low-level database errors are mapped
    to ``StoreError`` tagged with ``operation``.
    """
    try:
        value = func(*args, **kwargs)
    except InventoryError as exc:
        logger.info(f"{operation} rejected [{exc.code}]: {exc.message}")
        return CommandResult.failure(exc, operation)
    except DatabaseError as exc:
        logger.error(f"{operation} failed in store: {exc}", exc_info=True)
        return CommandResult.failure(StoreError(operation, exc), operation)
    return CommandResult.success(value, operation)
