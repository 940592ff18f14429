"""
Centralized engine configuration using the Singleton pattern.
This module provides a single point of access to the tunables of the stock
ledger, unit registry and category tree, so business logic never reads
``django.conf.settings`` directly.
"""

from typing import Optional, Any, Dict, Tuple
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "MAX_CATEGORY_LEVEL": 4,
    "CATEGORY_SEARCH_LIMIT": 20,
    "MAX_CATEGORY_NAME_LENGTH": 100,
    "MAX_ICON_URL_LENGTH": 500,
    "MAX_UNIT_NAME_LENGTH": 50,
    "MAX_CONVERSION_FACTOR": 1_000_000,
    # Largest value a BigIntegerField column can hold
    "MAX_STOCK_QUANTITY": 2**63 - 1,
    "DEFAULT_BASE_UNITS": ("pcs", "gr"),
    "TRANSACTION_PAGE_SIZE": 50,
    "TRANSACTION_RETENTION_DAYS": 365,
    "WRITER_EAGER": False,
}

POSITIVE_INTEGER_KEYS = (
    "CATEGORY_SEARCH_LIMIT",
    "MAX_CATEGORY_NAME_LENGTH",
    "MAX_ICON_URL_LENGTH",
    "MAX_UNIT_NAME_LENGTH",
    "MAX_CONVERSION_FACTOR",
    "MAX_STOCK_QUANTITY",
    "TRANSACTION_PAGE_SIZE",
    "TRANSACTION_RETENTION_DAYS",
)


class EngineSettings:
    """
    A LAZY singleton class that provides centralized access to engine settings.
    It defers reading ``settings.STOCKROOM`` until the first option is accessed,
    so importing service modules never requires configured settings.
    """

    _instance: Optional["EngineSettings"] = None
    _initialized: bool = False

    def __new__(cls) -> "EngineSettings":
        """
        Implement the singleton pattern to ensure only one instance exists.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """
        Initialization is deferred to the first attribute access.
        """
        pass

    def _setup(self):
        """
        The actual loading method. Called only once until ``reload()``.
        """
        if not self._initialized:
            self.load_settings()
            self._initialized = True

    def __getattr__(self, name: str) -> Any:
        """
        Lazily loads settings on first access, then retrieves the attribute.
        """
        if not self._initialized:
            self._setup()

        # After setup the option lives in __dict__; this prevents infinite
        # recursion for options that truly don't exist.
        try:
            return self.__dict__[name.lower()]
        except KeyError:
            raise AttributeError(f"'EngineSettings' object has no attribute '{name}'")

    def load_settings(self) -> None:
        """
        Merge ``settings.STOCKROOM`` over the defaults and validate the result.
        """
        overrides = getattr(settings, "STOCKROOM", {}) or {}
        unknown = set(overrides) - set(DEFAULTS)
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown STOCKROOM options: {', '.join(sorted(unknown))}"
            )

        merged = {**DEFAULTS, **overrides}

        max_level = merged["MAX_CATEGORY_LEVEL"]
        if not isinstance(max_level, int) or max_level < 0:
            raise ImproperlyConfigured("STOCKROOM['MAX_CATEGORY_LEVEL'] must be a non-negative integer")

        for key in POSITIVE_INTEGER_KEYS:
            value = merged[key]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ImproperlyConfigured(f"STOCKROOM['{key}'] must be a positive integer")

        if merged["MAX_STOCK_QUANTITY"] > DEFAULTS["MAX_STOCK_QUANTITY"]:
            raise ImproperlyConfigured(
                "STOCKROOM['MAX_STOCK_QUANTITY'] cannot exceed the 64-bit integer ceiling"
            )

        base_units: Tuple[str, ...] = tuple(merged["DEFAULT_BASE_UNITS"])
        if not base_units or any(not symbol or not str(symbol).strip() for symbol in base_units):
            raise ImproperlyConfigured("STOCKROOM['DEFAULT_BASE_UNITS'] must list at least one symbol")
        merged["DEFAULT_BASE_UNITS"] = base_units
        merged["WRITER_EAGER"] = bool(merged["WRITER_EAGER"])

        for key, value in merged.items():
            self.__dict__[key.lower()] = value

    def reload(self) -> None:
        """
        Re-read the settings. Called when ``STOCKROOM`` changes at runtime.
        """
        for key in DEFAULTS:
            self.__dict__.pop(key.lower(), None)
        self._initialized = False
        self._setup()
        logger.info("EngineSettings reloaded")

    def as_dict(self) -> Dict[str, Any]:
        if not self._initialized:
            self._setup()
        return {key: self.__dict__[key.lower()] for key in DEFAULTS}


engine_settings = EngineSettings()
