"""
Unit commands and queries.

Writes are validated on the caller's thread and then queued on the store's
single writer; each returns a future resolving to a ``CommandResult``.
Queries run on the caller's thread and return a ``CommandResult`` directly.
"""
from concurrent.futures import Future
from typing import Any, List, Optional
import logging

from stockroom.config import engine_settings
from stockroom.exceptions import (
    BaseUnitProtected,
    DuplicateConversion,
    DuplicateName,
    InvalidConversionFactor,
    UnitInUse,
    UnitNotFound,
    UnknownBaseUnit,
    ValidationError,
)
from stockroom.results import CommandResult
from stockroom.validation import (
    clean_query,
    clean_text,
    require_id,
    require_integer,
    require_within_stock_limit,
)

from measurements.models import Unit
from .registry import UnitRegistry

logger = logging.getLogger(__name__)


class UnitService:

    def __init__(self, store):
        self.store = store

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_unit(
        self,
        name: str,
        base_unit_symbol: str,
        conversion_factor: int,
        is_base_unit: bool = False,
    ) -> Future:
        """
        Register a unit. A base unit must have factor 1; any other unit must
        point at a symbol for which a base unit already exists.
        """
        operation = "add_unit"
        try:
            max_length = engine_settings.max_unit_name_length
            name = clean_text(name, "name", max_length)
            symbol = clean_text(base_unit_symbol, "base_unit_symbol", max_length)
            factor = UnitRegistry.validate_conversion_factor(conversion_factor)
            if is_base_unit and factor != 1:
                raise InvalidConversionFactor("A base unit must have a conversion factor of 1", factor)
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._add_unit, name, symbol, factor, bool(is_base_unit))

    def _add_unit(self, name, symbol, factor, is_base_unit):
        units = self.store.manager(Unit)

        if units.filter(name__iexact=name).exists():
            raise DuplicateName("Unit", name)

        if not is_base_unit and not units.filter(base_unit_symbol=symbol, is_base_unit=True).exists():
            raise UnknownBaseUnit(symbol)

        existing = units.filter(base_unit_symbol=symbol, conversion_factor=factor).first()
        if existing:
            raise DuplicateConversion(symbol, factor, existing.name)

        unit = units.create(
            id=self.store.new_id(),
            name=name,
            base_unit_symbol=symbol,
            conversion_factor=factor,
            is_base_unit=is_base_unit,
        )
        logger.info(f"Unit '{unit}' added")
        return unit.id

    def update_unit(
        self,
        unit_id: Any,
        name: Optional[str] = None,
        conversion_factor: Optional[int] = None,
    ) -> Future:
        """
        Rename a unit and/or change its factor. Ledger entries keep the factor
        they were written with, so history is unaffected by a new factor.
        """
        operation = "update_unit"
        try:
            unit_id = require_id(unit_id, "unit_id")
            if name is not None:
                name = clean_text(name, "name", engine_settings.max_unit_name_length)
            if conversion_factor is not None:
                conversion_factor = UnitRegistry.validate_conversion_factor(conversion_factor)
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._update_unit, unit_id, name, conversion_factor)

    def _update_unit(self, unit_id, name, conversion_factor):
        units = self.store.manager(Unit)
        unit = units.select_for_update().filter(pk=unit_id).first()
        if unit is None:
            raise UnitNotFound(unit_id)

        update_fields = []

        if name is not None and name != unit.name:
            if units.filter(name__iexact=name).exclude(pk=unit.pk).exists():
                raise DuplicateName("Unit", name)
            unit.name = name
            update_fields.append("name")

        if conversion_factor is not None and conversion_factor != unit.conversion_factor:
            if unit.is_base_unit:
                raise BaseUnitProtected(unit.name, "given a different conversion factor")
            existing = (
                units.filter(base_unit_symbol=unit.base_unit_symbol, conversion_factor=conversion_factor)
                .exclude(pk=unit.pk)
                .first()
            )
            if existing:
                raise DuplicateConversion(unit.base_unit_symbol, conversion_factor, existing.name)
            unit.conversion_factor = conversion_factor
            update_fields.append("conversion_factor")

        if update_fields:
            unit.save(using=self.store.alias, update_fields=update_fields + ["updated_at"])
            logger.info(f"Unit '{unit}' updated: {', '.join(update_fields)}")
        return unit

    def delete_unit(self, unit_id: Any) -> Future:
        operation = "delete_unit"
        try:
            unit_id = require_id(unit_id, "unit_id")
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._delete_unit, unit_id)

    def _delete_unit(self, unit_id):
        unit = self.store.manager(Unit).select_for_update().filter(pk=unit_id).first()
        if unit is None:
            raise UnitNotFound(unit_id)
        if unit.is_base_unit:
            raise BaseUnitProtected(unit.name, "deleted")

        product_count = unit.products.count()
        transaction_count = unit.stock_transactions.count()
        if product_count or transaction_count:
            raise UnitInUse(unit.name, product_count, transaction_count)

        unit.delete(using=self.store.alias)
        logger.info(f"Unit '{unit.name}' deleted")
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_units(self) -> CommandResult[List[Unit]]:
        return self.store.read("list_units", lambda: list(self.store.manager(Unit).all()))

    def search_units(self, query: str) -> CommandResult[List[Unit]]:
        def _search():
            term = clean_query(query).casefold()
            units = list(self.store.manager(Unit).all())
            if not term:
                return units
            # sqlite's LIKE only folds ASCII case
            return [
                unit for unit in units
                if term in unit.name.casefold() or term in unit.base_unit_symbol.casefold()
            ]

        return self.store.read("search_units", _search)

    def units_for_base(self, base_unit_symbol: str) -> CommandResult[List[Unit]]:
        return self.store.read(
            "units_for_base",
            lambda: UnitRegistry.load(self.store).units_for_base(base_unit_symbol),
        )

    def get_unit(self, unit_id: Any) -> CommandResult[Unit]:
        def _get():
            key = require_id(unit_id, "unit_id")
            return UnitRegistry.load(self.store, [key]).resolve(key)

        return self.store.read("get_unit", _get)

    def convert_to_base(self, quantity: int, unit_id: Any) -> CommandResult[int]:
        def _convert():
            require_integer(quantity)
            key = require_id(unit_id, "unit_id")
            base_quantity = UnitRegistry.load(self.store, [key]).convert_to_base(quantity, key)
            return require_within_stock_limit(base_quantity)

        return self.store.read("convert_to_base", _convert)

    def convert_from_base(self, base_quantity: int, unit_id: Any) -> CommandResult[int]:
        def _convert():
            require_integer(base_quantity)
            key = require_id(unit_id, "unit_id")
            return UnitRegistry.load(self.store, [key]).convert_from_base(base_quantity, key)

        return self.store.read("convert_from_base", _convert)
