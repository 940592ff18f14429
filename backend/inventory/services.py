"""
Stock ledger commands and queries.

Every stock mutation is one job on the store's single writer and one
database transaction. Inside it the product row is locked, the current
stock is read, the ledger entry is appended and the running total is
updated, so a removal can never be checked against a stale quantity.
"""
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional
import logging

from django.db.models import Count, F, Sum
from django.utils import timezone

from catalog.models import Product
from measurements.models import Unit
from measurements.services import UnitRegistry
from stockroom.config import engine_settings
from stockroom.exceptions import (
    IncompatibleUnits,
    InsufficientStock,
    ProductNotFound,
    ValidationError,
)
from stockroom.results import CommandResult
from stockroom.validation import (
    require_id,
    require_integer,
    require_quantity,
    require_within_stock_limit,
)

from .models import StockTransaction

logger = logging.getLogger(__name__)

TransactionType = StockTransaction.TransactionType


@dataclass(frozen=True)
class TransactionPage:
    items: List[StockTransaction]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total

    @property
    def next_offset(self) -> Optional[int]:
        return self.offset + len(self.items) if self.has_more else None


@dataclass(frozen=True)
class UnitStockSummary:
    """Net base-unit change recorded through one unit."""
    unit_id: Any
    unit_name: str
    transaction_count: int
    net_change: int


@dataclass(frozen=True)
class StockReconciliation:
    product_id: Any
    recorded_quantity: int
    archived_balance: int
    ledger_total: int
    transaction_count: int

    @property
    def expected_quantity(self) -> int:
        return self.archived_balance + self.ledger_total

    @property
    def discrepancy(self) -> int:
        return self.recorded_quantity - self.expected_quantity

    @property
    def is_consistent(self) -> bool:
        return self.discrepancy == 0


def _clean_notes(notes) -> str:
    if notes is None:
        return ""
    if not isinstance(notes, str):
        raise ValidationError("Notes must be text", field="notes", value=notes)
    return notes.strip()


def _require_datetime(value, name: str) -> datetime:
    if not isinstance(value, datetime):
        raise ValidationError(f"{name} must be a datetime", field=name, value=value)
    if timezone.is_naive(value):
        raise ValidationError(f"{name} must be timezone-aware", field=name, value=value)
    return value


def _check_compatible(product: Product, unit: Unit) -> None:
    if product.unit is not None and not product.unit.is_compatible_with(unit):
        raise IncompatibleUnits(unit.name, unit.base_unit_symbol, product.unit.base_unit_symbol)


class StockService:

    def __init__(self, store):
        self.store = store

    def _transactions(self):
        return self.store.manager(StockTransaction)

    def _get_product(self, product_id, lock: bool = False) -> Product:
        products = self.store.manager(Product).select_related("unit")
        if lock:
            products = products.select_for_update()
        product = products.filter(pk=product_id).first()
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def _resolve_unit(self, unit_id) -> Unit:
        return UnitRegistry.load(self.store, [unit_id]).resolve(unit_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_stock(self, product_id: Any, quantity: int, unit_id: Any, notes: str = "") -> Future:
        """Record ``quantity`` units received. Resolves to the new ledger entry."""
        return self._submit("add_stock", TransactionType.ADD, product_id, quantity, unit_id, notes)

    def remove_stock(self, product_id: Any, quantity: int, unit_id: Any, notes: str = "") -> Future:
        """
        Record ``quantity`` units leaving stock. Fails with ``InsufficientStock``
        when the converted quantity exceeds the current stock.
        """
        return self._submit("remove_stock", TransactionType.REMOVE, product_id, quantity, unit_id, notes)

    def adjust_stock(self, product_id: Any, quantity: int, unit_id: Any, notes: str = "") -> Future:
        """
        Set the stock to ``quantity`` units after a physical count.

        The target is reduced against the current stock when the job runs and
        stored as a signed delta, so the ledger always sums to current stock.
        """
        return self._submit("adjust_stock", TransactionType.ADJUST, product_id, quantity, unit_id, notes)

    def _submit(self, operation, transaction_type, product_id, quantity, unit_id, notes) -> Future:
        try:
            product_id = require_id(product_id, "product_id")
            quantity = require_quantity(quantity, allow_zero=transaction_type == TransactionType.ADJUST)
            require_within_stock_limit(quantity)
            unit_id = require_id(unit_id, "unit_id")
            notes = _clean_notes(notes)
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(
            operation, self._record, transaction_type, product_id, quantity, unit_id, notes
        )

    def _record(self, transaction_type, product_id, quantity, unit_id, notes) -> StockTransaction:
        product = self._get_product(product_id, lock=True)
        unit = self._resolve_unit(unit_id)
        _check_compatible(product, unit)

        base_quantity = require_within_stock_limit(unit.to_base(quantity))
        previous_quantity = product.stock_quantity

        if transaction_type == TransactionType.ADD:
            quantity_change = base_quantity
        elif transaction_type == TransactionType.REMOVE:
            if base_quantity > previous_quantity:
                raise InsufficientStock(product.pk, base_quantity, previous_quantity)
            quantity_change = -base_quantity
        else:
            quantity_change = base_quantity - previous_quantity

        new_quantity = require_within_stock_limit(previous_quantity + quantity_change, "new stock")
        entry = self._transactions().create(
            id=self.store.new_id(),
            product=product,
            transaction_type=transaction_type,
            quantity_in_base_unit=abs(quantity_change),
            quantity_change=quantity_change,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            original_quantity=quantity,
            original_conversion_factor=unit.conversion_factor,
            unit=unit,
            timestamp=self.store.now(),
            notes=notes,
        )

        product.stock_quantity = new_quantity
        product.save(using=self.store.alias, update_fields=["stock_quantity", "updated_at"])

        logger.info(
            f"{transaction_type.label} for '{product.name}': {quantity} {unit.name} "
            f"({quantity_change:+d} base), stock {previous_quantity} -> {new_quantity}"
        )
        return entry

    def purge_transactions(self, older_than: datetime) -> Future:
        """
        Delete ledger entries written before ``older_than``.

        Their net change is folded into each product's ``archived_balance``
        first, so current stock and reconciliation are unaffected. Resolves
        to the number of entries removed.
        """
        operation = "purge_transactions"
        try:
            older_than = _require_datetime(older_than, "older_than")
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._purge, older_than)

    def _purge(self, older_than) -> int:
        expired = self._transactions().filter(timestamp__lt=older_than)
        totals = expired.order_by().values("product_id").annotate(net=Sum("quantity_change"))

        products = self.store.manager(Product)
        for row in totals:
            products.filter(pk=row["product_id"]).update(
                archived_balance=F("archived_balance") + row["net"]
            )

        deleted, _ = expired.delete()
        if deleted:
            logger.info(f"Purged {deleted} stock transactions older than {older_than.isoformat()}")
        return deleted

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_stock(self, product_id: Any) -> CommandResult[int]:
        """Current stock in base units."""
        return self.store.read(
            "get_stock",
            lambda: self._get_product(require_id(product_id, "product_id")).stock_quantity,
        )

    def get_stock_in_unit(self, product_id: Any, unit_id: Any) -> CommandResult[int]:
        """Current stock expressed in ``unit_id``, truncated toward zero."""
        def _in_unit():
            product_key = require_id(product_id, "product_id")
            unit_key = require_id(unit_id, "unit_id")
            product = self._get_product(product_key)
            unit = self._resolve_unit(unit_key)
            _check_compatible(product, unit)
            return unit.from_base(product.stock_quantity)

        return self.store.read("get_stock_in_unit", _in_unit)

    def check_availability(self, product_id: Any, quantity: int, unit_id: Any) -> CommandResult[bool]:
        """
        Whether ``quantity`` units could be removed right now. Advisory only:
        ``remove_stock`` performs the authoritative check when it runs.
        """
        def _available():
            product_key = require_id(product_id, "product_id")
            wanted = require_quantity(quantity)
            unit_key = require_id(unit_id, "unit_id")
            product = self._get_product(product_key)
            unit = self._resolve_unit(unit_key)
            _check_compatible(product, unit)
            return unit.to_base(wanted) <= product.stock_quantity

        return self.store.read("check_availability", _available)

    def list_transactions(self, product_id: Any, limit: Optional[int] = None, offset: int = 0) -> CommandResult[TransactionPage]:
        """One page of a product's ledger, newest first."""
        def _page():
            key = require_id(product_id, "product_id")
            size = engine_settings.transaction_page_size if limit is None else require_integer(limit, "limit")
            start = require_integer(offset, "offset")
            if size <= 0:
                raise ValidationError("limit must be greater than zero", field="limit", value=size)
            if start < 0:
                raise ValidationError("offset cannot be negative", field="offset", value=start)

            self._get_product(key)
            entries = self._transactions().filter(product_id=key).select_related("unit")
            return TransactionPage(
                items=list(entries.order_by("-timestamp")[start:start + size]),
                total=entries.count(),
                limit=size,
                offset=start,
            )

        return self.store.read("list_transactions", _page)

    def recent_transactions(self, limit: Optional[int] = None) -> CommandResult[List[StockTransaction]]:
        """Newest entries across all products."""
        def _recent():
            size = engine_settings.transaction_page_size if limit is None else require_integer(limit, "limit")
            if size <= 0:
                raise ValidationError("limit must be greater than zero", field="limit", value=size)
            return list(
                self._transactions().select_related("product", "unit").order_by("-timestamp")[:size]
            )

        return self.store.read("recent_transactions", _recent)

    def transactions_by_type(self, product_id: Any, transaction_type: str) -> CommandResult[List[StockTransaction]]:
        def _by_type():
            key = require_id(product_id, "product_id")
            if transaction_type not in TransactionType.values:
                raise ValidationError(
                    f"Unknown transaction type '{transaction_type}'",
                    field="transaction_type",
                    value=transaction_type,
                )
            self._get_product(key)
            return list(
                self._transactions()
                .filter(product_id=key, transaction_type=transaction_type)
                .order_by("-timestamp")
            )

        return self.store.read("transactions_by_type", _by_type)

    def last_transaction(self, product_id: Any) -> CommandResult[Optional[StockTransaction]]:
        def _last():
            key = require_id(product_id, "product_id")
            self._get_product(key)
            return self._transactions().filter(product_id=key).order_by("-timestamp").first()

        return self.store.read("last_transaction", _last)

    def transactions_between(self, start: datetime, end: datetime, product_id: Any = None) -> CommandResult[List[StockTransaction]]:
        """Entries with ``start <= timestamp < end``, oldest first."""
        def _between():
            since = _require_datetime(start, "start")
            until = _require_datetime(end, "end")
            if since > until:
                raise ValidationError("start must not be after end", field="start", value=since)
            entries = self._transactions().filter(timestamp__gte=since, timestamp__lt=until)
            if product_id is not None:
                entries = entries.filter(product_id=require_id(product_id, "product_id"))
            return list(entries.order_by("timestamp"))

        return self.store.read("transactions_between", _between)

    def stock_summary_by_unit(self, product_id: Any) -> CommandResult[List[UnitStockSummary]]:
        def _summary():
            key = require_id(product_id, "product_id")
            self._get_product(key)
            rows = (
                self._transactions()
                .filter(product_id=key)
                .order_by()
                .values("unit_id", "unit__name")
                .annotate(entries=Count("id"), net=Sum("quantity_change"))
                .order_by("unit__name")
            )
            return [
                UnitStockSummary(
                    unit_id=row["unit_id"],
                    unit_name=row["unit__name"],
                    transaction_count=row["entries"],
                    net_change=row["net"],
                )
                for row in rows
            ]

        return self.store.read("stock_summary_by_unit", _summary)

    def reconcile(self, product_id: Any) -> CommandResult[StockReconciliation]:
        """Compare the running total with the sum over the product's ledger."""
        def _reconcile():
            product = self._get_product(require_id(product_id, "product_id"))
            totals = self._transactions().filter(product=product).aggregate(
                net=Sum("quantity_change"), entries=Count("id")
            )
            result = StockReconciliation(
                product_id=product.pk,
                recorded_quantity=product.stock_quantity,
                archived_balance=product.archived_balance,
                ledger_total=totals["net"] or 0,
                transaction_count=totals["entries"],
            )
            if not result.is_consistent:
                logger.warning(
                    f"Stock drift for '{product.name}': recorded {result.recorded_quantity}, "
                    f"ledger says {result.expected_quantity}"
                )
            return result

        return self.store.read("reconcile", _reconcile)
