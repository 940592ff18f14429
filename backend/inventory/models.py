import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class StockTransaction(models.Model):
    """
    One entry of a product's append-only stock ledger.

    Quantities are stored in base units. ``quantity_change`` is the signed
    delta the entry applied (positive for ADD, negative for REMOVE, either
    sign for ADJUST) and ``quantity_in_base_unit`` its magnitude. The unit's
    conversion factor is snapshotted so history renders the same after the
    unit is edited.
    """

    class TransactionType(models.TextChoices):
        ADD = "ADD", _("Stock Added")
        REMOVE = "REMOVE", _("Stock Removed")
        ADJUST = "ADJUST", _("Stock Adjusted")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="stock_transactions",
    )
    transaction_type = models.CharField(max_length=10, choices=TransactionType.choices)
    quantity_in_base_unit = models.PositiveBigIntegerField(
        help_text=_("Magnitude of the change in base units")
    )
    quantity_change = models.BigIntegerField(
        help_text=_("Signed change in base units (positive for additions, negative for removals)")
    )
    previous_quantity = models.BigIntegerField(
        help_text=_("Stock in base units before the entry")
    )
    new_quantity = models.BigIntegerField(
        help_text=_("Stock in base units after the entry")
    )
    original_quantity = models.BigIntegerField(
        help_text=_("Quantity as entered, in the recording unit (the target for adjustments)")
    )
    original_conversion_factor = models.PositiveBigIntegerField(
        help_text=_("Conversion factor of the recording unit when the entry was written")
    )
    unit = models.ForeignKey(
        "measurements.Unit",
        on_delete=models.PROTECT,
        related_name="stock_transactions",
    )
    timestamp = models.DateTimeField(db_index=True)
    notes = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Stock Transaction")
        verbose_name_plural = _("Stock Transactions")
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["product", "timestamp"], name="stock_txn_product_time_idx"),
            models.Index(fields=["transaction_type", "timestamp"], name="stock_txn_type_time_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(new_quantity__gte=0),
                name="stock_txn_new_quantity_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.get_transaction_type_display()}: {self.quantity_change:+d} ({self.product_id})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Stock transactions are immutable once written")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Stock transactions are removed only by the retention purge")

    @property
    def signed_original_quantity(self) -> int:
        """Entered quantity, negative for removals. Adjustments show their target."""
        if self.transaction_type == self.TransactionType.REMOVE:
            return -self.original_quantity
        return self.original_quantity

    @property
    def change_in_original_unit(self) -> int:
        """``quantity_change`` in the recording unit, truncated toward zero."""
        magnitude = self.quantity_in_base_unit // self.original_conversion_factor
        return -magnitude if self.quantity_change < 0 else magnitude
