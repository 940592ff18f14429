"""
Measurements app - the unit registry.

A unit converts to exactly one base unit through an integer factor. Stock is
always stored in base-unit quantity; the unit an operator used is kept only
for display and history.

Examples: pcs (base), dozen (12 pcs), box (24 pcs), gr (base), kg (1000 gr)
"""
import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class Unit(models.Model):
    """
    Measurement unit.

    Base units carry ``conversion_factor = 1`` and name their own symbol in
    ``base_unit_symbol``. Two units are compatible iff they share
    ``base_unit_symbol``.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=50,
        unique=True,
        help_text=_("Display name of the unit, e.g. 'pcs', 'dozen', 'kg'")
    )
    base_unit_symbol = models.CharField(
        max_length=50,
        db_index=True,
        help_text=_("Symbol of the base unit this unit converts to")
    )
    conversion_factor = models.PositiveBigIntegerField(
        default=1,
        help_text=_("How many base units one of this unit is worth")
    )
    is_base_unit = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Unit")
        verbose_name_plural = _("Units")
        ordering = ['base_unit_symbol', 'conversion_factor', 'name']
        constraints = [
            models.UniqueConstraint(
                fields=['base_unit_symbol', 'conversion_factor'],
                name='unique_unit_conversion',
            ),
            models.CheckConstraint(
                condition=models.Q(conversion_factor__gte=1),
                name='unit_conversion_factor_positive',
            ),
        ]

    def __str__(self):
        if self.is_base_unit:
            return self.name
        return f"{self.name} ({self.conversion_factor} {self.base_unit_symbol})"

    def to_base(self, quantity: int) -> int:
        return quantity * self.conversion_factor

    def from_base(self, base_quantity: int) -> int:
        """Base quantity expressed in this unit, truncated toward zero."""
        magnitude = abs(base_quantity) // self.conversion_factor
        return -magnitude if base_quantity < 0 else magnitude

    def is_compatible_with(self, other: "Unit") -> bool:
        return self.base_unit_symbol == other.base_unit_symbol
