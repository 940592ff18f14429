import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _
from mptt.models import MPTTModel, TreeForeignKey

from .managers import CategoryManager


class Category(MPTTModel):
    """
    Node of the bounded-depth classification tree.

    ``level`` is maintained by django-mptt: roots are at level 0 and every
    other node sits exactly one level below its parent. Whether a node has
    children is read from the mptt ``lft``/``rght`` interval, never stored.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=100, help_text=_("Name of the category, unique among its siblings.")
    )
    icon_url = models.URLField(
        max_length=500, blank=True, default="", help_text=_("Optional icon image URL.")
    )
    parent = TreeForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
        help_text=_("Parent category; empty for a root category."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CategoryManager()

    class Meta:
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        constraints = [
            models.UniqueConstraint(
                fields=["parent", "name"], name="unique_category_name_per_parent"
            ),
            # NULL parents never collide in the constraint above
            models.UniqueConstraint(
                fields=["name"],
                condition=models.Q(parent__isnull=True),
                name="unique_root_category_name",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def has_children(self) -> bool:
        return not self.is_leaf_node()

    @property
    def is_selectable(self) -> bool:
        """Only leaf categories may classify products."""
        return self.is_leaf_node()


class Product(models.Model):
    """
    The part of a product the inventory core owns: its classification, its
    display unit and the running stock total in base units.

    ``stock_quantity`` always equals ``archived_balance`` plus the sum of
    ``quantity_change`` over the product's remaining ledger entries.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    unit = models.ForeignKey(
        "measurements.Unit",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="products",
        help_text=_("Unit the product is usually counted in."),
    )
    stock_quantity = models.BigIntegerField(
        default=0, help_text=_("Current stock in base units.")
    )
    archived_balance = models.BigIntegerField(
        default=0, help_text=_("Net base-unit change of purged ledger entries.")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="product_stock_never_negative",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def is_uncategorized(self) -> bool:
        return self.category_id is None
