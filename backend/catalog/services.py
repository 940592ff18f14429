"""
Category tree commands and queries.

The tree is stored with django-mptt. Levels, ancestor chains and leaf checks
come from mptt's bookkeeping, which is updated in the same transaction as
every insert and delete, so none of them can drift.
"""
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, List, Optional
import logging

from django.db.models import Max

from stockroom.config import engine_settings
from stockroom.exceptions import (
    CategoryHasProducts,
    CategoryNotFound,
    CategoryNotSelectable,
    DuplicateName,
    HasChildren,
    MaxDepthReached,
    ProductNotFound,
    ValidationError,
)
from stockroom.results import CommandResult
from stockroom.validation import clean_query, optional_id, require_id, require_integer

from .models import Category, Product
from .validators import clean_category_name, clean_icon_url

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "


@dataclass(frozen=True)
class Breadcrumb:
    id: Any
    name: str
    level: int


@dataclass(frozen=True)
class CategoryWithPath:
    """A search hit paired with its ancestor chain, leaf first."""
    category: Category
    path: List[Category] = field(default_factory=list)

    @property
    def path_string(self) -> str:
        return PATH_SEPARATOR.join(node.name for node in reversed(self.path))


def _positive(value: Any, name: str) -> int:
    value = require_integer(value, name)
    if value <= 0:
        raise ValidationError(f"{name} must be greater than zero", field=name, value=value)
    return value


def _non_negative(value: Any, name: str) -> int:
    value = require_integer(value, name)
    if value < 0:
        raise ValidationError(f"{name} cannot be negative", field=name, value=value)
    return value


class CategoryService:

    def __init__(self, store):
        self.store = store

    def _categories(self):
        return self.store.manager(Category)

    def _get(self, category_id, lock: bool = False) -> Category:
        categories = self._categories()
        if lock:
            categories = categories.select_for_update()
        category = categories.filter(pk=category_id).first()
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_category(self, name: str, parent_id: Any = None, icon_url: Optional[str] = None) -> Future:
        """
        Create a category under ``parent_id``, or a root when it is None.

        Fails with ``MaxDepthReached`` past the deepest allowed level, with
        ``DuplicateName`` when a sibling already carries the name, and with
        ``CategoryHasProducts`` when the parent currently classifies products.
        """
        operation = "create_category"
        try:
            name = clean_category_name(name)
            parent_id = optional_id(parent_id, "parent_id")
            icon_url = clean_icon_url(icon_url)
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._create_category, name, parent_id, icon_url)

    def _create_category(self, name, parent_id, icon_url):
        parent = self._get(parent_id, lock=True) if parent_id else None
        level = parent.level + 1 if parent else 0

        max_level = engine_settings.max_category_level
        if level > max_level:
            raise MaxDepthReached(level, max_level)

        if parent is not None:
            product_count = self.store.manager(Product).filter(category=parent).count()
            if product_count:
                raise CategoryHasProducts(parent.pk, product_count)

        if self._categories().children_of(parent_id).named(name).exists():
            raise DuplicateName("Category", name)

        category = Category(id=self.store.new_id(), name=name, icon_url=icon_url, parent=parent)
        category.save(using=self.store.alias)
        logger.info(f"Category '{name}' created at level {category.level}")
        return category.pk

    def rename_category(self, category_id: Any, new_name: str) -> Future:
        operation = "rename_category"
        try:
            category_id = require_id(category_id, "category_id")
            new_name = clean_category_name(new_name)
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._rename_category, category_id, new_name)

    def _rename_category(self, category_id, new_name):
        category = self._get(category_id, lock=True)
        if category.name == new_name:
            return category

        clash = (
            self._categories()
            .children_of(category.parent_id)
            .named(new_name)
            .exclude(pk=category.pk)
            .exists()
        )
        if clash:
            raise DuplicateName("Category", new_name)

        old_name = category.name
        category.name = new_name
        category.save(using=self.store.alias, update_fields=["name", "updated_at"])
        logger.info(f"Category '{old_name}' renamed to '{new_name}'")
        return category

    def set_category_icon(self, category_id: Any, icon_url: Optional[str]) -> Future:
        operation = "set_category_icon"
        try:
            category_id = require_id(category_id, "category_id")
            icon_url = clean_icon_url(icon_url)
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._set_category_icon, category_id, icon_url)

    def _set_category_icon(self, category_id, icon_url):
        category = self._get(category_id, lock=True)
        category.icon_url = icon_url
        category.save(using=self.store.alias, update_fields=["icon_url", "updated_at"])
        return category

    def delete_category(self, category_id: Any) -> Future:
        """
        Delete a childless category. Products it classified become
        uncategorized; the future resolves to how many were reassigned.
        """
        operation = "delete_category"
        try:
            category_id = require_id(category_id, "category_id")
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._delete_category, category_id)

    def _delete_category(self, category_id):
        category = self._get(category_id, lock=True)

        child_count = self._categories().children_of(category.pk).count()
        if child_count:
            raise HasChildren(category.pk, child_count)

        reassigned = self.store.manager(Product).filter(category=category).update(category=None)
        name = category.name
        category.delete(using=self.store.alias)
        logger.info(f"Category '{name}' deleted; {reassigned} products uncategorized")
        return reassigned

    def assign_product_category(self, product_id: Any, category_id: Any) -> Future:
        """Classify a product under a leaf category, or clear it with None."""
        operation = "assign_product_category"
        try:
            product_id = require_id(product_id, "product_id")
            category_id = optional_id(category_id, "category_id")
        except ValidationError as exc:
            return self.store.rejected(operation, exc)

        return self.store.submit(operation, self._assign_product_category, product_id, category_id)

    def _assign_product_category(self, product_id, category_id):
        product = self.store.manager(Product).select_for_update().filter(pk=product_id).first()
        if product is None:
            raise ProductNotFound(product_id)

        category = None
        if category_id is not None:
            category = self._get(category_id, lock=True)
            if not category.is_selectable:
                raise CategoryNotSelectable(category.pk)

        product.category = category
        product.save(using=self.store.alias, update_fields=["category", "updated_at"])
        logger.info(f"Product '{product.name}' assigned to category '{category or '-'}'")
        return product

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_category(self, category_id: Any) -> CommandResult[Category]:
        return self.store.read(
            "get_category", lambda: self._get(require_id(category_id, "category_id"))
        )

    def path_to_root(self, category_id: Any) -> CommandResult[List[Category]]:
        """Ancestor chain from the category itself up to its root."""
        def _path():
            category = self._get(require_id(category_id, "category_id"))
            return list(category.get_ancestors(ascending=True, include_self=True))

        return self.store.read("path_to_root", _path)

    def breadcrumb(self, category_id: Any) -> CommandResult[List[Breadcrumb]]:
        def _breadcrumb():
            category = self._get(require_id(category_id, "category_id"))
            return [
                Breadcrumb(id=node.pk, name=node.name, level=node.level)
                for node in category.get_ancestors(include_self=True)
            ]

        return self.store.read("breadcrumb", _breadcrumb)

    def path_string(self, category_id: Any) -> CommandResult[str]:
        def _path_string():
            category = self._get(require_id(category_id, "category_id"))
            return PATH_SEPARATOR.join(
                node.name for node in category.get_ancestors(include_self=True)
            )

        return self.store.read("path_string", _path_string)

    def search(self, query: str, limit: Optional[int] = None) -> CommandResult[List[CategoryWithPath]]:
        """
        Case-insensitive substring search, shallowest matches first, each hit
        paired with its path to the root.
        """
        def _search():
            size = _positive(limit, "limit") if limit is not None else engine_settings.category_search_limit
            term = clean_query(query)
            if not term:
                return []
            hits = self._categories().matching(term).display_order()[:size]
            return [
                CategoryWithPath(
                    category=hit,
                    path=list(hit.get_ancestors(ascending=True, include_self=True)),
                )
                for hit in hits
            ]

        return self.store.read("search_categories", _search)

    def is_max_depth_reached(self, parent_id: Any) -> CommandResult[bool]:
        """
        True when the parent sits at or below ``MAX_CATEGORY_LEVEL - 1``.
        Used to hide the "add subcategory" affordance; ``create_category``
        enforces the real bound.
        """
        def _reached():
            key = optional_id(parent_id, "parent_id")
            if key is None:
                return False
            return self._get(key).level >= engine_settings.max_category_level - 1

        return self.store.read("is_max_depth_reached", _reached)

    def list_roots(self) -> CommandResult[List[Category]]:
        return self.store.read(
            "list_roots", lambda: list(self._categories().roots().order_by("name"))
        )

    def list_children(self, parent_id: Any, limit: Optional[int] = None, offset: int = 0) -> CommandResult[List[Category]]:
        def _children():
            key = require_id(parent_id, "parent_id")
            start = _non_negative(offset, "offset")
            self._get(key)
            children = self._categories().children_of(key).order_by("name")
            if limit is not None:
                return list(children[start:start + _positive(limit, "limit")])
            return list(children[start:])

        return self.store.read("list_children", _children)

    def categories_at_level(self, level: int) -> CommandResult[List[Category]]:
        def _at_level():
            depth = _non_negative(level, "level")
            return list(self._categories().at_level(depth).order_by("name"))

        return self.store.read("categories_at_level", _at_level)

    def max_level(self) -> CommandResult[Optional[int]]:
        """Deepest level currently in use, or None for an empty tree."""
        return self.store.read(
            "max_level", lambda: self._categories().aggregate(deepest=Max("level"))["deepest"]
        )

    def is_selectable(self, category_id: Any) -> CommandResult[bool]:
        return self.store.read(
            "is_selectable",
            lambda: self._get(require_id(category_id, "category_id")).is_selectable,
        )
