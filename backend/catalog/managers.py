"""
Custom managers for catalog models.

Keeps the tree lookups the category commands share in one place, on top of
django-mptt's ``TreeManager`` so tree bookkeeping stays intact.
"""
from mptt.managers import TreeManager
from mptt.querysets import TreeQuerySet


class CategoryQuerySet(TreeQuerySet):

    def roots(self):
        return self.filter(parent__isnull=True)

    def children_of(self, parent_id):
        """Direct children of ``parent_id``; roots when ``parent_id`` is None."""
        if parent_id is None:
            return self.roots()
        return self.filter(parent_id=parent_id)

    def at_level(self, level: int):
        return self.filter(level=level)

    def named(self, name: str):
        return self.filter(name=name)

    def matching(self, query: str):
        """
        Case-insensitive substring match on the name.

        Folding happens in Python because sqlite's LIKE only ignores case for
        ASCII letters, and category names may use any script.
        """
        folded = query.casefold()
        matched = [
            pk for pk, name in self.values_list("pk", "name") if folded in name.casefold()
        ]
        return self.filter(pk__in=matched)

    def display_order(self):
        return self.order_by("level", "name")


class CategoryManager(TreeManager.from_queryset(CategoryQuerySet)):
    """
    MPTT tree manager exposing the ``CategoryQuerySet`` helpers.
    """
