"""
Category Tree Query Tests

Paths, breadcrumbs, search, depth checks and listings.
"""
import uuid

import pytest

from catalog.models import Category, Product


@pytest.fixture
def tree(category_service):
    """
    Drinks
      Soda
        Diet Soda
      Juice
    Snacks
      Chips
    """
    def create(name, parent=None):
        parent_id = parent.pk if parent else None
        return Category.objects.get(pk=category_service.create_category(name, parent_id).result().unwrap())

    nodes = {}
    nodes["Drinks"] = create("Drinks")
    nodes["Soda"] = create("Soda", nodes["Drinks"])
    nodes["Diet Soda"] = create("Diet Soda", nodes["Soda"])
    nodes["Juice"] = create("Juice", nodes["Drinks"])
    nodes["Snacks"] = create("Snacks")
    nodes["Chips"] = create("Chips", nodes["Snacks"])
    return nodes


@pytest.mark.django_db
class TestPaths:

    def test_path_to_root_is_leaf_first(self, category_service, tree):
        path = category_service.path_to_root(tree["Diet Soda"].pk).unwrap()

        assert [node.name for node in path] == ["Diet Soda", "Soda", "Drinks"]

    def test_path_of_root_is_itself(self, category_service, tree):
        path = category_service.path_to_root(tree["Drinks"].pk).unwrap()

        assert [node.name for node in path] == ["Drinks"]

    def test_breadcrumb_is_root_first(self, category_service, tree):
        crumbs = category_service.breadcrumb(tree["Diet Soda"].pk).unwrap()

        assert [(c.name, c.level) for c in crumbs] == [("Drinks", 0), ("Soda", 1), ("Diet Soda", 2)]

    def test_path_string(self, category_service, tree):
        assert category_service.path_string(tree["Diet Soda"].pk).unwrap() == "Drinks > Soda > Diet Soda"

    def test_unknown_category(self, category_service):
        assert category_service.path_to_root(uuid.uuid4()).code == "CATEGORY_NOT_FOUND"


@pytest.mark.django_db
class TestSearch:

    def test_case_insensitive_substring(self, category_service, tree):
        hits = category_service.search("SODA").unwrap()

        assert [hit.category.name for hit in hits] == ["Soda", "Diet Soda"]
        assert hits[1].path_string == "Drinks > Soda > Diet Soda"
        assert [node.name for node in hits[1].path] == ["Diet Soda", "Soda", "Drinks"]

    def test_ordered_by_level_then_name(self, category_service, tree):
        hits = category_service.search("s").unwrap()

        assert [hit.category.name for hit in hits] == ["Drinks", "Snacks", "Chips", "Soda", "Diet Soda"]

    def test_limit(self, category_service, tree):
        assert len(category_service.search("s", limit=2).unwrap()) == 2

    def test_default_limit_from_settings(self, category_service, tree, settings):
        settings.STOCKROOM = {"CATEGORY_SEARCH_LIMIT": 1}

        assert len(category_service.search("s").unwrap()) == 1

    def test_blank_query_returns_nothing(self, category_service, tree):
        assert category_service.search("   ").unwrap() == []

    @pytest.mark.parametrize("query", [123, ["Soda"], b"Soda"])
    def test_non_text_query_rejected(self, category_service, tree, query):
        result = category_service.search(query)

        assert result.kind == "validation"
        assert result.error.field == "query"

    def test_case_insensitive_beyond_ascii(self, category_service, tree):
        category_service.create_category("Минеральная вода", tree["Drinks"].pk).result().unwrap()

        hits = category_service.search("минерал").unwrap()

        assert [hit.category.name for hit in hits] == ["Минеральная вода"]
        assert hits[0].path_string == "Drinks > Минеральная вода"

    def test_invalid_limit(self, category_service, tree):
        assert category_service.search("s", limit=0).kind == "validation"


@pytest.mark.django_db
class TestDepthAndSelectability:

    def test_is_max_depth_reached(self, category_service, tree):
        assert category_service.is_max_depth_reached(None).unwrap() is False
        assert category_service.is_max_depth_reached(tree["Diet Soda"].pk).unwrap() is False

        level_3 = category_service.create_category("Zero Sugar", tree["Diet Soda"].pk).result().unwrap()

        assert category_service.is_max_depth_reached(level_3).unwrap() is True

    def test_is_selectable(self, category_service, tree):
        assert category_service.is_selectable(tree["Juice"].pk).unwrap() is True
        assert category_service.is_selectable(tree["Drinks"].pk).unwrap() is False

    def test_has_children_recomputed_from_tree(self, tree):
        drinks = Category.objects.get(pk=tree["Drinks"].pk)
        juice = Category.objects.get(pk=tree["Juice"].pk)

        assert drinks.has_children
        assert not juice.has_children


@pytest.mark.django_db
class TestListings:

    def test_list_roots_sorted_by_name(self, category_service, tree):
        assert [c.name for c in category_service.list_roots().unwrap()] == ["Drinks", "Snacks"]

    def test_list_children(self, category_service, tree):
        children = category_service.list_children(tree["Drinks"].pk).unwrap()

        assert [c.name for c in children] == ["Juice", "Soda"]

    def test_list_children_paginated(self, category_service, tree):
        page = category_service.list_children(tree["Drinks"].pk, limit=1, offset=1).unwrap()

        assert [c.name for c in page] == ["Soda"]

    def test_list_children_of_unknown_parent(self, category_service):
        assert category_service.list_children(uuid.uuid4()).code == "CATEGORY_NOT_FOUND"

    def test_categories_at_level(self, category_service, tree):
        assert [c.name for c in category_service.categories_at_level(1).unwrap()] == ["Chips", "Juice", "Soda"]

    def test_max_level(self, category_service, tree):
        assert category_service.max_level().unwrap() == 2

    def test_max_level_of_empty_tree(self, category_service):
        assert category_service.max_level().unwrap() is None

    def test_get_category(self, category_service, tree):
        assert category_service.get_category(str(tree["Chips"].pk)).unwrap() == tree["Chips"]


@pytest.mark.django_db
class TestTreeInvariants:

    def test_levels_follow_parents(self, category_service, tree):
        for category in Category.objects.all():
            if category.parent_id is None:
                assert category.level == 0
            else:
                assert category.level == category.parent.level + 1
            assert category.level <= 4

    def test_sibling_names_unique(self, category_service, tree):
        seen = set()
        for category in Category.objects.all():
            key = (category.parent_id, category.name)
            assert key not in seen
            seen.add(key)

    def test_products_only_on_leaves(self, category_service, tree, product):
        category_service.assign_product_category(product.pk, tree["Juice"].pk).result().unwrap()
        category_service.assign_product_category(product.pk, tree["Soda"].pk).result()

        for item in Product.objects.exclude(category=None):
            assert not item.category.has_children
