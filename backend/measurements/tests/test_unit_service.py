"""
Unit Service Tests

Tests for unit commands (add, update, delete) and unit queries.
"""
import uuid

import pytest

from catalog.models import Product
from measurements.models import Unit


@pytest.mark.django_db
class TestAddUnit:

    def test_add_derived_unit(self, unit_service, pcs):
        """Scenario: 'dozen' converts to 12 pcs."""
        result = unit_service.add_unit("dozen", "pcs", 12).result()

        assert result.ok
        dozen = Unit.objects.get(pk=result.value)
        assert dozen.base_unit_symbol == "pcs"
        assert dozen.conversion_factor == 12
        assert not dozen.is_base_unit

    def test_add_base_unit(self, unit_service):
        result = unit_service.add_unit("ml", "ml", 1, is_base_unit=True).result()

        assert result.ok
        assert Unit.objects.get(pk=result.value).is_base_unit

    def test_base_unit_must_have_factor_one(self, unit_service):
        result = unit_service.add_unit("ml", "ml", 10, is_base_unit=True).result()

        assert result.kind == "validation"
        assert result.code == "INVALID_CONVERSION_FACTOR"
        assert not Unit.objects.exists()

    def test_derived_unit_needs_existing_base(self, unit_service, pcs):
        result = unit_service.add_unit("litre", "ml", 1000).result()

        assert not result.ok
        assert result.code == "UNKNOWN_BASE_UNIT"

    def test_duplicate_name_rejected(self, unit_service, dozen):
        result = unit_service.add_unit("Dozen", "pcs", 6).result()

        assert result.kind == "conflict"
        assert result.code == "DUPLICATE_NAME"

    def test_duplicate_conversion_rejected(self, unit_service, dozen):
        """Two units converting to the same base quantity are ambiguous."""
        result = unit_service.add_unit("twelve-pack", "pcs", 12).result()

        assert result.code == "DUPLICATE_CONVERSION"
        assert result.error.details["existing_name"] == "dozen"

    def test_derived_unit_with_factor_one_collides_with_base(self, unit_service, pcs):
        result = unit_service.add_unit("piece", "pcs", 1).result()

        assert result.code == "DUPLICATE_CONVERSION"

    @pytest.mark.parametrize("factor", [0, -12, 1.5])
    def test_invalid_factor_rejected_before_store(self, unit_service, pcs, factor):
        result = unit_service.add_unit("bad", "pcs", factor).result()

        assert result.kind == "validation"
        assert not Unit.objects.filter(name="bad").exists()

    def test_blank_name_rejected(self, unit_service, pcs):
        result = unit_service.add_unit("   ", "pcs", 6).result()

        assert result.code == "INVALID_NAME"

    def test_name_too_long_rejected(self, unit_service, pcs):
        result = unit_service.add_unit("x" * 51, "pcs", 6).result()

        assert result.code == "INVALID_NAME"


@pytest.mark.django_db
class TestUpdateUnit:

    def test_rename_and_refactor(self, unit_service, dozen):
        result = unit_service.update_unit(dozen.id, name="half-dozen", conversion_factor=6).result()

        assert result.ok
        dozen.refresh_from_db()
        assert dozen.name == "half-dozen"
        assert dozen.conversion_factor == 6

    def test_base_unit_factor_is_protected(self, unit_service, pcs):
        result = unit_service.update_unit(pcs.id, conversion_factor=10).result()

        assert result.code == "BASE_UNIT_PROTECTED"
        pcs.refresh_from_db()
        assert pcs.conversion_factor == 1

    def test_base_unit_can_be_renamed(self, unit_service, pcs):
        result = unit_service.update_unit(pcs.id, name="pieces").result()

        assert result.ok
        assert result.value.name == "pieces"

    def test_rename_onto_existing_name(self, unit_service, dozen, kilogram):
        result = unit_service.update_unit(dozen.id, name="KG").result()

        assert result.code == "DUPLICATE_NAME"

    def test_refactor_onto_existing_conversion(self, unit_service, dozen):
        box_id = unit_service.add_unit("box", "pcs", 24).result().unwrap()

        result = unit_service.update_unit(box_id, conversion_factor=12).result()

        assert result.code == "DUPLICATE_CONVERSION"

    def test_unknown_unit(self, unit_service):
        result = unit_service.update_unit(uuid.uuid4(), name="ghost").result()

        assert result.kind == "not_found"
        assert result.code == "UNIT_NOT_FOUND"

    def test_malformed_id(self, unit_service):
        result = unit_service.update_unit("nope", name="ghost").result()

        assert result.kind == "validation"


@pytest.mark.django_db
class TestDeleteUnit:

    def test_delete_unused_unit(self, unit_service, dozen):
        result = unit_service.delete_unit(dozen.id).result()

        assert result.ok
        assert not Unit.objects.filter(pk=dozen.id).exists()

    def test_base_unit_cannot_be_deleted(self, unit_service, pcs):
        result = unit_service.delete_unit(pcs.id).result()

        assert result.code == "BASE_UNIT_PROTECTED"
        assert Unit.objects.filter(pk=pcs.id).exists()

    def test_unit_referenced_by_product_cannot_be_deleted(self, unit_service, dozen):
        Product.objects.create(name="Eggs", unit=dozen)

        result = unit_service.delete_unit(dozen.id).result()

        assert result.code == "UNIT_IN_USE"
        assert result.error.details["product_count"] == 1

    def test_unit_referenced_by_ledger_cannot_be_deleted(self, unit_service, stock_service, product, dozen):
        stock_service.add_stock(product.id, 1, dozen.id).result().unwrap()

        result = unit_service.delete_unit(dozen.id).result()

        assert result.code == "UNIT_IN_USE"
        assert result.error.details["transaction_count"] == 1


@pytest.mark.django_db
class TestUnitQueries:

    def test_list_units(self, unit_service, dozen, kilogram):
        names = [unit.name for unit in unit_service.list_units().unwrap()]

        assert sorted(names) == ["dozen", "gr", "kg", "pcs"]

    def test_search_units_matches_name_and_symbol(self, unit_service, dozen, kilogram):
        assert {u.name for u in unit_service.search_units("doz").unwrap()} == {"dozen"}
        assert {u.name for u in unit_service.search_units("GR").unwrap()} == {"gr", "kg"}

    def test_units_for_base(self, unit_service, dozen, kilogram):
        assert [u.name for u in unit_service.units_for_base("pcs").unwrap()] == ["pcs", "dozen"]

    def test_conversions_as_results(self, unit_service, dozen):
        assert unit_service.convert_to_base(3, dozen.id).unwrap() == 36
        assert unit_service.convert_from_base(40, dozen.id).unwrap() == 3

    def test_conversion_past_stock_ceiling(self, unit_service, dozen):
        result = unit_service.convert_to_base(2**62, dozen.id)

        assert result.code == "INVALID_QUANTITY"

    def test_search_units_folds_non_ascii_case(self, unit_service, pcs):
        unit_service.add_unit("Штука", "pcs", 10).result().unwrap()

        assert [u.name for u in unit_service.search_units("штук").unwrap()] == ["Штука"]

    @pytest.mark.parametrize("query", [123, ["kg"]])
    def test_search_units_rejects_non_text_query(self, unit_service, pcs, query):
        result = unit_service.search_units(query)

        assert result.kind == "validation"
        assert result.error.field == "query"

    def test_conversion_with_unknown_unit(self, unit_service, pcs):
        result = unit_service.convert_to_base(3, uuid.uuid4())

        assert result.kind == "not_found"

    def test_get_unit(self, unit_service, dozen):
        assert unit_service.get_unit(str(dozen.id)).unwrap() == dozen
