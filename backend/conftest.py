"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
from datetime import datetime, timedelta, timezone as dt_timezone
import itertools

import pytest

from stockroom.infrastructure import RecordStore, WriterQueue


# ============================================================================
# STORE FIXTURES
# ============================================================================

@pytest.fixture
def clock_start():
    return datetime(2024, 1, 1, 9, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def ticking_clock(clock_start):
    """
    Clock that advances one second per call.

    Ledger entries are ordered by timestamp, so every entry written in a test
    gets a distinct, predictable one.
    """
    ticks = itertools.count()

    def now():
        return clock_start + timedelta(seconds=next(ticks))

    return now


@pytest.fixture
def store(ticking_clock):
    """
    Store whose writer runs jobs inline, so futures come back resolved.
    """
    record_store = RecordStore(writer=WriterQueue(name="test", eager=True), clock=ticking_clock)
    yield record_store
    record_store.close()


@pytest.fixture
def unit_service(store):
    from measurements.services import UnitService
    return UnitService(store)


@pytest.fixture
def stock_service(store):
    from inventory.services import StockService
    return StockService(store)


@pytest.fixture
def category_service(store):
    from catalog.services import CategoryService
    return CategoryService(store)


# ============================================================================
# DATA FIXTURES
# ============================================================================

@pytest.fixture
def base_units(store):
    """Seeded default base units keyed by name ('pcs', 'gr')."""
    from measurements.services import seed_default_units
    return {unit.name: unit for unit in seed_default_units(store)}


@pytest.fixture
def pcs(base_units):
    return base_units["pcs"]


@pytest.fixture
def gr(base_units):
    return base_units["gr"]


@pytest.fixture
def dozen(unit_service, pcs):
    from measurements.models import Unit
    unit_id = unit_service.add_unit("dozen", "pcs", 12).result().unwrap()
    return Unit.objects.get(pk=unit_id)


@pytest.fixture
def kilogram(unit_service, gr):
    from measurements.models import Unit
    unit_id = unit_service.add_unit("kg", "gr", 1000).result().unwrap()
    return Unit.objects.get(pk=unit_id)


@pytest.fixture
def make_product(pcs):
    """Factory for products counted in pieces unless told otherwise."""
    from catalog.models import Product

    def _make(name="Sparkling Water", unit=pcs, category=None):
        return Product.objects.create(name=name, unit=unit, category=category)

    return _make


@pytest.fixture
def product(make_product):
    return make_product()
