"""
Default unit seeding.

Base units are seeded once, on first deployment. The registry being
non-empty is the guard: once any unit exists, seeding does nothing, so an
operator's edits are never overwritten by a re-run.
"""
from typing import List, Optional
import logging

from stockroom.config import engine_settings
from stockroom.infrastructure import RecordStore, build_store

from measurements.models import Unit

logger = logging.getLogger(__name__)


def _seed(store: RecordStore, symbols) -> List[Unit]:
    units = store.manager(Unit)
    if units.exists():
        logger.info("Unit registry already populated; skipping default unit seeding")
        return []

    created = [
        units.create(
            id=store.new_id(),
            name=symbol,
            base_unit_symbol=symbol,
            conversion_factor=1,
            is_base_unit=True,
        )
        for symbol in symbols
    ]
    logger.info(f"Seeded default base units: {', '.join(u.name for u in created)}")
    return created


def seed_default_units(store: Optional[RecordStore] = None) -> List[Unit]:
    """
    Seed the configured default base units (``pcs`` and ``gr`` by default).

    Runs on the store's writer so it cannot interleave with a concurrent
    ``add_unit``. Returns the created units, or an empty list when the
    registry already had units.
    """
    owned = store is None
    store = store or build_store()
    symbols = engine_settings.default_base_units
    try:
        return store.submit("seed_default_units", _seed, store, symbols).result().unwrap()
    finally:
        if owned:
            store.close()
