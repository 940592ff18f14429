"""
Measurements services.
"""
from measurements.services.registry import UnitRegistry
from measurements.services.seeding import seed_default_units
from measurements.services.units import UnitService

__all__ = ['UnitRegistry', 'UnitService', 'seed_default_units']
