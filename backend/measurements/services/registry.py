"""
Pure unit registry over a read snapshot.

The registry never writes. Commands that need a unit load a snapshot inside
their own job, so the factor used for conversion is the one committed at
the moment the job runs.
"""
from typing import Any, Dict, Iterable, List, Optional
import uuid

from stockroom.config import engine_settings
from stockroom.exceptions import InvalidConversionFactor, UnitNotFound
from stockroom.validation import require_integer

from measurements.models import Unit


class UnitRegistry:

    def __init__(self, units: Iterable[Unit]):
        self._by_id: Dict[uuid.UUID, Unit] = {unit.id: unit for unit in units}

    @classmethod
    def load(cls, store, unit_ids: Optional[Iterable[Any]] = None) -> "UnitRegistry":
        """Snapshot the units in ``store``, optionally only ``unit_ids``."""
        queryset = store.manager(Unit).all()
        if unit_ids is not None:
            queryset = queryset.filter(pk__in=list(unit_ids))
        return cls(queryset)

    def __len__(self):
        return len(self._by_id)

    def __contains__(self, unit_id):
        return unit_id in self._by_id

    def resolve(self, unit_id: Any) -> Unit:
        try:
            key = unit_id if isinstance(unit_id, uuid.UUID) else uuid.UUID(str(unit_id))
            return self._by_id[key]
        except (KeyError, ValueError):
            raise UnitNotFound(unit_id)

    def resolve_by_name(self, name: str) -> Unit:
        wanted = (name or "").strip().lower()
        for unit in self._by_id.values():
            if unit.name.lower() == wanted:
                return unit
        raise UnitNotFound(name)

    def convert_to_base(self, quantity: int, unit_id: Any) -> int:
        return self.resolve(unit_id).to_base(require_integer(quantity))

    def convert_from_base(self, base_quantity: int, unit_id: Any) -> int:
        """
        Express a base quantity in ``unit_id``.

        Division truncates toward zero: 30 pcs is 2 dozen, -30 pcs is -2 dozen.
        """
        return self.resolve(unit_id).from_base(require_integer(base_quantity))

    def are_compatible(self, first_id: Any, second_id: Any) -> bool:
        return self.resolve(first_id).is_compatible_with(self.resolve(second_id))

    def units_for_base(self, base_unit_symbol: str) -> List[Unit]:
        units = [u for u in self._by_id.values() if u.base_unit_symbol == base_unit_symbol]
        return sorted(units, key=lambda u: (u.conversion_factor, u.name))

    def base_units(self) -> List[Unit]:
        return sorted(
            (u for u in self._by_id.values() if u.is_base_unit),
            key=lambda u: u.name,
        )

    @staticmethod
    def validate_conversion_factor(factor: Any) -> int:
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise InvalidConversionFactor(
                f"Conversion factor must be a whole number, got {factor!r}", factor
            )
        if factor <= 0:
            raise InvalidConversionFactor("Conversion factor must be greater than zero", factor)
        ceiling = engine_settings.max_conversion_factor
        if factor > ceiling:
            raise InvalidConversionFactor(
                f"Conversion factor cannot exceed {ceiling}", factor
            )
        return factor
