"""Unit conversion within a measurement family.

Each family maps its units to their size in the family's smallest unit
(weight in grams, volume in millilitres, count in pieces). Converting
between two units is a ratio of those sizes; converting across families
is impossible and raises UnitConversionError.

Unit names are case-insensitive and normalized through ``UNIT_ALIASES``
first, so ``"Kg"``, ``"KGS"`` and ``"kilogram"`` all mean ``kg``.
"""

from __future__ import annotations

from decimal import Decimal

from grocer.domain.exceptions import UnitConversionError

UNIT_FAMILIES: dict[str, dict[str, Decimal]] = {
    "weight": {
        "mg": Decimal("0.001"),
        "g": Decimal("1"),
        "kg": Decimal("1000"),
    },
    "volume": {
        "ml": Decimal("1"),
        "l": Decimal("1000"),
    },
    "count": {
        "pcs": Decimal("1"),
        "dozen": Decimal("12"),
    },
}

UNIT_ALIASES: dict[str, str] = {
    # weight
    "gm": "g",
    "gms": "g",
    "gram": "g",
    "grams": "g",
    "kgs": "kg",
    "kilo": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "milligram": "mg",
    "milligrams": "mg",
    # volume
    "ltr": "l",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "millilitre": "ml",
    "milliliter": "ml",
    # count
    "pc": "pcs",
    "piece": "pcs",
    "pieces": "pcs",
    "unit": "pcs",
    "units": "pcs",
    "nos": "pcs",
    "dz": "dozen",
}


class UnitConverter:
    """Stateless lookup over a set of unit families."""

    def __init__(self, families: dict[str, dict[str, Decimal]] | None = None) -> None:
        self._families = families if families is not None else UNIT_FAMILIES

    def normalize(self, unit: str) -> str:
        key = unit.strip().lower()
        return UNIT_ALIASES.get(key, key)

    def family_of(self, unit: str) -> str | None:
        canonical = self.normalize(unit)
        for family, units in self._families.items():
            if canonical in units:
                return family
        return None

    def is_known(self, unit: str) -> bool:
        return self.family_of(unit) is not None

    def same_unit(self, first: str, second: str) -> bool:
        return self.normalize(first) == self.normalize(second)

    def factor(self, from_unit: str, to_unit: str) -> Decimal:
        """How many ``to_unit`` make one ``from_unit``.

        ``factor("kg", "g") == 1000``; multiply a quantity in ``from_unit``
        by the factor to express it in ``to_unit``.
        """
        source = self.normalize(from_unit)
        target = self.normalize(to_unit)
        source_family = self.family_of(source)
        target_family = self.family_of(target)

        if source_family is None:
            raise UnitConversionError(f"Unknown unit '{from_unit}'")
        if target_family is None:
            raise UnitConversionError(f"Unknown unit '{to_unit}'")
        if source_family != target_family:
            raise UnitConversionError(
                f"Cannot convert {source_family} unit '{from_unit}' "
                f"to {target_family} unit '{to_unit}'"
            )

        units = self._families[source_family]
        return units[source] / units[target]
