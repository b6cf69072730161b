from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import pint

from efield_sim.models.config import DEFAULT_UNITS, UnitPreferences
from efield_sim.units import PARAMETER_KINDS, from_atomic


@dataclass(frozen=True, eq=False)
class ParameterSet(Mapping[str, Any]):
    """Resolved field parameters.

    Unit-bearing entries are plain floats in atomic units; symbolic entries
    (``env``, ``carrier``, ``kind``, ...) are stored as given. ``user_keys``
    records which entries were supplied rather than derived.
    """

    values: Mapping[str, Any]
    units: UnitPreferences = DEFAULT_UNITS
    user_keys: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, name: str) -> Any:
        try:
            return self.values[name]
        except KeyError:
            raise KeyError(f"Parameter {name} is not defined for this field.") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        body = ", ".join(f"{key}={value!r}" for key, value in self.values.items())
        return f"ParameterSet({body})"

    def quantity(self, name: str) -> pint.Quantity:
        """Return ``name`` expressed in the preferred unit for that parameter."""

        return from_atomic(name, self[name], self.units.unit_for(name))

    def updated(self, **entries: Any) -> ParameterSet:
        return ParameterSet({**self.values, **entries}, self.units, self.user_keys)

    def describe(self) -> dict[str, str]:
        described: dict[str, str] = {}
        for name, value in self.values.items():
            if name in PARAMETER_KINDS:
                if self.units.unit_for(name) == "au":
                    described[name] = f"{value:g} au"
                else:
                    quantity = self.quantity(name)
                    described[name] = f"{quantity.magnitude:g} {quantity.units:~}"
            else:
                described[name] = str(value)
        return described
