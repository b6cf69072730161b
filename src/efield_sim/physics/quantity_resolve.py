from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from efield_sim.errors import ConfigurationError, DomainError
from efield_sim.models.config import DEFAULT_UNITS, UnitPreferences
from efield_sim.models.params import ParameterSet
from efield_sim.units import SPEED_OF_LIGHT_AU, canonical_name, to_atomic

logger = logging.getLogger(__name__)

FREQUENCY_GROUP = ("λ", "T", "f", "ν", "ω", "ħω")
AMPLITUDE_GROUP = ("I₀", "E₀", "A₀", "Uₚ")

_POSITIVE = ("λ", "T", "f", "ν", "ω", "ħω", "E₀", "A₀", "τ", "σ", "σ′", "tmax")


def require_one_of(params: Mapping[str, Any], names: Sequence[str]) -> str:
    """Return the single member of ``names`` present in ``params``.

    Raises ``ConfigurationError`` when none or more than one is present.
    """

    present = [name for name in names if name in params]
    if not present:
        if len(names) == 1:
            raise ConfigurationError(f"Required parameter {names[0]} missing")
        raise ConfigurationError(f"Need to provide one of {', '.join(names)}")
    if len(present) > 1:
        raise ConfigurationError(
            f"Can only specify one of {', '.join(names)}; got {', '.join(present)}"
        )
    return present[0]


def _at_most_one_of(params: Mapping[str, Any], names: Sequence[str]) -> str | None:
    present = [name for name in names if name in params]
    if len(present) > 1:
        raise ConfigurationError(
            f"Can only specify one of {', '.join(names)}; got {', '.join(present)}"
        )
    return present[0] if present else None


@dataclass(frozen=True, slots=True)
class Rule:
    """Assign ``target`` from ``requires`` once all of them are known."""

    target: str
    requires: tuple[str, ...]
    compute: Callable[..., float]

    def applies(self, values: Mapping[str, Any]) -> bool:
        return self.target not in values and all(name in values for name in self.requires)

    def fire(self, values: dict[str, Any]) -> None:
        values[self.target] = float(self.compute(*(values[name] for name in self.requires)))


# atomic units: hbar = 1, so the photon energy equals the angular frequency,
# and I = E**2 with the intensity unit 0.5 * eps0 * c * E_au**2.
FREQUENCY_RULES: tuple[Rule, ...] = (
    Rule("λ", ("ν",), lambda nu: 1.0 / nu),
    Rule("T", ("λ",), lambda lam: lam / SPEED_OF_LIGHT_AU),
    Rule("T", ("f",), lambda f: 1.0 / f),
    Rule("ω", ("ħω",), lambda photon_energy: photon_energy),
    Rule("T", ("ω",), lambda omega: 2.0 * math.pi / omega),
    Rule("λ", ("T",), lambda period: SPEED_OF_LIGHT_AU * period),
    Rule("f", ("T",), lambda period: 1.0 / period),
    Rule("ω", ("T",), lambda period: 2.0 * math.pi / period),
    Rule("ν", ("λ",), lambda lam: 1.0 / lam),
    Rule("ħω", ("ω",), lambda omega: omega),
)

AMPLITUDE_RULES: tuple[Rule, ...] = (
    Rule("I₀", ("E₀",), lambda amplitude: amplitude**2),
    Rule("E₀", ("A₀", "ω"), lambda vector_amplitude, omega: vector_amplitude * omega),
    Rule("I₀", ("Uₚ", "ω"), lambda ponderomotive, omega: 4.0 * omega**2 * ponderomotive),
    Rule("E₀", ("I₀",), math.sqrt),
    Rule("A₀", ("E₀", "ω"), lambda amplitude, omega: amplitude / omega),
    Rule("Uₚ", ("I₀", "ω"), lambda intensity, omega: intensity / (4.0 * omega**2)),
)


def apply_rules(values: dict[str, Any], rules: Sequence[Rule]) -> dict[str, Any]:
    """Fire rules in order, repeatedly, until none applies."""

    changed = True
    while changed:
        changed = False
        for rule in rules:
            if rule.applies(values):
                rule.fire(values)
                changed = True
    return values


def canonicalize(params: Mapping[str, Any]) -> dict[str, Any]:
    canonical: dict[str, Any] = {}
    for raw_name, value in params.items():
        name = canonical_name(raw_name)
        if name in canonical:
            raise ConfigurationError(f"Parameter {name} given more than once (as {raw_name}).")
        canonical[name] = value
    return canonical


def resolve(
    params: Mapping[str, Any],
    units: UnitPreferences | None = None,
    *,
    require_frequency: bool = True,
) -> ParameterSet:
    """Complete a partial field description.

    Bare numbers are read in the unit ``units`` prefers for that parameter
    (atomic units by default); pint quantities carry their own unit. Exactly
    one member of the frequency group and of the amplitude group must be
    given. ``require_frequency=False`` allows amplitude-only descriptions, as
    used by constant fields and ramps.
    """

    if isinstance(params, ParameterSet):
        return params

    units = units or DEFAULT_UNITS
    raw = canonicalize(params)
    values = {name: to_atomic(name, value, units.unit_for(name)) for name, value in raw.items()}

    if require_frequency:
        require_one_of(values, FREQUENCY_GROUP)
    else:
        _at_most_one_of(values, FREQUENCY_GROUP)
    require_one_of(values, AMPLITUDE_GROUP)

    for name in _POSITIVE:
        if name in values and not values[name] > 0.0:
            raise DomainError(f"Parameter {name} must be positive, got {values[name]!r}.")
    if "I₀" in values and values["I₀"] < 0.0:
        raise DomainError(f"Intensity I₀ must be non-negative, got {values['I₀']!r}.")

    apply_rules(values, FREQUENCY_RULES)
    apply_rules(values, AMPLITUDE_RULES)
    if "I₀" not in values:
        given = next(name for name in AMPLITUDE_GROUP if name in raw)
        raise ConfigurationError(
            f"Cannot derive the field amplitude from {given} without a frequency; "
            f"provide one of {', '.join(FREQUENCY_GROUP)}."
        )

    logger.debug("resolved field parameters %s from %s", sorted(values), sorted(raw))
    return ParameterSet(values, units, frozenset(raw))
