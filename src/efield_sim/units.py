from __future__ import annotations

import math
from numbers import Real
from typing import Any

import pint
from scipy import constants

from efield_sim.errors import DomainError

# internal units are atomic units (hbar = e = m_e = 4 pi eps0 = 1); every
# unit-bearing number leaving this module is in atomic units.

ureg = pint.UnitRegistry()
Q_ = ureg.Quantity

BOHR_M = constants.physical_constants["Bohr radius"][0]
HARTREE_J = constants.physical_constants["Hartree energy"][0]
AU_TIME_S = constants.physical_constants["atomic unit of time"][0]
AU_FIELD_V_PER_M = constants.physical_constants["atomic unit of electric field"][0]
AU_INTENSITY_W_PER_M2 = 0.5 * constants.epsilon_0 * constants.c * AU_FIELD_V_PER_M**2
SPEED_OF_LIGHT_AU = 1.0 / constants.fine_structure
# intensity unit over the atomic energy-flux unit (hartree per bohr² per atomic time)
INTENSITY_TO_FLUX_AU = SPEED_OF_LIGHT_AU / (8.0 * math.pi)

ATOMIC_UNIT = "au"

# (SI reference unit, size of one atomic unit expressed in that SI unit)
_KIND_SCALES: dict[str, tuple[str, float]] = {
    "length": ("m", BOHR_M),
    "time": ("s", AU_TIME_S),
    "frequency": ("1/s", 1.0 / AU_TIME_S),
    "wavenumber": ("1/m", 1.0 / BOHR_M),
    "energy": ("J", HARTREE_J),
    "intensity": ("W/m**2", AU_INTENSITY_W_PER_M2),
    "electric_field": ("V/m", AU_FIELD_V_PER_M),
    "vector_potential": ("V*s/m", AU_FIELD_V_PER_M * AU_TIME_S),
    "dispersion": ("s**2", AU_TIME_S**2),
    "angle": ("rad", 1.0),
    "dimensionless": ("", 1.0),
}

PARAMETER_KINDS: dict[str, str] = {
    "λ": "length",
    "T": "time",
    "f": "frequency",
    "ν": "wavenumber",
    "ω": "frequency",
    "ħω": "energy",
    "I₀": "intensity",
    "E₀": "electric_field",
    "A₀": "vector_potential",
    "Uₚ": "energy",
    "τ": "time",
    "σ": "time",
    "σ′": "time",
    "tmax": "time",
    "toff": "time",
    "σmax": "dimensionless",
    "σ′max": "dimensionless",
    "σoff": "dimensionless",
    "Tmax": "dimensionless",
    "ramp": "dimensionless",
    "ramp_up": "dimensionless",
    "ramp_down": "dimensionless",
    "flat": "dimensionless",
    "cycles": "dimensionless",
    "ξ": "dimensionless",
    "ϕ": "angle",
}

PARAMETER_ALIASES: dict[str, str] = {
    "lambda": "λ",
    "wavelength": "λ",
    "period": "T",
    "frequency": "f",
    "nu": "ν",
    "wavenumber": "ν",
    "omega": "ω",
    "angular_frequency": "ω",
    "hbar_omega": "ħω",
    "photon_energy": "ħω",
    "I0": "I₀",
    "intensity": "I₀",
    "E0": "E₀",
    "amplitude": "E₀",
    "A0": "A₀",
    "Up": "Uₚ",
    "ponderomotive_potential": "Uₚ",
    "tau": "τ",
    "sigma": "σ",
    "sigma_max": "σmax",
    "sigma_prime": "σ′",
    "sigma_prime_max": "σ′max",
    "sigma_off": "σoff",
    "xi": "ξ",
    "phi": "ϕ",
    "φ": "ϕ",
    "cep": "ϕ",
}


def canonical_name(name: str) -> str:
    """Map ASCII aliases (``I0``, ``tau``, ...) onto the canonical parameter symbol."""

    return PARAMETER_ALIASES.get(name, name)


def is_quantity(value: object) -> bool:
    return isinstance(value, pint.Quantity)


def parse_unit(spec: str) -> pint.Unit:
    try:
        return ureg.Unit(spec)
    except (pint.UndefinedUnitError, pint.DefinitionSyntaxError, AttributeError, ValueError) as exc:
        raise DomainError(f"Cannot parse unit specification {spec!r}: {exc}") from exc


def unit_matches_kind(unit: pint.Unit, kind: str) -> bool:
    reference, _ = _KIND_SCALES[kind]
    return unit.dimensionality == ureg.Unit(reference).dimensionality


def quantity_to_atomic(value: pint.Quantity, kind: str, *, name: str = "quantity") -> float:
    """Convert a pint quantity of the given physical kind into atomic units."""

    reference, scale = _KIND_SCALES[kind]
    if not value.check(ureg.Unit(reference).dimensionality):
        raise DomainError(
            f"Parameter {name} expects a {kind} quantity, got {value:~} "
            f"with dimensionality {value.dimensionality}."
        )
    return float(value.to(reference).magnitude) / scale


def to_atomic(name: str, value: Any, unit: str = ATOMIC_UNIT) -> Any:
    """Convert one parameter value to atomic units.

    Quantities carry their own unit. Bare numbers are interpreted in ``unit``,
    which is ``"au"`` unless the caller's unit preferences say otherwise.
    Parameters without a registered physical kind are returned untouched.
    """

    kind = PARAMETER_KINDS.get(name)
    if kind is None:
        return value
    if is_quantity(value):
        return quantity_to_atomic(value, kind, name=name)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise DomainError(f"Parameter {name} must be a number or a quantity, got {value!r}.")
    if unit == ATOMIC_UNIT:
        return float(value)
    return quantity_to_atomic(Q_(float(value), unit), kind, name=name)


def from_atomic(name: str, value: float, unit: str = ATOMIC_UNIT) -> pint.Quantity:
    """Express an atomic-unit value of parameter ``name`` as a quantity in ``unit``."""

    kind = PARAMETER_KINDS.get(name, "dimensionless")
    reference, scale = _KIND_SCALES[kind]
    if unit == ATOMIC_UNIT:
        return Q_(float(value), ureg.dimensionless)
    return Q_(float(value) * scale, reference).to(unit)


def time_to_atomic(value: Any) -> float:
    if is_quantity(value):
        return quantity_to_atomic(value, "time", name="time")
    return float(value)


def dispersion_to_atomic(value: Any) -> float:
    """Second-order dispersion (e.g. fs**2) in atomic units of time squared."""

    if is_quantity(value):
        return quantity_to_atomic(value, "dispersion", name="dispersion")
    return float(value)


def length_to_atomic(value: Any) -> float:
    if is_quantity(value):
        return quantity_to_atomic(value, "length", name="length")
    return float(value)


def angle_to_radians(value: Any) -> float:
    if is_quantity(value):
        return quantity_to_atomic(value, "angle", name="angle")
    return float(value)
