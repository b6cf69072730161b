from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Annotated, Any, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from efield_sim.errors import ConfigurationError, DomainError
from efield_sim.units import (
    ATOMIC_UNIT,
    PARAMETER_KINDS,
    canonical_name,
    parse_unit,
    unit_matches_kind,
)


def _check_unit_overrides(overrides: Mapping[str, str]) -> dict[str, str]:
    checked: dict[str, str] = {}
    for raw_name, unit in overrides.items():
        name = canonical_name(raw_name)
        kind = PARAMETER_KINDS.get(name)
        if kind is None:
            valid = ", ".join(sorted(PARAMETER_KINDS))
            raise ConfigurationError(
                f"Unknown base unit, {raw_name}, valid choices are: {valid}."
            )
        if unit != ATOMIC_UNIT:
            try:
                parsed = parse_unit(unit)
            except DomainError as exc:
                raise ConfigurationError(str(exc)) from exc
            if not unit_matches_kind(parsed, kind):
                raise ConfigurationError(
                    f"Unit {unit!r} is not a {kind} unit and cannot be used for {name}."
                )
        checked[name] = unit
    return checked


class UnitPreferences(BaseModel):
    """Units applied to bare numbers during quantity resolution.

    Parameters absent from ``units`` are read in atomic units. Instances are
    immutable; derive a new table with :meth:`with_overrides`.
    """

    model_config = ConfigDict(frozen=True)

    units: dict[str, str] = Field(
        default_factory=dict,
        description="Parameter symbol -> pint unit string, or 'au' for atomic units.",
    )

    @field_validator("units")
    @classmethod
    def _validate_units(cls, value: dict[str, str]) -> dict[str, str]:
        return _check_unit_overrides(value)

    def unit_for(self, name: str) -> str:
        return self.units.get(canonical_name(name), ATOMIC_UNIT)

    def with_overrides(self, overrides: Mapping[str, str]) -> UnitPreferences:
        checked = _check_unit_overrides(overrides)
        return UnitPreferences(units={**self.units, **checked})


DEFAULT_UNITS = UnitPreferences()

LAB_UNITS = UnitPreferences(
    units={
        "λ": "nm",
        "I₀": "W/cm**2",
        "E₀": "V/m",
        "τ": "fs",
        "σ": "fs",
        "toff": "fs",
        "tmax": "fs",
        "T": "fs",
        "f": "THz",
        "ν": "1/cm",
        "ω": "1/fs",
        "ħω": "eV",
        "Uₚ": "eV",
    }
)


class DispersionOptions(BaseModel):
    """Numerical controls for span discovery and B-spline reconstruction."""

    model_config = ConfigDict(frozen=True)

    max_iter: int = Field(default=7, ge=0, description="Maximum number of span doublings.")
    growth: float = Field(default=2.0, gt=1.0, description="Span growth factor per iteration.")
    tol: float = Field(default=5e-4, gt=0.0, description="Relative L2 convergence tolerance.")
    cutoff: float | None = Field(
        default=1e5 * math.sqrt(float(np.finfo(float).eps)),
        ge=0.0,
        description=(
            "Relative magnitude below which the reconstructed tails are dropped. "
            "None disables support truncation."
        ),
    )
    spline_order: int = Field(default=3, ge=1, le=5)
    knots_per_period: float = Field(
        default=40.0,
        gt=0.0,
        description="B-spline knot density (Bfs), in knots per carrier period.",
    )
    sampling_factor: float = Field(
        default=100.0,
        gt=0.0,
        description="Samples per unit of the field's maximum frequency.",
    )

    @model_validator(mode="after")
    def _validate_sampling_vs_knots(self) -> DispersionOptions:
        if self.knots_per_period >= self.sampling_factor:
            raise ValueError(
                "knots_per_period must be smaller than sampling_factor so the spline fit "
                f"is overdetermined; got knots_per_period={self.knots_per_period}, "
                f"sampling_factor={self.sampling_factor}."
            )
        return self


class PhaseShiftStepCfg(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["phase_shift"] = "phase_shift"
    phi_rad: float = 0.0


class ChirpStepCfg(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["chirp"] = "chirp"
    gdd_fs2: float = Field(
        description="Chirp coefficient b of H = exp(-i b (omega - omega0)**2), in fs**2."
    )
    center_wavelength_nm: float | None = Field(
        default=None,
        gt=0.0,
        description="Reference wavelength for omega0; defaults to the field's carrier.",
    )


class IsotropicMediumStepCfg(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["isotropic_medium"] = "isotropic_medium"
    material: str
    thickness_mm: float = Field(gt=0.0)
    center_wavelength_nm: float | None = Field(default=None, gt=0.0)


DispersionStepCfg = Annotated[
    PhaseShiftStepCfg | ChirpStepCfg | IsotropicMediumStepCfg,
    Field(discriminator="kind"),
]


class RunConfig(BaseModel):
    """Field description consumed by the command line front-end."""

    model_config = ConfigDict(frozen=True)

    units: dict[str, str] = Field(default_factory=dict)
    field: dict[str, Any]
    delay_fs: float = 0.0
    dispersion: list[DispersionStepCfg] = Field(default_factory=list)
    dispersion_options: DispersionOptions = Field(default_factory=DispersionOptions)

    @field_validator("field")
    @classmethod
    def _validate_field(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not value:
            raise ValueError("RunConfig.field must contain at least one parameter.")
        return value

    @field_validator("units")
    @classmethod
    def _validate_units(cls, value: dict[str, str]) -> dict[str, str]:
        return _check_unit_overrides(value)

    def unit_preferences(self) -> UnitPreferences:
        return UnitPreferences(units=self.units)
