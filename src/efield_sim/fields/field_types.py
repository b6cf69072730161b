from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np

from efield_sim.errors import ConfigurationError
from efield_sim.fields.base import (
    CarrierlessField,
    Field,
    Polarization,
    as_time_array,
    finish,
    scale_components,
)
from efield_sim.fields.carriers import FixedCarrier
from efield_sim.fields.envelopes import Envelope
from efield_sim.models.params import ParameterSet


@dataclass(frozen=True, eq=False)
class LinearField(Field):
    """``A(t) = A0 env(t) sin(omega t + phi)``."""

    carrier: FixedCarrier
    envelope: Envelope
    params: ParameterSet

    def __post_init__(self) -> None:
        if self.carrier.dimensions != 1:
            raise ConfigurationError(
                f"LinearField needs a scalar carrier, got {type(self.carrier).__name__}."
            )

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        values = self.vector_potential_amplitude * self.envelope(times) * self.carrier(times)
        return finish(np.asarray(values), scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        values = self.vector_potential_amplitude * (
            self.envelope.derivative(times) * self.carrier(times)
            + self.envelope(times) * self.carrier.derivative(times)
        )
        return finish(np.asarray(values), scalar)

    @property
    def span(self) -> tuple[float, float]:
        return self.envelope.span

    def phase_shift(self, delta: float) -> LinearField:
        return replace(self, carrier=self.carrier.phase_shift(delta))

    def __str__(self) -> str:
        return (
            f"Linearly polarized field: {type(self.envelope).__name__} envelope, "
            f"{type(self.carrier).__name__}, I₀ = {self.peak_intensity:.6g} au, "
            f"λ = {self.wavelength:.6g} au"
        )


@dataclass(frozen=True, eq=False)
class TransverseField(Field):
    """``A(t) = A0 env(t) R C(t)`` for a three-component carrier ``C``."""

    carrier: FixedCarrier
    envelope: Envelope
    params: ParameterSet
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))

    def __post_init__(self) -> None:
        if self.carrier.dimensions != 3:
            raise ConfigurationError(
                f"TransverseField needs a three-component carrier, got {type(self.carrier).__name__}."
            )
        rotation = np.asarray(self.rotation, dtype=float)
        if rotation.shape != (3, 3):
            raise ConfigurationError(f"Rotation must be a 3x3 matrix, got shape {rotation.shape}.")
        object.__setattr__(self, "rotation", rotation)

    @property
    def dimensions(self) -> int:
        return 3

    @property
    def polarization(self) -> Polarization:
        return Polarization.ARBITRARY

    @property
    def rotation_matrix(self) -> np.ndarray:
        return self.rotation

    def vector_potential(self, t: Any) -> Any:
        times, _ = as_time_array(t)
        oriented = self.carrier(times) @ self.rotation.T
        return self.vector_potential_amplitude * scale_components(oriented, self.envelope(times))

    def vector_potential_derivative(self, t: Any) -> Any:
        times, _ = as_time_array(t)
        carrier = self.carrier(times) @ self.rotation.T
        carrier_slope = self.carrier.derivative(times) @ self.rotation.T
        values = scale_components(carrier, self.envelope.derivative(times)) + scale_components(
            carrier_slope, self.envelope(times)
        )
        return self.vector_potential_amplitude * values

    @property
    def span(self) -> tuple[float, float]:
        return self.envelope.span

    def phase_shift(self, delta: float) -> TransverseField:
        return replace(self, carrier=self.carrier.phase_shift(delta))

    def __str__(self) -> str:
        return (
            f"Transversely polarized field: {type(self.envelope).__name__} envelope, "
            f"{type(self.carrier).__name__}, I₀ = {self.peak_intensity:.6g} au, "
            f"λ = {self.wavelength:.6g} au"
        )


@dataclass(frozen=True, eq=False)
class ConstantField(CarrierlessField):
    """Static field ``E0`` switched on over ``[0, tmax]``."""

    params: ParameterSet
    tmax: float

    def __post_init__(self) -> None:
        if not self.tmax > 0.0:
            raise ConfigurationError(f"ConstantField needs tmax > 0, got {self.tmax!r}.")

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        values = -self.amplitude * np.clip(times, 0.0, self.tmax)
        return finish(values, scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        inside = (times >= 0.0) & (times <= self.tmax)
        return finish(np.where(inside, -self.amplitude, 0.0), scalar)

    def field_amplitude(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        inside = (times >= 0.0) & (times <= self.tmax)
        return finish(np.where(inside, self.amplitude, 0.0), scalar)

    @property
    def span(self) -> tuple[float, float]:
        return (0.0, self.tmax)

    @property
    def duration(self) -> float:
        return self.tmax

    @property
    def continuity(self) -> float:
        return 0


def _sin2_profile(x: np.ndarray) -> np.ndarray:
    return 0.5 * x - np.sin(math.pi * x) / (2.0 * math.pi)


_Profile = Callable[[np.ndarray], np.ndarray]

RAMP_PROFILES: dict[str, tuple[_Profile, _Profile]] = {
    # (integrated profile f, profile f') with f(0) = 0 and the field E0 f'(t/tmax)
    "linear": (lambda x: 0.5 * x**2, lambda x: x),
    "parabolic": (lambda x: x**2 - x**3 / 3.0, lambda x: 2.0 * x - x**2),
    "sin²": (_sin2_profile, lambda x: np.sin(0.5 * math.pi * x) ** 2),
}

RAMP_DIRECTIONS = ("up", "down")


@dataclass(frozen=True, eq=False)
class RampField(CarrierlessField):
    """Static field ramped up (or down) over ``[0, tmax]``: ``A = -E0 tmax f(t/tmax)``."""

    params: ParameterSet
    tmax: float
    shape: str = "linear"
    direction: str = "up"

    def __post_init__(self) -> None:
        if not self.tmax > 0.0:
            raise ConfigurationError(f"Ramp needs tmax > 0, got {self.tmax!r}.")
        if self.shape not in RAMP_PROFILES:
            valid = ", ".join(sorted(RAMP_PROFILES))
            raise ConfigurationError(f"Unknown ramp shape {self.shape}, valid choices are {valid}")
        if self.direction not in RAMP_DIRECTIONS:
            raise ConfigurationError(
                f"Unknown :ramp kind {self.direction}, valid choices are {', '.join(RAMP_DIRECTIONS)}"
            )

    def _profile(self, x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        integral, slope = RAMP_PROFILES[self.shape]
        if self.direction == "up":
            return integral(x), slope(x)
        one = np.ones_like(x)
        return integral(one) - integral(1.0 - x), slope(1.0 - x)

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        x = np.clip(times / self.tmax, 0.0, 1.0)
        integral, _ = self._profile(x)
        return finish(-self.amplitude * self.tmax * integral, scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        x = times / self.tmax
        inside = (x >= 0.0) & (x <= 1.0)
        _, slope = self._profile(np.clip(x, 0.0, 1.0))
        return finish(np.where(inside, -self.amplitude * slope, 0.0), scalar)

    @property
    def span(self) -> tuple[float, float]:
        return (0.0, self.tmax)

    @property
    def duration(self) -> float:
        return self.tmax

    @property
    def continuity(self) -> float:
        return 0
