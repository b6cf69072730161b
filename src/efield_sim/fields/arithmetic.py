from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from efield_sim.errors import ConfigurationError, IncompatibleFieldsError
from efield_sim.fields.base import (
    Field,
    Polarization,
    WrappedField,
    as_time_array,
    finish,
    mask_outside,
    scale_components,
)
from efield_sim.fields.carriers import LinearTransverseCarrier
from efield_sim.fields.field_types import LinearField, TransverseField
from efield_sim.fields.windows import Window
from efield_sim.physics.rotations import compute_rotation
from efield_sim.units import angle_to_radians, is_quantity, time_to_atomic


@dataclass(frozen=True, eq=False)
class SumField(Field):
    """Superposition of two fields with equal dimensionality."""

    a: Field
    b: Field

    def __post_init__(self) -> None:
        if self.a.dimensions != self.b.dimensions:
            raise IncompatibleFieldsError(
                "Cannot add fields of different dimensionality: "
                f"{self.a.dimensions} and {self.b.dimensions}."
            )

    def vector_potential(self, t: Any) -> Any:
        return self.a.vector_potential(t) + self.b.vector_potential(t)

    def vector_potential_derivative(self, t: Any) -> Any:
        return self.a.vector_potential_derivative(t) + self.b.vector_potential_derivative(t)

    def field_amplitude(self, t: Any) -> Any:
        return self.a.field_amplitude(t) + self.b.field_amplitude(t)

    def phase_shift(self, delta: float) -> SumField:
        return SumField(self.a.phase_shift(delta), self.b.phase_shift(delta))

    @property
    def span(self) -> tuple[float, float]:
        a_lo, a_hi = self.a.span
        b_lo, b_hi = self.b.span
        return (min(a_lo, b_lo), max(a_hi, b_hi))

    @property
    def dimensions(self) -> int:
        return self.a.dimensions

    @property
    def polarization(self) -> Polarization:
        return self.a.polarization

    def _common(self, name: str) -> float:
        value_a = getattr(self.a, name)
        value_b = getattr(self.b, name)
        if value_a != value_b:
            raise IncompatibleFieldsError(
                f"{name} differs between SumField composants: {value_a!r} vs {value_b!r}."
            )
        return value_a

    @property
    def params(self) -> Any:
        raise IncompatibleFieldsError("A SumField has no single parameter set; query its addends.")

    @property
    def carrier(self) -> Any:
        raise IncompatibleFieldsError("A SumField has no single carrier; query its addends.")

    @property
    def envelope(self) -> Any:
        raise IncompatibleFieldsError("A SumField has no single envelope; query its addends.")

    @property
    def wavelength(self) -> float:
        return self._common("wavelength")

    @property
    def period(self) -> float:
        return self._common("period")

    @property
    def frequency(self) -> float:
        return self._common("frequency")

    @property
    def wavenumber(self) -> float:
        return self._common("wavenumber")

    @property
    def angular_frequency(self) -> float:
        return self._common("angular_frequency")

    @property
    def photon_energy(self) -> float:
        return self._common("photon_energy")

    @property
    def fundamental(self) -> float:
        return self._common("fundamental")

    @property
    def max_frequency(self) -> float:
        return max(self.a.max_frequency, self.b.max_frequency)

    @property
    def continuity(self) -> float:
        return min(self.a.continuity, self.b.continuity)

    @property
    def duration(self) -> float:
        lo, hi = self.span
        return hi - lo

    @property
    def ponderomotive_potential(self) -> float:
        return self.a.ponderomotive_potential + self.b.ponderomotive_potential


def add_fields(a: Field, b: Field) -> SumField:
    """``a + b``; a linearly polarized addend is promoted when the other is not."""

    if a.polarization is not b.polarization:
        if a.polarization is Polarization.LINEAR:
            a = rotate(a, None)
        if b.polarization is Polarization.LINEAR:
            b = rotate(b, None)
    return SumField(a, b)


@dataclass(frozen=True, eq=False)
class NegatedField(WrappedField):
    def vector_potential(self, t: Any) -> Any:
        return -self.parent.vector_potential(t)

    def vector_potential_derivative(self, t: Any) -> Any:
        return -self.parent.vector_potential_derivative(t)

    def field_amplitude(self, t: Any) -> Any:
        return -self.parent.field_amplitude(t)

    def phase_shift(self, delta: float) -> NegatedField:
        return NegatedField(self.parent.phase_shift(delta))

    def __neg__(self) -> Field:
        return self.parent


@dataclass(frozen=True, eq=False)
class DelayedField(WrappedField):
    """``A(t) = A_parent(t - t0)``; positive ``t0`` shifts the field later."""

    t0: float

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        return finish(np.asarray(self.parent.vector_potential(times - self.t0)), scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        return finish(np.asarray(self.parent.vector_potential_derivative(times - self.t0)), scalar)

    def phase_shift(self, delta: float) -> DelayedField:
        return DelayedField(self.parent.phase_shift(delta), self.t0)

    @property
    def span(self) -> tuple[float, float]:
        lo, hi = self.parent.span
        return (lo + self.t0, hi + self.t0)

    @property
    def time_delay(self) -> float:
        return self.t0


def delay(
    field: Field,
    t0: Any = None,
    *,
    cycles: float | None = None,
    phase: Any = None,
) -> DelayedField:
    """Delay ``field`` by a time, a number of carrier cycles, or a carrier phase.

    A pint quantity passed as ``t0`` may be a time or an angle; an angle is
    treated like ``phase``.
    """

    options = (("t0", t0), ("cycles", cycles), ("phase", phase))
    given = [name for name, value in options if value is not None]
    if len(given) != 1:
        raise ConfigurationError(
            f"Need to provide exactly one of t0, cycles, phase; got {given or 'none'}"
        )
    if t0 is not None and is_quantity(t0) and t0.dimensionless:
        phase, t0 = t0, None
    if t0 is not None:
        shift = time_to_atomic(t0)
    elif cycles is not None:
        shift = float(cycles) * field.period
    else:
        shift = angle_to_radians(phase) / (2.0 * math.pi) * field.period

    if isinstance(field, DelayedField):
        return DelayedField(field.parent, field.t0 + shift)
    return DelayedField(field, shift)


@dataclass(frozen=True, eq=False)
class PaddedField(WrappedField):
    """Extends the span by ``before``/``after``; outside the parent span the field is held."""

    before: float
    after: float

    def __post_init__(self) -> None:
        if self.before < 0.0 or self.after < 0.0:
            raise ConfigurationError(
                f"Padding must be non-negative, got before={self.before!r}, after={self.after!r}."
            )

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        lo, hi = self.parent.span
        return finish(np.asarray(self.parent.vector_potential(np.clip(times, lo, hi))), scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        lo, hi = self.parent.span
        inside = (times >= lo) & (times <= hi)
        values = np.asarray(self.parent.vector_potential_derivative(times))
        return finish(mask_outside(values, inside), scalar)

    def phase_shift(self, delta: float) -> PaddedField:
        return replace(self, parent=self.parent.phase_shift(delta))

    @property
    def span(self) -> tuple[float, float]:
        lo, hi = self.parent.span
        return (lo - self.before, hi + self.after)


def _intersect(span: tuple[float, float], a: float, b: float) -> tuple[float, float]:
    lo, hi = span
    lo, hi = max(lo, a), min(hi, b)
    if lo > hi:
        raise ConfigurationError(f"Window [{a}, {b}] does not overlap the field span {span}.")
    return (lo, hi)


def _check_bounds(a: float, b: float) -> None:
    if not a < b:
        raise ConfigurationError(f"Window bounds must satisfy a < b, got a={a!r}, b={b!r}.")


@dataclass(frozen=True, eq=False)
class WindowedField(WrappedField):
    """The parent field on ``[a, b]`` and exactly zero elsewhere."""

    a: float
    b: float

    def __post_init__(self) -> None:
        _check_bounds(self.a, self.b)
        _intersect(self.parent.span, self.a, self.b)

    def _inside(self, times: np.ndarray) -> np.ndarray:
        return (times >= self.a) & (times <= self.b)

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        values = np.asarray(self.parent.vector_potential(times))
        return finish(mask_outside(values, self._inside(times)), scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        values = np.asarray(self.parent.vector_potential_derivative(times))
        return finish(mask_outside(values, self._inside(times)), scalar)

    def field_amplitude_integral(self, a: float, b: float) -> Any:
        lo, hi = max(a, self.a), min(b, self.b)
        if lo >= hi:
            return np.zeros(()) if self.dimensions == 1 else np.zeros(self.dimensions)
        return self.parent.field_amplitude_integral(lo, hi)

    def intensity(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        inside = self._inside(times)
        values = np.zeros(times.shape)
        if np.any(inside):
            values[inside] = self.parent.intensity(times[inside])
        return finish(values, scalar)

    def phase_shift(self, delta: float) -> WindowedField:
        return replace(self, parent=self.parent.phase_shift(delta))

    @property
    def span(self) -> tuple[float, float]:
        return _intersect(self.parent.span, self.a, self.b)


@dataclass(frozen=True, eq=False)
class ApodizedField(WrappedField):
    """Vector potential multiplied by a window mapped from ``[a, b]`` onto ``[-1/2, 1/2]``."""

    a: float
    b: float
    window: Window

    def __post_init__(self) -> None:
        _check_bounds(self.a, self.b)
        _intersect(self.parent.span, self.a, self.b)

    def _window_coordinate(self, times: np.ndarray) -> np.ndarray:
        return (times - 0.5 * (self.a + self.b)) / (self.b - self.a)

    def vector_potential(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        weight = self.window.value(self._window_coordinate(times))
        values = scale_components(np.asarray(self.parent.vector_potential(times)), weight)
        return finish(values, scalar)

    def vector_potential_derivative(self, t: Any) -> Any:
        times, scalar = as_time_array(t)
        x = self._window_coordinate(times)
        weight = self.window.value(x)
        weight_slope = self.window.derivative(x) / (self.b - self.a)
        values = scale_components(
            np.asarray(self.parent.vector_potential(times)), weight_slope
        ) + scale_components(np.asarray(self.parent.vector_potential_derivative(times)), weight)
        return finish(values, scalar)

    def phase_shift(self, delta: float) -> ApodizedField:
        return replace(self, parent=self.parent.phase_shift(delta))

    @property
    def span(self) -> tuple[float, float]:
        return _intersect(self.parent.span, self.a, self.b)


def _embed(values: np.ndarray, dimensions: int) -> np.ndarray:
    if dimensions == 3:
        return values
    return values[..., np.newaxis] * np.array([0.0, 0.0, 1.0])


@dataclass(frozen=True, eq=False)
class RotatedField(WrappedField):
    """Parent field (a linear one embedded along z) rotated by ``rotation``."""

    rotation: np.ndarray

    def vector_potential(self, t: Any) -> Any:
        values = np.asarray(self.parent.vector_potential(t))
        return _embed(values, self.parent.dimensions) @ self.rotation.T

    def vector_potential_derivative(self, t: Any) -> Any:
        values = np.asarray(self.parent.vector_potential_derivative(t))
        return _embed(values, self.parent.dimensions) @ self.rotation.T

    def phase_shift(self, delta: float) -> RotatedField:
        return replace(self, parent=self.parent.phase_shift(delta))

    @property
    def dimensions(self) -> int:
        return 3

    @property
    def polarization(self) -> Polarization:
        return Polarization.ARBITRARY

    @property
    def rotation_matrix(self) -> np.ndarray:
        return self.rotation @ self.parent.rotation_matrix


def rotate(field: Field, rotation: Any) -> Field:
    """Rotate a field; linear fields are first embedded along the z axis.

    ``rotation`` is anything :func:`compute_rotation` accepts.
    """

    R = compute_rotation(rotation)
    if isinstance(field, LinearField):
        carrier = LinearTransverseCarrier(omega=field.carrier.omega, phi=field.carrier.phi)
        return TransverseField(carrier, field.envelope, field.params, R)
    if isinstance(field, TransverseField):
        return replace(field, rotation=R @ field.rotation)
    if isinstance(field, SumField):
        return SumField(rotate(field.a, R), rotate(field.b, R))
    if isinstance(field, NegatedField):
        return NegatedField(rotate(field.parent, R))
    if isinstance(field, DelayedField):
        return DelayedField(rotate(field.parent, R), field.t0)
    if isinstance(field, RotatedField):
        return RotatedField(field.parent, R @ field.rotation)
    return RotatedField(field, R)
