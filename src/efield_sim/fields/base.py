from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from scipy.optimize import minimize_scalar

from efield_sim.errors import IncompatibleFieldsError
from efield_sim.units import INTENSITY_TO_FLUX_AU, SPEED_OF_LIGHT_AU

_PHASE_SEEDS = 16


class Polarization(str, Enum):
    LINEAR = "linear"
    ARBITRARY = "arbitrary"


def as_time_array(t: Any) -> tuple[np.ndarray, bool]:
    """Return ``t`` as a float array and whether it was a scalar.

    Complex time arguments are rejected.
    """

    if np.iscomplexobj(t):
        raise TypeError("Complex time arguments are not supported.")
    arr = np.asarray(t, dtype=float)
    return arr, arr.ndim == 0


def finish(values: np.ndarray, scalar: bool) -> Any:
    if scalar and values.ndim == 0:
        return float(values)
    return values


def mask_outside(values: np.ndarray, keep: np.ndarray) -> np.ndarray:
    """Zero ``values`` wherever ``keep`` is false, broadcasting over components."""

    if values.ndim > keep.ndim:
        keep = keep[..., np.newaxis]
    return np.where(keep, values, 0.0)


def scale_components(values: np.ndarray, factor: np.ndarray) -> np.ndarray:
    if values.ndim > np.ndim(factor):
        factor = np.asarray(factor)[..., np.newaxis]
    return values * factor


def maximize_over_phase(objective: Any) -> float:
    """Maximum of a 2 pi periodic function of the added carrier phase."""

    seeds = np.linspace(0.0, 2.0 * math.pi, _PHASE_SEEDS, endpoint=False)
    seeded = [objective(float(delta)) for delta in seeds]
    best = int(np.argmax(seeded))
    half_step = math.pi / _PHASE_SEEDS
    result = minimize_scalar(
        lambda delta: -objective(delta),
        bounds=(seeds[best] - half_step, seeds[best] + half_step),
        method="bounded",
        options={"xatol": 1e-10},
    )
    return max(float(seeded[best]), float(-result.fun))


class Field(ABC):
    """A laser field described by its vector potential.

    Concrete fields implement ``vector_potential``, its time derivative,
    ``span`` and ``phase_shift``. Fields built from a carrier and an envelope
    expose them as ``carrier`` and ``envelope`` and their resolved parameters
    as ``params``; the derived quantities below read from those.
    """

    @abstractmethod
    def vector_potential(self, t: Any) -> Any: ...

    @abstractmethod
    def vector_potential_derivative(self, t: Any) -> Any: ...

    @property
    @abstractmethod
    def span(self) -> tuple[float, float]: ...

    @abstractmethod
    def phase_shift(self, delta: float) -> Field:
        """Return the field with its carrier phase advanced by ``delta``."""

    def field_amplitude(self, t: Any) -> Any:
        """Electric field ``F = -dA/dt``."""

        return -self.vector_potential_derivative(t)

    def field_amplitude_integral(self, a: float, b: float) -> Any:
        """Time integral of the field amplitude over ``[a, b]``, i.e. ``-(A(b) - A(a))``."""

        return -(np.asarray(self.vector_potential(b)) - np.asarray(self.vector_potential(a)))

    def instantaneous_intensity(self, t: Any) -> Any:
        amplitude = np.asarray(self.field_amplitude(t))
        if self.dimensions == 1:
            return amplitude**2
        return np.sum(amplitude**2, axis=-1)

    def intensity(self, t: Any) -> Any:
        """Cycle-peak intensity: the instantaneous intensity maximized over the carrier phase."""

        times, scalar = as_time_array(t)
        values = np.array([self._cycle_peak_intensity(float(ti)) for ti in times.ravel()])
        return finish(values.reshape(times.shape), scalar)

    def _cycle_peak_intensity(self, t: float) -> float:
        if self.polarization is Polarization.LINEAR:
            return maximize_over_phase(lambda delta: float(self.phase_shift(delta).field_amplitude(t)) ** 2)
        return sum(
            maximize_over_phase(
                lambda delta, k=k: float(np.asarray(self.phase_shift(delta).field_amplitude(t))[k]) ** 2
            )
            for k in range(self.dimensions)
        )

    def field_envelope(self, t: Any) -> Any:
        return np.sqrt(self.intensity(t))

    @property
    def dimensions(self) -> int:
        return 1

    @property
    def polarization(self) -> Polarization:
        return Polarization.LINEAR

    @property
    def rotation_matrix(self) -> np.ndarray:
        return np.eye(3)

    @property
    def time_delay(self) -> float:
        return 0.0

    @property
    def wavelength(self) -> float:
        return self.carrier.wavelength

    @property
    def period(self) -> float:
        return self.carrier.period

    @property
    def frequency(self) -> float:
        return self.carrier.frequency

    @property
    def wavenumber(self) -> float:
        return self.carrier.wavenumber

    @property
    def angular_frequency(self) -> float:
        return self.carrier.angular_frequency

    @property
    def photon_energy(self) -> float:
        return self.carrier.photon_energy

    @property
    def max_frequency(self) -> float:
        return self.carrier.max_frequency

    @property
    def amplitude(self) -> float:
        return self.params["E₀"]

    @property
    def peak_intensity(self) -> float:
        return self.params["I₀"]

    @property
    def vector_potential_amplitude(self) -> float:
        return self.params["A₀"]

    @property
    def ponderomotive_potential(self) -> float:
        return self.params["Uₚ"]

    @property
    def duration(self) -> float:
        return self.envelope.duration

    @property
    def continuity(self) -> float:
        return self.envelope.continuity

    @property
    def fundamental(self) -> float:
        return self.carrier.fundamental

    @property
    def time_integral(self) -> float:
        """``∫ e(t)² dt`` of the envelope; the pulse energy in units of the peak intensity."""

        return self.envelope.time_integral

    @property
    def time_bandwidth_product(self) -> float:
        return self.envelope.time_bandwidth_product

    @property
    def fluence(self) -> float:
        """Photon fluence ``∫ I(t) dt / ħω``, in photons per bohr²."""

        return INTENSITY_TO_FLUX_AU * self.peak_intensity * self.time_integral / self.photon_energy

    def __add__(self, other: object) -> Field:
        if not isinstance(other, Field):
            return NotImplemented
        from efield_sim.fields.arithmetic import add_fields

        return add_fields(self, other)

    def __neg__(self) -> Field:
        from efield_sim.fields.arithmetic import NegatedField

        return NegatedField(self)

    def __sub__(self, other: object) -> Field:
        if not isinstance(other, Field):
            return NotImplemented
        return self + (-other)


@dataclass(frozen=True, eq=False)
class WrappedField(Field):
    """Field wrapping a single parent; every derived quantity defaults to the parent's."""

    parent: Field

    @property
    def carrier(self) -> Any:
        return self.parent.carrier

    @property
    def envelope(self) -> Any:
        return self.parent.envelope

    @property
    def params(self) -> Any:
        return self.parent.params

    @property
    def span(self) -> tuple[float, float]:
        return self.parent.span

    @property
    def dimensions(self) -> int:
        return self.parent.dimensions

    @property
    def polarization(self) -> Polarization:
        return self.parent.polarization

    @property
    def rotation_matrix(self) -> np.ndarray:
        return self.parent.rotation_matrix

    @property
    def wavelength(self) -> float:
        return self.parent.wavelength

    @property
    def period(self) -> float:
        return self.parent.period

    @property
    def frequency(self) -> float:
        return self.parent.frequency

    @property
    def wavenumber(self) -> float:
        return self.parent.wavenumber

    @property
    def angular_frequency(self) -> float:
        return self.parent.angular_frequency

    @property
    def photon_energy(self) -> float:
        return self.parent.photon_energy

    @property
    def max_frequency(self) -> float:
        return self.parent.max_frequency

    @property
    def amplitude(self) -> float:
        return self.parent.amplitude

    @property
    def peak_intensity(self) -> float:
        return self.parent.peak_intensity

    @property
    def vector_potential_amplitude(self) -> float:
        return self.parent.vector_potential_amplitude

    @property
    def ponderomotive_potential(self) -> float:
        return self.parent.ponderomotive_potential

    @property
    def duration(self) -> float:
        return self.parent.duration

    @property
    def continuity(self) -> float:
        return self.parent.continuity

    @property
    def fundamental(self) -> float:
        return self.parent.fundamental

    @property
    def time_integral(self) -> float:
        return self.parent.time_integral

    @property
    def time_bandwidth_product(self) -> float:
        return self.parent.time_bandwidth_product


class CarrierlessField(Field):
    """Mixin for fields without an oscillating carrier (constant fields and ramps)."""

    @property
    def period(self) -> float:
        return 1.0

    @property
    def frequency(self) -> float:
        return 1.0

    @property
    def angular_frequency(self) -> float:
        return 2.0 * math.pi

    @property
    def photon_energy(self) -> float:
        return 2.0 * math.pi

    @property
    def wavelength(self) -> float:
        return SPEED_OF_LIGHT_AU

    @property
    def wavenumber(self) -> float:
        return 1.0 / SPEED_OF_LIGHT_AU

    @property
    def max_frequency(self) -> float:
        return 1.0

    @property
    def carrier(self) -> Any:
        raise IncompatibleFieldsError(f"{type(self).__name__} has no carrier.")

    @property
    def envelope(self) -> Any:
        raise IncompatibleFieldsError(f"{type(self).__name__} has no envelope.")

    def phase_shift(self, delta: float) -> Field:
        return self

    def intensity(self, t: Any) -> Any:
        return self.instantaneous_intensity(t)
