"""Spectra of fields with the unitary convention ``Â(ω) = (2π)^(-1/2) ∫ A(t) exp(-iωt) dt``.

Sampled transforms return bins in FFT order (see :func:`angular_frequencies`)
and carry the phase of the first sample time, so they approximate the
continuous transform and can be compared with the closed forms directly.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from scipy import fft

from efield_sim.errors import DomainError
from efield_sim.fields.arithmetic import DelayedField, NegatedField, SumField
from efield_sim.fields.base import Field
from efield_sim.fields.field_types import ConstantField, LinearField, TransverseField
from efield_sim.fields.time_axis import timeaxis

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)


def angular_frequencies(n: int, dt: float) -> np.ndarray:
    """Angular frequency of each FFT bin for ``n`` samples spaced by ``dt``."""

    return 2.0 * math.pi * fft.fftfreq(n, dt)


def _uniform_step(t: np.ndarray) -> float:
    if t.ndim != 1 or len(t) < 2:
        raise DomainError(
            f"Need a one-dimensional time axis with at least two samples, got shape {t.shape}."
        )
    steps = np.diff(t)
    dt = float(steps[0])
    if not np.allclose(steps, dt, rtol=1e-8, atol=0.0):
        raise DomainError("Spectra require a uniformly sampled time axis.")
    return dt


def _forward(samples: np.ndarray, t: np.ndarray) -> np.ndarray:
    dt = _uniform_step(t)
    omega = angular_frequencies(len(t), dt)
    phase = dt * _INV_SQRT_2PI * np.exp(-1j * omega * t[0])
    spectrum = fft.fft(samples, axis=0)
    if spectrum.ndim > 1:
        phase = phase[:, np.newaxis]
    return phase * spectrum


def fft_vector_potential(field: Field, t: Any = None) -> np.ndarray:
    """Sampled spectrum of the vector potential on ``t`` (defaults to :func:`timeaxis`)."""

    t = timeaxis(field) if t is None else np.asarray(t, dtype=float)
    return _forward(np.asarray(field.vector_potential(t), dtype=float), t)


def fft_field_amplitude(field: Field, t: Any = None) -> np.ndarray:
    t = timeaxis(field) if t is None else np.asarray(t, dtype=float)
    return _forward(np.asarray(field.field_amplitude(t), dtype=float), t)


def ifft_to_time(spectrum: np.ndarray, t: Any) -> np.ndarray:
    """Inverse of the sampled transforms above; returns the real time signal on ``t``."""

    t = np.asarray(t, dtype=float)
    dt = _uniform_step(t)
    omega = angular_frequencies(len(t), dt)
    phase = np.exp(1j * omega * t[0]) / (dt * _INV_SQRT_2PI)
    if np.ndim(spectrum) > 1:
        phase = phase[:, np.newaxis]
    return np.real(fft.ifft(phase * np.asarray(spectrum), axis=0))


def _carrier_convolution(field: LinearField | TransverseField, omega: np.ndarray) -> np.ndarray:
    carrier = field.carrier
    plus, minus = carrier.spectral_weights()
    plus = plus * np.exp(1j * carrier.phi)
    minus = minus * np.exp(-1j * carrier.phi)
    if isinstance(field, TransverseField):
        plus = plus @ field.rotation.T
        minus = minus @ field.rotation.T
    upper = np.asarray(field.envelope.spectrum(omega - carrier.omega))
    lower = np.asarray(field.envelope.spectrum(omega + carrier.omega))
    if np.ndim(plus) > 0:
        upper = upper[..., np.newaxis]
        lower = lower[..., np.newaxis]
    return field.vector_potential_amplitude * (plus * upper + minus * lower)


def _constant_field_spectrum(field: ConstantField, omega: np.ndarray) -> np.ndarray:
    # box of height E0 on [0, tmax]
    tmax = field.tmax
    return (
        field.amplitude
        * tmax
        * _INV_SQRT_2PI
        * np.exp(-0.5j * omega * tmax)
        * np.sinc(omega * tmax / (2.0 * math.pi))
    )


def vector_potential_spectrum(field: Field, omega: Any) -> np.ndarray:
    """Closed-form ``Â(ω)`` for carrier/envelope fields whose envelope has a known spectrum.

    Constant fields have a closed form as well. Delays, negations and sums of
    such fields are supported too.
    """

    omega = np.asarray(omega, dtype=float)
    if isinstance(field, (LinearField, TransverseField)):
        return _carrier_convolution(field, omega)
    if isinstance(field, ConstantField):
        # singular at ω = 0, where A tends to the constant -E0 tmax
        with np.errstate(divide="ignore", invalid="ignore"):
            return 1j * _constant_field_spectrum(field, omega) / omega
    if isinstance(field, DelayedField):
        shift = np.exp(-1j * omega * field.t0)
        inner = vector_potential_spectrum(field.parent, omega)
        return inner * (shift[..., np.newaxis] if inner.ndim > omega.ndim else shift)
    if isinstance(field, NegatedField):
        return -vector_potential_spectrum(field.parent, omega)
    if isinstance(field, SumField):
        return vector_potential_spectrum(field.a, omega) + vector_potential_spectrum(field.b, omega)
    raise NotImplementedError(f"No closed-form spectrum for {type(field).__name__}.")


def field_amplitude_spectrum(field: Field, omega: Any) -> np.ndarray:
    """``F̂(ω) = -iω Â(ω)``."""

    omega = np.asarray(omega, dtype=float)
    if isinstance(field, ConstantField):
        return _constant_field_spectrum(field, omega)
    spectrum = vector_potential_spectrum(field, omega)
    factor = -1j * omega
    if spectrum.ndim > omega.ndim:
        factor = factor[..., np.newaxis]
    return factor * spectrum
