from __future__ import annotations

import math

import numpy as np
import pytest

from efield_sim.dispersion import (
    BK7,
    Cascade,
    Chirp,
    Crystal,
    DispersedField,
    PhaseShift,
    chirp,
    disperse,
    phase_shift,
)
from efield_sim.fields import Field, make_field, timeaxis
from efield_sim.units import Q_, dispersion_to_atomic, length_to_atomic


def _pulse(tau_fs: float) -> Field:
    return make_field(
        {"λ": Q_(800.0, "nm"), "I₀": Q_(1e14, "W/cm**2"), "τ": Q_(tau_fs, "fs"), "σmax": 6.0}
    )


def _relative_error(actual: np.ndarray, expected: np.ndarray) -> float:
    return float(np.linalg.norm(actual - expected) / np.linalg.norm(expected))


def _chirped_gaussian(field: Field, eta: float, t: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Vector potential and field of a Gaussian pulse after ``exp(-i eta (omega - omega0)**2)``.

    The envelope ``exp(-alpha t**2)`` has the spectrum ``exp(-gamma omega**2)``
    with ``gamma = 1 / (4 alpha)``, so the chirped envelope is
    ``sqrt(gamma / (gamma + i eta)) exp(-t**2 / (4 (gamma + i eta)))``.
    """

    gamma = 1.0 / (4.0 * field.envelope.alpha)
    width = 4.0 * (gamma + 1j * eta)
    omega0 = field.angular_frequency
    z = np.sqrt(gamma / (gamma + 1j * eta)) * np.exp(-(t**2) / width + 1j * omega0 * t)
    dz = z * (-2.0 * t / width + 1j * omega0)
    A0 = field.vector_potential_amplitude
    return A0 * z.imag, -A0 * dz.imag


@pytest.mark.physics
@pytest.mark.parametrize("element", [PhaseShift(0.0), Chirp(0.0, 0.057)])
def test_identity_elements_reproduce_the_field(element: PhaseShift | Chirp) -> None:
    field = _pulse(3.0)
    t = timeaxis(field)

    dispersed = disperse(field, element)

    assert isinstance(dispersed, DispersedField)
    assert dispersed.time_span.converged
    assert _relative_error(dispersed.vector_potential(t), field.vector_potential(t)) < 1e-4
    assert _relative_error(dispersed.field_amplitude(t), field.field_amplitude(t)) < 1e-3
    lo, hi = field.span
    assert dispersed.span[0] <= lo
    assert dispersed.span[1] >= hi


@pytest.mark.physics
def test_phase_shift_by_pi_negates_the_field() -> None:
    field = _pulse(3.0)
    t = timeaxis(field)

    shifted = phase_shift(field, math.pi)

    assert _relative_error(shifted.field_amplitude(t), -field.field_amplitude(t)) < 1e-3


@pytest.mark.physics
def test_quarter_wave_shift_matches_carrier_phase_delay() -> None:
    field = _pulse(3.0)
    t = timeaxis(field)

    shifted = phase_shift(field, 0.5 * math.pi)

    reference = field.phase_shift(-0.5 * math.pi)
    assert _relative_error(shifted.vector_potential(t), reference.vector_potential(t)) < 1e-3


@pytest.mark.physics
@pytest.mark.parametrize(("tau_fs", "gdd_fs2", "rtol"), [(3.0, 5.0, 2e-2), (30.0, 15.0, 5e-3)])
def test_chirped_gaussian_matches_closed_form(tau_fs: float, gdd_fs2: float, rtol: float) -> None:
    field = _pulse(tau_fs)
    eta = dispersion_to_atomic(Q_(gdd_fs2, "fs**2"))

    dispersed = chirp(field, eta)
    t = timeaxis(dispersed)
    expected_A, expected_F = _chirped_gaussian(field, eta, t)

    assert dispersed.time_span.converged
    assert _relative_error(dispersed.vector_potential(t), expected_A) < rtol
    assert _relative_error(dispersed.field_amplitude(t), expected_F) < rtol
    assert t[0] <= field.span[0]


@pytest.mark.physics
def test_short_pulse_is_stretched_by_chirp() -> None:
    field = _pulse(3.0)

    dispersed = chirp(field, dispersion_to_atomic(Q_(5.0, "fs**2")))

    assert dispersed.time_span.iterations >= 2
    assert dispersed.span[1] - dispersed.span[0] > 2.0 * (field.span[1] - field.span[0])
    assert dispersed.intensity(0.0) < 0.5 * field.peak_intensity


@pytest.mark.physics
def test_crystal_promotes_to_three_components_and_phase_shift_negates() -> None:
    field = _pulse(3.0)
    crystal = Crystal((BK7,), length_to_atomic(Q_(10.0, "um")), field.angular_frequency)
    t = timeaxis(field)

    dispersed = disperse(field, crystal)
    negated = phase_shift(dispersed, math.pi)

    assert dispersed.dimensions == 3
    values = dispersed.field_amplitude(t)
    np.testing.assert_allclose(values[:, :2], 0.0, atol=1e-12)
    assert dispersed.intensity(0.0) == pytest.approx(field.peak_intensity, rel=0.05)
    assert isinstance(negated.element, Cascade)
    assert negated.element.elements[-1] is crystal
    assert _relative_error(negated.field_amplitude(t), -values) < 1e-3
    assert _relative_error(dispersed.phase_shift(math.pi).field_amplitude(t), -values) < 1e-12


@pytest.mark.physics
def test_dispersing_twice_composes_elements() -> None:
    field = _pulse(3.0)
    first, second = Chirp(500.0, field.angular_frequency), PhaseShift(0.3)

    twice = disperse(disperse(field, first), second)

    assert twice.parent is field
    assert twice.element == Cascade((second, first))
    once = disperse(field, second * first)
    t = timeaxis(field)
    assert _relative_error(twice.vector_potential(t), once.vector_potential(t)) < 1e-12
