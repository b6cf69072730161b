from __future__ import annotations

import math

import numpy as np
import pytest

from efield_sim.dispersion import BSplineField
from efield_sim.dispersion.bspline_field import clamped_knots
from efield_sim.errors import ConfigurationError, IncompatibleFieldsError
from efield_sim.fields import Polarization

_TIMES = np.linspace(0.0, 6.0 * math.pi, 1200)


def _sine_fit() -> BSplineField:
    return BSplineField.fit(_TIMES, np.sin(_TIMES), n_knots=241, quadrature=np.cos(_TIMES))


@pytest.mark.unit
def test_clamped_knots_repeat_end_points() -> None:
    np.testing.assert_allclose(clamped_knots(0.0, 1.0, 3, 2), [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0])
    with pytest.raises(ConfigurationError, match="at least two breakpoints"):
        clamped_knots(0.0, 1.0, 1, 3)


@pytest.mark.unit
def test_fit_reproduces_samples_and_derivative() -> None:
    field = _sine_fit()
    t = np.linspace(0.5, 18.0, 50)

    np.testing.assert_allclose(field.vector_potential(t), np.sin(t), atol=1e-5)
    np.testing.assert_allclose(field.field_amplitude(t), -np.cos(t), atol=1e-3)
    assert field.span == (0.0, pytest.approx(6.0 * math.pi))
    assert field.n_coefficients == 241 + 2
    assert field.continuity == 2.0
    assert field.dimensions == 1
    assert field.polarization is Polarization.LINEAR


@pytest.mark.unit
def test_fit_is_zero_outside_basis_interval() -> None:
    field = _sine_fit()

    assert field.vector_potential(-1.0) == 0.0
    assert field.vector_potential(25.0) == 0.0
    assert field.field_amplitude(25.0) == 0.0


@pytest.mark.unit
def test_phase_shift_mixes_in_quadrature() -> None:
    field = _sine_fit()
    t = np.linspace(1.0, 17.0, 40)

    shifted = field.phase_shift(0.5 * math.pi)

    np.testing.assert_allclose(shifted.vector_potential(t), np.cos(t), atol=1e-5)
    np.testing.assert_allclose(field.phase_shift(0.3).vector_potential(t), np.sin(t + 0.3), atol=1e-5)
    assert field.intensity(3.0 * math.pi) == pytest.approx(1.0, rel=1e-3)


@pytest.mark.unit
def test_three_component_fit() -> None:
    values = np.column_stack([np.sin(_TIMES), np.zeros_like(_TIMES), np.cos(_TIMES)])
    field = BSplineField.fit(_TIMES, values, n_knots=241)

    assert field.dimensions == 3
    assert field.polarization is Polarization.ARBITRARY
    assert field.vector_potential(np.array([1.0, 2.0])).shape == (2, 3)
    np.testing.assert_allclose(field.vector_potential(2.0), [math.sin(2.0), 0.0, math.cos(2.0)], atol=1e-5)


@pytest.mark.unit
def test_fit_without_quadrature_cannot_shift_phase() -> None:
    field = BSplineField.fit(_TIMES, np.sin(_TIMES), n_knots=50)

    with pytest.raises(IncompatibleFieldsError, match="no quadrature component"):
        field.phase_shift(1.0)
    with pytest.raises(IncompatibleFieldsError, match="has no carrier"):
        _ = field.wavelength


@pytest.mark.unit
def test_underdetermined_fit_is_rejected() -> None:
    times = np.linspace(0.0, 1.0, 10)

    with pytest.raises(ConfigurationError, match="underdetermined"):
        BSplineField.fit(times, times, n_knots=20)
