from __future__ import annotations

import math

import numpy as np
import pytest

from efield_sim.errors import ConfigurationError, IncompatibleFieldsError
from efield_sim.fields import (
    HANN,
    ApodizedField,
    DelayedField,
    Field,
    NegatedField,
    PaddedField,
    Polarization,
    RotatedField,
    SumField,
    TransverseField,
    WindowedField,
    delay,
    make_field,
    rotate,
)
from efield_sim.units import Q_


def _pulse(omega: float = 0.5, **extra: object) -> Field:
    return make_field({"ω": omega, "I₀": 1.0e-2, "τ": 40.0, "σmax": 6.0, **extra})


_T = np.linspace(-60.0, 60.0, 25)


@pytest.mark.unit
def test_negation_flips_every_component_and_cancels() -> None:
    field = _pulse()
    negated = -field

    assert isinstance(negated, NegatedField)
    np.testing.assert_allclose(negated.vector_potential(_T), -field.vector_potential(_T))
    np.testing.assert_allclose(negated.field_amplitude(_T), -field.field_amplitude(_T))
    assert -negated is field
    assert negated.span == field.span
    assert negated.peak_intensity == field.peak_intensity


@pytest.mark.unit
def test_field_minus_itself_vanishes() -> None:
    field = _pulse()

    np.testing.assert_array_equal((field - field).field_amplitude(_T), 0.0)


@pytest.mark.unit
def test_sum_adds_vector_potentials_and_unions_spans() -> None:
    a = _pulse()
    b = delay(_pulse(), 500.0)
    total = a + b

    assert isinstance(total, SumField)
    np.testing.assert_allclose(
        total.vector_potential(_T), a.vector_potential(_T) + b.vector_potential(_T)
    )
    assert total.span == (a.span[0], b.span[1])
    assert total.wavelength == a.wavelength
    assert total.ponderomotive_potential == pytest.approx(2.0 * a.ponderomotive_potential)


@pytest.mark.unit
def test_sum_of_fields_with_different_carriers_has_no_common_wavelength() -> None:
    total = _pulse(0.5) + _pulse(1.0)

    assert total.max_frequency == pytest.approx(1.0 / (2.0 * math.pi))
    with pytest.raises(IncompatibleFieldsError, match="wavelength differs"):
        _ = total.wavelength
    with pytest.raises(IncompatibleFieldsError, match="no single carrier"):
        _ = total.carrier


@pytest.mark.unit
def test_sum_promotes_linear_addend() -> None:
    total = _pulse() + _pulse(ξ=1.0)

    assert total.dimensions == 3
    assert total.polarization is Polarization.ARBITRARY
    assert isinstance(total.a, TransverseField)
    assert total.vector_potential(_T).shape == (len(_T), 3)


@pytest.mark.unit
def test_sum_field_rejects_mixed_dimensionality() -> None:
    with pytest.raises(IncompatibleFieldsError, match="different dimensionality"):
        SumField(_pulse(), _pulse(ξ=1.0))


@pytest.mark.unit
def test_sum_phase_shift_shifts_both_addends() -> None:
    a, b = _pulse(), _pulse(1.0)
    shifted = (a + b).phase_shift(1.0)

    np.testing.assert_allclose(
        shifted.vector_potential(_T),
        a.phase_shift(1.0).vector_potential(_T) + b.phase_shift(1.0).vector_potential(_T),
    )


@pytest.mark.unit
def test_delay_shifts_field_and_span() -> None:
    field = _pulse()
    delayed = delay(field, 25.0)

    np.testing.assert_allclose(delayed.vector_potential(_T), field.vector_potential(_T - 25.0))
    assert delayed.span == (field.span[0] + 25.0, field.span[1] + 25.0)
    assert delayed.time_delay == 25.0
    assert delayed.wavelength == field.wavelength


@pytest.mark.unit
def test_nested_delays_collapse() -> None:
    field = _pulse()
    twice = delay(delay(field, 10.0), 15.0)

    assert isinstance(twice, DelayedField)
    assert twice.parent is field
    assert twice.t0 == 25.0


@pytest.mark.unit
def test_delay_by_cycles_phase_and_quantities() -> None:
    field = _pulse()

    assert delay(field, cycles=2.0).t0 == pytest.approx(2.0 * field.period)
    assert delay(field, phase=math.pi).t0 == pytest.approx(0.5 * field.period)
    assert delay(field, Q_(180.0, "degree")).t0 == pytest.approx(0.5 * field.period)
    assert delay(field, Q_(1.0, "fs")).t0 == pytest.approx(41.34137, rel=1e-6)


@pytest.mark.unit
def test_delay_needs_exactly_one_amount() -> None:
    field = _pulse()

    with pytest.raises(ConfigurationError, match="exactly one of t0, cycles, phase"):
        delay(field)
    with pytest.raises(ConfigurationError, match="exactly one of t0, cycles, phase"):
        delay(field, 1.0, cycles=1.0)


@pytest.mark.unit
def test_padding_holds_boundary_values() -> None:
    field = make_field({"ω": 0.5, "I₀": 1.0e-2, "env": "trapezoidal", "ramp": 1.0, "flat": 1.0})
    lo, hi = field.span
    padded = PaddedField(field, 10.0, 20.0)

    assert padded.span == (lo - 10.0, hi + 20.0)
    assert padded.vector_potential(hi + 15.0) == pytest.approx(field.vector_potential(hi))
    assert padded.vector_potential(lo - 5.0) == pytest.approx(field.vector_potential(lo))
    assert padded.field_amplitude(hi + 15.0) == 0.0


@pytest.mark.unit
def test_negative_padding_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Padding must be non-negative"):
        PaddedField(_pulse(), -1.0, 0.0)


@pytest.mark.unit
def test_window_zeroes_outside_its_bounds() -> None:
    field = _pulse()
    windowed = WindowedField(field, -20.0, 30.0)
    t = np.array([-40.0, -20.0, 0.0, 30.0, 45.0])

    assert windowed.span == (-20.0, 30.0)
    np.testing.assert_array_equal(windowed.vector_potential(t)[[0, 4]], 0.0)
    np.testing.assert_array_equal(windowed.field_amplitude(t)[[0, 4]], 0.0)
    np.testing.assert_allclose(windowed.field_amplitude(t)[1:4], field.field_amplitude(t[1:4]))
    assert windowed.intensity(45.0) == 0.0
    assert windowed.intensity(0.0) == pytest.approx(field.intensity(0.0))


@pytest.mark.unit
def test_window_integral_is_clipped_to_window() -> None:
    field = _pulse()
    windowed = WindowedField(field, -20.0, 30.0)

    assert windowed.field_amplitude_integral(-100.0, 100.0) == pytest.approx(
        field.field_amplitude_integral(-20.0, 30.0)
    )
    assert windowed.field_amplitude_integral(40.0, 50.0) == 0.0


@pytest.mark.unit
def test_window_bounds_are_validated() -> None:
    field = _pulse()
    lo, hi = field.span

    with pytest.raises(ConfigurationError, match="a < b"):
        WindowedField(field, 5.0, 5.0)
    with pytest.raises(ConfigurationError, match="does not overlap"):
        WindowedField(field, hi + 1.0, hi + 2.0)


@pytest.mark.unit
def test_apodized_field_tapers_to_zero() -> None:
    field = _pulse()
    apodized = ApodizedField(field, -50.0, 50.0, HANN)

    assert apodized.vector_potential(20.0) == pytest.approx(
        field.vector_potential(20.0) * math.cos(math.pi * 0.2) ** 2
    )
    assert apodized.vector_potential(50.0) == pytest.approx(0.0, abs=1e-20)
    assert apodized.vector_potential(55.0) == 0.0
    t = np.linspace(-45.0, 45.0, 19)
    h = 1e-5
    numeric = -(apodized.vector_potential(t + h) - apodized.vector_potential(t - h)) / (2.0 * h)
    np.testing.assert_allclose(apodized.field_amplitude(t), numeric, atol=1e-8)


@pytest.mark.unit
def test_rotate_linear_field_embeds_it_along_z() -> None:
    field = _pulse()
    rotated = rotate(field, None)

    assert isinstance(rotated, TransverseField)
    values = rotated.vector_potential(_T)
    np.testing.assert_allclose(values[:, 2], field.vector_potential(_T))
    np.testing.assert_array_equal(values[:, :2], 0.0)


@pytest.mark.unit
def test_rotations_compose() -> None:
    field = _pulse()
    quarter = (0.5 * math.pi, [0.0, 1.0, 0.0])
    twice = rotate(rotate(field, quarter), quarter)

    np.testing.assert_allclose(
        twice.vector_potential(_T)[:, 2], -field.vector_potential(_T), atol=1e-14
    )


@pytest.mark.unit
def test_rotate_distributes_over_algebra() -> None:
    field = _pulse()
    rotated = rotate(-delay(field, 5.0), (0.5 * math.pi, [1.0, 0.0, 0.0]))

    assert isinstance(rotated, NegatedField)
    assert isinstance(rotated.parent, DelayedField)
    np.testing.assert_allclose(
        rotated.vector_potential(_T)[:, 1], field.vector_potential(_T - 5.0), atol=1e-14
    )


@pytest.mark.unit
def test_rotating_a_wrapped_field_uses_rotated_field() -> None:
    windowed = WindowedField(_pulse(), -20.0, 20.0)
    rotated = rotate(windowed, (math.pi, [1.0, 0.0, 0.0]))

    assert isinstance(rotated, RotatedField)
    np.testing.assert_allclose(
        rotated.vector_potential(_T)[:, 2], -windowed.vector_potential(_T), atol=1e-14
    )
    np.testing.assert_allclose(rotated.rotation_matrix, np.diag([1.0, -1.0, -1.0]), atol=1e-15)
