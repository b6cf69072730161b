from __future__ import annotations

import math

import pytest

from efield_sim.dispersion import BK7, FUSED_SILICA, SellmeierMaterial, get_material
from efield_sim.errors import ConfigurationError
from efield_sim.units import BOHR_M, SPEED_OF_LIGHT_AU


@pytest.mark.unit
@pytest.mark.parametrize(
    ("material", "wavelength_um", "expected"),
    [(BK7, 0.8, 1.51078), (BK7, 0.5876, 1.51680), (FUSED_SILICA, 0.8, 1.45332)],
)
def test_refractive_index(material: SellmeierMaterial, wavelength_um: float, expected: float) -> None:
    assert material.refractive_index(wavelength_um) == pytest.approx(expected, rel=2e-5)


@pytest.mark.unit
def test_index_at_angular_frequency_matches_wavelength_form() -> None:
    omega = 2.0 * math.pi * SPEED_OF_LIGHT_AU / (0.8e-6 / BOHR_M)

    assert BK7.index_at(omega) == pytest.approx(BK7.refractive_index(0.8), rel=1e-9)
    assert BK7.wavenumber(omega) == pytest.approx(BK7.refractive_index(0.8) * omega / SPEED_OF_LIGHT_AU)


@pytest.mark.unit
def test_index_is_finite_at_zero_frequency() -> None:
    assert math.isfinite(float(BK7.index_at(0.0)))


@pytest.mark.unit
def test_group_index_exceeds_phase_index_in_normal_dispersion() -> None:
    omega = 2.0 * math.pi * SPEED_OF_LIGHT_AU / (0.8e-6 / BOHR_M)

    assert SPEED_OF_LIGHT_AU * BK7.group_slowness(omega) > BK7.index_at(omega)


@pytest.mark.unit
def test_material_lookup() -> None:
    assert get_material("BK7") is BK7
    assert get_material("fused_silica") is get_material("SiO2")
    with pytest.raises(ConfigurationError, match="Unknown material glass, valid choices are"):
        get_material("glass")


@pytest.mark.unit
def test_unpaired_coefficients_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match="must pair up"):
        SellmeierMaterial(name="broken", b=(1.0, 2.0), c=(0.1,))
