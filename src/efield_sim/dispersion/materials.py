from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from efield_sim.errors import ConfigurationError
from efield_sim.units import BOHR_M, SPEED_OF_LIGHT_AU

_BOHR_UM = BOHR_M * 1e6
_COMPLEX_STEP = 1e-20


@dataclass(frozen=True)
class SellmeierMaterial:
    """``n² = 1 + A + sum_i B_i λ² / (λ² - C_i)`` with λ in μm and C_i in μm²."""

    name: str
    b: tuple[float, ...]
    c: tuple[float, ...]
    a: float = 0.0

    def __post_init__(self) -> None:
        if len(self.b) != len(self.c):
            raise ConfigurationError(
                f"Sellmeier coefficients for {self.name} must pair up, "
                f"got {len(self.b)} B and {len(self.c)} C terms."
            )

    def _index_squared(self, inverse_wavelength_um2: Any) -> Any:
        # B λ²/(λ² - C) = B / (1 - C/λ²) stays finite at zero frequency
        total = 1.0 + self.a
        for b, c in zip(self.b, self.c):
            total = total + b / (1.0 - c * inverse_wavelength_um2)
        return total

    def refractive_index(self, wavelength_um: Any) -> np.ndarray:
        wavelength_um = np.asarray(wavelength_um, dtype=float)
        return np.real(np.sqrt(np.asarray(self._index_squared(wavelength_um**-2.0), dtype=complex)))

    def _complex_index(self, omega: Any) -> Any:
        # omega in atomic units; lambda = 2 pi c / omega
        inverse_wavelength = omega / (2.0 * math.pi * SPEED_OF_LIGHT_AU * _BOHR_UM)
        return np.sqrt(self._index_squared(inverse_wavelength**2) + 0j)

    def index_at(self, omega: Any) -> np.ndarray:
        """Refractive index at angular frequency ``omega`` (atomic units)."""

        with np.errstate(divide="ignore", invalid="ignore"):
            return np.real(self._complex_index(np.asarray(omega, dtype=float)))

    def wavenumber(self, omega: Any) -> np.ndarray:
        """``k(omega) = n(omega) omega / c`` in inverse bohr."""

        omega = np.asarray(omega, dtype=float)
        return self.index_at(omega) * omega / SPEED_OF_LIGHT_AU

    def group_slowness(self, omega0: float) -> float:
        """``dk/domega`` at ``omega0`` (inverse group velocity), by complex-step differentiation."""

        h = _COMPLEX_STEP * omega0
        shifted = complex(omega0, h)
        k = self._complex_index(shifted) * shifted / SPEED_OF_LIGHT_AU
        return float(np.imag(k) / h)


BK7 = SellmeierMaterial(
    name="BK7",
    b=(1.03961212, 0.231792344, 1.01046945),
    c=(6.00069867e-3, 2.00179144e-2, 1.03560653e2),
)

FUSED_SILICA = SellmeierMaterial(
    name="SiO2",
    b=(0.6961663, 0.4079426, 0.8974794),
    c=(0.0684043**2, 0.1162414**2, 9.896161**2),
)

MATERIALS: dict[str, SellmeierMaterial] = {
    "BK7": BK7,
    "SiO2": FUSED_SILICA,
    "fused_silica": FUSED_SILICA,
}


def get_material(name: str) -> SellmeierMaterial:
    try:
        return MATERIALS[name]
    except KeyError as exc:
        valid = ", ".join(sorted(MATERIALS))
        raise ConfigurationError(f"Unknown material {name}, valid choices are {valid}") from exc
