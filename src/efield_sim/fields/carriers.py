from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar

import numpy as np

from efield_sim.errors import ConfigurationError
from efield_sim.physics.quantity_resolve import require_one_of
from efield_sim.units import SPEED_OF_LIGHT_AU


@dataclass(frozen=True)
class FixedCarrier:
    """Fixed-frequency oscillation ``sin(omega t + phi)`` and its embeddings."""

    omega: float
    phi: float = 0.0

    kind: ClassVar[str] = "fixed"
    dimensions: ClassVar[int] = 1

    def __post_init__(self) -> None:
        if not self.omega > 0.0:
            raise ConfigurationError(
                f"Carrier angular frequency must be positive, got {self.omega!r}."
            )

    def phase_at(self, t: Any) -> np.ndarray:
        return self.omega * np.asarray(t, dtype=float) + self.phi

    def phase_shift(self, delta: float) -> FixedCarrier:
        return replace(self, phi=self.phi + delta)

    @property
    def phase(self) -> float:
        return self.phi

    @property
    def angular_frequency(self) -> float:
        return self.omega

    @property
    def fundamental(self) -> float:
        return self.omega

    @property
    def period(self) -> float:
        return 2.0 * math.pi / self.omega

    @property
    def frequency(self) -> float:
        return self.omega / (2.0 * math.pi)

    @property
    def wavelength(self) -> float:
        return SPEED_OF_LIGHT_AU * self.period

    @property
    def wavenumber(self) -> float:
        return 1.0 / self.wavelength

    @property
    def photon_energy(self) -> float:
        return self.omega

    @property
    def max_frequency(self) -> float:
        return self.frequency

    def __call__(self, t: Any) -> np.ndarray:
        return np.sin(self.phase_at(t))

    def derivative(self, t: Any) -> np.ndarray:
        return self.omega * np.cos(self.phase_at(t))

    def spectral_weights(self) -> tuple[np.ndarray, np.ndarray]:
        """Coefficients ``(c+, c-)`` with ``C(t) = c+ e^{i theta} + c- e^{-i theta}``."""

        return np.asarray(0.5 / 1j), np.asarray(-0.5 / 1j)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> FixedCarrier:
        return cls(omega=float(params["ω"]), phi=float(params.get("ϕ", 0.0)))


@dataclass(frozen=True)
class LinearTransverseCarrier(FixedCarrier):
    """Fixed carrier embedded along the z axis of a three-component field."""

    kind: ClassVar[str] = "linear"
    dimensions: ClassVar[int] = 3

    def __call__(self, t: Any) -> np.ndarray:
        value = np.sin(self.phase_at(t))
        zeros = np.zeros_like(value)
        return np.stack([zeros, zeros, value], axis=-1)

    def derivative(self, t: Any) -> np.ndarray:
        value = self.omega * np.cos(self.phase_at(t))
        zeros = np.zeros_like(value)
        return np.stack([zeros, zeros, value], axis=-1)

    def spectral_weights(self) -> tuple[np.ndarray, np.ndarray]:
        plus = np.array([0.0, 0.0, 0.5 / 1j])
        return plus, -plus


@dataclass(frozen=True)
class EllipticalCarrier(FixedCarrier):
    """``(xi cos theta, 0, sin theta) / sqrt(1 + xi**2)``.

    ``xi = 0`` is linear along z, ``|xi| = 1`` circular; the sign of ``xi``
    sets the handedness.
    """

    xi: float = 0.0

    kind: ClassVar[str] = "elliptical"
    dimensions: ClassVar[int] = 3

    @property
    def norm(self) -> float:
        return math.sqrt(1.0 + self.xi**2)

    def __call__(self, t: Any) -> np.ndarray:
        theta = self.phase_at(t)
        zeros = np.zeros_like(theta)
        return np.stack([self.xi * np.cos(theta), zeros, np.sin(theta)], axis=-1) / self.norm

    def derivative(self, t: Any) -> np.ndarray:
        theta = self.phase_at(t)
        zeros = np.zeros_like(theta)
        components = [-self.xi * self.omega * np.sin(theta), zeros, self.omega * np.cos(theta)]
        return np.stack(components, axis=-1) / self.norm

    def spectral_weights(self) -> tuple[np.ndarray, np.ndarray]:
        plus = np.array([0.5 * self.xi, 0.0, 0.5 / 1j]) / self.norm
        minus = np.array([0.5 * self.xi, 0.0, -0.5 / 1j]) / self.norm
        return plus, minus

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> EllipticalCarrier:
        require_one_of(params, ("ξ",))
        return cls(omega=float(params["ω"]), phi=float(params.get("ϕ", 0.0)), xi=float(params["ξ"]))


LINEAR_CARRIERS: dict[str, type[FixedCarrier]] = {
    "fixed": FixedCarrier,
}

TRANSVERSE_CARRIERS: dict[str, type[FixedCarrier]] = {
    "linear": LinearTransverseCarrier,
    "elliptical": EllipticalCarrier,
}

CARRIER_KINDS: dict[str, type[FixedCarrier]] = {**LINEAR_CARRIERS, **TRANSVERSE_CARRIERS}


def build_carrier(kind: str, params: Mapping[str, Any], *, transverse: bool = False) -> FixedCarrier:
    registry = TRANSVERSE_CARRIERS if transverse else LINEAR_CARRIERS
    try:
        carrier_cls = registry[kind]
    except KeyError as exc:
        valid = ", ".join(sorted(registry))
        raise ConfigurationError(
            f"Unknown carrier type {kind}, valid choices are {valid}"
        ) from exc
    return carrier_cls.from_params(params)
