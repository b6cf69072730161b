from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from efield_sim.dispersion.materials import SellmeierMaterial
from efield_sim.errors import ConfigurationError, DomainError
from efield_sim.physics.rotations import compute_rotation


class DispersiveElement(ABC):
    """Linear, time-invariant filter acting on the spectrum of the vector potential."""

    @property
    def isotropic(self) -> bool:
        return True

    @abstractmethod
    def frequency_response(self, omega: Any) -> np.ndarray:
        """Complex transfer function; shape ``(N,)`` or ``(N, 3)`` for anisotropic elements."""

    def apply(self, omega: Any, spectrum: np.ndarray) -> np.ndarray:
        """Multiply a one-sided spectrum (``(N,)`` or ``(N, 3)``) by the transfer function."""

        response = self.frequency_response(omega)
        if spectrum.ndim == 1:
            if response.ndim > 1:
                raise DomainError(
                    f"{type(self).__name__} is anisotropic and needs a three-component field."
                )
            return response * spectrum
        if response.ndim == 1:
            return response[:, np.newaxis] * spectrum
        return response * spectrum

    def __mul__(self, other: object) -> Cascade:
        if not isinstance(other, DispersiveElement):
            return NotImplemented
        return Cascade.of(self, other)


def _finite_response(phase: np.ndarray) -> np.ndarray:
    # poles of the material model are treated as fully absorbing
    finite = np.isfinite(phase)
    return np.where(finite, np.exp(-1j * np.where(finite, phase, 0.0)), 0.0)


@dataclass(frozen=True)
class PhaseShift(DispersiveElement):
    """``H = exp(-i phi)``."""

    phi: float

    def frequency_response(self, omega: Any) -> np.ndarray:
        omega = np.asarray(omega, dtype=float)
        return np.full(omega.shape, np.exp(-1j * self.phi), dtype=complex)


@dataclass(frozen=True)
class Chirp(DispersiveElement):
    """``H = exp(-i b (omega - omega0)**2)``; ``b`` is half the group-delay dispersion."""

    b: float
    omega0: float

    def frequency_response(self, omega: Any) -> np.ndarray:
        omega = np.asarray(omega, dtype=float)
        return np.exp(-1j * self.b * (omega - self.omega0) ** 2)


@dataclass(frozen=True)
class Cascade(DispersiveElement):
    """Composition ``e1 * e2 * ...``; the rightmost element acts first."""

    elements: tuple[DispersiveElement, ...]

    def __post_init__(self) -> None:
        if not self.elements:
            raise ConfigurationError("A Cascade needs at least one element.")

    @classmethod
    def of(cls, *elements: DispersiveElement) -> Cascade:
        flat: list[DispersiveElement] = []
        for element in elements:
            if isinstance(element, Cascade):
                flat.extend(element.elements)
            else:
                flat.append(element)
        return cls(tuple(flat))

    @property
    def isotropic(self) -> bool:
        return all(element.isotropic for element in self.elements)

    def frequency_response(self, omega: Any) -> np.ndarray:
        if not self.elements:
            raise ConfigurationError("A Cascade needs at least one element.")
        first, *rest = reversed(self.elements)
        response = first.frequency_response(omega)
        for element in rest:
            current = element.frequency_response(omega)
            if current.ndim > response.ndim:
                response = response[:, np.newaxis] * current
            elif current.ndim < response.ndim:
                response = response * current[:, np.newaxis]
            else:
                response = response * current
        return response

    def apply(self, omega: Any, spectrum: np.ndarray) -> np.ndarray:
        for element in reversed(self.elements):
            spectrum = element.apply(omega, spectrum)
        return spectrum


@dataclass(frozen=True, eq=False)
class IsotropicMedium(DispersiveElement):
    """Slab of thickness ``d`` (bohr) in a co-moving frame at ``omega0``.

    ``H = exp(-i (n(omega) omega / c - omega dk/domega|omega0) d)``.
    """

    material: SellmeierMaterial
    thickness: float
    omega0: float

    def __post_init__(self) -> None:
        if not self.thickness >= 0.0:
            raise ConfigurationError(f"Medium thickness must be non-negative, got {self.thickness!r}.")

    def frequency_response(self, omega: Any) -> np.ndarray:
        omega = np.asarray(omega, dtype=float)
        slowness = self.material.group_slowness(self.omega0)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            phase = (self.material.wavenumber(omega) - omega * slowness) * self.thickness
        return _finite_response(phase)


def _principal_materials(
    materials: tuple[SellmeierMaterial, ...],
) -> tuple[SellmeierMaterial, SellmeierMaterial, SellmeierMaterial]:
    if len(materials) == 1:
        return (materials[0],) * 3
    if len(materials) == 2:
        ordinary, extraordinary = materials
        return (ordinary, ordinary, extraordinary)
    if len(materials) == 3:
        return materials  # type: ignore[return-value]
    raise ConfigurationError(f"A Crystal takes one to three principal materials, got {len(materials)}.")


@dataclass(frozen=True, eq=False)
class Crystal(DispersiveElement):
    """Anisotropic slab with one refractive index per principal axis.

    Two materials mean a uniaxial crystal (ordinary along x and y,
    extraordinary along z). ``rotation`` maps crystal axes to lab axes.
    """

    materials: tuple[SellmeierMaterial, ...]
    thickness: float
    omega0: float
    rotation: Any = field(default=None)

    def __post_init__(self) -> None:
        _principal_materials(self.materials)
        object.__setattr__(self, "rotation", compute_rotation(self.rotation))

    @property
    def isotropic(self) -> bool:
        return False

    def frequency_response(self, omega: Any) -> np.ndarray:
        """Per-axis response in the crystal frame, shape ``(N, 3)``."""

        omega = np.asarray(omega, dtype=float)
        columns = []
        for material in _principal_materials(self.materials):
            medium = IsotropicMedium(material, self.thickness, self.omega0)
            columns.append(medium.frequency_response(omega))
        return np.stack(columns, axis=-1)

    def apply(self, omega: Any, spectrum: np.ndarray) -> np.ndarray:
        if spectrum.ndim == 1:
            raise DomainError("Crystal is anisotropic and needs a three-component field.")
        in_crystal = spectrum @ self.rotation
        return (self.frequency_response(omega) * in_crystal) @ self.rotation.T
