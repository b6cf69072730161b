from __future__ import annotations

import math
from typing import Any

from efield_sim.errors import DomainError
from efield_sim.units import is_quantity, quantity_to_atomic


def ponderomotive_potential(field: Any) -> float:
    """Cycle-averaged quiver energy ``Up = I0 / (4 omega**2)``; summed over superposed fields."""

    return float(field.ponderomotive_potential)


def keldysh(field: Any, ionization_potential: Any) -> float:
    """Keldysh parameter ``gamma = sqrt(Ip / (2 Up))``.

    ``ionization_potential`` is an energy quantity or a number in Hartree.
    """

    if is_quantity(ionization_potential):
        ip = quantity_to_atomic(ionization_potential, "energy", name="Iₚ")
    else:
        ip = float(ionization_potential)
    if ip <= 0.0:
        raise DomainError(f"Ionization potential must be positive, got {ip!r}.")
    return math.sqrt(ip / (2.0 * ponderomotive_potential(field)))


def free_oscillation_amplitude(field: Any) -> float:
    """Classical quiver amplitude ``E0 / omega**2`` of a free electron."""

    return float(field.amplitude) / float(field.angular_frequency) ** 2
