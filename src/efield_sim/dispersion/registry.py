from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any

from efield_sim.dispersion.elements import (
    Cascade,
    Chirp,
    DispersiveElement,
    IsotropicMedium,
    PhaseShift,
)
from efield_sim.dispersion.materials import get_material
from efield_sim.fields.base import Field
from efield_sim.models.config import (
    ChirpStepCfg,
    IsotropicMediumStepCfg,
    PhaseShiftStepCfg,
)
from efield_sim.units import Q_, SPEED_OF_LIGHT_AU, dispersion_to_atomic, length_to_atomic


def _center_frequency(wavelength_nm: float | None, field: Field) -> float:
    if wavelength_nm is None:
        return field.angular_frequency
    return 2.0 * math.pi * SPEED_OF_LIGHT_AU / length_to_atomic(Q_(wavelength_nm, "nm"))


def _build_phase_shift(cfg: PhaseShiftStepCfg, field: Field) -> PhaseShift:
    return PhaseShift(cfg.phi_rad)


def _build_chirp(cfg: ChirpStepCfg, field: Field) -> Chirp:
    b = dispersion_to_atomic(Q_(cfg.gdd_fs2, "fs**2"))
    return Chirp(b, _center_frequency(cfg.center_wavelength_nm, field))


def _build_isotropic_medium(cfg: IsotropicMediumStepCfg, field: Field) -> IsotropicMedium:
    return IsotropicMedium(
        get_material(cfg.material),
        length_to_atomic(Q_(cfg.thickness_mm, "mm")),
        _center_frequency(cfg.center_wavelength_nm, field),
    )


ELEMENT_BACKENDS: dict[str, Callable[[Any, Field], DispersiveElement]] = {
    "phase_shift": _build_phase_shift,
    "chirp": _build_chirp,
    "isotropic_medium": _build_isotropic_medium,
}


def build_element(
    cfg: PhaseShiftStepCfg | ChirpStepCfg | IsotropicMediumStepCfg, field: Field
) -> DispersiveElement:
    return ELEMENT_BACKENDS[cfg.kind](cfg, field)


def build_cascade(steps: Sequence[Any], field: Field) -> DispersiveElement | None:
    """Element for ``steps`` applied in list order, or ``None`` for an empty list."""

    if not steps:
        return None
    elements = [build_element(step, field) for step in steps]
    if len(elements) == 1:
        return elements[0]
    return Cascade.of(*reversed(elements))
