from efield_sim.dispersion.bspline_field import BSplineField
from efield_sim.dispersion.dispersed_field import DispersedField, chirp, disperse, phase_shift
from efield_sim.dispersion.elements import (
    Cascade,
    Chirp,
    Crystal,
    DispersiveElement,
    IsotropicMedium,
    PhaseShift,
)
from efield_sim.dispersion.materials import BK7, FUSED_SILICA, MATERIALS, SellmeierMaterial, get_material
from efield_sim.dispersion.registry import ELEMENT_BACKENDS, build_cascade, build_element
from efield_sim.dispersion.time_span import TimeSpan, filtered_vector_potential, find_time_span

__all__ = [
    "BK7",
    "ELEMENT_BACKENDS",
    "FUSED_SILICA",
    "MATERIALS",
    "BSplineField",
    "Cascade",
    "Chirp",
    "Crystal",
    "DispersedField",
    "DispersiveElement",
    "IsotropicMedium",
    "PhaseShift",
    "SellmeierMaterial",
    "TimeSpan",
    "build_cascade",
    "build_element",
    "chirp",
    "disperse",
    "filtered_vector_potential",
    "find_time_span",
    "get_material",
    "phase_shift",
]
