from efield_sim.models.config import (
    DEFAULT_UNITS,
    LAB_UNITS,
    ChirpStepCfg,
    DispersionOptions,
    DispersionStepCfg,
    IsotropicMediumStepCfg,
    PhaseShiftStepCfg,
    RunConfig,
    UnitPreferences,
)
from efield_sim.models.params import ParameterSet

__all__ = [
    "DEFAULT_UNITS",
    "LAB_UNITS",
    "ChirpStepCfg",
    "DispersionOptions",
    "DispersionStepCfg",
    "IsotropicMediumStepCfg",
    "ParameterSet",
    "PhaseShiftStepCfg",
    "RunConfig",
    "UnitPreferences",
]
