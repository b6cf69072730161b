from efield_sim.physics.quantity_resolve import (
    AMPLITUDE_GROUP,
    AMPLITUDE_RULES,
    FREQUENCY_GROUP,
    FREQUENCY_RULES,
    Rule,
    apply_rules,
    require_one_of,
    resolve,
)
from efield_sim.physics.rotations import (
    axis_angle_matrix,
    compute_rotation,
    rotation_angle,
    rotation_axis,
)
from efield_sim.physics.strong_field import (
    free_oscillation_amplitude,
    keldysh,
    ponderomotive_potential,
)

__all__ = [
    "AMPLITUDE_GROUP",
    "AMPLITUDE_RULES",
    "FREQUENCY_GROUP",
    "FREQUENCY_RULES",
    "Rule",
    "apply_rules",
    "axis_angle_matrix",
    "compute_rotation",
    "free_oscillation_amplitude",
    "keldysh",
    "ponderomotive_potential",
    "require_one_of",
    "resolve",
    "rotation_angle",
    "rotation_axis",
]
