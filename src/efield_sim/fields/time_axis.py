from __future__ import annotations

import math

import numpy as np

from efield_sim.errors import DomainError
from efield_sim.fields.base import Field

# samples per unit of the field's highest frequency
DEFAULT_SAMPLING_FACTOR = 100.0


def default_sampling_frequency(field: Field) -> float:
    return DEFAULT_SAMPLING_FACTOR * field.max_frequency


def steps(field: Field, fs: float | None = None) -> int:
    """Number of samples covering the field's span at sampling frequency ``fs``."""

    a, b = field.span
    if not (math.isfinite(a) and math.isfinite(b)):
        raise DomainError(f"Cannot sample a field with unbounded span ({a}, {b}).")
    fs = default_sampling_frequency(field) if fs is None else float(fs)
    if fs <= 0.0:
        raise DomainError(f"Sampling frequency must be positive, got {fs!r}.")
    return max(2, int(math.ceil(fs * (b - a))))


def timeaxis(field: Field, fs: float | None = None) -> np.ndarray:
    a, b = field.span
    return np.linspace(a, b, steps(field, fs))
