from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass

import numpy as np
from scipy import fft

from efield_sim.dispersion.elements import DispersiveElement
from efield_sim.errors import ConvergenceWarning, DomainError
from efield_sim.fields.base import Field
from efield_sim.models.config import DispersionOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimeSpan:
    """Uniform grid ``center + dt * k`` for ``k = -half_steps .. half_steps``."""

    center: float
    dt: float
    half_steps: int
    iterations: int
    residual: float
    converged: bool

    @property
    def start(self) -> float:
        return self.center - self.dt * self.half_steps

    @property
    def stop(self) -> float:
        return self.center + self.dt * self.half_steps

    @property
    def times(self) -> np.ndarray:
        return self.center + self.dt * np.arange(-self.half_steps, self.half_steps + 1)


def sampling_step(field: Field, options: DispersionOptions) -> float:
    return 1.0 / (options.sampling_factor * field.max_frequency)


def filtered_spectrum(field: Field, element: DispersiveElement, times: np.ndarray) -> np.ndarray:
    """One-sided spectrum of the sampled vector potential after ``element``."""

    samples = np.asarray(field.vector_potential(times), dtype=float)
    dt = float(times[1] - times[0])
    omega = 2.0 * math.pi * fft.rfftfreq(len(times), dt)
    return element.apply(omega, fft.rfft(samples, axis=0))


def filtered_vector_potential(
    field: Field, element: DispersiveElement, times: np.ndarray
) -> np.ndarray:
    return fft.irfft(filtered_spectrum(field, element, times), n=len(times), axis=0)


def _relative_residual(previous: np.ndarray, current: np.ndarray) -> float:
    scale = max(float(np.linalg.norm(current)), float(np.finfo(float).tiny))
    return float(np.linalg.norm(previous - current)) / scale


def find_time_span(
    field: Field,
    element: DispersiveElement,
    options: DispersionOptions | None = None,
) -> TimeSpan:
    """Grow a symmetric grid about the field's span until the dispersed field fits in it.

    The half-width is multiplied by ``options.growth`` each iteration. The
    filtered vector potential is compared with the previous iteration over
    their overlap; once the relative L2 difference drops below
    ``options.tol`` the previous (smaller) grid is returned. Otherwise a
    :class:`ConvergenceWarning` is emitted and the largest grid is used.
    """

    options = options or DispersionOptions()
    a, b = field.span
    if not (math.isfinite(a) and math.isfinite(b)):
        raise DomainError(f"Cannot find the dispersed span of a field with unbounded span ({a}, {b}).")
    if a == b:
        raise DomainError(f"Cannot successively double an infinitesimal interval [{a}, {b}].")

    dt = sampling_step(field, options)
    center = 0.5 * (a + b)
    half_width = 0.5 * (b - a)
    logger.debug(
        "Finding time span for %s through %s (max_iter=%d, growth=%g, tol=%g)",
        type(field).__name__,
        type(element).__name__,
        options.max_iter,
        options.growth,
        options.tol,
    )

    previous: np.ndarray | None = None
    previous_steps = 0
    residual = math.inf
    for iteration in range(options.max_iter + 1):
        half_steps = int(math.ceil(half_width * options.growth**iteration / dt))
        times = center + dt * np.arange(-half_steps, half_steps + 1)
        values = filtered_vector_potential(field, element, times)
        if previous is not None:
            offset = half_steps - previous_steps
            residual = _relative_residual(previous, values[offset : offset + len(previous)])
            logger.debug("iteration %d: %d samples, residual %.3e", iteration, len(times), residual)
            if residual < options.tol:
                return TimeSpan(center, dt, previous_steps, iteration, residual, True)
        previous, previous_steps = values, half_steps

    warnings.warn(
        f"Could not find large enough time span in {options.max_iter} iterations "
        f"(residual {residual:.3e} > tol {options.tol:.3e}).",
        ConvergenceWarning,
        stacklevel=2,
    )
    return TimeSpan(center, dt, previous_steps, options.max_iter, residual, False)
