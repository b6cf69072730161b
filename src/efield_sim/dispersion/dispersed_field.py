"""Fields propagated through dispersive elements.

The original field is sampled over an automatically grown time span,
filtered in the frequency domain and re-expanded over a B-spline basis.
Carrier phase conventions: :meth:`DispersedField.phase_shift` advances the
carrier phase like every other field, while the :func:`phase_shift`
shortcut applies the element ``PhaseShift(phi)``, i.e. ``exp(-i phi)``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any

import numpy as np
from scipy import fft

from efield_sim.dispersion.bspline_field import BSplineField
from efield_sim.dispersion.elements import Cascade, Chirp, DispersiveElement, PhaseShift
from efield_sim.dispersion.time_span import TimeSpan, filtered_spectrum, find_time_span
from efield_sim.fields.arithmetic import rotate
from efield_sim.fields.base import Field, WrappedField
from efield_sim.models.config import DispersionOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class DispersedField(WrappedField):
    """``parent`` after ``element``, evaluated through a B-spline reconstruction."""

    element: DispersiveElement
    options: DispersionOptions
    reconstruction: BSplineField
    time_span: TimeSpan

    def vector_potential(self, t: Any) -> Any:
        return self.reconstruction.vector_potential(t)

    def vector_potential_derivative(self, t: Any) -> Any:
        return self.reconstruction.vector_potential_derivative(t)

    def phase_shift(self, delta: float) -> DispersedField:
        return replace(
            self,
            parent=self.parent.phase_shift(delta),
            reconstruction=self.reconstruction.phase_shift(delta),
        )

    @property
    def span(self) -> tuple[float, float]:
        return self.reconstruction.span

    @property
    def dimensions(self) -> int:
        return self.reconstruction.dimensions

    @property
    def polarization(self) -> Any:
        return self.reconstruction.polarization

    def __str__(self) -> str:
        return f"DispersedField({self.parent}, {self.element})"


def _envelope_magnitude(values: np.ndarray, quadrature: np.ndarray) -> np.ndarray:
    squared = values**2 + quadrature**2
    if squared.ndim > 1:
        squared = np.sum(squared, axis=-1)
    return np.sqrt(squared)


def support_indices(
    times: np.ndarray,
    magnitude: np.ndarray,
    cutoff: float | None,
    original_span: tuple[float, float],
) -> tuple[int, int]:
    """First and last sample above ``cutoff * max(magnitude)``, never inside ``original_span``."""

    if cutoff is None:
        return 0, len(times) - 1
    above = np.flatnonzero(magnitude > cutoff * np.max(magnitude))
    if above.size == 0:
        first, last = len(times) - 1, 0
    else:
        first, last = int(above[0]), int(above[-1])
    lo, hi = original_span
    first = min(first, int(np.searchsorted(times, lo, side="right")) - 1)
    last = max(last, int(np.searchsorted(times, hi, side="left")))
    return max(first, 0), min(last, len(times) - 1)


def knot_count(span_length: float, field: Field, options: DispersionOptions) -> int:
    # one carrier period is 1 / max_frequency for fields without a single carrier
    period = 1.0 / field.max_frequency
    return int(math.ceil(options.knots_per_period * span_length / period)) + 1


def disperse(
    field: Field,
    element: DispersiveElement,
    options: DispersionOptions | None = None,
) -> DispersedField:
    """Propagate ``field`` through ``element``.

    Dispersing an already dispersed field composes the elements and
    reconstructs from the undispersed field. Linearly polarized fields are
    promoted to three components for anisotropic elements.
    """

    options = options or DispersionOptions()
    if isinstance(field, DispersedField):
        return disperse(field.parent, Cascade.of(element, field.element), options)
    if not element.isotropic and field.dimensions == 1:
        field = rotate(field, None)

    time_span = find_time_span(field, element, options)
    times = time_span.times
    spectrum = filtered_spectrum(field, element, times)
    values = fft.irfft(spectrum, n=len(times), axis=0)
    quadrature = fft.irfft(1j * spectrum, n=len(times), axis=0)

    first, last = support_indices(
        times, _envelope_magnitude(values, quadrature), options.cutoff, field.span
    )
    window = slice(first, last + 1)
    kept = times[window]
    logger.debug(
        "Reconstructing %s on [%g, %g] (%d of %d samples kept)",
        type(field).__name__,
        kept[0],
        kept[-1],
        len(kept),
        len(times),
    )
    reconstruction = BSplineField.fit(
        kept,
        values[window],
        n_knots=knot_count(kept[-1] - kept[0], field, options),
        order=options.spline_order,
        quadrature=quadrature[window],
    )
    return DispersedField(field, element, options, reconstruction, time_span)


def phase_shift(field: Field, phi: float, options: DispersionOptions | None = None) -> DispersedField:
    """Disperse ``field`` through ``PhaseShift(phi)``."""

    return disperse(field, PhaseShift(phi), options)


def chirp(
    field: Field,
    b: float,
    omega0: float | None = None,
    options: DispersionOptions | None = None,
) -> DispersedField:
    """Disperse ``field`` through ``Chirp(b, omega0)``; ``omega0`` defaults to the carrier frequency."""

    omega0 = field.angular_frequency if omega0 is None else omega0
    return disperse(field, Chirp(b, omega0), options)
