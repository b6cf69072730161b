from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from scipy.interpolate import BSpline, make_lsq_spline

from efield_sim.errors import ConfigurationError, IncompatibleFieldsError
from efield_sim.fields.base import Field, Polarization, as_time_array, finish, mask_outside

logger = logging.getLogger(__name__)


def clamped_knots(start: float, stop: float, n_knots: int, order: int) -> np.ndarray:
    """``n_knots`` uniform breakpoints on ``[start, stop]`` with end knots repeated ``order`` times."""

    if n_knots < 2:
        raise ConfigurationError(f"A B-spline basis needs at least two breakpoints, got {n_knots}.")
    interior = np.linspace(start, stop, n_knots)
    return np.concatenate([np.full(order, start), interior, np.full(order, stop)])


@dataclass(frozen=True, eq=False)
class BSplineField(Field):
    """Vector potential expanded over a B-spline basis; zero outside the basis interval.

    ``quadrature`` holds the expansion of the field with its carrier phase
    advanced by a quarter period, so that :meth:`phase_shift` only mixes
    coefficients.
    """

    spline: BSpline
    quadrature: BSpline | None = None
    _derivative: BSpline = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_derivative", self.spline.derivative())

    @classmethod
    def fit(
        cls,
        times: np.ndarray,
        values: np.ndarray,
        *,
        n_knots: int,
        order: int = 3,
        quadrature: np.ndarray | None = None,
    ) -> BSplineField:
        """Least-squares fit of samples ``values`` (``(N,)`` or ``(N, 3)``) taken at ``times``."""

        knots = clamped_knots(float(times[0]), float(times[-1]), n_knots, order)
        if len(knots) - order - 1 > len(times):
            raise ConfigurationError(
                f"Spline fit is underdetermined: {len(knots) - order - 1} coefficients "
                f"for {len(times)} samples."
            )
        logger.debug(
            "Fitting order-%d B-spline with %d breakpoints to %d samples on [%g, %g]",
            order,
            n_knots,
            len(times),
            times[0],
            times[-1],
        )
        spline = make_lsq_spline(times, values, knots, k=order)
        quadrature_spline = (
            None if quadrature is None else make_lsq_spline(times, quadrature, knots, k=order)
        )
        return cls(spline, quadrature_spline)

    @property
    def span(self) -> tuple[float, float]:
        k = self.spline.k
        return (float(self.spline.t[k]), float(self.spline.t[-k - 1]))

    @property
    def dimensions(self) -> int:
        return 1 if np.ndim(self.spline.c) == 1 else 3

    @property
    def polarization(self) -> Polarization:
        return Polarization.LINEAR if self.dimensions == 1 else Polarization.ARBITRARY

    @property
    def n_coefficients(self) -> int:
        return len(self.spline.c)

    def _evaluate(self, spline: BSpline, t: Any) -> Any:
        times, scalar = as_time_array(t)
        lo, hi = self.span
        inside = (times >= lo) & (times <= hi)
        values = np.asarray(spline(np.clip(times, lo, hi)))
        return finish(mask_outside(values, inside), scalar)

    def vector_potential(self, t: Any) -> Any:
        return self._evaluate(self.spline, t)

    def vector_potential_derivative(self, t: Any) -> Any:
        return self._evaluate(self._derivative, t)

    def phase_shift(self, delta: float) -> BSplineField:
        if self.quadrature is None:
            raise IncompatibleFieldsError("This B-spline field has no quadrature component to shift.")
        cos, sin = math.cos(delta), math.sin(delta)
        c, q = self.spline.c, self.quadrature.c
        k, t = self.spline.k, self.spline.t
        return BSplineField(BSpline(t, cos * c + sin * q, k), BSpline(t, cos * q - sin * c, k))

    @property
    def carrier(self) -> Any:
        raise IncompatibleFieldsError("A B-spline field has no carrier.")

    @property
    def envelope(self) -> Any:
        raise IncompatibleFieldsError("A B-spline field has no envelope.")

    @property
    def params(self) -> Any:
        raise IncompatibleFieldsError("A B-spline field has no parameter set.")

    @property
    def continuity(self) -> float:
        return float(self.spline.k - 1)

    @property
    def duration(self) -> float:
        lo, hi = self.span
        return hi - lo

    def __str__(self) -> str:
        return f"B-spline field of order {self.spline.k} with {self.n_coefficients} coefficients"
