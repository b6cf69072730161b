from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
from scipy.integrate import quad
from scipy.optimize import brentq
from scipy.special import erf

from efield_sim.errors import ConfigurationError, DomainError
from efield_sim.physics.quantity_resolve import require_one_of

_FWHM_PER_SIGMA = 2.0 * math.sqrt(2.0 * math.log(2.0))
_MAX_BRACKET_STEPS = 200
# transform-limited Gaussian, intensity FWHM in time and frequency
_GAUSSIAN_TIME_BANDWIDTH = 2.0 * math.log(2.0) / math.pi


class Envelope(ABC):
    """Vector-potential envelope of a pulse."""

    kind: ClassVar[str]

    @abstractmethod
    def __call__(self, t: Any) -> np.ndarray: ...

    @abstractmethod
    def derivative(self, t: Any) -> np.ndarray: ...

    @property
    @abstractmethod
    def span(self) -> tuple[float, float]: ...

    @property
    @abstractmethod
    def continuity(self) -> float: ...

    @property
    @abstractmethod
    def duration(self) -> float: ...

    def spectrum(self, omega: Any) -> np.ndarray:
        raise NotImplementedError(f"No closed-form spectrum for {type(self).__name__}.")

    @property
    def time_integral(self) -> float:
        """Integral of the squared envelope over the span, ``∫ e(t)² dt``."""

        return self._integrate_squared()

    @property
    def time_bandwidth_product(self) -> float:
        raise NotImplementedError(f"No time-bandwidth product for {type(self).__name__}.")

    def _integrate_squared(self, points: tuple[float, ...] | None = None) -> float:
        lo, hi = self.span
        value, _ = quad(lambda t: float(self(t)) ** 2, lo, hi, points=points, limit=200)
        return float(value)

    @classmethod
    @abstractmethod
    def from_params(cls, params: Mapping[str, Any]) -> Envelope: ...


def cycle_peak_intensity_ratio(
    shape: Callable[[float], float],
    shape_derivative: Callable[[float], float],
    omega: float,
    t: float,
) -> float:
    """Cycle-peak intensity at ``t`` relative to ``t = 0`` for envelope ``shape``.

    With ``A = e(t) sin(omega t + phi)`` the field is ``-(e' sin + omega e cos)``
    and its maximum over ``phi`` squared is ``omega**2 e**2 + e'**2``.
    """

    peak = omega**2 * shape(0.0) ** 2 + shape_derivative(0.0) ** 2
    return (omega**2 * shape(t) ** 2 + shape_derivative(t) ** 2) / peak


def solve_alpha(ratio_at_half_duration: Callable[[float], float], alpha_guess: float) -> float:
    """Find the exponent coefficient giving a cycle-peak intensity ratio of 1/2.

    ``alpha_guess`` is the slowly-varying estimate ``2 ln 2 / tau**2``; the
    bracket is widened geometrically around it until the ratio changes sign.
    """

    def residual(alpha: float) -> float:
        return ratio_at_half_duration(alpha) - 0.5

    lower, upper = alpha_guess, 2.0 * alpha_guess
    for _ in range(_MAX_BRACKET_STEPS):
        if residual(lower) >= 0.0:
            break
        lower *= 0.5
    else:
        raise DomainError(f"Could not bracket the Gaussian exponent below alpha={alpha_guess:.6g}.")
    for _ in range(_MAX_BRACKET_STEPS):
        if residual(upper) < 0.0:
            break
        upper *= 2.0
    else:
        raise DomainError(f"Could not bracket the Gaussian exponent above alpha={alpha_guess:.6g}.")
    if residual(lower) == 0.0:
        return lower
    return float(brentq(residual, lower, upper, xtol=1e-15 * alpha_guess, rtol=4.0 * np.finfo(float).eps))


def _positive(params: Mapping[str, Any], name: str) -> float:
    value = float(params[name])
    if not value > 0.0:
        raise ConfigurationError(f"Parameter {name} must be positive, got {value!r}.")
    return value


def gaussian_widths(params: Mapping[str, Any]) -> tuple[float, float, float, float]:
    """Return ``(tau, sigma, tmax, Tmax)`` from the Gaussian-family parameters.

    ``σ`` is the intensity standard deviation and ``σ′ = √2 σ`` that of the
    amplitude; ``σmax`` and ``σ′max`` count the half window in either width.
    ``tmax`` is always an integer number of carrier periods.
    """

    period = _positive(params, "T")
    width_key = require_one_of(params, ("τ", "σ", "σ′"))
    if width_key == "τ":
        tau = _positive(params, "τ")
        sigma = tau / _FWHM_PER_SIGMA
    else:
        if width_key == "σ":
            sigma = _positive(params, "σ")
        else:
            sigma = _positive(params, "σ′") / math.sqrt(2.0)
        tau = sigma * _FWHM_PER_SIGMA

    bound_key = require_one_of(params, ("σmax", "σ′max", "tmax", "Tmax"))
    if bound_key == "σmax":
        cycles = float(math.ceil(_positive(params, "σmax") * sigma / period))
    elif bound_key == "σ′max":
        cycles = float(math.ceil(_positive(params, "σ′max") * math.sqrt(2.0) * sigma / period))
    elif bound_key == "tmax":
        cycles = float(math.ceil(_positive(params, "tmax") / period))
    else:
        cycles = _positive(params, "Tmax")
    return tau, sigma, cycles * period, cycles


@dataclass(frozen=True)
class GaussianEnvelope(Envelope):
    """``exp(-alpha t**2)`` with ``alpha`` tuned to the requested intensity FWHM."""

    tau: float
    sigma: float
    alpha: float
    tmax: float
    cycles: float

    kind: ClassVar[str] = "gauss"

    def __call__(self, t: Any) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        return np.exp(-self.alpha * t**2)

    def derivative(self, t: Any) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        return -2.0 * self.alpha * t * np.exp(-self.alpha * t**2)

    @property
    def span(self) -> tuple[float, float]:
        return (-self.tmax, self.tmax)

    @property
    def continuity(self) -> float:
        return math.inf

    @property
    def duration(self) -> float:
        return self.tau

    @property
    def sigma_max(self) -> float:
        return self.tmax / self.sigma

    def spectrum(self, omega: Any) -> np.ndarray:
        omega = np.asarray(omega, dtype=float)
        return np.exp(-(omega**2) / (4.0 * self.alpha)) / math.sqrt(2.0 * self.alpha)

    @property
    def time_integral(self) -> float:
        root = math.sqrt(2.0 * self.alpha)
        return math.sqrt(math.pi) / root * float(erf(root * self.tmax))

    @property
    def time_bandwidth_product(self) -> float:
        return _GAUSSIAN_TIME_BANDWIDTH

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> GaussianEnvelope:
        tau, sigma, tmax, cycles = gaussian_widths(params)
        omega = float(params["ω"])
        half = 0.5 * tau

        def ratio(alpha: float) -> float:
            return cycle_peak_intensity_ratio(
                lambda t: math.exp(-alpha * t**2),
                lambda t: -2.0 * alpha * t * math.exp(-alpha * t**2),
                omega,
                half,
            )

        alpha = solve_alpha(ratio, 2.0 * math.log(2.0) / tau**2)
        return cls(tau=tau, sigma=sigma, alpha=alpha, tmax=tmax, cycles=cycles)


def _warped_argument(a: np.ndarray, toff: float, tmax: float) -> tuple[np.ndarray, np.ndarray]:
    """tan warp beyond ``toff``; returns the argument and its derivative with respect to ``|t|``."""

    width = tmax - toff
    s = np.clip((a - toff) / width, 0.0, 1.0)
    s = np.where(a < tmax, s, 0.0)
    angle = 0.5 * math.pi * s
    warped = toff + (2.0 / math.pi) * width * np.tan(angle)
    u = np.where(a <= toff, a, warped)
    du = np.where(a <= toff, 1.0, 1.0 / np.cos(angle) ** 2)
    return u, du


@dataclass(frozen=True)
class TruncatedGaussianEnvelope(Envelope):
    """Gaussian up to ``toff``; beyond it the argument is warped to reach zero at ``tmax``."""

    tau: float
    sigma: float
    alpha: float
    toff: float
    tmax: float
    cycles: float

    kind: ClassVar[str] = "trunc_gauss"

    def __call__(self, t: Any) -> np.ndarray:
        a = np.abs(np.asarray(t, dtype=float))
        u, _ = _warped_argument(a, self.toff, self.tmax)
        with np.errstate(over="ignore"):
            return np.where(a < self.tmax, np.exp(-self.alpha * u**2), 0.0)

    def derivative(self, t: Any) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        a = np.abs(t)
        u, du = _warped_argument(a, self.toff, self.tmax)
        with np.errstate(over="ignore", invalid="ignore"):
            slope = -2.0 * self.alpha * u * du * np.exp(-self.alpha * u**2)
        slope = np.where(np.isfinite(slope), slope, 0.0)
        return np.where(a < self.tmax, np.sign(t) * slope, 0.0)

    @property
    def span(self) -> tuple[float, float]:
        return (-self.tmax, self.tmax)

    @property
    def continuity(self) -> float:
        return 0

    @property
    def duration(self) -> float:
        return self.tau

    @property
    def time_integral(self) -> float:
        return self._integrate_squared((-self.toff, self.toff) if self.toff > 0.0 else None)

    @property
    def time_bandwidth_product(self) -> float:
        return _GAUSSIAN_TIME_BANDWIDTH

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> TruncatedGaussianEnvelope:
        tau, sigma, tmax, cycles = gaussian_widths(params)
        off_key = require_one_of(params, ("toff", "σoff"))
        toff = float(params["toff"]) if off_key == "toff" else float(params["σoff"]) * sigma
        if toff >= tmax:
            raise ConfigurationError(
                f"Turn-off time toff={toff:.6g} must lie before tmax={tmax:.6g} "
                "for a truncated Gaussian."
            )
        if toff < 0.0:
            raise ConfigurationError(f"Turn-off time toff must be non-negative, got {toff:.6g}.")
        omega = float(params["ω"])
        half = 0.5 * tau

        def ratio(alpha: float) -> float:
            trial = cls(tau=tau, sigma=sigma, alpha=alpha, toff=toff, tmax=tmax, cycles=cycles)
            return cycle_peak_intensity_ratio(
                lambda t: float(trial(t)), lambda t: float(trial.derivative(t)), omega, half
            )

        alpha = solve_alpha(ratio, 2.0 * math.log(2.0) / tau**2)
        return cls(tau=tau, sigma=sigma, alpha=alpha, toff=toff, tmax=tmax, cycles=cycles)


@dataclass(frozen=True)
class TrapezoidalEnvelope(Envelope):
    """Linear ramp up, flat top, linear ramp down; lengths in carrier periods."""

    ramp_up: float
    flat: float
    ramp_down: float
    period: float

    kind: ClassVar[str] = "trapezoidal"

    def __post_init__(self) -> None:
        if self.ramp_up < 0.0:
            raise ConfigurationError("Negative up-ramp not supported")
        if self.flat < 0.0:
            raise ConfigurationError("Negative flat region not supported")
        if self.ramp_down < 0.0:
            raise ConfigurationError("Negative down-ramp not supported")
        if self.ramp_up + self.flat + self.ramp_down == 0.0:
            raise ConfigurationError("Pulse length must be non-zero")

    @property
    def cycles(self) -> float:
        return self.ramp_up + self.flat + self.ramp_down

    def __call__(self, t: Any) -> np.ndarray:
        x = np.asarray(t, dtype=float) / self.period
        up_end = self.ramp_up
        flat_end = self.ramp_up + self.flat
        total = self.cycles
        rising = x / self.ramp_up if self.ramp_up > 0.0 else np.ones_like(x)
        falling = (total - x) / self.ramp_down if self.ramp_down > 0.0 else np.ones_like(x)
        return np.select(
            [x < 0.0, x < up_end, x <= flat_end, x <= total],
            [0.0, rising, 1.0, falling],
            default=0.0,
        )

    def derivative(self, t: Any) -> np.ndarray:
        x = np.asarray(t, dtype=float) / self.period
        up_end = self.ramp_up
        flat_end = self.ramp_up + self.flat
        total = self.cycles
        rising = 1.0 / (self.ramp_up * self.period) if self.ramp_up > 0.0 else 0.0
        falling = -1.0 / (self.ramp_down * self.period) if self.ramp_down > 0.0 else 0.0
        return np.select(
            [x < 0.0, x < up_end, x <= flat_end, x <= total],
            [0.0, rising, 0.0, falling],
            default=0.0,
        )

    @property
    def span(self) -> tuple[float, float]:
        return (0.0, self.cycles * self.period)

    @property
    def continuity(self) -> float:
        return 0

    @property
    def duration(self) -> float:
        return (self.flat + 0.5 * (self.ramp_up + self.ramp_down)) * self.period

    @property
    def time_integral(self) -> float:
        return (self.flat + (self.ramp_up + self.ramp_down) / 3.0) * self.period

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> TrapezoidalEnvelope:
        if "ramp" in params:
            if "ramp_up" in params or "ramp_down" in params:
                raise ConfigurationError("Can only specify one of ramp, ramp_up/ramp_down")
            ramp_up = ramp_down = float(params["ramp"])
        else:
            ramp_up = float(params[require_one_of(params, ("ramp_up",))])
            ramp_down = float(params[require_one_of(params, ("ramp_down",))])
        flat = float(params[require_one_of(params, ("flat",))])
        return cls(ramp_up=ramp_up, flat=flat, ramp_down=ramp_down, period=float(params["T"]))


@dataclass(frozen=True)
class Cos2Envelope(Envelope):
    """``cos²(pi t / (cycles T))`` on ``[-cycles T/2, cycles T/2]``."""

    cycles: float
    period: float

    kind: ClassVar[str] = "cos²"

    @property
    def width(self) -> float:
        return self.cycles * self.period

    def __call__(self, t: Any) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        inside = np.abs(t) <= 0.5 * self.width
        return np.where(inside, np.cos(math.pi * t / self.width) ** 2, 0.0)

    def derivative(self, t: Any) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        inside = np.abs(t) <= 0.5 * self.width
        slope = -(math.pi / self.width) * np.sin(2.0 * math.pi * t / self.width)
        return np.where(inside, slope, 0.0)

    @property
    def span(self) -> tuple[float, float]:
        return (-0.5 * self.width, 0.5 * self.width)

    @property
    def continuity(self) -> float:
        return 1

    @property
    def duration(self) -> float:
        return 0.5 * self.width

    @property
    def time_integral(self) -> float:
        # ∫ cos⁴ over one lobe
        return 0.375 * self.width

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> Cos2Envelope:
        cycles = _positive(params, require_one_of(params, ("cycles",)))
        return cls(cycles=cycles, period=float(params["T"]))


@dataclass(frozen=True)
class ContinuousWaveEnvelope(Envelope):
    """Unit envelope on ``[0, tmax]``."""

    tmax: float

    kind: ClassVar[str] = "cw"

    def __call__(self, t: Any) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        return np.where((t >= 0.0) & (t <= self.tmax), 1.0, 0.0)

    def derivative(self, t: Any) -> np.ndarray:
        return np.zeros_like(np.asarray(t, dtype=float))

    @property
    def span(self) -> tuple[float, float]:
        return (0.0, self.tmax)

    @property
    def continuity(self) -> float:
        return 0

    @property
    def duration(self) -> float:
        return self.tmax

    @property
    def time_integral(self) -> float:
        return self.tmax

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> ContinuousWaveEnvelope:
        key = require_one_of(params, ("tmax", "Tmax"))
        if key == "tmax":
            tmax = _positive(params, "tmax")
        else:
            tmax = _positive(params, "Tmax") * float(params["T"])
        return cls(tmax=tmax)


ENVELOPE_KINDS: dict[str, type[Envelope]] = {
    "gauss": GaussianEnvelope,
    "trunc_gauss": TruncatedGaussianEnvelope,
    "trapezoidal": TrapezoidalEnvelope,
    "tophat": TrapezoidalEnvelope,
    "cos²": Cos2Envelope,
    "cos2": Cos2Envelope,
    "cw": ContinuousWaveEnvelope,
}


def build_envelope(kind: str, params: Mapping[str, Any]) -> Envelope:
    try:
        envelope_cls = ENVELOPE_KINDS[kind]
    except KeyError as exc:
        valid = ", ".join(sorted(ENVELOPE_KINDS))
        raise ConfigurationError(
            f"Unknown envelope type {kind}, valid choices are {valid}"
        ) from exc
    return envelope_cls.from_params(params)
