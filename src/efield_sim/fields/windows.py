from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy.special import i0, i1

from efield_sim.errors import ConfigurationError


class Window(ABC):
    """Apodization window on ``[-1/2, 1/2]``; zero for ``|2x| > 1``."""

    @abstractmethod
    def value(self, x: Any) -> np.ndarray: ...

    @abstractmethod
    def derivative(self, x: Any) -> np.ndarray: ...


def _inside(x: np.ndarray) -> np.ndarray:
    return np.abs(2.0 * x) <= 1.0


@dataclass(frozen=True)
class RectWindow(Window):
    def value(self, x: Any) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        return np.where(_inside(x), 1.0, 0.0)

    def derivative(self, x: Any) -> np.ndarray:
        return np.zeros_like(np.asarray(x, dtype=float))


@dataclass(frozen=True)
class CosineSumWindow(Window):
    """``sum_k a_k cos(2 pi k x)``, the centred form of the generalized cosine windows."""

    name: str
    coefficients: tuple[float, ...]

    def value(self, x: Any) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        total = sum(a * np.cos(2.0 * math.pi * k * x) for k, a in enumerate(self.coefficients))
        return np.where(_inside(x), total, 0.0)

    def derivative(self, x: Any) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        total = sum(
            -2.0 * math.pi * k * a * np.sin(2.0 * math.pi * k * x)
            for k, a in enumerate(self.coefficients)
        )
        return np.where(_inside(x), total, 0.0)


@dataclass(frozen=True)
class KaiserWindow(Window):
    """``I0(pi alpha sqrt(1 - 4x²)) / I0(pi alpha)``."""

    alpha: float = 3.0

    def __post_init__(self) -> None:
        if self.alpha < 0.0:
            raise ConfigurationError(f"Kaiser shape factor must be non-negative, got {self.alpha!r}.")

    def value(self, x: Any) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        inside = _inside(x)
        root = np.sqrt(np.where(inside, 1.0 - 4.0 * x**2, 0.0))
        pa = math.pi * self.alpha
        return np.where(inside, i0(pa * root) / i0(pa), 0.0)

    def derivative(self, x: Any) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        inside = _inside(x)
        root = np.sqrt(np.where(inside, 1.0 - 4.0 * x**2, 0.0))
        pa = math.pi * self.alpha
        # I1(pa s) / s -> pa / 2 as s -> 0
        safe_root = np.where(root > 1e-12, root, 1.0)
        ratio = np.where(root > 1e-12, i1(pa * root) / safe_root, 0.5 * pa)
        return np.where(inside, -4.0 * pa * x * ratio / i0(pa), 0.0)


RECT = RectWindow()
HANN = CosineSumWindow("Hann", (0.5, 0.5))
HAMMING = CosineSumWindow("Hamming", (25.0 / 46.0, 21.0 / 46.0))
BLACKMAN = CosineSumWindow("Blackman", (0.42, 0.5, 0.08))
BLACKMAN_EXACT = CosineSumWindow(
    "BlackmanExact", (7938.0 / 18608.0, 9240.0 / 18608.0, 1430.0 / 18608.0)
)
NUTTALL = CosineSumWindow("Nuttall", (0.355768, 0.487396, 0.144232, 0.012604))
BLACKMAN_NUTTALL = CosineSumWindow(
    "BlackmanNuttall", (0.3635819, 0.4891775, 0.1365995, 0.0106411)
)
BLACKMAN_HARRIS = CosineSumWindow("BlackmanHarris", (0.35875, 0.48829, 0.14128, 0.01168))

WINDOWS: dict[str, Window] = {
    "rect": RECT,
    "hann": HANN,
    "hamming": HAMMING,
    "blackman": BLACKMAN,
    "blackman_exact": BLACKMAN_EXACT,
    "nuttall": NUTTALL,
    "blackman_nuttall": BLACKMAN_NUTTALL,
    "blackman_harris": BLACKMAN_HARRIS,
}


def build_window(name: str, **kwargs: Any) -> Window:
    if name == "kaiser":
        return KaiserWindow(**kwargs)
    try:
        return WINDOWS[name]
    except KeyError as exc:
        valid = ", ".join(sorted([*WINDOWS, "kaiser"]))
        raise ConfigurationError(f"Unknown window {name}, valid choices are {valid}") from exc
