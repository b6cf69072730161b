from __future__ import annotations

import numpy as np
import pytest

from efield_sim.errors import ConfigurationError
from efield_sim.fields.windows import (
    BLACKMAN,
    HAMMING,
    HANN,
    RECT,
    WINDOWS,
    KaiserWindow,
    Window,
    build_window,
)


@pytest.mark.unit
@pytest.mark.parametrize("name", sorted(WINDOWS))
def test_cosine_windows_peak_at_centre_and_vanish_outside(name: str) -> None:
    window = build_window(name)

    assert window.value(0.0) == pytest.approx(1.0, rel=1e-6)
    np.testing.assert_array_equal(window.value([-0.6, 0.51, 2.0]), 0.0)
    np.testing.assert_allclose(window.value([-0.3, 0.3])[0], window.value(0.3))


@pytest.mark.unit
def test_hann_window_reaches_zero_at_edges() -> None:
    assert HANN.value(0.5) == pytest.approx(0.0, abs=1e-16)
    assert HANN.value(0.25) == pytest.approx(0.5)
    assert HAMMING.value(0.5) == pytest.approx(4.0 / 46.0)


@pytest.mark.unit
@pytest.mark.parametrize("window", [HANN, BLACKMAN, KaiserWindow(alpha=2.5)])
def test_window_derivative_matches_finite_difference(window: Window) -> None:
    x = np.linspace(-0.45, 0.45, 19)
    h = 1e-7

    numeric = (window.value(x + h) - window.value(x - h)) / (2.0 * h)

    np.testing.assert_allclose(window.derivative(x), numeric, atol=1e-6)


@pytest.mark.unit
def test_kaiser_window() -> None:
    window = build_window("kaiser", alpha=3.0)

    assert window.value(0.0) == pytest.approx(1.0)
    assert window.derivative(0.0) == 0.0
    assert 0.0 < window.value(0.5) < 0.01
    assert KaiserWindow(alpha=0.0).value(0.3) == pytest.approx(RECT.value(0.3))


@pytest.mark.unit
def test_kaiser_rejects_negative_shape() -> None:
    with pytest.raises(ConfigurationError, match="must be non-negative"):
        KaiserWindow(alpha=-1.0)


@pytest.mark.unit
def test_unknown_window() -> None:
    with pytest.raises(ConfigurationError, match="Unknown window tukey, valid choices are"):
        build_window("tukey")
