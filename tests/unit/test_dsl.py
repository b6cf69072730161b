from __future__ import annotations

import math

import pint
import pytest

from efield_sim.dsl import parse_block, parse_value
from efield_sim.errors import ConfigurationError
from efield_sim.fields import make_field
from efield_sim.units import Q_

_BLOCK = """
# 800 nm pulse
λ = 800 nm
I₀ = 1e14 W/cm**2   # peak
τ = 6.2 fs
σmax = 6
env = :trunc_gauss
σoff: 4.0
ϕ = π/2
"""


@pytest.mark.unit
def test_parse_block_reads_quantities_symbols_and_numbers() -> None:
    params = parse_block(_BLOCK)

    assert list(params) == ["λ", "I₀", "τ", "σmax", "env", "σoff", "ϕ"]
    assert isinstance(params["λ"], pint.Quantity)
    assert params["λ"] == Q_(800.0, "nm")
    assert params["I₀"].to("W/cm**2").magnitude == pytest.approx(1e14)
    assert params["σmax"] == 6
    assert params["env"] == "trunc_gauss"
    assert params["σoff"] == 4.0
    assert params["ϕ"] == pytest.approx(0.5 * math.pi)


@pytest.mark.unit
def test_parsed_block_builds_a_field() -> None:
    field = make_field(parse_block(_BLOCK))

    assert field.envelope.kind == "trunc_gauss"
    assert field.carrier.phi == pytest.approx(0.5 * math.pi)
    assert field.peak_intensity == pytest.approx(1e14 / 3.50944506e16, rel=1e-5)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2π", 2.0 * math.pi),
        ("-π/4", -0.25 * math.pi),
        ("2 * pi", 2.0 * math.pi),
        ("1.5e3", 1500.0),
        ("3**2", 9.0),
    ],
)
def test_parse_numeric_value(text: str, expected: float) -> None:
    assert parse_value(text) == pytest.approx(expected)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "expected"),
    [(":gauss", "gauss"), ("gauss", "gauss"), ("cos²", "cos²"), (": cw", "cw")],
)
def test_parse_symbol(text: str, expected: str) -> None:
    assert parse_value(text) == expected


@pytest.mark.unit
def test_rotation_tuple_is_parsed() -> None:
    angle, axis = parse_value("(π/2, [1, 0, 0])")

    assert angle == pytest.approx(0.5 * math.pi)
    assert axis == [1, 0, 0]


@pytest.mark.unit
def test_quantities_with_compound_units() -> None:
    assert parse_value("30 fs").to("fs").magnitude == pytest.approx(30.0)
    assert parse_value("5 fs**2").to("fs**2").magnitude == pytest.approx(5.0)


@pytest.mark.unit
def test_duplicate_parameter_reports_both_lines() -> None:
    with pytest.raises(
        ConfigurationError, match="line 3: field parameter τ already specified at line 1"
    ):
        parse_block("τ = 6 fs\nλ = 800 nm\nτ = 7 fs")


@pytest.mark.unit
def test_unparseable_value_reports_line() -> None:
    with pytest.raises(ConfigurationError, match="line 2: Cannot parse value"):
        parse_block("λ = 800 nm\nτ = 6 parsecs per fortnight")


@pytest.mark.unit
def test_line_without_separator() -> None:
    with pytest.raises(ConfigurationError, match="line 1: expected"):
        parse_block("just words")


@pytest.mark.unit
def test_empty_value_and_division_by_zero() -> None:
    with pytest.raises(ConfigurationError, match="Empty value"):
        parse_value("   ")
    with pytest.raises(ConfigurationError, match="Division by zero"):
        parse_value("1/0")
