from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from efield_sim.errors import ConfigurationError
from efield_sim.fields.base import Field
from efield_sim.fields.carriers import build_carrier
from efield_sim.fields.envelopes import build_envelope
from efield_sim.fields.field_types import ConstantField, LinearField, RampField, TransverseField
from efield_sim.models.config import UnitPreferences
from efield_sim.models.params import ParameterSet
from efield_sim.physics.quantity_resolve import canonicalize, require_one_of, resolve
from efield_sim.physics.rotations import compute_rotation


def symbol(value: Any) -> str:
    """Normalize a kind name; ``:gauss`` and ``gauss`` are the same symbol."""

    return str(value).lstrip(":")


def _envelope_for(params: ParameterSet) -> Any:
    return build_envelope(symbol(params.get("env", "gauss")), params)


def _make_linear(params: ParameterSet) -> LinearField:
    # harmonic carriers (selected by q) are not provided
    default = "harmonic" if "q" in params else "fixed"
    carrier = build_carrier(symbol(params.get("carrier", default)), params)
    return LinearField(carrier, _envelope_for(params), params)


def _make_transverse(params: ParameterSet) -> TransverseField:
    default = "elliptical" if "ξ" in params else "linear"
    carrier = build_carrier(symbol(params.get("carrier", default)), params, transverse=True)
    rotation = compute_rotation(params.get("rotation"))
    return TransverseField(carrier, _envelope_for(params), params, rotation)


def _make_constant(params: ParameterSet) -> ConstantField:
    return ConstantField(params, float(params[require_one_of(params, ("tmax",))]))


def _ramp_builder(shape: str) -> Callable[[ParameterSet], RampField]:
    def build(params: ParameterSet) -> RampField:
        tmax = float(params[require_one_of(params, ("tmax",))])
        direction = symbol(params.get("ramp_direction", "up"))
        return RampField(params, tmax, shape=shape, direction=direction)

    return build


FIELD_KINDS: dict[str, Callable[[ParameterSet], Field]] = {
    "linear": _make_linear,
    "transverse": _make_transverse,
    "constant": _make_constant,
    "linear_ramp": _ramp_builder("linear"),
    "parabolic_ramp": _ramp_builder("parabolic"),
    "sin²_ramp": _ramp_builder("sin²"),
    "sin2_ramp": _ramp_builder("sin²"),
}

_CARRIERLESS_KINDS = {"constant", "linear_ramp", "parabolic_ramp", "sin²_ramp", "sin2_ramp"}


def field_kind(params: Mapping[str, Any]) -> str:
    if "kind" in params:
        return symbol(params["kind"])
    if "ξ" in params or "rotation" in params:
        return "transverse"
    return "linear"


def make_field(
    params: Mapping[str, Any] | None = None,
    units: UnitPreferences | None = None,
    **kwargs: Any,
) -> Field:
    """Build a field from a (partial) parameter mapping.

    Keyword arguments are merged into ``params``. ``kind`` selects linear,
    transverse, constant or ramp fields; it defaults to ``transverse`` when
    an ellipticity ``ξ`` or a ``rotation`` is given and to ``linear``
    otherwise.
    """

    raw = canonicalize({**(params or {}), **kwargs})
    kind = field_kind(raw)
    try:
        builder = FIELD_KINDS[kind]
    except KeyError as exc:
        valid = ", ".join(sorted(FIELD_KINDS))
        raise ConfigurationError(f"Unknown field kind {kind}, valid choices are {valid}") from exc

    if kind in _CARRIERLESS_KINDS:
        # ramps accept ramp=:up/:down; a numeric ramp belongs to trapezoidal envelopes
        if isinstance(raw.get("ramp"), str):
            raw["ramp_direction"] = raw.pop("ramp")
        resolved = resolve(raw, units, require_frequency=False)
    else:
        resolved = resolve(raw, units)
    return builder(resolved)
