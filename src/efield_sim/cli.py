from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import numpy as np
import yaml  # type: ignore[import-untyped]

from efield_sim.dispersion import DispersedField, build_cascade, disperse
from efield_sim.dsl import parse_value
from efield_sim.errors import IncompatibleFieldsError
from efield_sim.fields import Field, delay, make_field, timeaxis
from efield_sim.models import RunConfig
from efield_sim.units import Q_

_DERIVED_QUANTITIES = (
    "wavelength",
    "period",
    "frequency",
    "angular_frequency",
    "photon_energy",
    "max_frequency",
    "amplitude",
    "peak_intensity",
    "vector_potential_amplitude",
    "ponderomotive_potential",
    "duration",
    "fundamental",
    "time_integral",
    "time_bandwidth_product",
    "fluence",
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="efield-sim", description="Build and inspect laser fields")
    subparsers = parser.add_subparsers(dest="command", required=True)

    describe_parser = subparsers.add_parser("describe", help="Summarize a field configuration")
    describe_parser.add_argument("config", type=Path, help="Path to YAML field config")
    describe_parser.add_argument("--out", type=Path, required=True, help="Output directory")
    describe_parser.add_argument(
        "--dump-samples-npz",
        action="store_true",
        help="Write sampled vector potential and field amplitude to out/samples.npz.",
    )
    describe_parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    return parser.parse_args(argv)


def _load_config(path: Path) -> RunConfig:
    with path.open("r", encoding="utf-8") as fh:
        payload = yaml.safe_load(fh) or {}
    if not isinstance(payload, dict):
        msg = "Config file root must be a mapping/object."
        raise ValueError(msg)
    return RunConfig.model_validate(payload)


def _field_parameters(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {
        name: parse_value(value) if isinstance(value, str) else value for name, value in raw.items()
    }


def build_run_field(cfg: RunConfig) -> tuple[Field, DispersedField | None]:
    """Field described by ``cfg`` (dispersed, then delayed) and its dispersed stage, if any."""

    field = make_field(_field_parameters(cfg.field), cfg.unit_preferences())
    dispersed: DispersedField | None = None
    element = build_cascade(cfg.dispersion, field)
    if element is not None:
        dispersed = disperse(field, element, cfg.dispersion_options)
        field = dispersed
    if cfg.delay_fs:
        field = delay(field, Q_(cfg.delay_fs, "fs"))
    return field, dispersed


def _derived_quantities(field: Field) -> dict[str, float]:
    derived: dict[str, float] = {}
    for name in _DERIVED_QUANTITIES:
        try:
            derived[f"{name}_au"] = float(getattr(field, name))
        except (IncompatibleFieldsError, KeyError, NotImplementedError):
            # not defined for this kind of field
            continue
    return derived


def _parameters(field: Field) -> dict[str, str]:
    try:
        return field.params.describe()
    except IncompatibleFieldsError:
        return {}


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _summary_payload(
    field: Field, dispersed: DispersedField | None, t: np.ndarray
) -> dict[str, Any]:
    amplitude = np.asarray(field.field_amplitude(t), dtype=float)
    magnitude = np.abs(amplitude) if amplitude.ndim == 1 else np.linalg.norm(amplitude, axis=-1)
    lo, hi = field.span
    payload: dict[str, Any] = {
        "schema_version": "efield.summary.v1",
        "field": {
            "type": type(field).__name__,
            "description": str(field),
            "dimensions": field.dimensions,
            "polarization": field.polarization.value,
            "span_au": [lo, hi],
            "time_delay_au": field.time_delay,
            "parameters": _parameters(field),
        },
        "derived": _derived_quantities(field),
        "samples": {
            "count": int(len(t)),
            "peak_field_amplitude_au": float(np.max(magnitude)),
        },
        "dispersion": None,
    }
    if dispersed is not None:
        span = dispersed.time_span
        payload["dispersion"] = {
            "element": str(dispersed.element),
            "time_span_au": [span.start, span.stop],
            "iterations": span.iterations,
            "residual": span.residual,
            "converged": span.converged,
            "spline_coefficients": dispersed.reconstruction.n_coefficients,
        }
    return payload


def _write_samples(path: Path, *, field: Field, t: np.ndarray) -> None:
    np.savez_compressed(
        path,
        t=np.asarray(t, dtype=float),
        vector_potential=np.asarray(field.vector_potential(t), dtype=float),
        field_amplitude=np.asarray(field.field_amplitude(t), dtype=float),
        instantaneous_intensity=np.asarray(field.instantaneous_intensity(t), dtype=float),
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.command != "describe":
        return 2
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    cfg = _load_config(args.config)
    out_dir: Path = args.out
    out_dir.mkdir(parents=True, exist_ok=True)

    field, dispersed = build_run_field(cfg)
    t = timeaxis(field)
    _write_json(out_dir / "summary.json", _summary_payload(field, dispersed, t))

    if args.dump_samples_npz:
        _write_samples(out_dir / "samples.npz", field=field, t=t)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
