from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

_EXAMPLES = Path(__file__).resolve().parents[2] / "configs" / "examples"


def _run_cli(
    *, config_path: Path, out_dir: Path, dump_samples_npz: bool = False
) -> subprocess.CompletedProcess[str]:
    cmd = [
        sys.executable,
        "-m",
        "efield_sim.cli",
        "describe",
        str(config_path),
        "--out",
        str(out_dir),
    ]
    if dump_samples_npz:
        cmd.append("--dump-samples-npz")
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


@pytest.mark.integration
def test_cli_describe_writes_summary(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"

    proc = _run_cli(config_path=_EXAMPLES / "gaussian_800nm.yaml", out_dir=out_dir)
    assert proc.returncode == 0, proc.stderr

    summary = json.loads((out_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["schema_version"] == "efield.summary.v1"
    assert summary["field"]["type"] == "LinearField"
    assert summary["field"]["polarization"] == "linear"
    assert summary["field"]["parameters"]["λ"] == "800 nm"
    assert summary["derived"]["peak_intensity_au"] == pytest.approx(1e14 / 3.50944506e16, rel=1e-5)
    assert summary["samples"]["peak_field_amplitude_au"] == pytest.approx(
        summary["derived"]["amplitude_au"], rel=1e-3
    )
    assert summary["dispersion"] is None
    assert not (out_dir / "samples.npz").exists()


@pytest.mark.integration
def test_cli_describe_disperses_delays_and_dumps_samples(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"

    proc = _run_cli(config_path=_EXAMPLES / "chirped_bk7.yaml", out_dir=out_dir, dump_samples_npz=True)
    assert proc.returncode == 0, proc.stderr

    summary = json.loads((out_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["field"]["type"] == "DelayedField"
    assert summary["field"]["time_delay_au"] == pytest.approx(5.0 * 41.34137, rel=1e-6)
    dispersion = summary["dispersion"]
    assert dispersion["converged"] is True
    assert "BK7" in dispersion["element"]
    assert dispersion["residual"] < 5.0e-4
    assert dispersion["spline_coefficients"] > 0
    lo, hi = summary["field"]["span_au"]
    assert lo < summary["field"]["time_delay_au"] < hi

    with np.load(out_dir / "samples.npz") as samples:
        assert set(samples.files) == {
            "t",
            "vector_potential",
            "field_amplitude",
            "instantaneous_intensity",
        }
        assert samples["t"].shape == (summary["samples"]["count"],)
        np.testing.assert_allclose(
            samples["instantaneous_intensity"], samples["field_amplitude"] ** 2
        )


@pytest.mark.integration
def test_cli_describe_rejects_config_without_field(tmp_path: Path) -> None:
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("delay_fs: 1.0\n", encoding="utf-8")

    proc = _run_cli(config_path=config_path, out_dir=tmp_path / "out")

    assert proc.returncode != 0
    assert "field" in proc.stderr
