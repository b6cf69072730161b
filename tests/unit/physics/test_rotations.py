from __future__ import annotations

import math

import numpy as np
import pytest

from efield_sim.errors import ConfigurationError, DomainError
from efield_sim.physics.rotations import (
    axis_angle_matrix,
    compute_rotation,
    orthonormalize,
    rotation_angle,
    rotation_axis,
)
from efield_sim.units import Q_


@pytest.mark.unit
def test_none_is_the_identity() -> None:
    np.testing.assert_array_equal(compute_rotation(None), np.eye(3))


@pytest.mark.unit
def test_quarter_turn_about_z_maps_x_to_y() -> None:
    R = compute_rotation((math.pi / 2, [0, 0, 1]))
    np.testing.assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-15)


@pytest.mark.unit
def test_angle_may_be_a_pint_quantity() -> None:
    R = compute_rotation((Q_(90.0, "degree"), [0, 0, 1]))
    np.testing.assert_allclose(R, axis_angle_matrix(math.pi / 2, [0, 0, 1]), atol=1e-15)


@pytest.mark.unit
def test_axis_angle_round_trip() -> None:
    axis = np.array([1.0, 2.0, 2.0]) / 3.0
    R = axis_angle_matrix(0.7, axis)

    assert rotation_angle(R) == pytest.approx(0.7)
    np.testing.assert_allclose(rotation_axis(R), axis, atol=1e-12)


@pytest.mark.unit
def test_half_turn_axis_is_recovered() -> None:
    R = axis_angle_matrix(math.pi, [0.0, 1.0, 0.0])
    np.testing.assert_allclose(np.abs(rotation_axis(R)), [0.0, 1.0, 0.0], atol=1e-8)


@pytest.mark.unit
def test_nearly_orthogonal_matrix_is_orthonormalized() -> None:
    R = orthonormalize(np.eye(3) + 1e-3 * np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]]))
    np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-12)
    assert np.linalg.det(R) == pytest.approx(1.0)


@pytest.mark.unit
def test_singular_matrix_is_rejected() -> None:
    with pytest.raises(DomainError, match="Rotation matrix is singular"):
        compute_rotation(np.zeros((3, 3)))


@pytest.mark.unit
def test_reflection_is_rejected() -> None:
    with pytest.raises(DomainError, match="positive determinant"):
        compute_rotation(np.diag([1.0, 1.0, -1.0]))


@pytest.mark.unit
def test_zero_axis_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="non-zero"):
        compute_rotation((1.0, [0, 0, 0]))
