from __future__ import annotations

import math
from typing import Any

import numpy as np

from efield_sim.errors import ConfigurationError, DomainError
from efield_sim.units import angle_to_radians

_SINGULAR_TOL = 1e-12


def axis_angle_matrix(angle: float, axis: Any) -> np.ndarray:
    """Rotation by ``angle`` (rad) about ``axis`` using the Rodrigues formula."""

    axis_arr = np.asarray(axis, dtype=float)
    if axis_arr.shape != (3,):
        raise ConfigurationError(f"Rotation axis must have three components, got {axis!r}.")
    norm = float(np.linalg.norm(axis_arr))
    if norm == 0.0:
        raise ConfigurationError("Rotation axis must be non-zero.")
    kx, ky, kz = axis_arr / norm
    cross = np.array([[0.0, -kz, ky], [kz, 0.0, -kx], [-ky, kx, 0.0]])
    return np.eye(3) + math.sin(angle) * cross + (1.0 - math.cos(angle)) * (cross @ cross)


def orthonormalize(matrix: Any) -> np.ndarray:
    """Gram-Schmidt orthonormalization of the columns of a 3x3 matrix."""

    R = np.asarray(matrix, dtype=float)
    if R.shape != (3, 3):
        raise ConfigurationError(f"Rotation matrix must be 3x3, got shape {R.shape}.")
    if abs(np.linalg.det(R)) < _SINGULAR_TOL:
        raise DomainError("Rotation matrix is singular.")
    columns: list[np.ndarray] = []
    for j in range(3):
        column = R[:, j].copy()
        for previous in columns:
            column -= (previous @ column) * previous
        columns.append(column / np.linalg.norm(column))
    Q = np.column_stack(columns)
    if np.linalg.det(Q) < 0.0:
        raise DomainError("Rotation matrix must be proper (positive determinant).")
    return Q


def compute_rotation(rotation: Any) -> np.ndarray:
    """Normalize a rotation description to a proper 3x3 rotation matrix.

    Accepts ``None`` (identity), an ``(angle, axis)`` pair, or a 3x3 matrix.
    """

    if rotation is None:
        return np.eye(3)
    if isinstance(rotation, (tuple, list)) and len(rotation) == 2:
        angle, axis = rotation
        return axis_angle_matrix(angle_to_radians(angle), axis)
    return orthonormalize(rotation)


def rotation_angle(R: np.ndarray) -> float:
    cos_angle = 0.5 * (float(np.trace(R)) - 1.0)
    return math.acos(min(1.0, max(-1.0, cos_angle)))


def rotation_axis(R: np.ndarray) -> np.ndarray:
    """Unit axis of a rotation matrix; the z axis for the identity."""

    R = np.asarray(R, dtype=float)
    skew = np.array([R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]])
    norm = float(np.linalg.norm(skew))
    if norm > 1e-9:
        return skew / norm
    if rotation_angle(R) < 1e-9:
        return np.array([0.0, 0.0, 1.0])
    # half-turn: R = 2 k k^T - 1
    symmetric = 0.5 * (R + np.eye(3))
    column = symmetric[:, int(np.argmax(np.diag(symmetric)))]
    return column / np.linalg.norm(column)
