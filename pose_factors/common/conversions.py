"""
Conversions from common rotation/pose representations to coefficient buffers.

Parameter blocks and measurements use scalar-first quaternions
[qw, qx, qy, qz]; ROS messages and scipy use scalar-last [x, y, z, w].
These helpers convert at the boundary so factor code never has to.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial.transform import Rotation

from pose_factors.common import constants


def quat_xyzw_to_wxyz(quat: np.ndarray) -> np.ndarray:
    """Reorder a scalar-last quaternion to scalar-first."""
    q = np.asarray(quat, dtype=float).reshape(-1)
    if q.shape[0] != 4:
        raise ValueError(f"quat_xyzw_to_wxyz: expected shape (4,), got {q.shape}")
    return np.array([q[3], q[0], q[1], q[2]], dtype=float)


def quat_wxyz_to_xyzw(quat: np.ndarray) -> np.ndarray:
    """Reorder a scalar-first quaternion to scalar-last."""
    q = np.asarray(quat, dtype=float).reshape(-1)
    if q.shape[0] != 4:
        raise ValueError(f"quat_wxyz_to_xyzw: expected shape (4,), got {q.shape}")
    return np.array([q[1], q[2], q[3], q[0]], dtype=float)


def rotation_to_coeffs(rotation: Rotation) -> np.ndarray:
    """Orientation block [qw, qx, qy, qz] from a scipy Rotation (w >= 0)."""
    q = quat_xyzw_to_wxyz(rotation.as_quat())
    return -q if q[0] < 0.0 else q


def coeffs_to_rotation(coeffs: np.ndarray) -> Rotation:
    """scipy Rotation from an orientation block or the rotation part of a pose block."""
    c = np.asarray(coeffs, dtype=float).reshape(-1)
    if c.shape[0] == constants.POSE_BLOCK_SIZE:
        c = c[constants.POSE_QUATERNION_SLICE]
    if c.shape[0] != constants.ORIENTATION_BLOCK_SIZE:
        raise ValueError(f"coeffs_to_rotation: expected 4 or 7 coefficients, got {c.shape[0]}")
    return Rotation.from_quat(quat_wxyz_to_xyzw(c))


def rotvec_to_coeffs(rotvec: np.ndarray) -> np.ndarray:
    """Orientation block from a rotation vector (radians)."""
    return rotation_to_coeffs(Rotation.from_rotvec(np.asarray(rotvec, dtype=float).reshape(3)))


def pose_coeffs(translation: np.ndarray, rotation: Rotation | np.ndarray) -> np.ndarray:
    """
    Pose block [tx, ty, tz, qw, qx, qy, qz].

    ``rotation`` may be a scipy Rotation or a [qw, qx, qy, qz] quaternion,
    which is normalized.
    """
    t = np.asarray(translation, dtype=float).reshape(-1)
    if t.shape[0] != 3:
        raise ValueError(f"pose_coeffs: expected 3 translation values, got {t.shape[0]}")
    if isinstance(rotation, Rotation):
        q = rotation_to_coeffs(rotation)
    else:
        q = np.asarray(rotation, dtype=float).reshape(-1)
        norm = float(np.linalg.norm(q))
        if q.shape[0] != 4 or norm < 1e-12:
            raise ValueError(f"pose_coeffs: invalid quaternion {q}")
        q = q / norm
    return np.concatenate([t, q])


def identity_orientation_coeffs() -> np.ndarray:
    return np.array([1.0, 0.0, 0.0, 0.0])


def identity_pose_coeffs() -> np.ndarray:
    return np.array([0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0])
