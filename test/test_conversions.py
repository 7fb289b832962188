"""
Tests for coefficient-buffer conversions at the scipy/ROS boundary.
"""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from pose_factors.common.conversions import (
    coeffs_to_rotation,
    identity_orientation_coeffs,
    identity_pose_coeffs,
    pose_coeffs,
    quat_wxyz_to_xyzw,
    quat_xyzw_to_wxyz,
    rotation_to_coeffs,
    rotvec_to_coeffs,
)


class TestQuaternionOrder:
    """Scalar-first vs. scalar-last reordering."""

    def test_reorder(self):
        xyzw = np.array([0.1, 0.2, 0.3, 0.9])
        assert np.allclose(quat_xyzw_to_wxyz(xyzw), [0.9, 0.1, 0.2, 0.3])
        assert np.allclose(quat_wxyz_to_xyzw(quat_xyzw_to_wxyz(xyzw)), xyzw)

    def test_wrong_size(self):
        with pytest.raises(ValueError):
            quat_xyzw_to_wxyz(np.zeros(3))


class TestRotationCoeffs:
    """scipy Rotation <-> coefficient blocks."""

    def test_scalar_part_non_negative(self):
        R = Rotation.from_quat([0.0, 0.0, 0.6, -0.8])
        q = rotation_to_coeffs(R)
        assert q[0] >= 0.0
        assert np.allclose(coeffs_to_rotation(q).as_matrix(), R.as_matrix())

    def test_rotvec(self):
        q = rotvec_to_coeffs([0.0, 0.0, np.pi / 2])
        assert np.allclose(q, [np.cos(np.pi / 4), 0.0, 0.0, np.sin(np.pi / 4)])

    def test_pose_block_accepted(self):
        x = pose_coeffs([1.0, 2.0, 3.0], Rotation.from_rotvec([0.1, 0.2, 0.3]))
        assert np.allclose(coeffs_to_rotation(x).as_rotvec(), [0.1, 0.2, 0.3])

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            coeffs_to_rotation(np.zeros(5))


class TestPoseCoeffs:
    """Pose block assembly."""

    def test_normalizes_quaternion(self):
        x = pose_coeffs([0.0, 0.0, 1.0], np.array([2.0, 0.0, 0.0, 0.0]))
        assert np.allclose(x, [0.0, 0.0, 1.0, 1.0, 0.0, 0.0, 0.0])

    def test_rejects_zero_quaternion(self):
        with pytest.raises(ValueError):
            pose_coeffs([0.0, 0.0, 0.0], np.zeros(4))

    def test_identities(self):
        assert np.allclose(identity_pose_coeffs()[3:], identity_orientation_coeffs())
        assert np.allclose(identity_pose_coeffs()[:3], 0.0)
