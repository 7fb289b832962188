import os
import sys

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

# Ensure local package import works for pytest collection.
_TEST_DIR = os.path.dirname(__file__)
_PKG_ROOT = os.path.abspath(os.path.join(_TEST_DIR, ".."))
if _PKG_ROOT not in sys.path:
    sys.path.insert(0, _PKG_ROOT)

from pose_factors.common.conversions import pose_coeffs, rotation_to_coeffs  # noqa: E402


# =============================================================================
# Random Manifold Samples
# =============================================================================

def _random_rotation(rng: np.random.Generator) -> Rotation:
    q = rng.normal(size=4)
    return Rotation.from_quat(q / np.linalg.norm(q))


def random_quaternion(rng: np.random.Generator) -> np.ndarray:
    """Uniformly random unit quaternion [qw, qx, qy, qz] with qw >= 0."""
    return rotation_to_coeffs(_random_rotation(rng))


def random_pose(rng: np.random.Generator, translation_scale: float = 2.0) -> np.ndarray:
    """Random pose block [tx, ty, tz, qw, qx, qy, qz]."""
    t = rng.uniform(-translation_scale, translation_scale, size=3)
    return pose_coeffs(t, _random_rotation(rng))


def random_spd(rng: np.random.Generator, dim: int, scale: float = 0.1) -> np.ndarray:
    """Well-conditioned random SPD covariance."""
    A = rng.normal(size=(dim, dim))
    return scale * (A @ A.T / dim + np.eye(dim))


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator so failures are reproducible."""
    return np.random.default_rng(42)


@pytest.fixture
def identity_quat() -> np.ndarray:
    return np.array([1.0, 0.0, 0.0, 0.0])


@pytest.fixture
def identity_pose() -> np.ndarray:
    return np.array([0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0])
