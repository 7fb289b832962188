"""
JAX utility helpers for casting between caller buffers and evaluation arrays.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from pose_factors.common import constants
from pose_factors.common.jax_init import jnp


def to_jax(value: Any, dtype=jnp.float64) -> jnp.ndarray:
    """Convert array-like input to JAX array with desired dtype."""
    return jnp.asarray(value, dtype=dtype)


def to_numpy(value: Any, dtype=float) -> np.ndarray:
    """Convert JAX/array-like input to NumPy array with desired dtype."""
    return np.asarray(value, dtype=dtype)


def as_vector(value: Any, size: int, name: str) -> jnp.ndarray:
    """
    Cast a construction-time measurement to an immutable float64 JAX vector.

    Raises ValueError if the flattened value does not have exactly ``size``
    entries or contains non-finite values.
    """
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.shape[0] != size:
        raise ValueError(f"{name}: expected {size} values, got {arr.shape[0]}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name}: contains non-finite values")
    return to_jax(arr)


def as_scalar(value: Any, name: str) -> jnp.ndarray:
    """Cast a construction-time scalar measurement to a 0-d float64 JAX array."""
    return as_vector(value, 1, name)[0]


def as_quaternion(value: Any, name: str) -> jnp.ndarray:
    """
    Cast a [qw, qx, qy, qz] measurement, renormalizing small norm drift.

    Raises ValueError if the norm is further than QUATERNION_NORM_TOLERANCE
    from 1.
    """
    q = np.asarray(as_vector(value, constants.ORIENTATION_BLOCK_SIZE, name))
    norm = float(np.linalg.norm(q))
    if abs(norm - 1.0) > constants.QUATERNION_NORM_TOLERANCE:
        raise ValueError(f"{name}: quaternion is not unit norm (norm={norm:.6f})")
    return to_jax(q / norm)


def as_pose(value: Any, name: str) -> jnp.ndarray:
    """Cast a [tx, ty, tz, qw, qx, qy, qz] measurement, normalizing its quaternion."""
    x = np.asarray(as_vector(value, constants.POSE_BLOCK_SIZE, name))
    q = as_quaternion(x[constants.POSE_QUATERNION_SLICE], f"{name}.rotation")
    return jnp.concatenate([to_jax(x[constants.POSE_TRANSLATION_SLICE]), q])
