"""
Geometry package for pose_factors.

Orientation (SO(3)) and pose (SE(3)) elements over a generic JAX numeric
type. These are the manifold values the residual factors consume; factors
only use the element interface (from_coeffs, *, inverse, -, +, act/rotate).

Modules:
- so3_jax: quaternion kernels and the SO3 element
- se3_jax: pose kernels and the SE3 element

Usage:
    from pose_factors.common.geometry import SO3, SE3

    X_rel = SE3.from_coeffs(x_i).inverse() * SE3.from_coeffs(x_j)
    delta = X_rel - SE3.from_coeffs(x_ij)   # 6D twist
"""

from __future__ import annotations

from pose_factors.common.geometry.so3_jax import (
    SO3,
    quat_conjugate,
    quat_multiply,
    quat_rotate,
    quat_to_rotmat,
    skew,
    so3_exp,
    so3_log,
)
from pose_factors.common.geometry.se3_jax import (
    SE3,
    se3_V,
    se3_V_inv,
    se3_act,
    se3_compose,
    se3_exp,
    se3_inverse,
    se3_log,
)

__all__ = [
    # Elements
    "SO3",
    "SE3",
    # SO(3) operations
    "skew",
    "quat_multiply",
    "quat_conjugate",
    "quat_to_rotmat",
    "quat_rotate",
    "so3_exp",
    "so3_log",
    # SE(3) operations
    "se3_V",
    "se3_V_inv",
    "se3_compose",
    "se3_inverse",
    "se3_act",
    "se3_exp",
    "se3_log",
]
