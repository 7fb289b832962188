"""
JAX Lie group operators for SE(3).

Provides the pose element consumed by the residual factors.
All operations are compatible with JAX transformations (jit, vmap, jacfwd).

Key functions:
- se3_compose: T_a ∘ T_b
- se3_inverse: T⁻¹
- se3_act: T · p for a 3D point
- se3_exp: twist [rho, phi] -> pose
- se3_log: pose -> twist [rho, phi]

Poses are stored as 7-vectors [tx, ty, tz, qw, qx, qy, qz].

THIS MODULE REQUIRES JAX. There is no NumPy fallback.

Reference: Barfoot (2017), Sola et al. (2018)
"""

from __future__ import annotations

from dataclasses import dataclass

from pose_factors.common import constants
from pose_factors.common.jax_init import jnp
from pose_factors.common.geometry.so3_jax import (
    SMALL_ANGLE_THRESHOLD,
    SO3,
    quat_conjugate,
    quat_multiply,
    quat_rotate,
    skew,
    so3_exp,
    so3_log,
)

_T = constants.POSE_TRANSLATION_SLICE
_Q = constants.POSE_QUATERNION_SLICE


# =============================================================================
# Left Jacobian helpers
# =============================================================================

def _safe_angle(phi: jnp.ndarray):
    """Return (theta_sq, is_small, safe_theta, safe_theta_sq) for phi."""
    theta_sq = jnp.dot(phi, phi)
    is_small = theta_sq < SMALL_ANGLE_THRESHOLD**2
    safe_theta_sq = jnp.where(is_small, 1.0, theta_sq)
    safe_theta = jnp.sqrt(safe_theta_sq)
    return theta_sq, is_small, safe_theta, safe_theta_sq


def se3_V(phi: jnp.ndarray) -> jnp.ndarray:
    """
    SE(3) V(phi) matrix mapping rho -> t in Exp([rho;phi]).

        V(phi) = I + B(theta)[phi]× + C(theta)[phi]×^2

    with

        B(theta) = (1 - cos(theta)) / theta^2
        C(theta) = (theta - sin(theta)) / theta^3
    """
    theta_sq, is_small, safe_theta, safe_theta_sq = _safe_angle(phi)
    K = skew(phi)

    B = jnp.where(
        is_small,
        0.5 - theta_sq / 24.0,
        (1.0 - jnp.cos(safe_theta)) / safe_theta_sq,
    )
    C = jnp.where(
        is_small,
        1.0 / 6.0 - theta_sq / 120.0,
        (safe_theta - jnp.sin(safe_theta)) / (safe_theta_sq * safe_theta),
    )

    return jnp.eye(3) + B * K + C * (K @ K)


def se3_V_inv(phi: jnp.ndarray) -> jnp.ndarray:
    """
    Closed-form V(phi)^{-1} for computing rho from t in Log.

        V^{-1} = I - 0.5 * [phi]× + D(theta) * [phi]×²

    where D(theta) = (1/theta²) - (1 + cos(theta)) / (2 * theta * sin(theta)),
    with Taylor expansion D ≈ 1/12 + theta²/720 for small theta.
    Undefined at theta = π (sin(theta) = 0).
    """
    theta_sq, is_small, safe_theta, safe_theta_sq = _safe_angle(phi)
    K = skew(phi)

    D = jnp.where(
        is_small,
        1.0 / 12.0 + theta_sq / 720.0,
        (1.0 / safe_theta_sq)
        - (1.0 + jnp.cos(safe_theta)) / (2.0 * safe_theta * jnp.sin(safe_theta)),
    )

    return jnp.eye(3) - 0.5 * K + D * (K @ K)


# =============================================================================
# Core JAX Implementations
# =============================================================================

def se3_compose(a: jnp.ndarray, b: jnp.ndarray) -> jnp.ndarray:
    """Compose two SE(3) transforms: T_a ∘ T_b."""
    q_a = a[_Q]
    t_out = a[_T] + quat_rotate(q_a, b[_T])
    q_out = quat_multiply(q_a, b[_Q])
    return jnp.concatenate([t_out, q_out])


def se3_inverse(a: jnp.ndarray) -> jnp.ndarray:
    """Compute inverse of SE(3) transform: (-Rᵀ t, q⁻¹)."""
    q_inv = quat_conjugate(a[_Q])
    t_inv = -quat_rotate(q_inv, a[_T])
    return jnp.concatenate([t_inv, q_inv])


def se3_act(a: jnp.ndarray, p: jnp.ndarray) -> jnp.ndarray:
    """Transform a 3D point: R p + t."""
    return quat_rotate(a[_Q], p) + a[_T]


def se3_exp(xi: jnp.ndarray) -> jnp.ndarray:
    """Exponential map from a twist [rho(3), phi(3)] to a 7-vector pose."""
    rho = xi[0:3]
    phi = xi[3:6]
    t = se3_V(phi) @ rho
    return jnp.concatenate([t, so3_exp(phi)])


def se3_log(a: jnp.ndarray) -> jnp.ndarray:
    """
    SE(3) logarithm map from a 7-vector pose to a twist [rho(3), phi(3)].

    The translational twist component is rho = V(phi)^{-1} t, not t itself.
    """
    phi = so3_log(a[_Q])
    rho = se3_V_inv(phi) @ a[_T]
    return jnp.concatenate([rho, phi])


# =============================================================================
# Pose element
# =============================================================================


@dataclass(frozen=True, eq=False)
class SE3:
    """
    Pose element: rotation R(q) followed by translation t.

    The coefficients may be float64 arrays or JAX tracers.
    """
    t: jnp.ndarray
    rotation: SO3

    @classmethod
    def from_coeffs(cls, coeffs) -> "SE3":
        """Construct from a flat 7-coefficient buffer [tx, ty, tz, qw, qx, qy, qz]."""
        c = jnp.reshape(jnp.asarray(coeffs), (constants.POSE_BLOCK_SIZE,))
        return cls(c[_T], SO3(c[_Q]))

    @classmethod
    def identity(cls) -> "SE3":
        return cls(jnp.zeros(3), SO3.identity())

    @classmethod
    def exp(cls, xi: jnp.ndarray) -> "SE3":
        return cls.from_coeffs(se3_exp(jnp.asarray(xi)))

    @property
    def coeffs(self) -> jnp.ndarray:
        return jnp.concatenate([self.t, self.rotation.q])

    @property
    def translation(self) -> jnp.ndarray:
        return self.t

    def log(self) -> jnp.ndarray:
        return se3_log(self.coeffs)

    def inverse(self) -> "SE3":
        return SE3.from_coeffs(se3_inverse(self.coeffs))

    def act(self, p: jnp.ndarray) -> jnp.ndarray:
        """Transform a 3D point into this pose's parent frame."""
        return self.rotation.rotate(p) + self.t

    def __mul__(self, other: "SE3") -> "SE3":
        if not isinstance(other, SE3):
            return NotImplemented
        return SE3.from_coeffs(se3_compose(self.coeffs, other.coeffs))

    def __sub__(self, other: "SE3") -> jnp.ndarray:
        """Tangent-space difference self ⊟ other = Log(other⁻¹ ∘ self)."""
        if not isinstance(other, SE3):
            return NotImplemented
        return (other.inverse() * self).log()

    def __add__(self, delta: jnp.ndarray) -> "SE3":
        """Tangent-space increment self ⊞ δ = self ∘ Exp(δ)."""
        return self * SE3.exp(delta)


__all__ = [
    "se3_V",
    "se3_V_inv",
    "se3_compose",
    "se3_inverse",
    "se3_act",
    "se3_exp",
    "se3_log",
    "SE3",
]
