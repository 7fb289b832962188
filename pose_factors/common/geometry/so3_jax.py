"""
JAX quaternion operators for SO(3).

Provides the orientation element consumed by the residual factors.
All operations are compatible with JAX transformations (jit, vmap, jacfwd),
so the same code evaluates on float64 arrays and on JVP tracers.

Key functions:
- quat_multiply: Hamilton product p ∘ q
- quat_conjugate: inverse of a unit quaternion
- quat_rotate: R(q) @ p without forming R
- so3_exp: rotation vector -> quaternion
- so3_log: quaternion -> rotation vector (shortest path)

Quaternions are stored scalar first: [qw, qx, qy, qz].

Branches on the rotation angle use the double-where pattern: the unused side
of every jnp.where is fed a safe argument so that its derivative stays finite.

THIS MODULE REQUIRES JAX. There is no NumPy fallback.
"""

from __future__ import annotations

from dataclasses import dataclass

from pose_factors.common import constants
from pose_factors.common.jax_init import jnp

SMALL_ANGLE_THRESHOLD = constants.SMALL_ANGLE_THRESHOLD


# =============================================================================
# Core JAX Implementations
# =============================================================================

def skew(v: jnp.ndarray) -> jnp.ndarray:
    """
    Skew-symmetric matrix from 3-vector.

    [v]× such that [v]× @ w = v × w (cross product)
    """
    zero = jnp.zeros_like(v[0])
    return jnp.stack([
        jnp.stack([zero, -v[2], v[1]]),
        jnp.stack([v[2], zero, -v[0]]),
        jnp.stack([-v[1], v[0], zero]),
    ])


def quat_multiply(p: jnp.ndarray, q: jnp.ndarray) -> jnp.ndarray:
    """Hamilton product p ∘ q of two [w, x, y, z] quaternions."""
    pw, pv = p[0], p[1:4]
    qw, qv = q[0], q[1:4]
    w = pw * qw - jnp.dot(pv, qv)
    v = pw * qv + qw * pv + jnp.cross(pv, qv)
    return jnp.concatenate([jnp.reshape(w, (1,)), v])


def quat_conjugate(q: jnp.ndarray) -> jnp.ndarray:
    """Conjugate [w, -x, -y, -z]; the inverse of a unit quaternion."""
    return jnp.concatenate([q[:1], -q[1:4]])


def quat_to_rotmat(q: jnp.ndarray) -> jnp.ndarray:
    """Rotation matrix R(q) of a unit quaternion."""
    w, x, y, z = q[0], q[1], q[2], q[3]
    return jnp.stack([
        jnp.stack([1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)]),
        jnp.stack([2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)]),
        jnp.stack([2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)]),
    ])


def quat_rotate(q: jnp.ndarray, p: jnp.ndarray) -> jnp.ndarray:
    """
    Rotate a 3-vector: R(q) @ p.

    Uses p' = p + w t + v × t with t = 2 v × p (no matrix formed).
    """
    w, v = q[0], q[1:4]
    t = 2.0 * jnp.cross(v, p)
    return p + w * t + jnp.cross(v, t)


def so3_exp(omega: jnp.ndarray) -> jnp.ndarray:
    """
    SO(3) exponential map to a unit quaternion.

        q = [cos(θ/2), sin(θ/2)/θ · ω],  θ = ||ω||

    For small angles uses the Taylor expansion
        q ≈ [1 - θ²/8, (1/2 - θ²/48) · ω]

    Args:
        omega: Rotation vector (3,) in radians

    Returns:
        q: Unit quaternion (4,) [w, x, y, z]
    """
    theta_sq = jnp.dot(omega, omega)
    is_small = theta_sq < SMALL_ANGLE_THRESHOLD**2

    safe_theta_sq = jnp.where(is_small, 1.0, theta_sq)
    safe_theta = jnp.sqrt(safe_theta_sq)
    half = 0.5 * safe_theta

    real = jnp.where(is_small, 1.0 - theta_sq / 8.0, jnp.cos(half))
    imag_coeff = jnp.where(is_small, 0.5 - theta_sq / 48.0, jnp.sin(half) / safe_theta)

    return jnp.concatenate([jnp.reshape(real, (1,)), imag_coeff * omega])


def so3_log(q: jnp.ndarray) -> jnp.ndarray:
    """
    SO(3) logarithm map from a quaternion to a rotation vector.

        ω = 2 atan2(||v||, w) / ||v|| · v

    The quaternion is first moved to the w >= 0 hemisphere so the result is
    the shortest rotation (||ω|| <= π). atan2 keeps the angle well defined
    for quaternions that drift slightly off unit norm.

    For small ||v|| uses atan(x) ≈ x - x³/3:
        ω ≈ (2/w) (1 - ||v||²/(3w²)) · v

    Args:
        q: Quaternion (4,) [w, x, y, z]

    Returns:
        omega: Rotation vector (3,) in radians
    """
    q = jnp.where(q[0] < 0.0, -q, q)
    w, v = q[0], q[1:4]

    n_sq = jnp.dot(v, v)
    is_small = n_sq < SMALL_ANGLE_THRESHOLD**2

    safe_n = jnp.sqrt(jnp.where(is_small, 1.0, n_sq))
    safe_w = jnp.where(is_small, w, 1.0)

    coeff_general = 2.0 * jnp.arctan2(safe_n, w) / safe_n
    coeff_small = (2.0 / safe_w) * (1.0 - n_sq / (3.0 * safe_w * safe_w))

    return jnp.where(is_small, coeff_small, coeff_general) * v


# =============================================================================
# Orientation element
# =============================================================================


@dataclass(frozen=True, eq=False)
class SO3:
    """
    Orientation element backed by a [w, x, y, z] quaternion.

    The quaternion may be a float64 array or a JAX tracer; every operator
    returns a new element and never mutates its operands.
    """
    q: jnp.ndarray

    @classmethod
    def from_coeffs(cls, coeffs) -> "SO3":
        """Construct from a flat 4-coefficient buffer [qw, qx, qy, qz]."""
        return cls(jnp.reshape(jnp.asarray(coeffs), (constants.ORIENTATION_BLOCK_SIZE,)))

    @classmethod
    def identity(cls) -> "SO3":
        return cls(jnp.array([1.0, 0.0, 0.0, 0.0]))

    @classmethod
    def exp(cls, omega: jnp.ndarray) -> "SO3":
        return cls(so3_exp(jnp.asarray(omega)))

    @property
    def coeffs(self) -> jnp.ndarray:
        return self.q

    def log(self) -> jnp.ndarray:
        return so3_log(self.q)

    def inverse(self) -> "SO3":
        return SO3(quat_conjugate(self.q))

    def matrix(self) -> jnp.ndarray:
        return quat_to_rotmat(self.q)

    def rotate(self, p: jnp.ndarray) -> jnp.ndarray:
        """Apply the rotation to a 3-vector."""
        return quat_rotate(self.q, p)

    def __mul__(self, other: "SO3") -> "SO3":
        if not isinstance(other, SO3):
            return NotImplemented
        return SO3(quat_multiply(self.q, other.q))

    def __sub__(self, other: "SO3") -> jnp.ndarray:
        """Tangent-space difference self ⊟ other = Log(other⁻¹ ∘ self)."""
        if not isinstance(other, SO3):
            return NotImplemented
        return (other.inverse() * self).log()

    def __add__(self, delta: jnp.ndarray) -> "SO3":
        """Tangent-space increment self ⊞ δ = self ∘ Exp(δ)."""
        return self * SO3.exp(delta)


__all__ = [
    "SMALL_ANGLE_THRESHOLD",
    "skew",
    "quat_multiply",
    "quat_conjugate",
    "quat_to_rotmat",
    "quat_rotate",
    "so3_exp",
    "so3_log",
    "SO3",
]
