"""
Constants for pose_factors.

=============================================================================
CONVENTION QUICK REFERENCE
=============================================================================

ORIENTATION BLOCK (4 coefficients):
  Unit quaternion [qw, qx, qy, qz] (scalar first, Hamilton convention)
  R(q) maps body-frame vectors into the reference frame

POSE BLOCK (7 coefficients):
  [tx, ty, tz, qw, qx, qy, qz]
  Transform: p_ref = R(q) @ p_body + t

TANGENT VECTORS:
  SO(3): rotation vector [rx, ry, rz] (radians)
  SE(3): twist [rho(3), phi(3)], translation part FIRST
  Difference: a ⊟ b = Log(b⁻¹ ∘ a)
  Increment:  a ⊞ δ = a ∘ Exp(δ)

INFORMATION MATRICES:
  Ordered like the tangent vector they weight (6x6: [rho, phi])
=============================================================================
"""

# =============================================================================
# Parameter block sizes (coefficient buffer lengths)
# =============================================================================

ORIENTATION_BLOCK_SIZE = 4
POSE_BLOCK_SIZE = 7
SCALAR_BLOCK_SIZE = 1

# Offsets inside a pose block
POSE_TRANSLATION_SLICE = slice(0, 3)
POSE_QUATERNION_SLICE = slice(3, 7)
POSE_ALTITUDE_INDEX = 2

# =============================================================================
# Tangent dimensions
# =============================================================================

SO3_TANGENT_DIM = 3
SE3_TANGENT_DIM = 6

# =============================================================================
# Residual dimensions per factor kind
# =============================================================================

ORIENTATION_RESIDUAL_DIM = SO3_TANGENT_DIM
RELATIVE_POSE_RESIDUAL_DIM = SE3_TANGENT_DIM
RANGE_RESIDUAL_DIM = 1
ALTITUDE_RESIDUAL_DIM = 1
TIME_SYNC_RESIDUAL_DIM = SO3_TANGENT_DIM
ORIENTATION_OFFSET_RESIDUAL_DIM = SO3_TANGENT_DIM
POSE_OFFSET_RESIDUAL_DIM = SE3_TANGENT_DIM
REPROJECTION_RESIDUAL_DIM = 2

# =============================================================================
# Numerical constants (stability, not policy)
# =============================================================================

# Below this rotation angle the exp/log maps switch to Taylor expansions.
# |sin(θ)/θ - (1 - θ²/6)| < θ⁴/120, negligible in float64 for θ < 1e-4
SMALL_ANGLE_THRESHOLD = 1e-4

# Measurement quaternions within this of unit norm are renormalized, others rejected
QUATERNION_NORM_TOLERANCE = 1e-3

# =============================================================================
# Information-matrix preparation defaults
# =============================================================================

# Covariances with cond() above this are rejected as numerically singular
COVARIANCE_MAX_CONDITION_DEFAULT = 1e12

# Covariances with cond() above this are accepted but logged
COVARIANCE_WARN_CONDITION_DEFAULT = 1e8

# max|C - Cᵀ| allowed relative to max|C|
COVARIANCE_SYMMETRY_TOLERANCE_DEFAULT = 1e-9

# =============================================================================
# Gradient check defaults
# =============================================================================

GRADIENT_CHECK_STEP_DEFAULT = 1e-6
GRADIENT_CHECK_RELATIVE_TOLERANCE_DEFAULT = 1e-6
