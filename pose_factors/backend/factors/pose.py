"""
Pose factors on SE(3).

Residuals are 6D twists [rho, phi] (translation part first) weighted by a
6x6 information matrix ordered the same way. Pose parameter blocks are
[tx, ty, tz, qw, qx, qy, qz].
"""

from __future__ import annotations

from dataclasses import InitVar, dataclass, field
from typing import Optional

import numpy as np

from pose_factors.common import constants
from pose_factors.common.geometry import SE3
from pose_factors.common.jax_init import jnp
from pose_factors.common.jax_utils import as_pose
from pose_factors.common.param_models import FactorParams
from pose_factors.backend.cost_function import AutoDiffCostFunction, register_factor
from pose_factors.backend.information import information_matrix


@register_factor(
    constants.RELATIVE_POSE_RESIDUAL_DIM,
    (constants.POSE_BLOCK_SIZE, constants.POSE_BLOCK_SIZE),
)
@dataclass(frozen=True, eq=False)
class RelativePoseFactor:
    """
    Between-pose factor for odometry and loop closures.

        r = W ((X_i⁻¹ ∘ X_j) ⊟ X_ij),   W = Q⁻¹ (6x6)

    Args:
        x_ij: measured transform of frame j expressed in frame i (7 coefficients)
        covariance: 6x6 covariance in [rho, phi] order
        params: optional FactorParams for covariance validation
    """
    x_ij: jnp.ndarray
    covariance: InitVar[np.ndarray]
    params: InitVar[Optional[FactorParams]] = None
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, covariance, params):
        name = type(self).__name__
        object.__setattr__(self, "x_ij", as_pose(self.x_ij, f"{name}.x_ij"))
        object.__setattr__(
            self,
            "information",
            information_matrix(covariance, constants.SE3_TANGENT_DIM, f"{name}.covariance", params),
        )

    def __call__(self, x_i: jnp.ndarray, x_j: jnp.ndarray) -> jnp.ndarray:
        X_rel = SE3.from_coeffs(x_i).inverse() * SE3.from_coeffs(x_j)
        return self.information @ (X_rel - SE3.from_coeffs(self.x_ij))

    @classmethod
    def create(cls, x_ij, covariance, params: Optional[FactorParams] = None) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(x_ij, covariance, params), params)


@register_factor(
    constants.POSE_OFFSET_RESIDUAL_DIM,
    (constants.POSE_BLOCK_SIZE,),
)
@dataclass(frozen=True, eq=False)
class PoseOffsetFactor:
    """
    Extrinsic calibration from paired pose measurements.

        r = W (T_ref ⊟ (T ∘ T_off))

    T_off, the fixed transform between the two sensor frames, is the free
    parameter.
    """
    x_ref: jnp.ndarray
    x: jnp.ndarray
    covariance: InitVar[np.ndarray]
    params: InitVar[Optional[FactorParams]] = None
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, covariance, params):
        name = type(self).__name__
        object.__setattr__(self, "x_ref", as_pose(self.x_ref, f"{name}.x_ref"))
        object.__setattr__(self, "x", as_pose(self.x, f"{name}.x"))
        object.__setattr__(
            self,
            "information",
            information_matrix(covariance, constants.SE3_TANGENT_DIM, f"{name}.covariance", params),
        )

    def __call__(self, x_off: jnp.ndarray) -> jnp.ndarray:
        predicted = SE3.from_coeffs(self.x) * SE3.from_coeffs(x_off)
        return self.information @ (SE3.from_coeffs(self.x_ref) - predicted)

    @classmethod
    def create(cls, x_ref, x, covariance, params: Optional[FactorParams] = None) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(x_ref, x, covariance, params), params)
