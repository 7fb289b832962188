"""
Orientation factors on SO(3).

- OrientationFactor: absolute attitude measurement
- TimeSyncAttitudeFactor: time offset between two attitude streams
- OrientationOffsetFactor: fixed rotation between two attitude frames

Residuals are 3D rotation-vector differences weighted by a 3x3 information
matrix. Orientation parameter blocks are [qw, qx, qy, qz] and are assumed
unit-normalized by the solver's manifold update; they are not renormalized
here.
"""

from __future__ import annotations

from dataclasses import InitVar, dataclass, field
from typing import Optional

import numpy as np

from pose_factors.common import constants
from pose_factors.common.geometry import SO3
from pose_factors.common.jax_init import jnp
from pose_factors.common.jax_utils import as_quaternion, as_vector
from pose_factors.common.param_models import FactorParams
from pose_factors.backend.cost_function import AutoDiffCostFunction, register_factor
from pose_factors.backend.information import information_matrix


@register_factor(
    constants.ORIENTATION_RESIDUAL_DIM,
    (constants.ORIENTATION_BLOCK_SIZE,),
)
@dataclass(frozen=True, eq=False)
class OrientationFactor:
    """
    Weighted difference between a measured and an estimated orientation.

        r = W (q_meas ⊟ q_hat),   W = Q⁻¹ (3x3)

    Args:
        q_meas: measured orientation [qw, qx, qy, qz]
        covariance: 3x3 covariance of the measurement in the tangent space
        params: optional FactorParams for covariance validation
    """
    q_meas: jnp.ndarray
    covariance: InitVar[np.ndarray]
    params: InitVar[Optional[FactorParams]] = None
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, covariance, params):
        name = type(self).__name__
        object.__setattr__(self, "q_meas", as_quaternion(self.q_meas, f"{name}.q_meas"))
        object.__setattr__(
            self,
            "information",
            information_matrix(covariance, constants.SO3_TANGENT_DIM, f"{name}.covariance", params),
        )

    def __call__(self, q_hat: jnp.ndarray) -> jnp.ndarray:
        error = SO3(self.q_meas) - SO3.from_coeffs(q_hat)
        return self.information @ error

    @classmethod
    def create(cls, q_meas, covariance, params: Optional[FactorParams] = None) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(q_meas, covariance, params), params)


@register_factor(
    constants.TIME_SYNC_RESIDUAL_DIM,
    (constants.SCALAR_BLOCK_SIZE,),
)
@dataclass(frozen=True, eq=False)
class TimeSyncAttitudeFactor:
    """
    Time-offset estimation between a reference and a delayed attitude stream.

    The attitude q, sampled dt too early, is propagated to first order with
    its angular rate ω:

        r = W (q_ref ⊟ (q ⊞ dt·ω))

    where dt (seconds) is the single free parameter.

    Args:
        q_ref: reference orientation [qw, qx, qy, qz]
        q: orientation of the stream being synchronized
        omega: angular rate of that stream (rad/s, body frame)
        covariance: 3x3 covariance of the attitude difference
    """
    q_ref: jnp.ndarray
    q: jnp.ndarray
    omega: jnp.ndarray
    covariance: InitVar[np.ndarray]
    params: InitVar[Optional[FactorParams]] = None
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, covariance, params):
        name = type(self).__name__
        object.__setattr__(self, "q_ref", as_quaternion(self.q_ref, f"{name}.q_ref"))
        object.__setattr__(self, "q", as_quaternion(self.q, f"{name}.q"))
        object.__setattr__(self, "omega", as_vector(self.omega, 3, f"{name}.omega"))
        object.__setattr__(
            self,
            "information",
            information_matrix(covariance, constants.SO3_TANGENT_DIM, f"{name}.covariance", params),
        )

    def __call__(self, dt_hat: jnp.ndarray) -> jnp.ndarray:
        propagated = SO3(self.q) + dt_hat[0] * self.omega
        return self.information @ (SO3(self.q_ref) - propagated)

    @classmethod
    def create(
        cls, q_ref, q, omega, covariance, params: Optional[FactorParams] = None
    ) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(q_ref, q, omega, covariance, params), params)


@register_factor(
    constants.ORIENTATION_OFFSET_RESIDUAL_DIM,
    (constants.ORIENTATION_BLOCK_SIZE,),
)
@dataclass(frozen=True, eq=False)
class OrientationOffsetFactor:
    """
    Rotation offset calibration: r = W (q_ref ⊟ (q ∘ q_off)).

    One factor per synchronized pair of attitude samples; the offset q_off
    is the free parameter shared by all of them.
    """
    q_ref: jnp.ndarray
    q: jnp.ndarray
    covariance: InitVar[np.ndarray]
    params: InitVar[Optional[FactorParams]] = None
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, covariance, params):
        name = type(self).__name__
        object.__setattr__(self, "q_ref", as_quaternion(self.q_ref, f"{name}.q_ref"))
        object.__setattr__(self, "q", as_quaternion(self.q, f"{name}.q"))
        object.__setattr__(
            self,
            "information",
            information_matrix(covariance, constants.SO3_TANGENT_DIM, f"{name}.covariance", params),
        )

    def __call__(self, q_off: jnp.ndarray) -> jnp.ndarray:
        predicted = SO3(self.q) * SO3.from_coeffs(q_off)
        return self.information @ (SO3(self.q_ref) - predicted)

    @classmethod
    def create(cls, q_ref, q, covariance, params: Optional[FactorParams] = None) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(q_ref, q, covariance, params), params)
