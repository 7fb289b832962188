"""Scalar factors on pose translations: range and altitude."""

from __future__ import annotations

from dataclasses import InitVar, dataclass, field
from typing import Optional

from pose_factors.common import constants
from pose_factors.common.jax_init import jnp
from pose_factors.common.jax_utils import as_scalar
from pose_factors.common.param_models import FactorParams
from pose_factors.backend.cost_function import AutoDiffCostFunction, register_factor
from pose_factors.backend.information import information_scalar

_T = constants.POSE_TRANSLATION_SLICE


@register_factor(
    constants.RANGE_RESIDUAL_DIM,
    (constants.POSE_BLOCK_SIZE, constants.POSE_BLOCK_SIZE),
)
@dataclass(frozen=True, eq=False)
class RangeFactor:
    """
    Range between two poses (e.g. acoustic or UWB ranging).

        r = (r_ij - ||t_j - t_i||) / q_ij

    Only the translation part of each pose block is read.

    When t_i == t_j the distance evaluates to 0 but its derivative is
    undefined (Jacobian entries become NaN). This is a modeling error in the
    caller's graph and is not regularized here.
    """
    range_meas: jnp.ndarray
    variance: InitVar[float]
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, variance):
        name = type(self).__name__
        object.__setattr__(self, "range_meas", as_scalar(self.range_meas, f"{name}.range_meas"))
        object.__setattr__(self, "information", information_scalar(variance, f"{name}.variance"))

    def __call__(self, x_i: jnp.ndarray, x_j: jnp.ndarray) -> jnp.ndarray:
        d = x_j[_T] - x_i[_T]
        dist = jnp.sqrt(jnp.sum(d * d))
        return jnp.reshape(self.information * (self.range_meas - dist), (1,))

    @classmethod
    def create(cls, range_meas, variance, params: Optional[FactorParams] = None) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(range_meas, variance), params)


@register_factor(
    constants.ALTITUDE_RESIDUAL_DIM,
    (constants.POSE_BLOCK_SIZE,),
)
@dataclass(frozen=True, eq=False)
class AltitudeFactor:
    """Altitude/depth measurement of the z coordinate: r = (h - t_z) / q."""
    altitude: jnp.ndarray
    variance: InitVar[float]
    information: jnp.ndarray = field(init=False)

    def __post_init__(self, variance):
        name = type(self).__name__
        object.__setattr__(self, "altitude", as_scalar(self.altitude, f"{name}.altitude"))
        object.__setattr__(self, "information", information_scalar(variance, f"{name}.variance"))

    def __call__(self, x: jnp.ndarray) -> jnp.ndarray:
        h_hat = x[constants.POSE_ALTITUDE_INDEX]
        return jnp.reshape(self.information * (self.altitude - h_hat), (1,))

    @classmethod
    def create(cls, altitude, variance, params: Optional[FactorParams] = None) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(altitude, variance), params)
