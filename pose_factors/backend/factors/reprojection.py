"""Pinhole reprojection factor on a camera pose."""

from __future__ import annotations

from dataclasses import InitVar, dataclass, field
from typing import Optional

from pose_factors.common import constants
from pose_factors.common.geometry import SE3
from pose_factors.common.jax_init import jnp
from pose_factors.common.jax_utils import as_vector, to_jax
from pose_factors.common.param_models import FactorParams, PinholeIntrinsics
from pose_factors.backend.cost_function import AutoDiffCostFunction, register_factor


@register_factor(
    constants.REPROJECTION_RESIDUAL_DIM,
    (constants.POSE_BLOCK_SIZE,),
)
@dataclass(frozen=True, eq=False)
class PoseReprojectionFactor:
    """
    Reprojection error of a known world point observed by a camera.

        p_c = H⁻¹ · p_w
        r   = uv_obs - (fx x_c / z_c + cx, fy y_c / z_c + cy)

    H is the camera pose in the world frame (the free parameter). The
    intrinsics are treated as exact, so the residual is unweighted.

    Precondition: the point must lie in front of the camera (z_c > 0).
    Points at or behind the image plane give infinite or meaningless
    residuals; they are not filtered here.
    """
    fx: InitVar[float]
    fy: InitVar[float]
    cx: InitVar[float]
    cy: InitVar[float]
    img_coords: jnp.ndarray
    world_coords: jnp.ndarray
    intrinsics: jnp.ndarray = field(init=False)

    def __post_init__(self, fx, fy, cx, cy):
        name = type(self).__name__
        K = PinholeIntrinsics(fx=fx, fy=fy, cx=cx, cy=cy)
        object.__setattr__(self, "intrinsics", to_jax([K.fx, K.fy, K.cx, K.cy]))
        object.__setattr__(self, "img_coords", as_vector(self.img_coords, 2, f"{name}.img_coords"))
        object.__setattr__(self, "world_coords", as_vector(self.world_coords, 3, f"{name}.world_coords"))

    @classmethod
    def from_intrinsics(cls, intrinsics: PinholeIntrinsics, img_coords, world_coords) -> "PoseReprojectionFactor":
        return cls(intrinsics.fx, intrinsics.fy, intrinsics.cx, intrinsics.cy, img_coords, world_coords)

    def __call__(self, x_cam: jnp.ndarray) -> jnp.ndarray:
        fx, fy, cx, cy = self.intrinsics[0], self.intrinsics[1], self.intrinsics[2], self.intrinsics[3]
        p_c = SE3.from_coeffs(x_cam).inverse().act(self.world_coords)
        proj = jnp.stack([
            fx * p_c[0] / p_c[2] + cx,
            fy * p_c[1] / p_c[2] + cy,
        ])
        return self.img_coords - proj

    @classmethod
    def create(
        cls, fx, fy, cx, cy, img_coords, world_coords, params: Optional[FactorParams] = None
    ) -> AutoDiffCostFunction:
        return AutoDiffCostFunction(cls(fx, fy, cx, cy, img_coords, world_coords), params)
