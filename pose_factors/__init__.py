"""
pose_factors: residual factors for nonlinear least-squares pose estimation.

Each factor is an immutable callable written once against jax.numpy; it is
evaluated on plain float64 values for residuals and on forward-mode JVP
tracers for Jacobians. Factories wrap factors in AutoDiffCostFunction objects
that declare residual and parameter-block dimensions to an external solver.

Usage:
    from pose_factors import RangeFactor

    cost = RangeFactor.create(range_meas=5.0, variance=0.01)
    r = cost.residual(x_i, x_j)          # x_* are 7-coefficient pose blocks
    J_i, J_j = cost.jacobians(x_i, x_j)
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

_FACTORS = "pose_factors.backend.factors"

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    "AutoDiffCostFunction": ("pose_factors.backend.cost_function", "AutoDiffCostFunction"),
    "FACTOR_REGISTRY": ("pose_factors.backend.cost_function", "FACTOR_REGISTRY"),
    "SingularCovarianceError": ("pose_factors.backend.information", "SingularCovarianceError"),
    "FactorParams": ("pose_factors.common.param_models", "FactorParams"),
    "PinholeIntrinsics": ("pose_factors.common.param_models", "PinholeIntrinsics"),
    "load_factor_params": ("pose_factors.common.param_models", "load_factor_params"),
    "check_jacobians": ("pose_factors.backend.gradient_check", "check_jacobians"),
    "make_cost_function": (_FACTORS, "make_cost_function"),
    "OrientationFactor": (_FACTORS, "OrientationFactor"),
    "RelativePoseFactor": (_FACTORS, "RelativePoseFactor"),
    "RangeFactor": (_FACTORS, "RangeFactor"),
    "AltitudeFactor": (_FACTORS, "AltitudeFactor"),
    "TimeSyncAttitudeFactor": (_FACTORS, "TimeSyncAttitudeFactor"),
    "OrientationOffsetFactor": (_FACTORS, "OrientationOffsetFactor"),
    "PoseOffsetFactor": (_FACTORS, "PoseOffsetFactor"),
    "PoseReprojectionFactor": (_FACTORS, "PoseReprojectionFactor"),
}

__all__ = ["__version__", *_LAZY_ATTRS]


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
