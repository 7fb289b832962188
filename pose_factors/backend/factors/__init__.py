"""
Residual factor catalog.

| Factor                  | Blocks  | Residual |
|-------------------------|---------|----------|
| OrientationFactor       | 4       | 3        |
| RelativePoseFactor      | 7, 7    | 6        |
| RangeFactor             | 7, 7    | 1        |
| AltitudeFactor          | 7       | 1        |
| TimeSyncAttitudeFactor  | 1       | 3        |
| OrientationOffsetFactor | 4       | 3        |
| PoseOffsetFactor        | 7       | 6        |
| PoseReprojectionFactor  | 7       | 2        |
"""

from __future__ import annotations

from pose_factors.backend.cost_function import FACTOR_REGISTRY, AutoDiffCostFunction
from pose_factors.backend.factors.orientation import (
    OrientationFactor,
    OrientationOffsetFactor,
    TimeSyncAttitudeFactor,
)
from pose_factors.backend.factors.pose import PoseOffsetFactor, RelativePoseFactor
from pose_factors.backend.factors.reprojection import PoseReprojectionFactor
from pose_factors.backend.factors.scalar import AltitudeFactor, RangeFactor


def make_cost_function(kind: str, *args, **kwargs) -> AutoDiffCostFunction:
    """
    Build a cost function by factor class name.

        cost = make_cost_function("RangeFactor", 5.0, 0.01)
    """
    cls = FACTOR_REGISTRY.get(kind)
    if cls is None:
        raise KeyError(f"unknown factor kind {kind!r}; known: {sorted(FACTOR_REGISTRY)}")
    return cls.create(*args, **kwargs)


__all__ = [
    "OrientationFactor",
    "RelativePoseFactor",
    "RangeFactor",
    "AltitudeFactor",
    "TimeSyncAttitudeFactor",
    "OrientationOffsetFactor",
    "PoseOffsetFactor",
    "PoseReprojectionFactor",
    "make_cost_function",
]
