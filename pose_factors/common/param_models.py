"""Pydantic parameter models for pose_factors."""

from __future__ import annotations

import os
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pose_factors.common import constants

# Key under which factor parameters may be nested in a larger YAML file
FACTOR_PARAMS_KEY = "factor_params"


class FactorParams(BaseModel):
    """Construction and evaluation settings shared by every factor kind."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_condition_number: float = Field(constants.COVARIANCE_MAX_CONDITION_DEFAULT, gt=1.0)
    condition_warn_threshold: float = Field(constants.COVARIANCE_WARN_CONDITION_DEFAULT, gt=1.0)
    symmetry_tolerance: float = Field(constants.COVARIANCE_SYMMETRY_TOLERANCE_DEFAULT, ge=0.0)
    jit: bool = True

    @model_validator(mode="after")
    def _warn_below_max(self) -> "FactorParams":
        if self.condition_warn_threshold > self.max_condition_number:
            raise ValueError(
                "condition_warn_threshold must not exceed max_condition_number "
                f"({self.condition_warn_threshold:.3e} > {self.max_condition_number:.3e})"
            )
        return self


class PinholeIntrinsics(BaseModel):
    """Fixed pinhole camera intrinsics (pixels)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fx: float = Field(..., gt=0.0)
    fy: float = Field(..., gt=0.0)
    cx: float
    cy: float


DEFAULT_FACTOR_PARAMS = FactorParams()


def resolve_params(params: FactorParams | None) -> FactorParams:
    """Return ``params`` or the library defaults."""
    return DEFAULT_FACTOR_PARAMS if params is None else params


def _load_yaml_file(path: str) -> Dict[str, Any]:
    import yaml

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def load_factor_params(path: str) -> FactorParams:
    """
    Load FactorParams from a YAML file.

    The parameters may sit at the top level of the file or under a
    ``factor_params`` key, so they can share a file with other settings:

        factor_params:
          max_condition_number: 1.0e10
          jit: false
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"factor params file not found: {path}")
    data = _load_yaml_file(path)
    if FACTOR_PARAMS_KEY in data:
        data = data[FACTOR_PARAMS_KEY] or {}
    return FactorParams(**data)
