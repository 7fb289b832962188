"""
Gradient checking for cost functions.

Compares the forward-mode AD Jacobians of an AutoDiffCostFunction with
central finite differences taken directly on the flat coefficient buffers.
Perturbations are applied per coefficient, so orientation blocks leave the
unit sphere by O(step); both Jacobians differentiate the same ambient
function, so they still agree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from pose_factors.common import constants
from pose_factors.backend.cost_function import AutoDiffCostFunction

_logger = logging.getLogger(__name__)


@dataclass
class GradientCheckResult:
    """Outcome of check_jacobians."""
    ok: bool
    max_relative_error: float
    relative_errors: List[float] = field(default_factory=list)
    analytic: List[np.ndarray] = field(default_factory=list)
    numeric: List[np.ndarray] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "max_relative_error": self.max_relative_error,
            "relative_errors": list(self.relative_errors),
        }


def numeric_jacobians(
    cost: AutoDiffCostFunction,
    blocks: Sequence[np.ndarray],
    step: float = constants.GRADIENT_CHECK_STEP_DEFAULT,
) -> List[np.ndarray]:
    """Central-difference Jacobians, one (num_residuals, block_size) array per block."""
    base = [np.array(b, dtype=float).reshape(-1) for b in blocks]
    jacobians = []
    for k, size in enumerate(cost.parameter_block_sizes):
        J = np.zeros((cost.num_residuals, size))
        for i in range(size):
            plus = [b.copy() for b in base]
            minus = [b.copy() for b in base]
            h = step * max(1.0, abs(base[k][i]))
            plus[k][i] += h
            minus[k][i] -= h
            J[:, i] = (cost.residual(*plus) - cost.residual(*minus)) / (2.0 * h)
        jacobians.append(J)
    return jacobians


def check_jacobians(
    cost: AutoDiffCostFunction,
    blocks: Sequence[np.ndarray],
    relative_tolerance: float = constants.GRADIENT_CHECK_RELATIVE_TOLERANCE_DEFAULT,
    step: float = constants.GRADIENT_CHECK_STEP_DEFAULT,
) -> GradientCheckResult:
    """
    Compare AD and finite-difference Jacobians.

    The error of each block is ||J_ad - J_fd||_max / max(1, ||J_fd||_max).
    """
    analytic = cost.jacobians(*blocks)
    numeric = numeric_jacobians(cost, blocks, step=step)

    errors = []
    for J_ad, J_fd in zip(analytic, numeric):
        scale = max(1.0, float(np.max(np.abs(J_fd))))
        errors.append(float(np.max(np.abs(J_ad - J_fd))) / scale)

    max_err = max(errors) if errors else 0.0
    ok = bool(np.isfinite(max_err) and max_err <= relative_tolerance)
    if not ok:
        _logger.warning(
            "%s: Jacobian check failed (max relative error %.3e > %.3e)",
            type(cost.functor).__name__, max_err, relative_tolerance,
        )
    return GradientCheckResult(
        ok=ok,
        max_relative_error=max_err,
        relative_errors=errors,
        analytic=analytic,
        numeric=numeric,
    )
