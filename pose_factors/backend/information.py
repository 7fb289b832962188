"""
Information-matrix preparation.

Every factor inverts its measurement covariance exactly once, at
construction, and keeps the inverse for all later evaluations. Inversion is
strict: the covariance must be symmetric positive definite and reasonably
conditioned. There is no pseudo-inverse or regularization fallback; a bad
covariance fails here instead of producing NaN/Inf residuals later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pose_factors.common.jax_init import jnp
from pose_factors.common.jax_utils import to_jax
from pose_factors.common.param_models import FactorParams, resolve_params

_logger = logging.getLogger(__name__)


class SingularCovarianceError(ValueError):
    """Raised when a covariance cannot be turned into an information matrix."""


@dataclass(frozen=True)
class ConditioningInfo:
    """Eigenvalue conditioning of a covariance matrix."""
    eig_min: float
    eig_max: float
    cond: float

    def to_dict(self) -> dict:
        return {
            "eig_min": self.eig_min,
            "eig_max": self.eig_max,
            "cond": self.cond,
        }


def covariance_conditioning(covariance: np.ndarray) -> ConditioningInfo:
    """Eigenvalue diagnostics of the symmetric part of ``covariance``."""
    C = np.asarray(covariance, dtype=float)
    eigvals = np.linalg.eigvalsh(0.5 * (C + C.T))
    eig_min = float(eigvals[0])
    eig_max = float(eigvals[-1])
    cond = eig_max / eig_min if eig_min > 0.0 else float("inf")
    return ConditioningInfo(eig_min=eig_min, eig_max=eig_max, cond=cond)


def _check_covariance(C: np.ndarray, dim: int, name: str, params: FactorParams) -> ConditioningInfo:
    if C.shape != (dim, dim):
        raise ValueError(f"{name}: expected ({dim}, {dim}) covariance, got {C.shape}")
    if not np.all(np.isfinite(C)):
        raise SingularCovarianceError(f"{name}: covariance contains non-finite values")

    scale = float(np.max(np.abs(C)))
    if scale == 0.0:
        raise SingularCovarianceError(f"{name}: covariance is identically zero")
    asym = float(np.max(np.abs(C - C.T)))
    if asym > params.symmetry_tolerance * scale:
        raise SingularCovarianceError(
            f"{name}: covariance is not symmetric (max|C - C^T| = {asym:.3e})"
        )

    info = covariance_conditioning(C)
    if info.eig_min <= 0.0:
        raise SingularCovarianceError(
            f"{name}: covariance is not positive definite (eig_min = {info.eig_min:.3e})"
        )
    if info.cond > params.max_condition_number:
        raise SingularCovarianceError(
            f"{name}: covariance is numerically singular "
            f"(cond = {info.cond:.3e} > {params.max_condition_number:.3e})"
        )
    if info.cond > params.condition_warn_threshold:
        _logger.warning("%s: poorly conditioned covariance (cond = %.3e)", name, info.cond)
    return info


def information_matrix(
    covariance: np.ndarray,
    dim: int,
    name: str,
    params: FactorParams | None = None,
) -> jnp.ndarray:
    """
    Invert a (dim, dim) SPD covariance into an information matrix.

    The inverse is formed from the Cholesky factor C = L Lᵀ as
    C⁻¹ = L⁻ᵀ L⁻¹ and symmetrized against round-off.

    Raises:
        ValueError: wrong shape
        SingularCovarianceError: non-finite, asymmetric, not positive
            definite, or condition number above params.max_condition_number
    """
    params = resolve_params(params)
    C = np.asarray(covariance, dtype=float)
    if C.ndim == 0 and dim == 1:
        C = C.reshape(1, 1)
    info = _check_covariance(C, dim, name, params)

    try:
        Lc = np.linalg.cholesky(C)
    except np.linalg.LinAlgError as exc:
        raise SingularCovarianceError(f"{name}: Cholesky factorization failed ({exc})") from exc
    Lc_inv = np.linalg.solve(Lc, np.eye(dim))
    W = Lc_inv.T @ Lc_inv
    W = 0.5 * (W + W.T)

    _logger.debug("%s: information matrix prepared (cond = %.3e)", name, info.cond)
    return to_jax(W)


def information_scalar(variance: float, name: str) -> jnp.ndarray:
    """
    Invert a scalar variance.

    Raises SingularCovarianceError unless the variance is finite and > 0.
    """
    var = np.asarray(variance, dtype=float).reshape(-1)
    if var.shape[0] != 1:
        raise ValueError(f"{name}: expected a scalar variance, got {var.shape[0]} values")
    v = float(var[0])
    if not np.isfinite(v) or v <= 0.0:
        raise SingularCovarianceError(f"{name}: variance must be finite and > 0, got {v}")
    inv = 1.0 / v
    if not np.isfinite(inv):
        raise SingularCovarianceError(f"{name}: variance {v} has no finite inverse")
    _logger.debug("%s: scalar information prepared (variance = %.3e)", name, v)
    return to_jax(inv)
