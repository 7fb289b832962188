"""
Automatic-differentiation cost functions for residual factors.

A factor is a frozen dataclass whose ``__call__`` maps one coefficient
buffer per parameter block to a residual vector, written against
``jax.numpy`` only. ``AutoDiffCostFunction`` wraps such a factor for an
external least-squares solver:

- declares the residual dimension and the coefficient-buffer size of every
  parameter block (the solver sizes its Jacobian storage from these);
- evaluates the residual on plain float64 values;
- evaluates the Jacobian by running the very same residual code on JVP
  tracers (forward-mode AD via jax.jacfwd).

Factors are registered as JAX pytrees, so the compiled residual/Jacobian
functions are shared by every instance of a factor kind: measurement data
flows in as traced arguments instead of being baked into one compilation
per factor.

Thread safety: a cost function holds only its immutable factor and shared
compiled callables. ``evaluate`` reads the caller's parameter buffers,
writes only into the caller's output buffers and keeps no reference to
either after returning.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from pose_factors.common.jax_init import jax
from pose_factors.common.jax_utils import to_jax, to_numpy
from pose_factors.common.param_models import FactorParams, resolve_params

_logger = logging.getLogger(__name__)

# Factor kind name -> factor class, filled by @register_factor
FACTOR_REGISTRY: Dict[str, type] = {}


def register_factor(residual_dim: int, parameter_block_sizes: Sequence[int]) -> Callable[[type], type]:
    """
    Class decorator declaring a factor kind's static metadata.

    - sets RESIDUAL_DIM and PARAMETER_BLOCK_SIZES on the class
    - registers the class as a JAX pytree whose leaves are its dataclass
      fields (construction-only InitVars are not stored)
    - adds the class to FACTOR_REGISTRY under its class name
    """
    sizes = tuple(int(s) for s in parameter_block_sizes)
    if not sizes or any(s <= 0 for s in sizes):
        raise ValueError(f"register_factor: invalid parameter block sizes {sizes}")

    def wrap(cls: type) -> type:
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"register_factor: {cls.__name__} must be a dataclass")
        names = tuple(f.name for f in dataclasses.fields(cls))

        def flatten(obj):
            return tuple(getattr(obj, n) for n in names), None

        def unflatten(_aux, children):
            # Bypass __init__: children are already-prepared arrays or tracers.
            obj = object.__new__(cls)
            for n, child in zip(names, children):
                object.__setattr__(obj, n, child)
            return obj

        jax.tree_util.register_pytree_node(cls, flatten, unflatten)
        cls.RESIDUAL_DIM = int(residual_dim)
        cls.PARAMETER_BLOCK_SIZES = sizes
        FACTOR_REGISTRY[cls.__name__] = cls
        return cls

    return wrap


@functools.lru_cache(maxsize=None)
def _compiled(num_blocks: int, use_jit: bool) -> Tuple[Callable, Callable]:
    """Residual and (Jacobians, residual) callables for a given block count."""

    def residual_fn(functor, *blocks):
        return functor(*blocks)

    def residual_with_aux(functor, *blocks):
        r = functor(*blocks)
        return r, r

    jacobian_fn = jax.jacfwd(
        residual_with_aux,
        argnums=tuple(range(1, num_blocks + 1)),
        has_aux=True,
    )
    if use_jit:
        return jax.jit(residual_fn), jax.jit(jacobian_fn)
    return residual_fn, jacobian_fn


def _write(out: np.ndarray, value: np.ndarray, name: str) -> None:
    """Copy ``value`` into a caller-owned buffer (flat row-major or matching shape)."""
    if not isinstance(out, np.ndarray):
        raise TypeError(f"{name}: output buffer must be a numpy.ndarray, got {type(out).__name__}")
    if out.shape != value.shape and out.shape != (value.size,):
        raise ValueError(
            f"{name}: output buffer has shape {out.shape}, expected {value.shape} or ({value.size},)"
        )
    out[...] = value.reshape(out.shape)


class AutoDiffCostFunction:
    """
    Cost object handed to an external solver.

    Args:
        functor: a factor instance decorated with @register_factor
        params: FactorParams (only ``jit`` is used here)
    """

    def __init__(self, functor, params: Optional[FactorParams] = None):
        cls = type(functor)
        if FACTOR_REGISTRY.get(cls.__name__) is not cls:
            raise TypeError(f"AutoDiffCostFunction: {cls.__name__} is not a registered factor")
        params = resolve_params(params)

        self._functor = functor
        self._num_residuals: int = cls.RESIDUAL_DIM
        self._block_sizes: Tuple[int, ...] = cls.PARAMETER_BLOCK_SIZES
        self._residual_fn, self._jacobian_fn = _compiled(len(self._block_sizes), params.jit)

        _logger.debug(
            "Created cost function %s (residuals=%d, blocks=%s, jit=%s)",
            cls.__name__, self._num_residuals, self._block_sizes, params.jit,
        )

    @property
    def functor(self):
        return self._functor

    @property
    def num_residuals(self) -> int:
        return self._num_residuals

    @property
    def parameter_block_sizes(self) -> Tuple[int, ...]:
        return self._block_sizes

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _check_parameters(self, parameters: Sequence) -> List:
        if len(parameters) != len(self._block_sizes):
            raise ValueError(
                f"{type(self._functor).__name__}: expected {len(self._block_sizes)} "
                f"parameter blocks, got {len(parameters)}"
            )
        blocks = []
        for k, (block, size) in enumerate(zip(parameters, self._block_sizes)):
            arr = np.asarray(block, dtype=float).reshape(-1)
            if arr.shape[0] != size:
                raise ValueError(
                    f"{type(self._functor).__name__}: parameter block {k} has "
                    f"{arr.shape[0]} coefficients, expected {size}"
                )
            blocks.append(to_jax(arr))
        return blocks

    def _check_residual(self, r: np.ndarray) -> np.ndarray:
        if r.shape != (self._num_residuals,):
            raise ValueError(
                f"{type(self._functor).__name__}: residual has shape {r.shape}, "
                f"declared ({self._num_residuals},)"
            )
        return r

    def evaluate(
        self,
        parameters: Sequence,
        residuals: Optional[np.ndarray] = None,
        jacobians: Optional[Sequence[Optional[np.ndarray]]] = None,
    ) -> bool:
        """
        Evaluate residuals and, optionally, Jacobians into caller buffers.

        Args:
            parameters: one coefficient buffer per parameter block
            residuals: writable buffer of num_residuals entries, or None
            jacobians: None, or one entry per block: a writable buffer of
                num_residuals * block_size entries (row-major), or None to
                skip that block

        Returns:
            True. None of the factors has a validity precondition that
            should abort a solver step; degenerate inputs surface as
            non-finite values instead.
        """
        blocks = self._check_parameters(parameters)
        want_jacobians = jacobians is not None and any(j is not None for j in jacobians)

        if want_jacobians:
            if len(jacobians) != len(self._block_sizes):
                raise ValueError(
                    f"{type(self._functor).__name__}: expected {len(self._block_sizes)} "
                    f"jacobian entries, got {len(jacobians)}"
                )
            J_blocks, r = self._jacobian_fn(self._functor, *blocks)
        else:
            r = self._residual_fn(self._functor, *blocks)

        r = self._check_residual(to_numpy(r))
        if residuals is not None:
            _write(residuals, r, "residuals")

        if want_jacobians:
            for k, (out, J) in enumerate(zip(jacobians, J_blocks)):
                if out is not None:
                    _write(out, to_numpy(J), f"jacobians[{k}]")
        return True

    def residual(self, *blocks) -> np.ndarray:
        """Residual vector for the given parameter blocks."""
        r = np.empty(self._num_residuals)
        self.evaluate(blocks, residuals=r)
        return r

    def jacobians(self, *blocks) -> List[np.ndarray]:
        """Per-block Jacobians, each (num_residuals, block_size)."""
        J = [np.empty((self._num_residuals, size)) for size in self._block_sizes]
        self.evaluate(blocks, jacobians=J)
        return J

    def to_dict(self) -> dict:
        return {
            "kind": type(self._functor).__name__,
            "num_residuals": self._num_residuals,
            "parameter_block_sizes": list(self._block_sizes),
        }

    def __repr__(self) -> str:
        return (
            f"AutoDiffCostFunction({type(self._functor).__name__}, "
            f"num_residuals={self._num_residuals}, "
            f"parameter_block_sizes={self._block_sizes})"
        )
