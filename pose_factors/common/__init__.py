"""
Common package for pose_factors.

Shared runtime setup, constants, parameter models and manifold geometry.

Subpackages:
- geometry/: SO(3) and SE(3) elements over JAX arrays
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "FactorParams",
    "PinholeIntrinsics",
    "constants",
]

_LAZY_ATTRS: dict[str, tuple[str, str | None]] = {
    "FactorParams": ("pose_factors.common.param_models", "FactorParams"),
    "PinholeIntrinsics": ("pose_factors.common.param_models", "PinholeIntrinsics"),
    # Expose as a submodule, but do not eagerly import it at package import time.
    "constants": ("pose_factors.common.constants", None),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = import_module(module_name)
    return module if attr_name is None else getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
