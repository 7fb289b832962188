"""
Common JAX Initialization Module.

This module initializes JAX once at import time.
All other modules should import JAX from here instead of importing jax directly
so that platform selection and x64 precision are configured before first use.

Usage:
    from pose_factors.common.jax_init import jax, jnp

    # JAX is already configured for float64 precision
    J = jax.jacfwd(fn)(x)

Environment:
    POSE_FACTORS_JAX_PLATFORMS: platform list handed to JAX_PLATFORMS
        (default "cpu"). Set to "cuda" to evaluate residuals on the GPU.
"""

from __future__ import annotations

import os

# Configure JAX environment variables BEFORE importing JAX.
# This must happen at module import time, before any JAX operations.
os.environ.setdefault("JAX_PLATFORMS", os.environ.get("POSE_FACTORS_JAX_PLATFORMS", "cpu"))
os.environ.setdefault("XLA_PYTHON_CLIENT_PREALLOCATE", "false")

import jax
import jax.numpy as jnp

# Residuals and finite-difference checks need double precision.
jax.config.update("jax_enable_x64", True)

__all__ = ["jax", "jnp"]
