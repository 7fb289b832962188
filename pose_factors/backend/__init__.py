"""
pose_factors backend.

Structure:
- information.py: covariance validation and inversion (once per factor)
- cost_function.py: AutoDiffCostFunction, factor registration
- factors/: the residual factor catalog
- gradient_check.py: AD vs. finite-difference Jacobian comparison
"""

# Lazy imports to avoid circular dependencies
__all__ = [
    "AutoDiffCostFunction",
    "SingularCovarianceError",
]


def __getattr__(name):
    if name == "AutoDiffCostFunction":
        from pose_factors.backend.cost_function import AutoDiffCostFunction
        return AutoDiffCostFunction
    elif name == "SingularCovarianceError":
        from pose_factors.backend.information import SingularCovarianceError
        return SingularCovarianceError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
