from setuptools import find_packages, setup

package_name = "pose_factors"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test"]),
    install_requires=["setuptools", "numpy", "scipy", "jax", "pyyaml", "pydantic>=2"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    description="Automatic-differentiation residual factors for pose-graph and calibration least squares",
    license="Apache-2.0",
    tests_require=["pytest"],
    python_requires=">=3.9",
)
