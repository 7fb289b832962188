"""
Tests for covariance validation and inversion.

Every factor inverts its covariance once at construction; these tests pin
down which covariances are rejected and that accepted ones invert exactly.
"""

import logging

import numpy as np
import pytest

from pose_factors.backend.information import (
    SingularCovarianceError,
    covariance_conditioning,
    information_matrix,
    information_scalar,
)
from pose_factors.common.param_models import FactorParams

from conftest import random_spd


class TestInformationMatrix:
    """Tests for information_matrix."""

    def test_inverts_spd_exactly(self, rng):
        C = random_spd(rng, 6)
        W = np.asarray(information_matrix(C, 6, "test.covariance"))
        assert np.allclose(W @ C, np.eye(6), atol=1e-10)
        assert np.allclose(W, W.T)

    def test_diagonal(self):
        W = information_matrix(np.diag([0.01, 0.04, 0.25]), 3, "test.covariance")
        assert np.allclose(W, np.diag([100.0, 25.0, 4.0]))

    def test_scalar_covariance_for_dim_one(self):
        W = information_matrix(0.5, 1, "test.covariance")
        assert np.allclose(W, [[2.0]])

    def test_wrong_shape_is_plain_value_error(self):
        with pytest.raises(ValueError) as excinfo:
            information_matrix(np.eye(3), 6, "test.covariance")
        assert not isinstance(excinfo.value, SingularCovarianceError)
        assert "test.covariance" in str(excinfo.value)

    def test_singular_rejected(self):
        with pytest.raises(SingularCovarianceError):
            information_matrix(np.diag([1.0, 1.0, 0.0]), 3, "test.covariance")

    def test_indefinite_rejected(self):
        with pytest.raises(SingularCovarianceError, match="positive definite"):
            information_matrix(np.diag([1.0, -1.0, 1.0]), 3, "test.covariance")

    def test_asymmetric_rejected(self):
        C = np.array([[1.0, 0.5], [0.0, 1.0]])
        with pytest.raises(SingularCovarianceError, match="symmetric"):
            information_matrix(C, 2, "test.covariance")

    def test_non_finite_rejected(self):
        C = np.eye(3)
        C[1, 1] = np.nan
        with pytest.raises(SingularCovarianceError, match="non-finite"):
            information_matrix(C, 3, "test.covariance")

    def test_zero_rejected(self):
        with pytest.raises(SingularCovarianceError):
            information_matrix(np.zeros((3, 3)), 3, "test.covariance")

    def test_ill_conditioned_rejected(self):
        with pytest.raises(SingularCovarianceError, match="numerically singular"):
            information_matrix(np.diag([1.0, 1e-13, 1.0]), 3, "test.covariance")

    def test_poor_conditioning_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pose_factors.backend.information"):
            W = information_matrix(np.diag([1.0, 1e-9, 1.0]), 3, "test.covariance")
        assert np.isclose(W[1, 1], 1e9)
        assert any("poorly conditioned" in r.getMessage() for r in caplog.records)

    def test_params_tighten_condition_limit(self):
        params = FactorParams(max_condition_number=1e6, condition_warn_threshold=1e5)
        C = np.diag([1.0, 1e-7, 1.0])
        information_matrix(C, 3, "test.covariance")
        with pytest.raises(SingularCovarianceError):
            information_matrix(C, 3, "test.covariance", params)

    def test_is_value_error(self):
        assert issubclass(SingularCovarianceError, ValueError)


class TestInformationScalar:
    """Tests for information_scalar."""

    def test_inverse(self):
        assert np.isclose(information_scalar(0.25, "test.variance"), 4.0)

    @pytest.mark.parametrize("variance", [0.0, -1.0, np.inf, np.nan])
    def test_invalid_variance_rejected(self, variance):
        with pytest.raises(SingularCovarianceError, match="test.variance"):
            information_scalar(variance, "test.variance")

    def test_inverse_overflow_rejected(self):
        with pytest.raises(SingularCovarianceError):
            information_scalar(1e-320, "test.variance")

    def test_vector_rejected(self):
        with pytest.raises(ValueError):
            information_scalar([1.0, 2.0], "test.variance")


class TestConditioning:
    """Tests for covariance_conditioning."""

    def test_diagonal(self):
        info = covariance_conditioning(np.diag([2.0, 0.5, 1.0]))
        assert np.isclose(info.eig_min, 0.5)
        assert np.isclose(info.eig_max, 2.0)
        assert np.isclose(info.cond, 4.0)
        assert set(info.to_dict()) == {"eig_min", "eig_max", "cond"}

    def test_singular_has_infinite_condition(self):
        assert covariance_conditioning(np.diag([1.0, 0.0])).cond == float("inf")
