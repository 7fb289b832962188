"""
Tests for the pydantic parameter models and YAML loading.
"""

import numpy as np
import pytest
from pydantic import ValidationError

from pose_factors.common import constants
from pose_factors.common.param_models import (
    DEFAULT_FACTOR_PARAMS,
    FactorParams,
    PinholeIntrinsics,
    load_factor_params,
    resolve_params,
)


class TestFactorParams:
    """Tests for FactorParams validation."""

    def test_defaults(self):
        params = FactorParams()
        assert params.max_condition_number == constants.COVARIANCE_MAX_CONDITION_DEFAULT
        assert params.condition_warn_threshold == constants.COVARIANCE_WARN_CONDITION_DEFAULT
        assert params.symmetry_tolerance == constants.COVARIANCE_SYMMETRY_TOLERANCE_DEFAULT
        assert params.jit is True

    def test_resolve_none_gives_defaults(self):
        assert resolve_params(None) is DEFAULT_FACTOR_PARAMS
        custom = FactorParams(jit=False)
        assert resolve_params(custom) is custom

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            FactorParams(max_condition=1e6)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_condition_number": 1.0},
            {"condition_warn_threshold": 0.5},
            {"symmetry_tolerance": -1e-9},
            {"max_condition_number": 1e6, "condition_warn_threshold": 1e7},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            FactorParams(**kwargs)

    def test_frozen(self):
        params = FactorParams()
        with pytest.raises(ValidationError):
            params.jit = False


class TestPinholeIntrinsics:
    """Tests for PinholeIntrinsics validation."""

    def test_valid(self):
        K = PinholeIntrinsics(fx=500.0, fy=500.0, cx=320.0, cy=240.0)
        assert K.cx == 320.0

    @pytest.mark.parametrize("fx, fy", [(0.0, 500.0), (500.0, -1.0)])
    def test_non_positive_focal_length_rejected(self, fx, fy):
        with pytest.raises(ValidationError):
            PinholeIntrinsics(fx=fx, fy=fy, cx=320.0, cy=240.0)


class TestLoadFactorParams:
    """Tests for load_factor_params."""

    def test_flat_file(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("max_condition_number: 1.0e10\njit: false\n")
        params = load_factor_params(str(path))
        assert params.max_condition_number == pytest.approx(1e10)
        assert params.jit is False

    def test_nested_file(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text(
            "other_settings:\n"
            "  foo: 1\n"
            "factor_params:\n"
            "  symmetry_tolerance: 1.0e-6\n"
        )
        params = load_factor_params(str(path))
        assert params.symmetry_tolerance == pytest.approx(1e-6)
        assert params.max_condition_number == constants.COVARIANCE_MAX_CONDITION_DEFAULT

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("")
        assert load_factor_params(str(path)) == FactorParams()

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("max_condition_number: 1.0e10\nbogus: 3\n")
        with pytest.raises(ValidationError):
            load_factor_params(str(path))

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_factor_params(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_factor_params(str(tmp_path / "missing.yaml"))

    def test_loaded_params_reach_factors(self, tmp_path, identity_quat):
        from pose_factors.backend.factors import OrientationFactor

        path = tmp_path / "params.yaml"
        path.write_text("factor_params:\n  max_condition_number: 1.0e3\n  condition_warn_threshold: 1.0e2\n")
        params = load_factor_params(str(path))
        with pytest.raises(ValueError):
            OrientationFactor(identity_quat, np.diag([1.0, 1.0, 1e-4]), params)
