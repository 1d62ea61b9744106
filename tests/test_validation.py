"""
Tests for validation rules.
"""

import pytest

from anglesetter.calculator import (
    Severity,
    compute_heights,
    compute_results_for_steps,
    run_calibration,
    validate_calibration,
    validate_geometry,
    validate_results,
)
from anglesetter.io import CalibrationDiagnostics, CalibrationReport, MachineConstants, Wheel
from anglesetter.session import new_step

from conftest import constants_with, make_rows


def _codes(result):
    return {m.code for m in result.messages}


def _report(max_residual=0.0, angle_error=None, hc=29.0, o=50.0, count=3):
    return CalibrationReport(
        base="rear",
        hc=hc,
        o=o,
        diagnostics=CalibrationDiagnostics(
            residuals=(max_residual,) + (0.0,) * (count - 1),
            max_abs_residual_mm=max_residual,
        ),
        angle_error_deg=angle_error,
        proposed_constants=MachineConstants(),
        count=count,
    )


class TestValidateGeometry:
    """Forward-solve inputs and outputs."""

    def test_reference_is_clean(self, reference_geometry):
        result = validate_geometry(reference_geometry, compute_heights(reference_geometry))
        assert result.valid is True
        assert result.messages == []

    def test_zero_wheel_diameter_error(self, reference_geometry):
        geometry = reference_geometry.model_copy(update={"wheel_diameter_mm": 0.0})
        result = validate_geometry(geometry)

        assert result.valid is False
        assert "WHEEL_DIAMETER_INVALID" in _codes(result)

    def test_negative_tool_diameter_error(self, reference_geometry):
        geometry = reference_geometry.model_copy(update={"tool_diameter_mm": -1.0})
        assert "TOOL_DIAMETER_INVALID" in _codes(validate_geometry(geometry))

    def test_short_projection_error(self, reference_geometry):
        geometry = reference_geometry.model_copy(update={"projection_mm": 5.0})
        assert "PROJECTION_TOO_SHORT" in _codes(validate_geometry(geometry))

    def test_jig_diameter_is_warning(self, reference_geometry):
        geometry = reference_geometry.model_copy(update={"jig_diameter_mm": 0.0})
        result = validate_geometry(geometry)

        assert result.valid is True
        assert [m.code for m in result.warnings] == ["JIG_DIAMETER_INVALID"]

    @pytest.mark.parametrize("beta", [0.0, -5.0, 90.0, 120.0])
    def test_angle_out_of_range(self, reference_geometry, beta):
        geometry = reference_geometry.model_copy(update={"beta_deg": beta})
        result = validate_geometry(geometry)
        assert "ANGLE_OUT_OF_RANGE" in {m.code for m in result.warnings}

    def test_non_finite_output(self, reference_geometry):
        geometry = reference_geometry.model_copy(update={"wheel_diameter_mm": float("nan")})
        result = validate_geometry(geometry, compute_heights(geometry))

        assert result.valid is False
        assert "NON_FINITE_RESULT" in _codes(result)

    def test_clamped_height_warning(self, reference_geometry):
        geometry = reference_geometry.model_copy(
            update={"constants": constants_with("rear", 29.0, 10000.0)}
        )
        result = validate_geometry(geometry, compute_heights(geometry))
        assert "HEIGHT_CLAMPED" in _codes(result)
        assert "HEIGHT_NEGATIVE" in _codes(result)

    def test_does_not_change_output(self, reference_geometry):
        output = compute_heights(reference_geometry)
        before = output.model_dump()
        validate_geometry(reference_geometry, output)
        assert output.model_dump() == before


class TestValidateCalibration:
    """Fit quality thresholds."""

    def test_good_fit(self):
        result = validate_calibration(_report(max_residual=0.02, angle_error=0.01))
        assert result.valid is True
        assert result.messages == []

    def test_elevated_residual_warning(self):
        result = validate_calibration(_report(max_residual=0.2))
        assert result.valid is True
        assert "RESIDUAL_ELEVATED" in {m.code for m in result.warnings}

    def test_high_residual_error(self):
        result = validate_calibration(_report(max_residual=0.8))
        assert result.valid is False
        assert "RESIDUAL_HIGH" in {m.code for m in result.errors}

    def test_angle_error_thresholds(self):
        assert "ANGLE_ERROR_ELEVATED" in _codes(validate_calibration(_report(angle_error=0.5)))
        assert "ANGLE_ERROR_HIGH" in _codes(validate_calibration(_report(angle_error=1.5)))

    def test_non_positive_constants_warning(self):
        assert "CONSTANTS_NOT_POSITIVE" in _codes(validate_calibration(_report(hc=-3.0)))

    def test_few_rows_info(self):
        result = validate_calibration(_report(count=2))
        assert [m.code for m in result.infos] == ["FEW_ROWS"]
        assert result.infos[0].severity == Severity.INFO

    def test_few_rows_counts_rows_used(self, global_settings, machine, wheels):
        rows = make_rows(29.0, 50.0, (150.0, 160.0))
        rows.append({"hn": "", "CAo": ""})
        report = run_calibration(rows, "rear", global_settings, machine, wheels)

        assert report.count == 3
        assert "FEW_ROWS" in _codes(validate_calibration(report))

    def test_real_report(self, synthetic_rows, global_settings, machine, wheels):
        report = run_calibration(synthetic_rows, "rear", global_settings, machine, wheels)
        assert validate_calibration(report).valid is True


class TestValidateResults:
    """Progression results."""

    def test_empty_is_info(self):
        result = validate_results([])
        assert result.valid is True
        assert "NO_STEPS" in _codes(result)

    def test_finite_results_clean(self, grinding_wheel, global_settings, machine):
        results = compute_results_for_steps(
            [grinding_wheel], [new_step(grinding_wheel)], global_settings, machine
        )
        assert validate_results(results).messages == []

    def test_non_finite_result_error(self, global_settings, machine):
        wheel = Wheel(id="nan", name="Broken", diameter_mm=float("nan"))
        results = compute_results_for_steps([wheel], [new_step(wheel)], global_settings, machine)

        result = validate_results(results)
        assert result.valid is False
        assert "Broken" in result.errors[0].message
