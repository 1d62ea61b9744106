"""
Tests for JavaScript-Python bridge.

The bridge uses a single entry point: calculate(input_json) -> output_json
"""

import json

import pytest

from anglesetter.calculator.js_bridge import CalculatorInputs, CalculatorOutput, calculate
from anglesetter.enums import BaseSide
from anglesetter.io import default_state, export_state

from conftest import REFERENCE_HN_MM, make_rows


def _call(payload):
    return json.loads(calculate(json.dumps(payload)))


@pytest.fixture
def state_with_steps():
    data = json.loads(export_state(default_state()))
    data["sessionSteps"] = [
        {"id": "s1", "wheelId": "wheel-sg250", "base": "rear", "angleOffset": 0},
        {"id": "s2", "wheelId": "wheel-missing"},
        {"id": "s3", "wheelId": "wheel-la220", "base": "rear"},
    ]
    return data


class TestCalculatorInputs:
    """Input model validation."""

    def test_defaults(self):
        inputs = CalculatorInputs.model_validate({})
        assert inputs.mode == "heights"
        assert inputs.base == BaseSide.REAR
        assert inputs.rows == []

    def test_normalizes_strings(self):
        inputs = CalculatorInputs.model_validate({"mode": " Calibration ", "base": "FRONT"})
        assert inputs.mode == "calibration"
        assert inputs.base == BaseSide.FRONT

    def test_app_keys(self):
        inputs = CalculatorInputs.model_validate({"Da": 12, "Ds": 11.98, "rows": [{"hn": 1, "CAo": 2}]})
        assert inputs.axle_diameter_mm == 12
        assert inputs.rows[0].ca_outer == "2"


class TestHeightsMode:
    """Single forward solve."""

    def test_reference(self, reference_geometry_data):
        out = _call({"mode": "heights", "geometry": reference_geometry_data})

        assert out["success"] is True
        assert out["valid"] is True
        result = json.loads(out["result_json"])
        assert result["hn"] == pytest.approx(REFERENCE_HN_MM, abs=0.05)
        assert result["betaEffDeg"] == pytest.approx(16.0, abs=1e-6)
        assert "Jig Height" in out["summary"]
        assert out["markdown"].startswith("# Jig Height")

    def test_constants_from_state(self, reference_geometry_data):
        geometry = dict(reference_geometry_data)
        del geometry["constants"]
        out = _call({"mode": "heights", "geometry": geometry})

        result = json.loads(out["result_json"])
        assert result["hn"] == pytest.approx(REFERENCE_HN_MM, abs=0.05)

    def test_validation_messages(self, reference_geometry_data):
        geometry = dict(reference_geometry_data, D=0)
        out = _call({"mode": "heights", "geometry": geometry})

        assert out["success"] is True
        assert out["valid"] is False
        assert any(m["code"] == "WHEEL_DIAMETER_INVALID" for m in out["messages"])

    def test_geometry_required(self):
        out = _call({"mode": "heights"})
        assert out["success"] is False
        assert "geometry" in out["error"]


class TestProgressionMode:
    """Batch over the state's session."""

    def test_results(self, state_with_steps):
        out = _call({"mode": "progression", "state": state_with_steps})

        assert out["success"] is True
        results = json.loads(out["result_json"])["results"]
        assert len(results) == 2
        assert results[1]["baseForHn"] == "front"
        assert "LA-220" in out["markdown"]

    def test_empty_session(self):
        out = _call({"mode": "progression"})
        assert out["success"] is True
        assert out["messages"][0]["code"] == "NO_STEPS"


class TestCalibrationMode:
    """Calibration workflow."""

    def test_recovers_constants(self):
        rows = make_rows(30.0, 55.0, (150.0, 160.0, 170.0))
        out = _call({"mode": "calibration", "base": "rear", "rows": rows, "Da": 12, "Ds": 11.98})

        assert out["success"] is True
        report = json.loads(out["result_json"])
        assert report["hc"] == pytest.approx(30.0, abs=1e-6)
        assert report["o"] == pytest.approx(55.0, abs=1e-6)
        assert report["proposedConstants"]["front"]["hc"] == 51.3

    def test_failure_reported(self):
        out = _call({"mode": "calibration", "rows": [{"hn": "1", "CAo": "2"}]})
        assert out["success"] is False
        assert "Calibration failed" in out["error"]


class TestErrors:
    """calculate() never raises."""

    def test_invalid_json(self):
        out = json.loads(calculate("not json {"))
        assert out["success"] is False
        assert out["error"].startswith("Invalid JSON")

    def test_unknown_mode(self):
        out = _call({"mode": "envelope"})
        assert out["success"] is False
        assert "Unknown mode" in out["error"]

    def test_bad_state(self):
        out = _call({"mode": "progression", "state": {"version": -5}})
        assert out["success"] is False

    def test_output_model(self):
        out = CalculatorOutput.model_validate_json(calculate("[]"))
        assert out.success is False
