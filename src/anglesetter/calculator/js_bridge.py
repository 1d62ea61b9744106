"""
JavaScript-Python bridge for Pyodide.

Provides a single entry point for all JS->Python calculator calls.
All inputs are validated via Pydantic models before processing.

Usage from JavaScript:
    pyodide.globals.set('input_json', JSON.stringify(inputs));
    const result = await pyodide.runPythonAsync(`
        from anglesetter.calculator.js_bridge import calculate
        calculate(input_json)
    `);
    const heights = JSON.parse(result);
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import TypedDict

from ..enums import BaseSide
from ..io import (
    AppState,
    CalibrationMeasurement,
    GeometryInput,
    parse_state_data,
)
from .calibration import run_calibration
from .core import compute_heights, compute_results_for_steps
from .output import (
    calibration_to_markdown,
    calibration_to_summary,
    heights_to_markdown,
    heights_to_summary,
    to_json,
    to_markdown,
    to_summary,
)
from .validation import (
    ValidationResult,
    validate_calibration,
    validate_geometry,
    validate_results,
)


class ValidationMessageDict(TypedDict, total=False):
    """Type for validation message dictionaries sent to JavaScript."""
    severity: str  # "error", "warning", "info"
    code: str  # e.g., "RESIDUAL_HIGH"
    message: str
    suggestion: Optional[str]


# ============================================================================
# Input Models (Pydantic validation for JS inputs)
# ============================================================================

class CalculatorInputs(BaseModel):
    """
    All inputs from the calculator UI.

    ``state`` is an exported state bundle; missing sections take their
    defaults. ``geometry`` is only read in heights mode and falls back to
    the state's constants when it carries none.
    """
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    # Calculation mode
    mode: str = "heights"  # "heights" | "progression" | "calibration"

    state: Dict[str, Any] = Field(default_factory=dict)

    # heights
    geometry: Optional[Dict[str, Any]] = None

    # calibration
    base: BaseSide = BaseSide.REAR
    rows: List[CalibrationMeasurement] = Field(default_factory=list)
    axle_diameter_mm: Optional[float] = Field(default=None, alias="Da")
    tool_diameter_mm: Optional[float] = Field(default=None, alias="Ds")
    count: Optional[int] = None

    @field_validator('mode', mode='before')
    @classmethod
    def normalize_mode(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('base', mode='before')
    @classmethod
    def normalize_base(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


# ============================================================================
# Output Models
# ============================================================================

class CalculatorOutput(BaseModel):
    """Output from calculate() - matches what JS expects."""
    model_config = ConfigDict(extra='ignore')

    success: bool
    error: Optional[str] = None
    mode: Optional[str] = None

    # Result data (JSON string for JS to parse)
    result_json: Optional[str] = None

    # Display formats
    summary: Optional[str] = None
    markdown: Optional[str] = None

    # Validation
    valid: bool = True
    messages: List[ValidationMessageDict] = Field(default_factory=list)


# ============================================================================
# Main Entry Point
# ============================================================================

def calculate(input_json: str) -> str:
    """
    Single entry point for all calculator operations from JavaScript.

    Args:
        input_json: JSON string with CalculatorInputs structure

    Returns:
        JSON string with CalculatorOutput structure
    """
    try:
        data = json.loads(input_json)
        inputs = CalculatorInputs.model_validate(data)
        state = parse_state_data(inputs.state)

        if inputs.mode == 'heights':
            output = _calculate_heights(inputs, state)
        elif inputs.mode == 'progression':
            output = _calculate_progression(state)
        elif inputs.mode == 'calibration':
            output = _calculate_calibration(inputs, state)
        else:
            raise ValueError(f"Unknown mode: {inputs.mode}")

        return output.model_dump_json()

    except json.JSONDecodeError as e:
        return CalculatorOutput(
            success=False,
            error=f"Invalid JSON: {e}"
        ).model_dump_json()

    except Exception as e:
        return CalculatorOutput(
            success=False,
            error=str(e)
        ).model_dump_json()


def _messages(validation: ValidationResult) -> List[ValidationMessageDict]:
    return [
        {
            'severity': m.severity.value,
            'message': m.message,
            'code': m.code,
            'suggestion': m.suggestion
        }
        for m in validation.messages
    ]


def _calculate_heights(inputs: CalculatorInputs, state: AppState) -> CalculatorOutput:
    """Forward solve for one wheel, angle and base."""
    if inputs.geometry is None:
        raise ValueError("geometry is required for heights mode")

    geometry_data = dict(inputs.geometry)
    geometry_data.setdefault('constants', state.constants.model_dump())
    geometry = GeometryInput.model_validate(geometry_data)

    result = compute_heights(geometry)
    validation = validate_geometry(geometry, result)

    return CalculatorOutput(
        success=True,
        mode=inputs.mode,
        result_json=result.model_dump_json(by_alias=True),
        summary=heights_to_summary(geometry, result),
        markdown=heights_to_markdown(geometry, result, validation),
        valid=validation.valid,
        messages=_messages(validation),
    )


def _calculate_progression(state: AppState) -> CalculatorOutput:
    """Heights for every step of the state's current session."""
    results = compute_results_for_steps(
        state.wheels, state.session_steps, state.global_settings, state.machine()
    )
    validation = validate_results(results)

    return CalculatorOutput(
        success=True,
        mode='progression',
        result_json=to_json(results, state.global_settings),
        summary=to_summary(results, state.global_settings),
        markdown=to_markdown(results, state.global_settings, validation),
        valid=validation.valid,
        messages=_messages(validation),
    )


def _calculate_calibration(inputs: CalculatorInputs, state: AppState) -> CalculatorOutput:
    """Calibrate one base; the proposed constants are returned, not applied."""
    report = run_calibration(
        inputs.rows,
        inputs.base,
        state.global_settings,
        state.machine(),
        state.wheels,
        axle_diameter_mm=inputs.axle_diameter_mm,
        tool_diameter_mm=inputs.tool_diameter_mm,
        count=inputs.count,
    )
    if report is None:
        raise ValueError(
            "Calibration failed: need at least two rows with different heights"
        )

    validation = validate_calibration(report)

    return CalculatorOutput(
        success=True,
        mode='calibration',
        result_json=report.model_dump_json(by_alias=True),
        summary=calibration_to_summary(report),
        markdown=calibration_to_markdown(report, validation),
        valid=validation.valid,
        messages=_messages(validation),
    )
