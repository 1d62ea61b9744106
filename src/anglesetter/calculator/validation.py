"""
Jig Height Calculator - Validation Rules

The calculator itself never raises; it returns NaN, infinity or None and
leaves interpretation to the caller. These rules turn such results, and
inputs likely to produce them, into messages a user can act on.

Validation never changes a computed value.
"""

from dataclasses import dataclass, field
from enum import Enum
from math import isfinite
from typing import List, Optional, Sequence

from ..io import CalibrationReport, GeometryInput, GeometryOutput, WheelResult
from .constants import (
    ANGLE_ERROR_ERROR_DEG,
    ANGLE_ERROR_WARNING_DEG,
    ANGLE_MAX_DEG,
    ANGLE_MIN_DEG,
    ANGLE_ROUND_TRIP_TOLERANCE_DEG,
    CALIBRATION_ROWS_RECOMMENDED,
    RESIDUAL_ERROR_MM,
    RESIDUAL_WARNING_MM,
)


class Severity(Enum):
    """Validation message severity"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationMessage:
    """A single validation finding"""
    severity: Severity
    code: str
    message: str
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Complete validation result"""
    valid: bool  # True if no errors
    messages: List[ValidationMessage] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.WARNING]

    @property
    def infos(self) -> List[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.INFO]


def _result(messages: List[ValidationMessage]) -> ValidationResult:
    has_errors = any(m.severity == Severity.ERROR for m in messages)
    return ValidationResult(valid=not has_errors, messages=messages)


def validate_geometry(
    geometry: GeometryInput,
    output: Optional[GeometryOutput] = None,
) -> ValidationResult:
    """
    Check a forward-solve request and, optionally, its result.

    Args:
        geometry: Request passed to compute_heights
        output: Result of compute_heights for that request

    Returns:
        ValidationResult with all findings
    """
    messages: List[ValidationMessage] = []

    messages.extend(_validate_diameters(geometry))
    messages.extend(_validate_projection(geometry))
    messages.extend(_validate_angle(geometry))
    if output is not None:
        messages.extend(_validate_output(geometry, output))

    return _result(messages)


def _validate_diameters(geometry: GeometryInput) -> List[ValidationMessage]:
    """Wheel and tool must be real cylinders"""
    messages = []

    D = geometry.wheel_diameter_mm
    if not isfinite(D) or D <= 0:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="WHEEL_DIAMETER_INVALID",
            message=f"Wheel diameter {D}mm must be a positive number",
            suggestion="Measure the wheel across its centre and enter the diameter"
        ))

    Ds = geometry.tool_diameter_mm
    if not isfinite(Ds) or Ds <= 0:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="TOOL_DIAMETER_INVALID",
            message=f"Reference tool diameter {Ds}mm must be a positive number",
            suggestion="The stock universal support bar is 11.98mm"
        ))

    Dj = geometry.jig_diameter_mm
    if not isfinite(Dj) or Dj <= 0:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="JIG_DIAMETER_INVALID",
            message=f"Jig diameter {Dj}mm is not positive",
            suggestion="Check the jig pivot diameter (12mm for the stock jig)"
        ))

    return messages


def _validate_projection(geometry: GeometryInput) -> List[ValidationMessage]:
    """Projection must reach past the tool centre"""
    messages = []

    A = geometry.projection_mm
    Rs = geometry.tool_diameter_mm / 2
    if not isfinite(A) or A <= Rs:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="PROJECTION_TOO_SHORT",
            message=f"Projection {A}mm does not exceed the tool radius ({Rs:.2f}mm)",
            suggestion="Measure projection from the jig apex to the edge"
        ))

    return messages


def _validate_angle(geometry: GeometryInput) -> List[ValidationMessage]:
    """Total angle per side must be a usable bevel"""
    messages = []

    beta = geometry.beta_total_deg
    if not isfinite(beta) or beta <= ANGLE_MIN_DEG or beta >= ANGLE_MAX_DEG:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="ANGLE_OUT_OF_RANGE",
            message=f"Total angle {beta}° per side is outside {ANGLE_MIN_DEG:.0f}°-{ANGLE_MAX_DEG:.0f}°",
            suggestion="Angles are per side (half the included angle)"
        ))

    return messages


def _validate_output(geometry: GeometryInput, output: GeometryOutput) -> List[ValidationMessage]:
    """Results must be finite and invert back to the requested angle"""
    messages = []

    non_finite = [
        name for name, value in (
            ("hr", output.hr_mm),
            ("hn", output.hn_mm),
            ("effective angle", output.beta_eff_deg),
        )
        if not isfinite(value)
    ]
    if non_finite:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="NON_FINITE_RESULT",
            message=f"No finite value for: {', '.join(non_finite)}",
            suggestion="Check wheel, tool and jig diameters and the projection"
        ))
        return messages

    drift = abs(output.beta_eff_deg - geometry.beta_total_deg)
    if drift > ANGLE_ROUND_TRIP_TOLERANCE_DEG:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="ANGLE_NOT_REACHABLE",
            message=(
                f"Effective angle {output.beta_eff_deg:.3f}° differs from requested "
                f"{geometry.beta_total_deg:.3f}°"
            ),
            suggestion="The requested angle cannot be set with this projection and wheel"
        ))

    offsets = geometry.constants.for_base(geometry.base)
    ca_squared = (output.hr_mm - geometry.tool_diameter_mm / 2 + geometry.wheel_diameter_mm / 2) ** 2
    if ca_squared < offsets.o * offsets.o:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="HEIGHT_CLAMPED",
            message=f"Tool centre is closer to the axle than the {geometry.base.value} base offset",
            suggestion="Re-check the base constants; hn was clamped"
        ))

    if output.hn_mm < 0:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="HEIGHT_NEGATIVE",
            message=f"Height {output.hn_mm:.2f}mm is below the datum",
        ))

    return messages


def validate_calibration(report: CalibrationReport) -> ValidationResult:
    """
    Judge a calibration fit before it is applied.

    Args:
        report: Result of run_calibration

    Returns:
        ValidationResult with all findings
    """
    messages: List[ValidationMessage] = []

    residual = report.diagnostics.max_abs_residual_mm
    if residual > RESIDUAL_ERROR_MM:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="RESIDUAL_HIGH",
            message=f"Largest height residual {residual:.3f}mm",
            suggestion="Re-measure; one row is probably misread"
        ))
    elif residual > RESIDUAL_WARNING_MM:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="RESIDUAL_ELEVATED",
            message=f"Largest height residual {residual:.3f}mm",
            suggestion="Consider repeating the measurements"
        ))

    angle_error = report.angle_error_deg
    if angle_error is not None:
        if angle_error > ANGLE_ERROR_ERROR_DEG:
            messages.append(ValidationMessage(
                severity=Severity.ERROR,
                code="ANGLE_ERROR_HIGH",
                message=f"Angles may be off by up to {angle_error:.2f}°",
                suggestion="Do not apply this calibration"
            ))
        elif angle_error > ANGLE_ERROR_WARNING_DEG:
            messages.append(ValidationMessage(
                severity=Severity.WARNING,
                code="ANGLE_ERROR_ELEVATED",
                message=f"Angles may be off by up to {angle_error:.2f}°",
            ))

    if report.hc <= 0 or report.o <= 0:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="CONSTANTS_NOT_POSITIVE",
            message=f"Solved hc={report.hc:.2f}mm, o={report.o:.2f}mm; both are expected positive",
            suggestion="Check that heights and spans were entered in the right columns"
        ))

    used = len(report.diagnostics.residuals)
    if used < CALIBRATION_ROWS_RECOMMENDED:
        messages.append(ValidationMessage(
            severity=Severity.INFO,
            code="FEW_ROWS",
            message=(
                f"Calibrated from {used} rows; {CALIBRATION_ROWS_RECOMMENDED} "
                "or more give residuals that mean something"
            ),
        ))

    return _result(messages)


def validate_results(results: Sequence[WheelResult]) -> ValidationResult:
    """Flag progression steps whose heights could not be computed."""
    messages: List[ValidationMessage] = []

    if not results:
        messages.append(ValidationMessage(
            severity=Severity.INFO,
            code="NO_STEPS",
            message="Progression has no steps with a known wheel",
            suggestion="Add a step, or check that its wheel still exists"
        ))

    for index, result in enumerate(results, start=1):
        if not (isfinite(result.hn_base_mm) and isfinite(result.hr_wheel_mm)):
            messages.append(ValidationMessage(
                severity=Severity.ERROR,
                code="NON_FINITE_RESULT",
                message=f"Step {index} ({result.wheel.name}) has no finite height",
                suggestion="Check the wheel diameter and the global settings"
            ))

    return _result(messages)
