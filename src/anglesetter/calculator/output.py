"""Output formatters for jig height results.

Converts typed WheelResult lists and CalibrationReport models to JSON,
Markdown and plain text.

Uses Pydantic's model_dump(mode='json', by_alias=True) so enums become
strings and keys match the web app's state export.
"""

import json
from math import isfinite
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..io import CalibrationReport, GeometryInput, GeometryOutput, GlobalSettings, WheelResult

if TYPE_CHECKING:
    from .validation import ValidationResult


def _model_to_dict(model) -> dict:
    """Convert Pydantic model to dict with JSON-compatible types."""
    return model.model_dump(mode='json', by_alias=True)


def _fmt(value: Optional[float], digits: int = 2) -> str:
    """Format a number for display; None and non-finite values print as "-"."""
    if value is None or not isfinite(value):
        return "-"
    return f"{value:.{digits}f}"


def _validation_to_dict(validation: "ValidationResult") -> dict:
    def messages(items):
        return [
            {
                'severity': msg.severity.value,
                'code': msg.code,
                'message': msg.message,
                'suggestion': msg.suggestion
            }
            for msg in items
        ]

    return {
        'valid': validation.valid,
        'errors': messages(validation.errors),
        'warnings': messages(validation.warnings),
        'infos': messages(validation.infos),
    }


def _validation_to_markdown(validation: "ValidationResult") -> str:
    md = "## Validation\n\n"

    if validation.valid:
        md += "**Status:** ✅ No errors\n\n"
    else:
        md += "**Status:** ❌ Has errors\n\n"

    if validation.errors:
        md += "### Errors\n\n"
        for msg in validation.errors:
            md += f"- **{msg.code}**: {msg.message}\n"
            if msg.suggestion:
                md += f"  - *Suggestion*: {msg.suggestion}\n"
        md += "\n"

    if validation.warnings:
        md += "### Warnings\n\n"
        for msg in validation.warnings:
            md += f"- **{msg.code}**: {msg.message}\n"
            if msg.suggestion:
                md += f"  - *Suggestion*: {msg.suggestion}\n"
        md += "\n"

    if validation.infos:
        md += "### Information\n\n"
        for msg in validation.infos:
            md += f"- {msg.message}\n"
        md += "\n"

    return md


def _non_finite_to_none(value):
    """json.dumps writes NaN, which is not JSON; emit null instead."""
    if isinstance(value, float) and not isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _non_finite_to_none(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_non_finite_to_none(v) for v in value]
    return value


def to_json(
    results: Sequence[WheelResult],
    global_settings: Optional[GlobalSettings] = None,
    validation: Optional["ValidationResult"] = None,
    indent: int = 2,
) -> str:
    """Convert progression results to a JSON string.

    Args:
        results: Output of compute_results_for_steps
        global_settings: Settings the results were computed with
        validation: Optional validation results to include
        indent: JSON indentation level (default: 2)

    Returns:
        JSON object with a ``results`` list; non-finite heights are null
    """
    data = {'results': [_model_to_dict(r) for r in results]}

    if global_settings is not None:
        data['global'] = _model_to_dict(global_settings)

    if validation:
        data['validation'] = _validation_to_dict(validation)

    return json.dumps(_non_finite_to_none(data), indent=indent)


def to_markdown(
    results: Sequence[WheelResult],
    global_settings: Optional[GlobalSettings] = None,
    validation: Optional["ValidationResult"] = None,
) -> str:
    """Convert progression results to a Markdown height table."""
    md = "# Jig Height Setup\n\n"

    if global_settings is not None:
        md += "## Settings\n\n"
        md += "| Parameter | Value |\n"
        md += "|-----------|-------|\n"
        md += f"| Projection | {global_settings.projection_mm:.2f} mm |\n"
        md += f"| Target Angle | {global_settings.target_angle_deg:.2f}° per side |\n"
        md += f"| Tool Diameter | {global_settings.tool_diameter_mm:.2f} mm |\n"
        md += f"| Jig Diameter | {global_settings.jig.diameter_mm:.2f} mm |\n"
        if global_settings.micro_bump_deg:
            md += f"| Micro Bevel | +{global_settings.micro_bump_deg:.2f}° |\n"
        md += "\n"

    md += "## Progression\n\n"
    if not results:
        md += "*No steps*\n\n"
    else:
        md += "| # | Wheel | Base | Angle | hn | hr |\n"
        md += "|---|-------|------|-------|----|----|\n"
        for index, result in enumerate(results, start=1):
            md += (
                f"| {index} | {result.wheel.name} | {result.base_for_hn.value} "
                f"| {_fmt(result.beta_eff_deg)}° | {_fmt(result.hn_base_mm)} mm "
                f"| {_fmt(result.hr_wheel_mm)} mm |\n"
            )
        md += "\n"

        notes = [(i, r.step.notes) for i, r in enumerate(results, start=1) if r.step and r.step.notes]
        if notes:
            md += "### Step Notes\n\n"
            for index, note in notes:
                md += f"- **{index}**: {note}\n"
            md += "\n"

    if validation:
        md += _validation_to_markdown(validation)

    md += "## Notes\n\n"
    md += "- hn is measured from the base datum to the top of the support bar\n"
    md += "- hr is measured from the wheel to the top of the support bar (rear)\n"
    md += "- Angles are per side\n\n"

    md += "---\n"
    md += "*Generated by Anglesetter Calculator*\n"

    return md


def to_summary(
    results: Sequence[WheelResult],
    global_settings: Optional[GlobalSettings] = None,
) -> str:
    """Convert progression results to a formatted text summary."""
    lines = ["═══ Jig Heights ═══"]

    if global_settings is not None:
        lines.extend([
            f"Projection: {global_settings.projection_mm:.2f} mm",
            f"Angle: {global_settings.target_angle_deg:.2f}° per side",
        ])
        if global_settings.micro_bump_deg:
            lines.append(f"Micro bevel: +{global_settings.micro_bump_deg:.2f}°")

    if not results:
        lines.extend(["", "No steps."])
        return "\n".join(lines)

    for index, result in enumerate(results, start=1):
        lines.extend([
            "",
            f"{index}. {result.wheel.name} ({result.wheel.diameter_mm:.0f} mm)",
            f"  {result.orientation_label}",
            f"  hn:    {_fmt(result.hn_base_mm)} mm",
            f"  hr:    {_fmt(result.hr_wheel_mm)} mm",
            f"  Angle: {_fmt(result.beta_eff_deg)}°",
        ])

    return "\n".join(lines)


def calibration_to_summary(report: CalibrationReport) -> str:
    """Convert a calibration report to a formatted text summary."""
    lines: List[str] = [
        f"═══ Calibration ({report.base.value} base) ═══",
        f"hc: {report.hc:.3f} mm",
        f"o:  {report.o:.3f} mm",
        f"Rows used: {len(report.diagnostics.residuals)} of {report.count}",
        f"Max residual: {report.diagnostics.max_abs_residual_mm:.4f} mm",
    ]

    if report.angle_error_deg is not None:
        lines.append(f"Max angle error: {report.angle_error_deg:.3f}°")
    else:
        lines.append("Max angle error: n/a")

    lines.extend(["", "Residuals:"])
    for index, residual in enumerate(report.diagnostics.residuals, start=1):
        lines.append(f"  {index}: {residual:+.4f} mm")

    return "\n".join(lines)


def calibration_to_markdown(
    report: CalibrationReport,
    validation: Optional["ValidationResult"] = None,
) -> str:
    """Convert a calibration report to a Markdown report."""
    md = f"# Calibration: {report.base.value.title()} Base\n\n"

    md += "| Parameter | Value |\n"
    md += "|-----------|-------|\n"
    md += f"| hc | {report.hc:.3f} mm |\n"
    md += f"| o | {report.o:.3f} mm |\n"
    md += f"| Max Residual | {report.diagnostics.max_abs_residual_mm:.4f} mm |\n"
    if report.angle_error_deg is not None:
        md += f"| Max Angle Error | {report.angle_error_deg:.3f}° |\n"
    md += "\n"

    md += "## Residuals\n\n"
    md += "| Row | Residual |\n"
    md += "|-----|----------|\n"
    for index, residual in enumerate(report.diagnostics.residuals, start=1):
        md += f"| {index} | {residual:+.4f} mm |\n"
    md += "\n"

    md += "## Proposed Constants\n\n"
    md += "| Base | hc | o |\n"
    md += "|------|----|---|\n"
    for name in ("rear", "front"):
        base = report.proposed_constants.for_base(name)
        md += f"| {name} | {base.hc:.3f} mm | {base.o:.3f} mm |\n"
    md += "\n"

    if validation:
        md += _validation_to_markdown(validation)

    md += "---\n"
    md += "*Generated by Anglesetter Calculator*\n"

    return md


def heights_to_summary(geometry: GeometryInput, output: GeometryOutput) -> str:
    """Convert a single forward solve to a formatted text summary."""
    lines = [
        f"═══ Jig Height ({geometry.base.value} base) ═══",
        f"Wheel: {geometry.wheel_diameter_mm:.1f} mm",
        f"Projection: {geometry.projection_mm:.2f} mm",
        f"Angle: {geometry.beta_total_deg:.2f}° per side",
        "",
        f"hn: {_fmt(output.hn_mm)} mm",
        f"hr: {_fmt(output.hr_mm)} mm",
        f"Effective angle: {_fmt(output.beta_eff_deg, 3)}°",
    ]
    return "\n".join(lines)


def heights_to_markdown(
    geometry: GeometryInput,
    output: GeometryOutput,
    validation: Optional["ValidationResult"] = None,
) -> str:
    """Convert a single forward solve to Markdown."""
    offsets = geometry.constants.for_base(geometry.base)

    md = "# Jig Height\n\n"

    md += "## Inputs\n\n"
    md += "| Parameter | Value |\n"
    md += "|-----------|-------|\n"
    md += f"| Base | {geometry.base.value} |\n"
    md += f"| Wheel Diameter | {geometry.wheel_diameter_mm:.2f} mm |\n"
    md += f"| Projection | {geometry.projection_mm:.2f} mm |\n"
    md += f"| Angle | {geometry.beta_total_deg:.2f}° per side |\n"
    md += f"| Jig Diameter | {geometry.jig_diameter_mm:.2f} mm |\n"
    md += f"| Tool Diameter | {geometry.tool_diameter_mm:.2f} mm |\n"
    md += f"| Base hc / o | {offsets.hc:.2f} / {offsets.o:.2f} mm |\n\n"

    md += "## Heights\n\n"
    md += "| Height | Value |\n"
    md += "|--------|-------|\n"
    md += f"| hn | {_fmt(output.hn_mm)} mm |\n"
    md += f"| hr | {_fmt(output.hr_mm)} mm |\n"
    md += f"| Effective Angle | {_fmt(output.beta_eff_deg, 3)}° |\n\n"

    if validation:
        md += _validation_to_markdown(validation)

    md += "---\n"
    md += "*Generated by Anglesetter Calculator*\n"

    return md
