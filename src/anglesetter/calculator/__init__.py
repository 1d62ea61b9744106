"""
Jig Height Calculator - geometry and calibration for a tool-rest sharpening jig.

All functions are pure and never raise on bad numbers; degenerate inputs
come back as NaN or None and are explained by the validation module.

Example:
    >>> from anglesetter.calculator import compute_results_for_steps
    >>> from anglesetter.io import default_state
    >>>
    >>> state = default_state()
    >>> results = compute_results_for_steps(
    ...     state.wheels, state.session_steps, state.global_settings, state.machine()
    ... )
"""

from .core import (
    # Unit helpers
    deg2rad,
    rad2deg,

    # Forward geometry
    compute_heights,
    resolve_base,
    compute_results_for_steps,
)

from .calibration import (
    # Calibration workflow
    calibrate_base,
    estimate_max_angle_error_deg,
    run_calibration,
    apply_calibration,
    make_snapshot,
)

from .validation import (
    # Validation
    validate_geometry,
    validate_calibration,
    validate_results,
    Severity,
    ValidationMessage,
    ValidationResult,
)

from ..enums import (
    # Type-safe enums
    BaseSide,
    HeightMode,
)

from .output import (
    # Output formatters
    to_json,
    to_markdown,
    to_summary,
    heights_to_summary,
    heights_to_markdown,
    calibration_to_summary,
    calibration_to_markdown,
)

# Convenience imports
from ..io import (
    GeometryInput,
    GeometryOutput,
    MachineConstants,
    MachineConfig,
    GlobalSettings,
    Wheel,
    ProgressionStep,
    WheelResult,
    CalibrationResult,
    CalibrationReport,
)


__all__ = [
    # Enums (type-safe)
    "BaseSide",
    "HeightMode",

    # Models
    "GeometryInput",
    "GeometryOutput",
    "MachineConstants",
    "MachineConfig",
    "GlobalSettings",
    "Wheel",
    "ProgressionStep",
    "WheelResult",
    "CalibrationResult",
    "CalibrationReport",

    # Unit helpers
    "deg2rad",
    "rad2deg",

    # Forward geometry
    "compute_heights",
    "resolve_base",
    "compute_results_for_steps",

    # Calibration workflow
    "calibrate_base",
    "estimate_max_angle_error_deg",
    "run_calibration",
    "apply_calibration",
    "make_snapshot",

    # Validation
    "validate_geometry",
    "validate_calibration",
    "validate_results",
    "Severity",
    "ValidationMessage",
    "ValidationResult",

    # Output formatters
    "to_json",
    "to_markdown",
    "to_summary",
    "heights_to_summary",
    "heights_to_markdown",
    "calibration_to_summary",
    "calibration_to_markdown",
]
