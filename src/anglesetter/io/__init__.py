"""
Anglesetter IO - value models, state import/export and defaults.

Example:
    >>> from anglesetter.io import load_state_json, save_state_json
    >>>
    >>> state = load_state_json("anglesetter-export.json")
    >>> save_state_json(state, "backup.json")
"""

from .loaders import (
    # Machine geometry
    BaseConstants,
    MachineConstants,
    MachineConfig,
    GlobalSettings,
    JigSettings,
    MicroBump,
    # Geometry engine
    GeometryInput,
    GeometryOutput,
    # Wheels and progressions
    Wheel,
    ProgressionStep,
    PresetStepRef,
    SessionPreset,
    WheelResult,
    # Calibration
    CalibrationMeasurement,
    CalibrationDiagnostics,
    CalibrationResult,
    CalibrationReport,
    CalibrationSnapshot,
    # State bundle
    AppState,
    default_state,
    default_wheels,
    parse_state,
    parse_state_data,
    export_state,
    load_state_json,
    save_state_json,
)

from .numbers import coerce_number

from .schema import validate_state_json

from .defaults import STATE_VERSION, DEFAULT_AXLE_DIAMETER_MM

__all__ = [
    "BaseConstants",
    "MachineConstants",
    "MachineConfig",
    "GlobalSettings",
    "JigSettings",
    "MicroBump",
    "GeometryInput",
    "GeometryOutput",
    "Wheel",
    "ProgressionStep",
    "PresetStepRef",
    "SessionPreset",
    "WheelResult",
    "CalibrationMeasurement",
    "CalibrationDiagnostics",
    "CalibrationResult",
    "CalibrationReport",
    "CalibrationSnapshot",
    "AppState",
    "default_state",
    "default_wheels",
    "parse_state",
    "parse_state_data",
    "export_state",
    "load_state_json",
    "save_state_json",
    "coerce_number",
    "validate_state_json",
    "STATE_VERSION",
    "DEFAULT_AXLE_DIAMETER_MM",
]
