"""
Anglesetter - jig height calculator for tool-rest sharpening systems.

Works out the height to set the universal support to so a jig-held edge
meets the wheel at the chosen angle, and calibrates the machine offsets
that calculation depends on.

Example:
    >>> from anglesetter.calculator import compute_results_for_steps
    >>> from anglesetter.io import load_state_json
    >>>
    >>> state = load_state_json("anglesetter-export.json")
    >>> for r in compute_results_for_steps(
    ...     state.wheels, state.session_steps, state.global_settings, state.machine()
    ... ):
    ...     print(r.wheel.name, round(r.hn_base_mm, 2))

Note: All imports are lazy-loaded for fast startup. The enums can be
imported without triggering IO (Pydantic) imports.
"""

__version__ = "1.0.0"

# Define which names come from which submodule
# All imports are lazy to minimize startup time

_ENUMS = {"BaseSide", "HeightMode"}

_CALCULATOR = {
    "compute_heights",
    "compute_results_for_steps",
    "calibrate_base",
    "estimate_max_angle_error_deg",
    "run_calibration",
    "apply_calibration",
    "validate_geometry",
    "validate_calibration",
    "Severity",
    "ValidationResult",
}

_IO = {
    "load_state_json",
    "save_state_json",
    "parse_state",
    "export_state",
    "default_state",
    "AppState",
    "GeometryInput",
    "GeometryOutput",
    "MachineConstants",
    "MachineConfig",
    "GlobalSettings",
    "Wheel",
    "ProgressionStep",
    "WheelResult",
}

_SESSION = {
    "new_step",
    "move_step",
    "remove_wheel",
    "create_preset",
    "load_preset",
    "find_preset",
    "dedupe_wheels",
}

# Cache for lazy-loaded modules
_modules = {}


def __getattr__(name):
    """Lazy load submodules when their attributes are accessed."""
    global _modules

    if name in _ENUMS:
        if "enums" not in _modules:
            from . import enums
            _modules["enums"] = enums
        return getattr(_modules["enums"], name)

    if name in _CALCULATOR:
        if "calculator" not in _modules:
            from . import calculator
            _modules["calculator"] = calculator
        return getattr(_modules["calculator"], name)

    if name in _IO:
        if "io" not in _modules:
            from . import io
            _modules["io"] = io
        return getattr(_modules["io"], name)

    if name in _SESSION:
        if "session" not in _modules:
            from . import session
            _modules["session"] = session
        return getattr(_modules["session"], name)

    raise AttributeError(f"module 'anglesetter' has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",

    # Enums (lazy loaded from enums)
    "BaseSide",
    "HeightMode",

    # Calculator (lazy loaded from calculator)
    "compute_heights",
    "compute_results_for_steps",
    "calibrate_base",
    "estimate_max_angle_error_deg",
    "run_calibration",
    "apply_calibration",
    "validate_geometry",
    "validate_calibration",
    "Severity",
    "ValidationResult",

    # IO (lazy loaded from io)
    "load_state_json",
    "save_state_json",
    "parse_state",
    "export_state",
    "default_state",
    "AppState",
    "GeometryInput",
    "GeometryOutput",
    "MachineConstants",
    "MachineConfig",
    "GlobalSettings",
    "Wheel",
    "ProgressionStep",
    "WheelResult",

    # Session (lazy loaded from session)
    "new_step",
    "move_step",
    "remove_wheel",
    "create_preset",
    "load_preset",
    "find_preset",
    "dedupe_wheels",
]
