"""
Structural validation of exported state JSON.

parse_state() is lenient and silently substitutes defaults; this module
reports what it would substitute so import screens can show it.
"""

from typing import Any, Dict, List

from .defaults import STATE_VERSION

# Sections every complete export carries
REQUIRED_SECTIONS = ["global", "constants", "wheels"]

OPTIONAL_LIST_SECTIONS = ["sessionSteps", "sessionPresets", "calibSnapshots"]

WHEEL_REQUIRED_FIELDS = ["id", "name", "D"]

STEP_REQUIRED_FIELDS = ["id", "wheelId"]


def validate_state_json(data: Any) -> Dict[str, Any]:
    """
    Validate decoded state JSON structure.

    Args:
        data: Parsed JSON data

    Returns:
        {
            "valid": bool,
            "errors": List[str],
            "warnings": List[str],
            "version": int or None
        }

    Example:
        >>> result = validate_state_json(json.loads(raw))
        >>> if not result["valid"]:
        ...     print(f"Errors: {result['errors']}")
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(data, dict):
        return {
            "valid": False,
            "errors": ["Root must be a JSON object"],
            "warnings": [],
            "version": None,
        }

    version = data.get("version")
    if version is None:
        warnings.append("Missing 'version' field (assuming 1)")
    elif not isinstance(version, int) or isinstance(version, bool) or version < 1:
        errors.append(f"Invalid version {version!r}")
    elif version > STATE_VERSION:
        warnings.append(f"State version {version} is newer than supported {STATE_VERSION}")

    for section in REQUIRED_SECTIONS:
        if section not in data:
            warnings.append(f"Missing section '{section}' (defaults will be used)")

    for section in ("global", "constants"):
        if section in data and not isinstance(data[section], dict):
            errors.append(f"Section '{section}' must be an object")

    if "constants" in data and isinstance(data["constants"], dict):
        for base in ("rear", "front"):
            offsets = data["constants"].get(base)
            if offsets is None:
                warnings.append(f"constants.{base} missing (defaults will be used)")
                continue
            if not isinstance(offsets, dict):
                errors.append(f"constants.{base} must be an object")
                continue
            for key in ("hc", "o"):
                if not _is_number(offsets.get(key)):
                    errors.append(f"constants.{base}.{key} must be a number")

    if "wheels" in data:
        wheels = data["wheels"]
        if not isinstance(wheels, list):
            errors.append("Section 'wheels' must be an array")
        elif not wheels:
            warnings.append("Wheel list is empty (default catalogue will be used)")
        else:
            seen = set()
            for i, wheel in enumerate(wheels):
                if not isinstance(wheel, dict):
                    errors.append(f"wheels[{i}] must be an object")
                    continue
                for field in WHEEL_REQUIRED_FIELDS:
                    if field not in wheel:
                        errors.append(f"wheels[{i}] missing required field '{field}'")
                if "D" in wheel and not _is_number(wheel["D"]):
                    errors.append(f"wheels[{i}].D must be a number")
                wheel_id = wheel.get("id")
                if wheel_id in seen:
                    warnings.append(f"Duplicate wheel id '{wheel_id}' (later copy dropped)")
                seen.add(wheel_id)

    for section in OPTIONAL_LIST_SECTIONS:
        if section in data and not isinstance(data[section], list):
            errors.append(f"Section '{section}' must be an array")

    steps = data.get("sessionSteps")
    if isinstance(steps, list):
        for i, step in enumerate(steps):
            if not isinstance(step, dict):
                errors.append(f"sessionSteps[{i}] must be an object")
                continue
            for field in STEP_REQUIRED_FIELDS:
                if field not in step:
                    errors.append(f"sessionSteps[{i}] missing required field '{field}'")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "version": version if isinstance(version, int) else None,
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
