"""
Value models and JSON input/output for calculator state.

Every model is an immutable Pydantic model. Field names are Python names
with unit suffixes; each persisted field also carries the key used by the
web app's state export as an alias, so exported bundles load unchanged and
saved bundles open in the web app.

Uses Pydantic for validation, alias handling and enum coercion.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import BaseSide, HeightMode
from .defaults import (
    STATE_VERSION,
    DEFAULT_PROJECTION_MM,
    DEFAULT_TOOL_DIAMETER_MM,
    DEFAULT_JIG_DIAMETER_MM,
    DEFAULT_TARGET_ANGLE_DEG,
    DEFAULT_REAR_HC_MM,
    DEFAULT_REAR_O_MM,
    DEFAULT_FRONT_HC_MM,
    DEFAULT_FRONT_O_MM,
    default_wheel_data,
)

logger = logging.getLogger(__name__)

_VALUE_CONFIG = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)


def _coerce_base(v):
    if isinstance(v, str):
        return BaseSide(v.strip().lower())
    return v


# ============================================================================
# Machine geometry
# ============================================================================

class BaseConstants(BaseModel):
    """Datum offsets for one base (mm)."""
    model_config = _VALUE_CONFIG

    hc: float  # Vertical datum offset
    o: float   # Horizontal offset, datum to reference tool axis


class MachineConstants(BaseModel):
    """Calibrated offsets for both bases."""
    model_config = _VALUE_CONFIG

    rear: BaseConstants = Field(
        default_factory=lambda: BaseConstants(hc=DEFAULT_REAR_HC_MM, o=DEFAULT_REAR_O_MM)
    )
    front: BaseConstants = Field(
        default_factory=lambda: BaseConstants(hc=DEFAULT_FRONT_HC_MM, o=DEFAULT_FRONT_O_MM)
    )

    def for_base(self, base: Union[BaseSide, str]) -> BaseConstants:
        """Return the offsets for one base."""
        return self.rear if _coerce_base(base) == BaseSide.REAR else self.front

    def with_base(self, base: Union[BaseSide, str], hc: float, o: float) -> "MachineConstants":
        """Return a copy with one base replaced."""
        base = _coerce_base(base)
        return self.model_copy(update={base.value: BaseConstants(hc=hc, o=o)})


class MachineConfig(BaseModel):
    """A grinder with its calibrated constants and fitted accessories."""
    model_config = _VALUE_CONFIG

    id: str = "default"
    name: str = "Default machine"
    constants: MachineConstants = Field(default_factory=MachineConstants)
    tool_diameter_mm: float = Field(default=DEFAULT_TOOL_DIAMETER_MM, alias="usbDiameter")
    jig_diameter_mm: float = Field(default=DEFAULT_JIG_DIAMETER_MM, alias="jigDiameter")


class JigSettings(BaseModel):
    model_config = _VALUE_CONFIG

    diameter_mm: float = Field(default=DEFAULT_JIG_DIAMETER_MM, alias="Dj")


class MicroBump(BaseModel):
    """Small extra angle for a secondary bevel."""
    model_config = _VALUE_CONFIG

    enabled: bool = False
    bump_deg: float = Field(default=0.0, alias="bumpDeg")


class GlobalSettings(BaseModel):
    """Session-wide inputs: projection, target angle and accessories."""
    model_config = _VALUE_CONFIG

    projection_mm: float = Field(default=DEFAULT_PROJECTION_MM, alias="projection")
    tool_diameter_mm: float = Field(default=DEFAULT_TOOL_DIAMETER_MM, alias="usbDiameter")
    target_angle_deg: float = Field(default=DEFAULT_TARGET_ANGLE_DEG, alias="targetAngle")
    jig: JigSettings = Field(default_factory=JigSettings)
    micro_bump: MicroBump = Field(default_factory=MicroBump, alias="microBump")

    @property
    def micro_bump_deg(self) -> float:
        """Bump added to every angle, zero when disabled."""
        return self.micro_bump.bump_deg if self.micro_bump.enabled else 0.0


# ============================================================================
# Geometry engine input/output
# ============================================================================

class GeometryInput(BaseModel):
    """One forward-solve request. Lengths in mm, angles in degrees per side."""
    model_config = _VALUE_CONFIG

    base: BaseSide
    wheel_diameter_mm: float = Field(alias="D")
    projection_mm: float = Field(alias="A")
    beta_deg: float = Field(alias="betaDeg")
    jig_diameter_mm: float = Field(alias="Dj")
    tool_diameter_mm: float = Field(alias="Ds")
    constants: MachineConstants
    micro_bump_deg: float = Field(default=0.0, alias="microBumpDeg")
    angle_offset_deg: float = Field(default=0.0, alias="angleOffsetDeg")

    @field_validator('base', mode='before')
    @classmethod
    def coerce_base(cls, v):
        return _coerce_base(v)

    @property
    def beta_total_deg(self) -> float:
        return self.beta_deg + self.micro_bump_deg + self.angle_offset_deg


class GeometryOutput(BaseModel):
    """Forward-solve result. Values may be non-finite for degenerate input."""
    model_config = _VALUE_CONFIG

    hr_mm: float = Field(alias="hr")  # Wheel to tool top, rear referenced
    hn_mm: float = Field(alias="hn")  # Datum to tool top, requested base
    beta_eff_deg: float = Field(alias="betaEffDeg")


# ============================================================================
# Wheels and progressions
# ============================================================================

class Wheel(BaseModel):
    """A grinding or honing wheel."""
    model_config = _VALUE_CONFIG

    id: str
    name: str
    diameter_mm: float = Field(alias="D")
    angle_offset_deg: float = Field(default=0.0, alias="angleOffset")
    base_for_hn: BaseSide = Field(default=BaseSide.REAR, alias="baseForHn")
    is_honing: bool = Field(default=False, alias="isHoning")
    grit: Optional[str] = None

    @field_validator('base_for_hn', mode='before')
    @classmethod
    def coerce_base(cls, v):
        return _coerce_base(v)


class ProgressionStep(BaseModel):
    """One entry of a sharpening progression. Unset fields follow the wheel."""
    model_config = _VALUE_CONFIG

    id: str
    wheel_id: str = Field(alias="wheelId")
    base: Optional[BaseSide] = None
    angle_offset_deg: Optional[float] = Field(default=None, alias="angleOffset")
    notes: str = ""

    @field_validator('base', mode='before')
    @classmethod
    def coerce_base(cls, v):
        if v is None or v == "":
            return None
        return _coerce_base(v)


class PresetStepRef(BaseModel):
    """Step stored in a preset; keeps the wheel name to survive id changes."""
    model_config = _VALUE_CONFIG

    wheel_id: str = Field(alias="wheelId")
    wheel_name: str = Field(alias="wheelName")
    base: BaseSide
    angle_offset_deg: float = Field(default=0.0, alias="angleOffset")
    notes: Optional[str] = None

    @field_validator('base', mode='before')
    @classmethod
    def coerce_base(cls, v):
        return _coerce_base(v)


class SessionPreset(BaseModel):
    """A named, reusable progression."""
    model_config = _VALUE_CONFIG

    id: str
    name: str
    notes: Optional[str] = None
    created_at: str = Field(alias="createdAt")
    version: int = 1
    steps: Tuple[PresetStepRef, ...] = ()


class WheelResult(BaseModel):
    """Heights for one resolved progression step."""
    model_config = _VALUE_CONFIG

    wheel: Wheel
    base_for_hn: BaseSide = Field(alias="baseForHn")
    orientation_label: str = Field(alias="orientationLabel")
    beta_eff_deg: float = Field(alias="betaEffDeg")
    hr_wheel_mm: float = Field(alias="hrWheel")
    hn_base_mm: float = Field(alias="hnBase")
    step: Optional[ProgressionStep] = None


# ============================================================================
# Calibration
# ============================================================================

def _to_text(v):
    if v is None:
        return ""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return repr(v)
    return v


class CalibrationMeasurement(BaseModel):
    """One measurement row exactly as entered (text)."""
    model_config = _VALUE_CONFIG

    hn: str = ""                               # Datum to tool top (mm)
    ca_outer: str = Field(default="", alias="CAo")  # Axle to tool, outer-to-outer span (mm)

    @field_validator('hn', 'ca_outer', mode='before')
    @classmethod
    def coerce_text(cls, v):
        return _to_text(v)


class CalibrationDiagnostics(BaseModel):
    """Fit quality of one calibration run."""
    model_config = _VALUE_CONFIG

    residuals: Tuple[float, ...] = ()  # Measured minus predicted hn, per row
    max_abs_residual_mm: float = Field(alias="maxAbsResidualMm")


class CalibrationResult(BaseModel):
    """Solved offsets for one base."""
    model_config = _VALUE_CONFIG

    hc: float
    o: float
    diagnostics: CalibrationDiagnostics


class CalibrationReport(BaseModel):
    """Calibration workflow result, ready to review before applying."""
    model_config = _VALUE_CONFIG

    base: BaseSide
    hc: float
    o: float
    diagnostics: CalibrationDiagnostics
    angle_error_deg: Optional[float] = Field(default=None, alias="angleErrorDeg")
    proposed_constants: MachineConstants = Field(alias="proposedConstants")
    count: int = 0  # Rows offered to the solver
    measurements: Tuple[CalibrationMeasurement, ...] = ()  # The rows offered, as entered

    @property
    def result(self) -> CalibrationResult:
        return CalibrationResult(hc=self.hc, o=self.o, diagnostics=self.diagnostics)


class CalibrationSnapshot(BaseModel):
    """Saved record of a calibration run."""
    model_config = _VALUE_CONFIG

    id: str
    base: BaseSide
    base_tag: Optional[BaseSide] = Field(default=None, alias="baseTag")
    name: str = ""
    measurements: Tuple[CalibrationMeasurement, ...] = ()
    diagnostics: CalibrationDiagnostics
    angle_error_deg: Optional[float] = Field(default=None, alias="angleErrorDeg")
    count: int  # Rows the solver used
    axle_diameter_mm: float = Field(alias="Da")
    tool_diameter_mm: float = Field(alias="Ds")
    created_at: str = Field(alias="createdAt")
    hc: Optional[float] = None
    o: Optional[float] = None

    @field_validator('base_tag', mode='before')
    @classmethod
    def coerce_base_tag(cls, v):
        if v is None or v == "":
            return None
        return _coerce_base(v)


# ============================================================================
# Application state bundle
# ============================================================================

def default_wheels() -> Tuple[Wheel, ...]:
    """The stock wheel catalogue."""
    return tuple(Wheel.model_validate(w) for w in default_wheel_data())


class AppState(BaseModel):
    """Everything the web app exports: settings, wheels, steps and presets."""
    model_config = _VALUE_CONFIG

    version: int = STATE_VERSION
    global_settings: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    constants: MachineConstants = Field(default_factory=MachineConstants)
    wheels: Tuple[Wheel, ...] = Field(default_factory=default_wheels)
    session_steps: Tuple[ProgressionStep, ...] = Field(default=(), alias="sessionSteps")
    session_presets: Tuple[SessionPreset, ...] = Field(default=(), alias="sessionPresets")
    height_mode: HeightMode = Field(default=HeightMode.HN, alias="heightMode")
    calib_snapshots: Tuple[CalibrationSnapshot, ...] = Field(default=(), alias="calibSnapshots")
    calib_applied_ids: Dict[str, str] = Field(
        default_factory=lambda: {"rear": "", "front": ""}, alias="calibAppliedIds"
    )

    @field_validator('height_mode', mode='before')
    @classmethod
    def coerce_height_mode(cls, v):
        # Anything other than "hr" reads as the default
        if isinstance(v, str) and v.strip().lower() == "hr":
            return HeightMode.HR
        return HeightMode.HN

    def machine(self) -> MachineConfig:
        """Machine config implied by the global settings and constants."""
        return MachineConfig(
            constants=self.constants,
            tool_diameter_mm=self.global_settings.tool_diameter_mm,
            jig_diameter_mm=self.global_settings.jig.diameter_mm,
        )


def default_state() -> AppState:
    """Fresh state with stock settings, constants and wheels."""
    return AppState()


# Expected JSON type of each top-level section
_SECTION_TYPES = {
    "global": dict,
    "constants": dict,
    "wheels": list,
    "sessionSteps": list,
    "sessionPresets": list,
    "calibSnapshots": list,
    "calibAppliedIds": dict,
}


def _to_dict(model: BaseModel) -> dict:
    """Convert model to a JSON-compatible dict using the web app's keys."""
    return model.model_dump(mode='json', by_alias=True)


def parse_state_data(data: Any) -> AppState:
    """
    Build AppState from already-decoded JSON.

    Lenient like the web app: a section with the wrong JSON type is replaced
    by its default, an empty wheel list falls back to the stock catalogue,
    and duplicate wheel ids keep their first occurrence.

    Raises:
        ValueError: If data is not a JSON object
        ValidationError: If a well-typed section has invalid fields
    """
    from ..session import dedupe_wheels

    if not isinstance(data, dict):
        raise ValueError("Invalid state JSON - root must be an object")

    data = dict(data)

    try:
        version = int(data.get("version") or 1)
    except (TypeError, ValueError):
        version = 1
    if version < 1:
        raise ValueError(f"Invalid state version: {data.get('version')!r}")
    data["version"] = version

    for key, expected in _SECTION_TYPES.items():
        if key in data and not isinstance(data[key], expected):
            logger.warning(f"Ignoring malformed '{key}' section, using defaults")
            del data[key]

    state = AppState.model_validate(data)

    if not state.wheels:
        logger.warning("State has no wheels, using the default catalogue")
        state = state.model_copy(update={"wheels": default_wheels()})
    else:
        deduped = dedupe_wheels(state.wheels)
        if len(deduped) != len(state.wheels):
            state = state.model_copy(update={"wheels": deduped})

    return state


def parse_state(raw: str) -> AppState:
    """
    Parse an exported state string.

    Raises:
        ValueError: If raw is not valid JSON or not a JSON object
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid state JSON: {e}") from e
    return parse_state_data(data)


def export_state(state: AppState, indent: int = 2) -> str:
    """Serialize state to the web app's export format."""
    return json.dumps(_to_dict(state), indent=indent)


def load_state_json(filepath: Union[str, Path]) -> AppState:
    """
    Load calculator state from a JSON export.

    Args:
        filepath: Path to JSON file exported by the web app or save_state_json

    Returns:
        AppState with defaults filled in for missing sections

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not a JSON object
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"State file not found: {filepath}")

    with open(filepath, 'r') as f:
        raw = f.read()

    return parse_state(raw)


def save_state_json(state: AppState, filepath: Union[str, Path]) -> None:
    """Save calculator state to a JSON file."""
    filepath = Path(filepath)
    with open(filepath, 'w') as f:
        f.write(export_state(state))


