"""
Jig Height Calculator - Base Calibration

Recovers the datum offsets (hc, o) of one base from a few measurements of
the reference tool against the grinder axle. No wheel and no angle are
involved: each row is a measured height hn and an outer-to-outer caliper
span between axle and tool.

Model, per row i (Ra, Rs = axle and tool radii):
    CA_i = CAo_i - Ra - Rs              centre to centre
    CA_i² = o² + (hn_i + t)²            with t = hc - Rs

Subtracting row 0 from row i eliminates o and leaves t linear. Every
other row is paired with row 0, the estimates of t are averaged, and o is
the root of the mean of the positive o² estimates. Row 0 is the anchor of
every pair, so the fit is order dependent and an outlier in the first row
moves the result more than one elsewhere.
"""

import logging
from datetime import datetime, timezone
from math import isfinite, sqrt
from typing import Iterable, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from ..enums import BaseSide
from ..io import (
    CalibrationDiagnostics,
    CalibrationMeasurement,
    CalibrationReport,
    CalibrationResult,
    CalibrationSnapshot,
    GeometryInput,
    GlobalSettings,
    MachineConfig,
    MachineConstants,
    Wheel,
    coerce_number,
)
from ..io.defaults import DEFAULT_AXLE_DIAMETER_MM
from .constants import (
    CALIBRATION_ROWS_MIN,
    DERIVATIVE_STEP_DEG,
    FALLBACK_WHEEL_DIAMETERS_MM,
    MIN_ANGLE_SENSITIVITY_MM_PER_DEG,
    PIVOT_HEIGHT_TOLERANCE_MM,
)
from .core import compute_heights

logger = logging.getLogger(__name__)

MeasurementInput = Union[CalibrationMeasurement, dict]


def _row_values(row: MeasurementInput) -> Tuple[float, float]:
    """Parse (hn, CAo) from a measurement model or a dict; NaN when unusable."""
    if isinstance(row, CalibrationMeasurement):
        hn_text, span_text = row.hn, row.ca_outer
    else:
        hn_text = row.get("hn")
        span_text = row.get("CAo", row.get("ca_outer"))
    return coerce_number(hn_text, float("nan")), coerce_number(span_text, float("nan"))


def _as_measurement(row: MeasurementInput) -> CalibrationMeasurement:
    if isinstance(row, CalibrationMeasurement):
        return row
    return CalibrationMeasurement.model_validate(row)


def calibrate_base(
    rows: Iterable[MeasurementInput],
    axle_diameter_mm: float,
    tool_diameter_mm: float,
) -> Optional[CalibrationResult]:
    """
    Solve hc and o for one base from measured (hn, CAo) rows.

    Args:
        rows: Measurements as entered; rows where either value does not
            parse to a finite number are skipped
        axle_diameter_mm: Axle diameter Da
        tool_diameter_mm: Reference tool diameter Ds

    Returns:
        CalibrationResult with per-row residuals (measured minus predicted
        hn), or None when fewer than two usable rows remain, no row pairs
        with row 0, or no row gives a positive o².
    """
    Ra = axle_diameter_mm / 2
    Rs = tool_diameter_mm / 2

    CA: List[float] = []
    hn: List[float] = []
    for index, row in enumerate(rows):
        hn_i, span_i = _row_values(row)
        if not isfinite(hn_i) or not isfinite(span_i):
            logger.debug(f"Skipping calibration row {index}: missing or non-numeric value")
            continue
        CA.append(span_i - Ra - Rs)
        hn.append(hn_i)

    n = len(CA)
    if n < CALIBRATION_ROWS_MIN:
        return None

    # 1) t = hc - Rs from pairs anchored on row 0
    hn_0, CA_0 = hn[0], CA[0]
    t_values = []
    for i in range(1, n):
        if abs(hn[i] - hn_0) < PIVOT_HEIGHT_TOLERANCE_MM:
            logger.debug(f"Skipping calibration pair (0, {i}): equal heights")
            continue
        num = (CA_0 * CA_0 - CA[i] * CA[i]) - (hn_0 * hn_0 - hn[i] * hn[i])
        den = 2 * (hn_0 - hn[i])
        t_values.append(num / den)

    if not t_values:
        return None

    t = sum(t_values) / len(t_values)

    # 2) hc
    hc = t + Rs

    # 3) o from every row, ignoring inconsistent ones
    o2_values = []
    for i in range(n):
        y = hn[i] + t
        o2 = CA[i] * CA[i] - y * y
        if o2 > 0:
            o2_values.append(o2)
        else:
            logger.debug(f"Calibration row {i} gives non-positive o² ({o2:.4f}), ignored")
    if not o2_values:
        return None

    o = sqrt(sum(o2_values) / len(o2_values))

    # 4) Residuals through the forward height relation
    residuals = []
    for i in range(n):
        y = sqrt(max(CA[i] * CA[i] - o * o, 0.0))
        predicted = y - hc + Rs
        residuals.append(hn[i] - predicted)

    max_abs = max((abs(r) for r in residuals), default=0.0)

    return CalibrationResult(
        hc=hc,
        o=o,
        diagnostics=CalibrationDiagnostics(
            residuals=tuple(residuals),
            max_abs_residual_mm=max_abs,
        ),
    )


def estimate_max_angle_error_deg(
    diagnostics: CalibrationDiagnostics,
    base: Union[BaseSide, str],
    global_settings: GlobalSettings,
    machine: MachineConfig,
    wheels: Sequence[Wheel],
) -> Optional[float]:
    """
    Worst-case grind angle error implied by a calibration residual.

    First-order propagation, Δβ ≈ Δhn / (∂hn/∂β). The slope is a symmetric
    difference of compute_heights at β ± 0.05° for each wheel diameter
    (the fallback set 250/215/200 mm when no wheels are given). Diameters
    that are not positive, or where the slope is below 1e-6 mm/°, are
    skipped. Projection and target angle come from global_settings; tool
    and jig diameters and constants from machine.

    Returns:
        Largest angle error in degrees, or None when the residual is not a
        positive finite number or no diameter gives a usable slope.
    """
    max_residual = diagnostics.max_abs_residual_mm
    if not isfinite(max_residual) or max_residual <= 0:
        return None

    if wheels:
        diameters = [w.diameter_mm for w in wheels]
    else:
        diameters = list(FALLBACK_WHEEL_DIAMETERS_MM)

    beta = global_settings.target_angle_deg
    delta = DERIVATIVE_STEP_DEG

    max_angle = 0.0
    for D in diameters:
        if not isfinite(D) or D <= 0:
            logger.debug(f"Skipping wheel diameter {D}: not a positive number")
            continue

        geometry = GeometryInput(
            base=base,
            wheel_diameter_mm=D,
            projection_mm=global_settings.projection_mm,
            beta_deg=beta,
            jig_diameter_mm=machine.jig_diameter_mm,
            tool_diameter_mm=machine.tool_diameter_mm,
            constants=machine.constants,
        )
        hn_plus = compute_heights(geometry.model_copy(update={"beta_deg": beta + delta})).hn_mm
        hn_minus = compute_heights(geometry.model_copy(update={"beta_deg": beta - delta})).hn_mm

        slope = (hn_plus - hn_minus) / (2 * delta)
        if not abs(slope) >= MIN_ANGLE_SENSITIVITY_MM_PER_DEG:
            logger.debug(f"Skipping wheel diameter {D}: height insensitive to angle")
            continue

        angle_error = abs(max_residual / slope)
        if angle_error > max_angle:
            max_angle = angle_error

    if max_angle == 0:
        return None
    return max_angle


def run_calibration(
    rows: Sequence[MeasurementInput],
    base: Union[BaseSide, str],
    global_settings: GlobalSettings,
    machine: MachineConfig,
    wheels: Sequence[Wheel],
    axle_diameter_mm: Optional[float] = None,
    tool_diameter_mm: Optional[float] = None,
    count: Optional[int] = None,
) -> Optional[CalibrationReport]:
    """
    Calibrate one base and judge the fit before anything is applied.

    Uses the first ``count`` rows (all when None). A missing or zero axle
    diameter means the 12 mm default; a missing or zero tool diameter
    means the global tool diameter. The angle error is estimated against
    the proposed constants, i.e. the machine's constants with only this
    base replaced.

    Returns:
        CalibrationReport, or None when calibrate_base cannot solve
    """
    base = BaseSide(base.strip().lower()) if isinstance(base, str) else base
    Da = axle_diameter_mm or DEFAULT_AXLE_DIAMETER_MM
    Ds = tool_diameter_mm or global_settings.tool_diameter_mm

    rows_to_use = list(rows) if count is None else list(rows)[:count]

    result = calibrate_base(rows_to_use, Da, Ds)
    if result is None:
        logger.info(f"Calibration of {base.value} base failed: not enough usable rows")
        return None

    proposed = machine.constants.with_base(base, result.hc, result.o)
    machine_like = machine.model_copy(update={"constants": proposed})

    angle_error = estimate_max_angle_error_deg(
        result.diagnostics, base, global_settings, machine_like, wheels
    )

    logger.info(
        f"Calibrated {base.value} base: hc={result.hc:.3f}mm o={result.o:.3f}mm "
        f"max residual={result.diagnostics.max_abs_residual_mm:.4f}mm"
    )

    return CalibrationReport(
        base=base,
        hc=result.hc,
        o=result.o,
        diagnostics=result.diagnostics,
        angle_error_deg=angle_error,
        proposed_constants=proposed,
        count=len(rows_to_use),
        measurements=tuple(_as_measurement(row) for row in rows_to_use),
    )


def apply_calibration(
    constants: MachineConstants,
    base: Union[BaseSide, str],
    result: Union[CalibrationResult, CalibrationReport],
) -> MachineConstants:
    """Return constants with one base replaced by a calibration result."""
    return constants.with_base(base, result.hc, result.o)


def make_snapshot(
    report: CalibrationReport,
    axle_diameter_mm: float,
    tool_diameter_mm: float,
    name: str = "",
    created_at: Optional[str] = None,
) -> CalibrationSnapshot:
    """
    Record a calibration run for the history list.

    The snapshot keeps the rows as entered (blank ones included) and
    counts only the rows the solver used.
    """
    return CalibrationSnapshot(
        id=f"calib-{uuid4().hex[:12]}",
        base=report.base,
        base_tag=report.base,
        name=name.strip(),
        measurements=report.measurements,
        diagnostics=report.diagnostics,
        angle_error_deg=report.angle_error_deg,
        count=len(report.diagnostics.residuals),
        axle_diameter_mm=axle_diameter_mm,
        tool_diameter_mm=tool_diameter_mm,
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
        hc=report.hc,
        o=report.o,
    )
