"""
Jig Height Calculator - Core Calculations

Pure functions mapping a wheel, a target bevel angle and the machine's
calibrated offsets to the height a user sets on the universal support.

Geometry (side view, all lengths mm):
- The jig pivots on the reference tool (universal support bar) and the
  edge touches the wheel at distance A (projection) from the jig apex.
- The wheel centre, the tool centre and the apex form a triangle; the
  bevel angle fixes the side wheel centre to tool centre (CA).
- Each base sits at a horizontal offset o from the axle and a vertical
  datum offset hc, which turns CA into a readable height hn.

Nothing here raises. Degenerate inputs (zero or negative diameters)
propagate as NaN or infinity and are reported by validation instead.
"""

import logging
from math import asin, atan, copysign, inf, isfinite, isnan, nan, pi, sin, sqrt
from typing import Iterable, List, Optional, Sequence

from ..enums import BaseSide
from ..io import (
    GeometryInput,
    GeometryOutput,
    GlobalSettings,
    MachineConfig,
    ProgressionStep,
    Wheel,
    WheelResult,
)
from .constants import ORIENTATION_LABELS

logger = logging.getLogger(__name__)


def deg2rad(d: float) -> float:
    """Degrees to radians"""
    return d * pi / 180


def rad2deg(r: float) -> float:
    """Radians to degrees"""
    return r * 180 / pi


def _ieee_div(num: float, den: float) -> float:
    """Division that yields inf or NaN for a zero divisor instead of raising."""
    if den != 0:
        return num / den
    if num == 0 or isnan(num):
        return nan
    return copysign(inf, num) * copysign(1.0, den)


def _sqrt(value: float) -> float:
    if isnan(value) or value < 0:
        return nan
    return sqrt(value)


def _sin(value: float) -> float:
    if not isfinite(value):
        return nan
    return sin(value)


def compute_heights(geometry: GeometryInput) -> GeometryOutput:
    """
    Solve jig heights for one wheel, angle and base.

    Closed form:
        R   = D / 2
        jg  = A - Ds/2                  apex to jig tangent point
        CJ  = Dj/2 + Ds/2               jig centre to tool centre
        CG  = sqrt(jg² + CJ²)           apex to tool centre
        φ   = atan(CJ / jg)
        CA  = sqrt(CG² + R² + 2·CG·R·sin(β - φ))
        hr  = (CA - R) + Ds/2           always rear referenced
        y   = sqrt(max(CA² - o², 0))
        hn  = y - hc + Ds/2

    Where β is the total angle (target + micro bump + angle offset) and
    (hc, o) are the constants of the requested base.

    The effective angle is recovered by inverting the CA equation with
    the asin argument clamped to [-1, 1]; it equals β up to rounding and
    is for display only.

    Args:
        geometry: GeometryInput with lengths in mm and angles in degrees

    Returns:
        GeometryOutput (values may be non-finite for degenerate input)
    """
    R = geometry.wheel_diameter_mm / 2
    Ds = geometry.tool_diameter_mm

    jg = geometry.projection_mm - Ds / 2
    CJ = geometry.jig_diameter_mm / 2 + Ds / 2
    CG = _sqrt(jg * jg + CJ * CJ)
    phi = atan(_ieee_div(CJ, jg))

    beta_rad = deg2rad(geometry.beta_total_deg)

    CA = _sqrt(CG * CG + R * R + 2 * CG * R * _sin(beta_rad - phi))

    hr = (CA - R) + Ds / 2

    offsets = geometry.constants.for_base(geometry.base)
    y = _sqrt(max(CA * CA - offsets.o * offsets.o, 0.0))
    hn = y - offsets.hc + Ds / 2

    arg = _ieee_div(CA * CA - CG * CG - R * R, 2 * CG * R)
    if not isnan(arg):
        arg = max(-1.0, min(1.0, arg))
    beta_eff_deg = rad2deg(asin(arg) + phi)

    return GeometryOutput(hr_mm=hr, hn_mm=hn, beta_eff_deg=beta_eff_deg)


def resolve_base(wheel: Wheel, step: Optional[ProgressionStep] = None) -> BaseSide:
    """
    Base a step is measured from.

    Honing wheels always use the front base. Otherwise the step's own
    base wins, falling back to the wheel's default.
    """
    if wheel.is_honing:
        return BaseSide.FRONT
    if step is not None and step.base is not None:
        return step.base
    return wheel.base_for_hn


def compute_results_for_steps(
    wheels: Sequence[Wheel],
    steps: Optional[Iterable[ProgressionStep]],
    global_settings: GlobalSettings,
    machine: MachineConfig,
) -> List[WheelResult]:
    """
    Compute heights for every step of a progression.

    Steps whose wheel no longer exists are dropped. Each remaining step is
    solved twice: once forced to the rear base for hr, once at its
    resolved base for hn and the effective angle. Step order is kept.

    Args:
        wheels: Known wheels
        steps: Ordered progression (None or empty gives no results)
        global_settings: Projection, target angle and micro bump
        machine: Constants plus tool and jig diameters

    Returns:
        One WheelResult per resolvable step
    """
    if not steps:
        return []

    by_id = {}
    for wheel in wheels:
        by_id.setdefault(wheel.id, wheel)

    results: List[WheelResult] = []
    for step in steps:
        wheel = by_id.get(step.wheel_id)
        if wheel is None:
            logger.debug(f"Dropping step {step.id}: wheel {step.wheel_id} not found")
            continue

        base = resolve_base(wheel, step)
        angle_offset = (
            step.angle_offset_deg if step.angle_offset_deg is not None else wheel.angle_offset_deg
        )

        common = GeometryInput(
            base=base,
            wheel_diameter_mm=wheel.diameter_mm,
            projection_mm=global_settings.projection_mm,
            beta_deg=global_settings.target_angle_deg,
            jig_diameter_mm=machine.jig_diameter_mm,
            tool_diameter_mm=machine.tool_diameter_mm,
            constants=machine.constants,
            micro_bump_deg=global_settings.micro_bump_deg,
            angle_offset_deg=angle_offset,
        )

        rear = compute_heights(common.model_copy(update={"base": BaseSide.REAR}))
        at_base = compute_heights(common)

        results.append(WheelResult(
            wheel=wheel,
            base_for_hn=base,
            orientation_label=ORIENTATION_LABELS[base.value],
            beta_eff_deg=at_base.beta_eff_deg,
            hr_wheel_mm=rear.hr_mm,
            hn_base_mm=at_base.hn_mm,
            step=step,
        ))

    return results
