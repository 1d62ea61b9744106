"""
Numerical constants for jig height calculations.

This module centralizes the numbers used by the calculator, calibration and
validation modules so they are not hardcoded in functions.

MODIFICATION GUIDELINES:
- Always include units in constant names (_MM, _DEG)
- Validation thresholds are engineering judgment and may be tuned
- Solver tolerances change results; adjust only with matching tests
"""

from typing import Tuple

# =============================================================================
# Calibration solver
# =============================================================================

# Rows whose height is this close to the pivot row cannot be paired with it
PIVOT_HEIGHT_TOLERANCE_MM: float = 1e-9

# The solver needs two usable rows; three or more are advised
CALIBRATION_ROWS_MIN: int = 2
CALIBRATION_ROWS_RECOMMENDED: int = 3

# =============================================================================
# Angle-error estimation
# =============================================================================

# Half width of the symmetric difference used for dhn/dbeta
DERIVATIVE_STEP_DEG: float = 0.05

# Below this the height barely moves with angle and cannot be inverted
MIN_ANGLE_SENSITIVITY_MM_PER_DEG: float = 1e-6

# Wheel diameters scanned when the user has no wheels configured
FALLBACK_WHEEL_DIAMETERS_MM: Tuple[float, ...] = (250.0, 215.0, 200.0)

# =============================================================================
# Validation thresholds (engineering judgment)
# =============================================================================

# Effective angle further than this from the requested angle means clamping
ANGLE_ROUND_TRIP_TOLERANCE_DEG: float = 1e-6

# Usable one-sided grind angles
ANGLE_MIN_DEG: float = 0.0
ANGLE_MAX_DEG: float = 90.0

# Calibration fit quality
RESIDUAL_WARNING_MM: float = 0.1
RESIDUAL_ERROR_MM: float = 0.5
ANGLE_ERROR_WARNING_DEG: float = 0.25
ANGLE_ERROR_ERROR_DEG: float = 1.0

# =============================================================================
# Results
# =============================================================================

ORIENTATION_LABELS = {
    "rear": "Edge leading (rear base)",
    "front": "Edge trailing (front base)",
}
