"""
Default machine setup and wheel catalogue.

Values describe a 250 mm class wet grinder with the stock universal
support and square edge jig. Constants are reasonable starting points and
are expected to be replaced by calibration.
"""

from typing import Dict, List, Union

# Current persisted state layout
STATE_VERSION: int = 3

# Global settings
DEFAULT_PROJECTION_MM: float = 127.39
DEFAULT_TOOL_DIAMETER_MM: float = 11.98
DEFAULT_JIG_DIAMETER_MM: float = 12.0
DEFAULT_TARGET_ANGLE_DEG: float = 16.0

# Calibration
DEFAULT_AXLE_DIAMETER_MM: float = 12.0

# Per-base datum offsets (mm)
DEFAULT_REAR_HC_MM: float = 29.0
DEFAULT_REAR_O_MM: float = 50.0
DEFAULT_FRONT_HC_MM: float = 51.3
DEFAULT_FRONT_O_MM: float = 131.7

# (id, name, diameter_mm, honing)
_CATALOGUE = [
    # 250 mm class
    ("wheel-sg250", "SG-250 Original Grindstone", 250.0, False),
    ("wheel-sb250", "SB-250 Blackstone Silicon", 250.0, False),
    ("wheel-sj250", "SJ-250 Japanese Waterstone", 250.0, False),
    ("wheel-dc250", "DC-250 Diamond Wheel Coarse (360)", 250.0, False),
    ("wheel-df250", "DF-250 Diamond Wheel Fine (600)", 250.0, False),
    ("wheel-de250", "DE-250 Diamond Wheel Extra Fine (1200)", 250.0, False),
    ("wheel-la220", "LA-220 Leather Honing Wheel", 215.0, True),
    ("wheel-cw220", "CW-220 Composite Honing Wheel", 220.0, True),
    # 200 mm class
    ("wheel-sg200", "SG-200 Original Grindstone", 200.0, False),
    ("wheel-sj200", "SJ-200 Japanese Waterstone", 200.0, False),
    ("wheel-dc200", "DC-200 Diamond Wheel Coarse (360)", 200.0, False),
    ("wheel-df200", "DF-200 Diamond Wheel Fine (600)", 200.0, False),
    ("wheel-de200", "DE-200 Diamond Wheel Extra Fine (1200)", 200.0, False),
    ("wheel-la145", "LA-145 Leather Honing Wheel", 145.0, True),
]


def default_wheel_data() -> List[Dict[str, Union[str, float, bool]]]:
    """Return the default wheel catalogue as plain dicts (original JSON keys)."""
    return [
        {
            "id": wheel_id,
            "name": name,
            "D": diameter,
            "angleOffset": 0.0,
            "baseForHn": "front" if honing else "rear",
            "isHoning": honing,
        }
        for wheel_id, name, diameter, honing in _CATALOGUE
    ]
