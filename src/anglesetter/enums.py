"""Type-safe enums for the jig height calculator."""

from enum import Enum


class BaseSide(str, Enum):
    """Universal support base the height is measured from"""
    REAR = "rear"    # Edge leading, grinding against rotation
    FRONT = "front"  # Edge trailing, honing wheels always use this side


class HeightMode(str, Enum):
    """Which height the user sets on the machine"""
    HN = "hn"  # Datum to reference tool top, per base
    HR = "hr"  # Wheel to reference tool top, rear referenced
