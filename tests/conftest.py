"""
Pytest configuration and shared fixtures for anglesetter tests.
"""

import math

import pytest

from anglesetter.io import (
    GeometryInput,
    GlobalSettings,
    MachineConfig,
    MachineConstants,
    Wheel,
    default_wheels,
)


# ─── Reference configuration ─────────────────────────────────────────────
#
# 250mm wheel, 127.39mm projection, 16° per side, stock jig and support
# bar, default constants. Hand-computed: hn ≈ 159.995mm, hr ≈ 70.703mm,
# front-base hn ≈ 91.24mm, dhn/dβ ≈ 1.43mm per degree.

REFERENCE_HN_MM = 159.995
REFERENCE_HR_MM = 70.703
REFERENCE_FRONT_HN_MM = 91.24


@pytest.fixture
def reference_geometry_data():
    """Forward-solve request using the web app's JSON keys."""
    return {
        "base": "rear",
        "D": 250,
        "A": 127.39,
        "betaDeg": 16,
        "Dj": 12,
        "Ds": 11.98,
        "constants": {
            "rear": {"hc": 29, "o": 50},
            "front": {"hc": 51.3, "o": 131.7},
        },
    }


@pytest.fixture
def reference_geometry(reference_geometry_data):
    return GeometryInput.model_validate(reference_geometry_data)


@pytest.fixture
def global_settings():
    return GlobalSettings()


@pytest.fixture
def machine():
    return MachineConfig()


@pytest.fixture
def wheels():
    """Default wheel catalogue."""
    return default_wheels()


@pytest.fixture
def grinding_wheel():
    return Wheel(id="w-250", name="Grinding 250", diameter_mm=250.0)


@pytest.fixture
def honing_wheel():
    return Wheel(
        id="w-hone",
        name="Leather Hone",
        diameter_mm=215.0,
        base_for_hn="front",
        is_honing=True,
    )


@pytest.fixture
def synthetic_rows():
    """Calibration rows generated from known hc and o (rear defaults)."""
    return make_rows(hc=29.0, o=50.0, heights=(150.0, 160.0, 170.0))


# ─── Helpers ─────────────────────────────────────────────────────────────


def make_rows(hc, o, heights, axle_diameter=12.0, tool_diameter=11.98):
    """Build (hn, CAo) text rows that fit hc and o exactly.

    Inverts the forward relation: y = hn + hc - Rs, CA = sqrt(y² + o²),
    CAo = CA + Ra + Rs.
    """
    Ra = axle_diameter / 2
    Rs = tool_diameter / 2
    rows = []
    for hn in heights:
        y = hn + hc - Rs
        CA = math.hypot(y, o)
        rows.append({"hn": repr(hn), "CAo": repr(CA + Ra + Rs)})
    return rows


def constants_with(base, hc, o):
    """Default constants with one base replaced."""
    return MachineConstants().with_base(base, hc, o)
