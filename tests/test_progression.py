"""
Tests for batch height computation over a progression.
"""

import pytest

from anglesetter.calculator import compute_heights, compute_results_for_steps, resolve_base
from anglesetter.enums import BaseSide
from anglesetter.io import GeometryInput, GlobalSettings, MicroBump, ProgressionStep, Wheel
from anglesetter.session import new_step

from conftest import REFERENCE_HN_MM


class TestResolveBase:
    """Which base a step is measured from."""

    def test_honing_always_front(self, honing_wheel):
        step = ProgressionStep(id="s", wheel_id=honing_wheel.id, base="rear")
        assert resolve_base(honing_wheel, step) == BaseSide.FRONT

    def test_step_base_wins(self, grinding_wheel):
        step = ProgressionStep(id="s", wheel_id=grinding_wheel.id, base="front")
        assert resolve_base(grinding_wheel, step) == BaseSide.FRONT

    def test_falls_back_to_wheel(self):
        wheel = Wheel(id="w", name="W", diameter_mm=200, base_for_hn="front")
        step = ProgressionStep(id="s", wheel_id="w")
        assert resolve_base(wheel, step) == BaseSide.FRONT
        assert resolve_base(wheel) == BaseSide.FRONT


class TestComputeResultsForSteps:
    """Aggregation over ordered steps."""

    def test_empty_steps(self, wheels, global_settings, machine):
        assert compute_results_for_steps(wheels, [], global_settings, machine) == []
        assert compute_results_for_steps(wheels, None, global_settings, machine) == []

    def test_reference_step(self, grinding_wheel, global_settings, machine):
        steps = [new_step(grinding_wheel, base="rear")]
        results = compute_results_for_steps([grinding_wheel], steps, global_settings, machine)

        assert len(results) == 1
        assert results[0].hn_base_mm == pytest.approx(REFERENCE_HN_MM, abs=0.05)
        assert results[0].beta_eff_deg == pytest.approx(16.0, abs=1e-6)
        assert results[0].orientation_label == "Edge leading (rear base)"
        assert results[0].step == steps[0]

    def test_missing_wheel_dropped(self, grinding_wheel, global_settings, machine):
        steps = [
            new_step(grinding_wheel),
            ProgressionStep(id="gone", wheel_id="no-such-wheel"),
            new_step(grinding_wheel, base="front"),
        ]
        results = compute_results_for_steps([grinding_wheel], steps, global_settings, machine)

        assert len(results) == 2
        assert [r.step.id for r in results] == [steps[0].id, steps[2].id]

    def test_honing_override(self, honing_wheel, global_settings, machine):
        step = new_step(honing_wheel, base="rear")
        result = compute_results_for_steps([honing_wheel], [step], global_settings, machine)[0]

        assert result.base_for_hn == BaseSide.FRONT
        assert result.orientation_label == "Edge trailing (front base)"

    def test_hr_is_rear_hn_at_resolved_base(self, honing_wheel, global_settings, machine):
        result = compute_results_for_steps(
            [honing_wheel], [new_step(honing_wheel)], global_settings, machine
        )[0]
        geometry = GeometryInput(
            base="front",
            wheel_diameter_mm=215.0,
            projection_mm=global_settings.projection_mm,
            beta_deg=global_settings.target_angle_deg,
            jig_diameter_mm=machine.jig_diameter_mm,
            tool_diameter_mm=machine.tool_diameter_mm,
            constants=machine.constants,
        )
        front = compute_heights(geometry)
        rear = compute_heights(geometry.model_copy(update={"base": BaseSide.REAR}))

        assert result.hn_base_mm == pytest.approx(front.hn_mm)
        assert result.hr_wheel_mm == pytest.approx(rear.hr_mm)

    def test_order_preserved(self, wheels, global_settings, machine):
        chosen = [wheels[3], wheels[0], wheels[8]]
        steps = [new_step(w) for w in chosen]
        results = compute_results_for_steps(wheels, steps, global_settings, machine)

        assert [r.wheel.id for r in results] == [w.id for w in chosen]

    def test_wheel_angle_offset_used_when_step_unset(self, global_settings, machine):
        wheel = Wheel(id="w", name="Offset", diameter_mm=250, angle_offset_deg=1.0)
        result = compute_results_for_steps([wheel], [new_step(wheel)], global_settings, machine)[0]
        assert result.beta_eff_deg == pytest.approx(17.0, abs=1e-6)

    def test_step_angle_offset_overrides_wheel(self, global_settings, machine):
        wheel = Wheel(id="w", name="Offset", diameter_mm=250, angle_offset_deg=1.0)
        step = new_step(wheel, angle_offset_deg=-2.0)
        result = compute_results_for_steps([wheel], [step], global_settings, machine)[0]
        assert result.beta_eff_deg == pytest.approx(14.0, abs=1e-6)

    def test_micro_bump_applies_when_enabled(self, grinding_wheel, machine):
        settings = GlobalSettings(micro_bump=MicroBump(enabled=True, bump_deg=1.5))
        result = compute_results_for_steps(
            [grinding_wheel], [new_step(grinding_wheel)], settings, machine
        )[0]
        assert result.beta_eff_deg == pytest.approx(17.5, abs=1e-6)

    def test_micro_bump_ignored_when_disabled(self, grinding_wheel, machine):
        settings = GlobalSettings(micro_bump=MicroBump(enabled=False, bump_deg=1.5))
        result = compute_results_for_steps(
            [grinding_wheel], [new_step(grinding_wheel)], settings, machine
        )[0]
        assert result.beta_eff_deg == pytest.approx(16.0, abs=1e-6)

    def test_duplicate_wheel_id_uses_first(self, global_settings, machine):
        first = Wheel(id="dup", name="First", diameter_mm=250)
        second = Wheel(id="dup", name="Second", diameter_mm=200)
        results = compute_results_for_steps(
            [first, second], [new_step(first)], global_settings, machine
        )
        assert results[0].wheel.name == "First"
