"""
Progression editing and presets.

A session is the ordered list of ProgressionStep the user is working
through. Presets store a copy of that list under a name; each stored step
keeps the wheel name so the preset still loads after wheel ids change,
e.g. when the wheel list was re-imported.

All functions return new tuples and never modify their arguments.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence, Tuple, Union
from uuid import uuid4

from .enums import BaseSide
from .io import PresetStepRef, ProgressionStep, SessionPreset, Wheel

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def dedupe_wheels(wheels: Iterable[Wheel]) -> Tuple[Wheel, ...]:
    """Drop wheels whose id was already seen; the first occurrence wins."""
    seen = set()
    deduped = []
    for wheel in wheels:
        if wheel.id in seen:
            logger.debug(f"Dropping duplicate wheel id {wheel.id}")
            continue
        seen.add(wheel.id)
        deduped.append(wheel)
    return tuple(deduped)


def new_step(
    wheel: Wheel,
    base: Optional[Union[BaseSide, str]] = None,
    angle_offset_deg: Optional[float] = None,
    notes: str = "",
) -> ProgressionStep:
    """Create a step for a wheel with a fresh id.

    Leaving base or angle_offset_deg as None makes the step follow the
    wheel's own setting.
    """
    return ProgressionStep(
        id=_new_id("step"),
        wheel_id=wheel.id,
        base=base,
        angle_offset_deg=angle_offset_deg,
        notes=notes,
    )


def move_step(
    steps: Sequence[ProgressionStep],
    index: int,
    delta: int,
) -> Tuple[ProgressionStep, ...]:
    """Move one step up (negative delta) or down; out of range is a no-op."""
    new_index = index + delta
    if not (0 <= index < len(steps)) or not (0 <= new_index < len(steps)):
        return tuple(steps)
    reordered = list(steps)
    item = reordered.pop(index)
    reordered.insert(new_index, item)
    return tuple(reordered)


def remove_wheel(
    wheels: Sequence[Wheel],
    steps: Sequence[ProgressionStep],
    wheel_id: str,
) -> Tuple[Tuple[Wheel, ...], Tuple[ProgressionStep, ...]]:
    """Delete a wheel together with every step that uses it."""
    remaining_wheels = tuple(w for w in wheels if w.id != wheel_id)
    remaining_steps = tuple(s for s in steps if s.wheel_id != wheel_id)
    return remaining_wheels, remaining_steps


def create_preset(
    name: str,
    steps: Sequence[ProgressionStep],
    wheels: Sequence[Wheel],
    existing: Sequence[SessionPreset] = (),
    notes: Optional[str] = None,
) -> SessionPreset:
    """
    Save a progression as a named preset.

    Steps are stored with their effective base and angle offset, so a
    later change to a wheel's defaults does not alter the preset. Steps
    whose wheel is gone are left out.

    Raises:
        ValueError: If the name is blank, already used (ignoring case), or
            no step refers to a known wheel
    """
    name = name.strip()
    if not name:
        raise ValueError("Preset name must not be empty")

    if any(p.name.lower() == name.lower() for p in existing):
        raise ValueError(f"A preset named {name!r} already exists")

    by_id = {w.id: w for w in reversed(list(wheels))}

    refs = []
    for step in steps:
        wheel = by_id.get(step.wheel_id)
        if wheel is None:
            logger.debug(f"Leaving step {step.id} out of preset: wheel {step.wheel_id} not found")
            continue
        refs.append(PresetStepRef(
            wheel_id=wheel.id,
            wheel_name=wheel.name,
            base=step.base if step.base is not None else wheel.base_for_hn,
            angle_offset_deg=(
                step.angle_offset_deg if step.angle_offset_deg is not None
                else wheel.angle_offset_deg
            ),
            notes=step.notes or None,
        ))

    if not refs:
        raise ValueError("Preset needs at least one step with a known wheel")

    return SessionPreset(
        id=_new_id("preset"),
        name=name,
        notes=notes,
        created_at=_now(),
        steps=tuple(refs),
    )


def load_preset(
    preset: SessionPreset,
    wheels: Sequence[Wheel],
) -> Tuple[ProgressionStep, ...]:
    """
    Turn a preset back into session steps.

    Each stored step resolves to a wheel by id, then by exact name. Steps
    that resolve to no wheel are dropped, and every loaded step gets a new
    id. An empty result means nothing in the preset matches the current
    wheels.
    """
    wheel_list = list(wheels)

    steps = []
    for ref in preset.steps:
        wheel = next((w for w in wheel_list if w.id == ref.wheel_id), None)
        if wheel is None:
            wheel = next((w for w in wheel_list if w.name == ref.wheel_name), None)
        if wheel is None:
            logger.debug(f"Preset {preset.name!r}: no wheel for {ref.wheel_name!r}")
            continue
        steps.append(ProgressionStep(
            id=_new_id("step"),
            wheel_id=wheel.id,
            base=ref.base,
            angle_offset_deg=ref.angle_offset_deg,
            notes=ref.notes or "",
        ))

    return tuple(steps)


def find_preset(
    presets: Sequence[SessionPreset],
    key: str,
) -> Optional[SessionPreset]:
    """Look a preset up by id, then by name ignoring case."""
    for preset in presets:
        if preset.id == key:
            return preset
    key_lower = key.strip().lower()
    for preset in presets:
        if preset.name.lower() == key_lower:
            return preset
    return None
