"""
Command-line interface for jig height calculations.
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..calculator import (
    apply_calibration,
    calibration_to_markdown,
    calibration_to_summary,
    compute_heights,
    compute_results_for_steps,
    heights_to_markdown,
    heights_to_summary,
    make_snapshot,
    run_calibration,
    to_json,
    to_markdown,
    to_summary,
    validate_calibration,
    validate_geometry,
    validate_results,
)
from ..calculator.validation import ValidationResult
from ..io import (
    AppState,
    CalibrationMeasurement,
    GeometryInput,
    default_state,
    export_state,
    load_state_json,
    save_state_json,
)
from ..io.defaults import DEFAULT_AXLE_DIAMETER_MM
from ..session import find_preset, load_preset

logger = logging.getLogger(__name__)


def _load_state(path: Optional[str]) -> AppState:
    if path is None:
        return default_state()
    logger.debug(f"Loading state from {path}")
    return load_state_json(path)


def _print_messages(validation: ValidationResult) -> None:
    for msg in validation.messages:
        print(f"{msg.severity.value.upper()}: {msg.message}", file=sys.stderr)
        if msg.suggestion:
            print(f"  Suggestion: {msg.suggestion}", file=sys.stderr)


def _cmd_heights(args) -> int:
    state = _load_state(args.state)
    settings = state.global_settings

    geometry = GeometryInput(
        base=args.base,
        wheel_diameter_mm=args.wheel_diameter,
        projection_mm=args.projection if args.projection is not None else settings.projection_mm,
        beta_deg=args.angle if args.angle is not None else settings.target_angle_deg,
        jig_diameter_mm=(
            args.jig_diameter if args.jig_diameter is not None else settings.jig.diameter_mm
        ),
        tool_diameter_mm=(
            args.tool_diameter if args.tool_diameter is not None else settings.tool_diameter_mm
        ),
        constants=state.constants,
        micro_bump_deg=settings.micro_bump_deg,
        angle_offset_deg=args.angle_offset,
    )

    result = compute_heights(geometry)
    validation = validate_geometry(geometry, result)

    if args.format == 'json':
        print(result.model_dump_json(by_alias=True, indent=2))
    elif args.format == 'markdown':
        print(heights_to_markdown(geometry, result, validation))
    else:
        print(heights_to_summary(geometry, result))

    _print_messages(validation)
    return 0 if validation.valid else 1


def _cmd_progression(args) -> int:
    state = load_state_json(args.state)

    steps = state.session_steps
    if args.preset:
        preset = find_preset(state.session_presets, args.preset)
        if preset is None:
            print(f"Error: no preset named {args.preset!r}", file=sys.stderr)
            return 1
        steps = load_preset(preset, state.wheels)

    results = compute_results_for_steps(
        state.wheels, steps, state.global_settings, state.machine()
    )
    validation = validate_results(results)

    if args.format == 'json':
        print(to_json(results, state.global_settings, validation))
    elif args.format == 'markdown':
        print(to_markdown(results, state.global_settings, validation))
    else:
        print(to_summary(results, state.global_settings))

    _print_messages(validation)
    return 0 if validation.valid else 1


def _cmd_calibrate(args) -> int:
    state = _load_state(args.state)

    rows = [CalibrationMeasurement(hn=hn, ca_outer=span) for hn, span in args.row]
    Da = args.axle_diameter or DEFAULT_AXLE_DIAMETER_MM
    Ds = args.tool_diameter or state.global_settings.tool_diameter_mm

    report = run_calibration(
        rows,
        args.base,
        state.global_settings,
        state.machine(),
        state.wheels,
        axle_diameter_mm=Da,
        tool_diameter_mm=Ds,
    )
    if report is None:
        print(
            "Error: need at least two rows with numeric hn and CAo and different heights",
            file=sys.stderr
        )
        return 1

    validation = validate_calibration(report)

    if args.format == 'json':
        print(report.model_dump_json(by_alias=True, indent=2))
    elif args.format == 'markdown':
        print(calibration_to_markdown(report, validation))
    else:
        print(calibration_to_summary(report))

    _print_messages(validation)

    if args.save:
        snapshot = make_snapshot(report, Da, Ds, name=args.name)
        applied_ids = dict(state.calib_applied_ids)
        applied_ids[report.base.value] = snapshot.id
        updated = state.model_copy(update={
            "constants": apply_calibration(state.constants, report.base, report),
            "calib_snapshots": state.calib_snapshots + (snapshot,),
            "calib_applied_ids": applied_ids,
        })
        save_state_json(updated, args.save)
        print(f"Saved calibrated state: {args.save}", file=sys.stderr)

    return 0


def _cmd_export_defaults(args) -> int:
    state = default_state()
    if args.output:
        save_state_json(state, args.output)
        print(f"Saved default state: {args.output}", file=sys.stderr)
    else:
        print(export_state(state))
    return 0


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--format',
        choices=['summary', 'json', 'markdown'],
        default='summary',
        help='Output format (default: summary)'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='anglesetter',
        description="Jig heights for a tool-rest sharpening jig",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Height for a 250mm wheel at 16° per side with default settings
  anglesetter heights --wheel-diameter 250

  # Front base, 20°, with your own constants and settings
  anglesetter heights --wheel-diameter 215 --angle 20 --base front --state my-state.json

  # Every step of the saved progression, as Markdown
  anglesetter progression my-state.json --format markdown

  # A named preset instead of the current progression
  anglesetter progression my-state.json --preset "Carving knives"

  # Calibrate the rear base from three measurements (hn, CAo in mm)
  anglesetter calibrate --row 150 192.08 --row 160 201.70 --row 170 211.37

  # Calibrate and save the updated constants
  anglesetter calibrate --state my-state.json --row ... --save my-state.json

  # Starting state to edit by hand
  anglesetter export-defaults -o my-state.json
        """
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    # heights
    heights = subparsers.add_parser('heights', help='Heights for one wheel and angle')
    heights.add_argument(
        '--wheel-diameter', '-D',
        type=float,
        required=True,
        help='Wheel diameter in mm'
    )
    heights.add_argument(
        '--angle',
        type=float,
        help='Angle per side in degrees (default: from state, 16)'
    )
    heights.add_argument(
        '--base',
        choices=['rear', 'front'],
        default='rear',
        help='Base the height is measured from (default: rear)'
    )
    heights.add_argument(
        '--projection', '-A',
        type=float,
        help='Projection in mm (default: from state, 127.39)'
    )
    heights.add_argument(
        '--jig-diameter',
        type=float,
        help='Jig pivot diameter in mm (default: from state, 12)'
    )
    heights.add_argument(
        '--tool-diameter',
        type=float,
        help='Universal support diameter in mm (default: from state, 11.98)'
    )
    heights.add_argument(
        '--angle-offset',
        type=float,
        default=0.0,
        help='Wheel angle offset in degrees (default: 0)'
    )
    heights.add_argument(
        '--state',
        type=str,
        help='State JSON for settings and constants (default: built-in defaults)'
    )
    _add_format(heights)
    heights.set_defaults(func=_cmd_heights)

    # progression
    progression = subparsers.add_parser('progression', help='Heights for a saved progression')
    progression.add_argument(
        'state',
        type=str,
        help='State JSON exported by the web app or export-defaults'
    )
    progression.add_argument(
        '--preset',
        type=str,
        help='Load this preset (id or name) instead of the current progression'
    )
    _add_format(progression)
    progression.set_defaults(func=_cmd_progression)

    # calibrate
    calibrate = subparsers.add_parser('calibrate', help='Solve base constants from measurements')
    calibrate.add_argument(
        '--row',
        nargs=2,
        action='append',
        metavar=('HN', 'CAO'),
        required=True,
        help='Measured height and outer axle-to-tool span in mm (repeat per row)'
    )
    calibrate.add_argument(
        '--base',
        choices=['rear', 'front'],
        default='rear',
        help='Base being calibrated (default: rear)'
    )
    calibrate.add_argument(
        '--axle-diameter',
        type=float,
        help=f'Axle diameter in mm (default: {DEFAULT_AXLE_DIAMETER_MM:g})'
    )
    calibrate.add_argument(
        '--tool-diameter',
        type=float,
        help='Reference tool diameter in mm (default: from state)'
    )
    calibrate.add_argument(
        '--state',
        type=str,
        help='State JSON for settings, constants and wheels'
    )
    calibrate.add_argument(
        '--name',
        type=str,
        default="",
        help='Label stored with the saved calibration snapshot'
    )
    calibrate.add_argument(
        '--save',
        type=str,
        metavar='FILE',
        help='Apply the result and save the state to FILE'
    )
    _add_format(calibrate)
    calibrate.set_defaults(func=_cmd_calibrate)

    # export-defaults
    export = subparsers.add_parser('export-defaults', help='Write the default state JSON')
    export.add_argument(
        '-o', '--output',
        type=str,
        help='Output file (default: stdout)'
    )
    export.set_defaults(func=_cmd_export_defaults)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        return args.func(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
