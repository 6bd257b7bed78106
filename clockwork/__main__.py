"""
Command-line driver for the rotation simulator.

Simulates one of the registered rotations against a target dummy for a fixed
number of centiseconds, prints a throughput summary and optionally plots the
player's MP over the run.
"""

import argparse
import dataclasses
import sys
from typing import List, Optional

from loguru import logger

from clockwork.common import InvariantViolation, UnknownActionError, format_cs
from clockwork.config import SimulationConfig
from clockwork.rotation import ROTATIONS
from clockwork.throughput import (
    compare_rotations,
    mp_timeline,
    plot_mp_over_time,
    print_summary,
    summarize,
)

LOG_FORMAT = (
    "<green>{extra[timestamp]:>7}</green> | <level>{level: <7}</level> | {message}"
)


def configure_logging(verbose: bool = False):
    """
    Replace loguru's default sink with a stderr sink for simulation output.

    Events are logged at INFO; MP changes only show up when verbose.
    """
    logger.configure(
        handlers=[
            {
                "sink": sys.stderr,
                "level": "DEBUG" if verbose else "INFO",
                "format": LOG_FORMAT,
            }
        ],
        extra={"timestamp": "-"},
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clockwork",
        description="Discrete-time rotation simulator",
    )
    parser.add_argument(
        "-r",
        "--rotation",
        type=str.lower,
        choices=list(ROTATIONS),
        help="Rotation to simulate.",
    )
    parser.add_argument(
        "-d",
        "--duration",
        type=int,
        help="Number of centiseconds to simulate for (default: 100000).",
    )
    parser.add_argument("--mp", type=int, help="Starting MP of the player.")
    parser.add_argument("--catalog", type=str, help="JSON action catalog to use.")
    parser.add_argument(
        "--rotation-file", type=str, help="JSON action sequence to repeat."
    )
    parser.add_argument("--config", type=str, help="JSON run configuration.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Also log every MP change."
    )
    parser.add_argument("--plot", action="store_true", help="Plot MP over time.")
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Simulate every registered rotation and summarize each.",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="With --compare, run each rotation in its own process.",
    )
    return parser


def load_config(args: argparse.Namespace) -> SimulationConfig:
    """Read the config file (if any) and apply command-line overrides."""
    config = SimulationConfig.from_json(args.config) if args.config else SimulationConfig()

    overrides = {
        "rotation": args.rotation,
        "duration": args.duration,
        "starting_mp": args.mp,
        "catalog_path": args.catalog,
        "rotation_path": args.rotation_file,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if args.verbose:
        overrides["verbose"] = True
    return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(config.verbose)

    if args.compare:
        if config.rotation_path is not None:
            print(
                "ERROR: --compare runs the registered rotations; "
                "it cannot be combined with a rotation file.",
                file=sys.stderr,
            )
            return 2
        try:
            summaries = compare_rotations(
                list(ROTATIONS),
                duration=config.duration,
                starting_mp=config.starting_mp,
                catalog=config.load_catalog(),
                parallel=args.parallel,
            )
        except (OSError, ValueError, InvariantViolation, UnknownActionError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2
        for summary in summaries:
            print_summary(summary)
        return 0

    try:
        simulator = config.build_simulator()
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(f"Simulating {simulator.rotation.name} for {format_cs(config.duration)}...")
    try:
        simulator.run_until(config.duration)
    except (InvariantViolation, UnknownActionError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print_summary(summarize(simulator))

    if args.plot:
        timestamps, mp_values = mp_timeline(
            simulator.event_log, simulator.catalog, simulator.starting_mp
        )
        plot_mp_over_time(
            timestamps,
            mp_values,
            title=f"{simulator.rotation.name} MP over Time",
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
