"""
Main entry point when running the swerve_control module with python -m.
"""

import argparse
import asyncio
import logging
import sys

from .config import DEFAULT_RUN_DURATION, STEER_CALIBRATION_DATA_FILE
from .pose import Alliance, AutoChoices, StartPos
from .runner import main, setup_logging


def parse_args(args=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the swerve drive autonomous routine against the simulated robot"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    parser.add_argument(
        "--alliance",
        choices=[a.value for a in Alliance],
        default=Alliance.RED.value,
        help="Alliance color (default: red)",
    )
    parser.add_argument(
        "--start-pos",
        choices=[p.value for p in StartPos],
        default=StartPos.LEFT.value,
        help="Start position on the alliance wall (default: left)",
    )
    parser.add_argument(
        "--calibration-file",
        default=STEER_CALIBRATION_DATA_FILE,
        help=f"Steering calibration file (default: {STEER_CALIBRATION_DATA_FILE})",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=DEFAULT_RUN_DURATION,
        help=f"Maximum run time in seconds (default: {DEFAULT_RUN_DURATION})",
    )
    parser.add_argument(
        "--save-calibration",
        action="store_true",
        help="Write the calibration in effect back to the calibration file",
    )
    parser.add_argument(
        "--fast", action="store_true", help="Run as fast as possible instead of in real time"
    )
    return parser.parse_args(args)


def run() -> None:
    args = parse_args()
    setup_logging(args.verbose)

    choices = AutoChoices(Alliance(args.alliance), StartPos(args.start_pos))
    try:
        exit_code = asyncio.run(
            main(
                choices,
                calibration_file=args.calibration_file,
                duration=args.duration,
                save_calibration=args.save_calibration,
                realtime=not args.fast,
            )
        )
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
