#!/usr/bin/env python3
"""
Fixed-rate control loop and simulated autonomous routine.

This module wires the control stack to the simulated robot, runs the drive
orchestrator at a fixed tick rate on an asyncio loop, and steps through an
autonomous routine: follow a path, hold a pose, then lock into the
anti-defense formation. All targets are written for RED/LEFT and adjusted
for the chosen alliance and start position.
"""

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Callable, List, Optional

from .calibration import CalibrationFormatError, CalibrationStore
from .config import (
    CONTROL_LOOP_PERIOD,
    DEFAULT_RUN_DURATION,
    STEER_CALIBRATION_DATA_FILE,
    TERM_BLUE,
    TERM_RED,
    TERM_RESET,
    DriveBaseConfig,
)
from .drive_base import SwerveDriveBase
from .orchestrator import DriveOrchestrator
from .pose import Alliance, AutoChoices, Pose2D, path_point
from .sim import SimulatedSwerveRobot

AUTO_OWNER = "autonomous"
"""Ownership token used by the autonomous routine."""


class CustomFormatter(logging.Formatter):
    """Logging formatter that keeps INFO messages clean.

    INFO messages are shown without timestamps; WARNING, ERROR and DEBUG
    messages keep their timestamp and level.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


@dataclass
class AutoStep:
    """One stage of an autonomous routine.

    Attributes:
        description: Shown in the log when the step starts
        start: Issues the step's command; returns False if it was refused
        finished: Polled every tick once the step has started
    """

    description: str
    start: Callable[[], bool]
    finished: Callable[[], bool]


def default_routine(orchestrator: DriveOrchestrator, choices: AutoChoices) -> List[AutoStep]:
    """Build the demo routine for a start configuration.

    Waypoints are canonical tile coordinates (RED/LEFT).
    """
    path = [
        path_point(-1.5, -1.5, 0.0),
        path_point(-1.0, -0.5, 45.0),
        path_point(-0.5, -0.5, 90.0),
    ]
    hold_target = path_point(-0.5, -1.0, 90.0)

    return [
        AutoStep(
            "Follow path to the scoring area",
            lambda: orchestrator.follow_auto_path(path, choices, owner=AUTO_OWNER),
            lambda: orchestrator.is_idle,
        ),
        AutoStep(
            "Back off and hold position",
            lambda: orchestrator.drive_to(hold_target, choices, owner=AUTO_OWNER),
            lambda: orchestrator.on_target,
        ),
        AutoStep(
            "Engage anti-defense",
            lambda: orchestrator.set_anti_defense_enabled(AUTO_OWNER, True),
            lambda: True,
        ),
    ]


class DriveRunner:
    """Runs the orchestrator and the simulated robot at a fixed tick rate.

    Attributes:
        orchestrator: Drive orchestrator to tick
        robot: Simulated robot stepped after every tick
        steps: Autonomous routine steps, run in order
        period: Tick period (seconds)
        elapsed: Simulated time since the loop started (seconds)
        should_stop: Flag indicating whether to stop the control loop
    """

    def __init__(
        self,
        orchestrator: DriveOrchestrator,
        robot: SimulatedSwerveRobot,
        steps: Optional[List[AutoStep]] = None,
        period: float = CONTROL_LOOP_PERIOD,
    ) -> None:
        if period <= 0:
            raise ValueError(f"Control period must be > 0, got {period}")

        self.orchestrator = orchestrator
        self.robot = robot
        self.steps = list(steps or [])
        self.period = period
        self.elapsed: float = 0.0
        self.should_stop: bool = False
        self.step_index: int = 0
        self._step_started: bool = False

    @property
    def routine_complete(self) -> bool:
        return self.step_index >= len(self.steps)

    def advance_routine(self) -> None:
        """Start or finish the current autonomous step."""
        if self.routine_complete:
            return

        step = self.steps[self.step_index]
        if not self._step_started:
            logging.info(f"{TERM_BLUE}[{self.elapsed:5.2f}s] {step.description}{TERM_RESET}")
            if not step.start():
                logging.warning(f"Step refused: {step.description}")
                self.step_index += 1
                return
            self._step_started = True
        elif step.finished():
            self.step_index += 1
            self._step_started = False

    def run_once(self) -> None:
        """One control cycle: routine, orchestrator tick, physics step."""
        self.advance_routine()
        self.orchestrator.tick(self.period)
        self.robot.step(self.period)
        self.elapsed += self.period

    async def run_control_loop(self, duration: float, realtime: bool = True) -> None:
        """Tick until the routine finishes, the duration runs out, or stop().

        Args:
            duration: Maximum simulated time (seconds)
            realtime: Sleep one period per tick; otherwise only yield
        """
        while not self.should_stop and self.elapsed < duration:
            self.run_once()
            if self.routine_complete:
                logging.info(f"{TERM_BLUE}✓ Routine complete after {self.elapsed:.2f}s{TERM_RESET}")
                break
            await asyncio.sleep(self.period if realtime else 0)
        else:
            if not self.should_stop:
                logging.warning(f"Routine did not finish within {duration:.1f}s")

        self.orchestrator.cancel(owner=AUTO_OWNER)

    def stop(self) -> None:
        """Signal the control loop to stop."""
        self.should_stop = True


def build_simulation(
    config: DriveBaseConfig, store: CalibrationStore, choices: AutoChoices
) -> DriveRunner:
    """Assemble robot, drive base, orchestrator and routine."""
    calibration = store.calibration
    robot = SimulatedSwerveRobot(config, calibration)
    drive_base = SwerveDriveBase.create(
        config, calibration, robot.drive_motors, robot.steer_servos, robot
    )
    orchestrator = DriveOrchestrator(drive_base, config)
    orchestrator.set_auto_start_position(choices)
    return DriveRunner(orchestrator, robot, default_routine(orchestrator, choices))


async def main(
    choices: Optional[AutoChoices] = None,
    calibration_file: str = STEER_CALIBRATION_DATA_FILE,
    duration: float = DEFAULT_RUN_DURATION,
    save_calibration: bool = False,
    realtime: bool = True,
) -> int:
    """Main entry point for the simulated autonomous run.

    Args:
        choices: Alliance and start position (default RED/LEFT)
        calibration_file: Steering calibration file to load
        duration: Maximum run time (seconds)
        save_calibration: Write the calibration in effect back to the file
        realtime: Run at wall-clock tick rate

    Returns:
        Process exit code
    """
    if choices is None:
        choices = AutoChoices()

    store = CalibrationStore(calibration_file)
    try:
        store.load()
    except CalibrationFormatError as e:
        logging.error(f"Invalid steering calibration: {e}")
        return 1

    if save_calibration and not store.save():
        logging.warning("Continuing with in-memory calibration")

    color = TERM_RED if choices.alliance is Alliance.RED else TERM_BLUE
    logging.info(f"{color}Start configuration: {choices}{TERM_RESET}")

    runner = build_simulation(DriveBaseConfig(), store, choices)
    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        """Handle shutdown signals (SIGINT, SIGTERM)."""
        logging.info("\nShutdown signal received...")
        runner.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    await runner.run_control_loop(duration, realtime=realtime)

    final: Pose2D = runner.orchestrator.drive_base.get_pose()
    logging.info(f"{TERM_BLUE}→ Final pose: {final}{TERM_RESET}")
    return 0
