"""Shared fixtures: a default-configured drive stack on the simulated robot"""

import pytest

from swerve_control.calibration import CalibrationSet
from swerve_control.config import DriveBaseConfig
from swerve_control.drive_base import SwerveDriveBase
from swerve_control.orchestrator import DriveOrchestrator
from swerve_control.sim import SimulatedSwerveRobot

DT = 0.02


@pytest.fixture
def config():
    return DriveBaseConfig()


@pytest.fixture
def calibration():
    return CalibrationSet.defaults()


@pytest.fixture
def robot(config, calibration):
    return SimulatedSwerveRobot(config, calibration)


@pytest.fixture
def drive_base(config, calibration, robot):
    return SwerveDriveBase.create(
        config, calibration, robot.drive_motors, robot.steer_servos, robot
    )


@pytest.fixture
def orchestrator(drive_base, config):
    return DriveOrchestrator(drive_base, config)


def run_ticks(orchestrator, robot, ticks, until=None):
    """Tick the orchestrator and step the robot; stop early once until() is true."""
    for i in range(ticks):
        orchestrator.tick(DT)
        robot.step(DT)
        if until is not None and until():
            return i + 1
    return ticks
