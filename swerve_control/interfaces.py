"""
Collaborator interfaces (protocols) for hardware and localization.

The drive control code never talks to motor, servo or gyro drivers directly.
Anything that has these methods can be plugged in: real drivers, the
simulator in sim.py, or test doubles.
"""

from typing import Protocol

from .pose import Pose2D


class DriveMotor(Protocol):
    """Wheel drive actuator."""

    def set_power(self, power: float) -> None:
        """Open-loop power in [-1, 1]."""
        ...

    def set_velocity(self, velocity: float) -> None:
        """Closed-loop wheel surface velocity (inches/second)."""
        ...


class SteerServo(Protocol):
    """Steering actuator addressed by logical position."""

    def set_position(self, position: float) -> None:
        ...


class HeadingSensor(Protocol):
    """Gyro or IMU heading source."""

    def read_heading(self) -> float:
        """Heading in degrees, clockwise positive."""
        ...


class PoseFeedback(HeadingSensor, Protocol):
    """
    Drive base localization.

    Provides the robot's field position and heading, and accepts a reset
    when the start pose of a match is known.
    """

    def read_x(self) -> float:
        ...

    def read_y(self) -> float:
        ...

    def set_pose(self, pose: Pose2D) -> None:
        ...
