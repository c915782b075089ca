"""Swerve module: one drive motor and one steering servo.

A module owns its actuators. Nothing else in the system issues raw actuator
commands; everything goes through set_steer_angle / set_drive.
"""

import logging
import math
from typing import Optional, Sequence

from .calibration import SwerveModuleCalibration
from .config import DRIVE_MOTOR_MAX_VELOCITY, STEER_HIGH_LIMIT, STEER_LOW_LIMIT
from .interfaces import DriveMotor, SteerServo


class SwerveModule:
    """One independently driven and steered wheel.

    Attributes:
        name: Stable module name (one of MODULE_NAMES)
        calibration: Steering servo logical range
        steer_low: Lowest allowed steering angle (degrees)
        steer_high: Highest allowed steering angle (degrees)
        steer_angle: Last applied steering angle (degrees)
        drive_value: Last applied drive command in [-1, 1]
    """

    def __init__(
        self,
        name: str,
        drive_motor: DriveMotor,
        steer_servo: SteerServo,
        calibration: SwerveModuleCalibration,
        steer_low: float = STEER_LOW_LIMIT,
        steer_high: float = STEER_HIGH_LIMIT,
        drive_inverted: bool = False,
        steer_inverted: bool = False,
        velocity_control: bool = False,
        max_velocity: float = DRIVE_MOTOR_MAX_VELOCITY,
        steer_followers: Optional[Sequence[SteerServo]] = None,
    ):
        """Initialize the module.

        Args:
            name: Module name
            drive_motor: Wheel drive actuator
            steer_servo: Primary steering servo
            calibration: Logical positions for -90 and +90 degrees
            steer_low: Lowest steering angle (degrees)
            steer_high: Highest steering angle (degrees)
            drive_inverted: Reverse the drive direction
            steer_inverted: Mirror the steering direction
            velocity_control: Send drive commands as velocities
            max_velocity: Wheel velocity for a drive command of 1.0
            steer_followers: Extra servos on the same module that mirror the
                primary servo
        """
        if steer_low >= steer_high:
            raise ValueError(f"Invalid steering limits for {name}: [{steer_low}, {steer_high}]")

        self.name = name
        self.drive_motor = drive_motor
        self.steer_servo = steer_servo
        self.steer_followers = list(steer_followers or [])
        self.calibration = calibration
        self.steer_low = steer_low
        self.steer_high = steer_high
        self.drive_inverted = drive_inverted
        self.steer_inverted = steer_inverted
        self.velocity_control = velocity_control
        self.max_velocity = max_velocity

        self.steer_angle: float = 0.0
        self.drive_value: float = 0.0

    def clamp_angle(self, angle: float) -> float:
        """Clamp a steering angle to this module's limits."""
        return max(self.steer_low, min(self.steer_high, angle))

    def logical_position(self, angle: float) -> float:
        """Servo logical position for a steering angle, after clamping."""
        angle = self.clamp_angle(angle)
        if self.steer_inverted:
            angle = -angle
        return self.calibration.logical_position(angle)

    def set_steer_angle(self, angle: float) -> float:
        """Point the wheel at the given angle.

        Out-of-range requests are clamped, never rejected. A non-finite
        request keeps the current angle.

        Args:
            angle: Steering angle (degrees, clockwise from forward)

        Returns:
            The angle actually applied
        """
        if not math.isfinite(angle):
            logging.warning(f"{self.name}: ignoring non-finite steer angle {angle}")
            angle = self.steer_angle

        self.steer_angle = self.clamp_angle(angle)
        self._write_steer(self.logical_position(self.steer_angle))
        return self.steer_angle

    def set_steer_logical_position(self, position: float) -> None:
        """Drive the steering servos to a raw logical position.

        Used while calibrating, when the angle mapping is not yet trusted.
        """
        self._write_steer(position)

    def set_drive(self, value: float) -> None:
        """Set drive power or velocity.

        Args:
            value: Drive command in [-1, 1]. In velocity mode this is a
                fraction of max_velocity.
        """
        if not math.isfinite(value):
            logging.warning(f"{self.name}: ignoring non-finite drive value {value}")
            value = 0.0

        value = max(-1.0, min(1.0, value))
        self.drive_value = value
        if self.drive_inverted:
            value = -value

        if self.velocity_control:
            self.drive_motor.set_velocity(value * self.max_velocity)
        else:
            self.drive_motor.set_power(value)

    def stop(self) -> None:
        """Zero the drive command. Steering is left where it is."""
        self.set_drive(0.0)

    def apply_calibration(self, calibration: SwerveModuleCalibration) -> None:
        """Switch to new calibration data and re-apply the current angle."""
        self.calibration = calibration
        self.set_steer_angle(self.steer_angle)

    def _write_steer(self, position: float) -> None:
        self.steer_servo.set_position(position)
        for follower in self.steer_followers:
            follower.set_position(position)

    def __repr__(self) -> str:
        return (
            f"SwerveModule({self.name!r}, angle={self.steer_angle:.1f}, "
            f"drive={self.drive_value:.3f})"
        )
