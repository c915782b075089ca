"""Swerve drive base: four modules, localization and exclusive access.

The drive base turns chassis powers into module commands through the
kinematic model. It is the shared resource guarded by the exclusive access
governor.
"""

import logging
from typing import Hashable, List, Optional, Sequence

import numpy as np

from .calibration import CalibrationSet
from .config import MODULE_NAMES, ZERO_SPEED_THRESHOLD, DriveBaseConfig
from .governor import ExclusiveAccessGovernor
from .interfaces import DriveMotor, PoseFeedback, SteerServo
from .model import field_to_robot, inverse_kinematics, module_offsets, x_formation_angles
from .module import SwerveModule
from .pose import Pose2D


class SwerveDriveBase:
    """Four swerve modules driven as one holonomic base.

    Attributes:
        modules: Swerve modules in MODULE_NAMES order
        feedback: Localization source for pose and heading
        governor: Exclusive access lock over this drive base
        offsets: (4, 2) module positions relative to the robot center
        anti_defense_enabled: If True, every stop holds the X-formation
    """

    def __init__(
        self,
        modules: Sequence[SwerveModule],
        feedback: PoseFeedback,
        track_width: float,
        wheelbase_length: float,
        governor: Optional[ExclusiveAccessGovernor] = None,
    ):
        names = tuple(module.name for module in modules)
        if names != MODULE_NAMES:
            raise ValueError(f"Modules must be in order {MODULE_NAMES}, got {names}")

        self.modules: List[SwerveModule] = list(modules)
        self.feedback = feedback
        self.governor = governor if governor is not None else ExclusiveAccessGovernor()
        self.offsets = module_offsets(track_width, wheelbase_length)
        self.anti_defense_enabled: bool = False

    @classmethod
    def create(
        cls,
        config: DriveBaseConfig,
        calibration: CalibrationSet,
        drive_motors: Sequence[DriveMotor],
        steer_servos: Sequence[SteerServo],
        feedback: PoseFeedback,
        steer_followers: Optional[Sequence[Sequence[SteerServo]]] = None,
    ) -> "SwerveDriveBase":
        """Build a drive base from an explicit configuration.

        Args:
            config: Drive base configuration
            calibration: Steering calibration for every module
            drive_motors: One drive motor per module, MODULE_NAMES order
            steer_servos: One primary steering servo per module
            feedback: Localization source
            steer_followers: Optional extra servos per module

        Returns:
            Configured SwerveDriveBase
        """
        if len(drive_motors) != len(config.modules) or len(steer_servos) != len(config.modules):
            raise ValueError("Need exactly one drive motor and one steer servo per module")

        followers = steer_followers or [[] for _ in config.modules]
        modules = [
            SwerveModule(
                module_config.name,
                drive_motor,
                steer_servo,
                calibration[module_config.name],
                steer_low=config.steer_low,
                steer_high=config.steer_high,
                drive_inverted=module_config.drive_inverted,
                steer_inverted=module_config.steer_inverted,
                velocity_control=config.velocity_control,
                max_velocity=config.max_velocity,
                steer_followers=module_followers,
            )
            for module_config, drive_motor, steer_servo, module_followers in zip(
                config.modules, drive_motors, steer_servos, followers
            )
        ]
        return cls(modules, feedback, config.track_width, config.wheelbase_length)

    def module(self, index: int) -> SwerveModule:
        """Module by index (MODULE_NAMES order)."""
        assert 0 <= index < len(self.modules), f"Invalid module index: {index}"
        return self.modules[index]

    def get_pose(self) -> Pose2D:
        return Pose2D(self.feedback.read_x(), self.feedback.read_y(), self.feedback.read_heading())

    def set_field_position(self, pose: Pose2D) -> None:
        """Reset localization to a known pose."""
        self.feedback.set_pose(pose)
        logging.info(f"Drive base field position set to {pose}")

    def drive(self, x: float, y: float, rotation: float, field_relative: bool = False) -> None:
        """Drive with chassis powers.

        Args:
            x: Strafe power, right positive
            y: Forward power
            rotation: Turn power, clockwise positive
            field_relative: If True, x and y are in the field frame
        """
        if field_relative:
            x, y = field_to_robot(x, y, self.feedback.read_heading())

        speeds, angles = inverse_kinematics(x, y, rotation, self.offsets)
        if float(np.max(np.abs(speeds))) < ZERO_SPEED_THRESHOLD:
            self.stop()
            return

        for module, speed, angle in zip(self.modules, speeds, angles):
            if abs(speed) >= ZERO_SPEED_THRESHOLD:
                module.set_steer_angle(float(angle))
            module.set_drive(float(speed))

    def stop(self) -> None:
        """Zero all drive commands; hold the X-formation if anti-defense is on."""
        if self.anti_defense_enabled:
            self.set_x_formation()
            return
        for module in self.modules:
            module.stop()

    def set_x_formation(self) -> None:
        """Point every wheel at the robot center with zero drive."""
        for module, angle in zip(self.modules, x_formation_angles(self.offsets)):
            module.set_steer_angle(float(angle))
            module.stop()

    def set_anti_defense_enabled(self, enabled: bool) -> None:
        self.anti_defense_enabled = enabled
        if enabled:
            self.set_x_formation()
        else:
            for module in self.modules:
                module.set_steer_angle(0.0)
                module.stop()

    def apply_calibration(self, calibration: CalibrationSet) -> None:
        for module in self.modules:
            module.apply_calibration(calibration[module.name])

    def set_steering_position(self, pos_index: int) -> None:
        """Drive all steering servos to a calibration position.

        Args:
            pos_index: -1 for zero, 0 for minus 90, 1 for plus 90
        """
        for module in self.modules:
            module.set_steer_logical_position(module.calibration.position(pos_index))

    # Exclusive access

    def acquire_exclusive_access(self, owner: Hashable) -> bool:
        return self.governor.acquire(owner)

    def release_exclusive_access(self, owner: Hashable) -> bool:
        return self.governor.release(owner)

    def has_access(self, owner: Optional[Hashable]) -> bool:
        return self.governor.has_access(owner)
