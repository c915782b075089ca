"""Simulated swerve hardware.

Stand-ins for the motor, servo and localization collaborators so the
control stack can run without a robot. The simulated robot recovers chassis
motion from the commanded module states by least-squares forward kinematics
and integrates it into a field pose.
"""

import math
from typing import List, Optional

import numpy as np

from .calibration import CalibrationSet
from .config import DriveBaseConfig
from .model import module_offsets, robot_to_field
from .pose import Pose2D, wrap_heading


class SimulatedDriveMotor:
    """Drive motor that remembers its last command."""

    def __init__(self, max_velocity: float):
        self.max_velocity = max_velocity
        self.power: float = 0.0

    def set_power(self, power: float) -> None:
        self.power = power

    def set_velocity(self, velocity: float) -> None:
        self.power = velocity / self.max_velocity

    @property
    def velocity(self) -> float:
        """Wheel surface velocity (inches/second)."""
        return self.power * self.max_velocity


class SimulatedSteerServo:
    """Steering servo that remembers its last logical position."""

    def __init__(self, initial_position: float = 0.5):
        self.position: float = initial_position

    def set_position(self, position: float) -> None:
        self.position = position


class SimulatedSwerveRobot:
    """Kinematic swerve robot implementing the PoseFeedback protocol.

    Attributes:
        drive_motors: One simulated motor per module
        steer_servos: One simulated servo per module
        pose: Current field pose
    """

    def __init__(
        self,
        config: DriveBaseConfig,
        calibration: CalibrationSet,
        initial_pose: Optional[Pose2D] = None,
    ):
        self.config = config
        self.calibration = calibration
        self.offsets = module_offsets(config.track_width, config.wheelbase_length)
        self.drive_motors: List[SimulatedDriveMotor] = [
            SimulatedDriveMotor(config.max_velocity) for _ in config.modules
        ]
        self.steer_servos: List[SimulatedSteerServo] = [
            SimulatedSteerServo(calibration[m.name].zero_position) for m in config.modules
        ]
        self.pose = initial_pose if initial_pose is not None else Pose2D()

        # Each module contributes two rows: vx_i = vx + w * ry_i, vy_i = vy - w * rx_i
        rows = []
        for rx, ry in self.offsets:
            rows.append([1.0, 0.0, ry])
            rows.append([0.0, 1.0, -rx])
        self._forward_matrix = np.array(rows)

    # PoseFeedback

    def read_x(self) -> float:
        return self.pose.x

    def read_y(self) -> float:
        return self.pose.y

    def read_heading(self) -> float:
        return self.pose.heading

    def set_pose(self, pose: Pose2D) -> None:
        self.pose = pose

    # Physics

    def module_velocities(self) -> np.ndarray:
        """(N, 2) robot-frame wheel velocities from the actuator states."""
        velocities = []
        for module_config, motor, servo in zip(
            self.config.modules, self.drive_motors, self.steer_servos
        ):
            angle = self.calibration[module_config.name].angle_for_position(servo.position)
            if module_config.steer_inverted:
                angle = -angle
            speed = motor.velocity
            if module_config.drive_inverted:
                speed = -speed
            theta = math.radians(angle)
            velocities.append([speed * math.sin(theta), speed * math.cos(theta)])
        return np.array(velocities)

    def chassis_velocity(self) -> np.ndarray:
        """Least-squares (vx, vy, omega) in the robot frame; omega in rad/s clockwise."""
        wheel = self.module_velocities().reshape(-1)
        solution, *_ = np.linalg.lstsq(self._forward_matrix, wheel, rcond=None)
        return solution

    def step(self, dt: float) -> Pose2D:
        """Advance the simulation by dt seconds."""
        vx, vy, omega = self.chassis_velocity()
        heading = self.pose.heading
        # Integrate at the mid-point heading for a better arc approximation
        mid_heading = heading + math.degrees(omega) * dt / 2.0
        fx, fy = robot_to_field(float(vx), float(vy), mid_heading)
        self.pose = Pose2D(
            self.pose.x + fx * dt,
            self.pose.y + fy * dt,
            wrap_heading(heading + math.degrees(omega) * dt),
        )
        return self.pose
