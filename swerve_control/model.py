"""
Swerve drive kinematic model.

This module provides the inverse kinematics for a four-module swerve drive,
converting desired chassis motion (strafe, forward, rotation) into a wheel
speed and steering angle for every module.

Conventions (robot frame):
    x: to the right
    y: forward
    rotation: clockwise positive
    steering angle: degrees clockwise from forward
"""

import math
from typing import Tuple

import numpy as np

from .config import STEER_HIGH_LIMIT, STEER_LOW_LIMIT


def module_offsets(track_width: float, wheelbase_length: float) -> np.ndarray:
    """
    Module positions relative to the robot center.

    Args:
        track_width: Left-to-right wheel distance
        wheelbase_length: Front-to-back wheel distance

    Returns:
        np.ndarray: (4, 2) array of (x, y) in MODULE_NAMES order
                    (frontLeft, frontRight, backLeft, backRight)
    """
    half_w = track_width / 2.0
    half_l = wheelbase_length / 2.0
    return np.array(
        [
            [-half_w, half_l],
            [half_w, half_l],
            [-half_w, -half_l],
            [half_w, -half_l],
        ]
    )


def optimize_angles(
    speeds: np.ndarray,
    angles: np.ndarray,
    low: float = STEER_LOW_LIMIT,
    high: float = STEER_HIGH_LIMIT,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fold steering angles into [low, high] by reversing the wheel.

    Pointing a wheel 180 degrees the other way and driving it backwards
    produces the same motion, so a half-turn servo can reach any direction.
    """
    speeds = speeds.copy()
    angles = angles.copy()

    above = angles > high
    angles[above] -= 180.0
    speeds[above] = -speeds[above]

    below = angles < low
    angles[below] += 180.0
    speeds[below] = -speeds[below]

    return speeds, angles


def inverse_kinematics(
    x: float, y: float, rotation: float, offsets: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute module speeds and steering angles from chassis powers.

    For a module at offset (rx, ry), a clockwise rotation rate w adds a
    tangential velocity (w * ry, -w * rx). Rotation is scaled by the largest
    module radius, so rotation=1 spins the outermost wheel at full speed:
        vx_i = x + rotation * ry_i / R
        vy_i = y - rotation * rx_i / R

    Args:
        x: Strafe power, right positive (robot frame)
        y: Forward power (robot frame)
        rotation: Turn power, clockwise positive
        offsets: (N, 2) module positions from module_offsets()

    Returns:
        tuple[np.ndarray, np.ndarray]: (speeds, angles) per module. Speeds
            are normalized so none exceeds 1 in magnitude; angles are in
            degrees, folded into [-90, 90].

    Example:
        >>> speeds, angles = inverse_kinematics(0.0, 1.0, 0.0, module_offsets(12, 12))
        >>> # All wheels straight ahead at full speed
    """
    radius = float(np.max(np.hypot(offsets[:, 0], offsets[:, 1])))
    if radius <= 0.0:
        radius = 1.0

    vx = x + rotation * offsets[:, 1] / radius
    vy = y - rotation * offsets[:, 0] / radius

    speeds = np.hypot(vx, vy)
    angles = np.degrees(np.arctan2(vx, vy))

    # Desaturate: keep the ratios, cap the fastest wheel at 1
    max_speed = float(np.max(speeds))
    if max_speed > 1.0:
        speeds = speeds / max_speed

    return optimize_angles(speeds, angles)


def x_formation_angles(offsets: np.ndarray) -> np.ndarray:
    """Steering angles that point every wheel at the robot center.

    In this formation the robot resists being pushed in any direction.
    """
    angles = np.degrees(np.arctan2(offsets[:, 0], offsets[:, 1]))
    _, angles = optimize_angles(np.zeros(len(angles)), angles)
    return angles


def field_to_robot(x: float, y: float, heading: float) -> Tuple[float, float]:
    """
    Rotate a field-frame vector into the robot frame.

    Args:
        x: Field x component
        y: Field y component
        heading: Robot heading (degrees, clockwise positive)

    Returns:
        tuple[float, float]: (x, y) in the robot frame
    """
    theta = math.radians(heading)
    cos_h = math.cos(theta)
    sin_h = math.sin(theta)
    return x * cos_h - y * sin_h, x * sin_h + y * cos_h


def robot_to_field(x: float, y: float, heading: float) -> Tuple[float, float]:
    """Rotate a robot-frame vector into the field frame."""
    theta = math.radians(heading)
    cos_h = math.cos(theta)
    sin_h = math.sin(theta)
    return x * cos_h + y * sin_h, -x * sin_h + y * cos_h
