"""Configuration parameters for the swerve drive control system.

This module centralizes all configuration parameters including:
- Field and robot geometry
- Swerve module steering limits and default calibration
- Closed-loop gains for position hold
- Pure pursuit path following parameters
- Control loop timing and terminal colors

Components never read these constants directly. They are gathered into the
dataclasses at the bottom of this module (``DriveBaseConfig`` and friends),
which callers build once and pass into constructors.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

# ============================================================================
# Field Geometry
# ============================================================================

FULL_FIELD_INCHES = 141.0
"""Side length of the square playing field (inches)."""

HALF_FIELD_INCHES = FULL_FIELD_INCHES / 2.0
"""Distance from field center to a wall (inches)."""

FULL_TILE_INCHES = 23.75
"""Side length of one floor tile (inches). Tile coordinates are scaled by this."""


# ============================================================================
# Robot Geometry
# ============================================================================

ROBOT_LENGTH = 17.0
"""Overall robot length including bumpers (inches).
Used to place the start pose against the wall."""

DRIVE_BASE_LENGTH = 12.0
"""Front-to-back distance between wheel contact points (inches)."""

DRIVE_BASE_WIDTH = 12.0
"""Left-to-right distance between wheel contact points (inches)."""

STARTPOS_FROM_FIELDCENTER_X = 1.5 * FULL_TILE_INCHES
"""Lateral offset of every start position from field center (inches)."""


# ============================================================================
# Drive Motors
# ============================================================================

DRIVE_MOTOR_MAX_VELOCITY = 65.0
"""Wheel surface speed at full power (inches/second).

Origin: 4 in. wheel, 1:1 gearing, 312 RPM motor
- pi * 4.0 * 312.0 / 60.0 = 65.35 in/s no-load
- Rounded down; also used by the simulator as the full-power wheel speed
"""

USE_VELOCITY_CONTROL = False
"""If True, drive commands are sent as velocities (fraction of
DRIVE_MOTOR_MAX_VELOCITY) instead of raw power."""


# ============================================================================
# Swerve Steering
# ============================================================================

STEER_LOW_LIMIT = -90.0
"""Lowest steering angle a module may be commanded to (degrees)."""

STEER_HIGH_LIMIT = 90.0
"""Highest steering angle a module may be commanded to (degrees).

Servo-steered modules only travel half a turn, so anything outside
[-90, 90] is reached by reversing the wheel instead."""

STEER_CALIBRATION_DATA_FILE = "SteerCalibration.txt"
"""Default file name for persisted steering calibration data."""

MODULE_NAMES: Tuple[str, ...] = ("frontLeft", "frontRight", "backLeft", "backRight")
"""Swerve module names in their fixed order.

This order is shared by the kinematics, the drive base and the calibration
file format. Saved files are only re-loadable if it never changes."""

DEFAULT_STEER_MINUS90 = 0.0
"""Built-in servo logical position for -90 degrees steering."""

DEFAULT_STEER_PLUS90 = 1.0
"""Built-in servo logical position for +90 degrees steering."""

ZERO_SPEED_THRESHOLD = 1e-3
"""Wheel speeds below this are treated as stopped; steering is left alone."""


# ============================================================================
# Position Hold Parameters (PID)
# ============================================================================

X_POS_KP = 0.05
"""Proportional gain for X (lateral) position hold (power per inch)."""

X_POS_KI = 0.0
"""Integral gain for X position hold."""

X_POS_KD = 0.004
"""Derivative gain for X position hold."""

X_POS_TOLERANCE = 1.0
"""X position error considered on target (inches)."""

Y_POS_KP = 0.05
"""Proportional gain for Y (forward) position hold (power per inch)."""

Y_POS_KI = 0.0
"""Integral gain for Y position hold."""

Y_POS_KD = 0.004
"""Derivative gain for Y position hold."""

Y_POS_TOLERANCE = 1.0
"""Y position error considered on target (inches)."""

TURN_KP = 0.02
"""Proportional gain for heading hold (power per degree)."""

TURN_KI = 0.0
"""Integral gain for heading hold."""

TURN_KD = 0.0
"""Derivative gain for heading hold.

Kept at zero: derivative action on a slowly sampled heading amplifies noise."""

TURN_TOLERANCE = 2.0
"""Heading error considered on target (degrees)."""

TURN_POWER_LIMIT = 0.5
"""Output cap for the heading channel (range: [0, 1]).

The heading sensor is sampled at a low rate. If the robot turns too fast,
PID overshoots and oscillates, so turn power is capped."""

PID_INTEGRAL_LIMIT = 0.5
"""Anti-windup clamp for integral terms (in output units)."""


# ============================================================================
# Path Following Parameters (Pure Pursuit)
# ============================================================================

PPD_FOLLOWING_DISTANCE = 10.0
"""Lookahead (following) distance for pure pursuit (inches).

Tuning rationale:
- Too small (< 6 in.) = robot chases the path and wobbles
- Too large (> 16 in.) = cuts corners between waypoints
"""

PPD_POS_TOLERANCE = 2.0
"""Position tolerance for reaching a waypoint (inches)."""

PPD_TURN_TOLERANCE = 2.0
"""Heading tolerance for reaching a waypoint (degrees)."""

PPD_FAST_MODE = True
"""If True, intermediate waypoints are passed through without settling.
Only the final waypoint has to be reached within tolerance."""

PATH_RESOLUTION = 0.5
"""Spacing of the densified path used for lookahead search (inches)."""


# ============================================================================
# Control Loop
# ============================================================================

CONTROL_LOOP_PERIOD = 0.02
"""Control tick period (seconds). 50 Hz."""

DEFAULT_RUN_DURATION = 15.0
"""Default length of the simulated autonomous routine (seconds)."""


# ============================================================================
# Terminal Colors
# ============================================================================

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for highlighted status messages."""

TERM_RED = "\033[38;2;247;72;35m"
"""Terminal color code for alliance and warning highlights."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# Configuration Structs
# ============================================================================


@dataclass
class PidCoefficients:
    """Gains for one PID channel."""

    kp: float
    ki: float = 0.0
    kd: float = 0.0
    kf: float = 0.0


@dataclass
class PidChannelConfig:
    """One closed-loop channel: gains, on-target tolerance and output cap."""

    coefficients: PidCoefficients
    tolerance: float
    output_limit: float = 1.0
    integral_limit: float = PID_INTEGRAL_LIMIT


@dataclass
class ModuleConfig:
    """Per-module wiring options."""

    name: str
    drive_inverted: bool = False
    steer_inverted: bool = False


@dataclass
class PurePursuitConfig:
    """Pure pursuit follower parameters."""

    following_distance: float = PPD_FOLLOWING_DISTANCE
    position_tolerance: float = PPD_POS_TOLERANCE
    turn_tolerance: float = PPD_TURN_TOLERANCE
    fast_mode: bool = PPD_FAST_MODE
    resolution: float = PATH_RESOLUTION


def _default_modules() -> List[ModuleConfig]:
    return [ModuleConfig(name) for name in MODULE_NAMES]


@dataclass
class DriveBaseConfig:
    """Everything needed to build a drive base and its orchestrator.

    Attributes:
        modules: Module wiring in MODULE_NAMES order.
        track_width: Left-to-right wheel distance (inches).
        wheelbase_length: Front-to-back wheel distance (inches).
        steer_low: Lowest steering angle (degrees).
        steer_high: Highest steering angle (degrees).
        velocity_control: Send drive commands as velocities.
        max_velocity: Full-power wheel speed (inches/second).
        x_pid: X position hold channel.
        y_pid: Y position hold channel.
        turn_pid: Heading hold channel.
        pure_pursuit: Path follower parameters.
        robot_length: Robot length, for start poses (inches).
    """

    modules: List[ModuleConfig] = field(default_factory=_default_modules)
    track_width: float = DRIVE_BASE_WIDTH
    wheelbase_length: float = DRIVE_BASE_LENGTH
    steer_low: float = STEER_LOW_LIMIT
    steer_high: float = STEER_HIGH_LIMIT
    velocity_control: bool = USE_VELOCITY_CONTROL
    max_velocity: float = DRIVE_MOTOR_MAX_VELOCITY
    x_pid: PidChannelConfig = field(
        default_factory=lambda: PidChannelConfig(
            PidCoefficients(X_POS_KP, X_POS_KI, X_POS_KD), X_POS_TOLERANCE
        )
    )
    y_pid: PidChannelConfig = field(
        default_factory=lambda: PidChannelConfig(
            PidCoefficients(Y_POS_KP, Y_POS_KI, Y_POS_KD), Y_POS_TOLERANCE
        )
    )
    turn_pid: PidChannelConfig = field(
        default_factory=lambda: PidChannelConfig(
            PidCoefficients(TURN_KP, TURN_KI, TURN_KD),
            TURN_TOLERANCE,
            output_limit=TURN_POWER_LIMIT,
        )
    )
    pure_pursuit: PurePursuitConfig = field(default_factory=PurePursuitConfig)
    robot_length: float = ROBOT_LENGTH

    def __post_init__(self) -> None:
        names = tuple(module.name for module in self.modules)
        if names != MODULE_NAMES:
            raise ValueError(f"Module order must be {MODULE_NAMES}, got {names}")
        if self.steer_low >= self.steer_high:
            raise ValueError(
                f"Invalid steering limits: [{self.steer_low}, {self.steer_high}]"
            )
