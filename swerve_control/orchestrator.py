"""Drive mode orchestration.

The orchestrator owns the drive base and exactly one active drive mode:

    Idle -> Manual | PositionHold | PathFollow -> Idle

Entering a mode cancels the previous one first, synchronously: its
controller state is reset and the modules are zeroed before the new mode is
installed. Only the active mode computes actuator output, once per tick.
Commands are gated by the drive base's exclusive access governor.
"""

import logging
from dataclasses import dataclass
from typing import Hashable, Optional, Sequence, Tuple, Union

from .config import TERM_BLUE, TERM_RESET, DriveBaseConfig
from .drive_base import SwerveDriveBase
from .follower import PurePursuitFollower
from .model import field_to_robot
from .pid import PidController
from .pose import AutoChoices, Pose2D
from .transform import adjust_target_pose, start_pose


@dataclass(frozen=True)
class Idle:
    """No mode active; modules are stopped."""


@dataclass(frozen=True)
class Manual:
    """Open-loop drive command, re-applied every tick."""

    x: float
    y: float
    rotation: float
    field_relative: bool = False


@dataclass(frozen=True)
class PositionHold:
    """Closed-loop hold of a field pose."""

    target: Pose2D


@dataclass(frozen=True)
class PathFollow:
    """Pure pursuit along an ordered list of poses."""

    points: Tuple[Pose2D, ...]


DriveMode = Union[Idle, Manual, PositionHold, PathFollow]


class DriveOrchestrator:
    """Mutually exclusive drive modes over one swerve drive base.

    Attributes:
        drive_base: The shared drive base
        mode: The single active drive mode
        x_pid: X channel for position hold
        y_pid: Y channel for position hold
        turn_pid: Heading channel for position hold (output capped)
        follower: Pure pursuit path follower
    """

    def __init__(
        self,
        drive_base: SwerveDriveBase,
        config: Optional[DriveBaseConfig] = None,
        follower: Optional[PurePursuitFollower] = None,
    ) -> None:
        if config is None:
            config = DriveBaseConfig()

        self.drive_base = drive_base
        self.config = config
        self.x_pid = PidController.from_config("xPosPid", config.x_pid)
        self.y_pid = PidController.from_config("yPosPid", config.y_pid)
        self.turn_pid = PidController.from_config("turnPid", config.turn_pid, angular=True)
        self.follower = follower if follower is not None else PurePursuitFollower.from_config(config)
        self.mode: DriveMode = Idle()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_idle(self) -> bool:
        return isinstance(self.mode, Idle)

    @property
    def on_target(self) -> bool:
        """Whether position hold has all three channels within tolerance."""
        if not isinstance(self.mode, PositionHold):
            return False
        pose = self.drive_base.get_pose()
        return (
            self.x_pid.on_target(pose.x)
            and self.y_pid.on_target(pose.y)
            and self.turn_pid.on_target(pose.heading)
        )

    def _check_access(self, owner: Optional[Hashable], command: str) -> bool:
        if self.drive_base.has_access(owner):
            return True
        logging.debug(
            f"{command} from {owner!r} refused: drive base held by "
            f"{self.drive_base.governor.owner!r}"
        )
        return False

    def _enter(self, mode: DriveMode) -> None:
        """Cancel whatever is active, then install the new mode."""
        self._stop_active()
        self.mode = mode
        logging.debug(f"Drive mode -> {mode}")

    def _stop_active(self) -> None:
        for pid in (self.x_pid, self.y_pid, self.turn_pid):
            pid.reset()
        if self.follower.active:
            self.follower.cancel()
        self.drive_base.stop()
        self.mode = Idle()

    # ------------------------------------------------------------------
    # Motion commands
    # ------------------------------------------------------------------

    def drive_manual(
        self,
        x: float,
        y: float,
        rotation: float,
        owner: Optional[Hashable] = None,
        field_relative: bool = False,
    ) -> bool:
        """Open-loop drive. Bypasses PID.

        Args:
            x: Strafe power, right positive
            y: Forward power
            rotation: Turn power, clockwise positive
            owner: Caller identity for exclusive access
            field_relative: Interpret x and y in the field frame

        Returns:
            False if another owner holds the drive base
        """
        if not self._check_access(owner, "drive_manual"):
            return False
        command = Manual(x, y, rotation, field_relative)
        if isinstance(self.mode, Manual):
            # Newest joystick command wins; no reset needed between samples
            self.mode = command
        else:
            self._enter(command)
        return True

    def hold_position(self, target: Pose2D, owner: Optional[Hashable] = None) -> bool:
        """Drive to and hold a field pose with X, Y and heading PID.

        Runs until cancelled or superseded by another command.
        """
        if not self._check_access(owner, "hold_position"):
            return False
        self._enter(PositionHold(target))
        self.x_pid.set_target(target.x)
        self.y_pid.set_target(target.y)
        self.turn_pid.set_target(target.heading)
        logging.info(f"{TERM_BLUE}Holding position {target}{TERM_RESET}")
        return True

    def follow_path(
        self,
        points: Sequence[Pose2D],
        owner: Optional[Hashable] = None,
        fast_mode: Optional[bool] = None,
    ) -> bool:
        """Follow an ordered list of poses with pure pursuit.

        Args:
            points: Target poses; each heading is the end heading there
            owner: Caller identity for exclusive access
            fast_mode: Fast mode for this path only; None uses the configured default

        Returns:
            False if another owner holds the drive base
        """
        if not self._check_access(owner, "follow_path"):
            return False
        if not points:
            raise ValueError("Path must contain at least one point")

        self._enter(PathFollow(tuple(points)))
        self.follower.start(self.drive_base.get_pose(), points, fast_mode)
        logging.info(f"{TERM_BLUE}Following path of {len(points)} points{TERM_RESET}")
        return True

    def cancel(self, owner: Optional[Hashable] = None) -> bool:
        """Stop the active mode and zero all module commands.

        Safe to call from Idle.
        """
        if not self._check_access(owner, "cancel"):
            return False
        if not self.is_idle:
            logging.info(f"Cancelling {type(self.mode).__name__}")
        self._stop_active()
        return True

    # ------------------------------------------------------------------
    # Autonomous helpers
    # ------------------------------------------------------------------

    def set_auto_start_position(self, choices: AutoChoices) -> Pose2D:
        """Reset localization to the start pose of the chosen configuration."""
        pose = start_pose(choices.alliance, choices.start_pos, self.config.robot_length)
        self.drive_base.set_field_position(pose)
        return pose

    def drive_to(
        self, target: Pose2D, choices: AutoChoices, owner: Optional[Hashable] = None
    ) -> bool:
        """Hold a canonical (RED/LEFT) target adjusted for this match."""
        return self.hold_position(
            adjust_target_pose(target, choices.alliance, choices.start_pos), owner
        )

    def follow_auto_path(
        self,
        points: Sequence[Pose2D],
        choices: AutoChoices,
        owner: Optional[Hashable] = None,
        fast_mode: Optional[bool] = None,
    ) -> bool:
        """Follow a canonical (RED/LEFT) path adjusted for this match."""
        adjusted = [adjust_target_pose(p, choices.alliance, choices.start_pos) for p in points]
        return self.follow_path(adjusted, owner, fast_mode)

    # ------------------------------------------------------------------
    # Exclusive access and anti-defense
    # ------------------------------------------------------------------

    def acquire_exclusive_access(self, owner: Hashable) -> bool:
        return self.drive_base.acquire_exclusive_access(owner)

    def release_exclusive_access(self, owner: Hashable) -> bool:
        return self.drive_base.release_exclusive_access(owner)

    def set_anti_defense_enabled(self, owner: Optional[Hashable], enabled: bool) -> bool:
        """Lock the wheels in an X-formation so the robot is hard to push.

        Enabling requires exclusive access (unless owner is None); disabling
        releases it.

        Returns:
            False if another owner holds the drive base
        """
        if enabled and owner is not None and not self.drive_base.acquire_exclusive_access(owner):
            logging.warning(
                f"Anti-defense refused for {owner!r}: drive base held by "
                f"{self.drive_base.governor.owner!r}"
            )
            return False
        if not self._check_access(owner, "set_anti_defense_enabled"):
            return False

        if enabled:
            self._stop_active()
        self.drive_base.set_anti_defense_enabled(enabled)
        if not enabled and owner is not None:
            self.drive_base.release_exclusive_access(owner)
        logging.info(f"Anti-defense {'enabled' if enabled else 'disabled'} by {owner!r}")
        return True

    @property
    def anti_defense_enabled(self) -> bool:
        return self.drive_base.anti_defense_enabled

    def set_steering_position(self, pos_index: int, owner: Optional[Hashable] = None) -> bool:
        """Stop and point all steering servos at a calibration position.

        Args:
            pos_index: -1 for zero, 0 for minus 90, 1 for plus 90
        """
        if not self._check_access(owner, "set_steering_position"):
            return False
        self._stop_active()
        self.drive_base.set_steering_position(pos_index)
        return True

    # ------------------------------------------------------------------
    # Control tick
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        """Run one control cycle for the active mode.

        Any fault inside a closed-loop computation stops the drive base and
        drops back to Idle rather than leaving stale commands running.

        Args:
            dt: Time since the previous tick (seconds)
        """
        mode = self.mode
        try:
            if isinstance(mode, Manual):
                self.drive_base.drive(mode.x, mode.y, mode.rotation, mode.field_relative)
            elif isinstance(mode, PositionHold):
                self._tick_position_hold(dt)
            elif isinstance(mode, PathFollow):
                self._tick_path_follow(dt)
        except Exception as e:
            logging.error(f"Fault in {type(mode).__name__} tick, stopping: {e}", exc_info=True)
            self._stop_active()

    def _drive_field(self, x_power: float, y_power: float, turn_power: float, heading: float) -> None:
        x, y = field_to_robot(x_power, y_power, heading)
        self.drive_base.drive(x, y, turn_power)

    def _tick_position_hold(self, dt: float) -> None:
        pose = self.drive_base.get_pose()
        x_power = self.x_pid.compute(pose.x, dt)
        y_power = self.y_pid.compute(pose.y, dt)
        turn_power = self.turn_pid.compute(pose.heading, dt)
        self._drive_field(x_power, y_power, turn_power, pose.heading)

    def _tick_path_follow(self, dt: float) -> None:
        pose = self.drive_base.get_pose()
        x_power, y_power, turn_power = self.follower.compute_control(pose, dt)
        if self.follower.done:
            self._stop_active()
            return
        self._drive_field(x_power, y_power, turn_power, pose.heading)
