"""Pure Pursuit path follower for the swerve drive base.

This module implements a pure pursuit path following algorithm that:
- Densifies a list of waypoints into a finely spaced reference path
- Finds a lookahead point on the path at the following distance
- Drives independent X, Y and heading PID channels toward that point

A swerve base is holonomic, so unlike a differential drive it does not have
to steer its body along the path: position and heading are tracked
separately.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import DriveBaseConfig
from .pid import PidController
from .pose import Pose2D, heading_error


class PurePursuitFollower:
    """Pure Pursuit path follower using per-axis PID.

    Attributes:
        following_distance: Lookahead distance (inches)
        position_tolerance: Distance at which a waypoint counts as reached
        turn_tolerance: Heading error at which a waypoint counts as reached
        fast_mode: If True, only the final waypoint has to be reached within
            tolerance; intermediate waypoints are passed through. Set per
            path by start().
        default_fast_mode: Fast mode used when start() is given no override
        done: True once the final waypoint has been reached
    """

    def __init__(
        self,
        x_pid: PidController,
        y_pid: PidController,
        turn_pid: PidController,
        following_distance: float = 10.0,
        position_tolerance: float = 2.0,
        turn_tolerance: float = 2.0,
        fast_mode: bool = True,
        resolution: float = 0.5,
    ):
        """Initialize the pure pursuit follower.

        Args:
            x_pid: X position channel
            y_pid: Y position channel
            turn_pid: Heading channel (must be angular)
            following_distance: Distance ahead on the path to target (inches).
            position_tolerance: Waypoint position tolerance (inches).
            turn_tolerance: Waypoint heading tolerance (degrees).
            fast_mode: Relax intermediate waypoint precision for speed.
            resolution: Spacing of the densified path (inches).
        """
        if following_distance <= 0.0:
            raise ValueError(f"following_distance must be > 0, got {following_distance}")
        if resolution <= 0.0:
            raise ValueError(f"resolution must be > 0, got {resolution}")

        self.x_pid = x_pid
        self.y_pid = y_pid
        self.turn_pid = turn_pid
        self.following_distance = following_distance
        self.position_tolerance = position_tolerance
        self.turn_tolerance = turn_tolerance
        self.default_fast_mode = fast_mode
        self.fast_mode = fast_mode
        self.resolution = resolution

        self.path_x: np.ndarray = np.empty(0)
        self.path_y: np.ndarray = np.empty(0)
        self.path_heading: np.ndarray = np.empty(0)
        self.waypoint_indices: List[int] = []
        self.segment: int = 0
        self.closest_idx: int = 0
        self.active: bool = False
        self.done: bool = False

    @classmethod
    def from_config(cls, config: DriveBaseConfig) -> "PurePursuitFollower":
        pp = config.pure_pursuit
        return cls(
            PidController.from_config("ppdXPid", config.x_pid),
            PidController.from_config("ppdYPid", config.y_pid),
            PidController.from_config("ppdTurnPid", config.turn_pid, angular=True),
            following_distance=pp.following_distance,
            position_tolerance=pp.position_tolerance,
            turn_tolerance=pp.turn_tolerance,
            fast_mode=pp.fast_mode,
            resolution=pp.resolution,
        )

    def build_path(
        self, waypoints: Sequence[Pose2D]
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, List[int]]:
        """Densify waypoints into evenly spaced path arrays.

        Headings are interpolated along each segment the short way round.

        Returns:
            Tuple of (path_x, path_y, path_heading, waypoint_indices) where
            waypoint_indices[k] is the path index of waypoints[k]
        """
        xs = [waypoints[0].x]
        ys = [waypoints[0].y]
        headings = [waypoints[0].heading]
        indices = [0]

        for a, b in zip(waypoints[:-1], waypoints[1:]):
            n = max(1, int(math.ceil(a.distance_to(b) / self.resolution)))
            t = np.linspace(0.0, 1.0, n + 1)[1:]
            xs.extend(a.x + (b.x - a.x) * t)
            ys.extend(a.y + (b.y - a.y) * t)
            headings.extend(a.heading + heading_error(b.heading, a.heading) * t)
            indices.append(len(xs) - 1)

        return np.array(xs), np.array(ys), np.array(headings), indices

    def start(
        self,
        start_pose: Pose2D,
        points: Sequence[Pose2D],
        fast_mode: Optional[bool] = None,
    ) -> None:
        """Begin following a path from the robot's current pose.

        Args:
            start_pose: Where the robot is now
            points: Ordered target poses; each heading is the robot heading
                to hold on arrival
            fast_mode: Fast mode for this path only; None uses the
                configured default
        """
        if not points:
            raise ValueError("Path must contain at least one point")

        self.fast_mode = self.default_fast_mode if fast_mode is None else fast_mode

        waypoints = [start_pose, *points]
        self.path_x, self.path_y, self.path_heading, self.waypoint_indices = self.build_path(
            waypoints
        )
        self.segment = 0
        self.closest_idx = 0
        self.done = False
        self.active = True
        for pid in (self.x_pid, self.y_pid, self.turn_pid):
            pid.reset()
        logging.debug(
            f"Pure pursuit: {len(points)} waypoints, {len(self.path_x)} path points, "
            f"fast_mode={self.fast_mode}"
        )

    def cancel(self) -> None:
        """Stop following and clear controller state."""
        self.active = False
        for pid in (self.x_pid, self.y_pid, self.turn_pid):
            pid.reset()

    @property
    def final_pose(self) -> Optional[Pose2D]:
        if len(self.path_x) == 0:
            return None
        return Pose2D(
            float(self.path_x[-1]), float(self.path_y[-1]), float(self.path_heading[-1])
        )

    def find_closest_point(self, current_x: float, current_y: float, start_idx: int, end_idx: int) -> int:
        """Find index of closest path point in [start_idx, end_idx].

        Args:
            current_x: Current x position
            current_y: Current y position
            start_idx: First index to consider
            end_idx: Last index to consider

        Returns:
            Index of closest point on path
        """
        xs = self.path_x[start_idx : end_idx + 1]
        ys = self.path_y[start_idx : end_idx + 1]
        distances = np.hypot(xs - current_x, ys - current_y)
        return start_idx + int(np.argmin(distances))

    def find_lookahead_point(self, current_x: float, current_y: float, start_idx: int, end_idx: int) -> int:
        """Find the first path index at least following_distance away.

        Args:
            current_x: Current x position
            current_y: Current y position
            start_idx: Index to start searching from (the closest point)
            end_idx: Last index the lookahead may reach

        Returns:
            Lookahead index; end_idx if the end of the search range is
            nearer than the following distance
        """
        xs = self.path_x[start_idx : end_idx + 1]
        ys = self.path_y[start_idx : end_idx + 1]
        distances = np.hypot(xs - current_x, ys - current_y)
        beyond = np.nonzero(distances >= self.following_distance)[0]
        if len(beyond) == 0:
            return end_idx
        return start_idx + int(beyond[0])

    def waypoint_reached(self, pose: Pose2D, idx: int) -> bool:
        dx = self.path_x[idx] - pose.x
        dy = self.path_y[idx] - pose.y
        return (
            math.hypot(dx, dy) <= self.position_tolerance
            and abs(heading_error(self.path_heading[idx], pose.heading)) <= self.turn_tolerance
        )

    def compute_control(self, pose: Pose2D, dt: float) -> Tuple[float, float, float]:
        """Compute field-frame drive powers for one tick.

        Args:
            pose: Current robot pose from localization
            dt: Time step since the last tick (seconds)

        Returns:
            Tuple of (x_power, y_power, turn_power) in the field frame.
            All zero once the path is done.
        """
        if not self.active:
            return 0.0, 0.0, 0.0

        final_idx = len(self.path_x) - 1
        # Without fast mode the lookahead may not run past the next waypoint
        if self.fast_mode:
            limit = final_idx
        else:
            limit = self.waypoint_indices[self.segment + 1]

        self.closest_idx = self.find_closest_point(pose.x, pose.y, self.closest_idx, limit)
        target_idx = self.find_lookahead_point(pose.x, pose.y, self.closest_idx, limit)

        if target_idx == limit and self.waypoint_reached(pose, limit):
            if limit == final_idx:
                logging.info(f"Pure pursuit: path complete at {pose}")
                self.done = True
                self.cancel()
                return 0.0, 0.0, 0.0
            self.segment += 1
            logging.debug(f"Pure pursuit: reached waypoint {self.segment}")

        self.x_pid.set_target(float(self.path_x[target_idx]))
        self.y_pid.set_target(float(self.path_y[target_idx]))
        self.turn_pid.set_target(float(self.path_heading[target_idx]))

        x_power = self.x_pid.compute(pose.x, dt)
        y_power = self.y_pid.compute(pose.y, dt)
        turn_power = self.turn_pid.compute(pose.heading, dt)
        return x_power, y_power, turn_power
