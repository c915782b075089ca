"""Pose and field frame model.

Field frame: x to the right, y away from the RED alliance wall, heading in
degrees measured clockwise from +y. All headings wrap modulo 360.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .config import FULL_TILE_INCHES


class Alliance(Enum):
    """Alliance the robot plays for."""

    RED = "red"
    BLUE = "blue"


class StartPos(Enum):
    """Start position on the alliance wall, seen from the driver station."""

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class AutoChoices:
    """The (alliance, start position) pair picked before a match."""

    alliance: Alliance = Alliance.RED
    start_pos: StartPos = StartPos.LEFT

    def __str__(self) -> str:
        return f"{self.alliance.name}/{self.start_pos.name}"


@dataclass(frozen=True)
class Pose2D:
    """A position and heading on the field.

    Attributes:
        x: Lateral position (inches)
        y: Forward position (inches)
        heading: Heading (degrees, clockwise positive)
    """

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    def distance_to(self, other: "Pose2D") -> float:
        """Straight-line distance to another pose (inches)."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def is_close(self, other: "Pose2D", abs_tol: float = 1e-9) -> bool:
        """Compare positions exactly and headings modulo 360."""
        return (
            math.isclose(self.x, other.x, abs_tol=abs_tol)
            and math.isclose(self.y, other.y, abs_tol=abs_tol)
            and abs(heading_error(other.heading, self.heading)) <= abs_tol
        )

    def __str__(self) -> str:
        return f"(x={self.x:.2f}, y={self.y:.2f}, heading={self.heading:.1f})"


def wrap_heading(heading: float) -> float:
    """Wrap a heading into [0, 360)."""
    wrapped = heading % 360.0
    # -1e-18 % 360.0 rounds up to 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def heading_error(target: float, current: float) -> float:
    """Shortest signed rotation from current to target, in [-180, 180).

    Positive means the robot has to turn clockwise.
    """
    return (target - current + 180.0) % 360.0 - 180.0


def path_point(x: float, y: float, heading: float, tile_unit: bool = True) -> Pose2D:
    """Create a path point, optionally from floor tile coordinates.

    Args:
        x: Target x in tiles (or inches if tile_unit is False)
        y: Target y in tiles (or inches if tile_unit is False)
        heading: Robot end heading at this point (degrees)
        tile_unit: If True, scale x and y by the tile size

    Returns:
        Pose2D in inches
    """
    scale = FULL_TILE_INCHES if tile_unit else 1.0
    return Pose2D(x * scale, y * scale, heading)
