"""Alliance and start-position aware coordinate transform.

Autonomous targets are written once, in the canonical frame of a robot that
starts RED/LEFT. The field has a diagonal symmetry rather than a simple
quadrant one, so each of the four start configurations maps the canonical
pose differently:

    RED/LEFT   identity
    RED/RIGHT  mirror X, negate heading
    BLUE/LEFT  mirror Y, rotate heading 180, mirror X
    BLUE/RIGHT mirror Y, rotate heading 180, negate heading

For BLUE the Y mirror and the 180 degree rotation happen first. The heading
rotation uses a dividend-signed modulo (math.fmod), so a negative canonical
heading stays negative.
"""

import math

from .config import HALF_FIELD_INCHES, STARTPOS_FROM_FIELDCENTER_X
from .pose import Alliance, AutoChoices, Pose2D, StartPos, path_point


def adjust_target_pose(pose: Pose2D, alliance: Alliance, start_pos: StartPos) -> Pose2D:
    """Map a canonical (RED/LEFT) target pose into the actual field frame.

    Args:
        pose: Target pose as if the robot started RED/LEFT
        alliance: Alliance the robot plays for
        start_pos: Start position on the alliance wall

    Returns:
        Target pose valid for the given start configuration

    Example:
        >>> adjust_target_pose(Pose2D(5, 10, 30), Alliance.BLUE, StartPos.LEFT)
        Pose2D(x=-5, y=-10, heading=210.0)
    """
    key = (alliance, start_pos)
    x, y, heading = pose.x, pose.y, pose.heading

    if key == (Alliance.BLUE, StartPos.LEFT):
        return Pose2D(-x, -y, math.fmod(heading + 180.0, 360.0))
    if key == (Alliance.BLUE, StartPos.RIGHT):
        return Pose2D(x, -y, -math.fmod(heading + 180.0, 360.0))
    if key == (Alliance.RED, StartPos.RIGHT):
        return Pose2D(-x, y, -heading)
    return Pose2D(x, y, heading)


def adjust_target_heading(heading: float, alliance: Alliance, start_pos: StartPos) -> float:
    """Heading-only form of adjust_target_pose."""
    return adjust_target_pose(Pose2D(0.0, 0.0, heading), alliance, start_pos).heading


def restore_target_pose(pose: Pose2D, alliance: Alliance, start_pos: StartPos) -> Pose2D:
    """Inverse of adjust_target_pose: map a field pose back to the canonical frame.

    Positions round-trip exactly; headings round-trip modulo 360.
    """
    key = (alliance, start_pos)
    x, y, heading = pose.x, pose.y, pose.heading

    if key == (Alliance.BLUE, StartPos.LEFT):
        return Pose2D(-x, -y, math.fmod(heading - 180.0, 360.0))
    if key == (Alliance.BLUE, StartPos.RIGHT):
        return Pose2D(x, -y, math.fmod(-heading - 180.0, 360.0))
    if key == (Alliance.RED, StartPos.RIGHT):
        return Pose2D(-x, y, -heading)
    return Pose2D(x, y, heading)


def adjust_path_point(
    x: float, y: float, heading: float, choices: AutoChoices, tile_unit: bool = True
) -> Pose2D:
    """Build a field path point from canonical coordinates.

    Args:
        x: Canonical x (tiles, or inches if tile_unit is False)
        y: Canonical y (tiles, or inches if tile_unit is False)
        heading: Canonical end heading (degrees)
        choices: Alliance and start position of this match
        tile_unit: If True, x and y are in floor tiles

    Returns:
        Adjusted path point in inches
    """
    return adjust_target_pose(
        path_point(x, y, heading, tile_unit), choices.alliance, choices.start_pos
    )


def start_pose(alliance: Alliance, start_pos: StartPos, robot_length: float) -> Pose2D:
    """Field pose of the robot at the start of a match.

    The robot sits against its alliance wall, 1.5 tiles off center, facing
    the field.
    """
    sx = STARTPOS_FROM_FIELDCENTER_X
    sy = HALF_FIELD_INCHES - robot_length / 2.0
    key = (alliance, start_pos)

    if key == (Alliance.RED, StartPos.LEFT):
        return Pose2D(-sx, -sy, 0.0)
    if key == (Alliance.RED, StartPos.RIGHT):
        return Pose2D(sx, -sy, 0.0)
    if key == (Alliance.BLUE, StartPos.LEFT):
        return Pose2D(sx, sy, 180.0)
    return Pose2D(-sx, sy, 180.0)
