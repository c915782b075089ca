"""Swerve Control - Drive Orchestration for a Four-Module Swerve Robot

Turns high-level motion intents (hold a field pose, follow a path, drive
manually) into per-module steering and drive commands, compensating for the
alliance and start position the robot begins a match in.

## Architecture Overview

### Layer 1: Coordinate Transform (transform.py)
Autonomous targets are written once for RED/LEFT and mapped into the field
frame of the actual start configuration.

### Layer 2: Drive Modes (orchestrator.py)
Exactly one drive mode is active at a time: Idle, Manual, PositionHold or
PathFollow. Switching modes always cancels the previous one first.
- PositionHold: X, Y and heading PID channels (pid.py)
- PathFollow: Pure Pursuit over a densified waypoint path (follower.py)

### Layer 3: Drive Base (drive_base.py, model.py)
Swerve inverse kinematics from chassis powers to module speeds and angles,
the anti-defense X-formation, and the exclusive access governor
(governor.py) that guards the shared drive base.

### Layer 4: Swerve Modules (module.py, calibration.py)
Each module maps steering angles to servo logical positions using its
persisted calibration.

## Modules

- `config.py` - Documented parameters and configuration dataclasses
- `pose.py` - Pose, alliance and start position types
- `interfaces.py` - Hardware and localization protocols
- `sim.py` - Simulated actuators and kinematic robot
- `runner.py` - Fixed-rate control loop and autonomous routine

## Quick Start

```bash
python -m swerve_control --alliance blue --start-pos right
```

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .calibration import CalibrationFormatError, CalibrationStore
from .drive_base import SwerveDriveBase
from .follower import PurePursuitFollower
from .governor import ExclusiveAccessGovernor
from .module import SwerveModule
from .orchestrator import DriveOrchestrator
from .pose import Alliance, AutoChoices, Pose2D, StartPos
from .transform import adjust_target_heading, adjust_target_pose

__all__ = [
    "Alliance",
    "AutoChoices",
    "CalibrationFormatError",
    "CalibrationStore",
    "DriveOrchestrator",
    "ExclusiveAccessGovernor",
    "Pose2D",
    "PurePursuitFollower",
    "StartPos",
    "SwerveDriveBase",
    "SwerveModule",
    "adjust_target_heading",
    "adjust_target_pose",
]
