"""Tests for drive mode orchestration"""

import logging

import pytest

from conftest import run_ticks
from swerve_control.orchestrator import Idle, Manual, PathFollow, PositionHold
from swerve_control.pose import Alliance, AutoChoices, Pose2D, StartPos, heading_error


def motor_powers(robot):
    return [motor.power for motor in robot.drive_motors]


def servo_positions(robot):
    return [servo.position for servo in robot.steer_servos]


class TestModes:
    def test_starts_idle(self, orchestrator):
        """Test a new orchestrator has no active mode"""
        assert orchestrator.is_idle
        assert not orchestrator.on_target

    def test_manual_drive_applied_on_tick(self, orchestrator, robot):
        """Test manual commands reach the modules on the next tick"""
        assert orchestrator.drive_manual(0.0, 0.5, 0.0)
        assert isinstance(orchestrator.mode, Manual)

        orchestrator.tick(0.02)

        assert motor_powers(robot) == pytest.approx([0.5] * 4)

    def test_newest_manual_command_wins(self, orchestrator, robot):
        """Test a second manual command replaces the first"""
        orchestrator.drive_manual(0.0, 0.5, 0.0)
        orchestrator.drive_manual(0.0, 0.25, 0.0)
        orchestrator.tick(0.02)

        assert orchestrator.mode == Manual(0.0, 0.25, 0.0)
        assert motor_powers(robot) == pytest.approx([0.25] * 4)

    def test_hold_position_cancels_path_follow(self, orchestrator):
        """Test starting a hold cancels the active path follower first"""
        orchestrator.follow_path([Pose2D(0, 24, 0), Pose2D(24, 24, 90)])
        orchestrator.tick(0.02)
        assert orchestrator.follower.active
        assert orchestrator.follower.y_pid.target is not None

        orchestrator.hold_position(Pose2D(5, 5, 0))

        assert isinstance(orchestrator.mode, PositionHold)
        assert not orchestrator.follower.active
        assert orchestrator.follower.y_pid.target is None

    def test_path_follow_resets_hold_channels(self, orchestrator):
        """Test starting a path clears the position hold state"""
        orchestrator.hold_position(Pose2D(5, 5, 0))
        orchestrator.tick(0.02)

        orchestrator.follow_path([Pose2D(0, 24, 0)])

        assert isinstance(orchestrator.mode, PathFollow)
        assert orchestrator.x_pid.target is None
        assert orchestrator.turn_pid.target is None

    def test_manual_supersedes_hold(self, orchestrator):
        """Test manual drive ends position hold"""
        orchestrator.hold_position(Pose2D(5, 5, 0))
        orchestrator.drive_manual(0.0, 0.0, 0.3)

        assert isinstance(orchestrator.mode, Manual)
        assert orchestrator.x_pid.target is None

    def test_cancel_from_idle_is_noop(self, orchestrator, robot):
        """Test cancelling with nothing active"""
        assert orchestrator.cancel()
        assert orchestrator.is_idle
        assert motor_powers(robot) == [0.0] * 4

    def test_cancel_stops_modules(self, orchestrator, robot):
        """Test cancel zeros every module"""
        orchestrator.drive_manual(0.0, 1.0, 0.0)
        orchestrator.tick(0.02)

        orchestrator.cancel()
        orchestrator.tick(0.02)

        assert orchestrator.is_idle
        assert motor_powers(robot) == [0.0] * 4

    def test_follow_path_requires_points(self, orchestrator):
        """Test an empty path is rejected"""
        with pytest.raises(ValueError):
            orchestrator.follow_path([])

    def test_fast_mode_override(self, orchestrator):
        """Test a per-path fast mode override"""
        orchestrator.follow_path([Pose2D(0, 24, 0)], fast_mode=False)
        assert orchestrator.follower.fast_mode is False

    def test_fast_mode_override_applies_to_one_path(self, orchestrator, config):
        """Test the next path without an override uses the configured fast mode"""
        default = config.pure_pursuit.fast_mode
        orchestrator.follow_path([Pose2D(0, 24, 0)], fast_mode=not default)
        assert orchestrator.follower.fast_mode is (not default)

        orchestrator.follow_path([Pose2D(24, 24, 0)])

        assert orchestrator.follower.fast_mode is default


class TestClosedLoop:
    def test_hold_position_converges(self, orchestrator, robot):
        """Test position hold reaches its target in simulation"""
        target = Pose2D(10.0, 10.0, 30.0)
        orchestrator.hold_position(target)

        run_ticks(orchestrator, robot, 500, until=lambda: orchestrator.on_target)

        assert orchestrator.on_target
        assert robot.pose.distance_to(target) < 1.5
        assert isinstance(orchestrator.mode, PositionHold)

    def test_follow_path_completes(self, orchestrator, robot):
        """Test a path is followed to its end and the orchestrator goes idle"""
        points = [Pose2D(0.0, 24.0, 0.0), Pose2D(24.0, 24.0, 90.0)]
        orchestrator.follow_path(points)

        run_ticks(orchestrator, robot, 1000, until=lambda: orchestrator.is_idle)

        assert orchestrator.is_idle
        assert robot.pose.distance_to(points[-1]) <= 2.0
        assert abs(heading_error(90.0, robot.pose.heading)) <= 2.0
        assert motor_powers(robot) == [0.0] * 4

    def test_tick_fault_degrades_to_idle(self, orchestrator, robot, monkeypatch, caplog):
        """Test an exception during a tick stops the robot"""
        orchestrator.hold_position(Pose2D(10.0, 10.0, 0.0))
        orchestrator.tick(0.02)
        assert any(power != 0.0 for power in motor_powers(robot))

        def broken_pose():
            raise RuntimeError("localization lost")

        monkeypatch.setattr(orchestrator.drive_base, "get_pose", broken_pose)
        with caplog.at_level(logging.ERROR):
            orchestrator.tick(0.02)

        assert orchestrator.is_idle
        assert motor_powers(robot) == [0.0] * 4
        assert "localization lost" in caplog.text

    def test_non_finite_pose_degrades_to_idle(self, orchestrator, robot):
        """Test a NaN measurement is treated as a fault"""
        orchestrator.hold_position(Pose2D(10.0, 10.0, 0.0))
        robot.set_pose(Pose2D(float("nan"), 0.0, 0.0))

        orchestrator.tick(0.02)

        assert orchestrator.is_idle


class TestExclusiveAccess:
    def test_other_callers_refused(self, orchestrator):
        """Test commands from non-holders are refused"""
        assert orchestrator.acquire_exclusive_access("driver")

        assert orchestrator.drive_manual(0.0, 1.0, 0.0, owner="autonomous") is False
        assert orchestrator.hold_position(Pose2D(), owner=None) is False
        assert orchestrator.follow_path([Pose2D(0, 10, 0)], owner="autonomous") is False
        assert orchestrator.cancel(owner="autonomous") is False
        assert orchestrator.is_idle

        assert orchestrator.drive_manual(0.0, 1.0, 0.0, owner="driver") is True

    def test_access_after_release(self, orchestrator):
        """Test a second caller succeeds once the first releases"""
        orchestrator.acquire_exclusive_access("driver")
        assert not orchestrator.acquire_exclusive_access("autonomous")

        assert orchestrator.release_exclusive_access("driver")

        assert orchestrator.acquire_exclusive_access("autonomous")
        assert orchestrator.drive_manual(0.0, 1.0, 0.0, owner="autonomous")

    def test_anti_defense_locks_formation(self, orchestrator, robot):
        """Test anti-defense takes the lock and holds the X-formation"""
        orchestrator.drive_manual(0.0, 1.0, 0.0)
        orchestrator.tick(0.02)

        assert orchestrator.set_anti_defense_enabled("driver", True)

        assert orchestrator.is_idle
        assert orchestrator.anti_defense_enabled
        assert orchestrator.drive_base.governor.owner == "driver"
        assert servo_positions(robot) == pytest.approx([0.25, 0.75, 0.75, 0.25])
        assert motor_powers(robot) == [0.0] * 4

        assert orchestrator.drive_manual(0.0, 1.0, 0.0, owner="autonomous") is False
        assert orchestrator.set_anti_defense_enabled("autonomous", False) is False
        assert orchestrator.anti_defense_enabled

    def test_anti_defense_disable_releases(self, orchestrator, robot):
        """Test disabling anti-defense frees the drive base"""
        orchestrator.set_anti_defense_enabled("driver", True)

        assert orchestrator.set_anti_defense_enabled("driver", False)

        assert not orchestrator.anti_defense_enabled
        assert not orchestrator.drive_base.governor.is_held
        assert servo_positions(robot) == pytest.approx([0.5] * 4)
        assert orchestrator.drive_manual(0.0, 1.0, 0.0, owner="autonomous")

    def test_anti_defense_refused_while_held(self, orchestrator):
        """Test anti-defense cannot override another owner's lock"""
        orchestrator.acquire_exclusive_access("driver")

        assert orchestrator.set_anti_defense_enabled("autonomous", True) is False
        assert not orchestrator.anti_defense_enabled
        assert orchestrator.drive_base.governor.owner == "driver"

    def test_anonymous_acquire_refused(self, orchestrator):
        """Test an anonymous caller gets a refusal, not an exception"""
        assert orchestrator.acquire_exclusive_access(None) is False
        assert not orchestrator.drive_base.governor.is_held
        assert orchestrator.drive_manual(0.0, 1.0, 0.0) is True

    def test_steering_position_gated(self, orchestrator, robot):
        """Test steering calibration positions respect the lock"""
        orchestrator.acquire_exclusive_access("driver")
        assert orchestrator.set_steering_position(1, owner="autonomous") is False

        assert orchestrator.set_steering_position(1, owner="driver")
        assert servo_positions(robot) == [1.0] * 4


class TestAutonomousHelpers:
    def test_set_auto_start_position(self, orchestrator, robot):
        """Test localization is reset to the start pose"""
        pose = orchestrator.set_auto_start_position(AutoChoices(Alliance.BLUE, StartPos.RIGHT))

        assert robot.pose == pose
        assert pose.heading == 180.0

    def test_drive_to_adjusts_target(self, orchestrator):
        """Test canonical targets are mirrored for the chosen start"""
        choices = AutoChoices(Alliance.BLUE, StartPos.LEFT)
        assert orchestrator.drive_to(Pose2D(5.0, 10.0, 30.0), choices)

        assert orchestrator.x_pid.target == -5.0
        assert orchestrator.y_pid.target == -10.0
        assert orchestrator.turn_pid.target == pytest.approx(210.0)

    def test_follow_auto_path_adjusts_points(self, orchestrator):
        """Test canonical paths are mirrored for the chosen start"""
        choices = AutoChoices(Alliance.RED, StartPos.RIGHT)
        orchestrator.follow_auto_path([Pose2D(5.0, 10.0, 30.0)], choices)

        assert orchestrator.mode == PathFollow((Pose2D(-5.0, 10.0, -30.0),))
        assert orchestrator.follower.final_pose.is_close(Pose2D(-5.0, 10.0, -30.0), abs_tol=1e-9)

    def test_idle_tick_does_nothing(self, orchestrator, robot):
        """Test ticking while idle leaves the actuators alone"""
        orchestrator.tick(0.02)
        assert isinstance(orchestrator.mode, Idle)
        assert motor_powers(robot) == [0.0] * 4
