"""Tests for steering calibration data and its persistence"""

import logging

import pytest

from swerve_control.calibration import (
    CalibrationFormatError,
    CalibrationSet,
    CalibrationStore,
    SwerveModuleCalibration,
    format_calibration_line,
    parse_calibration_line,
)
from swerve_control.config import MODULE_NAMES

VALID_LINES = [
    "frontLeft: 0.120000, 0.870000",
    "frontRight: 0.100000, 0.860000",
    "backLeft: 0.130000, 0.880000",
    "backRight: 0.110000, 0.850000",
]


def write_lines(path, lines):
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")


@pytest.fixture
def custom_set():
    """Calibration set with distinct values for every module"""
    return CalibrationSet(
        {
            "frontLeft": SwerveModuleCalibration(0.123456, 0.876543),
            "frontRight": SwerveModuleCalibration(0.2, 0.8),
            "backLeft": SwerveModuleCalibration(0.9, 0.1),
            "backRight": SwerveModuleCalibration(-0.25, 1.25),
        }
    )


def test_logical_position_interpolates():
    """Test angle to logical position is linear between -90 and +90"""
    cal = SwerveModuleCalibration(100.0, 200.0)
    assert cal.logical_position(-90.0) == 100.0
    assert cal.logical_position(0.0) == 150.0
    assert cal.logical_position(90.0) == 200.0
    assert cal.zero_position == 150.0
    assert cal.angle_for_position(175.0) == pytest.approx(45.0)


def test_position_index():
    """Test calibration positions by index"""
    cal = SwerveModuleCalibration(0.2, 0.8)
    assert cal.position(-1) == pytest.approx(0.5)
    assert cal.position(0) == 0.2
    assert cal.position(1) == 0.8
    with pytest.raises(ValueError):
        cal.position(2)


def test_calibration_values_validated():
    """Test non-finite or equal values are rejected"""
    with pytest.raises(ValueError):
        SwerveModuleCalibration(float("nan"), 1.0)
    with pytest.raises(ValueError):
        SwerveModuleCalibration(0.0, float("inf"))
    with pytest.raises(ValueError):
        SwerveModuleCalibration(0.5, 0.5)


def test_set_requires_every_module():
    """Test a calibration set must cover exactly the known modules"""
    with pytest.raises(ValueError):
        CalibrationSet({"frontLeft": SwerveModuleCalibration(0.0, 1.0)})


def test_format_and_parse_line():
    """Test one calibration line format"""
    cal = SwerveModuleCalibration(0.1, 0.9)
    line = format_calibration_line("backLeft", cal)
    assert line == "backLeft: 0.100000, 0.900000"
    assert parse_calibration_line(line, "backLeft") == cal


def test_format_error_is_value_error():
    """Test the format error is catchable as a ValueError"""
    with pytest.raises(ValueError):
        parse_calibration_line("frontLeft 0.1, 0.9", "frontLeft")


def test_save_writes_one_line_per_module(tmp_path, custom_set):
    """Test saved file layout"""
    path = tmp_path / "SteerCalibration.txt"
    assert CalibrationStore(path).save(custom_set) is True

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "frontLeft: 0.123456, 0.876543",
        "frontRight: 0.200000, 0.800000",
        "backLeft: 0.900000, 0.100000",
        "backRight: -0.250000, 1.250000",
    ]


def test_save_and_reload_round_trip(tmp_path, custom_set):
    """Test a saved calibration reloads to the same values"""
    path = tmp_path / "SteerCalibration.txt"
    CalibrationStore(path).save(custom_set)

    store = CalibrationStore(path)
    loaded = store.load()

    assert loaded == custom_set
    assert store.calibration is loaded
    assert loaded.source == path
    assert not loaded.is_default


def test_load_valid_file(tmp_path):
    """Test loading a hand-written file"""
    path = tmp_path / "cal.txt"
    write_lines(path, VALID_LINES)

    loaded = CalibrationStore(path).load()

    assert loaded["frontLeft"] == SwerveModuleCalibration(0.12, 0.87)
    assert loaded["backRight"] == SwerveModuleCalibration(0.11, 0.85)
    assert [name for name, _ in loaded] == list(MODULE_NAMES)


def test_load_ignores_trailing_lines(tmp_path):
    """Test lines after the last module are ignored"""
    path = tmp_path / "cal.txt"
    write_lines(path, VALID_LINES + ["", "notes: anything"])

    loaded = CalibrationStore(path).load()
    assert len(loaded) == 4


def test_missing_file_uses_defaults(tmp_path, caplog):
    """Test a missing file falls back to the built-in calibration"""
    store = CalibrationStore(tmp_path / "missing.txt")

    with caplog.at_level(logging.WARNING):
        loaded = store.load()

    assert loaded.is_default
    assert loaded == CalibrationSet.defaults()
    assert "not found" in caplog.text


def test_wrong_module_name_is_fatal(tmp_path, custom_set):
    """Test a corrupted module name aborts the load without changes"""
    path = tmp_path / "cal.txt"
    lines = list(VALID_LINES)
    lines[1] = "frontRite: 0.100000, 0.860000"
    write_lines(path, lines)

    store = CalibrationStore(path, defaults=custom_set)
    with pytest.raises(CalibrationFormatError, match="frontRight"):
        store.load()

    assert store.calibration is custom_set
    assert store.calibration["frontLeft"] == SwerveModuleCalibration(0.123456, 0.876543)


@pytest.mark.parametrize(
    "bad_line",
    [
        "frontLeft: abc, 0.87",
        "frontLeft: 0.12 0.87",
        "frontLeft: 0.12, 0.87, 0.5",
        "frontLeft: nan, 0.87",
        "frontLeft: 0.5, 0.5",
        "frontLeft",
    ],
)
def test_malformed_line_is_fatal(tmp_path, bad_line):
    """Test unparsable lines raise and leave the defaults in place"""
    path = tmp_path / "cal.txt"
    write_lines(path, [bad_line] + VALID_LINES[1:])

    store = CalibrationStore(path)
    with pytest.raises(CalibrationFormatError, match=":1:"):
        store.load()
    assert store.calibration.is_default


def test_missing_line_is_fatal(tmp_path):
    """Test a truncated file raises"""
    path = tmp_path / "cal.txt"
    write_lines(path, VALID_LINES[:3])

    store = CalibrationStore(path)
    with pytest.raises(CalibrationFormatError, match="backRight"):
        store.load()
    assert store.calibration.is_default


def test_non_utf8_file_is_fatal(tmp_path):
    """Test undecodable bytes raise a format error and keep the defaults"""
    path = tmp_path / "cal.txt"
    path.write_bytes(b"frontLeft: 0.1, 0.9\n\xff\xfe garbage\n")

    store = CalibrationStore(path)
    with pytest.raises(CalibrationFormatError, match="cal.txt"):
        store.load()
    assert store.calibration.is_default


def test_save_failure_returns_false(tmp_path, caplog, custom_set):
    """Test an unwritable path is reported, not raised"""
    store = CalibrationStore(tmp_path, defaults=custom_set)

    with caplog.at_level(logging.ERROR):
        assert store.save() is False

    assert store.calibration is custom_set
    assert "Failed to save" in caplog.text


def test_replace_returns_copy(custom_set):
    """Test replacing one module leaves the original set untouched"""
    new_cal = SwerveModuleCalibration(0.3, 0.7)
    updated = custom_set.replace("backLeft", new_cal)

    assert updated["backLeft"] == new_cal
    assert custom_set["backLeft"] == SwerveModuleCalibration(0.9, 0.1)
