"""Steering calibration data and its persistence.

Each swerve module's steering servo is calibrated by recording the servo
logical positions that point the wheel at -90 and +90 degrees. Any angle in
between is a linear interpolation of the two.

File format, one line per module in MODULE_NAMES order:

    frontLeft: 0.120000, 0.870000
    frontRight: 0.100000, 0.860000
    backLeft: 0.130000, 0.880000
    backRight: 0.110000, 0.850000
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from .config import (
    DEFAULT_STEER_MINUS90,
    DEFAULT_STEER_PLUS90,
    MODULE_NAMES,
    STEER_CALIBRATION_DATA_FILE,
)


class CalibrationFormatError(ValueError):
    """Raised when a calibration file exists but cannot be parsed."""


@dataclass(frozen=True)
class SwerveModuleCalibration:
    """Servo logical positions for -90 and +90 degrees of steering."""

    minus90_position: float
    plus90_position: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.minus90_position) and math.isfinite(self.plus90_position)):
            raise ValueError(
                f"Calibration values must be finite: "
                f"({self.minus90_position}, {self.plus90_position})"
            )
        if self.minus90_position == self.plus90_position:
            raise ValueError(
                f"Calibration values must differ: "
                f"({self.minus90_position}, {self.plus90_position})"
            )

    @property
    def zero_position(self) -> float:
        """Logical position that points the wheel straight ahead."""
        return (self.minus90_position + self.plus90_position) / 2.0

    def logical_position(self, angle: float) -> float:
        """Interpolate the logical position for a steering angle.

        Args:
            angle: Steering angle in degrees (not clamped here)

        Returns:
            lerp(minus90, plus90, (angle + 90) / 180)
        """
        fraction = (angle + 90.0) / 180.0
        return self.minus90_position + (self.plus90_position - self.minus90_position) * fraction

    def angle_for_position(self, position: float) -> float:
        """Inverse of logical_position."""
        fraction = (position - self.minus90_position) / (
            self.plus90_position - self.minus90_position
        )
        return fraction * 180.0 - 90.0

    def position(self, pos_index: int) -> float:
        """Calibration position by index: -1 zero, 0 minus 90, 1 plus 90."""
        if pos_index == -1:
            return self.zero_position
        if pos_index == 0:
            return self.minus90_position
        if pos_index == 1:
            return self.plus90_position
        raise ValueError(f"Invalid position index: {pos_index}")


class CalibrationSet:
    """One SwerveModuleCalibration per module, in MODULE_NAMES order.

    Attributes:
        source: File the set was loaded from, or None for built-in defaults.
    """

    def __init__(
        self,
        modules: Dict[str, SwerveModuleCalibration],
        source: Optional[Path] = None,
    ) -> None:
        if set(modules) != set(MODULE_NAMES):
            raise ValueError(
                f"Calibration must cover exactly {MODULE_NAMES}, got {tuple(modules)}"
            )
        self._modules = {name: modules[name] for name in MODULE_NAMES}
        self.source = source

    @classmethod
    def defaults(cls) -> "CalibrationSet":
        """Built-in calibration used when no file is available."""
        default = SwerveModuleCalibration(DEFAULT_STEER_MINUS90, DEFAULT_STEER_PLUS90)
        return cls({name: default for name in MODULE_NAMES})

    @property
    def is_default(self) -> bool:
        return self.source is None

    def __getitem__(self, name: str) -> SwerveModuleCalibration:
        return self._modules[name]

    def __iter__(self) -> Iterator[Tuple[str, SwerveModuleCalibration]]:
        return iter(self._modules.items())

    def __len__(self) -> int:
        return len(self._modules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CalibrationSet):
            return NotImplemented
        return self._modules == other._modules

    def __repr__(self) -> str:
        return f"CalibrationSet({self._modules!r}, source={self.source!r})"

    def replace(self, name: str, calibration: SwerveModuleCalibration) -> "CalibrationSet":
        """Return a copy with one module's calibration replaced."""
        modules = dict(self._modules)
        modules[name] = calibration
        return CalibrationSet(modules, self.source)


def format_calibration_line(name: str, calibration: SwerveModuleCalibration) -> str:
    return f"{name}: {calibration.minus90_position:.6f}, {calibration.plus90_position:.6f}"


def parse_calibration_line(line: str, expected_name: str) -> SwerveModuleCalibration:
    """Parse one 'name: v1, v2' line.

    Raises:
        CalibrationFormatError: If the name does not match or the numbers
            do not parse.
    """
    name, colon, values = line.partition(":")
    if not colon or name.strip() != expected_name:
        raise CalibrationFormatError(
            f"Invalid module name in line {line!r} (expected {expected_name!r})"
        )

    fields = values.split(",")
    if len(fields) != 2:
        raise CalibrationFormatError(f"Expected two values in line {line!r}")

    try:
        return SwerveModuleCalibration(float(fields[0]), float(fields[1]))
    except ValueError as e:
        raise CalibrationFormatError(f"Invalid calibration values in line {line!r}: {e}") from e


class CalibrationStore:
    """Loads and saves steering calibration data.

    Attributes:
        path: Calibration file location.
        calibration: Current in-memory calibration. Only replaced by a load
            that succeeds completely.
    """

    def __init__(
        self,
        path: Union[str, Path] = STEER_CALIBRATION_DATA_FILE,
        defaults: Optional[CalibrationSet] = None,
    ) -> None:
        self.path = Path(path)
        self.calibration = defaults if defaults is not None else CalibrationSet.defaults()

    def load(self) -> CalibrationSet:
        """Read the calibration file.

        A missing file is not an error: the current (built-in) calibration is
        kept and returned. A file that exists but is malformed aborts the
        whole load and leaves the in-memory calibration untouched.

        Returns:
            The calibration now in effect

        Raises:
            CalibrationFormatError: If a line has the wrong module name, is
                missing, or holds invalid numbers, or the file is not
                valid UTF-8 text.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logging.warning(
                f"Steering calibration file {self.path} not found, using built-in defaults."
            )
            return self.calibration
        except UnicodeDecodeError as e:
            raise CalibrationFormatError(f"{self.path}: not a text file: {e}") from e

        lines = text.splitlines()
        modules: Dict[str, SwerveModuleCalibration] = {}
        for index, name in enumerate(MODULE_NAMES):
            if index >= len(lines):
                raise CalibrationFormatError(
                    f"{self.path}: missing calibration line for {name!r}"
                )
            try:
                modules[name] = parse_calibration_line(lines[index], name)
            except CalibrationFormatError as e:
                raise CalibrationFormatError(f"{self.path}:{index + 1}: {e}") from e

        self.calibration = CalibrationSet(modules, source=self.path)
        for name, calibration in self.calibration:
            logging.debug(
                f"SteeringCalibrationData[{name}]: "
                f"[{calibration.minus90_position}, {calibration.plus90_position}]"
            )
        logging.info(f"Loaded steering calibration from {self.path}")
        return self.calibration

    def save(self, calibration: Optional[CalibrationSet] = None) -> bool:
        """Write calibration data, one line per module.

        Args:
            calibration: Set to save. Defaults to the in-memory calibration.

        Returns:
            True if the file was written. I/O failures are logged and
            reported as False; the in-memory calibration is unaffected.
        """
        if calibration is None:
            calibration = self.calibration

        lines = [format_calibration_line(name, cal) + "\n" for name, cal in calibration]
        try:
            with open(self.path, "w", encoding="utf-8", newline="\n") as f:
                f.writelines(lines)
        except OSError as e:
            logging.error(f"Failed to save steering calibration to {self.path}: {e}")
            return False

        logging.info(f"Saved steering calibration data to {self.path}")
        return True
