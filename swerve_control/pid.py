"""PID controller for position and heading hold.

One controller drives one axis (X, Y or heading). The orchestrator and the
path follower each own three of them.
"""

import math
from typing import Dict, Optional

from .config import PidChannelConfig, PidCoefficients
from .pose import heading_error


class PidController:
    """PID feedback controller with tolerance, output limit and anti-windup.

    Control law:
        error = target - current      (wrapped to [-180, 180) if angular)
        output = Kp * e + Ki * integral(e) + Kd * d(e)/dt + Kf * target
        output = clamp(output, -output_limit, output_limit)

    Attributes:
        name: Channel name for logging
        coefficients: PID gains
        tolerance: Error magnitude considered on target
        output_limit: Output magnitude cap
        integral_limit: Anti-windup clamp on the integral term's contribution
        angular: Wrap errors as headings (degrees)
    """

    def __init__(
        self,
        name: str,
        coefficients: PidCoefficients,
        tolerance: float,
        output_limit: float = 1.0,
        integral_limit: float = 0.5,
        angular: bool = False,
    ):
        """Initialize the controller.

        Args:
            name: Channel name for logging.
            coefficients: Proportional, integral, derivative and feedforward gains.
            tolerance: Error magnitude considered on target. Must be >= 0.
            output_limit: Output magnitude cap, range (0, 1].
                The heading channel uses a lower cap so a slowly sampled gyro
                does not make the robot oscillate.
            integral_limit: Anti-windup clamp for Ki * integral(e).
            angular: If True, errors are wrapped to [-180, 180) degrees.
        """
        if tolerance < 0.0:
            raise ValueError(f"{name}: tolerance must be >= 0, got {tolerance}")
        if output_limit <= 0.0:
            raise ValueError(f"{name}: output_limit must be > 0, got {output_limit}")

        self.name = name
        self.coefficients = coefficients
        self.tolerance = tolerance
        self.output_limit = output_limit
        self.integral_limit = integral_limit
        self.angular = angular

        self.target: Optional[float] = None
        self.integral: float = 0.0
        self.prev_error: Optional[float] = None
        self.last_error: float = 0.0
        self.last_output: float = 0.0

    @classmethod
    def from_config(
        cls, name: str, config: PidChannelConfig, angular: bool = False
    ) -> "PidController":
        return cls(
            name,
            config.coefficients,
            config.tolerance,
            output_limit=config.output_limit,
            integral_limit=config.integral_limit,
            angular=angular,
        )

    def set_target(self, target: float) -> None:
        """Set a new absolute target. Integral state carries over."""
        self.target = target

    def get_error(self, current: float) -> float:
        """Error between the target and a measurement."""
        if self.target is None:
            return 0.0
        if self.angular:
            return heading_error(self.target, current)
        return self.target - current

    def on_target(self, current: Optional[float] = None) -> bool:
        """Whether the error is within tolerance.

        Args:
            current: Measurement to check. Defaults to the last computed error.
        """
        error = self.last_error if current is None else self.get_error(current)
        return abs(error) <= self.tolerance

    def compute(self, current: float, dt: float) -> float:
        """Compute the control output for one tick.

        Args:
            current: Current measurement of this axis
            dt: Time step since the last tick (seconds)

        Returns:
            Output clamped to [-output_limit, output_limit]
        """
        if self.target is None:
            return 0.0

        error = self.get_error(current)
        coeffs = self.coefficients

        # Derivative of error; skipped on the first tick after a reset
        if self.prev_error is not None and dt > 0:
            derivative = (error - self.prev_error) / dt
        else:
            derivative = 0.0
        self.prev_error = error
        self.last_error = error

        # Anti-windup: clamp the integral term's contribution
        if coeffs.ki != 0.0 and dt > 0:
            self.integral += error * dt
            limit = self.integral_limit / abs(coeffs.ki)
            self.integral = max(-limit, min(limit, self.integral))

        output = (
            coeffs.kp * error
            + coeffs.ki * self.integral
            + coeffs.kd * derivative
            + coeffs.kf * self.target
        )
        if not math.isfinite(output):
            raise ArithmeticError(f"{self.name}: non-finite output (error={error})")

        self.last_output = max(-self.output_limit, min(self.output_limit, output))
        return self.last_output

    def reset(self) -> None:
        """Clear target, integral and derivative state.

        Call this whenever the owning drive mode starts or stops.
        """
        self.target = None
        self.integral = 0.0
        self.prev_error = None
        self.last_error = 0.0
        self.last_output = 0.0

    def get_diagnostics(self) -> Dict[str, float]:
        """Get diagnostic information for logging and debugging."""
        return {
            "target": self.target if self.target is not None else math.nan,
            "error": self.last_error,
            "integral": self.integral,
            "output": self.last_output,
        }
