"""
Planner parameters.

``PlannerParameters`` is immutable: recovery escalation derives new values
with ``dataclasses.replace`` so a caller's configured parameters are never
changed by a planning request.
"""

from dataclasses import dataclass, replace
from enum import Enum

from chomp_planner.config import (
    DEMO_TYPE_DEFAULT,
    RECOVERY_LEARNING_RATE_STEP,
    RECOVERY_MAX_ITERATIONS_STEP,
    RECOVERY_RIDGE_FACTOR_STEP,
    RECOVERY_TIME_LIMIT_STEP_S,
)
from chomp_planner.utils.errors import PlannerConfigError


class InitMethod(Enum):
    """Trajectory initialization strategies."""
    LINEAR = "linear"
    CUBIC = "cubic"
    QUINTIC_SPLINE = "quintic-spline"
    EQUAL = "equal"  # precomputed warm start from demonstration data

    @classmethod
    def parse(cls, value: "str | InitMethod") -> "InitMethod":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for method in cls:
            if method.value == key:
                return method
        valid = ", ".join(m.value for m in cls)
        raise PlannerConfigError(f"Invalid trajectory initialization method '{value}' (expected one of: {valid})")


@dataclass(frozen=True)
class PlannerParameters:
    planning_time_limit: float = 10.0
    max_iterations: int = 200
    max_iterations_after_collision_free: int = 5
    smoothness_cost_weight: float = 0.1
    obstacle_cost_weight: float = 1.0
    learning_rate: float = 0.01
    smoothness_cost_velocity: float = 0.0
    smoothness_cost_acceleration: float = 1.0
    smoothness_cost_jerk: float = 0.0
    ridge_factor: float = 0.0
    joint_update_limit: float = 0.1
    collision_clearance: float = 0.2
    collision_threshold: float = 0.07
    trajectory_initialization_method: InitMethod = InitMethod.QUINTIC_SPLINE
    enable_failure_recovery: bool = False
    max_recovery_attempts: int = 5
    demo_type: str = DEMO_TYPE_DEFAULT

    def __post_init__(self):
        # Accept plain strings from config files and the CLI
        method = InitMethod.parse(self.trajectory_initialization_method)
        object.__setattr__(self, "trajectory_initialization_method", method)
        if self.max_recovery_attempts < 0:
            raise PlannerConfigError(f"max_recovery_attempts must be >= 0, got {self.max_recovery_attempts}")
        if self.max_iterations < 1:
            raise PlannerConfigError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.collision_clearance <= 0:
            raise PlannerConfigError(f"collision_clearance must be positive, got {self.collision_clearance}")

    def with_recovery_params(
        self,
        learning_rate: float,
        ridge_factor: float,
        planning_time_limit: float,
        max_iterations: int,
    ) -> "PlannerParameters":
        return replace(
            self,
            learning_rate=learning_rate,
            ridge_factor=ridge_factor,
            planning_time_limit=planning_time_limit,
            max_iterations=max_iterations,
        )

    def escalated(self) -> "PlannerParameters":
        """One recovery step: bigger steps, more ridge, more time and iterations."""
        return self.with_recovery_params(
            self.learning_rate + RECOVERY_LEARNING_RATE_STEP,
            self.ridge_factor + RECOVERY_RIDGE_FACTOR_STEP,
            self.planning_time_limit + RECOVERY_TIME_LIMIT_STEP_S,
            self.max_iterations + RECOVERY_MAX_ITERATIONS_STEP,
        )

    def recovery_summary(self) -> str:
        return (
            f"learning_rate={self.learning_rate:.4f} ridge_factor={self.ridge_factor:.4f} "
            f"planning_time_limit={self.planning_time_limit:.1f} max_iterations={self.max_iterations}"
        )
