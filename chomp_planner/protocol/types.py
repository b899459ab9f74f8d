"""
Type definitions for planning requests and responses.

Defines enums and dataclasses used across the public API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from spatialmath import SE3

if TYPE_CHECKING:
    from chomp_planner.parameters import PlannerParameters


class ErrorCode(Enum):
    """Planning outcome codes (values match the MoveIt error code message)."""
    SUCCESS = 1
    FAILURE = 99999
    PLANNING_FAILED = -1
    INVALID_MOTION_PLAN = -2
    GOAL_CONSTRAINTS_VIOLATED = -14
    INVALID_GROUP_NAME = -15
    INVALID_GOAL_CONSTRAINTS = -16
    INVALID_ROBOT_STATE = -17


@dataclass
class RobotState:
    """
    Full robot configuration over every joint of a scene, in scene order.

    ``transforms`` carries auxiliary frames attached to the state.
    """
    joint_names: tuple[str, ...]
    positions: NDArray[np.float64]
    velocities: NDArray[np.float64] | None = None
    transforms: dict[str, SE3] = field(default_factory=dict)

    def __post_init__(self):
        self.joint_names = tuple(self.joint_names)
        self.positions = np.array(self.positions, dtype=np.float64)
        if self.positions.shape != (len(self.joint_names),):
            raise ValueError(
                f"positions shape {self.positions.shape} does not match {len(self.joint_names)} joints"
            )
        if self.velocities is not None:
            self.velocities = np.array(self.velocities, dtype=np.float64)

    def index(self, joint_name: str) -> int:
        try:
            return self.joint_names.index(joint_name)
        except ValueError:
            raise KeyError(f"Unknown joint '{joint_name}'") from None

    def position(self, joint_name: str) -> float:
        return float(self.positions[self.index(joint_name)])

    def set_position(self, joint_name: str, value: float) -> None:
        self.positions[self.index(joint_name)] = float(value)

    def velocity(self, joint_name: str) -> float:
        if self.velocities is None:
            return 0.0
        return float(self.velocities[self.index(joint_name)])

    def set_velocity(self, joint_name: str, value: float) -> None:
        if self.velocities is None:
            self.velocities = np.zeros_like(self.positions)
        self.velocities[self.index(joint_name)] = float(value)

    def group_positions(self, joint_names: tuple[str, ...] | list[str]) -> NDArray[np.float64]:
        """Positions of the named joints, in the order given."""
        return np.array([self.positions[self.index(n)] for n in joint_names], dtype=np.float64)

    def set_group_positions(self, joint_names: tuple[str, ...] | list[str], values) -> None:
        for name, value in zip(joint_names, values):
            self.positions[self.index(name)] = float(value)

    def copy(self) -> RobotState:
        return RobotState(
            self.joint_names,
            self.positions.copy(),
            None if self.velocities is None else self.velocities.copy(),
            dict(self.transforms),
        )


@dataclass
class StartState:
    """Requested start: joint positions overriding the scene's current state."""
    joint_positions: dict[str, float] = field(default_factory=dict)
    transforms: dict[str, SE3] = field(default_factory=dict)


@dataclass
class JointConstraint:
    """Target position for one joint with asymmetric tolerance."""
    joint_name: str
    position: float
    tolerance_above: float = 1e-3
    tolerance_below: float = 1e-3


@dataclass
class PositionConstraint:
    """Cartesian position target for a link. Not supported as a goal."""
    link_name: str
    target: SE3 = field(default_factory=SE3)


@dataclass
class OrientationConstraint:
    """Cartesian orientation target for a link. Not supported as a goal."""
    link_name: str
    target: SE3 = field(default_factory=SE3)


@dataclass
class Constraints:
    joint_constraints: list[JointConstraint] = field(default_factory=list)
    position_constraints: list[PositionConstraint] = field(default_factory=list)
    orientation_constraints: list[OrientationConstraint] = field(default_factory=list)


@dataclass
class MotionPlanRequest:
    group_name: str
    goal_constraints: list[Constraints] = field(default_factory=list)
    start_state: StartState = field(default_factory=StartState)


@dataclass
class Waypoint:
    state: RobotState
    duration_from_previous: float


@dataclass
class RobotTrajectory:
    """Time-parameterized joint path for one planning group."""
    group_name: str
    joint_names: tuple[str, ...]
    waypoints: list[Waypoint] = field(default_factory=list)

    def add_suffix_waypoint(self, state: RobotState, duration: float) -> None:
        self.waypoints.append(Waypoint(state, float(duration)))

    def __len__(self) -> int:
        return len(self.waypoints)

    @property
    def last_state(self) -> RobotState:
        if not self.waypoints:
            raise IndexError("trajectory is empty")
        return self.waypoints[-1].state

    def positions(self) -> NDArray[np.float64]:
        """Group joint positions, shape (num_waypoints, num_joints)."""
        return np.array([w.state.group_positions(self.joint_names) for w in self.waypoints])

    def velocities(self) -> NDArray[np.float64]:
        """Group joint velocities, shape (num_waypoints, num_joints)."""
        return np.array(
            [[w.state.velocity(n) for n in self.joint_names] for w in self.waypoints]
        )

    def durations(self) -> NDArray[np.float64]:
        return np.array([w.duration_from_previous for w in self.waypoints])


@dataclass
class MotionPlanResponse:
    """Planning result plus diagnostics."""
    error_code: ErrorCode
    trajectory: RobotTrajectory | None = None
    processing_time: float = 0.0
    parameters_used: PlannerParameters | None = None
    attempts: int = 0

    @property
    def success(self) -> bool:
        return self.error_code is ErrorCode.SUCCESS
