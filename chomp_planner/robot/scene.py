"""
Planning scene: joint capabilities, bounds, groups and collision hooks.

Joint kinds are resolved once when the scene is built, so the planner asks
``JointSpec.is_continuous`` instead of inspecting joint model types.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
import logging
import math

import numpy as np
from numpy.typing import NDArray
import roboticstoolbox as rtb
from spatialmath import SE3

from chomp_planner.config import DEFAULT_GROUP
from chomp_planner.protocol.types import RobotState, StartState
from chomp_planner.utils.errors import PlanningSceneError

logger = logging.getLogger(__name__)

# Returns True when the state is in collision
CollisionFn = Callable[[RobotState], bool]
# Non-negative penalty, zero when clear of obstacles
ObstacleCostFn = Callable[[RobotState], float]
# Signed surface distances (any shape), negative when penetrating
DistanceFn = Callable[[RobotState], NDArray[np.float64]]


class JointKind(Enum):
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"


@dataclass(frozen=True)
class JointSpec:
    """Single degree of freedom joint."""
    name: str
    kind: JointKind = JointKind.REVOLUTE
    lower: float = -math.pi
    upper: float = math.pi

    def __post_init__(self):
        if self.kind is not JointKind.CONTINUOUS and self.lower > self.upper:
            raise PlanningSceneError(f"Joint '{self.name}' has lower limit above upper limit")

    @property
    def is_continuous(self) -> bool:
        return self.kind is JointKind.CONTINUOUS

    def satisfies_bounds(self, value: float, margin: float = 0.0) -> bool:
        if self.is_continuous:
            return math.isfinite(value)
        return (self.lower - margin) <= value <= (self.upper + margin)

    def clamp(self, value):
        if self.is_continuous:
            return value
        return np.clip(value, self.lower, self.upper)


class PlanningScene:
    """
    Robot model context consumed by the planner and optimizers.

    Args:
        joints: Every joint of the robot, in state order
        groups: Group name -> ordered joint names (defaults to one group with all joints)
        current_state: Joint positions of the current state (defaults to zeros clamped into bounds)
        collision_fn: Collision predicate over full robot states
        obstacle_cost_fn: Obstacle penalty over full robot states
        distance_fn: Signed obstacle distances over full robot states; when set,
            optimizers derive cost and collision from it with their own clearance
        transforms: Named auxiliary frames known to the scene
    """

    def __init__(
        self,
        joints: Sequence[JointSpec],
        groups: Mapping[str, Sequence[str]] | None = None,
        current_state: Sequence[float] | None = None,
        collision_fn: CollisionFn | None = None,
        obstacle_cost_fn: ObstacleCostFn | None = None,
        distance_fn: DistanceFn | None = None,
        transforms: Mapping[str, SE3] | None = None,
    ):
        self.joints: tuple[JointSpec, ...] = tuple(joints)
        self._by_name = {j.name: j for j in self.joints}
        if len(self._by_name) != len(self.joints):
            raise PlanningSceneError("Duplicate joint names in scene")

        if groups is None:
            groups = {DEFAULT_GROUP: [j.name for j in self.joints]}
        self.groups: dict[str, tuple[str, ...]] = {}
        for name, members in groups.items():
            unknown = [m for m in members if m not in self._by_name]
            if unknown:
                raise PlanningSceneError(f"Group '{name}' references unknown joints {unknown}")
            self.groups[name] = tuple(members)

        if current_state is None:
            current = np.array([float(j.clamp(0.0)) for j in self.joints], dtype=np.float64)
        else:
            current = np.asarray(current_state, dtype=np.float64)
        self._current = RobotState(self.joint_names, current, transforms=dict(transforms or {}))
        self.collision_fn = collision_fn
        self.obstacle_cost_fn = obstacle_cost_fn
        self.distance_fn = distance_fn

    @classmethod
    def from_robot(
        cls,
        robot: "rtb.Robot | rtb.DHRobot",
        group_name: str | None = None,
        **kwargs,
    ) -> "PlanningScene":
        """
        Build a scene from a roboticstoolbox robot.

        A revolute joint without ``qlim`` is continuous. Joints are named
        joint1..jointN in joint order; roboticstoolbox link names are ignored.
        """
        specs: list[JointSpec] = []
        for link in robot.links:
            if not getattr(link, "isjoint", True):
                continue
            name = f"joint{len(specs) + 1}"
            qlim = link.qlim
            if link.isprismatic:
                if qlim is None:
                    raise PlanningSceneError(f"Prismatic joint '{name}' needs qlim")
                specs.append(JointSpec(name, JointKind.PRISMATIC, float(qlim[0]), float(qlim[1])))
            elif qlim is None:
                specs.append(JointSpec(name, JointKind.CONTINUOUS, -math.inf, math.inf))
            else:
                specs.append(JointSpec(name, JointKind.REVOLUTE, float(qlim[0]), float(qlim[1])))
        logger.info(f"Scene from robot '{robot.name}': {len(specs)} joints")
        groups = {group_name or DEFAULT_GROUP: [s.name for s in specs]}
        return cls(specs, groups=groups, **kwargs)

    @property
    def joint_names(self) -> tuple[str, ...]:
        return tuple(j.name for j in self.joints)

    def joint(self, name: str) -> JointSpec:
        try:
            return self._by_name[name]
        except KeyError:
            raise PlanningSceneError(f"Unknown joint '{name}'") from None

    def has_group(self, group_name: str) -> bool:
        return group_name in self.groups

    def group_joints(self, group_name: str) -> list[JointSpec]:
        """Ordered active joints of a group."""
        if group_name not in self.groups:
            raise PlanningSceneError(f"Unknown planning group '{group_name}'")
        return [self._by_name[n] for n in self.groups[group_name]]

    def continuous_joint_mask(self, group_name: str) -> NDArray[np.bool_]:
        return np.array([j.is_continuous for j in self.group_joints(group_name)], dtype=bool)

    def get_current_state(self) -> RobotState:
        return self._current.copy()

    def state_from_request(self, start: StartState) -> RobotState:
        """Current state overridden by the request's joint positions and transforms."""
        state = self.get_current_state()
        for name, value in start.joint_positions.items():
            if name not in self._by_name:
                raise PlanningSceneError(f"Start state references unknown joint '{name}'")
            state.set_position(name, value)
        state.transforms.update(start.transforms)
        return state

    def satisfies_bounds(self, state: RobotState, margin: float = 0.0) -> bool:
        return all(
            spec.satisfies_bounds(float(value), margin)
            for spec, value in zip(self.joints, state.positions)
        )

    def violated_joints(self, state: RobotState) -> list[str]:
        return [
            spec.name
            for spec, value in zip(self.joints, state.positions)
            if not spec.satisfies_bounds(float(value))
        ]

    def is_state_colliding(self, state: RobotState) -> bool:
        if self.collision_fn is None:
            return False
        return bool(self.collision_fn(state))

    def obstacle_cost(self, state: RobotState) -> float:
        if self.obstacle_cost_fn is None:
            return 0.0
        return float(self.obstacle_cost_fn(state))

    def signed_distances(self, state: RobotState) -> NDArray[np.float64] | None:
        if self.distance_fn is None:
            return None
        return np.asarray(self.distance_fn(state), dtype=np.float64)

    def is_path_collision_free(self, states: Iterable[RobotState]) -> bool:
        return not any(self.is_state_colliding(s) for s in states)
