"""
chomp_planner

Joint-space trajectory planning with CHOMP-style covariant optimization.

Key components:
- ChompPlanner: validates requests, seeds a trajectory and drives the optimizer with recovery
- TrajectoryBuffer: time-discretized joint trajectory with a free interior
- ChompOptimizer: reference smoothness/obstacle optimizer
- PlanningScene: joint capabilities, bounds, groups and collision hooks
- PlannerParameters: immutable planner tunables
"""

from ._version import __version__
from .optimizer.chomp import ChompOptimizer
from .parameters import InitMethod, PlannerParameters
from .planner.chomp_planner import ChompPlanner
from .protocol.types import (
    Constraints,
    ErrorCode,
    JointConstraint,
    MotionPlanRequest,
    MotionPlanResponse,
    RobotState,
    RobotTrajectory,
    StartState,
)
from .robot.scene import JointKind, JointSpec, PlanningScene
from .trajectory.buffer import TrajectoryBuffer

__all__ = [
    "__version__",
    "ChompPlanner",
    "ChompOptimizer",
    "TrajectoryBuffer",
    "PlanningScene",
    "JointSpec",
    "JointKind",
    "PlannerParameters",
    "InitMethod",
    "MotionPlanRequest",
    "MotionPlanResponse",
    "Constraints",
    "JointConstraint",
    "StartState",
    "RobotState",
    "RobotTrajectory",
    "ErrorCode",
]
