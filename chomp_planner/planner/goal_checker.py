"""
Joint goal tolerance checks.
"""

from dataclasses import dataclass
import logging
import sys

from chomp_planner.protocol.types import JointConstraint, RobotState
from chomp_planner.robot.scene import PlanningScene
from chomp_planner.utils.angles import shortest_angular_distance

logger = logging.getLogger(__name__)

_EPS = sys.float_info.epsilon


@dataclass
class ConstraintEvaluation:
    satisfied: bool
    distance: float
    joint_name: str


class JointGoalChecker:
    """
    Decides whether a state meets one joint target within its tolerances.

    Continuous joints are compared by shortest angular distance, so a goal
    reached modulo a full turn counts as reached.
    """

    def __init__(self, scene: PlanningScene):
        self.scene = scene

    def configure(self, constraint: JointConstraint) -> bool:
        if constraint.joint_name not in self.scene.joint_names:
            logger.error(f"Joint '{constraint.joint_name}' is not known to the scene")
            return False
        if constraint.tolerance_above < 0 or constraint.tolerance_below < 0:
            logger.error(f"Negative tolerance for joint '{constraint.joint_name}'")
            return False
        return True

    def decide(self, constraint: JointConstraint, state: RobotState) -> ConstraintEvaluation:
        name = constraint.joint_name
        if not self.configure(constraint):
            return ConstraintEvaluation(False, float("inf"), name)
        value = state.position(name)
        if self.scene.joint(name).is_continuous:
            dif = shortest_angular_distance(constraint.position, value)
        else:
            dif = value - constraint.position
        satisfied = (dif <= constraint.tolerance_above + 2 * _EPS) and (
            dif >= -constraint.tolerance_below - 2 * _EPS
        )
        if not satisfied:
            logger.debug(
                f"Joint '{name}' at {value:.6f}, target {constraint.position:.6f} "
                f"(+{constraint.tolerance_above}/-{constraint.tolerance_below})"
            )
        return ConstraintEvaluation(satisfied, abs(dif), name)
