from .chomp_planner import ChompPlanner
from .goal_checker import JointGoalChecker

__all__ = ["ChompPlanner", "JointGoalChecker"]
