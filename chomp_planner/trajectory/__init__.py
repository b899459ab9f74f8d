from .buffer import TrajectoryBuffer
from .diff_rules import ACCELERATION, DIFF_RULES, JERK, VELOCITY, get_diff_matrix

__all__ = [
    "TrajectoryBuffer",
    "DIFF_RULES",
    "VELOCITY",
    "ACCELERATION",
    "JERK",
    "get_diff_matrix",
]
