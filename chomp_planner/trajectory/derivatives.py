"""
Per-joint derivative columns of a trajectory buffer.
"""

import numpy as np
from numpy.typing import NDArray

from chomp_planner.config import DIFF_RULE_LENGTH
from chomp_planner.trajectory.buffer import TrajectoryBuffer
from chomp_planner.trajectory.diff_rules import VELOCITY, get_diff_matrix
from chomp_planner.utils.errors import TrajectoryPlanningError


def joint_derivatives(
    trajectory: TrajectoryBuffer,
    order: int = VELOCITY,
    per_second: bool = True,
) -> NDArray[np.float64]:
    """
    Finite difference derivative of every joint column, shape (num_points, num_joints).

    The stencil runs over a clamped padded copy, so rows at the ends see
    replicated neighbours instead of a truncated stencil.

    Raises:
        TrajectoryPlanningError: if either fixed region is longer than the
            stencil padding, so padded rows would not line up with the source
    """
    pad = DIFF_RULE_LENGTH - 1
    leading = trajectory.start_index
    trailing = (trajectory.num_points - 1) - trajectory.end_index
    if leading > pad or trailing > pad:
        raise TrajectoryPlanningError(
            f"Fixed regions ({leading} leading, {trailing} trailing rows) exceed stencil padding of {pad}"
        )
    padded = TrajectoryBuffer.padded(trajectory, DIFF_RULE_LENGTH)
    diff_matrix = get_diff_matrix(
        padded.num_points,
        order,
        discretization=trajectory.discretization if per_second else None,
    )
    derivative = diff_matrix @ padded.points
    offset = padded.start_index - trajectory.start_index
    return derivative[offset : offset + trajectory.num_points]
