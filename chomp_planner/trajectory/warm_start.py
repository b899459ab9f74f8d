"""
Warm start data: recorded demonstration trajectories stored as CSV.
"""

from pathlib import Path
import logging

import numpy as np
from numpy.typing import NDArray

from chomp_planner.protocol.types import RobotState
from chomp_planner.utils.errors import PlannerConfigError

logger = logging.getLogger(__name__)


def load_warm_start(path: str | Path) -> NDArray[np.float64]:
    """
    Load a comma separated matrix (one row per time sample).

    Raises:
        PlannerConfigError: if the file is missing, empty or not numeric
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        raise PlannerConfigError(f"Warm start file not found: {csv_path}")
    try:
        data = np.loadtxt(csv_path, delimiter=",", dtype=np.float64, ndmin=2)
    except ValueError as e:
        raise PlannerConfigError(f"Malformed warm start file {csv_path}: {e}") from e
    if data.size == 0:
        raise PlannerConfigError(f"Warm start file is empty: {csv_path}")
    logger.info(f"Loaded warm start {csv_path.name} with shape {data.shape}")
    return data


def states_from_matrix(
    matrix: NDArray[np.float64],
    joint_names: tuple[str, ...],
    template: RobotState,
) -> list[RobotState]:
    """
    Turn a (M, num_joints) matrix into robot states based on ``template``,
    one state per row with the group joints set from that row.
    """
    data = np.asarray(matrix, dtype=np.float64)
    if data.ndim != 2 or data.shape[1] != len(joint_names):
        raise PlannerConfigError(
            f"Warm start has shape {data.shape}, expected (M, {len(joint_names)})"
        )
    states: list[RobotState] = []
    for row in data:
        state = template.copy()
        state.set_group_positions(joint_names, row)
        states.append(state)
    return states
