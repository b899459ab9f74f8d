"""
Finite difference rules and the matrices built from them.

Each rule is a centered 7-point stencil; ``get_diff_matrix(n, rule) @ column``
gives the derivative of a length-n position column. Rows near either end use
the truncated stencil, so callers that need exact edge derivatives should
difference a clamped, padded copy (see ``TrajectoryBuffer.padded``).
"""

import numpy as np
from numpy.typing import NDArray


VELOCITY, ACCELERATION, JERK = 0, 1, 2

DIFF_RULES: NDArray[np.float64] = np.array(
    [
        [0, 0, -2 / 6.0, -3 / 6.0, 6 / 6.0, -1 / 6.0, 0],  # velocity
        [0, -1 / 12.0, 16 / 12.0, -30 / 12.0, 16 / 12.0, -1 / 12.0, 0],  # acceleration
        [0, 1 / 12.0, -17 / 12.0, 46 / 12.0, -46 / 12.0, 17 / 12.0, -1 / 12.0],  # jerk
    ],
    dtype=np.float64,
)


def get_diff_matrix(
    size: int,
    diff_rule: NDArray[np.float64] | int = VELOCITY,
    discretization: float | None = None,
) -> NDArray[np.float64]:
    """
    Build the (size, size) banded matrix for a finite difference stencil.

    Args:
        size: Number of trajectory points
        diff_rule: Stencil coefficients, or an index into DIFF_RULES
        discretization: If given, scale by 1/discretization**(order+1) so the
            result is in per-second units (order taken from the rule index)

    Returns:
        Matrix D such that D @ positions == derivative
    """
    if size < 1:
        raise ValueError(f"size must be positive, got {size}")
    order = None
    if isinstance(diff_rule, (int, np.integer)):
        order = int(diff_rule)
        rule = DIFF_RULES[order]
    else:
        rule = np.asarray(diff_rule, dtype=np.float64)
    if rule.ndim != 1 or rule.shape[0] % 2 == 0:
        raise ValueError("diff_rule must be a 1-D stencil of odd length")

    half = rule.shape[0] // 2
    matrix = np.zeros((size, size), dtype=np.float64)
    for i in range(size):
        for j in range(-half, half + 1):
            index = i + j
            if index < 0 or index >= size:
                continue
            matrix[i, index] = rule[j + half]

    if discretization is not None:
        if discretization <= 0:
            raise ValueError(f"discretization must be positive, got {discretization}")
        power = (order if order is not None else 0) + 1
        matrix /= discretization**power
    return matrix
