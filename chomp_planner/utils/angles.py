"""
Angle helpers for continuous (wrap-around) joints.
"""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray


def normalize_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi]."""
    a = math.fmod(angle + math.pi, 2.0 * math.pi)
    if a <= 0.0:
        a += 2.0 * math.pi
    return a - math.pi


def shortest_angular_distance(from_angle: float, to_angle: float) -> float:
    """
    Signed rotation in (-pi, pi] taking ``from_angle`` to an angle equivalent
    to ``to_angle`` modulo 2*pi.
    """
    return normalize_angle(to_angle - from_angle)


def unwrap_angles(q_target: ArrayLike, q_current: ArrayLike) -> NDArray[np.float64]:
    """
    Vectorized unwrap: bring target angles to the equivalent value closest
    to the current ones so no joint turns more than half a revolution.
    """
    qt = np.asarray(q_target, dtype=float)
    qc = np.asarray(q_current, dtype=float)
    diff = np.mod(qt - qc + np.pi, 2 * np.pi) - np.pi
    # np.mod maps an exact half turn to -pi; keep (-pi, pi]
    diff = np.where(diff <= -np.pi, diff + 2 * np.pi, diff)
    return qc + diff
