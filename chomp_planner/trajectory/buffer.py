"""
Time-discretized joint trajectory buffer.

Rows are time samples (row 0 is the start), columns are the active joints of
a planning group. Rows ``start_index..end_index`` form the free interior an
optimizer may change; the rows outside it are fixed anchors (start/goal) or
stencil padding.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from chomp_planner.config import DIFF_RULE_LENGTH, TRACE
from chomp_planner.protocol.types import RobotState
from chomp_planner.robot.scene import PlanningScene
from chomp_planner.utils.errors import TrajectoryPlanningError
from chomp_planner.utils.interpolation import (
    cubic_coefficients,
    evaluate_polynomial,
    linear_blend,
    blend_segment,
    quintic_coefficients,
)

logger = logging.getLogger(__name__)

# Tolerance for duration/discretization landing a hair below an integer
_FLOOR_EPS = 1e-9


class TrajectoryBuffer:
    """
    Dense (num_points, num_joints) trajectory with a free interior.

    Use ``from_duration`` / ``from_num_points`` to size a buffer for a scene
    group, or ``padded`` to build a stencil-padded copy of another buffer.
    """

    __slots__ = (
        "group_name",
        "joint_names",
        "discretization",
        "start_index",
        "end_index",
        "source_row_map",
        "_points",
    )

    def __init__(
        self,
        num_points: int,
        discretization: float,
        group_name: str,
        joint_names: Sequence[str],
        start_index: int | None = None,
        end_index: int | None = None,
    ):
        if len(joint_names) == 0:
            raise TrajectoryPlanningError(f"Group '{group_name}' has no active joints")
        if num_points < 2:
            raise TrajectoryPlanningError(f"A trajectory needs at least 2 points, got {num_points}")
        if discretization <= 0:
            raise TrajectoryPlanningError(f"Discretization must be positive, got {discretization}")

        self.group_name = group_name
        self.joint_names: tuple[str, ...] = tuple(joint_names)
        self.discretization = float(discretization)
        self.start_index = 1 if start_index is None else int(start_index)
        self.end_index = num_points - 2 if end_index is None else int(end_index)
        if not (0 <= self.start_index <= self.end_index + 1 <= num_points):
            raise TrajectoryPlanningError(
                f"Invalid free region [{self.start_index}, {self.end_index}] for {num_points} points"
            )
        self.source_row_map: NDArray[np.int_] | None = None
        self._points = np.zeros((num_points, len(self.joint_names)), dtype=np.float64)

    # ----- construction -----

    @classmethod
    def from_num_points(
        cls, scene: PlanningScene, num_points: int, discretization: float, group_name: str
    ) -> TrajectoryBuffer:
        joints = scene.group_joints(group_name)
        return cls(num_points, discretization, group_name, [j.name for j in joints])

    @classmethod
    def from_duration(
        cls, scene: PlanningScene, duration: float, discretization: float, group_name: str
    ) -> TrajectoryBuffer:
        """Sized as floor(duration / discretization) + 1 points."""
        if discretization <= 0:
            raise TrajectoryPlanningError(f"Discretization must be positive, got {discretization}")
        num_points = int(math.floor(duration / discretization + _FLOOR_EPS)) + 1
        return cls.from_num_points(scene, num_points, discretization, group_name)

    @classmethod
    def padded(
        cls,
        source: TrajectoryBuffer,
        diff_rule_length: int = DIFF_RULE_LENGTH,
        group_name: str | None = None,
    ) -> TrajectoryBuffer:
        """
        Copy of ``source`` with ``diff_rule_length - 1`` fixed rows on either
        side of the free region, so a full stencil fits around every free row.

        Rows beyond the source ends replicate the first/last source row;
        ``source_row_map[i]`` records which source row padded row ``i`` holds.
        """
        if diff_rule_length < 1:
            raise TrajectoryPlanningError(f"diff_rule_length must be >= 1, got {diff_rule_length}")
        pad = diff_rule_length - 1
        start_extra = pad - source.start_index
        end_extra = pad - ((source.num_points - 1) - source.end_index)
        num_points = source.num_points + start_extra + end_extra

        buf = cls(
            num_points,
            source.discretization,
            group_name or source.group_name,
            source.joint_names,
            start_index=pad,
            end_index=(num_points - 1) - pad,
        )
        rows = np.clip(np.arange(num_points) - start_extra, 0, source.num_points - 1)
        buf.source_row_map = rows
        buf._points[:] = source._points[rows]
        logger.log(
            TRACE,
            f"Padded trajectory: {source.num_points} -> {num_points} points "
            f"(start_extra={start_extra}, end_extra={end_extra})",
        )
        return buf

    # ----- shape / metadata -----

    @property
    def num_points(self) -> int:
        return self._points.shape[0]

    @property
    def num_joints(self) -> int:
        return self._points.shape[1]

    @property
    def duration(self) -> float:
        return (self.num_points - 1) * self.discretization

    @property
    def num_free_points(self) -> int:
        return self.end_index - self.start_index + 1

    @property
    def points(self) -> NDArray[np.float64]:
        """The underlying matrix (mutable view)."""
        return self._points

    def __getitem__(self, key):
        return self._points[key]

    def __setitem__(self, key, value) -> None:
        self._points[key] = value

    def point(self, index: int) -> NDArray[np.float64]:
        """Row view for one time sample."""
        return self._points[index]

    def joint_trajectory(self, joint: int) -> NDArray[np.float64]:
        """Column view for one joint over time."""
        return self._points[:, joint]

    def free_points(self) -> NDArray[np.float64]:
        return self._points[self.start_index : self.end_index + 1]

    def set_point(self, index: int, values: ArrayLike) -> None:
        row = np.asarray(values, dtype=np.float64)
        if row.shape != (self.num_joints,):
            raise TrajectoryPlanningError(f"Row needs {self.num_joints} values, got shape {row.shape}")
        self._points[index] = row

    def copy(self) -> TrajectoryBuffer:
        buf = TrajectoryBuffer(
            self.num_points,
            self.discretization,
            self.group_name,
            self.joint_names,
            self.start_index,
            self.end_index,
        )
        buf._points[:] = self._points
        if self.source_row_map is not None:
            buf.source_row_map = self.source_row_map.copy()
        return buf

    def update_from_group(self, group_trajectory: TrajectoryBuffer) -> None:
        """Copy the free rows of another (typically padded) buffer into ours."""
        n = self.num_free_points
        if group_trajectory.num_free_points != n or group_trajectory.num_joints != self.num_joints:
            raise TrajectoryPlanningError(
                f"Free region mismatch: {group_trajectory.num_free_points}x{group_trajectory.num_joints} "
                f"vs {n}x{self.num_joints}"
            )
        gs = group_trajectory.start_index
        self._points[self.start_index : self.end_index + 1] = group_trajectory._points[gs : gs + n]

    # ----- initialization -----

    def _anchors(self) -> tuple[int, int]:
        a = self.start_index - 1
        b = self.end_index + 1
        if a < 0 or b > self.num_points - 1 or b <= a:
            raise TrajectoryPlanningError(
                f"Interpolation needs anchor rows around the free region, got [{a}, {b}]"
            )
        return a, b

    def fill_linear(self) -> None:
        """Constant per-step increment between the anchor rows."""
        a, b = self._anchors()
        seg = blend_segment(self._points[a], self._points[b], b - a + 1, linear_blend)
        self._points[a + 1 : b] = seg[1:-1]

    def fill_cubic(self) -> None:
        """Cubic with zero velocity at both anchors over the free-region duration."""
        a, b = self._anchors()
        T = (b - a) * self.discretization
        coeffs = cubic_coefficients(self._points[a], self._points[b], T)
        t = np.arange(1, b - a) * self.discretization
        self._points[a + 1 : b] = evaluate_polynomial(coeffs, t)

    def fill_quintic(self) -> None:
        """Minimum-jerk fill: zero velocity and acceleration at both anchors."""
        a, b = self._anchors()
        T = (b - a) * self.discretization
        coeffs = quintic_coefficients(self._points[a], self._points[b], T)
        t = np.arange(1, b - a) * self.discretization
        self._points[a + 1 : b] = evaluate_polynomial(coeffs, t)

    def load_precomputed(self, matrix: ArrayLike) -> None:
        """
        Overwrite the whole buffer with externally supplied data.

        A (num_joints, num_points) matrix is accepted and transposed.
        """
        data = np.asarray(matrix, dtype=np.float64)
        expected = (self.num_points, self.num_joints)
        if data.shape != expected:
            if data.ndim == 2 and data.T.shape == expected:
                data = data.T
            else:
                raise TrajectoryPlanningError(f"Precomputed trajectory shape {data.shape} != {expected}")
        self._points[:] = data

    # ----- resampling -----

    @staticmethod
    def resample_indices(num_points: int, num_input_points: int) -> NDArray[np.int_]:
        """
        Source row for every buffer row.

        Longer buffers repeat each input row ``N // M`` times, giving the first
        ``N % M`` input rows one extra copy; shorter buffers decimate with
        ``floor(i * M / N)``. No interpolation either way.
        """
        n, m = int(num_points), int(num_input_points)
        if n >= m:
            repeats = np.full(m, n // m, dtype=np.int_)
            repeats[: n % m] += 1
            return np.repeat(np.arange(m), repeats)
        factor = m / n
        return np.floor(np.arange(n) * factor).astype(np.int_)

    def resample_from(self, trajectory: Sequence[RobotState]) -> bool:
        """
        Fill the buffer from an external trajectory of robot states.

        Returns False (buffer untouched) if the trajectory has fewer than
        two states.
        """
        m = len(trajectory)
        if m < 2:
            logger.error(f"Input trajectory has {m} point(s); need at least start and goal")
            return False
        rows = self.resample_indices(self.num_points, m)
        values = np.array([trajectory[k].group_positions(self.joint_names) for k in range(m)])
        self._points[:] = values[rows]
        logger.debug(f"Resampled {m} input points onto {self.num_points} trajectory points")
        return True

    def __repr__(self) -> str:
        return (
            f"TrajectoryBuffer(group={self.group_name!r}, points={self.num_points}, "
            f"joints={self.num_joints}, free=[{self.start_index}, {self.end_index}], "
            f"dt={self.discretization})"
        )
