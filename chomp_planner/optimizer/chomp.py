"""
Covariant gradient descent over the free interior of a trajectory buffer.

Smoothness cost is ``sum_j q_j^T A q_j`` with
``A = sum_k w_k dt^(k+1) D_k^T D_k + ridge * I`` over a stencil-padded copy of
the trajectory; updates are preconditioned by the inverse of the free block of
``A`` so they stay smooth. Obstacle gradients come from central differences of
the obstacle cost. Scenes exposing signed distances are scored with the CHOMP
hinge at ``collision_clearance``; a state whose hinge cost exceeds
``collision_threshold`` counts as colliding.
"""

import logging
import time

import numpy as np
from numpy.typing import NDArray
import scipy.linalg

from chomp_planner.config import DIFF_RULE_LENGTH, TRACE
from chomp_planner.parameters import PlannerParameters
from chomp_planner.protocol.types import RobotState
from chomp_planner.robot.collision import hinge_potential
from chomp_planner.robot.scene import JointSpec, PlanningScene
from chomp_planner.trajectory.buffer import TrajectoryBuffer
from chomp_planner.trajectory.diff_rules import ACCELERATION, JERK, VELOCITY, get_diff_matrix
from chomp_planner.utils.errors import PlanningSceneError

logger = logging.getLogger(__name__)

# Central difference step for obstacle gradients (rad or m)
_FD_STEP = 1e-4


class ChompOptimizer:
    """Reference optimizer implementing the ``Optimizer`` protocol."""

    def __init__(
        self,
        trajectory: TrajectoryBuffer,
        scene: PlanningScene,
        group_name: str,
        parameters: PlannerParameters,
        start_state: RobotState,
    ):
        self.full_trajectory = trajectory
        self.scene = scene
        self.group_name = group_name
        self.parameters = parameters
        self.start_state = start_state.copy()

        self._initialized = False
        self._collision_free = False
        self.iterations = 0
        self.best_cost = np.inf

        try:
            self.joints: list[JointSpec] = scene.group_joints(group_name)
        except PlanningSceneError as e:
            logger.error(f"Optimizer could not resolve group '{group_name}': {e}")
            return
        if tuple(j.name for j in self.joints) != trajectory.joint_names:
            logger.error("Trajectory joints do not match the planning group")
            return
        if trajectory.num_free_points < 1:
            logger.error("Trajectory has no free points to optimize")
            return

        self.group_trajectory = TrajectoryBuffer.padded(trajectory, DIFF_RULE_LENGTH)
        self._free = slice(self.group_trajectory.start_index, self.group_trajectory.end_index + 1)

        try:
            self._build_smoothness(parameters)
        except np.linalg.LinAlgError as e:
            logger.error(f"Smoothness matrix is not positive definite: {e}")
            return
        self._initialized = True

    def _build_smoothness(self, p: PlannerParameters) -> None:
        n_all = self.group_trajectory.num_points
        dt = self.group_trajectory.discretization
        weights = {
            VELOCITY: p.smoothness_cost_velocity,
            ACCELERATION: p.smoothness_cost_acceleration,
            JERK: p.smoothness_cost_jerk,
        }
        quad = np.zeros((n_all, n_all))
        multiplier = 1.0
        for order in (VELOCITY, ACCELERATION, JERK):
            multiplier *= dt
            w = weights[order]
            if w == 0.0:
                continue
            D = get_diff_matrix(n_all, order)
            quad += (w * multiplier) * (D.T @ D)
        quad += np.eye(n_all) * p.ridge_factor
        self.quad_cost_full = quad
        self._quad_cost_factor = scipy.linalg.cho_factor(quad[self._free, self._free])

    def is_initialized(self) -> bool:
        return self._initialized

    def is_collision_free(self) -> bool:
        return self._collision_free

    # ----- costs -----

    def _state_for(self, row: NDArray[np.float64]) -> RobotState:
        state = self.start_state.copy()
        state.set_group_positions(self.full_trajectory.joint_names, row)
        return state

    def smoothness_cost(self, points: NDArray[np.float64]) -> float:
        return float(np.einsum("ij,ik,kj->", points, self.quad_cost_full, points))

    def _has_obstacle_cost(self) -> bool:
        return self.scene.distance_fn is not None or self.scene.obstacle_cost_fn is not None

    def _state_cost(self, state: RobotState) -> float:
        """Hinge cost at ``collision_clearance`` when the scene exposes distances."""
        d = self.scene.signed_distances(state)
        if d is None:
            return self.scene.obstacle_cost(state)
        return float(np.sum(hinge_potential(d, self.parameters.collision_clearance)))

    def _state_in_collision(self, state: RobotState) -> bool:
        """
        Scene collision, or any point whose hinge cost exceeds
        ``collision_threshold``.
        """
        if self.scene.is_state_colliding(state):
            return True
        d = self.scene.signed_distances(state)
        if d is None or d.size == 0:
            return False
        p = self.parameters
        return bool(np.max(hinge_potential(d, p.collision_clearance)) > p.collision_threshold)

    def obstacle_cost(self, points: NDArray[np.float64]) -> float:
        if not self._has_obstacle_cost():
            return 0.0
        return float(sum(self._state_cost(self._state_for(r)) for r in points[self._free]))

    def total_cost(self, points: NDArray[np.float64]) -> float:
        p = self.parameters
        return p.smoothness_cost_weight * self.smoothness_cost(points) + p.obstacle_cost_weight * self.obstacle_cost(
            points
        )

    def _obstacle_gradient(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        free = points[self._free]
        grad = np.zeros_like(free)
        if not self._has_obstacle_cost():
            return grad
        for i, row in enumerate(free):
            for j in range(row.shape[0]):
                hi = row.copy()
                lo = row.copy()
                hi[j] += _FD_STEP
                lo[j] -= _FD_STEP
                c_hi = self._state_cost(self._state_for(hi))
                c_lo = self._state_cost(self._state_for(lo))
                grad[i, j] = (c_hi - c_lo) / (2.0 * _FD_STEP)
        return grad

    def _check_collision_free(self, points: NDArray[np.float64]) -> bool:
        if self.scene.collision_fn is None and self.scene.distance_fn is None:
            return True
        return not any(self._state_in_collision(self._state_for(r)) for r in points)

    def _handle_joint_limits(self, points: NDArray[np.float64]) -> None:
        for j, spec in enumerate(self.joints):
            if not spec.is_continuous:
                points[self._free, j] = np.clip(points[self._free, j], spec.lower, spec.upper)

    # ----- main loop -----

    def optimize(self) -> bool:
        """
        Run gradient descent until the iteration or time budget is spent, or
        ``max_iterations_after_collision_free`` iterations after the path
        first became collision free. The best trajectory found is written back
        to the buffer.

        Returns:
            True if the written back trajectory is collision free
        """
        if not self._initialized:
            logger.error("optimize() called on an uninitialized optimizer")
            return False

        p = self.parameters
        start_time = time.monotonic()
        points = self.group_trajectory.points

        self._collision_free = self._check_collision_free(points)
        best = points.copy()
        best_cost = self.total_cost(points)
        best_is_free = self._collision_free
        collision_free_iterations = 0

        for iteration in range(p.max_iterations):
            if time.monotonic() - start_time > p.planning_time_limit:
                logger.warning("Breaking out early due to time limit constraints.")
                break

            smoothness_grad = (self.quad_cost_full @ (2.0 * points))[self._free]
            obstacle_grad = self._obstacle_gradient(points)
            total_grad = p.smoothness_cost_weight * smoothness_grad + p.obstacle_cost_weight * obstacle_grad
            increments = p.learning_rate * scipy.linalg.cho_solve(self._quad_cost_factor, total_grad)

            # Scale each joint's update so no single step exceeds the limit
            max_abs = np.max(np.abs(increments), axis=0)
            scale = np.where(max_abs > p.joint_update_limit, p.joint_update_limit / np.maximum(max_abs, 1e-12), 1.0)
            points[self._free] -= increments * scale
            self._handle_joint_limits(points)

            cost = self.total_cost(points)
            self._collision_free = self._check_collision_free(points)
            self.iterations = iteration + 1
            logger.log(
                TRACE,
                f"iteration {iteration}: cost={cost:.6f} collision_free={self._collision_free}",
            )

            # Prefer collision free iterates, then lower cost
            if (self._collision_free and not best_is_free) or (
                self._collision_free == best_is_free and cost < best_cost
            ):
                best = points.copy()
                best_cost = cost
                best_is_free = self._collision_free

            if self._collision_free:
                collision_free_iterations += 1
                if collision_free_iterations >= p.max_iterations_after_collision_free:
                    break

        points[:] = best
        self.best_cost = best_cost
        self._collision_free = best_is_free
        self.full_trajectory.update_from_group(self.group_trajectory)

        logger.debug(
            f"Optimization finished after {self.iterations} iterations in "
            f"{time.monotonic() - start_time:.3f}s (cost={best_cost:.6f}, collision_free={best_is_free})"
        )
        return best_is_free
