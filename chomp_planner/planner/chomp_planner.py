"""
Planning control loop.

Validates a joint-space request, seeds a trajectory buffer, runs the optimizer
with optional recovery escalation and assembles the output path with
velocities. Every request gets its own buffer and parameter copy; nothing
request-specific is stored on the planner.
"""

import logging
import time

import numpy as np

from chomp_planner.config import DISCRETIZATION_S, PLANNING_HORIZON_S, WARM_START_DIR, warm_start_path
from chomp_planner.optimizer.base import OptimizerFactory
from chomp_planner.optimizer.chomp import ChompOptimizer
from chomp_planner.parameters import InitMethod, PlannerParameters
from chomp_planner.planner.goal_checker import JointGoalChecker
from chomp_planner.protocol.types import (
    ErrorCode,
    MotionPlanRequest,
    MotionPlanResponse,
    RobotState,
    RobotTrajectory,
)
from chomp_planner.robot.scene import PlanningScene
from chomp_planner.trajectory.buffer import TrajectoryBuffer
from chomp_planner.trajectory.derivatives import joint_derivatives
from chomp_planner.trajectory.warm_start import load_warm_start, states_from_matrix
from chomp_planner.utils.angles import unwrap_angles
from chomp_planner.utils.errors import PlannerConfigError, PlanningSceneError, TrajectoryPlanningError

logger = logging.getLogger(__name__)


class ChompPlanner:
    """
    Joint-space trajectory planner.

    Args:
        optimizer_factory: Builds an optimizer for each attempt
        planning_horizon: Trajectory duration in seconds
        discretization: Time step between trajectory points in seconds
        warm_start_dir: Directory holding demonstration CSVs for ``equal`` initialization
    """

    def __init__(
        self,
        optimizer_factory: OptimizerFactory = ChompOptimizer,
        planning_horizon: float = PLANNING_HORIZON_S,
        discretization: float = DISCRETIZATION_S,
        warm_start_dir: str | None = None,
    ):
        self.optimizer_factory = optimizer_factory
        self.planning_horizon = float(planning_horizon)
        self.discretization = float(discretization)
        self.warm_start_dir = warm_start_dir or WARM_START_DIR

    def solve(
        self,
        scene: PlanningScene | None,
        request: MotionPlanRequest,
        parameters: PlannerParameters,
    ) -> MotionPlanResponse:
        start_time = time.perf_counter()

        def fail(code: ErrorCode, **kwargs) -> MotionPlanResponse:
            return MotionPlanResponse(code, processing_time=time.perf_counter() - start_time, **kwargs)

        if scene is None:
            logger.error("No planning scene initialized.")
            return fail(ErrorCode.FAILURE)

        group_name = request.group_name
        if not scene.has_group(group_name):
            logger.error(f"Unknown planning group '{group_name}'")
            return fail(ErrorCode.INVALID_GROUP_NAME)

        # ----- validate start -----
        try:
            start_state = scene.state_from_request(request.start_state)
        except PlanningSceneError as e:
            logger.error(str(e))
            return fail(ErrorCode.INVALID_ROBOT_STATE)
        if not scene.satisfies_bounds(start_state):
            logger.error(f"Start state violates joint limits: {scene.violated_joints(start_state)}")
            return fail(ErrorCode.INVALID_ROBOT_STATE)

        # ----- validate goal -----
        if len(request.goal_constraints) != 1:
            logger.error(f"Expecting exactly one goal constraint, got: {len(request.goal_constraints)}")
            return fail(ErrorCode.INVALID_GOAL_CONSTRAINTS)
        goal = request.goal_constraints[0]
        if not goal.joint_constraints or goal.position_constraints or goal.orientation_constraints:
            logger.error("Only joint-space goals are supported")
            return fail(ErrorCode.INVALID_GOAL_CONSTRAINTS)

        goal_state = start_state.copy()
        for jc in goal.joint_constraints:
            if jc.joint_name not in scene.joint_names:
                logger.error(f"Goal constraint references unknown joint '{jc.joint_name}'")
                return fail(ErrorCode.INVALID_GOAL_CONSTRAINTS)
            goal_state.set_position(jc.joint_name, jc.position)
        if not scene.satisfies_bounds(goal_state):
            logger.error(f"Goal state violates joint limits: {scene.violated_joints(goal_state)}")
            return fail(ErrorCode.INVALID_ROBOT_STATE)

        # ----- initialize -----
        try:
            trajectory = TrajectoryBuffer.from_duration(
                scene, self.planning_horizon, self.discretization, group_name
            )
        except TrajectoryPlanningError as e:
            logger.error(str(e))
            return fail(ErrorCode.PLANNING_FAILED)

        joint_names = trajectory.joint_names
        goal_index = trajectory.num_points - 1
        trajectory.set_point(0, start_state.group_positions(joint_names))
        trajectory.set_point(goal_index, goal_state.group_positions(joint_names))
        self.correct_continuous_goal(scene, trajectory)

        self.initialize_trajectory(trajectory, parameters, start_state)
        logger.info(
            f"Trajectory initialized using method: {parameters.trajectory_initialization_method.value}"
        )

        # ----- optimize with recovery -----
        create_time = time.perf_counter()
        working = parameters
        recovery_count = 0
        optimizer = None
        while True:
            if recovery_count > 0:
                working = working.escalated()

            optimizer = self.optimizer_factory(trajectory, scene, group_name, working, start_state)
            if not optimizer.is_initialized():
                logger.error("Could not initialize optimizer")
                return fail(ErrorCode.PLANNING_FAILED, parameters_used=working, attempts=recovery_count + 1)
            logger.debug(f"Optimizer took {time.perf_counter() - create_time:.3f} sec to create")

            optimization_result = optimizer.optimize()

            if not working.enable_failure_recovery:
                break
            logger.info(f"Planned with parameters, attempt #{recovery_count + 1}: {working.recovery_summary()}")
            if optimization_result or recovery_count >= working.max_recovery_attempts:
                break
            recovery_count += 1

        attempts = recovery_count + 1
        logger.debug(f"Optimization took {time.perf_counter() - create_time:.3f} sec to run")

        # ----- finalize -----
        result = self.build_output(trajectory, start_state)
        processing_time = time.perf_counter() - start_time
        logger.debug(f"Serviced planning request in {processing_time:.3f} wall-seconds")

        if not optimizer.is_collision_free():
            logger.error("Motion plan is invalid.")
            return fail(ErrorCode.INVALID_MOTION_PLAN, parameters_used=working, attempts=attempts)

        checker = JointGoalChecker(scene)
        last_state = result.last_state
        for constraint in goal.joint_constraints:
            if not checker.decide(constraint, last_state).satisfied:
                logger.error(f"Goal constraints are violated: {constraint.joint_name}")
                return fail(ErrorCode.GOAL_CONSTRAINTS_VIOLATED, parameters_used=working, attempts=attempts)

        return MotionPlanResponse(
            ErrorCode.SUCCESS,
            trajectory=result,
            processing_time=processing_time,
            parameters_used=working,
            attempts=attempts,
        )

    @staticmethod
    def correct_continuous_goal(scene: PlanningScene, trajectory: TrajectoryBuffer) -> None:
        """Move continuous joints the short way round: goal = start + shortest distance."""
        goal_index = trajectory.num_points - 1
        mask = scene.continuous_joint_mask(trajectory.group_name)
        if not mask.any():
            return
        start = trajectory[0, mask]
        end = trajectory[goal_index, mask]
        corrected = unwrap_angles(end, start)
        for name, s, e, c in zip(np.asarray(trajectory.joint_names)[mask], start, end, corrected):
            logger.info(f"Joint '{name}': start is {s} end {e} short {c - s}")
        trajectory[goal_index, mask] = corrected

    def initialize_trajectory(
        self,
        trajectory: TrajectoryBuffer,
        parameters: PlannerParameters,
        start_state: RobotState,
    ) -> None:
        method = parameters.trajectory_initialization_method
        if method is InitMethod.QUINTIC_SPLINE:
            trajectory.fill_quintic()
        elif method is InitMethod.LINEAR:
            trajectory.fill_linear()
        elif method is InitMethod.CUBIC:
            trajectory.fill_cubic()
        elif method is InitMethod.EQUAL:
            self._load_warm_start(trajectory, parameters, start_state)
        else:
            raise PlannerConfigError(f"Invalid interpolation method '{method}'")

    def _load_warm_start(
        self,
        trajectory: TrajectoryBuffer,
        parameters: PlannerParameters,
        start_state: RobotState,
    ) -> None:
        path = warm_start_path(parameters.demo_type, self.warm_start_dir)
        data = load_warm_start(path)
        if data.shape == (trajectory.num_points, trajectory.num_joints):
            trajectory.load_precomputed(data)
            return
        if data.ndim == 2 and data.shape[0] == trajectory.num_joints and data.shape[1] != trajectory.num_joints:
            data = data.T
        states = states_from_matrix(data, trajectory.joint_names, start_state)
        if not trajectory.resample_from(states):
            raise PlannerConfigError(
                f"Warm start {path} has {len(states)} point(s); need at least start and goal"
            )

    @staticmethod
    def build_output(trajectory: TrajectoryBuffer, start_state: RobotState) -> RobotTrajectory:
        """
        Waypoints carrying positions and finite difference velocities. The end
        points are at rest.
        """
        velocities = joint_derivatives(trajectory)
        last = trajectory.num_points - 1
        result = RobotTrajectory(trajectory.group_name, trajectory.joint_names)
        for i in range(trajectory.num_points):
            state = start_state.copy()
            state.velocities = np.zeros_like(state.positions)
            state.set_group_positions(trajectory.joint_names, trajectory.point(i))
            if 0 < i < last:
                for name, v in zip(trajectory.joint_names, velocities[i]):
                    state.set_velocity(name, v)
            result.add_suffix_waypoint(state, trajectory.discretization)
        return result
