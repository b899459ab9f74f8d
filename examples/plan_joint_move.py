"""
Joint move quickstart.
- Builds a two link planar arm with roboticstoolbox
- Places a sphere obstacle near the straight-line path
- Plans a joint-space move with failure recovery enabled

Run from the repository root:
    python examples/plan_joint_move.py
"""

import logging

import roboticstoolbox as rtb
from spatialmath import SE3

from chomp_planner import ChompPlanner, PlannerParameters, PlanningScene
from chomp_planner.protocol.types import Constraints, JointConstraint, MotionPlanRequest
from chomp_planner.robot import SphereCollisionModel, SphereObstacle

GOAL = {"joint1": 1.2, "joint2": -0.8}


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    robot = rtb.DHRobot(
        [rtb.RevoluteDH(a=0.3, qlim=[-2.5, 2.5]), rtb.RevoluteDH(a=0.25, qlim=[-2.0, 2.0])],
        name="planar2",
    )
    model = SphereCollisionModel(robot, [SphereObstacle(SE3.Trans(0.35, 0.3, 0.0), 0.05)])
    scene = PlanningScene.from_robot(
        robot, group_name="arm", collision_fn=model.in_collision, distance_fn=model.state_distances
    )

    request = MotionPlanRequest(
        group_name="arm",
        goal_constraints=[Constraints(joint_constraints=[JointConstraint(n, v) for n, v in GOAL.items()])],
    )
    params = PlannerParameters(enable_failure_recovery=True, max_recovery_attempts=2)
    response = ChompPlanner(planning_horizon=1.5, discretization=0.05).solve(scene, request, params)

    print(f"result: {response.error_code.name} ({response.attempts} attempt(s), {response.processing_time:.2f}s)")
    if response.success:
        for i, row in enumerate(response.trajectory.positions()[::5]):
            print(f"{i * 5:3d}: {row.round(3).tolist()}")
    raise SystemExit(0 if response.success else 1)


if __name__ == "__main__":
    main()
