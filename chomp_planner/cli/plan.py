"""
CLI entry point for the chomp-plan command.

Plans a joint-space move for a robot described in a JSON file and writes the
resulting positions as CSV.
"""

import argparse
import json
import logging
import math
from pathlib import Path
import sys

import numpy as np

from chomp_planner.config import DEFAULT_GROUP, LOG_LEVEL_DEFAULT, TRACE, TRACE_ENABLED
from chomp_planner.parameters import InitMethod, PlannerParameters
from chomp_planner.planner.chomp_planner import ChompPlanner
from chomp_planner.protocol.types import Constraints, JointConstraint, MotionPlanRequest, StartState
from chomp_planner.robot.scene import JointKind, JointSpec, PlanningScene
from chomp_planner.utils.errors import PlannerConfigError, PlanningSceneError

logger = logging.getLogger(__name__)


def load_scene(path: str | Path) -> PlanningScene:
    """
    Build a scene from JSON:
    {"joints": [{"name": "j1", "type": "revolute", "lower": -3.1, "upper": 3.1}, ...],
     "groups": {"arm": ["j1", ...]}, "current_state": [..]}
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    specs = []
    for j in raw.get("joints", []):
        kind = JointKind(j.get("type", "revolute"))
        lower = float(j.get("lower", -math.inf if kind is JointKind.CONTINUOUS else -math.pi))
        upper = float(j.get("upper", math.inf if kind is JointKind.CONTINUOUS else math.pi))
        specs.append(JointSpec(j["name"], kind, lower, upper))
    return PlanningScene(specs, groups=raw.get("groups"), current_state=raw.get("current_state"))


def _csv_floats(token: str) -> list[float]:
    return [float(x) for x in token.split(",") if x.strip() != ""]


def _level_from_name(name: str) -> int:
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _log_level(args) -> int:
    if args.log_level:
        return _level_from_name(args.log_level)
    if args.verbose >= 3 or TRACE_ENABLED:
        return TRACE
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    return _level_from_name(LOG_LEVEL_DEFAULT)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CHOMP joint-space planner")
    parser.add_argument("--robot", required=True, help="JSON file describing joints and groups")
    parser.add_argument("--goal", required=True, help="Goal joint values, comma separated (group order)")
    parser.add_argument("--start", help="Start joint values, comma separated (group order)")
    parser.add_argument("--group", default=DEFAULT_GROUP, help="Planning group name")
    parser.add_argument(
        "--method",
        default=InitMethod.QUINTIC_SPLINE.value,
        choices=[m.value for m in InitMethod],
        help="Trajectory initialization method",
    )
    parser.add_argument("--tolerance", type=float, default=1e-3, help="Goal tolerance per joint")
    parser.add_argument("--recovery", action="store_true", help="Enable failure recovery")
    parser.add_argument("--max-recovery-attempts", type=int, default=5)
    parser.add_argument("--output", help="Write trajectory positions to this CSV file")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE")
    parser.add_argument("-q", "--quiet", action="store_true", help="Enable quiet logging (WARNING level)")
    parser.add_argument("--log-level", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Set specific log level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_log_level(args),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        scene = load_scene(args.robot)
        joint_names = [j.name for j in scene.group_joints(args.group)]
        params = PlannerParameters(
            trajectory_initialization_method=args.method,
            enable_failure_recovery=args.recovery,
            max_recovery_attempts=args.max_recovery_attempts,
        )
    except (OSError, ValueError, KeyError, PlanningSceneError, PlannerConfigError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    goal = _csv_floats(args.goal)
    if len(goal) != len(joint_names):
        logger.error(f"--goal needs {len(joint_names)} values, got {len(goal)}")
        return 1
    start = StartState()
    if args.start:
        values = _csv_floats(args.start)
        if len(values) != len(joint_names):
            logger.error(f"--start needs {len(joint_names)} values, got {len(values)}")
            return 1
        start = StartState(dict(zip(joint_names, values)))

    request = MotionPlanRequest(
        group_name=args.group,
        start_state=start,
        goal_constraints=[
            Constraints(
                joint_constraints=[
                    JointConstraint(n, v, args.tolerance, args.tolerance) for n, v in zip(joint_names, goal)
                ]
            )
        ],
    )

    response = ChompPlanner().solve(scene, request, params)
    logger.info(
        f"Result: {response.error_code.name} after {response.attempts} attempt(s) "
        f"in {response.processing_time:.3f}s"
    )
    if not response.success:
        return 1

    if args.output:
        np.savetxt(args.output, response.trajectory.positions(), delimiter=",", header=",".join(joint_names))
        logger.info(f"Wrote {len(response.trajectory)} waypoints to {args.output}")
    return 0


def main_entry():
    """Entry point for the chomp-plan command."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
