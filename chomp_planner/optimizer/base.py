"""
Optimizer contract consumed by the planning loop.
"""

from typing import Callable, Protocol

from chomp_planner.parameters import PlannerParameters
from chomp_planner.protocol.types import RobotState
from chomp_planner.robot.scene import PlanningScene
from chomp_planner.trajectory.buffer import TrajectoryBuffer


class Optimizer(Protocol):
    """
    Mutates the free interior of a trajectory buffer in place.

    ``optimize`` reports convergence of the optimizer's own cost only;
    collision status is reported separately by ``is_collision_free``.
    """

    def is_initialized(self) -> bool: ...

    def optimize(self) -> bool: ...

    def is_collision_free(self) -> bool: ...


OptimizerFactory = Callable[
    [TrajectoryBuffer, PlanningScene, str, PlannerParameters, RobotState],
    Optimizer,
]
