"""
Sphere obstacle collision model for roboticstoolbox robots.

Collision points are sampled along the segments joining consecutive link
frame origins from forward kinematics; each point carries a radius. The
obstacle cost is the smooth hinge penalty used by CHOMP: linear inside an
obstacle, quadratic within ``clearance`` of it, zero beyond.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
import roboticstoolbox as rtb
from spatialmath import SE3

from chomp_planner.protocol.types import RobotState

logger = logging.getLogger(__name__)


def hinge_potential(distances: ArrayLike, clearance: float) -> NDArray[np.float64]:
    """
    CHOMP obstacle potential per signed distance: ``-d + eps/2`` inside an
    obstacle, ``(d - eps)^2 / (2 eps)`` within ``eps`` of it, zero beyond.
    """
    if clearance <= 0:
        raise ValueError(f"clearance must be positive, got {clearance}")
    d = np.asarray(distances, dtype=np.float64)
    eps = float(clearance)
    c = np.zeros_like(d)
    inside = d < 0.0
    near = (d >= 0.0) & (d <= eps)
    c[inside] = -d[inside] + 0.5 * eps
    c[near] = (d[near] - eps) ** 2 / (2.0 * eps)
    return c


@dataclass
class SphereObstacle:
    pose: SE3 = field(default_factory=SE3)
    radius: float = 0.05

    @property
    def center(self) -> NDArray[np.float64]:
        return np.asarray(self.pose.t, dtype=np.float64)


class SphereCollisionModel:
    """
    Args:
        robot: Robot whose joint order matches the scene's joint order
        obstacles: Spheres in the robot base frame
        link_radius: Radius of every collision point (m)
        clearance: Distance below which the obstacle cost is non-zero (m)
        points_per_link: Collision points sampled per link segment
    """

    def __init__(
        self,
        robot: "rtb.Robot | rtb.DHRobot",
        obstacles: Sequence[SphereObstacle] = (),
        link_radius: float = 0.04,
        clearance: float = 0.2,
        points_per_link: int = 4,
    ):
        if clearance <= 0:
            raise ValueError(f"clearance must be positive, got {clearance}")
        self.robot = robot
        self.obstacles = list(obstacles)
        self.link_radius = float(link_radius)
        self.clearance = float(clearance)
        self.points_per_link = max(1, int(points_per_link))

    def collision_points(self, q: NDArray[np.float64]) -> NDArray[np.float64]:
        """Collision point positions, shape (P, 3)."""
        origins = np.array([T.t for T in self.robot.fkine_all(q)], dtype=np.float64)
        if origins.shape[0] < 2:
            return origins
        s = np.linspace(0.0, 1.0, self.points_per_link + 1)[1:].reshape(-1, 1)
        segments = [a + s * (b - a) for a, b in zip(origins[:-1], origins[1:])]
        return np.vstack([origins[:1]] + segments)

    def signed_distances(self, q: NDArray[np.float64]) -> NDArray[np.float64]:
        """Surface distance from every collision point to every obstacle, shape (P, O)."""
        points = self.collision_points(q)
        if not self.obstacles:
            return np.full((points.shape[0], 0), np.inf)
        centers = np.array([o.center for o in self.obstacles])
        radii = np.array([o.radius for o in self.obstacles])
        d = np.linalg.norm(points[:, None, :] - centers[None, :, :], axis=2)
        return d - radii[None, :] - self.link_radius

    def state_distances(self, state: RobotState) -> NDArray[np.float64]:
        """``signed_distances`` for a robot state; plugs into the scene's distance hook."""
        return self.signed_distances(state.positions)

    def in_collision(self, state: RobotState) -> bool:
        d = self.state_distances(state)
        return bool(d.size and np.min(d) < 0.0)

    def cost(self, state: RobotState) -> float:
        return float(np.sum(hinge_potential(self.state_distances(state), self.clearance)))
