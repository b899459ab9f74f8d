from .collision import SphereCollisionModel, SphereObstacle
from .scene import JointKind, JointSpec, PlanningScene

__all__ = [
    "JointKind",
    "JointSpec",
    "PlanningScene",
    "SphereCollisionModel",
    "SphereObstacle",
]
