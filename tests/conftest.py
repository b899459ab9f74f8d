"""
Pytest configuration and shared fixtures for the planner test suite.

Provides scenes, requests and planner factories used across unit and
integration tests.
"""

import math
import os
import sys

import pytest

# Add the parent directory to Python path so tests can import the package and test utilities
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from chomp_planner.planner.chomp_planner import ChompPlanner
from chomp_planner.protocol.types import Constraints, JointConstraint, MotionPlanRequest, StartState
from chomp_planner.robot.scene import JointKind, JointSpec, PlanningScene


# ============================================================================
# SCENE FIXTURES
# ============================================================================

@pytest.fixture
def arm_scene() -> PlanningScene:
    """
    Three joint arm: two bounded revolute joints and one continuous wrist.

    Groups: "arm" (all joints), "wrist" (continuous joint only), "empty".
    """
    joints = [
        JointSpec("shoulder", JointKind.REVOLUTE, -2.5, 2.5),
        JointSpec("elbow", JointKind.REVOLUTE, -2.0, 2.0),
        JointSpec("wrist", JointKind.CONTINUOUS, -math.inf, math.inf),
    ]
    groups = {"arm": ["shoulder", "elbow", "wrist"], "wrist": ["wrist"], "empty": []}
    return PlanningScene(joints, groups=groups, current_state=[0.0, 0.0, 0.0])


@pytest.fixture
def planar_scene() -> PlanningScene:
    """Two bounded revolute joints in the default group."""
    joints = [
        JointSpec("j1", JointKind.REVOLUTE, -3.0, 3.0),
        JointSpec("j2", JointKind.REVOLUTE, -3.0, 3.0),
    ]
    return PlanningScene(joints, groups={"planar": ["j1", "j2"]}, current_state=[0.0, 0.0])


# ============================================================================
# REQUEST HELPERS
# ============================================================================

def joint_goal_request(group, start=None, goal=None, tolerance=1e-3) -> MotionPlanRequest:
    """Build a single joint-space goal request from name->value dicts."""
    return MotionPlanRequest(
        group_name=group,
        start_state=StartState(dict(start or {})),
        goal_constraints=[
            Constraints(
                joint_constraints=[
                    JointConstraint(name, value, tolerance, tolerance) for name, value in (goal or {}).items()
                ]
            )
        ],
    )


@pytest.fixture
def make_request():
    return joint_goal_request


@pytest.fixture
def small_planner():
    """
    Planner factory with a short horizon: 1.0 s at 0.1 s gives 11 points.
    """

    def _make(optimizer_factory, **kwargs):
        kwargs.setdefault("planning_horizon", 1.0)
        kwargs.setdefault("discretization", 0.1)
        return ChompPlanner(optimizer_factory=optimizer_factory, **kwargs)

    return _make


# ============================================================================
# PYTEST CONFIGURATION HOOKS
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Planning runs with the reference optimizer or the CLI"
    )
