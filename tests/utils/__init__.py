"""
Test utilities package.

Provides optimizer doubles for driving the planner in tests.
"""

from .fakes import FakeOptimizer, OptimizerRecorder

__all__ = [
    "FakeOptimizer",
    "OptimizerRecorder",
]
