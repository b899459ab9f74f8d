from .base import Optimizer, OptimizerFactory
from .chomp import ChompOptimizer

__all__ = ["Optimizer", "OptimizerFactory", "ChompOptimizer"]
