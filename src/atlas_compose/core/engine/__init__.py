"""
Engine de passadas do Atlas Compose.
"""

from .engine import Engine, PassResult
from .planner import CycleDetectedError, UnknownDependencyError, plan_execution

__all__ = [
    "Engine",
    "PassResult",
    "CycleDetectedError",
    "UnknownDependencyError",
    "plan_execution",
]
