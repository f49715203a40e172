"""
Activation Planner do Atlas Compose.

Componentes:
    - types    → Action, ActionKind, ActiveUnit
    - planner  → plan(units, previously_active)
    - executor → apply_plan(actions, units, backend)
"""

from .executor import ActionOutcome, ActivationReport, apply_plan
from .planner import plan
from .types import Action, ActionKind, ActiveUnit

__all__ = [
    "ActionOutcome",
    "ActivationReport",
    "apply_plan",
    "plan",
    "Action",
    "ActionKind",
    "ActiveUnit",
]
