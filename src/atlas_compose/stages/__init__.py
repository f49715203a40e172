"""
Stages canônicos de uma passada de avaliação.

    resolve → validate → render → plan → activate
                            └──→ build
"""

from typing import List

from atlas_compose.core.pipeline.stage import Stage

from .activate import ActivateStage
from .build import BuildStage
from .plan import PlanStage
from .render import RenderStage
from .resolve import ResolveStage
from .validate import ValidateStage


def default_stages() -> List[Stage]:
    return [
        ResolveStage(),
        ValidateStage(),
        RenderStage(),
        PlanStage(),
        BuildStage(),
        ActivateStage(),
    ]


__all__ = [
    "ActivateStage",
    "BuildStage",
    "PlanStage",
    "RenderStage",
    "ResolveStage",
    "ValidateStage",
    "default_stages",
]
