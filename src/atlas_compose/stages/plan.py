"""Stage canônico: plan.

Calcula o plano de ativação a partir das units renderizadas e do estado
ativo anterior. O estado anterior vem de `ctx.previously_active` quando
informado; senão, do service backend; senão, é vazio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from atlas_compose.core.activation.planner import plan
from atlas_compose.core.activation.types import ActionKind
from atlas_compose.core.pipeline.context import ARTIFACTS_KEY, PLAN_KEY, EvaluationContext
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus
from atlas_compose.core.render.renderer import service_units


@dataclass
class PlanStage:
    id: str = "plan"
    kind: StageKind = StageKind.PLAN
    depends_on: List[str] = field(default_factory=lambda: ["render"])

    def run(self, ctx: EvaluationContext) -> StageResult:
        units = service_units(ctx.get_artifact(ARTIFACTS_KEY))

        if ctx.previously_active is not None:
            previous = list(ctx.previously_active)
        elif ctx.service_backend is not None:
            previous = list(ctx.service_backend.active_units())
        else:
            previous = []

        actions = plan(units, previous)
        ctx.set_artifact(PLAN_KEY, actions)

        counts = {k.value: 0 for k in ActionKind}
        for action in actions:
            counts[action.kind.value] += 1

        return StageResult(
            stage_id=self.id,
            kind=self.kind,
            status=StageStatus.SUCCESS,
            summary=", ".join(f"{n} {k}" for k, n in counts.items() if n) or "nothing to do",
            metrics={"units": len(units), **counts},
            payload={"plan": [a.to_dict() for a in actions]},
        )
