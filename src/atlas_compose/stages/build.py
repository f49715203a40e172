"""Stage canônico: build (opcional, desabilitado por default).

Submete cada receita renderizada ao build backend. A primeira receita que
falha torna o stage FAILED com payload BUILD_FAILED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from atlas_compose.core.backends import realise_recipes
from atlas_compose.core.errors import build_failed, engine_configuration_error
from atlas_compose.core.pipeline.context import ARTIFACTS_KEY, BUILDS_KEY, EvaluationContext
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus


@dataclass
class BuildStage:
    id: str = "build"
    kind: StageKind = StageKind.EFFECT
    depends_on: List[str] = field(default_factory=lambda: ["render"])

    def run(self, ctx: EvaluationContext) -> StageResult:
        if ctx.build_backend is None:
            error = engine_configuration_error(
                message="build stage enabled without a build backend",
                details={"stage": self.id},
            )
            return StageResult(
                stage_id=self.id,
                kind=self.kind,
                status=StageStatus.FAILED,
                summary=error.message,
                payload={"error": error.to_dict()},
            )

        outcomes = realise_recipes(ctx.get_artifact(ARTIFACTS_KEY), ctx.build_backend)
        ctx.set_artifact(BUILDS_KEY, outcomes)

        for o in outcomes:
            ctx.log(
                stage_id=self.id,
                level="info" if o.ok else "error",
                message=f"recipe {o.recipe_id} {'built' if o.ok else 'failed'}",
                handle=o.handle,
            )

        payload = {"builds": [o.to_dict() for o in outcomes]}
        failed = [o for o in outcomes if not o.ok]
        if failed:
            first = failed[0]
            error = build_failed(
                recipe_id=first.recipe_id,
                failed_step=first.failed_step,
                log_excerpt=first.log_excerpt,
                stage=self.id,
            )
            payload["error"] = error.to_dict()
            return StageResult(
                stage_id=self.id,
                kind=self.kind,
                status=StageStatus.FAILED,
                summary=error.message,
                metrics={"recipes": len(outcomes), "failed": len(failed)},
                payload=payload,
            )

        return StageResult(
            stage_id=self.id,
            kind=self.kind,
            status=StageStatus.SUCCESS,
            summary=f"{len(outcomes)} recipe(s) built",
            metrics={"recipes": len(outcomes), "failed": 0},
            artifacts={o.recipe_id: o.handle for o in outcomes},
            payload=payload,
        )
