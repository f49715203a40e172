"""Stage canônico: activate (opcional, desabilitado por default).

Aplica o plano contra o service backend (`activation.max_workers`,
`activation.fail_fast`). Qualquer ação falha torna o stage FAILED com
payload ACTIVATION_FAILED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from atlas_compose.core.activation.executor import apply_plan
from atlas_compose.core.errors import activation_failed, engine_configuration_error
from atlas_compose.core.pipeline.context import (
    ACTIVATION_KEY,
    ARTIFACTS_KEY,
    PLAN_KEY,
    EvaluationContext,
)
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus
from atlas_compose.core.render.renderer import service_units


@dataclass
class ActivateStage:
    id: str = "activate"
    kind: StageKind = StageKind.EFFECT
    depends_on: List[str] = field(default_factory=lambda: ["plan"])

    def run(self, ctx: EvaluationContext) -> StageResult:
        if ctx.service_backend is None:
            error = engine_configuration_error(
                message="activate stage enabled without a service backend",
                details={"stage": self.id},
            )
            return StageResult(
                stage_id=self.id,
                kind=self.kind,
                status=StageStatus.FAILED,
                summary=error.message,
                payload={"error": error.to_dict()},
            )

        report = apply_plan(
            ctx.get_artifact(PLAN_KEY),
            service_units(ctx.get_artifact(ARTIFACTS_KEY)),
            ctx.service_backend,
            max_workers=int(ctx.setting("activation", "max_workers", 4)),
            fail_fast=bool(ctx.setting("activation", "fail_fast", True)),
        )
        ctx.set_artifact(ACTIVATION_KEY, report)

        for outcome in report.outcomes:
            if outcome.status == "skipped":
                ctx.add_warning(stage_id=self.id, message=f"{outcome.action} skipped: {outcome.message}")

        statuses = [o.status for o in report.outcomes]
        metrics = {s: statuses.count(s) for s in ("ok", "noop", "failed", "skipped")}
        payload = {"activation": report.to_dict()}

        if not report.ok:
            error = activation_failed(
                failures=[o.to_dict() for o in report.failures()],
                stage=self.id,
            )
            payload["error"] = error.to_dict()
            return StageResult(
                stage_id=self.id,
                kind=self.kind,
                status=StageStatus.FAILED,
                summary=error.message,
                metrics=metrics,
                payload=payload,
            )

        return StageResult(
            stage_id=self.id,
            kind=self.kind,
            status=StageStatus.SUCCESS,
            summary=f"{metrics['ok']} action(s) applied",
            metrics=metrics,
            payload=payload,
        )
