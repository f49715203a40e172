"""Stage canônico: validate.

Executa o Validator sobre a árvore resolvida. Violações são coletadas por
completo; havendo qualquer uma, o stage termina FAILED com um payload
VALIDATION_FAILED listando todas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from atlas_compose.core.errors import validation_failed
from atlas_compose.core.pipeline.context import TREE_KEY, VIOLATIONS_KEY, EvaluationContext
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus
from atlas_compose.core.validation.validator import validate


@dataclass
class ValidateStage:
    id: str = "validate"
    kind: StageKind = StageKind.VALIDATE
    depends_on: List[str] = field(default_factory=lambda: ["resolve"])

    def run(self, ctx: EvaluationContext) -> StageResult:
        composition = ctx.composition
        tree = ctx.get_artifact(TREE_KEY)

        violations = validate(tree, composition.schema, composition.assertions)
        ctx.set_artifact(VIOLATIONS_KEY, violations)

        metrics = {
            "checked_options": len(composition.schema),
            "assertions": len(composition.assertions),
            "violations": len(violations),
        }

        if not violations:
            return StageResult(
                stage_id=self.id,
                kind=self.kind,
                status=StageStatus.SUCCESS,
                summary="configuration is valid",
                metrics=metrics,
            )

        for v in violations:
            ctx.log(stage_id=self.id, level="error", message=v.explain(), kind=v.kind)

        error = validation_failed(violations=[v.to_dict() for v in violations], stage=self.id)
        return StageResult(
            stage_id=self.id,
            kind=self.kind,
            status=StageStatus.FAILED,
            summary=error.message,
            metrics=metrics,
            payload={"error": error.to_dict()},
        )
