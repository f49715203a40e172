"""Stage canônico: render.

Deriva os artefatos (receitas, textos, units) da árvore validada e
publica a tupla ordenada por id em `artifacts`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from atlas_compose.core.pipeline.context import ARTIFACTS_KEY, TREE_KEY, EvaluationContext
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus
from atlas_compose.core.render.renderer import render


@dataclass
class RenderStage:
    id: str = "render"
    kind: StageKind = StageKind.RENDER
    depends_on: List[str] = field(default_factory=lambda: ["validate"])

    def run(self, ctx: EvaluationContext) -> StageResult:
        composition = ctx.composition
        tree = ctx.get_artifact(TREE_KEY)

        artifacts = render(tree, composition.render, schema=composition.schema)
        ctx.set_artifact(ARTIFACTS_KEY, artifacts)

        by_kind = {}
        for a in artifacts:
            by_kind[a.kind.value] = by_kind.get(a.kind.value, 0) + 1

        ctx.log(stage_id=self.id, level="info", message="artifacts rendered", count=len(artifacts))

        return StageResult(
            stage_id=self.id,
            kind=self.kind,
            status=StageStatus.SUCCESS,
            summary=f"{len(artifacts)} artifact(s) rendered",
            metrics={"artifacts": len(artifacts), **{f"kind.{k}": n for k, n in sorted(by_kind.items())}},
            artifacts={a.id: a.digest for a in artifacts},
        )
