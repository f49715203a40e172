"""Stage canônico: resolve.

Responsabilidades:
- Executar o Conditional Evaluator (que dirige o Merge Engine) sobre o
  Fragment Store da passada.
- Publicar a resolução (`resolution`) e a árvore resolvida (`tree`) no contexto.
- Converter avisos de merge (empate de prioridade) em warnings do stage.

Erros estruturais (UnknownKeyError, MergeError, UnresolvedConditionError)
não são capturados aqui: o Engine os converte em AtlasErrorPayload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from atlas_compose.core.conditional.evaluator import resolve
from atlas_compose.core.pipeline.context import RESOLUTION_KEY, TREE_KEY, EvaluationContext
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus


@dataclass
class ResolveStage:
    id: str = "resolve"
    kind: StageKind = StageKind.RESOLVE
    depends_on: List[str] = field(default_factory=list)

    def run(self, ctx: EvaluationContext) -> StageResult:
        composition = ctx.composition
        warn_ties = bool(ctx.setting("merge", "warn_on_priority_tie", True))

        resolution = resolve(
            composition.store,
            composition.schema,
            warn_on_priority_tie=warn_ties,
        )
        tree = resolution.tree

        for summary in resolution.rounds:
            ctx.log(
                stage_id=self.id,
                level="debug",
                message="conditional round",
                **summary.to_dict(),
            )

        for warning in tree.warnings:
            ctx.add_warning(stage_id=self.id, message=warning.message)

        ctx.set_artifact(RESOLUTION_KEY, resolution)
        ctx.set_artifact(TREE_KEY, tree)

        return StageResult(
            stage_id=self.id,
            kind=self.kind,
            status=StageStatus.SUCCESS,
            summary="configuration tree resolved",
            metrics={
                "fragments": len(composition.store),
                "admitted": len(resolution.admitted),
                "discarded": len(resolution.discarded),
                "rounds": len(resolution.rounds),
                "resolved_paths": len(tree.values),
                "defaulted_paths": len(tree.defaulted),
            },
            artifacts={"tree_digest": tree.digest()},
            payload={"merge_warnings": [w.to_dict() for w in tree.warnings]},
        )
