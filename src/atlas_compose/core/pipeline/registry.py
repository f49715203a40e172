# src/atlas_compose/core/pipeline/registry.py
"""
Registro estrutural de Stages.

O registry valida, antes de qualquer planejamento:
    - que cada Stage possui identificador válido
    - que não existem identificadores duplicados
    - a ordem de registro (preservada explicitamente)

Limites explícitos:
    - Não planeja execução (ver core.engine.planner)
    - Não executa Stages
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .stage import Stage


class DuplicateStageIdError(ValueError):
    """Dois Stages registrados com o mesmo `id`."""


@dataclass
class StageRegistry:
    _stages: Dict[str, Stage] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, stage: Stage) -> None:
        stage_id = getattr(stage, "id", None)
        if not isinstance(stage_id, str) or not stage_id.strip():
            raise ValueError("stage.id must be a non-empty string")

        if stage_id in self._stages:
            raise DuplicateStageIdError(f"Duplicate stage id: {stage_id}")

        self._stages[stage_id] = stage
        self._order.append(stage_id)

    def get(self, stage_id: str) -> Stage:
        return self._stages[stage_id]

    def list(self) -> List[Stage]:
        return [self._stages[sid] for sid in self._order]
