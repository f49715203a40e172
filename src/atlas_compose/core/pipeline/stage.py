# src/atlas_compose/core/pipeline/stage.py
"""
Contrato canônico de Stage do Atlas Compose.

Um Stage é a menor unidade executável de uma passada de avaliação
(resolve, validate, render, plan, build, activate).

Princípios fundamentais:
    - Stages não conhecem o Engine nem o planner
    - Comunicação entre Stages é mediada pelo EvaluationContext
    - Conformidade é garantida por duck typing (@runtime_checkable)

Invariantes:
    - Cada Stage possui um `id` único
    - O método `run` é chamado no máximo uma vez por passada
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from .context import EvaluationContext
from .types import StageKind, StageResult


@runtime_checkable
class Stage(Protocol):
    """
    Contrato mínimo de um Stage.

    Atributos obrigatórios:
        - id: identificador único e estável
        - kind: classificação semântica (`StageKind`)
        - depends_on: ids dos Stages dos quais depende
    """
    id: str
    kind: StageKind
    depends_on: List[str]

    def run(self, ctx: EvaluationContext) -> StageResult:
        """Executa o estágio uma única vez usando exclusivamente o contexto."""
        ...
