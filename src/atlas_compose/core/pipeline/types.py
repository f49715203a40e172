# src/atlas_compose/core/pipeline/types.py
"""
Tipos canônicos do pipeline de avaliação do Atlas Compose.

Este módulo define as estruturas e enums que padronizam a comunicação
entre Stages, Engine e camadas de rastreabilidade.

Componentes principais:
    - StageStatus → enum de estados finais (SUCCESS, SKIPPED, FAILED)
    - StageKind   → enum de classificação semântica de Stages
    - StageResult → estrutura imutável de resultado de execução

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Valores são projetados para persistência em Manifest
    - Nenhuma lógica de execução vive neste módulo

Limites explícitos:
    - Não executa Stages
    - Não planeja passadas
    - Não contém lógica de domínio
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class StageKind(str, Enum):
    """
    Tipos semânticos de Stages na passada.

    Tipos definidos:
        - RESOLVE: merge e ponto fixo condicional
        - VALIDATE: verificação de tipos e asserções
        - RENDER: derivação de artefatos
        - PLAN: planejamento de ativação
        - EFFECT: interação com backends externos (build, activate)

    O tipo é puramente informativo: o Engine não decide execução com base
    no `kind`.
    """
    RESOLVE = "resolve"
    VALIDATE = "validate"
    RENDER = "render"
    PLAN = "plan"
    EFFECT = "effect"


class StageStatus(str, Enum):
    """
    Estados finais possíveis da execução de um Stage.

    Estados definidos:
        - SUCCESS: execução concluída com sucesso
        - SKIPPED: execução pulada (settings ou dependência falha)
        - FAILED: execução interrompida por erro ou violações
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult:
    """
    Resultado imutável da execução de um Stage.

    Campos:
        - stage_id: identificador único do Stage
        - kind: tipo semântico do Stage
        - status: estado final da execução
        - summary: resumo textual
        - metrics: métricas numéricas produzidas
        - warnings: avisos não fatais
        - artifacts: referências a artefatos produzidos (ids, digests)
        - payload: dados adicionais (ex.: `error`, `violations`)

    Invariantes:
        - Uma instância nunca é alterada após criada (o Engine usa
          `dataclasses.replace` para enriquecer)
    """
    stage_id: str
    kind: StageKind
    status: StageStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage_id": self.stage_id,
            "kind": self.kind.value,
            "status": self.status.value,
            "summary": self.summary,
            "metrics": dict(self.metrics),
            "warnings": list(self.warnings),
            "artifacts": dict(self.artifacts),
            "payload": dict(self.payload),
        }
