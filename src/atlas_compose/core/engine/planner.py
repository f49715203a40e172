# src/atlas_compose/core/engine/planner.py
"""
Planejador de execução dos Stages de uma passada (DAG).

Valida a estrutura declarada (ids, dependências, ciclos) e produz uma
ordem topológica determinística.

Decisões arquiteturais:
    - Ordenação topológica de Kahn com desempate lexicográfico por `stage.id`
      (ver core.graph)
    - Erros estruturais são falhas fatais, detectadas antes da execução

Invariantes:
    - Nenhum Stage é executado antes de suas dependências
    - A mesma definição sempre produz a mesma ordem

Limites explícitos:
    - Não executa Stages
    - Não interage com EvaluationContext
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from atlas_compose.core.graph import GraphCycleError, topological_order
from atlas_compose.core.pipeline.stage import Stage


class UnknownDependencyError(ValueError):
    """Stage declara em `depends_on` um id que não foi registrado."""


class CycleDetectedError(ValueError):
    """O grafo de dependências entre Stages contém um ciclo."""

    def __init__(self, cycle: List[str]):
        super().__init__(f"Cycle detected in stage dependency graph: {' -> '.join(cycle)}")
        self.cycle = cycle


def plan_execution(stages: Iterable[Stage]) -> List[Stage]:
    """
    Valida e ordena os Stages de uma passada.

    Raises:
        ValueError: `id` inválido ou duplicado.
        UnknownDependencyError: Dependência inexistente.
        CycleDetectedError: Ciclo no grafo.
    """
    by_id: Dict[str, Stage] = {}
    for s in stages:
        sid = getattr(s, "id", None)
        if not isinstance(sid, str) or not sid.strip():
            raise ValueError("stage.id must be a non-empty string")
        if sid in by_id:
            raise ValueError(f"Duplicate stage id: {sid}")
        by_id[sid] = s

    deps: Dict[str, List[str]] = {}
    for sid, s in by_id.items():
        d = list(getattr(s, "depends_on", []) or [])
        for dep in d:
            if dep not in by_id:
                raise UnknownDependencyError(f"Stage '{sid}' depends on unknown stage '{dep}'")
        deps[sid] = d

    try:
        order = topological_order(deps)
    except GraphCycleError as e:
        raise CycleDetectedError(e.cycle) from e

    return [by_id[sid] for sid in order]
