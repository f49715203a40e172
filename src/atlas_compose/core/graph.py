# src/atlas_compose/core/graph.py
"""
Ordenação topológica determinística.

Usada pelo planner de estágios do Engine e pelo Activation Planner.

Decisões arquiteturais:
    - Algoritmo de Kahn com desempate lexicográfico
    - Em caso de ciclo, um ciclo concreto é extraído e reportado
      (nenhuma ordem parcial é devolvida)
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Set


class GraphCycleError(ValueError):
    """Grafo com ciclo; `cycle` lista os nós do ciclo, fechando no primeiro."""

    def __init__(self, cycle: List[str]):
        super().__init__(" -> ".join(cycle))
        self.cycle = cycle


def _extract_cycle(remaining: Set[str], deps: Mapping[str, List[str]]) -> List[str]:
    node = min(remaining)
    trail: List[str] = []
    seen: Dict[str, int] = {}
    while node not in seen:
        seen[node] = len(trail)
        trail.append(node)
        node = min(d for d in deps[node] if d in remaining)
    return trail[seen[node]:] + [node]


def topological_order(deps: Mapping[str, Iterable[str]]) -> List[str]:
    """
    Ordena nós de forma que cada nó venha depois de suas dependências.

    Args:
        deps: nó → dependências (todas devem ser nós do grafo).

    Raises:
        KeyError: Dependência que não é nó do grafo.
        GraphCycleError: Se houver ciclo.
    """
    normalized: Dict[str, List[str]] = {n: sorted(set(d)) for n, d in deps.items()}

    incoming_count: Dict[str, int] = {n: 0 for n in normalized}
    outgoing: Dict[str, Set[str]] = {n: set() for n in normalized}
    for node, dlist in normalized.items():
        incoming_count[node] = len(dlist)
        for dep in dlist:
            outgoing[dep].add(node)

    ready: List[str] = sorted(n for n, c in incoming_count.items() if c == 0)
    order: List[str] = []

    while ready:
        node = ready.pop(0)
        order.append(node)
        for child in sorted(outgoing[node]):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort()

    if len(order) != len(normalized):
        remaining = set(normalized) - set(order)
        raise GraphCycleError(_extract_cycle(remaining, normalized))

    return order
