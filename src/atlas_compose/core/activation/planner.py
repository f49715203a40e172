# src/atlas_compose/core/activation/planner.py
"""
Activation Planner: do conjunto de units desejado para ações ordenadas.

Regras:
    - Grafo de dependências sobre `requires` + `after`; arestas `after`
      para units fora do conjunto são fracas e ignoradas; `requires` para
      unit inexistente é UnknownUnitError
    - Ciclo → CyclicDependencyError nomeando o ciclo, sem plano parcial
    - Primeiro os stops (units ativas antes e ausentes agora), em ordem
      topológica reversa do grafo anterior
    - Depois, em ordem topológica do grafo atual: start (nova), restart
      (digest de gatilho diferente do ativo) ou noop (inalterada)
    - Empates topológicos resolvidos por ordem lexicográfica

Invariantes:
    - Reaplicar o mesmo conjunto sobre o estado que ele produziu gera
      apenas ações noop
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Union

from atlas_compose.core.exceptions import CyclicDependencyError, DuplicateUnitError, UnknownUnitError
from atlas_compose.core.graph import GraphCycleError, topological_order
from atlas_compose.core.render.types import ServiceUnitDescriptor

from .types import Action, ActionKind, ActiveUnit


def _order(deps: Mapping[str, List[str]], *, graph: str) -> List[str]:
    try:
        return topological_order(deps)
    except GraphCycleError as e:
        raise CyclicDependencyError(
            message=f"cyclic unit dependencies: {' -> '.join(e.cycle)}",
            details={"cycle": e.cycle, "graph": graph},
            hint="Remova uma das arestas requires/after do ciclo",
        ) from e


def _edges(requires: Iterable[str], after: Iterable[str], known: set) -> List[str]:
    return sorted(set(requires) | {a for a in after if a in known})


def _needs_restart(current: ServiceUnitDescriptor, active: ActiveUnit) -> bool:
    if active.trigger_digests is None:
        return False
    return any(
        active.trigger_digests.get(artifact) != digest
        for artifact, digest in current.trigger_digests.items()
    )


def plan(
    units: Iterable[ServiceUnitDescriptor],
    previously_active: Iterable[Union[ActiveUnit, str]] = (),
) -> List[Action]:
    """
    Calcula o plano de ativação.

    Args:
        units: Descritores desejados (saída do renderer).
        previously_active: Units ativas, como ActiveUnit ou apenas nome.

    Raises:
        DuplicateUnitError: Dois descritores com o mesmo nome.
        UnknownUnitError: `requires` aponta para unit fora do conjunto.
        CyclicDependencyError: Ciclo no grafo atual ou anterior.
    """
    current: Dict[str, ServiceUnitDescriptor] = {}
    for unit in units:
        if unit.name in current:
            raise DuplicateUnitError(
                message=f"duplicate unit: {unit.name}",
                details={"unit": unit.name},
                hint="Cada unit deve ser declarada por um único grupo de units",
            )
        current[unit.name] = unit

    previous: Dict[str, ActiveUnit] = {}
    for item in previously_active:
        active = ActiveUnit(name=item) if isinstance(item, str) else item
        previous[active.name] = active

    known_now = set(current)
    deps_now: Dict[str, List[str]] = {}
    for name, unit in current.items():
        for req in unit.requires:
            if req not in known_now:
                raise UnknownUnitError(
                    message=f"unit {name} requires unknown unit {req}",
                    details={"unit": name, "requires": req},
                )
        deps_now[name] = _edges(unit.requires, unit.after, known_now)

    known_before = set(previous)
    deps_before: Dict[str, List[str]] = {
        name: _edges([r for r in a.requires if r in known_before], a.after, known_before)
        for name, a in previous.items()
    }

    order_now = _order(deps_now, graph="current")
    order_before = _order(deps_before, graph="previous")

    actions: List[Action] = []

    stopping = [n for n in reversed(order_before) if n not in current]
    stopping_set = set(stopping)
    for name in stopping:
        dependents = sorted(n for n in stopping_set if name in deps_before[n])
        actions.append(Action(kind=ActionKind.STOP, unit=name, waits_for=tuple(dependents)))

    for name in order_now:
        unit = current[name]
        waits = tuple(deps_now[name])
        if name not in previous:
            kind = ActionKind.START
        elif _needs_restart(unit, previous[name]):
            kind = ActionKind.RESTART
        else:
            kind = ActionKind.NOOP
        actions.append(Action(kind=kind, unit=name, waits_for=waits))

    return actions
