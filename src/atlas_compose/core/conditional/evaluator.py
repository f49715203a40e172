# src/atlas_compose/core/conditional/evaluator.py
"""
Conditional Evaluator: admissão de fragmentos condicionais por ponto fixo.

Algoritmo:
    1. Antes da rodada 0, todo path de fragmento e de guarda é verificado
       contra o schema (UnknownKeyError)
    2. Rodada 0: merge dos fragmentos incondicionais
    3. Rodada n: uma guarda pendente é decidível quando todos os paths que
       ela referencia têm valor na árvore corrente E nenhum fragmento ainda
       pendente mira esses paths (o valor é final). Guardas decidíveis
       admitem ou descartam seu fragmento; então o merge é refeito
    4. O laço termina quando uma rodada não decide nada
    5. Fragmentos pendentes ao final → UnresolvedConditionError, nomeando o
       ciclo (fragmento → path → fragmento) ou os paths que nunca receberam
       valor
    6. Merge final com `require_mandatory=True`

Invariantes:
    - Terminação: cada rodada com progresso decide ao menos um fragmento
    - Determinismo: a ordem de decisão segue `(seq, index)`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from atlas_compose.core.exceptions import UnresolvedConditionError
from atlas_compose.core.fragments.fragment import Fragment
from atlas_compose.core.fragments.store import FragmentStore
from atlas_compose.core.merge.engine import ResolvedTree, merge, unknown_key
from atlas_compose.core.schema.options import OptionSchema
from atlas_compose.core.schema.paths import KeyPath, format_path


@dataclass(frozen=True)
class RoundSummary:
    round: int
    admitted: int
    discarded: int
    pending: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "round": self.round,
            "admitted": self.admitted,
            "discarded": self.discarded,
            "pending": self.pending,
        }


@dataclass(frozen=True)
class ConditionalResolution:
    tree: ResolvedTree
    admitted: Tuple[Fragment, ...] = ()
    discarded: Tuple[Fragment, ...] = ()
    rounds: Tuple[RoundSummary, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admitted": [f.label for f in self.admitted],
            "discarded": [f.label for f in self.discarded],
            "rounds": [r.to_dict() for r in self.rounds],
        }


def _check_paths(fragments: List[Fragment], schema: OptionSchema) -> None:
    for frag in fragments:
        if frag.path not in schema:
            raise unknown_key(frag.path, schema, source_id=frag.source_id)
        if frag.guard is None:
            continue
        for path in sorted(frag.guard.paths()):
            if path not in schema:
                raise unknown_key(
                    path,
                    schema,
                    source_id=frag.source_id,
                    referenced_by=f"guard of {frag.label}",
                )


def _find_cycle(pending: List[Fragment]) -> Optional[List[str]]:
    """Procura um ciclo fragmento → path → fragmento entre os pendentes."""
    by_target: Dict[KeyPath, List[int]] = {}
    for i, frag in enumerate(pending):
        by_target.setdefault(frag.path, []).append(i)

    def edges(i: int) -> List[Tuple[KeyPath, int]]:
        guard = pending[i].guard
        out: List[Tuple[KeyPath, int]] = []
        for path in sorted(guard.paths()) if guard is not None else []:
            for j in by_target.get(path, []):
                out.append((path, j))
        return out

    WHITE, GREY, BLACK = 0, 1, 2
    color = [WHITE] * len(pending)
    trail: List[int] = []
    vias: List[KeyPath] = []

    def visit(i: int) -> Optional[List[str]]:
        color[i] = GREY
        trail.append(i)
        for path, j in edges(i):
            if color[j] == GREY:
                chain: List[str] = []
                start = trail.index(j)
                for a in range(start, len(trail) - 1):
                    chain.extend([pending[trail[a]].label, format_path(vias[a])])
                chain.extend([pending[i].label, format_path(path), pending[j].label])
                return chain
            if color[j] == WHITE:
                vias.append(path)
                found = visit(j)
                vias.pop()
                if found:
                    return found
        color[i] = BLACK
        trail.pop()
        return None

    for i in range(len(pending)):
        if color[i] == WHITE:
            found = visit(i)
            if found:
                return found
    return None


def _unresolved(pending: List[Fragment], tree: ResolvedTree) -> UnresolvedConditionError:
    cycle = _find_cycle(pending)
    labels = [f.label for f in pending]

    if cycle is not None:
        return UnresolvedConditionError(
            message=f"conditional fragments gate each other: {' -> '.join(cycle)}",
            details={"cycle": cycle, "pending": labels},
            hint="Remova a dependência mútua entre as condições ou torne uma delas incondicional",
        )

    targets = {f.path for f in pending}
    missing: Set[str] = set()
    for frag in pending:
        for path in frag.guard.paths() if frag.guard is not None else ():
            if path not in tree.values and path not in targets:
                missing.add(format_path(path))

    return UnresolvedConditionError(
        message=f"conditions reference paths without value: {', '.join(sorted(missing))}",
        details={"missing_paths": sorted(missing), "pending": labels},
        hint="Declare um default para esses paths ou defina-os em alguma fonte",
    )


def resolve(
    store: Union[FragmentStore, Iterable[Fragment]],
    schema: OptionSchema,
    *,
    warn_on_priority_tie: bool = True,
) -> ConditionalResolution:
    """
    Resolve a árvore de configuração admitindo fragmentos condicionais
    até o ponto fixo.

    Raises:
        UnknownKeyError: Path de fragmento ou de guarda não declarado.
        MergeError: Propagado do Merge Engine.
        UnresolvedConditionError: Guardas indecidíveis ao final.
    """
    fragments = sorted(store, key=lambda f: (f.seq, f.index))
    _check_paths(fragments, schema)

    admitted: List[Fragment] = [f for f in fragments if f.guard is None]
    pending: List[Fragment] = [f for f in fragments if f.guard is not None]
    discarded: List[Fragment] = []
    rounds: List[RoundSummary] = []

    tree = merge(admitted, schema, require_mandatory=False, warn_on_priority_tie=False)
    rounds.append(RoundSummary(round=0, admitted=len(admitted), discarded=0, pending=len(pending)))

    while pending:
        targets = {f.path for f in pending}
        still_pending: List[Fragment] = []
        newly_admitted = 0
        newly_discarded = 0

        for frag in pending:
            deps = frag.guard.paths()
            decidable = all(p in tree.values and p not in targets for p in deps)
            if not decidable:
                still_pending.append(frag)
            elif frag.guard.evaluate(tree.values):
                admitted.append(frag)
                newly_admitted += 1
            else:
                discarded.append(frag)
                newly_discarded += 1

        if newly_admitted == 0 and newly_discarded == 0:
            break

        pending = still_pending
        if newly_admitted:
            tree = merge(admitted, schema, require_mandatory=False, warn_on_priority_tie=False)
        rounds.append(
            RoundSummary(
                round=len(rounds),
                admitted=newly_admitted,
                discarded=newly_discarded,
                pending=len(pending),
            )
        )

    if pending:
        raise _unresolved(pending, tree)

    final = merge(
        admitted,
        schema,
        require_mandatory=True,
        warn_on_priority_tie=warn_on_priority_tie,
    )

    return ConditionalResolution(
        tree=final,
        admitted=tuple(sorted(admitted, key=lambda f: (f.seq, f.index))),
        discarded=tuple(discarded),
        rounds=tuple(rounds),
    )
