# src/atlas_compose/core/merge/engine.py
"""
Merge Engine: combina fragmentos em uma árvore resolvida.

Estratégias (declaradas por chave no schema):
    - override:    maior prioridade vence; empate → o submetido por último
                   vence (`(seq, index)`), sempre com MergeWarning
                   `priority_tie` (a mensagem indica quando os valores coincidem)
    - list_append: concatenação ordenada por `(seq, priority, index)`
    - bool_and:    AND lógico entre contribuições
    - bool_or:     OR lógico entre contribuições
    - text_concat: junção com "\\n" em ordem de submissão

Default-if-absent:
    - Sem fragmento → default declarado
    - Sem fragmento e sem default → path fica sem valor; é erro
      (MissingValueError) apenas para opções `mandatory` e apenas quando
      `require_mandatory=True`

Invariantes:
    - Função pura: nenhum argumento é mutado e valores são copiados
    - O resultado não depende da ordem da lista de entrada, apenas de
      `(priority, seq, index)`
    - Não faz verificação de tipo além da exigida pela estratégia
      (ver core.validation)
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from atlas_compose.core.config.hashing import compute_config_hash
from atlas_compose.core.exceptions import MergeError, MissingValueError, UnknownKeyError
from atlas_compose.core.fragments.fragment import Fragment
from atlas_compose.core.schema.options import MergeStrategy, Option, OptionSchema
from atlas_compose.core.schema.paths import KeyPath, format_path
from atlas_compose.core.schema.types import describe_value

PRIORITY_TIE = "priority_tie"


@dataclass(frozen=True)
class MergeWarning:
    code: str
    path: KeyPath
    message: str
    sources: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "path": format_path(self.path),
            "message": self.message,
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class ResolvedTree:
    """
    Árvore de configuração resolvida.

    Campos:
        - values: path → valor final
        - provenance: path → fontes que contribuíram (na ordem de aplicação)
        - defaulted: paths preenchidos pelo default declarado
        - warnings: avisos não fatais do merge
    """
    values: Mapping[KeyPath, Any] = field(default_factory=dict)
    provenance: Mapping[KeyPath, Tuple[str, ...]] = field(default_factory=dict)
    defaulted: FrozenSet[KeyPath] = frozenset()
    warnings: Tuple[MergeWarning, ...] = ()

    def __contains__(self, path: object) -> bool:
        return path in self.values

    def get(self, path: KeyPath, default: Any = None) -> Any:
        return self.values.get(path, default)

    def __getitem__(self, path: KeyPath) -> Any:
        return self.values[path]

    def paths(self) -> List[KeyPath]:
        return sorted(self.values)

    def as_nested(self) -> Dict[str, Any]:
        """Forma aninhada (`{"services": {"samba": {...}}}`) para leitura humana."""
        out: Dict[str, Any] = {}
        for path in sorted(self.values):
            node = out
            for segment in path[:-1]:
                node = node.setdefault(segment, {})
            node[path[-1]] = deepcopy(self.values[path])
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "values": {format_path(p): self.values[p] for p in sorted(self.values)},
            "provenance": {format_path(p): list(self.provenance.get(p, ())) for p in sorted(self.values)},
            "defaulted": sorted(format_path(p) for p in self.defaulted),
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def digest(self) -> str:
        """Hash canônico dos valores resolvidos (independe de proveniência e avisos)."""
        return compute_config_hash(
            {format_path(p): self.values[p] for p in sorted(self.values)}
        )


def _default_source(option: Option) -> str:
    return f"default:{option.declared_by}" if option.declared_by else "default"


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return tuple(seen)


def _reject(option: Option, frag: Fragment, expected: str) -> MergeError:
    return MergeError(
        message=(
            f"{option.merge.value} at {option.key} requires {expected}, "
            f"got {describe_value(frag.value)} from {frag.source_id}"
        ),
        details={
            "path": option.key,
            "strategy": option.merge.value,
            "source_id": frag.source_id,
            "received": describe_value(frag.value),
        },
    )


def _merge_override(
    option: Option,
    contributions: List[Fragment],
    warnings: List[MergeWarning],
    warn_on_priority_tie: bool,
) -> Tuple[Any, Tuple[str, ...]]:
    ordered = sorted(contributions, key=lambda f: (f.priority, f.seq, f.index))
    winner = ordered[-1]

    if warn_on_priority_tie:
        rivals = [f for f in ordered[:-1] if f.priority == winner.priority]
        if rivals:
            sources = _unique([f.source_id for f in rivals] + [winner.source_id])
            agree = all(f.value == winner.value for f in rivals)
            warnings.append(
                MergeWarning(
                    code=PRIORITY_TIE,
                    path=option.path,
                    message=(
                        f"{option.key}: {len(rivals) + 1} values at priority {winner.priority}; "
                        f"last submitted ({winner.source_id}) wins"
                        + (" (values agree)" if agree else "")
                    ),
                    sources=sources,
                )
            )

    return deepcopy(winner.value), (winner.source_id,)


def _merge_list(option: Option, contributions: List[Fragment]) -> Tuple[Any, Tuple[str, ...]]:
    merged: List[Any] = []
    ordered = sorted(contributions, key=lambda f: (f.seq, f.priority, f.index))
    for frag in ordered:
        if not isinstance(frag.value, list):
            raise _reject(option, frag, "a list")
        merged.extend(deepcopy(frag.value))
    return merged, _unique(f.source_id for f in ordered)


def _merge_bool(option: Option, contributions: List[Fragment]) -> Tuple[Any, Tuple[str, ...]]:
    ordered = sorted(contributions, key=lambda f: (f.seq, f.index))
    for frag in ordered:
        if not isinstance(frag.value, bool):
            raise _reject(option, frag, "a bool")
    flags = [f.value for f in ordered]
    value = all(flags) if option.merge == MergeStrategy.BOOL_AND else any(flags)
    return value, _unique(f.source_id for f in ordered)


def _merge_text(option: Option, contributions: List[Fragment]) -> Tuple[Any, Tuple[str, ...]]:
    ordered = sorted(contributions, key=lambda f: (f.seq, f.index))
    for frag in ordered:
        if not isinstance(frag.value, str):
            raise _reject(option, frag, "a string")
    return "\n".join(f.value for f in ordered), _unique(f.source_id for f in ordered)


def merge(
    fragments: Iterable[Fragment],
    schema: OptionSchema,
    *,
    require_mandatory: bool = True,
    warn_on_priority_tie: bool = True,
) -> ResolvedTree:
    """
    Combina `fragments` segundo as estratégias declaradas em `schema`.

    Raises:
        UnknownKeyError: Fragmento para path não declarado.
        MergeError: Valor incompatível com a estratégia da chave.
        MissingValueError: Opção obrigatória sem valor (com `require_mandatory`).
    """
    grouped: Dict[KeyPath, List[Fragment]] = {}
    for frag in fragments:
        if frag.path not in schema:
            raise unknown_key(frag.path, schema, source_id=frag.source_id)
        grouped.setdefault(frag.path, []).append(frag)

    values: Dict[KeyPath, Any] = {}
    provenance: Dict[KeyPath, Tuple[str, ...]] = {}
    defaulted: List[KeyPath] = []
    warnings: List[MergeWarning] = []
    missing: List[str] = []

    for option in schema:
        contributions = grouped.get(option.path)

        if not contributions:
            if option.has_default:
                values[option.path] = deepcopy(option.default)
                provenance[option.path] = (_default_source(option),)
                defaulted.append(option.path)
            elif option.mandatory:
                missing.append(option.key)
            continue

        strategy = option.merge
        if strategy == MergeStrategy.OVERRIDE:
            value, sources = _merge_override(option, contributions, warnings, warn_on_priority_tie)
        elif strategy == MergeStrategy.LIST_APPEND:
            value, sources = _merge_list(option, contributions)
        elif strategy in (MergeStrategy.BOOL_AND, MergeStrategy.BOOL_OR):
            value, sources = _merge_bool(option, contributions)
        else:
            value, sources = _merge_text(option, contributions)

        values[option.path] = value
        provenance[option.path] = sources

    if missing and require_mandatory:
        raise MissingValueError(
            message=f"{len(missing)} mandatory option(s) without value: {', '.join(missing)}",
            details={"paths": missing},
            hint="Defina um valor em algum módulo ou fonte de configuração",
        )

    return ResolvedTree(
        values=values,
        provenance=provenance,
        defaulted=frozenset(defaulted),
        warnings=tuple(warnings),
    )


def unknown_key(
    path: KeyPath,
    schema: OptionSchema,
    *,
    source_id: Optional[str] = None,
    referenced_by: Optional[str] = None,
) -> UnknownKeyError:
    details: Dict[str, Any] = {"path": format_path(path)}
    if source_id is not None:
        details["source_id"] = source_id
    if referenced_by is not None:
        details["referenced_by"] = referenced_by

    hint = None
    if schema.is_prefix(path):
        hint = f"{format_path(path)} é uma subárvore; atribua valores às opções folha"

    return UnknownKeyError(
        message=f"undeclared option path: {format_path(path)}",
        details=details,
        hint=hint,
    )
