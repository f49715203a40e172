# src/atlas_compose/core/schema/options.py
"""
Option Schema: o contrato que todo fragmento deve satisfazer.

Este módulo define:
    - MergeStrategy → enumeração explícita da semântica de merge por chave
    - Option        → declaração imutável de uma chave configurável
    - OptionSchema  → registro ordenado e validado de opções

Decisões arquiteturais:
    - A estratégia de merge é sempre explícita na Option; quando a declaração
      a omite, ela é derivada do tipo (`lines` → text_concat,
      `list` → list_append, demais → override)
    - A compatibilidade estratégia × tipo é verificada NO MOMENTO DA DECLARAÇÃO,
      nunca durante o merge
    - O default declarado precisa satisfazer o tipo
    - A ordem de declaração é preservada e define a "ordem do schema"
      usada pelo renderer de texto

Invariantes:
    - Key paths são únicos no schema
    - Um path de opção nunca é prefixo de outro path de opção
      (uma chave é folha ou subárvore, nunca ambos)

Limites explícitos:
    - Não mescla valores (ver core.merge)
    - Não valida valores resolvidos (ver core.validation)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set

from atlas_compose.core.exceptions import SchemaDeclarationError

from .paths import KeyPath, as_path, format_path, is_strict_prefix
from .types import OptionType, TypeKind, parse_type


class MergeStrategy(str, Enum):
    """
    Semântica de merge de uma chave.

    - OVERRIDE: vence o fragmento de maior prioridade
    - LIST_APPEND: concatenação ordenada
    - BOOL_AND: AND lógico (toggles de segurança)
    - BOOL_OR: OR lógico (toggles opt-in)
    - TEXT_CONCAT: junção com quebra de linha, em ordem de submissão
    """
    OVERRIDE = "override"
    LIST_APPEND = "list_append"
    BOOL_AND = "bool_and"
    BOOL_OR = "bool_or"
    TEXT_CONCAT = "text_concat"


class _NoDefault:
    _instance: Optional["_NoDefault"] = None

    def __new__(cls) -> "_NoDefault":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Any = _NoDefault()


def default_strategy_for(option_type: OptionType) -> MergeStrategy:
    if option_type.kind == TypeKind.LINES:
        return MergeStrategy.TEXT_CONCAT
    if option_type.kind == TypeKind.LIST:
        return MergeStrategy.LIST_APPEND
    return MergeStrategy.OVERRIDE


def strategy_accepts_type(strategy: MergeStrategy, option_type: OptionType) -> bool:
    if strategy in (MergeStrategy.BOOL_AND, MergeStrategy.BOOL_OR):
        return option_type.kind == TypeKind.BOOL
    if strategy == MergeStrategy.LIST_APPEND:
        return option_type.kind == TypeKind.LIST
    if strategy == MergeStrategy.TEXT_CONCAT:
        return option_type.kind in (TypeKind.LINES, TypeKind.STR)
    return True


@dataclass(frozen=True)
class Option:
    """
    Declaração de uma chave configurável.

    Campos:
        - path: key path único no schema
        - type: tipo declarado (OptionType)
        - default: valor default ou NO_DEFAULT
        - merge: estratégia de merge (derivada do tipo quando omitida)
        - description / example: documentação humana
        - mandatory: ausência de fragmento e de default é erro
        - declared_by: identidade do módulo declarante (diagnóstico)
    """
    path: KeyPath
    type: OptionType
    default: Any = NO_DEFAULT
    merge: Optional[MergeStrategy] = None
    description: str = ""
    example: Any = None
    mandatory: bool = False
    declared_by: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", as_path(self.path))
        if self.merge is None:
            object.__setattr__(self, "merge", default_strategy_for(self.type))
        else:
            object.__setattr__(self, "merge", MergeStrategy(self.merge))

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def key(self) -> str:
        return format_path(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.key,
            "type": self.type.describe(),
            "default": self.default if self.has_default else None,
            "has_default": self.has_default,
            "merge": self.merge.value,
            "mandatory": self.mandatory,
            "description": self.description,
            "declared_by": self.declared_by,
        }


@dataclass
class OptionSchema:
    """
    Registro canônico de opções, validado no momento da declaração.

    Decisões arquiteturais:
        - Erros de declaração são fatais (SchemaDeclarationError)
        - A ordem de inserção é preservada separadamente do índice por path
    """

    _options: Dict[KeyPath, Option] = field(default_factory=dict, init=False, repr=False)
    _order: List[KeyPath] = field(default_factory=list, init=False, repr=False)
    _prefixes: Set[KeyPath] = field(default_factory=set, init=False, repr=False)

    def declare(self, option: Option) -> None:
        path = option.path
        key = option.key

        if path in self._options:
            other = self._options[path]
            raise SchemaDeclarationError(
                message=f"duplicate option path: {key}",
                details={"path": key, "declared_by": [other.declared_by, option.declared_by]},
            )

        if path in self._prefixes:
            raise SchemaDeclarationError(
                message=f"option path {key} is a prefix of another option",
                details={"path": key},
            )

        for i in range(1, len(path)):
            if path[:i] in self._options:
                raise SchemaDeclarationError(
                    message=f"option path {key} is nested under option {format_path(path[:i])}",
                    details={"path": key, "parent": format_path(path[:i])},
                )

        if not strategy_accepts_type(option.merge, option.type):
            raise SchemaDeclarationError(
                message=(
                    f"merge strategy '{option.merge.value}' is incompatible with "
                    f"type '{option.type.describe()}' at {key}"
                ),
                details={"path": key, "merge": option.merge.value, "type": option.type.describe()},
                hint="bool_and/bool_or exigem bool, list_append exige list, text_concat exige lines/str",
            )

        if option.has_default and not option.type.accepts(option.default):
            raise SchemaDeclarationError(
                message=f"default of {key} does not match type '{option.type.describe()}'",
                details={"path": key, "default": option.default, "type": option.type.describe()},
            )

        self._options[path] = option
        self._order.append(path)
        for i in range(1, len(path)):
            self._prefixes.add(path[:i])

    def get(self, path: KeyPath) -> Option:
        return self._options[path]

    def __contains__(self, path: object) -> bool:
        return path in self._options

    def __iter__(self) -> Iterator[Option]:
        return (self._options[p] for p in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def paths(self) -> List[KeyPath]:
        return list(self._order)

    def position(self, path: KeyPath) -> int:
        return self._order.index(path)

    def is_prefix(self, path: KeyPath) -> bool:
        return path in self._prefixes

    def options_under(self, prefix: KeyPath) -> List[Option]:
        """Opções da subárvore `prefix`, na ordem de declaração."""
        return [
            self._options[p]
            for p in self._order
            if p == prefix or is_strict_prefix(prefix, p)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {"options": [o.to_dict() for o in self]}


_OPTION_FIELDS = {"type", "default", "merge", "description", "example", "mandatory"}


def option_from_dict(path: str, data: Dict[str, Any], *, declared_by: str = "") -> Option:
    """
    Constrói uma Option a partir da forma declarativa de um módulo.

    Exemplo:
        option_from_dict("services.samba.enable", {"type": "bool", "default": False,
                                                   "merge": "bool_or"})

    Raises:
        SchemaDeclarationError: Se a declaração for inválida.
    """
    if not isinstance(data, dict):
        raise SchemaDeclarationError(
            message=f"option declaration for {path} must be a mapping",
            details={"path": path, "declared_by": declared_by},
        )

    unknown = sorted(set(data) - _OPTION_FIELDS)
    if unknown:
        raise SchemaDeclarationError(
            message=f"unknown fields in option {path}: {', '.join(unknown)}",
            details={"path": path, "unknown": unknown, "declared_by": declared_by},
        )

    if "type" not in data:
        raise SchemaDeclarationError(
            message=f"option {path} must declare a type",
            details={"path": path, "declared_by": declared_by},
        )

    merge = data.get("merge")
    if merge is not None:
        try:
            merge = MergeStrategy(merge)
        except ValueError:
            raise SchemaDeclarationError(
                message=f"unknown merge strategy for {path}: {merge!r}",
                details={"path": path, "allowed": [s.value for s in MergeStrategy]},
            ) from None

    try:
        key_path = as_path(path)
    except ValueError as e:
        raise SchemaDeclarationError(message=str(e), details={"path": path}) from e

    return Option(
        path=key_path,
        type=parse_type(data["type"]),
        default=data["default"] if "default" in data else NO_DEFAULT,
        merge=merge,
        description=str(data.get("description") or "").strip(),
        example=data.get("example"),
        mandatory=bool(data.get("mandatory", False)),
        declared_by=declared_by,
    )
