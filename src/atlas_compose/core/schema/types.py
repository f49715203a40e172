# src/atlas_compose/core/schema/types.py
"""
Tipos declarados de opções do schema.

Este módulo define o vocabulário fechado de tipos que uma opção pode
declarar e a verificação de forma (runtime shape) usada pelo Validator.

Tipos suportados (v1):
    - bool, str, int
    - lines     → texto livre (tipicamente mesclado por concatenação)
    - enum      → conjunto enumerado de strings
    - nullable  → `None` ou o tipo interno
    - list      → lista do tipo interno
    - attrs     → mapping nome → tipo interno (ex.: shares do samba,
                  `{attrs: {attrs: str}}`)
    - package   → referência a pacote do catálogo (nome de atributo)
    - unit      → referência a unit de serviço (`nome.service`, `nome.target`, ...)

Decisões arquiteturais:
    - `bool` não é aceito onde se declara `int` (apesar de ser subclasse em Python)
    - A gramática textual (YAML) é pequena e explícita: string para tipos
      escalares, mapping de uma chave para tipos compostos

Limites explícitos:
    - Não realiza coerção de valores
    - Não conhece estratégias de merge (ver options.py)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from atlas_compose.core.exceptions import SchemaDeclarationError


class TypeKind(str, Enum):
    BOOL = "bool"
    STR = "str"
    INT = "int"
    LINES = "lines"
    ENUM = "enum"
    NULLABLE = "nullable"
    LIST = "list"
    ATTRS = "attrs"
    PACKAGE = "package"
    UNIT = "unit"


_PACKAGE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.+-]*$")
UNIT_SUFFIXES: Tuple[str, ...] = (".service", ".target", ".mount", ".socket", ".timer", ".path")

_SCALAR_KINDS = {
    TypeKind.BOOL,
    TypeKind.STR,
    TypeKind.INT,
    TypeKind.LINES,
    TypeKind.PACKAGE,
    TypeKind.UNIT,
}


@dataclass(frozen=True)
class OptionType:
    """Tipo declarado de uma opção. Imutável e comparável por valor."""

    kind: TypeKind
    choices: Tuple[str, ...] = ()
    inner: Optional["OptionType"] = None

    def describe(self) -> str:
        if self.kind == TypeKind.ENUM:
            return "one of [" + ", ".join(self.choices) + "]"
        if self.kind == TypeKind.NULLABLE and self.inner is not None:
            return f"null or {self.inner.describe()}"
        if self.kind == TypeKind.LIST and self.inner is not None:
            return f"list of {self.inner.describe()}"
        if self.kind == TypeKind.ATTRS and self.inner is not None:
            return f"attribute set of {self.inner.describe()}"
        return self.kind.value

    def accepts(self, value: Any) -> bool:
        kind = self.kind
        if kind == TypeKind.BOOL:
            return isinstance(value, bool)
        if kind in (TypeKind.STR, TypeKind.LINES):
            return isinstance(value, str)
        if kind == TypeKind.INT:
            return isinstance(value, int) and not isinstance(value, bool)
        if kind == TypeKind.ENUM:
            return isinstance(value, str) and value in self.choices
        if kind == TypeKind.NULLABLE:
            return value is None or (self.inner is not None and self.inner.accepts(value))
        if kind == TypeKind.LIST:
            return isinstance(value, list) and self.inner is not None and all(
                self.inner.accepts(v) for v in value
            )
        if kind == TypeKind.ATTRS:
            return isinstance(value, dict) and self.inner is not None and all(
                isinstance(k, str) and self.inner.accepts(v) for k, v in value.items()
            )
        if kind == TypeKind.PACKAGE:
            return isinstance(value, str) and bool(_PACKAGE_RE.match(value))
        if kind == TypeKind.UNIT:
            return isinstance(value, str) and any(
                value.endswith(s) and len(value) > len(s) for s in UNIT_SUFFIXES
            )
        return False  # pragma: no cover


BOOL = OptionType(TypeKind.BOOL)
STR = OptionType(TypeKind.STR)
INT = OptionType(TypeKind.INT)
LINES = OptionType(TypeKind.LINES)
PACKAGE = OptionType(TypeKind.PACKAGE)
UNIT = OptionType(TypeKind.UNIT)


def enum_of(*choices: str) -> OptionType:
    if not choices or any(not isinstance(c, str) or not c for c in choices):
        raise SchemaDeclarationError(
            message="enum requires a non-empty list of non-empty strings",
            details={"choices": list(choices)},
        )
    return OptionType(TypeKind.ENUM, choices=tuple(choices))


def nullable(inner: OptionType) -> OptionType:
    return OptionType(TypeKind.NULLABLE, inner=inner)


def list_of(inner: OptionType) -> OptionType:
    return OptionType(TypeKind.LIST, inner=inner)


def attrs_of(inner: OptionType) -> OptionType:
    return OptionType(TypeKind.ATTRS, inner=inner)


def parse_type(spec: Any) -> OptionType:
    """
    Converte a forma declarativa (YAML/JSON) de um tipo em OptionType.

    Exemplos:
        "bool"                          → BOOL
        {"enum": ["dc", "member"]}      → enum_of("dc", "member")
        {"nullable": {"list": "str"}}   → nullable(list_of(STR))
        {"attrs": {"attrs": "str"}}     → attrs_of(attrs_of(STR))

    Raises:
        SchemaDeclarationError: Se a forma não for reconhecida.
    """
    if isinstance(spec, OptionType):
        return spec

    if isinstance(spec, str):
        try:
            kind = TypeKind(spec.strip())
        except ValueError:
            kind = None
        if kind in _SCALAR_KINDS:
            return OptionType(kind)
        raise SchemaDeclarationError(
            message=f"unknown option type: {spec!r}",
            details={"type": spec, "scalar_types": sorted(k.value for k in _SCALAR_KINDS)},
        )

    if isinstance(spec, dict) and len(spec) == 1:
        (key, arg), = spec.items()
        if key == TypeKind.ENUM.value:
            if not isinstance(arg, list):
                raise SchemaDeclarationError(
                    message="enum type requires a list of choices",
                    details={"type": spec},
                )
            return enum_of(*arg)
        if key == TypeKind.NULLABLE.value:
            return nullable(parse_type(arg))
        if key == TypeKind.LIST.value:
            return list_of(parse_type(arg))
        if key == TypeKind.ATTRS.value:
            return attrs_of(parse_type(arg))

    raise SchemaDeclarationError(
        message=f"invalid option type declaration: {spec!r}",
        details={"type": spec},
        hint="Use um tipo escalar (bool, str, int, lines, package, unit) ou {enum|nullable|list|attrs: ...}",
    )


def describe_value(value: Any) -> str:
    """Nome estável do tipo runtime de um valor, para mensagens de violação."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, str):
        return "str"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "mapping"
    return type(value).__name__
