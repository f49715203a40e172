# src/atlas_compose/core/fragments/guards.py
"""
Expressões de guarda sobre valores resolvidos.

Uma guarda é uma condição booleana imutável que referencia key paths da
árvore resolvida. Ela controla a admissão de fragmentos condicionais e
também é a forma declarativa dos predicados de asserção.

Operadores (forma YAML → classe):
    - "a.b.c"                         → Truthy(path)
    - {eq: [path, valor]}             → Equals
    - {ne: [path, valor]}             → NotEquals
    - {in: [path, [valores...]]}      → OneOf
    - {not: expr}                     → Not
    - {all: [expr, ...]}              → AllOf
    - {any: [expr, ...]}              → AnyOf
    - {implies: [expr, expr]}         → Implies

Decisões arquiteturais:
    - `paths()` expõe o conjunto completo de dependências, usado pelo
      Conditional Evaluator para decidir quando a guarda é decidível
    - Avaliar uma guarda com path ausente levanta UnresolvedPathError
      (nunca assume default)
    - Igualdade com booleanos é estrita (`True` não é igual a `1`)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from atlas_compose.core.exceptions import ModuleFormatError
from atlas_compose.core.schema.paths import KeyPath, as_path, format_path


class UnresolvedPathError(LookupError):
    """Path referenciado por uma guarda não possui valor resolvido."""

    def __init__(self, path: KeyPath):
        super().__init__(format_path(path))
        self.path = path


def _lookup(values: Mapping[KeyPath, Any], path: KeyPath) -> Any:
    if path not in values:
        raise UnresolvedPathError(path)
    return values[path]


def _strict_equal(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    return a == b


class Guard(ABC):
    @abstractmethod
    def paths(self) -> FrozenSet[KeyPath]:
        ...

    @abstractmethod
    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        ...

    @abstractmethod
    def to_dict(self) -> Any:
        ...


@dataclass(frozen=True)
class Truthy(Guard):
    path: KeyPath

    def paths(self) -> FrozenSet[KeyPath]:
        return frozenset({self.path})

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return bool(_lookup(values, self.path))

    def to_dict(self) -> Any:
        return format_path(self.path)


@dataclass(frozen=True)
class Equals(Guard):
    path: KeyPath
    value: Any

    def paths(self) -> FrozenSet[KeyPath]:
        return frozenset({self.path})

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return _strict_equal(_lookup(values, self.path), self.value)

    def to_dict(self) -> Any:
        return {"eq": [format_path(self.path), self.value]}


@dataclass(frozen=True)
class NotEquals(Guard):
    path: KeyPath
    value: Any

    def paths(self) -> FrozenSet[KeyPath]:
        return frozenset({self.path})

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return not _strict_equal(_lookup(values, self.path), self.value)

    def to_dict(self) -> Any:
        return {"ne": [format_path(self.path), self.value]}


@dataclass(frozen=True)
class OneOf(Guard):
    path: KeyPath
    values: Tuple[Any, ...]

    def paths(self) -> FrozenSet[KeyPath]:
        return frozenset({self.path})

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        current = _lookup(values, self.path)
        return any(_strict_equal(current, v) for v in self.values)

    def to_dict(self) -> Any:
        return {"in": [format_path(self.path), list(self.values)]}


@dataclass(frozen=True)
class Not(Guard):
    inner: Guard

    def paths(self) -> FrozenSet[KeyPath]:
        return self.inner.paths()

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return not self.inner.evaluate(values)

    def to_dict(self) -> Any:
        return {"not": self.inner.to_dict()}


@dataclass(frozen=True)
class AllOf(Guard):
    parts: Tuple[Guard, ...]

    def paths(self) -> FrozenSet[KeyPath]:
        return frozenset().union(*(p.paths() for p in self.parts))

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return all(p.evaluate(values) for p in self.parts)

    def to_dict(self) -> Any:
        return {"all": [p.to_dict() for p in self.parts]}


@dataclass(frozen=True)
class AnyOf(Guard):
    parts: Tuple[Guard, ...]

    def paths(self) -> FrozenSet[KeyPath]:
        return frozenset().union(*(p.paths() for p in self.parts))

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return any(p.evaluate(values) for p in self.parts)

    def to_dict(self) -> Any:
        return {"any": [p.to_dict() for p in self.parts]}


@dataclass(frozen=True)
class Implies(Guard):
    antecedent: Guard
    consequent: Guard

    def paths(self) -> FrozenSet[KeyPath]:
        return self.antecedent.paths() | self.consequent.paths()

    def evaluate(self, values: Mapping[KeyPath, Any]) -> bool:
        return (not self.antecedent.evaluate(values)) or self.consequent.evaluate(values)

    def to_dict(self) -> Any:
        return {"implies": [self.antecedent.to_dict(), self.consequent.to_dict()]}


def all_of(*guards: Optional[Guard]) -> Optional[Guard]:
    """Combina guardas opcionais; None quando nenhuma foi informada."""
    present = tuple(g for g in guards if g is not None)
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return AllOf(present)


def _path_arg(raw: Any, op: str) -> KeyPath:
    try:
        return as_path(raw)
    except ValueError as e:
        raise ModuleFormatError(
            message=f"guard operator '{op}' expects a key path, got {raw!r}",
            details={"operator": op, "received": raw},
        ) from e


def _pair(arg: Any, op: str) -> Tuple[Any, Any]:
    if not isinstance(arg, list) or len(arg) != 2:
        raise ModuleFormatError(
            message=f"guard operator '{op}' expects a two-element list",
            details={"operator": op, "received": arg},
        )
    return arg[0], arg[1]


def parse_guard(spec: Any) -> Guard:
    """
    Converte a forma declarativa de uma guarda em expressão imutável.

    Raises:
        ModuleFormatError: Se a forma não for reconhecida.
    """
    if isinstance(spec, Guard):
        return spec

    if isinstance(spec, str):
        return Truthy(_path_arg(spec, "path"))

    if isinstance(spec, dict) and len(spec) == 1:
        (op, arg), = spec.items()

        if op in ("eq", "ne"):
            raw_path, value = _pair(arg, op)
            path = _path_arg(raw_path, op)
            return Equals(path, value) if op == "eq" else NotEquals(path, value)

        if op == "in":
            raw_path, options = _pair(arg, op)
            if not isinstance(options, list):
                raise ModuleFormatError(
                    message="guard operator 'in' expects a list of values",
                    details={"operator": op, "received": options},
                )
            return OneOf(_path_arg(raw_path, op), tuple(options))

        if op == "not":
            return Not(parse_guard(arg))

        if op in ("all", "any"):
            if not isinstance(arg, list) or not arg:
                raise ModuleFormatError(
                    message=f"guard operator '{op}' expects a non-empty list",
                    details={"operator": op, "received": arg},
                )
            parts = tuple(parse_guard(a) for a in arg)
            return AllOf(parts) if op == "all" else AnyOf(parts)

        if op == "implies":
            a, b = _pair(arg, op)
            return Implies(parse_guard(a), parse_guard(b))

    raise ModuleFormatError(
        message=f"invalid guard expression: {spec!r}",
        details={"received": spec},
        hint="Use um path (string) ou um mapping com um operador: eq, ne, in, not, all, any, implies",
    )
