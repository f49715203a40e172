# src/atlas_compose/core/validation/violations.py
"""
Violações coletadas pelo Validator.

Violações não são exceções: o Validator coleta todas antes de reportar,
e o estágio `validate` as converte em um payload VALIDATION_FAILED.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Tuple

from atlas_compose.core.schema.paths import KeyPath, format_path


class Violation(ABC):
    kind: ClassVar[str] = "violation"

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def explain(self) -> str:
        ...


@dataclass(frozen=True)
class TypeViolation(Violation):
    kind: ClassVar[str] = "type"

    path: KeyPath
    expected: str
    actual: str
    provenance: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "path": format_path(self.path),
            "expected": self.expected,
            "actual": self.actual,
            "provenance": list(self.provenance),
        }

    def explain(self) -> str:
        origin = f" (from {', '.join(self.provenance)})" if self.provenance else ""
        return f"{format_path(self.path)}: expected {self.expected}, got {self.actual}{origin}"


@dataclass(frozen=True)
class AssertionViolation(Violation):
    kind: ClassVar[str] = "assertion"

    message: str
    source_id: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "source_id": self.source_id,
            "details": dict(self.details),
        }

    def explain(self) -> str:
        reason = self.details.get("reason")
        suffix = f" [{reason}]" if reason else ""
        return f"{self.message}{suffix}"
