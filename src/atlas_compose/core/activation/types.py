# src/atlas_compose/core/activation/types.py
"""
Tipos do Activation Planner.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from atlas_compose.core.render.types import ServiceUnitDescriptor


class ActionKind(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    NOOP = "noop"


@dataclass(frozen=True)
class Action:
    """
    Ação de ativação sobre uma unit.

    `waits_for` lista as units cujas ações anteriores precisam terminar
    antes desta (dependências para start/restart, dependentes para stop).
    """
    kind: ActionKind
    unit: str
    waits_for: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.kind.value} {self.unit}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "unit": self.unit, "waits_for": list(self.waits_for)}


@dataclass(frozen=True)
class ActiveUnit:
    """
    Unit em execução, como reportada pelo service backend.

    `trigger_digests=None` significa estado desconhecido (unit informada
    só pelo nome): ela nunca é reiniciada.
    """
    name: str
    requires: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()
    trigger_digests: Optional[Mapping[str, str]] = None

    @classmethod
    def from_descriptor(cls, descriptor: ServiceUnitDescriptor) -> "ActiveUnit":
        return cls(
            name=descriptor.name,
            requires=tuple(descriptor.requires),
            after=tuple(descriptor.after),
            trigger_digests=dict(descriptor.trigger_digests),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActiveUnit":
        digests = data.get("trigger_digests")
        return cls(
            name=str(data["name"]),
            requires=tuple(data.get("requires") or ()),
            after=tuple(data.get("after") or ()),
            trigger_digests=dict(digests) if digests is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "requires": list(self.requires),
            "after": list(self.after),
            "trigger_digests": (
                dict(sorted(self.trigger_digests.items()))
                if self.trigger_digests is not None
                else None
            ),
        }
