# src/atlas_compose/core/render/types.py
"""
Tipos de artefatos derivados.

Um DerivedArtifact é uma saída concreta e imutável calculada a partir da
árvore resolvida. Seu `digest` depende apenas de `content`; o `payload`
carrega a forma estruturada (BuildRecipe, ServiceUnitDescriptor) e não
participa da comparação.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from atlas_compose.core.config.hashing import sha256_text


class ArtifactKind(str, Enum):
    BUILD_RECIPE = "build_recipe"
    BUILD_OUTPUT = "build_output"
    RENDERED_TEXT = "rendered_text"
    SERVICE_UNIT = "service_unit"


@dataclass(frozen=True)
class DerivedArtifact:
    id: str
    kind: ArtifactKind
    content: str
    depends_on: FrozenSet[str] = frozenset()
    payload: Any = field(default=None, compare=False)

    @property
    def digest(self) -> str:
        return sha256_text(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "digest": self.digest,
            "depends_on": sorted(self.depends_on),
        }


@dataclass(frozen=True)
class BuildRecipe:
    """Receita de build pronta para o build backend."""
    id: str
    name: str
    version: str
    source: Mapping[str, Optional[str]] = field(default_factory=dict)
    patches: Tuple[str, ...] = ()
    inputs: Tuple[str, ...] = ()
    steps: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)
    outputs: Tuple[str, ...] = ("out",)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "source": dict(self.source),
            "patches": list(self.patches),
            "inputs": list(self.inputs),
            "steps": {k: list(v) for k, v in self.steps.items()},
            "env": dict(self.env),
            "outputs": list(self.outputs),
        }


@dataclass(frozen=True)
class ServiceUnitDescriptor:
    """
    Descritor de unit de serviço.

    `trigger_digests` mapeia cada artefato em `restart_triggers` para o
    digest renderizado nesta passada; é o que o Activation Planner compara
    para decidir um restart.
    """
    name: str
    description: str = ""
    start: Optional[str] = None
    reload: Optional[str] = None
    requires: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()
    restart_triggers: Tuple[str, ...] = ()
    trigger_digests: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "start": self.start,
            "reload": self.reload,
            "requires": list(self.requires),
            "after": list(self.after),
            "restart_triggers": list(self.restart_triggers),
            "trigger_digests": dict(sorted(self.trigger_digests.items())),
        }
