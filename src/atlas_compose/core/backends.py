# src/atlas_compose/core/backends.py
"""
Interfaces dos colaboradores externos.

    - BuildBackend   → realiza receitas de build
    - ServiceBackend → reporta units ativas e aplica ações

O core nunca executa nada diretamente: ele só conversa com backends
através destes protocolos (estágios `build` e `activate`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from atlas_compose.core.render.renderer import recipes
from atlas_compose.core.render.types import DerivedArtifact

if TYPE_CHECKING:
    from atlas_compose.core.activation.types import ActiveUnit
    from atlas_compose.core.render.types import BuildRecipe, ServiceUnitDescriptor


@dataclass(frozen=True)
class BuildOutcome:
    """Resultado de um build: handle em caso de sucesso, passo e log em caso de falha."""
    recipe_id: str
    ok: bool
    handle: Optional[str] = None
    failed_step: Optional[str] = None
    log_excerpt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipe_id": self.recipe_id,
            "ok": self.ok,
            "handle": self.handle,
            "failed_step": self.failed_step,
            "log_excerpt": self.log_excerpt,
        }


@dataclass(frozen=True)
class ServiceOutcome:
    """Resultado de uma ação de unit; `exit_status` é o código do processo, quando houver."""
    ok: bool
    message: str = ""
    exit_status: Optional[int] = None


@runtime_checkable
class BuildBackend(Protocol):
    def build(self, recipe: "BuildRecipe") -> BuildOutcome:
        ...


@runtime_checkable
class ServiceBackend(Protocol):
    def active_units(self) -> List["ActiveUnit"]:
        ...

    def apply(self, unit: str, action: str, descriptor: Optional["ServiceUnitDescriptor"]) -> ServiceOutcome:
        ...


def realise_recipes(artifacts: Iterable[DerivedArtifact], backend: BuildBackend) -> List[BuildOutcome]:
    """Submete cada artefato `build_recipe` ao backend, em ordem de id."""
    return [backend.build(a.payload) for a in sorted(recipes(artifacts), key=lambda a: a.id)]
