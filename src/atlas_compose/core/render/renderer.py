# src/atlas_compose/core/render/renderer.py
"""
Renderer: deriva artefatos concretos da árvore validada.

Ordem interna: receitas, textos, units (units precisam dos digests dos
textos que disparam restart). O resultado é ordenado por id.

Invariantes:
    - Função pura: mesma árvore e mesmas declarações → artefatos
      byte-idênticos
    - Ids de artefato são únicos (DuplicateArtifactError)
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from atlas_compose.core.exceptions import DuplicateArtifactError
from atlas_compose.core.merge.engine import ResolvedTree
from atlas_compose.core.schema.options import OptionSchema

from .declarations import RenderDeclarations
from .recipe import render_recipe
from .text import render_text
from .types import ArtifactKind, DerivedArtifact, ServiceUnitDescriptor
from .units import render_units


def _register(index: Dict[str, DerivedArtifact], artifacts: Iterable[DerivedArtifact]) -> None:
    for artifact in artifacts:
        if artifact.id in index:
            raise DuplicateArtifactError(
                message=f"duplicate artifact id: {artifact.id}",
                details={
                    "id": artifact.id,
                    "kinds": [index[artifact.id].kind.value, artifact.kind.value],
                },
            )
        index[artifact.id] = artifact


def render(
    tree: ResolvedTree,
    declarations: RenderDeclarations,
    *,
    schema: OptionSchema,
) -> Tuple[DerivedArtifact, ...]:
    """
    Args:
        tree: Árvore resolvida e validada.
        declarations: Declarações de receitas, textos e units.
        schema: Schema da passada (ordem e estratégias para o renderer de texto).

    Raises:
        DuplicateArtifactError: Ids de artefato repetidos.
        UnknownArtifactError: Gatilho de restart sem artefato.
    """
    index: Dict[str, DerivedArtifact] = {}

    for recipe in declarations.recipes:
        _register(index, render_recipe(tree, recipe))

    for text in declarations.texts:
        _register(index, [render_text(tree, text, schema)])

    texts = {k: v for k, v in index.items() if v.kind == ArtifactKind.RENDERED_TEXT}
    for unit in declarations.units:
        _register(index, render_units(tree, unit, texts))

    return tuple(index[k] for k in sorted(index))


def service_units(artifacts: Iterable[DerivedArtifact]) -> List[ServiceUnitDescriptor]:
    return [a.payload for a in artifacts if a.kind == ArtifactKind.SERVICE_UNIT]


def recipes(artifacts: Iterable[DerivedArtifact]) -> List[DerivedArtifact]:
    return [a for a in artifacts if a.kind == ArtifactKind.BUILD_RECIPE]
