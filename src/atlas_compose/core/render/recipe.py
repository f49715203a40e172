# src/atlas_compose/core/render/recipe.py
"""
Renderer de receitas de build.

Projeta a árvore resolvida em uma BuildRecipe e serializa o conteúdo em
JSON canônico. Saídas condicionadas a uma flag (ex.: `tkinter` com
`x11Support`) entram na lista de saídas da receita e geram um artefato
secundário `build_output` que depende da receita.
"""

from __future__ import annotations

from typing import Any, List, Optional

from atlas_compose.core.config.hashing import canonical_json
from atlas_compose.core.merge.engine import ResolvedTree
from atlas_compose.core.schema.paths import KeyPath

from .declarations import RecipeDeclaration
from .types import ArtifactKind, BuildRecipe, DerivedArtifact


def _get(tree: ResolvedTree, path: Optional[KeyPath]) -> Any:
    if path is None:
        return None
    return tree.get(path)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def output_artifact_id(recipe_id: str, output: str) -> str:
    return f"{recipe_id}:{output}"


def render_recipe(tree: ResolvedTree, decl: RecipeDeclaration) -> List[DerivedArtifact]:
    inputs = _as_list(_get(tree, decl.inputs))
    for gated in decl.optional_inputs:
        if _get(tree, gated.when) is True:
            inputs.extend(gated.inputs)
            inputs.extend(str(v) for v in (_get(tree, p) for p in gated.sources) if v is not None)

    outputs = [o for o in decl.outputs if o.when is None or _get(tree, o.when) is True]

    version = _get(tree, decl.version)
    recipe = BuildRecipe(
        id=decl.id,
        name=decl.name,
        version="" if version is None else str(version),
        source={
            "url": _get(tree, decl.source_url),
            "sha256": _get(tree, decl.source_sha256),
        },
        patches=tuple(_as_list(_get(tree, decl.patches))),
        inputs=tuple(inputs),
        steps={name: tuple(_as_list(_get(tree, path))) for name, path in decl.steps},
        env=dict(decl.env),
        outputs=tuple(o.name for o in outputs),
    )

    artifacts = [
        DerivedArtifact(
            id=decl.id,
            kind=ArtifactKind.BUILD_RECIPE,
            content=canonical_json(recipe.to_dict()),
            payload=recipe,
        )
    ]

    for output in outputs:
        if output.when is None:
            continue
        artifacts.append(
            DerivedArtifact(
                id=output_artifact_id(decl.id, output.name),
                kind=ArtifactKind.BUILD_OUTPUT,
                content=canonical_json({"recipe": decl.id, "output": output.name}),
                depends_on=frozenset({decl.id}),
            )
        )

    return artifacts
