"""
Renderer do Atlas Compose.

Componentes:
    - types        → DerivedArtifact, BuildRecipe, ServiceUnitDescriptor
    - declarations → seção `render` dos módulos
    - recipe       → receitas de build
    - text         → corpos `label = valor`
    - units        → descritores de units de serviço
    - renderer     → render(tree, declarations, schema=...)
"""

from .declarations import (
    RecipeDeclaration,
    RenderDeclarations,
    TextDeclaration,
    UnitDeclaration,
)
from .renderer import recipes, render, service_units
from .types import ArtifactKind, BuildRecipe, DerivedArtifact, ServiceUnitDescriptor

__all__ = [
    "RecipeDeclaration",
    "RenderDeclarations",
    "TextDeclaration",
    "UnitDeclaration",
    "recipes",
    "render",
    "service_units",
    "ArtifactKind",
    "BuildRecipe",
    "DerivedArtifact",
    "ServiceUnitDescriptor",
]
