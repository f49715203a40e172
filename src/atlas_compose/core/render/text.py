# src/atlas_compose/core/render/text.py
"""
Renderer de texto (`label = valor`).

Layout do corpo:
    1. linhas fixas do preâmbulo
    2. uma linha `label = valor` por opção escalar, na ordem de `fields`
       (ou na ordem do schema quando `fields` é vazio), com as linhas
       fixas de `fields` no lugar em que aparecem
    3. os blocos text_concat, cada um precedido de linha em branco
    4. as opções `attrs`: cada entrada mapping vira uma seção
       `[nome]` com suas chaves ordenadas; entradas escalares viram
       `nome = valor` no cabeçalho

Formatação independente de locale: `true`/`false`, inteiros via `str`,
listas separadas por espaço, `None` omitido.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from atlas_compose.core.merge.engine import ResolvedTree
from atlas_compose.core.schema.options import MergeStrategy, Option, OptionSchema
from atlas_compose.core.schema.paths import format_path, parse_path
from atlas_compose.core.schema.types import TypeKind

from .declarations import TextDeclaration, TextLine
from .types import ArtifactKind, DerivedArtifact


def format_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        parts = [format_value(v) for v in value]
        return " ".join(p for p in parts if p is not None)
    return str(value)


def _ensure_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def _is_attrs(option: Option) -> bool:
    kind = option.type
    if kind.kind == TypeKind.NULLABLE and kind.inner is not None:
        kind = kind.inner
    return kind.kind == TypeKind.ATTRS


def _selected(decl: TextDeclaration, schema: OptionSchema) -> Iterator[Union[TextLine, Tuple[str, Option]]]:
    if not decl.fields:
        for option in schema.options_under(decl.subtree):
            yield format_path(option.path[len(decl.subtree):]), option
        return
    for item in decl.fields:
        if isinstance(item, TextLine):
            yield item
        else:
            yield item, schema.get(decl.subtree + parse_path(item))


def _section(name: str, entries: Dict[str, Any]) -> List[str]:
    lines = ["", f"[{name}]"]
    for key in sorted(entries):
        text = format_value(entries[key])
        if text is not None:
            lines.append(f"{key} = {text}")
    return lines


def render_body(tree: ResolvedTree, decl: TextDeclaration, schema: OptionSchema) -> str:
    headers: List[str] = []
    blocks: List[str] = []
    sections: List[str] = []

    for item in _selected(decl, schema):
        if isinstance(item, TextLine):
            headers.append(item.text)
            continue
        relative, option = item
        if option.path not in tree.values:
            continue
        value = tree.values[option.path]

        if option.merge == MergeStrategy.TEXT_CONCAT:
            if isinstance(value, str) and value.strip():
                blocks.append(value.rstrip("\n"))
            continue

        if _is_attrs(option):
            for name in sorted(value or {}):
                entry = value[name]
                if isinstance(entry, dict):
                    sections.extend(_section(name, entry))
                elif format_value(entry) is not None:
                    headers.append(f"{name} = {format_value(entry)}")
            continue

        text = format_value(value)
        if text is not None:
            headers.append(f"{decl.label_for(relative)} = {text}")

    lines = list(decl.preamble) + headers
    for block in blocks:
        lines.append("")
        lines.append(block)
    lines.extend(sections)
    return _ensure_newline("\n".join(lines))


def render_text(tree: ResolvedTree, decl: TextDeclaration, schema: OptionSchema) -> DerivedArtifact:
    if decl.enable is not None and tree.get(decl.enable) is not True:
        content = _ensure_newline(decl.disabled_body)
    elif decl.replace is not None and tree.get(decl.replace) is not None:
        content = _ensure_newline(str(tree.get(decl.replace)))
    else:
        content = render_body(tree, decl, schema)

    return DerivedArtifact(
        id=decl.id,
        kind=ArtifactKind.RENDERED_TEXT,
        content=content,
    )
