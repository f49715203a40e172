# src/atlas_compose/core/schema/paths.py
"""
Key paths da árvore de configuração.

Um key path é uma sequência ordenada de segmentos de nome
(`("services", "samba", "enable")`), com forma textual pontuada
(`services.samba.enable`). Segmentos vazios são inválidos.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

KeyPath = Tuple[str, ...]


def parse_path(text: str) -> KeyPath:
    if not isinstance(text, str) or not text.strip():
        raise ValueError("key path must be a non-empty string")
    segments = tuple(s.strip() for s in text.split("."))
    if any(not s for s in segments):
        raise ValueError(f"key path has an empty segment: {text!r}")
    return segments


def format_path(path: Sequence[str]) -> str:
    return ".".join(path)


def as_path(value: Union[str, Sequence[str]]) -> KeyPath:
    """Normaliza string pontuada ou sequência de segmentos em KeyPath."""
    if isinstance(value, str):
        return parse_path(value)
    segments = tuple(value)
    if not segments or any(not isinstance(s, str) or not s for s in segments):
        raise ValueError(f"invalid key path: {value!r}")
    return segments


def is_strict_prefix(prefix: KeyPath, path: KeyPath) -> bool:
    return len(prefix) < len(path) and path[: len(prefix)] == prefix
