"""
Option Schema do Atlas Compose.

Componentes:
    - paths   → KeyPath e conversão de/para forma pontuada
    - types   → OptionType e gramática de tipos declarados
    - options → MergeStrategy, Option e OptionSchema
"""

from .paths import KeyPath, as_path, format_path, parse_path
from .types import OptionType, TypeKind, parse_type
from .options import NO_DEFAULT, MergeStrategy, Option, OptionSchema, option_from_dict

__all__ = [
    "KeyPath",
    "as_path",
    "format_path",
    "parse_path",
    "OptionType",
    "TypeKind",
    "parse_type",
    "NO_DEFAULT",
    "MergeStrategy",
    "Option",
    "OptionSchema",
    "option_from_dict",
]
