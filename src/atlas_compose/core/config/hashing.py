# src/atlas_compose/core/config/hashing.py
"""
Hashing canônico do Atlas Compose.

Este módulo implementa a serialização JSON canônica e o hash SHA-256
utilizados para identificar estruturalmente:
    - as settings efetivas do motor
    - o schema e o conjunto de fragmentos de uma passada
    - a árvore resolvida e o conteúdo dos artefatos derivados

Política (v1):
    - Ordenação estável de chaves
    - Separadores compactos (sem espaços supérfluos)
    - Codificação UTF-8, `ensure_ascii=False`
    - Algoritmo SHA-256

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash, independente da ordem
      original das chaves e do locale da máquina
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
"""

import hashlib
import json
from typing import Any, Dict


def canonical_json(value: Any) -> str:
    """Serializa `value` em JSON canônico (chaves ordenadas, separadores compactos)."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico de uma estrutura de configuração.

    Args:
        config (Dict[str, Any]): Settings efetivas ou estrutura serializável equivalente.

    Returns:
        str: Hash SHA-256 hexadecimal.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return sha256_text(canonical_json(config))
