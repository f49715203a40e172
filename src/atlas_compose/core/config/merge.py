# src/atlas_compose/core/config/merge.py
"""
Deep-merge das settings do motor (defaults + override local).

Política:
    - dict → merge recursivo por chave
    - list → sobrescrita total
    - escalar → sobrescrita, desde que o tipo seja exatamente o mesmo
    - chave nova no override → aceita como está

Conflitos de tipo levantam ConfigTypeConflictError com o caminho
pontuado da chave (`activation.max_workers`), para que o operador saiba
qual linha do arquivo local corrigir.

A composição de fragmentos com prioridade e estratégia por chave é
responsabilidade de `core.merge.engine`; este merge serve apenas às
settings.
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def _conflict(where: Tuple[str, ...], base: Any, override: Any) -> ConfigTypeConflictError:
    key = ".".join(where) or "<root>"
    return ConfigTypeConflictError(
        f"Conflito de tipo na chave '{key}': "
        f"{type(base).__name__} vs {type(override).__name__}"
    )


def _merge_node(base: Any, override: Any, where: Tuple[str, ...]) -> Any:
    if isinstance(base, dict) and isinstance(override, dict):
        merged = {k: deepcopy(v) for k, v in base.items()}
        for key, value in override.items():
            merged[key] = (
                _merge_node(base[key], value, where + (str(key),))
                if key in base
                else deepcopy(value)
            )
        return merged

    if isinstance(override, list):
        return deepcopy(override)

    # bool é subclasse de int: exigir o tipo exato evita trocar flag por contador
    if type(base) is not type(override):
        raise _conflict(where, base, override)

    return deepcopy(override)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mescla `override` sobre `base` sem mutar nenhum dos dois.

    Raises:
        ConfigTypeConflictError: Raiz não-dict ou conflito de tipo em alguma chave.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_node(base, override, ())
