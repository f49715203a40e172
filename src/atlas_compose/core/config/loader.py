# src/atlas_compose/core/config/loader.py
"""
Loader canônico de settings do Atlas Compose.

As settings efetivas são resolvidas a partir de:
    - um conjunto de defaults (obrigatório): arquivo ou `DEFAULT_SETTINGS`
    - um arquivo local de overrides (opcional)

Responsabilidades do módulo:
    - Carregar arquivos em YAML ou JSON (`load_mapping_file`, também usado
      pelos loaders de módulos e fontes de fragmentos)
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Resolver as settings finais via deep-merge determinístico

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


DEFAULT_SETTINGS: Dict[str, Any] = {
    "engine": {
        "fail_fast": True,
    },
    "merge": {
        "warn_on_priority_tie": True,
    },
    "activation": {
        "max_workers": 4,
        "fail_fast": True,
    },
    "stages": {
        "build": {"enabled": False},
        "activate": {"enabled": False},
    },
}


def load_mapping_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML/JSON e valida que a raiz é um dicionário.

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Raiz do arquivo deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve as settings efetivas do motor.

    Política de resolução:
        - Sem `defaults_path`, os defaults são `DEFAULT_SETTINGS`
        - Com `defaults_path`, o arquivo deve existir
        - O arquivo local é opcional; quando presente tem prioridade
        - A resolução utiliza `deep_merge`

    Args:
        defaults_path (Optional[str]): Caminho para o arquivo de settings base.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Settings efetivas.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """

    if defaults_path is not None:
        defaults = load_mapping_file(Path(defaults_path))
    else:
        defaults = deepcopy(DEFAULT_SETTINGS)

    effective = defaults

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            local = load_mapping_file(local_file)
            effective = deep_merge(defaults, local)

    return effective
