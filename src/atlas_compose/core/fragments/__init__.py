"""
Fragment Store do Atlas Compose.

Componentes:
    - guards   → expressões de guarda sobre key paths
    - fragment → Fragment, níveis de prioridade e achatamento de blocos
    - store    → FragmentStore (acumulativo, por passada)
    - sources  → fontes de configuração (mapping, arquivo, ambiente)
"""

from .fragment import (
    PRIORITY_FORCE,
    PRIORITY_MODULE_DEFAULT,
    PRIORITY_NORMAL,
    Fragment,
    flatten_mapping,
    parse_config_blocks,
)
from .guards import Guard, parse_guard
from .sources import ConfigurationSource, EnvironmentSource, FileSource, MappingSource
from .store import FragmentStore

__all__ = [
    "PRIORITY_FORCE",
    "PRIORITY_MODULE_DEFAULT",
    "PRIORITY_NORMAL",
    "Fragment",
    "flatten_mapping",
    "parse_config_blocks",
    "Guard",
    "parse_guard",
    "ConfigurationSource",
    "EnvironmentSource",
    "FileSource",
    "MappingSource",
    "FragmentStore",
]
