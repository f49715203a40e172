# src/atlas_compose/core/fragments/sources.py
"""
Fontes de configuração.

Uma fonte expõe `source_id` e `fragments()`. O store submete cada fonte
como um lote independente, na ordem em que as fontes foram informadas.

Fontes disponíveis:
    - MappingSource     → mapping programático
    - FileSource        → arquivo YAML/JSON com seção `config`
    - EnvironmentSource → variáveis `<PREFIXO>a__b__c=valor`
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

import yaml  # PyYAML

from atlas_compose.core.config.loader import load_mapping_file
from atlas_compose.core.exceptions import ModuleFormatError

from .fragment import PRIORITY_NORMAL, Fragment, check_priority, flatten_mapping, parse_config_blocks
from .guards import Guard

ENV_PREFIX = "ATLAS_COMPOSE__"


@runtime_checkable
class ConfigurationSource(Protocol):
    source_id: str

    def fragments(self) -> List[Fragment]:
        ...


@dataclass(frozen=True)
class MappingSource:
    source_id: str
    data: Mapping[str, Any]
    priority: int = PRIORITY_NORMAL
    guard: Optional[Guard] = None

    def fragments(self) -> List[Fragment]:
        return flatten_mapping(
            self.data,
            source_id=self.source_id,
            priority=self.priority,
            guard=self.guard,
        )


@dataclass(frozen=True)
class FileSource:
    """
    Arquivo de fragmentos.

    Formato:
        source: nome-opcional
        priority: 100
        config: [ {set: ..., when: ..., priority: ...}, ... ]
    """
    path: Path
    priority: Optional[int] = None

    @property
    def source_id(self) -> str:
        return f"file:{Path(self.path).name}"

    def fragments(self) -> List[Fragment]:
        data = load_mapping_file(Path(self.path))
        unknown = sorted(set(data) - {"source", "priority", "config"})
        if unknown:
            raise ModuleFormatError(
                message=f"unknown fields in fragment file {self.path}: {', '.join(unknown)}",
                details={"path": str(self.path), "unknown": unknown},
            )
        source_id = str(data.get("source") or self.source_id)
        priority = self.priority
        if priority is None:
            priority = data.get("priority", PRIORITY_NORMAL)
        priority = check_priority(priority, f"fragment file {self.path}")
        return parse_config_blocks(data.get("config"), source_id=source_id, priority=priority)


@dataclass(frozen=True)
class EnvironmentSource:
    """
    Variáveis de ambiente com prefixo.

    `ATLAS_COMPOSE__services__samba__enable=true` → `services.samba.enable = True`.
    Valores são interpretados com `yaml.safe_load` (`"true"` → bool, `"4"` → int).
    O ambiente é capturado na construção e as variáveis são ordenadas por nome.
    """
    prefix: str = ENV_PREFIX
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    priority: int = PRIORITY_NORMAL

    @property
    def source_id(self) -> str:
        return f"env:{self.prefix}"

    def fragments(self) -> List[Fragment]:
        data: Dict[str, Any] = {}
        for name in sorted(self.environ):
            if not name.startswith(self.prefix) or name == self.prefix:
                continue
            segments = name[len(self.prefix):].split("__")
            if any(not s for s in segments):
                raise ModuleFormatError(
                    message=f"invalid environment key: {name}",
                    details={"variable": name},
                )
            raw = self.environ[name]
            try:
                value = yaml.safe_load(raw) if raw != "" else ""
            except yaml.YAMLError:
                value = raw
            data[".".join(segments)] = {"$value": value}
        return flatten_mapping(data, source_id=self.source_id, priority=self.priority)
