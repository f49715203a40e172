# src/atlas_compose/core/pipeline/context.py
"""
Contexto de execução de uma passada de avaliação.

O `EvaluationContext` é o único meio permitido de:
    - troca de resultados entre Stages (artifact store por chave explícita)
    - registro de logs estruturados
    - coleta de warnings não fatais por Stage
    - acesso às entradas da passada (composição, settings, backends)

Princípios fundamentais:
    - Isolamento por passada: cada passada possui seu próprio contexto,
      seu próprio Fragment Store e sua própria árvore resolvida
    - Nenhum estado global compartilhado

Invariantes:
    - Logs sempre incluem `pass_id` e `stage_id`
    - Warnings são agrupados por `stage_id`

Limites explícitos:
    - Não executa Stages
    - Não persiste dados automaticamente
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from atlas_compose.core.activation.types import ActiveUnit
from atlas_compose.core.backends import BuildBackend, ServiceBackend
from atlas_compose.core.modules.module import Composition

# Chaves canônicas do artifact store
RESOLUTION_KEY = "resolution"
TREE_KEY = "tree"
VIOLATIONS_KEY = "violations"
ARTIFACTS_KEY = "artifacts"
PLAN_KEY = "plan"
BUILDS_KEY = "builds"
ACTIVATION_KEY = "activation"


@dataclass
class EvaluationContext:
    """
    Contexto compartilhado de uma passada.

    Campos canônicos:
        - pass_id: identificador da passada
        - created_at: timestamp UTC de criação
        - config: settings efetivas (defaults + local deep-merge)
        - composition: schema, fragment store, asserções e declarações
        - previously_active: units ativas antes da passada (ActiveUnit ou nome);
          quando None, o estágio `plan` consulta o service backend
        - build_backend / service_backend: colaboradores externos opcionais
        - manifest: AtlasManifest opcional, alimentado pelo Engine
        - meta: metadados livres (ex.: arquivos de entrada)
    """
    pass_id: str
    created_at: datetime
    config: Dict[str, Any]
    composition: Composition
    previously_active: Optional[List[Union[ActiveUnit, str]]] = None
    build_backend: Optional[BuildBackend] = None
    service_backend: Optional[ServiceBackend] = None
    manifest: Any = None
    meta: Dict[str, Any] = field(default_factory=dict)

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        if key not in self._artifacts:
            raise KeyError(key)
        return self._artifacts[key]

    # -----------------------------
    # Settings
    # -----------------------------
    def setting(self, section: str, key: str, default: Any = None) -> Any:
        return ((self.config or {}).get(section, {}) or {}).get(key, default)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, stage_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "pass_id": self.pass_id,
            "stage_id": stage_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, stage_id: str, message: str) -> None:
        if stage_id not in self.warnings:
            self.warnings[stage_id] = []
        self.warnings[stage_id].append(message)
