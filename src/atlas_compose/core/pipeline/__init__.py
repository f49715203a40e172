"""
# Pipeline Core: Atlas Compose

Uma passada de avaliação é modelada como um DAG explícito de Stages:
- cada Stage declara identidade, tipo semântico e dependências
- a execução é coordenada exclusivamente pelo Engine
- o estado compartilhado é mediado pelo `EvaluationContext`

## Componentes

- **types**: `StageStatus`, `StageKind`, `StageResult`
- **stage**: `Stage` (Protocol)
- **context**: `EvaluationContext` (artefatos, logs, warnings)
- **registry**: `StageRegistry` (unicidade de `stage.id`)
"""

from .context import EvaluationContext
from .registry import DuplicateStageIdError, StageRegistry
from .stage import Stage
from .types import StageKind, StageResult, StageStatus

__all__ = [
    "EvaluationContext",
    "DuplicateStageIdError",
    "StageRegistry",
    "Stage",
    "StageKind",
    "StageResult",
    "StageStatus",
]
