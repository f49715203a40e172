"""
Atlas Compose: Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Atlas Compose.
Erros são considerados artefatos de diagnóstico e fazem parte do contrato
operacional do sistema, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AtlasErrorPayload:
    """
    Payload canônico de erro do Atlas Compose.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    - decision_required: indica se a passada está bloqueada aguardando decisão humana
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Validação
VALIDATION_FAILED = "VALIDATION_FAILED"

# Backends externos
BUILD_FAILED = "BUILD_FAILED"
ACTIVATION_FAILED = "ACTIVATION_FAILED"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def validation_failed(
    *,
    violations: List[Dict[str, Any]],
    stage: Optional[str] = None,
    hint: str = "Corrija todas as violações listadas nos fragmentos de origem antes de reavaliar.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=VALIDATION_FAILED,
        message=f"Configuração resolvida possui {len(violations)} violação(ões)",
        details={
            "stage": stage,
            "violations": violations,
        },
        hint=hint,
        decision_required=True,
    )


def build_failed(
    *,
    recipe_id: str,
    failed_step: Optional[str],
    log_excerpt: Optional[str],
    stage: Optional[str] = None,
    hint: str = "Inspecione o passo indicado da receita e o trecho de log do build backend.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=BUILD_FAILED,
        message=f"Build da receita '{recipe_id}' falhou",
        details={
            "recipe_id": recipe_id,
            "failed_step": failed_step,
            "log_excerpt": log_excerpt,
            "stage": stage,
        },
        hint=hint,
        decision_required=False,
    )


def activation_failed(
    *,
    failures: List[Dict[str, Any]],
    stage: Optional[str] = None,
    hint: str = "Verifique o estado das units no service backend; units dependentes não foram acionadas.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=ACTIVATION_FAILED,
        message=f"{len(failures)} ação(ões) de ativação falharam",
        details={
            "failures": failures,
            "exit_statuses": {
                f["unit"]: f.get("exit_status") for f in failures if f.get("exit_status") is not None
            },
            "stage": stage,
        },
        hint=hint,
        decision_required=False,
    )


def engine_execution_error(
    *,
    stage: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o log de eventos da passada. Nenhum fallback é aplicado automaticamente.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a passada de avaliação",
        details={
            "stage": stage,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para execução da passada",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise os estágios registrados e as settings antes de reexecutar.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
        decision_required=False,
    )
