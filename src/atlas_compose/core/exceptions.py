"""
Atlas Compose: Canonical Exceptions (v1)

Este módulo define as exceções tipadas do motor de composição.

Objetivo:
- Permitir que estágios do pipeline levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para AtlasErrorPayload
- Evitar ValueError/RuntimeError genéricos nas falhas estruturais

Regras:
- Erros estruturais (chave desconhecida, merge inválido, condição irresolúvel,
  ciclo de dependências) são fatais e abortam a passada imediatamente.
- Violações de tipo e de asserção NÃO são exceções: são coletadas pelo
  Validator (ver core.validation.violations).
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AtlasException(Exception):
    """Base class para exceções internas do Atlas Compose.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    decision_required: bool = False

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Schema / Módulos
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SchemaDeclarationError(AtlasException):
    """Declaração de opção inválida (path duplicado, estratégia incompatível, default inválido)."""


@dataclass(frozen=True)
class ModuleFormatError(AtlasException):
    """Arquivo de módulo ou de fragmentos com estrutura inválida."""


# ---------------------------------------------------------------------------
# Merge / Condicionais
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnknownKeyError(AtlasException):
    """Fragmento (ou guarda) referencia um path não declarado no schema."""


@dataclass(frozen=True)
class MergeError(AtlasException):
    """Combinação inválida para a estratégia de merge declarada da chave."""


@dataclass(frozen=True)
class MissingValueError(MergeError):
    """Opção obrigatória sem fragmento e sem default ao final do ponto fixo."""


@dataclass(frozen=True)
class UnresolvedConditionError(AtlasException):
    """Guardas que permanecem indecidíveis após o ponto fixo (ciclo ou path sem valor)."""


# ---------------------------------------------------------------------------
# Renderização / Ativação
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DuplicateArtifactError(AtlasException):
    """Dois artefatos derivados com a mesma identidade."""


@dataclass(frozen=True)
class UnknownArtifactError(AtlasException):
    """Gatilho de restart referencia um artefato que não foi renderizado."""


@dataclass(frozen=True)
class UnknownUnitError(AtlasException):
    """Unit declara dependência forte (`requires`) em unit inexistente."""


@dataclass(frozen=True)
class DuplicateUnitError(AtlasException):
    """Dois descritores com o mesmo nome de unit no conjunto desejado."""


@dataclass(frozen=True)
class CyclicDependencyError(AtlasException):
    """Ciclo no grafo de dependências entre units de serviço."""
