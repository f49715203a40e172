# src/atlas_compose/core/engine/engine.py
"""
Engine de execução de passadas do Atlas Compose.

Política:
    - Ordem de execução dada por `plan_execution`
    - Stage desabilitado em settings (`stages.<id>.enabled: false`) → SKIPPED
    - Stage com dependência FAILED ou SKIPPED → SKIPPED
      ("skipped due to failed dependency" / "skipped due to skipped dependency")
    - Exceção em Stage → FAILED com `payload["error"]` (AtlasErrorPayload),
      sem stack trace para o operador
    - `engine.fail_fast` (default true): a passada para no primeiro FAILED

O Engine não muta StageResult in-place: enriquecimentos (warnings do
contexto) geram nova instância via `dataclasses.replace`.

Quando o contexto carrega um AtlasManifest, o Engine registra início,
término, falha e pulo de cada Stage no Event Log.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from atlas_compose.core.errors import (
    AtlasErrorPayload,
    engine_configuration_error,
    engine_execution_error,
)
from atlas_compose.core.exceptions import AtlasException
from atlas_compose.core.pipeline.context import EvaluationContext
from atlas_compose.core.pipeline.stage import Stage
from atlas_compose.core.pipeline.types import StageResult, StageStatus

from .planner import plan_execution


@dataclass(frozen=True)
class PassResult:
    """Resultado agregado de uma passada, indexado por stage_id na ordem de execução."""

    stages: Dict[str, StageResult] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(r.status != StageStatus.FAILED for r in self.stages.values())

    @property
    def status(self) -> str:
        return "success" if self.ok else "failed"

    def failed(self) -> List[StageResult]:
        return [r for r in self.stages.values() if r.status == StageStatus.FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "stages": {k: v.to_dict() for k, v in self.stages.items()},
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Engine:
    """Engine canônico do Atlas Compose (planner + executor)."""

    def __init__(self, *, stages: Sequence[Stage], ctx: EvaluationContext):
        self.stages: List[Stage] = list(stages)
        self.ctx: EvaluationContext = ctx

    def _is_enabled(self, stage_id: str) -> bool:
        stages_cfg = (self.ctx.config or {}).get("stages", {}) or {}
        stage_cfg = stages_cfg.get(stage_id, {}) or {}
        return bool(stage_cfg.get("enabled", True))

    def _fail_fast(self) -> bool:
        return bool(self.ctx.setting("engine", "fail_fast", True))

    # ------------------------------------------------------------------
    # Exceção → AtlasErrorPayload
    # ------------------------------------------------------------------

    def _exception_to_error(self, exc: Exception, stage_id: str) -> AtlasErrorPayload:
        """
        - AtlasException: o nome da classe é o código estável do erro
        - Demais exceções: ENGINE_EXECUTION_ERROR, sem stack trace
        """
        if isinstance(exc, AtlasException):
            details = dict(exc.details or {})
            details.setdefault("stage", stage_id)
            return AtlasErrorPayload(
                type=exc.__class__.__name__,
                message=str(exc) or "Erro de execução",
                details=details,
                hint=exc.hint,
                decision_required=exc.decision_required,
            )

        return engine_execution_error(
            stage=stage_id,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc) or None,
        )

    # ------------------------------------------------------------------
    # Rastreamento
    # ------------------------------------------------------------------

    def _ctx_warnings_for(self, stage_id: str) -> List[str]:
        return list(self.ctx.warnings.get(stage_id, []) or [])

    def _enrich(self, result: StageResult, stage: Stage) -> StageResult:
        merged: List[str] = []
        seen = set()
        for msg in list(result.warnings or []) + self._ctx_warnings_for(stage.id):
            if msg not in seen:
                merged.append(msg)
                seen.add(msg)
        return replace(result, stage_id=stage.id, kind=stage.kind, warnings=merged)

    def _mk_result(
        self,
        *,
        stage: Stage,
        status: StageStatus,
        summary: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> StageResult:
        r = StageResult(
            stage_id=stage.id,
            kind=stage.kind,
            status=status,
            summary=summary,
            payload=dict(payload or {}),
        )
        return self._enrich(r, stage)

    def _record(self, result: StageResult) -> None:
        manifest = self.ctx.manifest
        if manifest is None:
            return
        ts = _now()
        if result.status == StageStatus.SKIPPED:
            manifest.stage_skipped(stage_id=result.stage_id, ts=ts, reason=result.summary)
        elif result.status == StageStatus.FAILED and "error" in result.payload:
            manifest.stage_failed(stage_id=result.stage_id, ts=ts, error=result.payload["error"])
        else:
            manifest.stage_finished(stage_id=result.stage_id, ts=ts, result=result.to_dict())

    def _skip(self, stage: Stage, summary: str) -> StageResult:
        self.ctx.log(stage_id=stage.id, level="info", message=summary)
        return self._mk_result(stage=stage, status=StageStatus.SKIPPED, summary=summary)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def run(self) -> PassResult:
        ordered = plan_execution(self.stages)

        results: Dict[str, StageResult] = {}
        for stage in ordered:
            sid = stage.id

            if not self._is_enabled(sid):
                results[sid] = self._skip(stage, "skipped by config")
                self._record(results[sid])
                continue

            deps = list(getattr(stage, "depends_on", []) or [])
            dep_status = [results[d].status for d in deps if d in results]
            if StageStatus.FAILED in dep_status:
                results[sid] = self._skip(stage, "skipped due to failed dependency")
                self._record(results[sid])
                continue
            if StageStatus.SKIPPED in dep_status:
                results[sid] = self._skip(stage, "skipped due to skipped dependency")
                self._record(results[sid])
                continue

            if self.ctx.manifest is not None:
                self.ctx.manifest.stage_started(stage_id=sid, kind=stage.kind.value, ts=_now())
            self.ctx.log(stage_id=sid, level="info", message="stage started")

            try:
                stage_result = stage.run(self.ctx)
                if not isinstance(stage_result, StageResult):
                    error = engine_configuration_error(
                        message="Stage retornou tipo inválido",
                        details={
                            "stage_id": sid,
                            "expected": "StageResult",
                            "received": type(stage_result).__name__,
                        },
                    )
                    result = self._mk_result(
                        stage=stage,
                        status=StageStatus.FAILED,
                        summary=error.message,
                        payload={"error": error.to_dict()},
                    )
                else:
                    result = self._enrich(stage_result, stage)

            except Exception as e:  # noqa: BLE001
                error = self._exception_to_error(e, sid)
                result = self._mk_result(
                    stage=stage,
                    status=StageStatus.FAILED,
                    summary=error.message,
                    payload={"error": error.to_dict()},
                )

            results[sid] = result
            self._record(result)
            self.ctx.log(
                stage_id=sid,
                level="error" if result.status == StageStatus.FAILED else "info",
                message=result.summary,
                status=result.status.value,
            )

            if result.status == StageStatus.FAILED and self._fail_fast():
                break

        return PassResult(stages=results)
