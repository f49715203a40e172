"""
src/atlas_compose/report/diagnostics.py

Diagnóstico de uma passada de avaliação.

Regras:
- Derivado exclusivamente do PassResult e dos artefatos do contexto.
- Estrutura JSON-serializável; mesma passada => mesmo diagnóstico
  (a menos de pass_id).
- Violações são listadas integralmente, nunca apenas a primeira.

Formato:
    {
      "pass_id", "status",
      "stages":     {stage_id: {"status", "summary"}},
      "violations": [...],
      "errors":     [AtlasErrorPayload dict, ...],
      "warnings":   {stage_id: [msg, ...]},
      "artifacts":  [{"id", "kind", "digest"}, ...],
      "plan":       ["start C", ...],
      "tree_digest": str | None,
    }
"""

from __future__ import annotations

from typing import Any, Dict, List

from atlas_compose.core.engine.engine import PassResult
from atlas_compose.core.pipeline.context import (
    ARTIFACTS_KEY,
    PLAN_KEY,
    TREE_KEY,
    VIOLATIONS_KEY,
    EvaluationContext,
)


def _artifact_or(ctx: EvaluationContext, key: str, default: Any) -> Any:
    return ctx.get_artifact(key) if ctx.has_artifact(key) else default


def build_diagnostics(result: PassResult, ctx: EvaluationContext) -> Dict[str, Any]:
    errors: List[Dict[str, Any]] = []
    for stage in result.failed():
        error = stage.payload.get("error")
        if isinstance(error, dict):
            errors.append(error)

    tree = _artifact_or(ctx, TREE_KEY, None)

    return {
        "pass_id": ctx.pass_id,
        "status": result.status,
        "stages": {
            sid: {"status": r.status.value, "summary": r.summary}
            for sid, r in result.stages.items()
        },
        "violations": [v.to_dict() for v in _artifact_or(ctx, VIOLATIONS_KEY, [])],
        "errors": errors,
        "warnings": {sid: list(msgs) for sid, msgs in sorted(ctx.warnings.items()) if msgs},
        "artifacts": [
            {"id": a.id, "kind": a.kind.value, "digest": a.digest}
            for a in _artifact_or(ctx, ARTIFACTS_KEY, ())
        ],
        "plan": [str(a) for a in _artifact_or(ctx, PLAN_KEY, [])],
        "tree_digest": tree.digest() if tree is not None else None,
    }


def _violation_line(v: Dict[str, Any]) -> str:
    if v.get("kind") == "type":
        return (
            f"  - {v.get('path')}: expected {v.get('expected')}, got {v.get('actual')}"
            f" (from {', '.join(v.get('provenance') or []) or '?'})"
        )
    return f"  - {v.get('message')} [{v.get('source_id') or '?'}]"


def render_diagnostics_text(diag: Dict[str, Any]) -> str:
    """Forma legível do diagnóstico (uma seção por bloco não vazio)."""
    lines: List[str] = [f"pass {diag.get('pass_id')}: {str(diag.get('status', '?')).upper()}", ""]

    lines.append("stages:")
    for sid, s in (diag.get("stages") or {}).items():
        lines.append(f"  {sid:<10} {s.get('status'):<8} {s.get('summary')}")

    violations = diag.get("violations") or []
    if violations:
        lines.append("")
        lines.append(f"violations ({len(violations)}):")
        lines.extend(_violation_line(v) for v in violations)

    errors = [e for e in diag.get("errors") or [] if e.get("type") != "VALIDATION_FAILED"]
    if errors:
        lines.append("")
        lines.append("errors:")
        for e in errors:
            lines.append(f"  - [{e.get('type')}] {e.get('message')}")
            if e.get("hint"):
                lines.append(f"    hint: {e['hint']}")

    warnings = diag.get("warnings") or {}
    if warnings:
        lines.append("")
        lines.append("warnings:")
        for sid, msgs in warnings.items():
            for m in msgs:
                lines.append(f"  - {sid}: {m}")

    plan = diag.get("plan") or []
    if plan:
        lines.append("")
        lines.append("plan:")
        lines.extend(f"  {step}" for step in plan)

    return "\n".join(lines) + "\n"
