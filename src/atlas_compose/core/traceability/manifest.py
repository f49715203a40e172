# src/atlas_compose/core/traceability/manifest.py
"""
Manifest: rastreabilidade de passadas de avaliação no Atlas Compose.

O Manifest consolida, de forma determinística e auditável:
    - metadados da passada (pass_id, started_at, versão)
    - hashes de entrada (settings, schema, fragmentos)
    - estado incremental dos Stages
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - Persistência em JSON com chaves ordenadas

Limites explícitos:
    - Não executa a passada
    - Não decide políticas de execução (fail-fast, skip)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class AtlasManifest:
    """
    Registro de uma passada de avaliação.

    Campos:
        - run: metadados da passada (pass_id, started_at, atlas_version)
        - inputs: hashes de entrada (settings_hash, schema_hash, fragments_hash)
        - stages: estado incremental de cada Stage
        - events: Event Log ordenado
    """
    run: Dict[str, Any]
    inputs: Dict[str, Any]
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "stages": {k: dict(v) for k, v in self.stages.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AtlasManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            stages={k: dict(v) for k, v in (data.get("stages", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    # -----------------------------
    # Eventos explícitos
    # -----------------------------
    def add_event(
        self,
        *,
        event_type: str,
        ts: datetime,
        stage_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
        if stage_id is not None:
            ev["stage_id"] = stage_id
        if payload is not None:
            ev["payload"] = payload
        self.events.append(ev)

    def stage_started(self, *, stage_id: str, kind: str, ts: datetime) -> None:
        self.stages.setdefault(stage_id, {})
        self.stages[stage_id].update(
            {
                "stage_id": stage_id,
                "kind": kind,
                "status": "running",
                "started_at": _iso(ts),
            }
        )
        self.add_event(event_type="stage_started", ts=ts, stage_id=stage_id, payload={"kind": kind})

    def stage_finished(self, *, stage_id: str, ts: datetime, result: Dict[str, Any]) -> None:
        s = self.stages.setdefault(stage_id, {"stage_id": stage_id})
        started_iso = s.get("started_at")
        started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

        status = result.get("status", "success")
        s.update(
            {
                "status": status,
                "finished_at": _iso(ts),
                "duration_ms": _ms_between(started_dt, ts),
                "summary": result.get("summary"),
                "metrics": result.get("metrics", {}) or {},
                "warnings": result.get("warnings", []) or [],
                "artifacts": result.get("artifacts", {}) or {},
            }
        )
        self.add_event(
            event_type="stage_finished",
            ts=ts,
            stage_id=stage_id,
            payload={"status": status, "duration_ms": s["duration_ms"]},
        )

    def stage_failed(self, *, stage_id: str, ts: datetime, error: Dict[str, Any]) -> None:
        s = self.stages.setdefault(stage_id, {"stage_id": stage_id})
        s.update(
            {
                "status": "failed",
                "finished_at": _iso(ts),
                "error": error,
            }
        )
        self.add_event(
            event_type="stage_failed",
            ts=ts,
            stage_id=stage_id,
            payload={"type": error.get("type"), "message": error.get("message")},
        )

    def stage_skipped(self, *, stage_id: str, ts: datetime, reason: str) -> None:
        s = self.stages.setdefault(stage_id, {"stage_id": stage_id})
        s.update({"status": "skipped", "summary": reason})
        self.add_event(event_type="stage_skipped", ts=ts, stage_id=stage_id, payload={"reason": reason})


def create_manifest(
    *,
    pass_id: str,
    started_at: datetime,
    atlas_version: str,
    settings_hash: str,
    schema_hash: str,
    fragments_hash: str,
) -> AtlasManifest:
    """
    Cria o Manifest inicial de uma passada.

    Importante: o Event Log inicia vazio; nenhum evento é emitido aqui.
    """
    return AtlasManifest(
        run={
            "pass_id": pass_id,
            "started_at": _iso(started_at),
            "atlas_version": atlas_version,
        },
        inputs={
            "settings_hash": settings_hash,
            "schema_hash": schema_hash,
            "fragments_hash": fragments_hash,
        },
    )


def save_manifest(manifest: AtlasManifest, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> AtlasManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return AtlasManifest.from_dict(data)
