# src/atlas_compose/runner.py
"""
Runner de uma passada de avaliação.

Monta o EvaluationContext e o AtlasManifest (hashes de settings, schema e
fragmentos) e executa o Engine sobre os Stages canônicos.

A ordem de Stages é sempre a do planner; passar `stages` permite substituir
ou estender o conjunto default (ex.: testes); ids duplicados levantam
DuplicateStageIdError antes de qualquer execução.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from atlas_compose import __version__
from atlas_compose.core.activation.types import ActiveUnit
from atlas_compose.core.backends import BuildBackend, ServiceBackend
from atlas_compose.core.config.hashing import compute_config_hash
from atlas_compose.core.config.loader import DEFAULT_SETTINGS
from atlas_compose.core.engine.engine import Engine, PassResult
from atlas_compose.core.modules.module import Composition
from atlas_compose.core.pipeline.context import EvaluationContext
from atlas_compose.core.pipeline.registry import StageRegistry
from atlas_compose.core.pipeline.stage import Stage
from atlas_compose.core.traceability.manifest import create_manifest
from atlas_compose.stages import default_stages


def run_pass(
    composition: Composition,
    *,
    config: Optional[Dict[str, Any]] = None,
    previously_active: Optional[List[Union[ActiveUnit, str]]] = None,
    build_backend: Optional[BuildBackend] = None,
    service_backend: Optional[ServiceBackend] = None,
    stages: Optional[Sequence[Stage]] = None,
    pass_id: Optional[str] = None,
) -> Tuple[PassResult, EvaluationContext]:
    settings = config if config is not None else DEFAULT_SETTINGS
    pass_id = pass_id or uuid.uuid4().hex
    started_at = datetime.now(timezone.utc)

    manifest = create_manifest(
        pass_id=pass_id,
        started_at=started_at,
        atlas_version=__version__,
        settings_hash=compute_config_hash(settings),
        schema_hash=compute_config_hash(composition.schema.to_dict()),
        fragments_hash=composition.store.digest(),
    )

    ctx = EvaluationContext(
        pass_id=pass_id,
        created_at=started_at,
        config=settings,
        composition=composition,
        previously_active=previously_active,
        build_backend=build_backend,
        service_backend=service_backend,
        manifest=manifest,
        meta={"modules": list(composition.modules)},
    )

    registry = StageRegistry()
    for stage in stages if stages is not None else default_stages():
        registry.add(stage)

    engine = Engine(stages=registry.list(), ctx=ctx)
    return engine.run(), ctx
