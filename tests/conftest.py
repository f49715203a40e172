# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas Compose.

Este módulo define fixtures reutilizáveis que fornecem:
- settings mínimas e determinísticas
- construção compacta de schemas e fragmentos
- módulos YAML de exemplo (samba, samba-ad-dc, cpython27)
- contexto de passada controlado (EvaluationContext)
- Stage dummy para testes estruturais do Engine

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Stages dummy utilizam duck typing em vez de herança
    - Módulos de exemplo vivem em tests/fixtures/modules e são lidos
      pelo loader real (load_module)

Invariantes:
    - Nenhuma fixture executa uma passada completa
    - Dados retornados são determinísticos e isolados por teste
"""

from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path

import pytest

from atlas_compose.core.conditional.evaluator import resolve
from atlas_compose.core.config.loader import DEFAULT_SETTINGS
from atlas_compose.core.fragments.fragment import Fragment
from atlas_compose.core.fragments.sources import MappingSource
from atlas_compose.core.fragments.store import FragmentStore
from atlas_compose.core.modules.module import Composition, compose, load_module
from atlas_compose.core.pipeline.context import EvaluationContext
from atlas_compose.core.pipeline.types import StageKind, StageResult, StageStatus
from atlas_compose.core.schema.options import OptionSchema, option_from_dict

FIXTURES_DIR = Path(__file__).parent / "fixtures"
MODULES_DIR = FIXTURES_DIR / "modules"


# =====================================================
# Schema / fragmentos
# =====================================================

@pytest.fixture
def make_schema():
    """
    Fábrica de OptionSchema a partir da forma declarativa de módulo.

    Uso:
        schema = make_schema({"a.b": {"type": "bool", "default": False}})
    """

    def _make(options: dict, declared_by: str = "test") -> OptionSchema:
        schema = OptionSchema()
        for path, decl in options.items():
            schema.declare(option_from_dict(path, decl, declared_by=declared_by))
        return schema

    return _make


@pytest.fixture
def make_store():
    """
    Fábrica de FragmentStore: cada argumento é um lote de fragmentos.

    Cada item de lote é `(source_id, path, value)` ou
    `(source_id, path, value, priority)`.
    """

    def _make(*batches) -> FragmentStore:
        store = FragmentStore()
        for batch in batches:
            frags = []
            for item in batch:
                if isinstance(item, Fragment):
                    frags.append(item)
                    continue
                source_id, path, value, *rest = item
                priority = rest[0] if rest else 100
                frags.append(Fragment(source_id=source_id, path=path, value=value, priority=priority))
            store.submit(frags)
        return store

    return _make


# =====================================================
# Módulos de exemplo
# =====================================================

@pytest.fixture
def modules_dir() -> Path:
    return MODULES_DIR


@pytest.fixture
def samba_module():
    return load_module(MODULES_DIR / "samba.yaml")


@pytest.fixture
def cpython_module():
    return load_module(MODULES_DIR / "cpython27.yaml")


@pytest.fixture
def samba_ad_dc_module():
    return load_module(MODULES_DIR / "samba_ad_dc.yaml")


# =====================================================
# Settings + contexto
# =====================================================

@pytest.fixture
def dummy_config() -> dict:
    """
    Settings efetivas mínimas (DEFAULT_SETTINGS copiadas por teste).

    Invariantes:
        - `engine.fail_fast` habilitado
        - Stages de efeito (`build`, `activate`) desabilitados
    """
    return deepcopy(DEFAULT_SETTINGS)


@pytest.fixture
def empty_composition() -> Composition:
    return Composition(schema=OptionSchema(), store=FragmentStore())


@pytest.fixture
def dummy_ctx(dummy_config, empty_composition) -> EvaluationContext:
    """
    EvaluationContext controlado: pass_id e timestamp fixos, sem backends
    e sem manifest.
    """
    return EvaluationContext(
        pass_id="pass-test",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        config=dummy_config,
        composition=empty_composition,
    )


@pytest.fixture
def DummyStage():
    """
    Classe de Stage dummy configurável (duck typing).

    - `status`: status retornado (default SUCCESS)
    - `raises`: exceção levantada em `run` (tem precedência)
    - `calls`: lista compartilhada onde o id é registrado ao executar
    """

    class _DummyStage:
        def __init__(self, stage_id, depends_on=None, status=StageStatus.SUCCESS, raises=None, calls=None):
            self.id = stage_id
            self.kind = StageKind.RESOLVE
            self.depends_on = list(depends_on or [])
            self._status = status
            self._raises = raises
            self._calls = calls

        def run(self, ctx):
            if self._calls is not None:
                self._calls.append(self.id)
            if self._raises is not None:
                raise self._raises
            return StageResult(
                stage_id=self.id,
                kind=self.kind,
                status=self._status,
                summary=f"{self.id} done",
            )

    return _DummyStage


@pytest.fixture
def resolve_modules():
    """
    Compõe módulos + um mapping de host e resolve a árvore.

    Uso:
        composition, tree = resolve_modules([samba_module], {"services.samba.enable": True})
    """

    def _resolve(modules, host=None):
        sources = [MappingSource(source_id="host", data=host)] if host else []
        composition = compose(modules, sources)
        return composition, resolve(composition.store, composition.schema).tree

    return _resolve
