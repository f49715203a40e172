# tests/core/engine/test_engine_execution.py
"""
Testes de execução do Engine.

Cobre:
- caminho feliz (todos SUCCESS, ordem de execução)
- política fail-fast (interrupção na primeira falha)
- fail-fast desabilitado (dependentes pulados, independentes executados)
- skip por settings (`stages.<id>.enabled: false`) e propagação do skip
- conversão de exceções em AtlasErrorPayload
- registro no Manifest quando presente

Decisões arquiteturais:
    - Stages dummy utilizam duck typing (ver conftest)
"""

from datetime import datetime, timezone

import pytest

from atlas_compose.core.engine.engine import Engine
from atlas_compose.core.errors import ENGINE_CONFIGURATION_ERROR, ENGINE_EXECUTION_ERROR
from atlas_compose.core.exceptions import UnknownKeyError
from atlas_compose.core.pipeline.types import StageStatus
from atlas_compose.core.traceability.manifest import create_manifest


def test_happy_path(DummyStage, dummy_ctx):
    calls = []
    stages = [
        DummyStage("b", depends_on=["a"], calls=calls),
        DummyStage("a", calls=calls),
    ]

    result = Engine(stages=stages, ctx=dummy_ctx).run()

    assert calls == ["a", "b"]
    assert list(result.stages) == ["a", "b"]
    assert result.ok
    assert result.status == "success"
    assert all(r.status == StageStatus.SUCCESS for r in result.stages.values())


def test_fail_fast_stops_execution(DummyStage, dummy_ctx):
    calls = []
    dummy_ctx.config["engine"] = {"fail_fast": True}
    stages = [
        DummyStage("a", raises=RuntimeError("boom"), calls=calls),
        DummyStage("b", calls=calls),
    ]

    result = Engine(stages=stages, ctx=dummy_ctx).run()

    assert calls == ["a"]
    assert list(result.stages) == ["a"]
    assert result.stages["a"].status == StageStatus.FAILED
    assert result.failed() == [result.stages["a"]]


def test_fail_fast_applies_to_returned_failures(DummyStage, dummy_ctx):
    calls = []
    stages = [
        DummyStage("a", status=StageStatus.FAILED, calls=calls),
        DummyStage("b", calls=calls),
    ]

    result = Engine(stages=stages, ctx=dummy_ctx).run()

    assert calls == ["a"]
    assert not result.ok


def test_without_fail_fast_dependents_are_skipped(DummyStage, dummy_ctx):
    calls = []
    dummy_ctx.config["engine"] = {"fail_fast": False}
    stages = [
        DummyStage("a", raises=RuntimeError("boom"), calls=calls),
        DummyStage("b", depends_on=["a"], calls=calls),
        DummyStage("c", depends_on=["b"], calls=calls),
        DummyStage("d", calls=calls),
    ]

    result = Engine(stages=stages, ctx=dummy_ctx).run()

    assert calls == ["a", "d"]
    assert result.stages["b"].status == StageStatus.SKIPPED
    assert result.stages["b"].summary == "skipped due to failed dependency"
    assert result.stages["c"].summary == "skipped due to skipped dependency"
    assert result.stages["d"].status == StageStatus.SUCCESS


def test_skip_by_config(DummyStage, dummy_ctx):
    calls = []
    dummy_ctx.config["stages"] = {"b": {"enabled": False}}
    stages = [
        DummyStage("a", calls=calls),
        DummyStage("b", depends_on=["a"], calls=calls),
        DummyStage("c", depends_on=["b"], calls=calls),
    ]

    result = Engine(stages=stages, ctx=dummy_ctx).run()

    assert calls == ["a"]
    assert result.stages["b"].summary == "skipped by config"
    assert result.stages["c"].status == StageStatus.SKIPPED
    assert result.ok


def test_unexpected_exception_becomes_engine_execution_error(DummyStage, dummy_ctx):
    result = Engine(stages=[DummyStage("a", raises=RuntimeError("boom"))], ctx=dummy_ctx).run()

    error = result.stages["a"].payload["error"]
    assert error["type"] == ENGINE_EXECUTION_ERROR
    assert error["details"] == {"stage": "a", "exc_type": "RuntimeError", "exc_message": "boom"}


def test_atlas_exception_keeps_its_class_name(DummyStage, dummy_ctx):
    exc = UnknownKeyError(message="undeclared option path: a.b", details={"path": "a.b"}, hint="declare it")

    result = Engine(stages=[DummyStage("a", raises=exc)], ctx=dummy_ctx).run()

    error = result.stages["a"].payload["error"]
    assert error["type"] == "UnknownKeyError"
    assert error["message"] == "undeclared option path: a.b"
    assert error["details"] == {"path": "a.b", "stage": "a"}
    assert error["hint"] == "declare it"


def test_invalid_return_type(dummy_ctx):
    class BadStage:
        id = "bad"
        kind = None
        depends_on = []

        def run(self, ctx):
            return {"status": "success"}

    result = Engine(stages=[BadStage()], ctx=dummy_ctx).run()

    error = result.stages["bad"].payload["error"]
    assert error["type"] == ENGINE_CONFIGURATION_ERROR
    assert error["details"]["received"] == "dict"


def test_context_warnings_are_merged_into_result(DummyStage, dummy_ctx):
    class WarningStage(DummyStage):
        def run(self, ctx):
            ctx.add_warning(stage_id=self.id, message="priority tie")
            ctx.add_warning(stage_id=self.id, message="priority tie")
            return super().run(ctx)

    result = Engine(stages=[WarningStage("a")], ctx=dummy_ctx).run()

    assert result.stages["a"].warnings == ["priority tie"]


def test_events_are_logged_with_pass_id(DummyStage, dummy_ctx):
    Engine(stages=[DummyStage("a")], ctx=dummy_ctx).run()

    assert [e["message"] for e in dummy_ctx.events] == ["stage started", "a done"]
    assert all(e["pass_id"] == "pass-test" for e in dummy_ctx.events)


@pytest.fixture
def manifest():
    return create_manifest(
        pass_id="pass-test",
        started_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        atlas_version="0.1.0",
        settings_hash="s",
        schema_hash="h",
        fragments_hash="f",
    )


def test_manifest_records_each_stage(DummyStage, dummy_ctx, manifest):
    dummy_ctx.manifest = manifest
    dummy_ctx.config["engine"] = {"fail_fast": False}
    stages = [
        DummyStage("a"),
        DummyStage("b", raises=RuntimeError("boom")),
        DummyStage("c", depends_on=["b"]),
    ]

    Engine(stages=stages, ctx=dummy_ctx).run()

    assert [(e["event_type"], e["stage_id"]) for e in manifest.events] == [
        ("stage_started", "a"),
        ("stage_finished", "a"),
        ("stage_started", "b"),
        ("stage_failed", "b"),
        ("stage_skipped", "c"),
    ]
    assert manifest.stages["a"]["status"] == "success"
    assert manifest.stages["b"]["error"]["type"] == ENGINE_EXECUTION_ERROR
    assert manifest.stages["c"]["summary"] == "skipped due to failed dependency"
