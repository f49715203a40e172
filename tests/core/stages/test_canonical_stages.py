# tests/core/stages/test_canonical_stages.py
"""
Testes unitários dos Stages canônicos, executados diretamente sobre um
EvaluationContext (sem Engine).
"""

from datetime import datetime, timezone

import pytest

from atlas_compose.core.activation.types import ActionKind, ActiveUnit
from atlas_compose.core.errors import (
    BUILD_FAILED,
    ENGINE_CONFIGURATION_ERROR,
    VALIDATION_FAILED,
)
from atlas_compose.core.fragments.sources import MappingSource
from atlas_compose.core.modules.module import compose
from atlas_compose.core.pipeline.context import (
    ARTIFACTS_KEY,
    BUILDS_KEY,
    PLAN_KEY,
    TREE_KEY,
    VIOLATIONS_KEY,
    EvaluationContext,
)
from atlas_compose.core.pipeline.types import StageStatus
from atlas_compose.stages import (
    ActivateStage,
    BuildStage,
    PlanStage,
    RenderStage,
    ResolveStage,
    ValidateStage,
)

from tests.fixtures.backends import RecordingBuildBackend, RecordingServiceBackend


@pytest.fixture
def make_ctx(samba_module, cpython_module, dummy_config):
    def _make(host=None, **kw):
        sources = [MappingSource(source_id="host", data=host)] if host else []
        return EvaluationContext(
            pass_id="pass-stage",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            config=dummy_config,
            composition=compose([samba_module, cpython_module], sources),
            **kw,
        )

    return _make


def _run(ctx, *stages):
    result = None
    for stage in stages:
        result = stage.run(ctx)
    return result


def test_resolve_stage_publishes_tree(make_ctx):
    ctx = make_ctx({"services.samba.enable": True})

    result = ResolveStage().run(ctx)

    tree = ctx.get_artifact(TREE_KEY)
    assert result.status == StageStatus.SUCCESS
    assert tree[("services", "samba", "enable")] is True
    assert result.artifacts == {"tree_digest": tree.digest()}
    assert result.metrics["rounds"] == 2
    assert result.metrics["discarded"] == 1
    assert any(e["message"] == "conditional round" for e in ctx.events)


def test_resolve_stage_reports_priority_ties(samba_module, dummy_config):
    composition = compose(
        [samba_module],
        [
            MappingSource(source_id="host", data={"services.samba.securityType": "ads"}),
            MappingSource(source_id="site", data={"services.samba.securityType": "domain"}),
        ],
    )
    ctx = EvaluationContext(
        pass_id="p",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        config=dummy_config,
        composition=composition,
    )

    result = ResolveStage().run(ctx)

    (warning,) = result.payload["merge_warnings"]
    assert warning["sources"] == ["host", "site"]
    assert ctx.warnings["resolve"] == [warning["message"]]
    assert ctx.get_artifact(TREE_KEY)[("services", "samba", "securityType")] == "domain"


def test_validate_stage_collects_every_violation(make_ctx):
    ctx = make_ctx(
        {
            "services.samba.nsswins": True,
            "services.samba.enableWinbindd": False,
            "services.samba.securityType": "server",
        }
    )

    result = _run(ctx, ResolveStage(), ValidateStage())

    assert result.status == StageStatus.FAILED
    assert result.metrics["violations"] == 2
    error = result.payload["error"]
    assert error["type"] == VALIDATION_FAILED
    assert [v["kind"] for v in error["details"]["violations"]] == ["type", "assertion"]
    assert len(ctx.get_artifact(VIOLATIONS_KEY)) == 2


def test_render_stage_digests(make_ctx):
    ctx = make_ctx({"services.samba.enable": True})

    result = _run(ctx, ResolveStage(), ValidateStage(), RenderStage())

    artifacts = ctx.get_artifact(ARTIFACTS_KEY)
    assert result.metrics["artifacts"] == 7
    assert result.metrics["kind.service_unit"] == 5
    assert result.artifacts == {a.id: a.digest for a in artifacts}


def test_plan_stage_uses_explicit_previous_state(make_ctx):
    ctx = make_ctx({"services.samba.enable": True})
    _run(ctx, ResolveStage(), ValidateStage(), RenderStage())
    ctx.previously_active = ["samba-setup.service", "obsolete.service"]

    result = PlanStage().run(ctx)

    kinds = [a.kind for a in ctx.get_artifact(PLAN_KEY)]
    assert kinds.count(ActionKind.STOP) == 1
    assert kinds.count(ActionKind.NOOP) == 1
    assert kinds.count(ActionKind.START) == 4
    assert result.summary == "4 start, 1 stop, 1 noop"


def test_plan_stage_queries_service_backend(make_ctx):
    backend = RecordingServiceBackend(active=[ActiveUnit(name="obsolete.service")])
    ctx = make_ctx(service_backend=backend)
    _run(ctx, ResolveStage(), ValidateStage(), RenderStage())

    result = PlanStage().run(ctx)

    assert result.payload["plan"] == [{"kind": "stop", "unit": "obsolete.service", "waits_for": []}]


def test_plan_stage_with_nothing_to_do(make_ctx):
    ctx = make_ctx()
    _run(ctx, ResolveStage(), ValidateStage(), RenderStage())

    assert PlanStage().run(ctx).summary == "nothing to do"


@pytest.mark.parametrize("stage", [BuildStage(), ActivateStage()])
def test_effect_stages_require_a_backend(make_ctx, stage):
    ctx = make_ctx()

    result = stage.run(ctx)

    assert result.status == StageStatus.FAILED
    assert result.payload["error"]["type"] == ENGINE_CONFIGURATION_ERROR


def test_build_stage_reports_handles_and_failures(make_ctx):
    ok_ctx = make_ctx(build_backend=RecordingBuildBackend())
    _run(ok_ctx, ResolveStage(), ValidateStage(), RenderStage())
    ok = BuildStage().run(ok_ctx)

    assert ok.status == StageStatus.SUCCESS
    assert ok.artifacts == {"python-2.7": "/store/python-2.7-2.7.18"}
    assert len(ok_ctx.get_artifact(BUILDS_KEY)) == 1

    bad_ctx = make_ctx(build_backend=RecordingBuildBackend(failing={"python-2.7": "configure"}))
    _run(bad_ctx, ResolveStage(), ValidateStage(), RenderStage())
    bad = BuildStage().run(bad_ctx)

    assert bad.status == StageStatus.FAILED
    error = bad.payload["error"]
    assert error["type"] == BUILD_FAILED
    assert error["details"]["failed_step"] == "configure"
    assert error["details"]["log_excerpt"] == "error: step configure exited with 2"


def test_activate_stage_applies_plan(make_ctx):
    backend = RecordingServiceBackend(failing={"samba-smbd.service"})
    ctx = make_ctx({"services.samba.enable": True}, service_backend=backend)
    _run(ctx, ResolveStage(), ValidateStage(), RenderStage(), PlanStage())

    result = ActivateStage().run(ctx)

    assert result.status == StageStatus.FAILED
    assert result.metrics["failed"] == 1
    assert result.metrics["skipped"] == 1
    (failure,) = result.payload["error"]["details"]["failures"]
    assert failure["unit"] == "samba-smbd.service"
    assert ctx.warnings["activate"] == [
        "start samba.target skipped: blocked by start samba-smbd.service"
    ]
