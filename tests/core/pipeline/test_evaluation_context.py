# tests/core/pipeline/test_evaluation_context.py
"""
Testes do EvaluationContext.

Cobre:
- artifact store por chave explícita
- leitura de settings por seção
- logs estruturados com pass_id e stage_id
- warnings agrupados por stage
"""

import pytest


def test_artifact_store(dummy_ctx):
    assert not dummy_ctx.has_artifact("tree")

    dummy_ctx.set_artifact("tree", {"a": 1})

    assert dummy_ctx.has_artifact("tree")
    assert dummy_ctx.get_artifact("tree") == {"a": 1}
    with pytest.raises(KeyError):
        dummy_ctx.get_artifact("plan")


def test_setting_lookup(dummy_ctx):
    assert dummy_ctx.setting("engine", "fail_fast") is True
    assert dummy_ctx.setting("activation", "max_workers") == 4
    assert dummy_ctx.setting("missing", "key", "fallback") == "fallback"


def test_log_event_shape(dummy_ctx):
    dummy_ctx.log(stage_id="resolve", level="debug", message="round 1", admitted=2)

    (event,) = dummy_ctx.events
    assert event["pass_id"] == "pass-test"
    assert event["stage_id"] == "resolve"
    assert event["level"] == "debug"
    assert event["admitted"] == 2
    assert "timestamp" in event


def test_warnings_grouped_by_stage(dummy_ctx):
    dummy_ctx.add_warning(stage_id="resolve", message="tie at a.b")
    dummy_ctx.add_warning(stage_id="activate", message="skipped start x")
    dummy_ctx.add_warning(stage_id="resolve", message="tie at a.c")

    assert dummy_ctx.warnings == {
        "resolve": ["tie at a.b", "tie at a.c"],
        "activate": ["skipped start x"],
    }
