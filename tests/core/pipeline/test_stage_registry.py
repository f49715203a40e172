# tests/core/pipeline/test_stage_registry.py
"""
Testes do StageRegistry e do protocolo Stage.
"""

import pytest

from atlas_compose.core.pipeline.registry import DuplicateStageIdError, StageRegistry
from atlas_compose.core.pipeline.stage import Stage
from atlas_compose.stages import default_stages


def test_registry_preserves_order(DummyStage):
    reg = StageRegistry()
    reg.add(DummyStage("b"))
    reg.add(DummyStage("a"))

    assert [s.id for s in reg.list()] == ["b", "a"]
    assert reg.get("a").id == "a"


def test_registry_rejects_duplicate_ids(DummyStage):
    reg = StageRegistry()
    reg.add(DummyStage("resolve"))

    with pytest.raises(DuplicateStageIdError):
        reg.add(DummyStage("resolve"))


@pytest.mark.parametrize("bad_id", ["", "   ", None])
def test_registry_rejects_invalid_ids(DummyStage, bad_id):
    with pytest.raises(ValueError):
        StageRegistry().add(DummyStage(bad_id))


def test_default_stages_follow_protocol():
    stages = default_stages()

    assert [s.id for s in stages] == ["resolve", "validate", "render", "plan", "build", "activate"]
    assert all(isinstance(s, Stage) for s in stages)


def test_dummy_stage_follows_protocol(DummyStage):
    assert isinstance(DummyStage("x"), Stage)
