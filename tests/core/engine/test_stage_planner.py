# tests/core/engine/test_stage_planner.py
"""
Testes do planejador de Stages do Engine.

Os testes asseguram que:
- a ordem respeita `depends_on` com desempate lexicográfico
- ciclos, dependências desconhecidas e ids duplicados são rejeitados
  antes de qualquer execução

Invariantes:
    - Nenhuma ordenação parcial é retornada em caso de erro
"""

import pytest

try:
    from atlas_compose.core.engine.planner import (
        CycleDetectedError,
        UnknownDependencyError,
        plan_execution,
    )
    from atlas_compose.stages import default_stages
except Exception as e:
    plan_execution = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing stage planner. Implement:
- plan_execution
- CycleDetectedError
- UnknownDependencyError
Import error: {_IMPORT_ERR}
""")


def test_toposort_respects_dependencies(DummyStage):
    _require_imports()
    stages = [
        DummyStage("render", depends_on=["validate"]),
        DummyStage("validate", depends_on=["resolve"]),
        DummyStage("resolve"),
    ]

    assert [s.id for s in plan_execution(stages)] == ["resolve", "validate", "render"]


def test_independent_stages_are_ordered_by_id(DummyStage):
    _require_imports()
    stages = [DummyStage("b"), DummyStage("c", depends_on=["a"]), DummyStage("a")]

    assert [s.id for s in plan_execution(stages)] == ["a", "b", "c"]


def test_default_stage_order():
    _require_imports()
    order = [s.id for s in plan_execution(default_stages())]

    assert order == ["resolve", "validate", "render", "build", "plan", "activate"]


def test_cycle_detected(DummyStage):
    _require_imports()
    stages = [
        DummyStage("a", depends_on=["c"]),
        DummyStage("b", depends_on=["a"]),
        DummyStage("c", depends_on=["b"]),
    ]

    with pytest.raises(CycleDetectedError) as exc:
        plan_execution(stages)

    assert exc.value.cycle[0] == exc.value.cycle[-1]
    assert set(exc.value.cycle) == {"a", "b", "c"}


def test_unknown_dependency(DummyStage):
    _require_imports()
    with pytest.raises(UnknownDependencyError):
        plan_execution([DummyStage("a", depends_on=["x"])])


def test_duplicate_stage_id(DummyStage):
    _require_imports()
    with pytest.raises(ValueError):
        plan_execution([DummyStage("a"), DummyStage("a")])
