# tests/core/config/test_merge.py
"""
Testes da política de deep-merge das settings.

Os testes asseguram que:
- valores escalares são sobrescritos
- dicionários são mesclados recursivamente
- listas são sobrescritas integralmente
- conflitos de tipo (inclusive bool × int) são rejeitados
- objetos de entrada não são mutados

Limites explícitos:
    - Não cobre o Merge Engine de fragmentos (ver tests/core/merge)
"""

import pytest

try:
    from atlas_compose.core.config.merge import deep_merge
    from atlas_compose.core.config.errors import ConfigTypeConflictError
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing deep_merge. Implement:\n"
            "- src/atlas_compose/core/config/merge.py (deep_merge)\n"
            "- src/atlas_compose/core/config/errors.py (ConfigTypeConflictError)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_merge_simple_override():
    _require_imports()

    base = {"a": 1, "b": 2}
    override = {"b": 99}
    out = deep_merge(base, override)

    assert out == {"a": 1, "b": 99}
    assert base == {"a": 1, "b": 2}
    assert override == {"b": 99}


def test_merge_nested_dict():
    _require_imports()

    out = deep_merge(
        {"activation": {"max_workers": 4, "fail_fast": True}},
        {"activation": {"max_workers": 2}},
    )

    assert out == {"activation": {"max_workers": 2, "fail_fast": True}}


def test_merge_list_override_total():
    _require_imports()

    out = deep_merge({"modules": ["samba", "cpython27"]}, {"modules": ["samba"]})

    assert out == {"modules": ["samba"]}


def test_merge_type_conflict_raises():
    _require_imports()

    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"fail_fast": True}}, {"engine": "off"})


def test_merge_bool_int_conflict_raises():
    """bool é subclasse de int, mas trocar flag por contador é conflito."""
    _require_imports()

    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"fail_fast": True}}, {"engine": {"fail_fast": 1}})


def test_merge_conflict_names_the_dotted_key():
    _require_imports()

    with pytest.raises(ConfigTypeConflictError) as exc:
        deep_merge(
            {"stages": {"build": {"enabled": False}}},
            {"stages": {"build": {"enabled": "yes"}}},
        )

    assert "'stages.build.enabled'" in str(exc.value)


def test_merge_accepts_new_keys():
    _require_imports()

    out = deep_merge({"engine": {"fail_fast": True}}, {"stages": {"activate": {"enabled": True}}})

    assert out == {"engine": {"fail_fast": True}, "stages": {"activate": {"enabled": True}}}
