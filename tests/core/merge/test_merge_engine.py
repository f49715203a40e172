# tests/core/merge/test_merge_engine.py
"""
Testes do Merge Engine.

Este módulo valida cada estratégia de merge e o preenchimento por default:
- override: maior prioridade vence, independente da ordem de submissão;
  todo empate de prioridade gera MergeWarning `priority_tie`
- list_append: ordem `(seq, priority, index)`
- bool_and / bool_or
- text_concat: junção com "\\n" em ordem de submissão
- default-if-absent e MissingValueError para opções obrigatórias
- UnknownKeyError para paths não declarados

Invariantes:
    - Nenhum argumento é mutado
    - A ordem da lista de entrada não altera o resultado
"""

import itertools

import pytest

from atlas_compose.core.exceptions import MergeError, MissingValueError, UnknownKeyError
from atlas_compose.core.fragments.fragment import PRIORITY_FORCE, PRIORITY_MODULE_DEFAULT, Fragment
from atlas_compose.core.merge.engine import PRIORITY_TIE, merge

ROLE = ("services", "samba", "serverRole")


@pytest.fixture
def samba_schema(make_schema):
    return make_schema(
        {
            "services.samba.enable": {"type": "bool", "default": False, "merge": "bool_or"},
            "services.samba.hardened": {"type": "bool", "default": True, "merge": "bool_and"},
            "services.samba.serverRole": {"type": {"enum": ["dc", "member", "standalone"]}, "default": "dc"},
            "services.samba.invalidUsers": {"type": {"list": "str"}, "default": ["root"]},
            "services.samba.extraConfig": {"type": "lines", "default": ""},
            "services.samba.realm": {"type": "str"},
        },
        declared_by="samba",
    )


def test_override_highest_priority_wins_in_any_submission_order(make_store, samba_schema):
    """
    Precedência por prioridade independe da ordem de submissão: todas as
    permutações dos lotes produzem o mesmo valor.
    """
    batches = [
        [("module:samba", "services.samba.serverRole", "dc", PRIORITY_MODULE_DEFAULT)],
        [("host", "services.samba.serverRole", "member", PRIORITY_FORCE)],
        [("site", "services.samba.serverRole", "standalone", 100)],
    ]

    results = set()
    for perm in itertools.permutations(batches):
        tree = merge(make_store(*perm), samba_schema)
        results.add(tree[ROLE])
        assert tree.provenance[ROLE] == ("host",)

    assert results == {"member"}


def test_override_tie_last_submitted_wins_with_warning(make_store, samba_schema):
    store = make_store(
        [("a", "services.samba.serverRole", "dc")],
        [("b", "services.samba.serverRole", "member")],
    )

    tree = merge(store, samba_schema)

    assert tree[ROLE] == "member"
    assert len(tree.warnings) == 1
    w = tree.warnings[0]
    assert w.code == PRIORITY_TIE
    assert w.path == ROLE
    assert w.sources == ("a", "b")
    assert "agree" not in w.message


def test_override_tie_with_equal_values_is_still_flagged(make_store, samba_schema):
    store = make_store(
        [("a", "services.samba.serverRole", "dc")],
        [("b", "services.samba.serverRole", "dc")],
    )

    (w,) = merge(store, samba_schema).warnings
    assert w.code == PRIORITY_TIE
    assert w.sources == ("a", "b")
    assert w.message.endswith("(values agree)")
    assert merge(
        make_store([("a", "services.samba.serverRole", "dc")], [("b", "services.samba.serverRole", "member")]),
        samba_schema,
        warn_on_priority_tie=False,
    ).warnings == ()


def test_list_append_order(make_store, samba_schema):
    store = make_store(
        [
            ("a", "services.samba.invalidUsers", ["root"], 100),
            ("a", "services.samba.invalidUsers", ["nobody"], 50),
        ],
        [("b", "services.samba.invalidUsers", ["guest"], 10)],
    )

    tree = merge(store, samba_schema)

    assert tree[("services", "samba", "invalidUsers")] == ["nobody", "root", "guest"]
    assert tree.provenance[("services", "samba", "invalidUsers")] == ("a", "b")


def test_bool_strategies(make_store, samba_schema):
    store = make_store(
        [("a", "services.samba.enable", False), ("a", "services.samba.hardened", True)],
        [("b", "services.samba.enable", True), ("b", "services.samba.hardened", False)],
    )

    tree = merge(store, samba_schema)

    assert tree[("services", "samba", "enable")] is True
    assert tree[("services", "samba", "hardened")] is False


def test_text_concat_in_submission_order(make_store, samba_schema):
    store = make_store(
        [("a", "services.samba.extraConfig", "guest account = nobody", 10)],
        [("b", "services.samba.extraConfig", "map to guest = bad user", 1000)],
    )

    tree = merge(store, samba_schema)

    assert tree[("services", "samba", "extraConfig")] == "guest account = nobody\nmap to guest = bad user"


def test_defaults_fill_absent_keys(make_store, samba_schema):
    tree = merge(make_store(), samba_schema)

    assert tree[("services", "samba", "enable")] is False
    assert tree[("services", "samba", "invalidUsers")] == ["root"]
    assert ("services", "samba", "realm") not in tree
    assert tree.provenance[ROLE] == ("default:samba",)
    assert ROLE in tree.defaulted


def test_mandatory_without_value(make_schema, make_store):
    schema = make_schema({"services.samba.realm": {"type": "str", "mandatory": True}})

    with pytest.raises(MissingValueError) as exc:
        merge(make_store(), schema)
    assert exc.value.details["paths"] == ["services.samba.realm"]

    assert merge(make_store(), schema, require_mandatory=False).values == {}


def test_unknown_key(make_store, samba_schema):
    with pytest.raises(UnknownKeyError) as exc:
        merge(make_store([("host", "services.samba.enabled", True)]), samba_schema)

    assert exc.value.details == {"path": "services.samba.enabled", "source_id": "host"}


def test_subtree_assignment_is_unknown_with_hint(make_store, samba_schema):
    with pytest.raises(UnknownKeyError) as exc:
        merge(make_store([("host", "services.samba", {"enable": True})]), samba_schema)

    assert exc.value.hint is not None


@pytest.mark.parametrize(
    "path, value",
    [
        ("services.samba.invalidUsers", "root"),
        ("services.samba.enable", "yes"),
        ("services.samba.extraConfig", ["a"]),
    ],
)
def test_value_incompatible_with_strategy(make_store, samba_schema, path, value):
    with pytest.raises(MergeError):
        merge(make_store([("host", path, value)]), samba_schema)


def test_merge_does_not_mutate_or_alias_inputs(samba_schema):
    frag = Fragment("a", "services.samba.invalidUsers", ["root"])
    tree = merge([frag], samba_schema)

    tree.values[("services", "samba", "invalidUsers")].append("guest")

    assert frag.value == ["root"]


def test_digest_depends_only_on_values(make_store, samba_schema):
    t1 = merge(make_store([("a", "services.samba.enable", True)]), samba_schema)
    t2 = merge(make_store([("b", "services.samba.enable", True)]), samba_schema)
    t3 = merge(make_store([("b", "services.samba.enable", False)]), samba_schema)

    assert t1.digest() == t2.digest()
    assert t1.digest() != t3.digest()
    assert t1.as_nested()["services"]["samba"]["enable"] is True
