# tests/core/schema/test_option_schema.py
"""
Testes do OptionSchema (declaração e invariantes estruturais).

Os testes asseguram que:
- a estratégia de merge é derivada do tipo quando omitida
- estratégias incompatíveis com o tipo são rejeitadas na declaração
- defaults precisam satisfazer o tipo
- paths são únicos e nunca são prefixo uns dos outros
- a ordem de declaração é preservada

Decisões arquiteturais:
    - Todo erro de declaração é fatal (SchemaDeclarationError)
"""

import pytest

from atlas_compose.core.exceptions import SchemaDeclarationError
from atlas_compose.core.schema.options import MergeStrategy, NO_DEFAULT, option_from_dict
from atlas_compose.core.schema.paths import parse_path


def test_strategy_derived_from_type(make_schema):
    schema = make_schema({
        "svc.extraConfig": {"type": "lines"},
        "svc.invalidUsers": {"type": {"list": "str"}},
        "svc.enable": {"type": "bool"},
    })

    assert schema.get(parse_path("svc.extraConfig")).merge == MergeStrategy.TEXT_CONCAT
    assert schema.get(parse_path("svc.invalidUsers")).merge == MergeStrategy.LIST_APPEND
    assert schema.get(parse_path("svc.enable")).merge == MergeStrategy.OVERRIDE


@pytest.mark.parametrize(
    "decl",
    [
        {"type": "str", "merge": "bool_or"},
        {"type": "bool", "merge": "list_append"},
        {"type": "int", "merge": "text_concat"},
    ],
)
def test_incompatible_strategy_rejected_at_declaration(make_schema, decl):
    with pytest.raises(SchemaDeclarationError) as exc:
        make_schema({"svc.x": decl})

    assert exc.value.details["path"] == "svc.x"


def test_default_must_match_type(make_schema):
    with pytest.raises(SchemaDeclarationError):
        make_schema({"svc.role": {"type": {"enum": ["dc", "member"]}, "default": "pdc"}})


def test_duplicate_path_names_both_declarers(make_schema):
    schema = make_schema({"svc.enable": {"type": "bool"}}, declared_by="a")

    with pytest.raises(SchemaDeclarationError) as exc:
        schema.declare(option_from_dict("svc.enable", {"type": "bool"}, declared_by="b"))

    assert exc.value.details["declared_by"] == ["a", "b"]


def test_leaf_and_subtree_conflict(make_schema):
    with pytest.raises(SchemaDeclarationError):
        make_schema({"svc": {"type": "bool"}, "svc.enable": {"type": "bool"}})
    with pytest.raises(SchemaDeclarationError):
        make_schema({"svc.enable": {"type": "bool"}, "svc": {"type": "bool"}})


def test_unknown_fields_and_missing_type(make_schema):
    with pytest.raises(SchemaDeclarationError):
        make_schema({"svc.enable": {"type": "bool", "defualt": False}})
    with pytest.raises(SchemaDeclarationError):
        make_schema({"svc.enable": {"default": False}})
    with pytest.raises(SchemaDeclarationError):
        make_schema({"svc.enable": {"type": "bool", "merge": "xor"}})


def test_order_prefixes_and_options_under(make_schema):
    schema = make_schema({
        "services.samba.enable": {"type": "bool", "default": False},
        "networking.hostName": {"type": "str"},
        "services.samba.securityType": {"type": "str", "default": "user"},
    })

    assert [o.key for o in schema] == [
        "services.samba.enable",
        "networking.hostName",
        "services.samba.securityType",
    ]
    assert schema.is_prefix(("services", "samba"))
    assert not schema.is_prefix(("services", "samba", "enable"))
    assert [o.key for o in schema.options_under(("services", "samba"))] == [
        "services.samba.enable",
        "services.samba.securityType",
    ]
    assert schema.get(("networking", "hostName")).default is NO_DEFAULT
    assert schema.get(("networking", "hostName")).has_default is False


def test_parse_path_rejects_empty_segments():
    with pytest.raises(ValueError):
        parse_path("services..samba")
    with pytest.raises(ValueError):
        parse_path("")
