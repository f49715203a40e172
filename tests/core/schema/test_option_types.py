# tests/core/schema/test_option_types.py
"""
Testes do vocabulário de tipos de opções.

Os testes asseguram que:
- a gramática declarativa (string / mapping de uma chave) é reconhecida
- `accepts` é estrito (bool não é int; enum restringe valores)
- declarações inválidas falham com SchemaDeclarationError
"""

import pytest

from atlas_compose.core.exceptions import SchemaDeclarationError
from atlas_compose.core.schema.types import (
    BOOL,
    INT,
    STR,
    TypeKind,
    attrs_of,
    describe_value,
    enum_of,
    list_of,
    nullable,
    parse_type,
)


def test_parse_scalar_and_composite_types():
    assert parse_type("bool") == BOOL
    assert parse_type({"enum": ["dc", "member", "standalone"]}) == enum_of("dc", "member", "standalone")
    assert parse_type({"nullable": {"list": "str"}}) == nullable(list_of(STR))
    assert parse_type({"attrs": {"attrs": "str"}}) == attrs_of(attrs_of(STR))


@pytest.mark.parametrize("spec", ["float", {"enum": "dc"}, {"list": "str", "nullable": "int"}, 3])
def test_parse_invalid_type_raises(spec):
    with pytest.raises(SchemaDeclarationError):
        parse_type(spec)


def test_bool_is_not_int():
    assert INT.accepts(4)
    assert not INT.accepts(True)
    assert BOOL.accepts(False)
    assert not BOOL.accepts(0)


def test_enum_accepts_only_declared_choices():
    role = enum_of("dc", "member", "standalone")

    assert role.accepts("dc")
    assert not role.accepts("pdc")
    assert role.describe() == "one of [dc, member, standalone]"


def test_nullable_list_and_references():
    t = nullable(list_of(STR))
    assert t.accepts(None)
    assert t.accepts(["eth0", "lo"])
    assert not t.accepts(["eth0", 1])
    assert not t.accepts("null")

    assert parse_type("package").accepts("samba")
    assert not parse_type("package").accepts("not a package")
    assert parse_type("unit").accepts("samba-smbd.service")
    assert not parse_type("unit").accepts(".service")
    assert parse_type("unit").kind == TypeKind.UNIT


def test_describe_value():
    assert describe_value(None) == "null"
    assert describe_value(True) == "bool"
    assert describe_value(3) == "int"
    assert describe_value({"a": 1}) == "mapping"


def test_attrs_accepts_mapping_of_inner_type():
    shares = parse_type({"attrs": {"attrs": "str"}})

    assert shares.accepts({})
    assert shares.accepts({"public": {"path": "/srv/public", "read only": "no"}})
    assert not shares.accepts({"public": {"guest ok": True}})
    assert not shares.accepts([{"path": "/srv"}])
    assert shares.describe() == "attribute set of attribute set of str"
