# src/atlas_compose/core/validation/validator.py
"""
Validator: verificação de tipos declarados e asserções.

Ordem de verificação:
    1. Tipo de cada chave declarada e resolvida (ordem do schema);
       valores fora de um enum também são TypeViolation
    2. Cada asserção, na ordem de declaração

Invariantes:
    - Nunca interrompe na primeira falha: todas as violações são coletadas
    - Não altera a árvore
"""

from __future__ import annotations

from typing import Iterable, List

from atlas_compose.core.merge.engine import ResolvedTree
from atlas_compose.core.schema.options import OptionSchema
from atlas_compose.core.schema.types import describe_value

from .assertions import Assertion
from .violations import AssertionViolation, TypeViolation, Violation


def validate(
    tree: ResolvedTree,
    schema: OptionSchema,
    assertions: Iterable[Assertion] = (),
) -> List[Violation]:
    violations: List[Violation] = []

    for option in schema:
        if option.path not in tree.values:
            continue
        value = tree.values[option.path]
        if option.type.accepts(value):
            continue
        actual = describe_value(value)
        if isinstance(value, str):
            actual = f"str {value!r}"
        violations.append(
            TypeViolation(
                path=option.path,
                expected=option.type.describe(),
                actual=actual,
                provenance=tuple(tree.provenance.get(option.path, ())),
            )
        )

    for assertion in assertions:
        ok, reason = assertion.check(tree)
        if ok:
            continue
        details = {"reason": reason} if reason else {}
        violations.append(
            AssertionViolation(
                message=assertion.message,
                source_id=assertion.source_id,
                details=details,
            )
        )

    return violations
