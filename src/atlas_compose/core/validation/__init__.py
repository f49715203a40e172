"""
Validator do Atlas Compose.

Componentes:
    - violations → TypeViolation, AssertionViolation
    - assertions → Assertion (guarda ou callable) e forma declarativa
    - validator  → validate(tree, schema, assertions)
"""

from .assertions import Assertion, assertion_from_dict
from .validator import validate
from .violations import AssertionViolation, TypeViolation, Violation

__all__ = [
    "Assertion",
    "assertion_from_dict",
    "validate",
    "AssertionViolation",
    "TypeViolation",
    "Violation",
]
