# src/atlas_compose/core/validation/assertions.py
"""
Asserções entre campos da árvore resolvida.

Forma declarativa (módulo):

    assertions:
      - assert: {implies: [services.samba.nsswins, services.samba.enableWinbindd]}
        message: "If samba.nsswins is enabled, then samba.enableWinbindd must also be enabled"

O predicado é uma guarda (ver core.fragments.guards) ou, programaticamente,
um callable `tree -> bool`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from atlas_compose.core.exceptions import ModuleFormatError
from atlas_compose.core.fragments.guards import Guard, UnresolvedPathError, parse_guard
from atlas_compose.core.merge.engine import ResolvedTree
from atlas_compose.core.schema.paths import format_path

Predicate = Union[Guard, Callable[[ResolvedTree], bool]]


@dataclass(frozen=True)
class Assertion:
    predicate: Predicate
    message: str
    source_id: str = ""

    def check(self, tree: ResolvedTree) -> Tuple[bool, Optional[str]]:
        """
        Avalia o predicado e retorna `(ok, motivo)`.

        Um path sem valor, ou um callable que levanta exceção, conta como
        falha com o motivo registrado.
        """
        if isinstance(self.predicate, Guard):
            try:
                return self.predicate.evaluate(tree.values), None
            except UnresolvedPathError as e:
                return False, f"unresolved path {format_path(e.path)}"

        try:
            return bool(self.predicate(tree)), None
        except Exception as e:  # noqa: BLE001
            return False, f"{type(e).__name__}: {e}"

    def to_dict(self) -> Dict[str, Any]:
        predicate = (
            self.predicate.to_dict()
            if isinstance(self.predicate, Guard)
            else getattr(self.predicate, "__name__", repr(self.predicate))
        )
        return {"assert": predicate, "message": self.message, "source_id": self.source_id}


def assertion_from_dict(data: Any, *, source_id: str = "") -> Assertion:
    if not isinstance(data, dict) or "assert" not in data or "message" not in data:
        raise ModuleFormatError(
            message=f"assertion in {source_id or 'module'} must have 'assert' and 'message'",
            details={"source_id": source_id, "received": data},
        )
    return Assertion(
        predicate=parse_guard(data["assert"]),
        message=str(data["message"]),
        source_id=source_id,
    )
