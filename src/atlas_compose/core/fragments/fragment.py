# src/atlas_compose/core/fragments/fragment.py
"""
Fragmento de configuração e achatamento de blocos declarativos.

Um Fragment é uma contribuição parcial e imutável de valor para um único
key path, com origem, prioridade e guarda opcional.

Formato de bloco (módulos e arquivos de fragmentos):

    config:
      - set:
          services.samba.enable: true
          services.samba:
            securityType: user
            extraConfig:
              $value: "guest account = nobody"
              $priority: 50
        when: {eq: [services.samba.securityType, user]}
        priority: 100

Precedência de prioridade: `$priority` da folha > `priority` do bloco >
prioridade da fonte.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from atlas_compose.core.exceptions import ModuleFormatError
from atlas_compose.core.schema.paths import KeyPath, as_path, format_path

from .guards import Guard, parse_guard

PRIORITY_MODULE_DEFAULT = 50
PRIORITY_NORMAL = 100
PRIORITY_FORCE = 1000

_LEAF_VALUE = "$value"
_LEAF_PRIORITY = "$priority"
_BLOCK_FIELDS = {"set", "when", "priority"}


@dataclass(frozen=True)
class Fragment:
    """
    Contribuição de valor para um key path.

    `seq` e `index` são atribuídos pelo FragmentStore na submissão
    (-1 enquanto o fragmento não foi submetido).
    """
    source_id: str
    path: KeyPath
    value: Any
    priority: int = PRIORITY_NORMAL
    guard: Optional[Guard] = None
    seq: int = -1
    index: int = -1

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", as_path(self.path))

    @property
    def conditional(self) -> bool:
        return self.guard is not None

    @property
    def key(self) -> str:
        return format_path(self.path)

    @property
    def label(self) -> str:
        """Identificação curta para diagnóstico: `fonte#seq.index:path`."""
        return f"{self.source_id}#{self.seq}.{self.index}:{self.key}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "path": self.key,
            "value": self.value,
            "priority": self.priority,
            "guard": self.guard.to_dict() if self.guard is not None else None,
            "seq": self.seq,
            "index": self.index,
        }


def check_priority(raw: Any, where: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ModuleFormatError(
            message=f"priority must be an integer at {where}",
            details={"where": where, "received": raw},
        )
    return raw


def _is_leaf(value: Any) -> bool:
    return not isinstance(value, dict) or _LEAF_VALUE in value


def flatten_mapping(
    data: Mapping[str, Any],
    *,
    source_id: str,
    priority: int = PRIORITY_NORMAL,
    guard: Optional[Guard] = None,
) -> List[Fragment]:
    """
    Achata um mapping aninhado (chaves podem ser pontuadas) em um
    fragmento por folha, preservando a ordem de declaração.

    Um mapping vazio é tratado como folha (valor `{}`).
    """
    out: List[Fragment] = []

    def walk(prefix: KeyPath, node: Mapping[str, Any]) -> None:
        for raw_key, value in node.items():
            try:
                path = prefix + as_path(str(raw_key))
            except ValueError as e:
                raise ModuleFormatError(
                    message=f"invalid key in source {source_id}: {raw_key!r}",
                    details={"source_id": source_id, "key": raw_key},
                ) from e

            if isinstance(value, dict) and value and not _is_leaf(value):
                walk(path, value)
                continue

            leaf_priority = priority
            if isinstance(value, dict) and _LEAF_VALUE in value:
                extra = sorted(set(value) - {_LEAF_VALUE, _LEAF_PRIORITY})
                if extra:
                    raise ModuleFormatError(
                        message=f"unknown leaf fields at {format_path(path)}: {', '.join(extra)}",
                        details={"source_id": source_id, "path": format_path(path)},
                    )
                if _LEAF_PRIORITY in value:
                    leaf_priority = check_priority(value[_LEAF_PRIORITY], format_path(path))
                value = value[_LEAF_VALUE]

            out.append(
                Fragment(
                    source_id=source_id,
                    path=path,
                    value=value,
                    priority=leaf_priority,
                    guard=guard,
                )
            )

    walk((), data)
    return out


def parse_config_blocks(
    blocks: Any,
    *,
    source_id: str,
    priority: int = PRIORITY_NORMAL,
) -> List[Fragment]:
    """
    Converte a seção `config` (lista de blocos, ou um único mapping
    incondicional) em fragmentos.

    Raises:
        ModuleFormatError: Se algum bloco tiver estrutura inválida.
    """
    if blocks is None:
        return []

    if isinstance(blocks, dict) and "set" not in blocks:
        return flatten_mapping(blocks, source_id=source_id, priority=priority)

    if isinstance(blocks, dict):
        blocks = [blocks]

    if not isinstance(blocks, list):
        raise ModuleFormatError(
            message=f"config of {source_id} must be a list of blocks",
            details={"source_id": source_id, "received": type(blocks).__name__},
        )

    fragments: List[Fragment] = []
    for i, block in enumerate(blocks):
        where = f"{source_id} config[{i}]"
        if not isinstance(block, dict) or "set" not in block:
            raise ModuleFormatError(
                message=f"config block must be a mapping with 'set' ({where})",
                details={"source_id": source_id, "block": i},
            )
        unknown = sorted(set(block) - _BLOCK_FIELDS)
        if unknown:
            raise ModuleFormatError(
                message=f"unknown fields in {where}: {', '.join(unknown)}",
                details={"source_id": source_id, "block": i, "unknown": unknown},
                hint="Condições aninhadas não são suportadas; combine-as com {all: [...]}",
            )
        if not isinstance(block["set"], dict):
            raise ModuleFormatError(
                message=f"'set' must be a mapping ({where})",
                details={"source_id": source_id, "block": i},
            )

        block_priority = priority
        if "priority" in block:
            block_priority = check_priority(block["priority"], where)

        guard = parse_guard(block["when"]) if block.get("when") is not None else None

        fragments.extend(
            flatten_mapping(
                block["set"],
                source_id=source_id,
                priority=block_priority,
                guard=guard,
            )
        )

    return fragments
