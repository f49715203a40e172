# src/atlas_compose/core/fragments/store.py
"""
Fragment Store: coleção acumulativa de fragmentos de uma passada.

Invariantes:
    - Somente acumulação: fragmentos nunca são removidos nem alterados
    - Cada submissão forma um lote; `seq` é o número do lote e `index` a
      posição do fragmento dentro dele
    - Valores são copiados na submissão (mutações externas não vazam)
    - Uma nova passada sempre começa com um store novo
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from atlas_compose.core.config.hashing import compute_config_hash

from .fragment import Fragment


@dataclass
class FragmentStore:
    _fragments: List[Fragment] = field(default_factory=list, init=False, repr=False)
    _sources: List[str] = field(default_factory=list, init=False, repr=False)

    def submit(self, fragments: Iterable[Fragment], *, source_id: str = "") -> int:
        """
        Registra um lote de fragmentos e retorna o `seq` atribuído.

        Um lote vazio ainda consome um número de sequência.
        """
        seq = len(self._sources)
        batch = list(fragments)
        label = source_id or (batch[0].source_id if batch else f"batch-{seq}")
        self._sources.append(label)
        for index, frag in enumerate(batch):
            self._fragments.append(
                replace(frag, value=deepcopy(frag.value), seq=seq, index=index)
            )
        return seq

    def submit_source(self, source: Any) -> int:
        """Submete todos os fragmentos de uma ConfigurationSource como um lote."""
        return self.submit(source.fragments(), source_id=source.source_id)

    @property
    def fragments(self) -> Tuple[Fragment, ...]:
        return tuple(self._fragments)

    @property
    def sources(self) -> Tuple[str, ...]:
        return tuple(self._sources)

    def unconditional(self) -> List[Fragment]:
        return [f for f in self._fragments if f.guard is None]

    def conditional(self) -> List[Fragment]:
        return [f for f in self._fragments if f.guard is not None]

    def __len__(self) -> int:
        return len(self._fragments)

    def __iter__(self) -> Iterator[Fragment]:
        return iter(tuple(self._fragments))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources": list(self._sources),
            "fragments": [f.to_dict() for f in self._fragments],
        }

    def digest(self) -> str:
        return compute_config_hash(self.to_dict())
