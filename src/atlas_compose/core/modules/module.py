# src/atlas_compose/core/modules/module.py
"""
Módulos declarativos.

Um módulo é um mapping YAML/JSON que declara opções, asserções, blocos de
configuração e declarações de renderização:

    module: samba
    options:
      services.samba.enable: {type: bool, default: false, merge: bool_or}
    assertions:
      - assert: {implies: [services.samba.nsswins, services.samba.enableWinbindd]}
        message: "..."
    config:
      - set: {services.samba.enableNmbd: true}
        when: services.samba.enable
        priority: 50
    render:
      texts: [...]
      units: [...]

`compose(modules, sources)` monta a Composition de uma passada: schema na
ordem dos módulos, um FragmentStore novo com um lote por módulo e um lote
por fonte, asserções e declarações de renderização.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence, Set, Tuple

from atlas_compose.core.config.loader import load_mapping_file
from atlas_compose.core.exceptions import ModuleFormatError
from atlas_compose.core.fragments.fragment import PRIORITY_NORMAL, Fragment, parse_config_blocks
from atlas_compose.core.fragments.sources import ConfigurationSource
from atlas_compose.core.fragments.store import FragmentStore
from atlas_compose.core.merge.engine import unknown_key
from atlas_compose.core.render.declarations import RenderDeclarations
from atlas_compose.core.schema.options import Option, OptionSchema, option_from_dict
from atlas_compose.core.validation.assertions import Assertion, assertion_from_dict

_MODULE_FIELDS = {"module", "description", "options", "assertions", "config", "render"}


@dataclass(frozen=True)
class Module:
    name: str
    options: Tuple[Option, ...] = ()
    assertions: Tuple[Assertion, ...] = ()
    fragments: Tuple[Fragment, ...] = ()
    render: RenderDeclarations = field(default_factory=RenderDeclarations)
    description: str = ""

    @property
    def source_id(self) -> str:
        return f"module:{self.name}"


def module_from_dict(data: Mapping[str, Any], *, origin: str = "") -> Module:
    """
    Raises:
        ModuleFormatError: Estrutura inválida.
        SchemaDeclarationError: Declaração de opção inválida.
    """
    where = origin or "module"
    if not isinstance(data, dict):
        raise ModuleFormatError(message=f"{where}: module must be a mapping", details={"origin": origin})

    unknown = sorted(set(data) - _MODULE_FIELDS)
    if unknown:
        raise ModuleFormatError(
            message=f"{where}: unknown module fields {', '.join(unknown)}",
            details={"origin": origin, "unknown": unknown},
        )

    name = data.get("module")
    if not isinstance(name, str) or not name.strip():
        raise ModuleFormatError(
            message=f"{where}: 'module' must be a non-empty name",
            details={"origin": origin},
        )
    source_id = f"module:{name}"

    raw_options = data.get("options") or {}
    if not isinstance(raw_options, dict):
        raise ModuleFormatError(message=f"{where}: options must be a mapping", details={"origin": origin})
    options = tuple(
        option_from_dict(str(path), decl, declared_by=name)
        for path, decl in raw_options.items()
    )

    raw_assertions = data.get("assertions") or []
    if not isinstance(raw_assertions, list):
        raise ModuleFormatError(message=f"{where}: assertions must be a list", details={"origin": origin})
    assertions = tuple(assertion_from_dict(a, source_id=source_id) for a in raw_assertions)

    fragments = tuple(
        parse_config_blocks(data.get("config"), source_id=source_id, priority=PRIORITY_NORMAL)
    )

    return Module(
        name=name,
        options=options,
        assertions=assertions,
        fragments=fragments,
        render=RenderDeclarations.from_dict(data.get("render"), source_id=source_id),
        description=str(data.get("description") or ""),
    )


def load_module(path: Path) -> Module:
    path = Path(path)
    return module_from_dict(load_mapping_file(path), origin=str(path))


@dataclass
class Composition:
    """Entradas completas de uma passada de avaliação."""
    schema: OptionSchema
    store: FragmentStore
    assertions: List[Assertion] = field(default_factory=list)
    render: RenderDeclarations = field(default_factory=RenderDeclarations)
    modules: List[str] = field(default_factory=list)


def compose(
    modules: Sequence[Module],
    sources: Iterable[ConfigurationSource] = (),
) -> Composition:
    """
    Raises:
        ModuleFormatError: Nomes de módulo duplicados.
        SchemaDeclarationError: Conflito de declaração entre módulos.
        UnknownKeyError: Declaração de renderização referencia path ou
            subárvore não declarados (inclui os campos de textos).
    """
    seen: Set[str] = set()
    for m in modules:
        if m.name in seen:
            raise ModuleFormatError(
                message=f"duplicate module name: {m.name}",
                details={"module": m.name},
            )
        seen.add(m.name)

    schema = OptionSchema()
    for m in modules:
        for option in m.options:
            schema.declare(option)

    render = RenderDeclarations()
    for m in modules:
        render = render.extend(m.render)
    for subtree in render.referenced_subtrees():
        if not schema.is_prefix(subtree) and subtree not in schema:
            raise unknown_key(subtree, schema, referenced_by="render declarations")
    for path in render.referenced_paths():
        if path not in schema:
            raise unknown_key(path, schema, referenced_by="render declarations")

    store = FragmentStore()
    assertions: List[Assertion] = []
    for m in modules:
        store.submit(m.fragments, source_id=m.source_id)
        assertions.extend(m.assertions)

    for source in sources:
        store.submit_source(source)

    return Composition(
        schema=schema,
        store=store,
        assertions=assertions,
        render=render,
        modules=[m.name for m in modules],
    )
