# src/atlas_compose/core/render/units.py
"""
Renderer de units de serviço.

Quando a flag `enable` é verdadeira, emite:
    - a unit de setup (preparação única e idempotente; `after` rede)
    - um descritor por daemon habilitado (`requires` setup; `after` rede + setup)
    - opcionalmente, a unit target que agrupa setup e daemons

Daemons reiniciam quando algum artefato em `restart_triggers` muda: o
digest de cada gatilho renderizado nesta passada fica em `trigger_digests`.
"""

from __future__ import annotations

from string import Template
from typing import Any, Dict, List, Mapping, Optional

from atlas_compose.core.config.hashing import canonical_json
from atlas_compose.core.exceptions import UnknownArtifactError
from atlas_compose.core.merge.engine import ResolvedTree

from .declarations import CommandUnit, UnitDeclaration
from .types import ArtifactKind, DerivedArtifact, ServiceUnitDescriptor


def unit_artifact_id(name: str) -> str:
    return f"unit:{name}"


def _command(raw: Optional[str], substitutions: Mapping[str, str]) -> Optional[str]:
    if raw is None:
        return None
    return Template(raw).safe_substitute(substitutions)


def _artifact(descriptor: ServiceUnitDescriptor) -> DerivedArtifact:
    return DerivedArtifact(
        id=unit_artifact_id(descriptor.name),
        kind=ArtifactKind.SERVICE_UNIT,
        content=canonical_json(descriptor.to_dict()),
        depends_on=frozenset(descriptor.restart_triggers),
        payload=descriptor,
    )


def render_units(
    tree: ResolvedTree,
    decl: UnitDeclaration,
    rendered: Mapping[str, DerivedArtifact],
) -> List[DerivedArtifact]:
    """
    Raises:
        UnknownArtifactError: Gatilho de restart sem artefato renderizado.
    """
    if tree.get(decl.enable) is not True:
        return []

    digests: Dict[str, str] = {}
    for trigger in decl.restart_triggers:
        if trigger not in rendered:
            raise UnknownArtifactError(
                message=f"restart trigger of {decl.id} references unknown artifact: {trigger}",
                details={"unit_group": decl.id, "artifact": trigger, "known": sorted(rendered)},
            )
        digests[trigger] = rendered[trigger].digest

    package: Any = tree.get(decl.package) if decl.package is not None else None
    substitutions = {"package": "" if package is None else str(package)}

    setup_name = decl.setup.name
    descriptors: List[ServiceUnitDescriptor] = [
        ServiceUnitDescriptor(
            name=setup_name,
            description=decl.setup.description,
            start=_command(decl.setup.start, substitutions),
            reload=_command(decl.setup.reload, substitutions),
            after=(decl.network,),
        )
    ]

    enabled: List[CommandUnit] = [
        d for d in decl.daemons if d.when is None or tree.get(d.when) is True
    ]
    for daemon in enabled:
        descriptors.append(
            ServiceUnitDescriptor(
                name=daemon.name,
                description=daemon.description,
                start=_command(daemon.start, substitutions),
                reload=_command(daemon.reload, substitutions),
                requires=(setup_name,),
                after=(decl.network, setup_name),
                restart_triggers=decl.restart_triggers,
                trigger_digests=digests,
            )
        )

    if decl.target is not None:
        members = tuple(d.name for d in enabled)
        descriptors.append(
            ServiceUnitDescriptor(
                name=decl.target.name,
                description=decl.target.description,
                requires=(setup_name,) + members,
                after=(decl.network, setup_name) + members,
            )
        )

    return [_artifact(d) for d in descriptors]
