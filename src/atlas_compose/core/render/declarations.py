# src/atlas_compose/core/render/declarations.py
"""
Declarações de renderização (seção `render` dos módulos).

Exemplo (módulo de serviço):

    render:
      texts:
        - id: etc/samba/smb.conf
          subtree: services.samba
          preamble: ["[global]"]
          fields: [securityType, {line: "passwd program = /run/wrappers/bin/passwd %u"},
                   syncPasswordsByPam, invalidUsers, extraConfig, shares]
          labels: {securityType: security}
          replace: services.samba.configText
          enable: services.samba.enable
          disabled_body: "# Samba is disabled."
      units:
        - id: samba
          enable: services.samba.enable
          package: services.samba.package
          setup: {name: samba-setup.service, start: "mkdir -p /var/lib/samba"}
          daemons:
            - {name: samba-smbd.service, start: "${package}/sbin/smbd -F"}
            - {name: samba-nmbd.service, start: "${package}/sbin/nmbd -F",
               when: services.samba.enableNmbd}
          target: {name: samba.target, description: Samba Server}
          restart_triggers: [etc/samba/smb.conf]

Valores marcados como "path" referenciam a árvore resolvida; os demais
são literais.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from atlas_compose.core.exceptions import ModuleFormatError
from atlas_compose.core.schema.paths import KeyPath, as_path, parse_path

DEFAULT_NETWORK_UNIT = "network.target"


def _fail(kind: str, source_id: str, message: str, **details: Any) -> ModuleFormatError:
    return ModuleFormatError(
        message=f"invalid {kind} declaration in {source_id or 'module'}: {message}",
        details={"source_id": source_id, "declaration": kind, **details},
    )


def _check_fields(kind: str, data: Any, allowed: Iterable[str], required: Iterable[str], source_id: str) -> None:
    if not isinstance(data, dict):
        raise _fail(kind, source_id, "must be a mapping", received=type(data).__name__)
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise _fail(kind, source_id, f"unknown fields {', '.join(unknown)}", unknown=unknown)
    missing = [k for k in required if k not in data]
    if missing:
        raise _fail(kind, source_id, f"missing fields {', '.join(missing)}", missing=missing)


def _opt_path(kind: str, raw: Any, source_id: str) -> Optional[KeyPath]:
    if raw is None:
        return None
    try:
        return as_path(raw)
    except ValueError:
        raise _fail(kind, source_id, f"invalid key path {raw!r}") from None


def _str_list(kind: str, raw: Any, source_id: str) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or any(not isinstance(x, str) for x in raw):
        raise _fail(kind, source_id, "expected a list of strings", received=raw)
    return tuple(raw)


# ---------------------------------------------------------------------------
# Receitas
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GatedInputs:
    """
    Inputs incluídos quando `when` é verdadeiro.

    `inputs` são nomes literais; `sources` são paths cujos valores não
    nulos entram como inputs (pacotes configuráveis, ex.: python27.tk).
    """
    when: KeyPath
    inputs: Tuple[str, ...] = ()
    sources: Tuple[KeyPath, ...] = ()


@dataclass(frozen=True)
class OutputDeclaration:
    name: str
    when: Optional[KeyPath] = None


@dataclass(frozen=True)
class RecipeDeclaration:
    """
    Projeção de uma receita de build.

    Campos path: version, source_url, source_sha256, patches, inputs, steps.*,
                 optional_inputs[].from
    Campos literais: id, name, optional_inputs[].inputs, env, outputs[].name
    """
    id: str
    name: str
    version: KeyPath
    source_url: Optional[KeyPath] = None
    source_sha256: Optional[KeyPath] = None
    patches: Optional[KeyPath] = None
    inputs: Optional[KeyPath] = None
    optional_inputs: Tuple[GatedInputs, ...] = ()
    steps: Tuple[Tuple[str, KeyPath], ...] = ()
    env: Tuple[Tuple[str, str], ...] = ()
    outputs: Tuple[OutputDeclaration, ...] = (OutputDeclaration("out"),)

    @classmethod
    def from_dict(cls, data: Any, *, source_id: str = "") -> "RecipeDeclaration":
        kind = "recipe"
        _check_fields(
            kind,
            data,
            {"id", "name", "version", "source", "patches", "inputs",
             "optional_inputs", "steps", "env", "outputs"},
            ("id", "name", "version"),
            source_id,
        )

        source = data.get("source") or {}
        if not isinstance(source, dict) or set(source) - {"url", "sha256"}:
            raise _fail(kind, source_id, "source must be {url, sha256}")

        gated: List[GatedInputs] = []
        for item in data.get("optional_inputs") or []:
            _check_fields(kind, item, {"when", "inputs", "from"}, ("when",), source_id)
            if "inputs" not in item and "from" not in item:
                raise _fail(kind, source_id, "optional_inputs entry needs inputs or from")
            gated.append(
                GatedInputs(
                    when=_opt_path(kind, item["when"], source_id),
                    inputs=_str_list(kind, item.get("inputs"), source_id),
                    sources=tuple(
                        _opt_path(kind, p, source_id)
                        for p in _str_list(kind, item.get("from"), source_id)
                    ),
                )
            )

        steps = data.get("steps") or {}
        if not isinstance(steps, dict):
            raise _fail(kind, source_id, "steps must map step name to a key path")

        env = data.get("env") or {}
        if not isinstance(env, dict):
            raise _fail(kind, source_id, "env must be a mapping")

        outputs: List[OutputDeclaration] = []
        for item in data.get("outputs") or [{"name": "out"}]:
            if isinstance(item, str):
                item = {"name": item}
            _check_fields(kind, item, {"name", "when"}, ("name",), source_id)
            outputs.append(
                OutputDeclaration(
                    name=str(item["name"]),
                    when=_opt_path(kind, item.get("when"), source_id),
                )
            )

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            version=_opt_path(kind, data["version"], source_id),
            source_url=_opt_path(kind, source.get("url"), source_id),
            source_sha256=_opt_path(kind, source.get("sha256"), source_id),
            patches=_opt_path(kind, data.get("patches"), source_id),
            inputs=_opt_path(kind, data.get("inputs"), source_id),
            optional_inputs=tuple(gated),
            steps=tuple((str(k), _opt_path(kind, v, source_id)) for k, v in steps.items()),
            env=tuple((str(k), str(v)) for k, v in env.items()),
            outputs=tuple(outputs),
        )


# ---------------------------------------------------------------------------
# Textos
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextLine:
    """Linha fixa intercalada entre os campos (`{line: "..."}` no YAML)."""
    text: str


TextField = Union[str, TextLine]


def _text_fields(kind: str, raw: Any, source_id: str) -> Tuple[TextField, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise _fail(kind, source_id, "fields must be a list", received=raw)
    out: List[TextField] = []
    for item in raw:
        if isinstance(item, dict) and set(item) == {"line"} and isinstance(item["line"], str):
            out.append(TextLine(item["line"]))
        elif isinstance(item, str):
            _opt_path(kind, item, source_id)
            out.append(item)
        else:
            raise _fail(kind, source_id, "field must be a relative key or {line: text}", received=item)
    return tuple(out)


@dataclass(frozen=True)
class TextDeclaration:
    """
    Corpo de arquivo `label = valor` projetado de uma subárvore.

    - fields: chaves relativas incluídas, na ordem dada, intercaladas com
      linhas fixas `TextLine` (todas as opções da subárvore quando vazio)
    - labels: chave relativa → rótulo (default: a própria chave)
    - replace: path cujo valor não nulo substitui o corpo gerado
    - enable / disabled_body: corpo alternativo quando a flag é falsa
    """
    id: str
    subtree: KeyPath
    preamble: Tuple[str, ...] = ()
    fields: Tuple[TextField, ...] = ()
    labels: Tuple[Tuple[str, str], ...] = ()
    replace: Optional[KeyPath] = None
    enable: Optional[KeyPath] = None
    disabled_body: str = ""

    def label_for(self, relative: str) -> str:
        return dict(self.labels).get(relative, relative)

    def field_keys(self) -> List[str]:
        return [f for f in self.fields if isinstance(f, str)]

    def field_paths(self) -> List[KeyPath]:
        return [self.subtree + parse_path(f) for f in self.field_keys()]

    @classmethod
    def from_dict(cls, data: Any, *, source_id: str = "") -> "TextDeclaration":
        kind = "text"
        _check_fields(
            kind,
            data,
            {"id", "subtree", "preamble", "fields", "labels", "replace", "enable", "disabled_body"},
            ("id", "subtree"),
            source_id,
        )
        labels = data.get("labels") or {}
        if not isinstance(labels, dict):
            raise _fail(kind, source_id, "labels must be a mapping")
        fields = _text_fields(kind, data.get("fields"), source_id)
        keys = [f for f in fields if isinstance(f, str)]
        if keys:
            stray = sorted(str(k) for k in labels if k not in keys)
            if stray:
                raise _fail(kind, source_id, f"labels for unlisted fields {', '.join(stray)}", unknown=stray)
        return cls(
            id=str(data["id"]),
            subtree=_opt_path(kind, data["subtree"], source_id),
            preamble=_str_list(kind, data.get("preamble"), source_id),
            fields=fields,
            labels=tuple((str(k), str(v)) for k, v in labels.items()),
            replace=_opt_path(kind, data.get("replace"), source_id),
            enable=_opt_path(kind, data.get("enable"), source_id),
            disabled_body=str(data.get("disabled_body") or ""),
        )


# ---------------------------------------------------------------------------
# Units de serviço
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommandUnit:
    name: str
    description: str = ""
    start: Optional[str] = None
    reload: Optional[str] = None
    when: Optional[KeyPath] = None

    @classmethod
    def from_dict(cls, data: Any, *, source_id: str = "", gated: bool = True) -> "CommandUnit":
        kind = "unit"
        allowed = {"name", "description", "start", "reload"}
        if gated:
            allowed.add("when")
        _check_fields(kind, data, allowed, ("name",), source_id)
        return cls(
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            start=data.get("start"),
            reload=data.get("reload"),
            when=_opt_path(kind, data.get("when"), source_id),
        )


@dataclass(frozen=True)
class UnitDeclaration:
    """
    Grupo de units de um serviço: setup + daemons + target opcional.

    Comandos aceitam `${package}`, substituído pelo valor do path `package`.
    """
    id: str
    enable: KeyPath
    setup: CommandUnit
    daemons: Tuple[CommandUnit, ...] = ()
    target: Optional[CommandUnit] = None
    package: Optional[KeyPath] = None
    network: str = DEFAULT_NETWORK_UNIT
    restart_triggers: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, *, source_id: str = "") -> "UnitDeclaration":
        kind = "unit"
        _check_fields(
            kind,
            data,
            {"id", "enable", "setup", "daemons", "target", "package", "network", "restart_triggers"},
            ("id", "enable", "setup"),
            source_id,
        )
        daemons = data.get("daemons") or []
        if not isinstance(daemons, list):
            raise _fail(kind, source_id, "daemons must be a list")
        target = data.get("target")
        return cls(
            id=str(data["id"]),
            enable=_opt_path(kind, data["enable"], source_id),
            setup=CommandUnit.from_dict(data["setup"], source_id=source_id, gated=False),
            daemons=tuple(CommandUnit.from_dict(d, source_id=source_id) for d in daemons),
            target=CommandUnit.from_dict(target, source_id=source_id, gated=False) if target else None,
            package=_opt_path(kind, data.get("package"), source_id),
            network=str(data.get("network") or DEFAULT_NETWORK_UNIT),
            restart_triggers=_str_list(kind, data.get("restart_triggers"), source_id),
        )


@dataclass(frozen=True)
class RenderDeclarations:
    recipes: Tuple[RecipeDeclaration, ...] = ()
    texts: Tuple[TextDeclaration, ...] = ()
    units: Tuple[UnitDeclaration, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], *, source_id: str = "") -> "RenderDeclarations":
        if not data:
            return cls()
        _check_fields("render", data, {"recipes", "texts", "units"}, (), source_id)
        for section in ("recipes", "texts", "units"):
            if not isinstance(data.get(section) or [], list):
                raise _fail("render", source_id, f"{section} must be a list")
        return cls(
            recipes=tuple(RecipeDeclaration.from_dict(d, source_id=source_id) for d in data.get("recipes") or []),
            texts=tuple(TextDeclaration.from_dict(d, source_id=source_id) for d in data.get("texts") or []),
            units=tuple(UnitDeclaration.from_dict(d, source_id=source_id) for d in data.get("units") or []),
        )

    def extend(self, other: "RenderDeclarations") -> "RenderDeclarations":
        return RenderDeclarations(
            recipes=self.recipes + other.recipes,
            texts=self.texts + other.texts,
            units=self.units + other.units,
        )

    def referenced_paths(self) -> List[KeyPath]:
        """Paths referenciados pelas declarações (usado na composição)."""
        out: List[KeyPath] = []
        for r in self.recipes:
            out.extend(p for p in (r.version, r.source_url, r.source_sha256, r.patches, r.inputs) if p)
            for g in r.optional_inputs:
                out.append(g.when)
                out.extend(g.sources)
            out.extend(p for _, p in r.steps)
            out.extend(o.when for o in r.outputs if o.when)
        for t in self.texts:
            out.extend(p for p in (t.replace, t.enable) if p)
            out.extend(t.field_paths())
            if not t.fields:
                out.extend(t.subtree + parse_path(label) for label, _ in t.labels)
        for u in self.units:
            out.extend(p for p in (u.enable, u.package) if p)
            out.extend(d.when for d in u.daemons if d.when)
        return out

    def referenced_subtrees(self) -> List[KeyPath]:
        return [t.subtree for t in self.texts]
