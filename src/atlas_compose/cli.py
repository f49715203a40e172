"""CLI entrypoint for atlas-compose."""

import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import click

from . import __version__
from .core.activation.types import ActiveUnit
from .core.config.errors import ConfigError
from .core.config.loader import load_config
from .core.exceptions import AtlasException
from .core.fragments.sources import ConfigurationSource, EnvironmentSource, FileSource
from .core.modules.module import Composition, compose, load_module
from .core.pipeline.context import ARTIFACTS_KEY
from .core.render.renderer import service_units
from .core.traceability.manifest import save_manifest
from .report.diagnostics import build_diagnostics, render_diagnostics_text
from .runner import run_pass

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load_composition(
    module_files: Sequence[Path],
    fragment_files: Sequence[Path] = (),
    env_prefix: Optional[str] = None,
) -> Composition:
    sources: List[ConfigurationSource] = [FileSource(path=p) for p in fragment_files]
    if env_prefix:
        sources.append(EnvironmentSource(prefix=env_prefix))
    return compose([load_module(p) for p in module_files], sources)


def _load_active(path: Optional[Path]) -> Optional[List[Union[ActiveUnit, str]]]:
    """Lê o estado ativo anterior: lista JSON de nomes ou de objetos ActiveUnit."""
    if path is None:
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="--active")
    if not isinstance(data, list):
        raise click.BadParameter("expected a JSON list of units", param_hint="--active")

    active: List[Union[ActiveUnit, str]] = []
    for entry in data:
        if isinstance(entry, str):
            active.append(entry)
        elif isinstance(entry, dict) and "name" in entry:
            active.append(ActiveUnit.from_dict(entry))
        else:
            raise click.BadParameter(f"invalid unit entry: {entry!r}", param_hint="--active")
    return active


@click.group()
@click.version_option(__version__, prog_name="atlas-compose")
def cli() -> None:
    """atlas-compose - declarative system configuration composer.

    Merge module fragments, resolve conditionals, validate, render
    artifacts and plan service activation.
    """


@cli.command()
@click.argument("modules", nargs=-1, required=True, type=_FILE)
@click.option(
    "--fragments",
    "-f",
    "fragment_files",
    multiple=True,
    type=_FILE,
    help="Fragment file (YAML/JSON) applied after the modules; repeatable",
)
@click.option(
    "--env-prefix",
    default=None,
    metavar="PREFIX",
    help="Read fragments from environment variables with this prefix (e.g. ATLAS_COMPOSE__)",
)
@click.option(
    "--active",
    "active_file",
    type=_FILE,
    default=None,
    help="JSON list of previously active units (names or ActiveUnit objects)",
)
@click.option(
    "--settings",
    "settings_file",
    type=_FILE,
    default=None,
    help="Local settings overrides (YAML/JSON)",
)
@click.option("--json", "output_json", is_flag=True, help="Output diagnostics as JSON")
@click.option(
    "--manifest-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write the pass manifest to this directory",
)
@click.option(
    "--emit-active",
    "emit_active",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the resulting unit set as JSON (input for a later --active)",
)
def evaluate(
    modules: Tuple[Path, ...],
    fragment_files: Tuple[Path, ...],
    env_prefix: Optional[str],
    active_file: Optional[Path],
    settings_file: Optional[Path],
    output_json: bool,
    manifest_dir: Optional[Path],
    emit_active: Optional[Path],
) -> None:
    """Run one evaluation pass over MODULES.

    Exits with status 1 when any stage fails (violations, build or
    activation failures, structural errors).
    """
    try:
        composition = _load_composition(modules, fragment_files, env_prefix)
        settings = load_config(local_path=str(settings_file) if settings_file else None)
    except (AtlasException, ConfigError) as e:
        raise click.ClickException(str(e))

    result, ctx = run_pass(
        composition,
        config=settings,
        previously_active=_load_active(active_file),
    )

    if manifest_dir is not None:
        save_manifest(ctx.manifest, manifest_dir / f"manifest-{ctx.pass_id}.json")

    if emit_active is not None and result.ok and ctx.has_artifact(ARTIFACTS_KEY):
        units = [ActiveUnit.from_descriptor(u).to_dict() for u in service_units(ctx.get_artifact(ARTIFACTS_KEY))]
        emit_active.write_text(json.dumps(units, indent=2, sort_keys=True), encoding="utf-8")

    diag = build_diagnostics(result, ctx)
    if output_json:
        click.echo(json.dumps(diag, indent=2, sort_keys=True, ensure_ascii=False))
    else:
        click.echo(render_diagnostics_text(diag), nl=False)

    sys.exit(0 if result.ok else 1)


@cli.command()
@click.argument("modules", nargs=-1, required=True, type=_FILE)
@click.option("--json", "output_json", is_flag=True, help="Output the schema as JSON")
def options(modules: Tuple[Path, ...], output_json: bool) -> None:
    """List the option schema declared by MODULES."""
    try:
        composition = _load_composition(modules)
    except (AtlasException, ConfigError) as e:
        raise click.ClickException(str(e))

    schema = composition.schema
    if output_json:
        click.echo(json.dumps(schema.to_dict(), indent=2, ensure_ascii=False))
        return

    for option in schema:
        default = json.dumps(option.default) if option.has_default else "-"
        flags = " mandatory" if option.mandatory else ""
        click.echo(
            f"{option.key}  {option.type.describe()}  merge={option.merge.value}"
            f"  default={default}  [{option.declared_by}]{flags}"
        )
