# tests/e2e/test_cli.py
"""
E2E: interface de linha de comando (click).
"""

from __future__ import annotations

import json

import pytest
import yaml
from click.testing import CliRunner

from atlas_compose import __version__
from atlas_compose.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def samba_yaml(modules_dir):
    return str(modules_dir / "samba.yaml")


def _fragments(tmp_path, name, config):
    path = tmp_path / name
    path.write_text(yaml.safe_dump({"config": config}), encoding="utf-8")
    return str(path)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_evaluate_text_output(runner, samba_yaml, tmp_path):
    host = _fragments(tmp_path, "host.yaml", {"services.samba.enable": True})

    result = runner.invoke(cli, ["evaluate", samba_yaml, "-f", host])

    assert result.exit_code == 0, result.output
    assert result.output.startswith("pass ")
    assert ": SUCCESS\n" in result.output
    assert "  start samba-smbd.service\n" in result.output


def test_evaluate_json_output(runner, samba_yaml, tmp_path):
    host = _fragments(tmp_path, "host.yaml", {"services.samba.enable": True})

    result = runner.invoke(cli, ["evaluate", samba_yaml, "-f", host, "--json"])

    diag = json.loads(result.output)
    assert diag["status"] == "success"
    assert len(diag["plan"]) == 5


def test_evaluate_reports_violations(runner, samba_yaml, tmp_path):
    host = _fragments(
        tmp_path,
        "host.yaml",
        {"services.samba.nsswins": True, "services.samba.enableWinbindd": False},
    )

    result = runner.invoke(cli, ["evaluate", samba_yaml, "-f", host])

    assert result.exit_code == 1
    assert "violations (1):" in result.output
    assert "[module:samba]" in result.output


def test_emit_active_then_reevaluate_is_all_noop(runner, samba_yaml, tmp_path):
    host = _fragments(tmp_path, "host.yaml", {"services.samba.enable": True})
    state = tmp_path / "active.json"

    first = runner.invoke(cli, ["evaluate", samba_yaml, "-f", host, "--emit-active", str(state)])
    assert first.exit_code == 0, first.output
    assert len(json.loads(state.read_text(encoding="utf-8"))) == 5

    second = runner.invoke(cli, ["evaluate", samba_yaml, "-f", host, "--active", str(state), "--json"])

    plan = json.loads(second.output)["plan"]
    assert plan and all(step.startswith("noop ") for step in plan)


def test_active_accepts_bare_names(runner, samba_yaml, tmp_path):
    state = tmp_path / "active.json"
    state.write_text(json.dumps(["samba-smbd.service"]), encoding="utf-8")

    result = runner.invoke(cli, ["evaluate", samba_yaml, "--active", str(state), "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["plan"] == ["stop samba-smbd.service"]


def test_invalid_active_file(runner, samba_yaml, tmp_path):
    state = tmp_path / "active.json"
    state.write_text(json.dumps({"name": "x"}), encoding="utf-8")

    result = runner.invoke(cli, ["evaluate", samba_yaml, "--active", str(state)])

    assert result.exit_code == 2
    assert "expected a JSON list of units" in result.output


def test_manifest_dir(runner, samba_yaml, tmp_path):
    out = tmp_path / "manifests"

    result = runner.invoke(cli, ["evaluate", samba_yaml, "--manifest-dir", str(out)])

    assert result.exit_code == 0, result.output
    (manifest_file,) = out.glob("manifest-*.json")
    manifest = json.loads(manifest_file.read_text(encoding="utf-8"))
    assert manifest["stages"]["resolve"]["status"] == "success"


def test_env_prefix(runner, samba_yaml):
    result = runner.invoke(
        cli,
        ["evaluate", samba_yaml, "--env-prefix", "ATLAS_TEST__", "--json"],
        env={"ATLAS_TEST__services__samba__enable": "true"},
    )

    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)["plan"]) == 5


def test_invalid_module_is_a_click_error(runner, tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("module: broken\nunexpected: 1\n", encoding="utf-8")

    result = runner.invoke(cli, ["evaluate", str(broken)])

    assert result.exit_code == 1
    assert "Error: " in result.output
    assert "unknown module fields unexpected" in result.output


def test_options_listing(runner, samba_yaml):
    result = runner.invoke(cli, ["options", samba_yaml])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == "services.samba.enable  bool  merge=bool_or  default=false  [samba]"
    assert "services.samba.securityType  one of [user, share, ads, domain]" in result.output


def test_options_json(runner, samba_yaml):
    result = runner.invoke(cli, ["options", samba_yaml, "--json"])

    assert result.exit_code == 0
    assert isinstance(json.loads(result.output), dict)
