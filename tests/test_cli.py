import json

import pytest
from typer.testing import CliRunner

from scriptinspector import __version__
from scriptinspector.cli import app
from scriptinspector.config.paths import get_user_config_file
from scriptinspector.core.models import CycleReport

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_log_setup(mocker):
    # Loguru sinks would otherwise point at CliRunner's short-lived streams
    mocker.patch("scriptinspector.cli.setup_logging")


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_inspect_without_cycles(project, mark_bundle):
    mark_bundle(project / "assets" / "a", priority=2)
    result = runner.invoke(app, ["inspect", "--root", str(project), "--no-cycles"])
    assert result.exit_code == 0, result.stdout
    assert "Scripts: 4  Issues: 0" in result.stdout
    assert "Priority=2" in result.stdout
    assert "  a  path: assets/a" in result.stdout
    assert "  assets/" in result.stdout
    assert "x.ts" in result.stdout


def test_inspect_with_cycles_marks_tree(project, mocker):
    mocker.patch("scriptinspector.plugins.madge.MadgeCycleDetector.check_circular",
                 return_value=CycleReport(success=True, cycles=["a/x.ts > a/y.ts > a/x.ts"]))
    result = runner.invoke(app, ["inspect", "--root", str(project)])
    assert result.exit_code == 0, result.stdout
    assert "Scripts: 4  Issues: 2" in result.stdout
    assert "1. a/x.ts > a/y.ts > a/x.ts" in result.stdout
    assert "!     x.ts" in result.stdout
    assert "analyzed=4" in result.stdout


def test_inspect_unknown_detector(project):
    result = runner.invoke(app, ["inspect", "--root", str(project), "--detector", "nope"])
    assert result.exit_code == 1


def test_inspect_missing_root(tmp_path):
    result = runner.invoke(app, ["inspect", "--root", str(tmp_path / "missing"), "--no-cycles"])
    assert result.exit_code == 1


def test_bundles_command(project, mark_bundle):
    mark_bundle(project / "assets" / "a", priority=1)
    mark_bundle(project / "assets" / "ui", priority=5)
    result = runner.invoke(app, ["bundles", "--assets", str(project / "assets")])
    assert result.exit_code == 0, result.stdout
    assert "Bundles: 2" in result.stdout
    assert result.stdout.index("Priority=5") < result.stdout.index("Priority=1")


def test_config_write_defaults(isolated_user_dir):
    result = runner.invoke(app, ["config", "--write-defaults"])
    assert result.exit_code == 0, result.stdout
    saved = json.loads(get_user_config_file().read_text(encoding="utf-8"))
    assert saved["cycle_detector"] == "madge"
