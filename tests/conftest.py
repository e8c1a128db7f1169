import json
from pathlib import Path

import pytest

from scriptinspector.config import loader


@pytest.fixture(autouse=True)
def isolated_user_dir(tmp_path_factory, monkeypatch):
    """Keep config and log files out of the real user directory."""
    home = tmp_path_factory.mktemp("user_home")
    monkeypatch.setenv("SCRIPTINSPECTOR_HOME", str(home))
    loader.reset_config_cache()
    yield home
    loader.reset_config_cache()


@pytest.fixture
def write_file():
    def _write(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def mark_bundle(write_file):
    """Creates <dir> and its <dir>.meta sidecar."""
    def _mark(dir_path: Path, is_bundle=True, priority=None, raw=None, **user_data) -> Path:
        dir_path.mkdir(parents=True, exist_ok=True)
        meta_path = dir_path.with_name(dir_path.name + ".meta")
        if raw is not None:
            write_file(meta_path, raw)
            return dir_path
        data = {"isBundle": is_bundle, **user_data}
        if priority is not None:
            data["priority"] = priority
        write_file(meta_path, json.dumps({"ver": "1.2.0", "importer": "directory",
                                          "uuid": f"uuid-{dir_path.name}", "userData": data}))
        return dir_path
    return _mark


@pytest.fixture
def project(tmp_path, write_file):
    """A small project: scripts under assets/, plus noise that must never be indexed."""
    root = tmp_path / "proj"
    write_file(root / "assets" / "a" / "x.ts", "import './y';\n")
    write_file(root / "assets" / "a" / "y.ts", "import './x';\n")
    write_file(root / "assets" / "ui" / "Panel.tsx", "export const Panel = 1;\n")
    write_file(root / "assets" / "ui" / "panel.png", "png")
    write_file(root / "scripts" / "build.ts", "")
    write_file(root / "node_modules" / "lib" / "index.ts", "")
    write_file(root / "assets" / "node_modules" / "deep.ts", "")
    write_file(root / ".git" / "hooks" / "hook.ts", "")
    write_file(root / "README.md", "")
    return root.resolve()


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
