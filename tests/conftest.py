from pathlib import Path

import pytest

from patchwise import config
from patchwise.debug_logger import DebugLogger
from patchwise.tools.search import invalidate_file_cache
from patchwise.workspace import ProjectContext


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Reset the logger singleton, safety override and search cache around each test."""
    DebugLogger._instance = None
    DebugLogger._loggers = {}
    config.set_shell_safety_mode(None)
    monkeypatch.delenv("PATCHWISE_SHELL_SAFETY", raising=False)
    invalidate_file_cache()
    yield
    instance = DebugLogger._instance
    if instance and instance.enabled:
        instance.close()
    DebugLogger._instance = None
    DebugLogger._loggers = {}
    config.set_shell_safety_mode(None)
    invalidate_file_cache()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small mixed-language project."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "server.js").write_text(
        "const express = require('express');\n"
        "const app = express();\n"
        "\n"
        "app.get('/health', (req, res) => res.send('ok'));\n"
        "app.listen(3000);\n",
        encoding="utf-8",
    )
    (tmp_path / "src" / "utils.py").write_text(
        "def parse_config(path):\n"
        "    return open(path).read()\n",
        encoding="utf-8",
    )
    (tmp_path / "package.json").write_text(
        '{\n  "name": "demo",\n  "version": "1.0.0"\n}\n',
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def context(project: Path) -> ProjectContext:
    return ProjectContext(root=project, home=project.parent)
