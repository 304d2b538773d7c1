import textwrap
from pathlib import Path

import pytest

from cookbook.runner import ExecutionContext
from cookbook.ui.console import QUIET, Console, set_console


@pytest.fixture(autouse=True)
def quiet_console():
    """Keep the global console quiet so tests only see echoed output."""
    console = Console(verbosity=QUIET)
    set_console(console)
    return console


@pytest.fixture
def write(tmp_path):
    """Write a dedented text file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def context(tmp_path, quiet_console):
    return ExecutionContext.create(
        {},
        script_dir=tmp_path / "scripts",
        console=quiet_console,
        cwd=tmp_path,
    )
