"""Shared test fixtures for the histparse test suite."""

import pytest


@pytest.fixture
def write_history(tmp_path):
    """Write history lines to a file and return its path."""

    def _write(lines, name=".zsh_history"):
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _write
