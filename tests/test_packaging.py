from __future__ import annotations

from pathlib import Path


def test_pyproject_declares_cli_and_test_extra() -> None:
    pyproject = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text(encoding="utf-8")
    assert "[project.optional-dependencies]" in pyproject
    assert "pytest" in pyproject
    assert 'afsdk = "afsdk.cli:main"' in pyproject
    assert "requests" in pyproject
    assert "PyYAML" in pyproject
