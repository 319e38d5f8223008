from __future__ import annotations

from pathlib import Path
import tomllib


def _pyproject() -> dict:
    pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    return tomllib.loads(pyproject_path.read_text(encoding="utf-8"))


def test_console_script_points_at_cli_main() -> None:
    scripts = _pyproject().get("project", {}).get("scripts", {})
    assert scripts.get("redisbridge") == "redisbridge.cli:main"


def test_defaults_are_shipped_as_package_data() -> None:
    package_data = _pyproject().get("tool", {}).get("setuptools", {}).get("package-data", {})
    assert "defaults.yml" in package_data.get("redisbridge.config", [])


def test_runtime_and_test_dependencies() -> None:
    project = _pyproject().get("project", {})
    runtime = [str(item) for item in project.get("dependencies", [])]
    assert any(item.startswith("redis") for item in runtime)
    assert any(item.startswith("PyYAML") for item in runtime)
    test_extra = project.get("optional-dependencies", {}).get("test", [])
    assert any(str(item).startswith("pytest") for item in test_extra)
