"""Package version.

A source checkout reports the ``[project]`` version of its own
pyproject.toml, so editable installs never lag behind a bump. Anywhere
else the installed distribution metadata is used.
"""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "mdx-htmx"
FALLBACK_VERSION = "0.0.0"

_SOURCE_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def read_project_version(pyproject: Path) -> str | None:
    """``[project].version`` of a pyproject.toml naming this distribution."""
    if not pyproject.is_file():
        return None
    project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
    if project.get("name") != DISTRIBUTION:
        return None
    return project.get("version")


def get_version() -> str:
    found = read_project_version(_SOURCE_PYPROJECT)
    if found is not None:
        return found
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        return FALLBACK_VERSION


__version__ = get_version()
