"""Expose the project version for health checks and metadata endpoints."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

DISTRIBUTION_NAME: Final = "incometax"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[3] / "pyproject.toml"

_SECTION = re.compile(r"^\[(?P<name>[^\]]+)\]\s*$")
_VERSION = re.compile(r'^version\s*=\s*"(?P<version>[^"]+)"')


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the installed version, or the one declared in ``pyproject.toml``."""

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return read_pyproject_version(PYPROJECT_PATH)


def read_pyproject_version(path: Path) -> str:
    """Return ``[project].version`` from the given ``pyproject.toml``."""

    if not path.exists():
        raise RuntimeError(f"Unable to locate project metadata at {path}")

    section: str | None = None
    for line in path.read_text(encoding="utf-8").splitlines():
        header = _SECTION.match(line.strip())
        if header:
            section = header.group("name")
            continue
        if section != "project":
            continue
        match = _VERSION.match(line.strip())
        if match:
            return match.group("version")

    raise RuntimeError("Unable to determine project version from pyproject.toml")


__all__ = ["get_project_version", "read_pyproject_version"]
