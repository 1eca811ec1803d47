from __future__ import annotations

from pathlib import Path
from typing import Iterable


def _walk_upwards(start_dir: Path, marker: str) -> Path | None:
    """Return the first parent directory containing ``marker`` or ``None``."""

    current_dir = start_dir
    while True:
        if (current_dir / marker).exists():
            return current_dir
        if current_dir == current_dir.parent:
            return None
        current_dir = current_dir.parent


def find_project_root(marker: str = "pyproject.toml") -> Path:
    """Find the project root, trying the working directory before this module's location."""

    start_points: Iterable[Path] = (
        Path.cwd(),
        Path(__file__).resolve().parent,
    )
    for start in start_points:
        result = _walk_upwards(start, marker)
        if result is not None:
            return result
    raise FileNotFoundError(f"Project root marker '{marker}' not found.")
