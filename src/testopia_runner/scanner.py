"""Locate report files in a build workspace."""

from __future__ import annotations

from pathlib import Path, PurePath


def split_patterns(include_pattern: str) -> list[str]:
    """Split a comma separated include pattern, dropping blank entries."""
    return [p.strip() for p in include_pattern.split(",") if p.strip()]


def _workspace_pattern(root: Path, pattern: str) -> str:
    """Express `pattern` relative to the workspace.

    Raises:
        ValueError: If the pattern points outside the workspace.
    """
    path = PurePath(pattern)
    if path.is_absolute():
        for base in dict.fromkeys((root.absolute(), root.resolve())):
            if path.is_relative_to(base):
                path = path.relative_to(base)
                break
        else:
            raise ValueError(f"Include pattern {pattern!r} is outside the workspace {root}")
    if ".." in path.parts:
        raise ValueError(f"Include pattern {pattern!r} must not leave the workspace")
    if not path.parts:
        raise ValueError(f"Include pattern {pattern!r} does not name any file")
    return path.as_posix()


def scan(workspace: Path | str, include_pattern: str) -> list[str]:
    """Find files under `workspace` matching `include_pattern`.

    The pattern is one or more comma separated globs, e.g.
    ``**/testng-results.xml, reports/*.xml``. ``**`` matches any number of
    directories. Absolute globs are accepted when they point inside the
    workspace.

    Args:
        workspace: Root directory of the build.
        include_pattern: Comma separated glob patterns.

    Returns:
        Sorted, de-duplicated relative POSIX paths. Empty when nothing matches.

    Raises:
        FileNotFoundError: If the workspace does not exist.
        NotADirectoryError: If the workspace is not a directory.
        ValueError: If a pattern points outside the workspace.
    """
    root = Path(workspace)
    if not root.exists():
        raise FileNotFoundError(f"Workspace not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Workspace is not a directory: {root}")

    found: set[str] = set()
    for pattern in split_patterns(include_pattern):
        for path in root.glob(_workspace_pattern(root, pattern)):
            if path.is_file():
                found.add(path.relative_to(root).as_posix())
    return sorted(found)
