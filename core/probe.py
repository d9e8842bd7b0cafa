"""File probes over a project tree.

Stateless helpers: every function takes the project root explicitly.
Directory walks prune build output and dependency caches using pathspec
(.gitignore syntax) and stop at the first match, so detectors stay cheap
even on large checkouts.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pathspec

logger = logging.getLogger("nativefire.probe")

# Directories never descended into while searching.
# Uses .gitignore syntax (pathspec gitwildmatch).
DEFAULT_IGNORE_PATTERNS = [
    # VCS
    ".git/",
    ".hg/",
    ".svn/",
    # JS / Node / Flutter
    "node_modules/",
    ".dart_tool/",
    # Apple / Xcode
    "Pods/",
    "Carthage/",
    "DerivedData/",
    ".build/",
    "xcuserdata/",
    # Android / Gradle
    ".gradle/",
    ".idea/",
    ".cxx/",
    # Python
    "__pycache__/",
    "venv/",
    ".venv/",
    # Build artifacts
    "build/",
]

# Depth bound for tree searches, counted in directory levels below the root.
MAX_SEARCH_DEPTH = 8

_DEFAULT_SPEC = pathspec.PathSpec.from_lines("gitwildmatch", DEFAULT_IGNORE_PATTERNS)


def should_skip_dir(rel_dir: str, spec: pathspec.PathSpec | None = None) -> bool:
    """Check if a directory (path relative to root, forward slashes) is pruned."""
    spec = spec or _DEFAULT_SPEC
    return spec.match_file(rel_dir.rstrip("/") + "/")


def file_exists(root: Path, rel_path: str) -> bool:
    """True if root/rel_path exists (file or directory)."""
    return (root / rel_path).exists()


def dir_exists(root: Path, rel_path: str) -> bool:
    return (root / rel_path).is_dir()


def _walk(
    root: Path, max_depth: int, spec: pathspec.PathSpec,
) -> Iterator[Path]:
    """Yield entries under root, shallow entries of each directory first.

    Each directory's children (subdirectories and files, sorted by name)
    are yielded before the walk descends into it.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)
        depth = len(rel_dir.parts)

        kept: list[str] = []
        for name in sorted(dirnames):
            rel = (rel_dir / name).as_posix()
            if should_skip_dir(rel, spec):
                continue
            kept.append(name)

        for name in sorted(kept + filenames):
            yield current / name

        dirnames[:] = kept if depth < max_depth else []


def find_file(
    root: Path,
    pattern: str,
    max_depth: int = MAX_SEARCH_DEPTH,
    spec: pathspec.PathSpec | None = None,
) -> Path | None:
    """Return the first file or directory whose name matches pattern.

    Pattern is matched against the entry name only (fnmatch syntax), so
    "*.xcodeproj" finds project bundles and "MainActivity.kt" finds the
    source file at any depth.
    """
    for path in _walk(root, max_depth, spec or _DEFAULT_SPEC):
        if fnmatch.fnmatchcase(path.name, pattern):
            logger.debug("find_file %s -> %s", pattern, path)
            return path
    return None


def find_files(
    root: Path,
    pattern: str,
    limit: int | None = None,
    max_depth: int = MAX_SEARCH_DEPTH,
    spec: pathspec.PathSpec | None = None,
) -> list[Path]:
    """Collect entries whose name matches pattern, up to limit."""
    found: list[Path] = []
    for path in _walk(root, max_depth, spec or _DEFAULT_SPEC):
        if fnmatch.fnmatchcase(path.name, pattern):
            found.append(path)
            if limit is not None and len(found) >= limit:
                break
    return found


def glob_sorted(root: Path, pattern: str) -> list[Path]:
    """Matches of a relative glob (e.g. "ios/*.xcodeproj/project.pbxproj"), sorted."""
    return sorted(root.glob(pattern))


def read_text(path: Path) -> str | None:
    """Read a text file, or None if it is missing or unreadable."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
