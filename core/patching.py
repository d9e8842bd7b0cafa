"""Idempotent, anchor-based text patches.

A patch is a marker check followed by a pure transform. If the marker is
already in the file nothing is touched. If the transform cannot find its
anchor it returns None and the file stays byte-identical; the caller gets a
PatchResult with manual guidance instead of an exception.

Line endings are preserved: files are read and written with newline="".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger("nativefire.patching")

Transform = Callable[[str], "str | None"]


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------

class PatchStatus(str, Enum):
    APPLIED = "applied"
    ALREADY_PRESENT = "already_present"
    ANCHOR_NOT_FOUND = "anchor_not_found"
    FAILED = "failed"


@dataclass
class PatchResult:
    path: Path | None
    status: PatchStatus
    description: str
    guidance: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.status == PatchStatus.APPLIED

    @property
    def ok(self) -> bool:
        return self.status in (PatchStatus.APPLIED, PatchStatus.ALREADY_PRESENT)


@dataclass
class InjectionReport:
    """Outcome of one platform's source mutation, in patch order."""

    results: list[PatchResult] = field(default_factory=list)
    manual_steps: list[str] = field(default_factory=list)
    modified_build_files: bool = False

    def add(self, result: PatchResult) -> PatchResult:
        self.results.append(result)
        return result

    @property
    def changed_paths(self) -> list[Path]:
        return [r.path for r in self.results if r.changed and r.path is not None]

    @property
    def problems(self) -> list[PatchResult]:
        return [r for r in self.results if not r.ok]


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def detect_newline(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def find_line(lines: list[str], pattern: str | re.Pattern, start: int = 0) -> int:
    """Index of the first line at or after start matching pattern, or -1."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    for i in range(start, len(lines)):
        if regex.search(lines[i]):
            return i
    return -1


def _terminated(line: str, newline: str) -> str:
    return line if line.endswith(("\n", "\r")) else line + newline


def insert_line_after_match(
    content: str,
    pattern: str | re.Pattern,
    new_lines: str | list[str],
    indent: str | None = None,
    start: int = 0,
) -> str | None:
    """Insert lines right after the first line matching pattern.

    Inserted lines take `indent` if given, otherwise the matched line's own
    indentation. Returns None when no line matches.
    """
    if isinstance(new_lines, str):
        new_lines = [new_lines]
    newline = detect_newline(content)
    lines = content.splitlines(keepends=True)
    idx = find_line(lines, pattern, start)
    if idx < 0:
        return None
    prefix = leading_whitespace(lines[idx]) if indent is None else indent
    lines[idx] = _terminated(lines[idx], newline)
    inserted = [f"{prefix}{text}{newline}" for text in new_lines]
    lines[idx + 1:idx + 1] = inserted
    return "".join(lines)


def insert_after_anchor(
    content: str,
    anchor: str | re.Pattern,
    new_lines: str | list[str],
    step: str = "    ",
    start: int = 0,
) -> str | None:
    """Insert lines inside the block opened on the anchor line.

    The inserted lines are indented one `step` deeper than the anchor, the
    way a new entry in `plugins {` or `target 'App' do` would be written.
    A one-line block such as `plugins { id 'x' }` is split after the anchor
    so the new lines land inside it.
    """
    regex = re.compile(anchor) if isinstance(anchor, str) else anchor
    lines = content.splitlines(keepends=True)
    idx = find_line(lines, regex, start)
    if idx < 0:
        return None
    base = leading_whitespace(lines[idx])
    indent = base + step
    match = regex.search(lines[idx])
    rest = lines[idx][match.end():].strip()
    if not rest or rest.startswith(("//", "#")):
        return insert_line_after_match(content, regex, new_lines, indent=indent, start=idx)

    if isinstance(new_lines, str):
        new_lines = [new_lines]
    newline = detect_newline(content)
    ending = newline if lines[idx].endswith(("\n", "\r")) else ""
    rest_indent = base if rest.startswith("}") else indent
    lines[idx:idx + 1] = [
        lines[idx][:match.end()].rstrip() + newline,
        *(f"{indent}{text}{newline}" for text in new_lines),
        f"{rest_indent}{rest}{ending}",
    ]
    return "".join(lines)


def prepend_line(content: str, line: str) -> str:
    return f"{line}{detect_newline(content)}{content}"


def replace_line(content: str, pattern: str | re.Pattern, new_line: str) -> str | None:
    """Replace the first line matching pattern, keeping its indentation."""
    newline = detect_newline(content)
    lines = content.splitlines(keepends=True)
    idx = find_line(lines, pattern)
    if idx < 0:
        return None
    ending = newline if lines[idx].endswith(("\n", "\r")) else ""
    lines[idx] = f"{leading_whitespace(lines[idx])}{new_line}{ending}"
    return "".join(lines)


def add_import(
    content: str,
    import_line: str,
    after_patterns: list[str],
    replace_patterns: list[str] | None = None,
) -> str:
    """Add an import line, trying anchors in priority order.

    replace_patterns name umbrella imports that are rewritten in place to
    import_line. Otherwise the import goes after the first line matching one
    of after_patterns, or at the top of the file. Never adds a duplicate.
    """
    if import_line in content:
        return content
    for pattern in replace_patterns or []:
        replaced = replace_line(content, pattern, import_line)
        if replaced is not None:
            return replaced
    for pattern in after_patterns:
        inserted = insert_line_after_match(content, pattern, import_line, indent="")
        if inserted is not None:
            return inserted
    return prepend_line(content, import_line)


# ---------------------------------------------------------------------------
# File operations
# ---------------------------------------------------------------------------


def read_source(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_source(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def patch_file(
    path: Path,
    marker: str | tuple[str, ...],
    transform: Transform,
    description: str,
    guidance: list[str] | None = None,
) -> PatchResult:
    """Apply transform to path unless marker is already present.

    Read or write errors become FAILED results so sibling patches still run.
    """
    guidance = guidance or []
    markers = (marker,) if isinstance(marker, str) else marker
    try:
        content = read_source(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("could not read %s: %s", path, e)
        return PatchResult(path, PatchStatus.FAILED, f"{description}: could not read {path}: {e}", guidance)

    if any(m in content for m in markers):
        logger.debug("marker %r present in %s, skipping", markers[0], path)
        return PatchResult(path, PatchStatus.ALREADY_PRESENT, description)

    updated = transform(content)
    if updated is None or updated == content:
        logger.info("anchor not found in %s for: %s", path, description)
        return PatchResult(path, PatchStatus.ANCHOR_NOT_FOUND, description, guidance)

    try:
        write_source(path, updated)
    except OSError as e:
        logger.warning("could not write %s: %s", path, e)
        return PatchResult(path, PatchStatus.FAILED, f"{description}: could not write {path}: {e}", guidance)

    logger.info("patched %s: %s", path, description)
    return PatchResult(path, PatchStatus.APPLIED, description)


def create_file(path: Path, content: str, description: str) -> PatchResult:
    """Write a new source file; an existing file is left alone."""
    if path.exists():
        return PatchResult(path, PatchStatus.ALREADY_PRESENT, description)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_source(path, content)
    except OSError as e:
        logger.warning("could not create %s: %s", path, e)
        return PatchResult(path, PatchStatus.FAILED, f"{description}: could not create {path}: {e}")
    logger.info("created %s", path)
    return PatchResult(path, PatchStatus.APPLIED, description)
