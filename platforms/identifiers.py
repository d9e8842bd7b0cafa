"""Application identifier resolution (Android package name / Apple bundle id).

First non-empty wins: explicit flag, then values parsed from project files,
then an identifier generated from the Firebase project id. The result is the
single key used both to look up an existing registry app and to create one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path

from core import probe
from core.errors import ConfigurationError
from platforms.base import Platform

logger = logging.getLogger("nativefire.identifiers")

ANDROID_BUILD_SCRIPTS = [
    "app/build.gradle",
    "app/build.gradle.kts",
    "android/app/build.gradle",
    "android/app/build.gradle.kts",
    "build.gradle",
    "build.gradle.kts",
]

ANDROID_MANIFESTS = [
    "app/src/main/AndroidManifest.xml",
    "android/app/src/main/AndroidManifest.xml",
    "src/main/AndroidManifest.xml",
]

IOS_INFO_PLISTS = [
    "ios/Runner/Info.plist",
    "Info.plist",
    "Runner/Info.plist",
]

IOS_PBXPROJ_GLOBS = [
    "*.xcodeproj/project.pbxproj",
    "ios/*.xcodeproj/project.pbxproj",
]

MACOS_INFO_PLISTS = ["macos/Runner/Info.plist"]
MACOS_PBXPROJ_GLOBS = ["macos/*.xcodeproj/project.pbxproj"]

# Groovy `applicationId "x"` and Kotlin DSL `applicationId = "x"`
_GRADLE_APP_ID = re.compile(r"""\bapplicationId\s*=?\s*["']([^"']+)["']""")
_GRADLE_NAMESPACE = re.compile(r"""\bnamespace\s*=?\s*["']([^"']+)["']""")
_MANIFEST_PACKAGE = re.compile(r"""<manifest\b[^>]*?\bpackage\s*=\s*["']([^"']+)["']""", re.S)
_PLIST_BUNDLE_ID = re.compile(
    r"<key>\s*CFBundleIdentifier\s*</key>\s*<string>\s*([^<]*?)\s*</string>"
)
_PBX_BUNDLE_ID = re.compile(r'PRODUCT_BUNDLE_IDENTIFIER\s*=\s*"?([^";\n]+?)"?\s*;')


def _usable(value: str | None) -> bool:
    """Reject empty values and unresolved build variables like $(X) or ${x}."""
    return bool(value) and "$" not in value


def _first_match(path: Path, pattern: re.Pattern) -> str | None:
    content = probe.read_text(path) if path.is_file() else None
    if not content:
        return None
    for m in pattern.finditer(content):
        value = m.group(1).strip()
        if _usable(value):
            return value
    return None


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def bundle_id_from_pbxproj(path: Path) -> str | None:
    """PRODUCT_BUNDLE_IDENTIFIER from an Xcode project, preferring non-test targets."""
    content = probe.read_text(path) if path.is_file() else None
    if not content:
        return None
    values = [m.group(1).strip() for m in _PBX_BUNDLE_ID.finditer(content)]
    values = [v for v in values if _usable(v)]
    for value in values:
        if not value.endswith("Tests"):
            return value
    return values[0] if values else None


def detect_android_identifier(root: Path) -> tuple[str, Path] | None:
    for rel in ANDROID_BUILD_SCRIPTS:
        value = _first_match(root / rel, _GRADLE_APP_ID)
        if value:
            return value, root / rel
    for rel in ANDROID_MANIFESTS:
        value = _first_match(root / rel, _MANIFEST_PACKAGE)
        if value:
            return value, root / rel
    for rel in ANDROID_BUILD_SCRIPTS:
        value = _first_match(root / rel, _GRADLE_NAMESPACE)
        if value:
            return value, root / rel
    return None


def _detect_apple(root: Path, plists: list[str], pbx_globs: list[str]) -> tuple[str, Path] | None:
    for rel in plists:
        value = _first_match(root / rel, _PLIST_BUNDLE_ID)
        if value:
            return value, root / rel
    for pattern in pbx_globs:
        for path in probe.glob_sorted(root, pattern):
            value = bundle_id_from_pbxproj(path)
            if value:
                return value, path
    return None


def detect_ios_identifier(root: Path) -> tuple[str, Path] | None:
    return _detect_apple(root, IOS_INFO_PLISTS, IOS_PBXPROJ_GLOBS)


def detect_macos_identifier(root: Path) -> tuple[str, Path] | None:
    """macOS-specific locations first, then the iOS candidates."""
    return (
        _detect_apple(root, MACOS_INFO_PLISTS, MACOS_PBXPROJ_GLOBS)
        or detect_ios_identifier(root)
    )


DETECTORS: dict[str, Callable[[Path], "tuple[str, Path] | None"]] = {
    "android": detect_android_identifier,
    "ios": detect_ios_identifier,
    "macos": detect_macos_identifier,
}


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def generate_identifier(project_id: str) -> str:
    """Derive a reverse-DNS identifier from a Firebase project id.

    my-app -> com.my.app; myapp -> com.firebase.myapp
    """
    if not project_id:
        raise ConfigurationError(
            "Project ID is required to generate an identifier",
            hint="Pass --project, or --bundle-id / --package-name explicitly.",
        )
    sanitized = project_id.replace("-", ".")
    if "." not in sanitized:
        return f"com.firebase.{sanitized}"
    return f"com.{sanitized}"


def detect_identifier(platform: Platform, root: Path) -> tuple[str, Path] | None:
    """Identifier parsed from project files, with the file it came from."""
    detector = DETECTORS.get(platform.key)
    if detector is None:
        return None
    return detector(root)


def resolve_identifier(
    platform: Platform,
    explicit: str | None,
    root: Path,
    project_id: str,
) -> str:
    if explicit:
        logger.info("using explicit %s: %s", platform.identifier_label, explicit)
        return explicit

    detected = detect_identifier(platform, root)
    if detected is not None:
        value, source = detected
        logger.info("detected %s %s in %s", platform.identifier_label, value, source)
        return value

    generated = generate_identifier(project_id)
    logger.info("generated %s %s from project %s", platform.identifier_label, generated, project_id)
    return generated
