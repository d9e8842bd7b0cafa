"""Android platform: google-services.json, Gradle plugin wiring, MainActivity init.

Patches, in order:
1. App build script - apply the Google Services Gradle plugin.
2. Project build script (legacy buildscript block) - add the plugin classpath.
3. MainActivity - import FirebaseApp and call initializeApp after super.onCreate.

Both Groovy (build.gradle) and Kotlin DSL (build.gradle.kts) scripts are
handled, and both Java and Kotlin activities.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core import probe
from core.config import GOOGLE_SERVICES_CLASSPATH, GOOGLE_SERVICES_PLUGIN_ID
from core.console import print_status, print_success, print_warning
from core.dependencies import is_available, run_tool
from core.patching import (
    InjectionReport,
    PatchResult,
    PatchStatus,
    add_import,
    find_line,
    insert_after_anchor,
    insert_line_after_match,
    patch_file,
    prepend_line,
)
from platforms.base import GOOGLE_SERVICES_JSON, Platform

logger = logging.getLogger("nativefire.platforms.android")

DETECT_FILES = [
    "build.gradle",
    "build.gradle.kts",
    "app/build.gradle",
    "app/build.gradle.kts",
    "android/build.gradle",
    "android/build.gradle.kts",
    "settings.gradle",
    "settings.gradle.kts",
]

APP_BUILD_SCRIPTS = [
    "app/build.gradle",
    "app/build.gradle.kts",
    "android/app/build.gradle",
    "android/app/build.gradle.kts",
    "build.gradle",
    "build.gradle.kts",
]

PROJECT_BUILD_SCRIPTS = [
    "build.gradle",
    "build.gradle.kts",
    "android/build.gradle",
    "android/build.gradle.kts",
]

GOOGLE_SERVICES_MARKER = "google-services"
FIREBASE_INIT_MARKER = "FirebaseApp.initializeApp"

IMPORT_ANCHORS = [
    r"^import\s+android\.os\.Bundle\b",
    r"^import\s+androidx\.appcompat\.app\.AppCompatActivity\b",
    r"^package\s",
]

SYNC_HINT = "In Android Studio: File > Sync Project with Gradle Files"


def _is_kotlin_dsl(path: Path) -> bool:
    return path.name.endswith(".kts")


# ---------------------------------------------------------------------------
# Transforms (pure: content in, content or None out)
# ---------------------------------------------------------------------------


def add_plugin(content: str, kotlin_dsl: bool = False) -> str:
    """Apply the Google Services plugin inside `plugins {`, else prepend it."""
    if kotlin_dsl:
        plugin_line = f'id("{GOOGLE_SERVICES_PLUGIN_ID}")'
        apply_line = f'apply(plugin = "{GOOGLE_SERVICES_PLUGIN_ID}")'
    else:
        plugin_line = f"id '{GOOGLE_SERVICES_PLUGIN_ID}'"
        apply_line = f"apply plugin: '{GOOGLE_SERVICES_PLUGIN_ID}'"

    patched = insert_after_anchor(content, r"^\s*plugins\s*\{", plugin_line)
    if patched is not None:
        return patched
    return prepend_line(prepend_line(content, ""), apply_line)


def add_classpath(content: str, kotlin_dsl: bool = False) -> str | None:
    """Add the plugin classpath to `dependencies {` inside the buildscript block."""
    if kotlin_dsl:
        line = f'classpath("{GOOGLE_SERVICES_CLASSPATH}")'
    else:
        line = f"classpath '{GOOGLE_SERVICES_CLASSPATH}'"

    lines = content.splitlines(keepends=True)
    start = find_line(lines, r"^\s*buildscript\s*\{")
    if start < 0:
        return None
    return insert_after_anchor(content, r"^\s*dependencies\s*\{", line, start=start)


def add_firebase_init(content: str, java: bool) -> str | None:
    """Call FirebaseApp.initializeApp(this) right after super.onCreate(...)."""
    semi = ";" if java else ""
    patched = insert_line_after_match(
        content,
        r"super\.onCreate\(\s*savedInstanceState\s*\)",
        f"FirebaseApp.initializeApp(this){semi}",
    )
    if patched is None:
        return None
    return add_import(patched, f"import com.google.firebase.FirebaseApp{semi}", IMPORT_ANCHORS)


# ---------------------------------------------------------------------------
# Platform
# ---------------------------------------------------------------------------


class AndroidPlatform(Platform):
    name = "Android"
    key = "android"
    config_file_name = GOOGLE_SERVICES_JSON
    registry_platform = "android"
    identifier_kind = "package_name"

    def detect(self, root: Path) -> bool:
        return any(probe.file_exists(root, f) for f in DETECT_FILES)

    def config_dir(self, root: Path) -> Path:
        if probe.dir_exists(root, "app/src/main"):
            return root / "app"
        if probe.dir_exists(root, "android/app/src/main"):
            return root / "android" / "app"
        return root / "app"

    def find_app_build_script(self, root: Path) -> Path | None:
        for rel in APP_BUILD_SCRIPTS:
            if (root / rel).is_file():
                return root / rel
        return None

    def find_project_build_script(self, root: Path) -> Path | None:
        """First top-level build script that still uses a buildscript block."""
        for rel in PROJECT_BUILD_SCRIPTS:
            path = root / rel
            content = probe.read_text(path) if path.is_file() else None
            if content and "buildscript" in content:
                return path
        return None

    def find_main_activity(self, root: Path) -> Path | None:
        return probe.find_file(root, "MainActivity.java") or probe.find_file(root, "MainActivity.kt")

    def inject_code(self, root: Path) -> InjectionReport:
        report = InjectionReport()

        # 1. App build script
        app_script = self.find_app_build_script(root)
        if app_script is None:
            report.add(PatchResult(
                None, PatchStatus.ANCHOR_NOT_FOUND, "Google Services plugin",
                guidance=[f"Add `id '{GOOGLE_SERVICES_PLUGIN_ID}'` to your app module's plugins block"],
            ))
        else:
            kts = _is_kotlin_dsl(app_script)
            result = report.add(patch_file(
                app_script,
                GOOGLE_SERVICES_MARKER,
                lambda c: add_plugin(c, kts),
                "Google Services plugin",
            ))
            if result.changed:
                report.modified_build_files = True

        # 2. Project build script (legacy buildscript classpath)
        project_script = self.find_project_build_script(root)
        if project_script is not None:
            kts = _is_kotlin_dsl(project_script)
            result = report.add(patch_file(
                project_script,
                GOOGLE_SERVICES_MARKER,
                lambda c: add_classpath(c, kts),
                "Google Services classpath",
                guidance=[
                    "Add to buildscript { dependencies { ... } }:",
                    f"    classpath '{GOOGLE_SERVICES_CLASSPATH}'",
                ],
            ))
            if result.changed:
                report.modified_build_files = True
        else:
            logger.debug("no buildscript block in %s, skipping classpath", root)

        # 3. Entry point
        activity = self.find_main_activity(root)
        init_guidance = [
            "In your launcher Activity's onCreate, after super.onCreate(savedInstanceState):",
            "    FirebaseApp.initializeApp(this)",
            "and import com.google.firebase.FirebaseApp",
        ]
        if activity is None:
            report.add(PatchResult(
                None, PatchStatus.ANCHOR_NOT_FOUND, "Firebase initialization",
                guidance=["MainActivity not found.", *init_guidance],
            ))
        else:
            java = activity.suffix == ".java"
            report.add(patch_file(
                activity,
                FIREBASE_INIT_MARKER,
                lambda c: add_firebase_init(c, java),
                "Firebase initialization",
                guidance=init_guidance,
            ))

        return report

    def sync_dependencies(self, root: Path, report: InjectionReport) -> None:
        if not report.modified_build_files:
            return

        print_status("Running Gradle sync...")
        wrapper_dir = next(
            (d for d in (root, root / "android") if (d / "gradlew").is_file()),
            None,
        )
        if wrapper_dir is not None:
            ok, output = run_tool(["./gradlew", "--refresh-dependencies"], wrapper_dir)
        elif is_available("gradle"):
            ok, output = run_tool(["gradle", "--refresh-dependencies"], root)
        else:
            print_warning("Gradle not found. Please sync your project manually")
            report.manual_steps.append(SYNC_HINT)
            return

        if ok:
            print_success("Gradle dependencies synced")
        else:
            print_warning("Gradle sync failed. Please sync manually")
            logger.debug("gradle output: %s", output)
            report.manual_steps.append(SYNC_HINT)
