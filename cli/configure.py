"""nativefire configure - the end-to-end Firebase setup pipeline.

Stages run in a fixed order, each filling in the shared ProjectConfig:
dependency preflight -> project selection -> platform -> identifier ->
registry app -> config download -> install -> code injection -> package
manager sync.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from cli.projects import choose_project
from core.console import (
    print_bold,
    print_lines,
    print_status,
    print_step,
    print_success,
    print_warning,
)
from core.dependencies import missing_dependencies, preflight_check, show_missing
from core.errors import ConfigurationError, DetectionError
from core.patching import InjectionReport, PatchStatus
from platforms.base import Platform
from platforms.classifier import PLATFORM_KEYS, classify, platform_from_string
from platforms.identifiers import resolve_identifier
from registry.firebase_cli import FirebaseCLI
from registry.reconciler import reconcile

logger = logging.getLogger("nativefire.configure")


@dataclass
class ProjectConfig:
    """State for one configure run. Filled in stage by stage, never persisted."""

    project_id: str
    platform: Platform | None = None
    identifier: str = ""
    app_id: str = ""
    bundle_id: str = ""
    package_name: str = ""
    artifact_path: Path | None = None
    installed_path: Path | None = None
    report: InjectionReport | None = None

    def explicit_identifier(self) -> str:
        """The --bundle-id / --package-name value that applies to the platform."""
        if self.platform is None:
            return ""
        if self.platform.identifier_kind == "bundle_id":
            return self.bundle_id
        return self.package_name


def _display_path(path: Path | None, root: Path) -> str:
    if path is None:
        return ""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def print_report(report: InjectionReport, root: Path) -> None:
    for result in report.results:
        where = _display_path(result.path, root)
        if result.status == PatchStatus.APPLIED:
            print_success(f"{result.description}: {where}")
        elif result.status == PatchStatus.ALREADY_PRESENT:
            print_status(f"{result.description}: already present in {where}")
        elif result.status == PatchStatus.ANCHOR_NOT_FOUND:
            suffix = f" in {where}" if where else ""
            print_warning(f"{result.description}: could not find where to add it{suffix}")
            print_lines(result.guidance, indent="    ")
        else:
            print_warning(result.description)
            print_lines(result.guidance, indent="    ")

    if report.manual_steps:
        print_bold("Manual steps:")
        print_lines(report.manual_steps)


def resolve_platform(root: Path, platform_name: str | None, auto_detect: bool) -> Platform:
    if platform_name:
        return platform_from_string(platform_name)
    if not auto_detect:
        raise DetectionError(
            "Auto-detect is disabled and no platform was specified",
            hint=f"Pass --platform ({', '.join(PLATFORM_KEYS)})",
        )
    platform = classify(root)
    if platform is None:
        raise DetectionError(
            f"No supported platform detected in {root}",
            hint=f"Pass --platform ({', '.join(PLATFORM_KEYS)})",
        )
    return platform


def run_configure(
    root: Path,
    project_id: str | None = None,
    platform_name: str | None = None,
    auto_detect: bool = True,
    app_id: str | None = None,
    bundle_id: str | None = None,
    package_name: str | None = None,
    client: FirebaseCLI | None = None,
    firebase_cli: str = "firebase",
    verbose: bool = False,
    input_fn: Callable[[str], str] = input,
) -> ProjectConfig:
    """Configure Firebase for the project at root. Raises NativefireError on failure."""
    root = root.resolve()
    if not root.is_dir():
        raise ConfigurationError(f"Project directory not found: {root}")

    preflight_check(platform_name.lower() if platform_name else None, firebase_cli)
    client = client or FirebaseCLI(firebase_cli, verbose=verbose)

    if not project_id:
        print_status("No project specified, fetching available Firebase projects...")
        project_id = choose_project(client.list_projects(), input_fn).project_id
    if not project_id.strip():
        raise ConfigurationError("Project ID cannot be empty", hint="Pass --project <id>")

    if verbose:
        print_status(f"Validating Firebase project: {project_id}")
    client.validate_project(project_id)
    print_bold(f"Firebase project: {project_id}")

    cfg = ProjectConfig(
        project_id=project_id,
        app_id=app_id or "",
        bundle_id=bundle_id or "",
        package_name=package_name or "",
    )

    # 1. Platform
    print_step(1, "Detecting platform..." if not platform_name else "Using requested platform...")
    cfg.platform = resolve_platform(root, platform_name, auto_detect)
    platform = cfg.platform
    print_status(f"  Platform: {platform.name}")

    other = package_name if platform.identifier_kind == "bundle_id" else bundle_id
    if other and not cfg.explicit_identifier():
        flag = "--package-name" if platform.identifier_kind == "bundle_id" else "--bundle-id"
        print_warning(f"{flag} does not apply to {platform.name}, ignoring it")

    # 2. Identifier + registry app
    print_step(2, "Registering app with Firebase...")
    cfg.identifier = resolve_identifier(platform, cfg.explicit_identifier(), root, project_id)
    print_status(f"  {platform.identifier_label}: {cfg.identifier}")
    cfg.app_id = reconcile(platform, cfg.identifier, project_id, cfg.app_id, client, root)

    # 3. Download
    print_step(3, "Downloading configuration file...")
    cfg.artifact_path = client.download_config(platform, cfg.app_id, project_id)

    # 4. Install
    print_step(4, "Installing configuration file...")
    cfg.installed_path = platform.install_config(cfg.artifact_path, root)
    print_success(f"Configuration file installed at: {_display_path(cfg.installed_path, root)}")

    if not platform_name:
        optional = [d for d in missing_dependencies(platform.key, firebase_cli) if not d.required]
        if optional:
            show_missing(optional)

    # 5. Source mutation
    print_step(5, "Adding Firebase initialization code...")
    cfg.report = platform.inject_code(root)
    platform.sync_dependencies(root, cfg.report)
    print_report(cfg.report, root)

    if cfg.report.problems:
        print_warning(f"Firebase configured for {platform.name}, with manual steps remaining")
    else:
        print_success(f"Firebase configuration completed for {platform.name}")
    logger.info("configured %s app %s in %s", platform.key, cfg.app_id, root)
    return cfg
