"""Registry reconciliation: reuse a matching Firebase app or create one.

The resolved identifier is the only key. An explicit app id short-circuits
everything. A create that fails because the app already exists triggers
exactly one re-list and re-search before giving up.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.config import FIREBASE_CONSOLE_URL
from core.console import print_status, print_success, print_warning
from core.errors import AppCreationError
from platforms.base import Platform
from registry.firebase_cli import FirebaseCLI
from registry.models import RemoteApp

logger = logging.getLogger("nativefire.reconciler")

# Substrings (case-insensitive) in `apps:create` output meaning the app
# probably exists already.
DUPLICATE_INDICATORS = [
    "already exists",
    "duplicate",
    "bundle id already exists",
    "package name already exists",
    "Bundle ID for iOS app cannot be empty",
    "Failed to create iOS app",
    "Failed to create Android app",
]


def is_duplicate_error(output: str) -> bool:
    lowered = output.lower()
    return any(indicator.lower() in lowered for indicator in DUPLICATE_INDICATORS)


def find_matching_app(apps: list[RemoteApp], platform: Platform, identifier: str) -> RemoteApp | None:
    """First app of the platform's registry kind keyed on identifier.

    An app matches on either its namespace or its platform-specific field;
    list order decides between several matches.
    """
    candidates = [a for a in apps if a.platform.lower() == platform.registry_platform]
    logger.debug("%d %s apps in project", len(candidates), platform.registry_platform)
    for app in candidates:
        if app.namespace == identifier or app.identifier_for(platform.identifier_kind) == identifier:
            return app
    return None


def manual_creation_hint(platform: Platform, identifier: str, project_id: str) -> str:
    flag = "--bundle-id" if platform.identifier_kind == "bundle_id" else "--package-name"
    return "\n".join([
        f"1. Create the app in the Firebase console ({FIREBASE_CONSOLE_URL}) "
        f"with {platform.identifier_label}: {identifier}",
        f'2. Or run: firebase apps:create {platform.registry_platform} "My App" '
        f"--project {project_id} {flag} {identifier}",
        f"3. Then: nativefire configure --project {project_id} --app-id YOUR_APP_ID",
    ])


def reconcile(
    platform: Platform,
    identifier: str,
    project_id: str,
    explicit_app_id: str | None,
    client: FirebaseCLI,
    project_root: Path,
) -> str:
    """Return the app id to use for this run, creating the app if needed."""
    if explicit_app_id:
        logger.info("using explicit app id %s", explicit_app_id)
        print_status(f"Using app ID: {explicit_app_id}")
        return explicit_app_id

    existing = find_matching_app(client.list_apps(project_id), platform, identifier)
    if existing is not None:
        print_success(f"Using existing {platform.name} app: {existing.display_name or existing.app_id} ({existing.app_id})")
        return existing.app_id

    display_name = platform.display_name(project_root)
    print_status(f"Creating {platform.name} app '{display_name}' with {platform.identifier_label} {identifier}")
    try:
        app_id = client.create_app(platform.registry_platform, display_name, project_id, identifier)
    except AppCreationError as e:
        hint = manual_creation_hint(platform, identifier, project_id)
        if not is_duplicate_error(e.output):
            raise AppCreationError(e.output, hint=hint) from e

        print_warning("App creation failed, searching for an existing app...")
        existing = find_matching_app(client.list_apps(project_id), platform, identifier)
        if existing is not None:
            print_success(f"Found existing {platform.name} app: {existing.display_name or existing.app_id} ({existing.app_id})")
            return existing.app_id
        raise AppCreationError(e.output, hint=hint) from e

    print_success(f"Created Firebase app: {app_id}")
    return app_id
