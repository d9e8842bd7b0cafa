"""Thin wrapper around the `firebase` command-line tool.

Every call is a blocking subprocess.run with no timeout. JSON commands read
stdout only; create/download read combined output so error text from the
CLI reaches the user verbatim.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from core.config import DEFAULT_FIREBASE_CLI
from core.console import print_status
from core.errors import AppCreationError, MissingDependencyError, RegistryError
from platforms.base import Platform
from registry.models import RemoteApp, RemoteProject

logger = logging.getLogger("nativefire.firebase")

SUCCESS_STATUS = "success"
INSTALL_HINT = "Install it with: npm install -g firebase-tools"
LOGIN_HINT = "Run: firebase login"

_APP_ID_PATTERNS = [
    re.compile(r"App ID:\s+(\S+)"),
    re.compile(r'"appId":\s*"([^"]+)"'),
]


def format_command(args: list[str]) -> str:
    """Join args for display, quoting ones with whitespace or brackets."""
    quoted = []
    for arg in args:
        if any(c in arg for c in " \t\n()[]{}"):
            quoted.append(f'"{arg}"')
        else:
            quoted.append(arg)
    return " ".join(quoted)


def extract_app_id(output: str) -> str | None:
    for pattern in _APP_ID_PATTERNS:
        m = pattern.search(output)
        if m:
            return m.group(1)
    return None


class FirebaseCLI:
    """Registry operations backed by the Firebase CLI."""

    def __init__(self, executable: str = DEFAULT_FIREBASE_CLI, verbose: bool = False) -> None:
        self.executable = executable
        self.verbose = verbose
        self._ready = False

    # --- plumbing ---

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        cmd = [self.executable, *args]
        if self.verbose:
            print_status(f"Running: {format_command(cmd)}")
        logger.debug("running %s", format_command(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise MissingDependencyError(["Firebase CLI"], hint=INSTALL_HINT) from e

    def _run_json(self, args: list[str], what: str) -> list[dict[str, Any]]:
        result = self._run(args)
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise RegistryError(f"Failed to list Firebase {what}: {detail}")
        try:
            response = json.loads(result.stdout)
        except ValueError as e:
            raise RegistryError(f"Failed to parse {what} response: {e}") from e
        if not isinstance(response, dict) or response.get("status") != SUCCESS_STATUS:
            status = response.get("status") if isinstance(response, dict) else response
            raise RegistryError(f"Firebase CLI returned non-success status: {status}")
        return response.get("result") or []

    def _preflight(self) -> None:
        """Check the CLI is installed and logged in, once per instance."""
        if self._ready:
            return
        self.ensure_available()
        self.ensure_authenticated()
        self._ready = True

    # --- checks ---

    def ensure_available(self) -> None:
        if shutil.which(self.executable) is None:
            raise MissingDependencyError(["Firebase CLI"], hint=INSTALL_HINT)

    def ensure_authenticated(self) -> None:
        result = self._run(["projects:list"])
        if result.returncode == 0:
            return
        output = (result.stdout or "") + (result.stderr or "")
        if "not authenticated" in output.lower() or "firebase login" in output:
            raise RegistryError("Not authenticated with Firebase", hint=LOGIN_HINT)
        raise RegistryError(f"Failed to check authentication: {output.strip()}", hint=LOGIN_HINT)

    # --- projects ---

    def list_projects(self) -> list[RemoteProject]:
        """Active projects visible to the logged-in account."""
        self._preflight()
        rows = self._run_json(["projects:list", "--json"], "projects")
        projects = [RemoteProject.from_dict(r) for r in rows]
        return [p for p in projects if p.active]

    def validate_project(self, project_id: str) -> RemoteProject:
        for project in self.list_projects():
            if project.project_id == project_id:
                return project
        raise RegistryError(
            f"Project '{project_id}' not found or you don't have access to it",
            hint="Run 'nativefire projects list' to see available projects.",
        )

    def use_project(self, project_id: str) -> None:
        """Set the active project for the Firebase CLI (`firebase use`)."""
        self._preflight()
        result = self._run(["use", project_id])
        if result.returncode != 0:
            output = (result.stdout or "") + (result.stderr or "")
            raise RegistryError(f"Failed to set active project: {output.strip()}")

    # --- apps ---

    def list_apps(self, project_id: str) -> list[RemoteApp]:
        self._preflight()
        rows = self._run_json(["apps:list", "--json", "--project", project_id], "apps")
        return [RemoteApp.from_dict(r) for r in rows]

    def create_app(
        self,
        registry_platform: str,
        display_name: str,
        project_id: str,
        identifier: str,
    ) -> str:
        """Register a new app and return its app id.

        Raises AppCreationError (with the CLI's output) on a non-zero exit.
        """
        self._preflight()
        flag = "--bundle-id" if registry_platform == "ios" else "--package-name"
        result = self._run([
            "apps:create", registry_platform, display_name,
            "--project", project_id, flag, identifier,
        ])
        output = (result.stdout or "") + (result.stderr or "")
        if result.returncode != 0:
            raise AppCreationError(output)

        app_id = extract_app_id(output)
        if not app_id:
            raise RegistryError(
                "Failed to extract app ID from Firebase CLI output",
                hint=f"Look the app up with: firebase apps:list --project {project_id}",
            )
        logger.info("created %s app %s (%s)", registry_platform, app_id, identifier)
        return app_id

    def download_config(self, platform: Platform, app_id: str, project_id: str) -> Path:
        """Fetch the SDK config for app_id into a fresh temp file and return its path."""
        if not app_id:
            raise RegistryError("App ID is required to download configuration")
        self._preflight()

        stem, ext = os.path.splitext(platform.config_file_name)
        fd, name = tempfile.mkstemp(prefix=f"nativefire_{stem}_", suffix=ext)
        os.close(fd)
        path = Path(name)
        # Keep only the unique name; the CLI creates the file.
        path.unlink()

        result = self._run([
            "apps:sdkconfig", platform.registry_platform, app_id,
            "--project", project_id, "--out", str(path),
        ])
        if result.returncode != 0:
            path.unlink(missing_ok=True)
            output = (result.stdout or "") + (result.stderr or "")
            raise RegistryError(f"Failed to download config: {output.strip()}")
        if not path.is_file():
            raise RegistryError(f"Firebase CLI reported success but wrote no file at {path}")

        logger.info("downloaded config for %s to %s", app_id, path)
        return path
