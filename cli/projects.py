"""nativefire projects - list Firebase projects and pick one."""

from __future__ import annotations

from collections.abc import Callable

from core.config import FIREBASE_CONSOLE_URL
from core.console import print_bold, print_status, print_success, print_warning
from core.errors import ConfigurationError
from registry.firebase_cli import FirebaseCLI
from registry.models import RemoteProject


def print_projects(projects: list[RemoteProject]) -> None:
    for i, project in enumerate(projects, start=1):
        print_status(f"  [{i}] \033[1m{project.label}\033[0m")
        print_status(f"      ID: {project.project_id}")
        if project.project_number:
            print_status(f"      Number: {project.project_number}")


def choose_project(
    projects: list[RemoteProject],
    input_fn: Callable[[str], str] = input,
) -> RemoteProject:
    """Pick a project: the only one, or by number from a prompt.

    EOFError from input_fn propagates (non-interactive session).
    """
    if not projects:
        raise ConfigurationError(
            "No Firebase projects available",
            hint=f"Create your first project at {FIREBASE_CONSOLE_URL}",
        )

    if len(projects) == 1:
        project = projects[0]
        print_success(f"Found 1 Firebase project, selecting {project.label} ({project.project_id})")
        return project

    print_bold(f"Found {len(projects)} Firebase projects:")
    print_projects(projects)
    raw = input_fn(f"Select a project (1-{len(projects)}): ").strip()
    try:
        selection = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"Invalid selection '{raw}'",
            hint=f"Enter a number between 1 and {len(projects)}",
        ) from None
    if not 1 <= selection <= len(projects):
        raise ConfigurationError(
            f"Selection {selection} is out of range",
            hint=f"Enter a number between 1 and {len(projects)}",
        )

    project = projects[selection - 1]
    print_success(f"Selected project: {project.label} ({project.project_id})")
    return project


def list_projects(client: FirebaseCLI) -> int:
    """nativefire projects list"""
    print_status("Fetching Firebase projects...")
    projects = client.list_projects()
    if not projects:
        print_warning("No Firebase projects found")
        print_status(f"Create one at {FIREBASE_CONSOLE_URL}")
        return 0
    print_bold(f"{len(projects)} active project(s):")
    print_projects(projects)
    return 0


def select_project(
    client: FirebaseCLI,
    use: bool = False,
    input_fn: Callable[[str], str] = input,
) -> int:
    """nativefire projects select [--use]"""
    project = choose_project(client.list_projects(), input_fn)
    if use:
        client.use_project(project.project_id)
        print_success(f"Firebase CLI now uses {project.project_id}")
    else:
        print_status(f"Configure with: nativefire configure --project {project.project_id}")
    return 0
