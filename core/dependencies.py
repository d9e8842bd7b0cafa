"""External command-line tools nativefire shells out to.

The Firebase CLI is required everywhere. CocoaPods and Gradle are optional:
when they are missing the corresponding post-patch step is skipped and the
user is told how to run it by hand.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from core.console import print_error, print_status, print_success, print_warning
from core.errors import MissingDependencyError

logger = logging.getLogger("nativefire.dependencies")


@dataclass(frozen=True)
class Dependency:
    name: str
    command: str
    required: bool
    platforms: tuple[str, ...]  # platform keys, or ("all",)
    install_cmd: str = ""
    install_url: str = ""
    description: str = ""

    def applies_to(self, platform_key: str | None) -> bool:
        return "all" in self.platforms or platform_key is None or platform_key in self.platforms


DEPENDENCIES: list[Dependency] = [
    Dependency(
        name="Firebase CLI",
        command="firebase",
        required=True,
        platforms=("all",),
        install_cmd="npm install -g firebase-tools",
        install_url="https://firebase.google.com/docs/cli#install_the_firebase_cli",
        description="Required for Firebase project and app management",
    ),
    Dependency(
        name="CocoaPods",
        command="pod",
        required=False,
        platforms=("ios", "macos"),
        install_cmd="sudo gem install cocoapods",
        install_url="https://cocoapods.org/",
        description="Apple dependency manager (Swift Package Manager also works)",
    ),
    Dependency(
        name="Gradle",
        command="gradle",
        required=False,
        platforms=("android",),
        install_cmd="Use Android Studio or the project's ./gradlew wrapper",
        install_url="https://gradle.org/install/",
        description="Android build system (gradlew wrapper preferred)",
    ),
]


def is_available(command: str) -> bool:
    return shutil.which(command) is not None


def missing_dependencies(
    platform_key: str | None = None,
    firebase_command: str = "firebase",
) -> list[Dependency]:
    """Dependencies relevant to platform_key that are not on PATH."""
    missing: list[Dependency] = []
    for dep in DEPENDENCIES:
        if not dep.applies_to(platform_key):
            continue
        command = firebase_command if dep.command == "firebase" else dep.command
        if not is_available(command):
            missing.append(dep)
    return missing


def show_missing(missing: list[Dependency]) -> None:
    for dep in missing:
        label = "REQUIRED" if dep.required else "optional"
        line = f"{dep.name} ({dep.command}) - {label}"
        if dep.required:
            print_error(line)
        else:
            print_warning(line)
        print_status(f"  {dep.description}")
        if dep.install_cmd:
            print_status(f"  Install: {dep.install_cmd}")
        if dep.install_url:
            print_status(f"  More info: {dep.install_url}")


def preflight_check(
    platform_key: str | None = None,
    firebase_command: str = "firebase",
) -> list[Dependency]:
    """Report missing tools. Raises MissingDependencyError if a required one is absent.

    Returns the optional tools that are missing so callers can skip the
    steps that need them.
    """
    print_status("Checking dependencies...")
    missing = missing_dependencies(platform_key, firebase_command)
    if missing:
        show_missing(missing)

    required = [d for d in missing if d.required]
    if required:
        raise MissingDependencyError(
            [d.name for d in required],
            hint="\n".join(f"{d.name}: {d.install_cmd}" for d in required if d.install_cmd),
        )

    optional = [d for d in missing if not d.required]
    if optional:
        print_warning(f"{len(optional)} optional tool(s) missing, continuing")
    else:
        print_success("All dependencies are available")
    return optional


def run_tool(args: list[str], cwd: Path) -> tuple[bool, str]:
    """Run an external tool to completion. Returns (ok, combined output)."""
    logger.info("running %s in %s", " ".join(args), cwd)
    try:
        result = subprocess.run(
            args,
            cwd=str(cwd),
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.warning("could not run %s: %s", args[0], e)
        return (False, str(e))
    output = (result.stdout or "") + (result.stderr or "")
    if result.returncode != 0:
        logger.warning("%s exited %d: %s", args[0], result.returncode, output.strip())
    return (result.returncode == 0, output)
