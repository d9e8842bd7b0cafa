"""Windows and Linux platforms: config install only.

The Firebase C++ SDK reads google-services.json on desktop, so these
platforms are backed by an Android app registration. Source mutation is not
automated; inject_code returns the manual initialization steps.
"""

from __future__ import annotations

from pathlib import Path

from core import probe
from core.patching import InjectionReport
from platforms.base import GOOGLE_SERVICES_JSON, Platform

CPP_SDK_URL = "https://firebase.google.com/docs/cpp/setup"


class DesktopPlatform(Platform):
    config_file_name = GOOGLE_SERVICES_JSON
    registry_platform = "android"
    identifier_kind = "package_name"

    def config_dir(self, root: Path) -> Path:
        base = root / self.key
        return base if base.is_dir() else root

    def inject_code(self, root: Path) -> InjectionReport:
        report = InjectionReport()
        report.manual_steps += [
            f"Automatic code setup is not supported on {self.name}.",
            f"Add the Firebase C++ SDK to your build: {CPP_SDK_URL}",
            "Create the app at startup: firebase::App::Create(firebase::AppOptions())",
            f"Keep {self.config_file_name} next to the executable's working directory",
        ]
        return report


class WindowsPlatform(DesktopPlatform):
    name = "Windows"
    key = "windows"

    def detect(self, root: Path) -> bool:
        return (
            probe.dir_exists(root, "windows")
            or probe.find_file(root, "*.vcxproj") is not None
            or probe.find_file(root, "*.sln") is not None
            or probe.file_exists(root, "CMakeLists.txt")
        )


class LinuxPlatform(DesktopPlatform):
    name = "Linux"
    key = "linux"

    def detect(self, root: Path) -> bool:
        return (
            probe.dir_exists(root, "linux")
            or probe.file_exists(root, "CMakeLists.txt")
            or probe.find_file(root, "Makefile") is not None
        )
