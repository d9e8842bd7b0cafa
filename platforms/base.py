"""Platform base class - the per-platform surface the configure pipeline drives.

Each subclass knows how to recognise its project layout, where the Firebase
config file belongs, and which source files to patch. The registry side
(which app kind backs the platform, which identifier it is keyed on) is
declared as class attributes.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from core.errors import InstallError
from core.patching import InjectionReport

logger = logging.getLogger("nativefire.platforms")

GOOGLE_SERVICES_JSON = "google-services.json"
GOOGLE_SERVICE_INFO_PLIST = "GoogleService-Info.plist"


class Platform:
    """Base class for platform-specific detection, install and patching."""

    name = ""  # display name, e.g. "iOS"
    key = ""  # CLI spelling, e.g. "ios"
    config_file_name = ""
    registry_platform = "android"  # "android" or "ios": registry app kind
    identifier_kind = "package_name"  # "package_name" or "bundle_id"

    def detect(self, root: Path) -> bool:
        """True if root looks like a project for this platform."""
        raise NotImplementedError

    def config_dir(self, root: Path) -> Path:
        """Directory the downloaded config file is installed into."""
        raise NotImplementedError

    def inject_code(self, root: Path) -> InjectionReport:
        """Patch build files and the entry point so Firebase starts at launch."""
        raise NotImplementedError

    def sync_dependencies(self, root: Path, report: InjectionReport) -> None:
        """Run the package manager after build files changed. No-op by default."""

    @property
    def identifier_label(self) -> str:
        return "Bundle ID" if self.identifier_kind == "bundle_id" else "Package Name"

    def display_name(self, root: Path) -> str:
        """App display name used when registering: "<dir name> <Platform>"."""
        return f"{root.resolve().name} {self.name}"

    def install_config(self, artifact: Path, root: Path) -> Path:
        """Copy the downloaded artifact into place and delete the artifact.

        Returns the installed path.
        """
        if not artifact.is_file():
            raise InstallError(
                f"Config file not found: {artifact}",
                hint="The download step did not produce a file. Re-run configure.",
            )

        target_dir = self.config_dir(root)
        target = target_dir / self.config_file_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(artifact, target)
        except OSError as e:
            raise InstallError(
                f"Failed to write config file to {target}: {e}",
                hint=f"Check permissions, or copy {artifact} to {target} by hand.",
            ) from e

        try:
            artifact.unlink()
        except OSError as e:
            logger.warning("could not remove temp config %s: %s", artifact, e)

        logger.info("installed %s", target)
        return target

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.key}>"
