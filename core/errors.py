"""Error taxonomy for nativefire.

Every fatal path raises a NativefireError subclass carrying a remediation
hint. The CLI prints message + hint and exits 1. Anchor misses during
source mutation are never exceptions (see core.patching).
"""

from __future__ import annotations


class NativefireError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(NativefireError):
    """Invalid run configuration (empty project id, bad config file)."""


class DetectionError(NativefireError):
    """No platform could be detected or an unknown platform was requested."""


class RegistryError(NativefireError):
    """Listing, validating, or creating against the Firebase registry failed."""


class AppCreationError(RegistryError):
    """`firebase apps:create` exited non-zero. `output` holds the raw CLI text."""

    def __init__(self, output: str, hint: str = "") -> None:
        super().__init__(f"failed to create Firebase app: {output.strip()}", hint)
        self.output = output


class InstallError(NativefireError):
    """The downloaded config artifact could not be installed."""


class MissingDependencyError(NativefireError):
    """A required external command-line tool is not on PATH."""

    def __init__(self, names: list[str], hint: str = "") -> None:
        if len(names) == 1:
            message = f"required dependency missing: {names[0]}"
        else:
            message = f"required dependencies missing: {', '.join(names)}"
        super().__init__(message, hint)
        self.names = names
