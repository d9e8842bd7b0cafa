"""Platform classification - pick the one platform a project directory targets."""

from __future__ import annotations

import logging
from pathlib import Path

from core.errors import DetectionError
from platforms.android import AndroidPlatform
from platforms.apple import IOSPlatform, MacOSPlatform
from platforms.base import Platform
from platforms.desktop import LinuxPlatform, WindowsPlatform

logger = logging.getLogger("nativefire.classifier")

# Evaluation order matters: the first detector that matches wins.
PLATFORM_ORDER: list[type[Platform]] = [
    AndroidPlatform,
    IOSPlatform,
    MacOSPlatform,
    WindowsPlatform,
    LinuxPlatform,
]

PLATFORM_KEYS = [cls.key for cls in PLATFORM_ORDER]


def all_platforms() -> list[Platform]:
    return [cls() for cls in PLATFORM_ORDER]


def classify(root: Path) -> Platform | None:
    """Return the first platform whose structural signals match root, or None."""
    for platform in all_platforms():
        if platform.detect(root):
            logger.info("detected %s in %s", platform.name, root)
            return platform
    logger.info("no platform detected in %s", root)
    return None


def platform_from_string(name: str) -> Platform:
    """Resolve an explicit --platform value (case-insensitive)."""
    wanted = name.strip().lower()
    for cls in PLATFORM_ORDER:
        if cls.key == wanted:
            return cls()
    raise DetectionError(
        f"Unsupported platform: {name}",
        hint=f"Choose one of: {', '.join(PLATFORM_KEYS)}",
    )
