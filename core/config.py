"""
nativefire configuration - paths, defaults, and shared config helpers.

All modules import path constants from here. The ~/.nativefire/ directory
is the single location for logs and the optional config.env file.
"""

import os
from pathlib import Path
from typing import Any, Callable

from core.errors import ConfigurationError

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Paths - the ~/.nativefire/ directory tree
# ---------------------------------------------------------------------------

NATIVEFIRE_DIR = Path.home() / ".nativefire"
LOG_DIR = NATIVEFIRE_DIR / "logs"
LOG_FILE = LOG_DIR / "nativefire.log"
CONFIG_FILE = NATIVEFIRE_DIR / "config.env"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_FIREBASE_CLI = "firebase"
FIREBASE_CONSOLE_URL = "https://console.firebase.google.com/"
FIREBASE_IOS_SDK_URL = "https://github.com/firebase/firebase-ios-sdk"
FIREBASE_IOS_SDK_VERSION = "10.24.0"
GOOGLE_SERVICES_PLUGIN_ID = "com.google.gms.google-services"
GOOGLE_SERVICES_CLASSPATH = "com.google.gms:google-services:4.3.15"

# ---------------------------------------------------------------------------
# Shared config helpers
# ---------------------------------------------------------------------------


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def source_env_file(
    path: Path,
    config: dict,
    key_map: dict[str, tuple[str, Callable]],
) -> None:
    """Parse key=value pairs from a shell-style env file.

    Args:
        path: Path to the .env file.
        config: Dict to update with parsed values.
        key_map: Mapping of ENV_VAR_NAME -> (config_key, cast_fn).
            Cast functions receive the string value and return the typed value.
    """
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            value = value.strip().strip('"').strip("'")
            key = key.strip()
            if key in key_map:
                cfg_key, cast = key_map[key]
                try:
                    config[cfg_key] = cast(value)
                except (ValueError, TypeError):
                    pass


# Env var -> (config key, cast). Shared by config.env and the environment.
_ENV_MAP: dict[str, tuple[str, Callable]] = {
    "NATIVEFIRE_VERBOSE": ("verbose", _parse_bool),
    "NATIVEFIRE_FIREBASE_CLI": ("firebase_cli", str),
    "NATIVEFIRE_PROJECT": ("project_id", str),
}


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load CLI config.

    Priority: environment > config.env (explicit path or ~/.nativefire) > defaults.
    An explicit path that does not exist is an error; the default file is optional.
    """
    config: dict[str, Any] = {
        "verbose": False,
        "firebase_cli": DEFAULT_FIREBASE_CLI,
        "project_id": "",
    }

    if path is not None:
        if not path.is_file():
            raise ConfigurationError(
                f"Config file not found: {path}",
                hint="Pass an existing key=value file to --config, or omit the flag.",
            )
        source_env_file(path, config, _ENV_MAP)
    elif CONFIG_FILE.is_file():
        source_env_file(CONFIG_FILE, config, _ENV_MAP)

    for env_key, (cfg_key, cast) in _ENV_MAP.items():
        raw = os.environ.get(env_key)
        if raw:
            try:
                config[cfg_key] = cast(raw)
            except (ValueError, TypeError):
                pass

    return config
