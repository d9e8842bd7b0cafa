"""Terminal output helpers and logging setup.

User-facing progress goes through the print helpers; diagnostic detail goes
to the "nativefire" logger, which writes to ~/.nativefire/logs/nativefire.log
and, in verbose mode, to stderr.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from core import config

# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def print_status(msg: str) -> None:
    print(f"\033[36m[nativefire]\033[0m {msg}")


def print_bold(msg: str) -> None:
    print(f"\033[36m[nativefire]\033[0m \033[1m{msg}\033[0m")


def print_success(msg: str) -> None:
    print(f"\033[32m[nativefire]\033[0m {msg}")


def print_warning(msg: str) -> None:
    print(f"\033[33m[nativefire warning]\033[0m {msg}")


def print_error(msg: str) -> None:
    print(f"\033[31m[nativefire error]\033[0m {msg}", file=sys.stderr)


def print_step(number: int, msg: str) -> None:
    print(f"\033[36m[nativefire]\033[0m \033[1m{number}.\033[0m {msg}")


def print_lines(lines: list[str], indent: str = "  ") -> None:
    """Print a block of instruction lines under the status prefix."""
    for line in lines:
        print_status(f"{indent}{line}" if line else "")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(verbose: bool = False) -> logging.Logger:
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root = logging.getLogger("nativefire")
    root.setLevel(logging.DEBUG)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    # File handler with rotation (1MB, keep 3). Skipped if ~ is read-only.
    try:
        config.LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.LOG_FILE,
            maxBytes=1024 * 1024,
            backupCount=3
        )
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.addHandler(console_handler)

    return root
