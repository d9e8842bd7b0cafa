#!/usr/bin/env python3
"""
nativefire CLI - set up Firebase for native projects.

Detects the project's platform, registers (or reuses) the matching app in
a Firebase project, installs its config file and adds the SDK
initialization code.

Usage:
    nativefire configure
    nativefire configure --project my-app --platform android
    nativefire configure --project my-app --bundle-id com.example.app
    nativefire configure --app-id 1:123:ios:abc --project-dir ./MyApp
    nativefire projects list
    nativefire projects select --use
    nativefire version

Config: reads NATIVEFIRE_VERBOSE, NATIVEFIRE_FIREBASE_CLI and
        NATIVEFIRE_PROJECT from ~/.nativefire/config.env (or --config)
        and the environment.
"""

import logging
import sys
from pathlib import Path

from cli.configure import run_configure
from cli.projects import list_projects, select_project
from core.config import VERSION, load_config
from core.console import print_error, print_lines, print_status, setup_logging
from core.errors import NativefireError
from registry.firebase_cli import FirebaseCLI

logger = logging.getLogger("nativefire.cli")


def _do_configure(args, config: dict) -> int:
    run_configure(
        Path(args.project_dir),
        project_id=args.project or config["project_id"] or None,
        platform_name=args.platform,
        auto_detect=args.auto_detect,
        app_id=args.app_id,
        bundle_id=args.bundle_id,
        package_name=args.package_name,
        firebase_cli=config["firebase_cli"],
        verbose=config["verbose"],
    )
    return 0


def _do_projects(args, config: dict) -> int:
    client = FirebaseCLI(config["firebase_cli"], verbose=config["verbose"])
    if args.projects_command == "list":
        return list_projects(client)
    return select_project(client, use=args.use)


def _do_version() -> int:
    print(f"nativefire {VERSION}")
    return 0


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="nativefire",
        description="nativefire - configure Firebase for native apps"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--config", default=None,
                        help="Config file (default: ~/.nativefire/config.env)")
    parser.add_argument("--version", action="version", version=f"nativefire {VERSION}")
    sub = parser.add_subparsers(dest="command", required=True)

    # nativefire configure
    p_conf = sub.add_parser("configure", help="Configure Firebase for the current project")
    p_conf.add_argument("-p", "--project", help="Firebase project ID (prompted if omitted)")
    p_conf.add_argument("--platform", help="Target platform (android, ios, macos, windows, linux)")
    p_conf.add_argument("--auto-detect", action=argparse.BooleanOptionalAction, default=True,
                        help="Detect the platform from project files (default: on)")
    p_conf.add_argument("--app-id", help="Use this Firebase app ID instead of looking one up")
    p_conf.add_argument("--bundle-id", help="Bundle ID for iOS/macOS apps")
    p_conf.add_argument("--package-name", help="Package name for Android/desktop apps")
    p_conf.add_argument("--project-dir", default=".", help="Project directory (default: .)")

    # nativefire projects
    p_proj = sub.add_parser("projects", help="List or select Firebase projects")
    proj_sub = p_proj.add_subparsers(dest="projects_command", required=True)
    proj_sub.add_parser("list", help="List active Firebase projects")
    p_select = proj_sub.add_parser("select", help="Pick a Firebase project interactively")
    p_select.add_argument("--use", action="store_true",
                          help="Also make it the Firebase CLI's active project")

    # nativefire version
    sub.add_parser("version", help="Show the nativefire version")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        sys.exit(_do_version())

    try:
        config = load_config(Path(args.config) if args.config else None)
        if args.verbose:
            config["verbose"] = True
        setup_logging(config["verbose"])
        logger.debug("command=%s", args.command)

        if args.command == "configure":
            exit_code = _do_configure(args, config)

        elif args.command == "projects":
            exit_code = _do_projects(args, config)

        else:
            parser.error(f"unknown command: {args.command}")

    except NativefireError as e:
        print_error(str(e))
        if e.hint:
            print_lines(e.hint.splitlines())
        logger.debug("command failed: %s", e)
        exit_code = 1
    except KeyboardInterrupt:
        print()
        print_error("Cancelled")
        exit_code = 1
    except EOFError:
        print()
        print_error("No input available (non-interactive session)")
        print_status("Pass --project <id> to skip the project prompt")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
