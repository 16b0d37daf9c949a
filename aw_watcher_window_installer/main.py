#!/usr/bin/env python3
"""
aw-watcher-window-installer - start the ActivityWatch window watcher at logon

Registers a per-user scheduled task that runs aw-watcher-window-rs with the
chosen server and title settings whenever the user logs on.

Usage:
    python -m aw_watcher_window_installer [username] [executable_path]
    python -m aw_watcher_window_installer --uninstall [username]
    python -m aw_watcher_window_installer --status [username]
"""

import argparse
import logging
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import InstallConfig, get_log_dir, load_config
from .exceptions import ElevationError, InstallerError, InvalidPortError
from .executable import resolve_executable
from .privileges import get_current_username, is_admin, relaunch_elevated
from .prompts import Ask, ask_exclude_title, ask_hostname, ask_port, parse_port
from .server import check_server
from .task import (
    RUN_LEVELS,
    build_task_definition,
    query_task,
    register_task,
    task_name,
    unregister_task,
)

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "aw-watcher-window-installer.log"
CLOSE_PROMPT = "Press Enter to close this window..."


def _port_arg(value: str) -> int:
    try:
        return parse_port(value)
    except InvalidPortError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Start the ActivityWatch window watcher automatically at logon"
    )
    parser.add_argument("username", nargs="?", help="User to install for (default: current user)")
    parser.add_argument(
        "executable_path", nargs="?", help="Path to the watcher executable (default: search PATH)"
    )
    parser.add_argument("--host", help="ActivityWatch server hostname (skips the prompt)")
    parser.add_argument("--port", type=_port_arg, help="ActivityWatch server port (skips the prompt)")

    titles = parser.add_mutually_exclusive_group()
    titles.add_argument(
        "--record-titles",
        dest="exclude_title",
        action="store_const",
        const=False,
        help="Record window titles (skips the prompt)",
    )
    titles.add_argument(
        "--exclude-title",
        dest="exclude_title",
        action="store_const",
        const=True,
        help="Do not record window titles (skips the prompt)",
    )

    parser.add_argument(
        "--run-level", choices=sorted(RUN_LEVELS), help="Run level of the scheduled task"
    )
    parser.add_argument("--config", help="Read settings from this YAML file")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--uninstall", action="store_true", help="Remove the scheduled task")
    mode.add_argument("--status", action="store_true", help="Show the scheduled task")

    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    # Set on the elevated copy so it never tries to elevate again
    parser.add_argument("--elevated", action="store_true", help=argparse.SUPPRESS)
    return parser


def setup_logging(verbose: bool = False) -> None:
    """Log to a file next to the other ActivityWatch logs and to stderr."""
    log_level = logging.DEBUG if verbose else logging.INFO

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level if verbose else logging.WARNING)
    handlers: List[logging.Handler] = [stream_handler]

    log_error = None
    try:
        handlers.insert(0, logging.FileHandler(get_log_dir() / LOG_FILE_NAME))
    except OSError as e:
        log_error = e

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
    if log_error is not None:
        logger.warning(f"Could not open log file, logging to stderr only: {log_error}")


def forwarded_args(
    args: argparse.Namespace, username: str, executable_path: Optional[str]
) -> List[str]:
    """
    Arguments for the elevated copy.

    Username and executable path are passed already resolved so the elevated
    process does not look them up again under the administrator's context.
    """
    forwarded = [username]
    if executable_path:
        forwarded.append(executable_path)
    if args.host is not None:
        forwarded += ["--host", args.host]
    if args.port is not None:
        forwarded += ["--port", str(args.port)]
    if args.exclude_title is True:
        forwarded.append("--exclude-title")
    elif args.exclude_title is False:
        forwarded.append("--record-titles")
    if args.run_level:
        forwarded += ["--run-level", args.run_level]
    if args.config:
        forwarded += ["--config", os.path.abspath(args.config)]
    if args.uninstall:
        forwarded.append("--uninstall")
    if args.verbose:
        forwarded.append("--verbose")
    forwarded.append("--elevated")
    return forwarded


def gather_install_config(
    args: argparse.Namespace,
    config: Dict[str, Any],
    username: str,
    executable_path: str,
    ask: Ask = input,
) -> InstallConfig:
    """Combine command-line options, prompt answers and config defaults."""
    watcher_config = config.get("watcher", {})

    exclude_title = args.exclude_title
    if exclude_title is None:
        exclude_title = ask_exclude_title(ask)

    hostname = args.host
    if hostname is None:
        hostname = ask_hostname(ask, watcher_config.get("host", "localhost"))

    port = args.port
    if port is None:
        port = ask_port(ask, watcher_config.get("port", 5600))

    return InstallConfig(
        username=username,
        executable_path=executable_path,
        hostname=hostname,
        port=port,
        exclude_title=exclude_title,
        exclude_title_processes=list(watcher_config.get("exclude_title_processes") or []),
        include_title_processes=list(watcher_config.get("include_title_processes") or []),
        poll_time=watcher_config.get("poll_time"),
        debug=bool(watcher_config.get("debug", False)),
    )


def install(
    args: argparse.Namespace,
    config: Dict[str, Any],
    username: str,
    executable_path: str,
    ask: Ask = input,
) -> int:
    install_config = gather_install_config(args, config, username, executable_path, ask)

    server_config = config.get("server_check", {})
    if server_config.get("enabled", True):
        if not check_server(
            install_config.hostname, install_config.port, server_config.get("timeout", 3.0)
        ):
            print(
                f"Note: no ActivityWatch server answered at "
                f"{install_config.hostname}:{install_config.port}. "
                "The watcher will keep retrying once it starts."
            )

    task_config = dict(config.get("task", {}))
    if args.run_level:
        task_config["run_level"] = args.run_level

    definition = build_task_definition(install_config, task_config)
    register_task(definition)

    logger.info(f"Installed task {definition.name} for {username}")
    print(f"Installed '{definition.name}': the window watcher will start when {username} logs on.")
    return 0


def uninstall(config: Dict[str, Any], username: str) -> int:
    name = task_name(username, config.get("task", {}).get("name_prefix", "aw-watcher-window-rs_"))
    unregister_task(name)
    print(f"Removed '{name}' for {username}.")
    return 0


def show_status(config: Dict[str, Any], username: str) -> int:
    name = task_name(username, config.get("task", {}).get("name_prefix", "aw-watcher-window-rs_"))
    info = query_task(name)
    if info is None:
        print(f"Task '{name}' is not installed.")
        return 1

    print(f"Task '{info['name']}': {info['state']} ({'enabled' if info['enabled'] else 'disabled'})")
    print(f"  Command: {info['command']}")
    return 0


def run(args: argparse.Namespace, config: Dict[str, Any], ask: Ask = input) -> int:
    """Resolve inputs, elevate if needed, then install or uninstall."""
    username = args.username or get_current_username()

    if args.status:
        return show_status(config, username)

    executable_path = None
    if not args.uninstall:
        executable_name = config.get("watcher", {}).get("executable_name", "aw-watcher-window-rs.exe")
        executable_path = resolve_executable(args.executable_path, executable_name)

    if not is_admin():
        if args.elevated:
            raise ElevationError("Still not running as administrator after elevation")
        relaunch_elevated(forwarded_args(args, username, executable_path))
        print("Administrator rights are required; continuing in a new window.")
        return 0

    if args.uninstall:
        return uninstall(config, username)
    return install(args, config, username, executable_path, ask)


def main(argv: Optional[List[str]] = None, ask: Ask = input) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    config = load_config(Path(args.config) if args.config else None)

    try:
        code = run(args, config, ask)
    except InstallerError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    except Exception as e:
        if args.elevated:
            # Show the scheduler's error before the elevated console closes
            logger.error(f"Installation failed: {e}")
            traceback.print_exc()
            ask(CLOSE_PROMPT)
        raise

    if args.elevated:
        # The elevated console closes on exit
        ask(CLOSE_PROMPT)
    return code


if __name__ == "__main__":
    sys.exit(main())
