"""
Current user and administrator rights on Windows.

Requirements:
    pip install pywin32
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Sequence, Tuple

from .exceptions import ElevationError

logger = logging.getLogger(__name__)

PACKAGE_NAME = "aw_watcher_window_installer"
# Started from here, "-m" finds the package in a source checkout too
WORKING_DIR = str(Path(__file__).resolve().parent.parent)


def get_current_username() -> str:
    """Name of the user running this process (no domain part)."""
    import win32api

    return win32api.GetUserName()


def is_admin() -> bool:
    """Check whether the process token is elevated."""
    from win32com.shell import shell

    return bool(shell.IsUserAnAdmin())


def build_elevated_command(args: Sequence[str]) -> Tuple[str, str]:
    """
    Build the program and parameter string that restart this installer.

    A frozen build restarts its own executable; otherwise the interpreter
    runs the package as a module.
    """
    argv: List[str] = list(args)
    if not getattr(sys, "frozen", False):
        argv = ["-m", PACKAGE_NAME] + argv
    return sys.executable, subprocess.list2cmdline(argv)


def relaunch_elevated(args: Sequence[str]) -> None:
    """
    Start a new elevated copy of the installer with ``args``.

    The caller is expected to exit right after this returns. The UAC prompt is
    shown by the OS; refusing it raises ElevationError.
    """
    program, params = build_elevated_command(args)
    logger.info(f"Relaunching as administrator: {program} {params}")
    _shell_execute_runas(program, params)


def _shell_execute_runas(program: str, params: str) -> None:
    import pywintypes
    import win32api
    import win32con

    try:
        # 'runas' verb triggers UAC prompt
        win32api.ShellExecute(0, "runas", program, params, WORKING_DIR, win32con.SW_SHOWNORMAL)
    except pywintypes.error as e:
        raise ElevationError(f"Could not restart with administrator rights: {e.strerror}") from e
