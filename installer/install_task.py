#!/usr/bin/env python3
"""
Register the window watcher as a logon task for a Windows user.

Usage:
    # Install for the current user (finds aw-watcher-window-rs.exe on PATH)
    python install_task.py

    # Install for another user with an explicit executable
    python install_task.py alice "C:\\Program Files\\aw-watcher-window-rs\\aw-watcher-window-rs.exe"

    # Remove / inspect
    python install_task.py --uninstall
    python install_task.py --status

Requirements:
    pip install pywin32 PyYAML requests
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from aw_watcher_window_installer.main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
