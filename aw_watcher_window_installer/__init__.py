"""
aw-watcher-window-installer: run the ActivityWatch window watcher at logon.
"""

__version__ = "0.1.0"
