"""
Locating the watcher executable the scheduled task will launch.
"""

import logging
import os
import shutil
from typing import Optional

from .exceptions import ExecutableNotFoundError

logger = logging.getLogger(__name__)


def resolve_executable(explicit_path: Optional[str], executable_name: str) -> str:
    """
    Return the absolute path of the watcher executable.

    An explicitly given path wins and is only checked loosely, since the
    watcher may be installed after the task. Otherwise the search path is
    consulted for ``executable_name``.

    Raises:
        ExecutableNotFoundError: nothing was given and the search failed.
    """
    if explicit_path:
        path = os.path.abspath(explicit_path)
        if not os.path.isfile(path):
            logger.warning(f"Executable {path} does not exist (yet)")
        return path

    found = shutil.which(executable_name)
    if not found:
        raise ExecutableNotFoundError(executable_name)

    logger.debug(f"Resolved {executable_name} to {found}")
    return os.path.abspath(found)
