"""
Errors reported to the user by the installer.
"""


class InstallerError(Exception):
    """Base class for failures that end the install with exit status 1."""


class ExecutableNotFoundError(InstallerError):
    """The watcher executable was not given and is not on the search path."""

    def __init__(self, name: str):
        super().__init__(
            f"Could not find {name} on PATH. "
            "Pass the path to the watcher executable as the second argument."
        )
        self.name = name


class ElevationError(InstallerError):
    """Administrator rights could not be obtained."""


class InvalidPortError(InstallerError):
    """The port answer is not an integer between 1 and 65535."""

    def __init__(self, value: str):
        super().__init__(f"Invalid port: {value!r} (expected a number between 1 and 65535)")
        self.value = value


class TaskNotFoundError(InstallerError):
    """No scheduled task is registered under the expected name."""

    def __init__(self, name: str):
        super().__init__(f"Scheduled task '{name}' is not registered")
        self.name = name
