"""
Scheduled task for the window watcher.

Builds the watcher command line and talks to the Windows Task Scheduler
through its COM API (``Schedule.Service``).

Requirements:
    pip install pywin32
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import InstallConfig
from .exceptions import TaskNotFoundError

logger = logging.getLogger(__name__)

# Task Scheduler 2.0 constants (taskschd.h)
TASK_TRIGGER_LOGON = 9
TASK_ACTION_EXEC = 0
TASK_CREATE_OR_UPDATE = 6
TASK_LOGON_INTERACTIVE_TOKEN = 3
TASK_RUNLEVEL_LUA = 0
TASK_RUNLEVEL_HIGHEST = 1
TASK_ENUM_HIDDEN = 1

RUN_LEVELS = {
    "limited": TASK_RUNLEVEL_LUA,
    "highest": TASK_RUNLEVEL_HIGHEST,
}

TASK_STATES = {
    0: "Unknown",
    1: "Disabled",
    2: "Queued",
    3: "Ready",
    4: "Running",
}

NO_TIME_LIMIT = "PT0S"


@dataclass
class ScheduledTaskDefinition:
    """What gets registered with the Task Scheduler."""

    name: str
    executable: str
    arguments: str
    username: str
    run_level: int = TASK_RUNLEVEL_LUA
    description: str = ""
    disallow_start_if_on_batteries: bool = False
    stop_if_going_on_batteries: bool = False
    execution_time_limit: str = NO_TIME_LIMIT


def task_name(username: str, prefix: str) -> str:
    """One task per user, so installs for different users never collide."""
    return f"{prefix}{username}"


def build_arguments(config: InstallConfig) -> str:
    """Build the watcher command-line arguments."""
    args: List[str] = ["--host", config.hostname, "--port", str(config.port)]
    if config.exclude_title:
        args.append("--exclude-title")
    if config.exclude_title_processes:
        args += ["--exclude-title-processes", ",".join(config.exclude_title_processes)]
    if config.include_title_processes:
        args += ["--include-title-processes", ",".join(config.include_title_processes)]
    if config.poll_time is not None:
        args += ["--poll-time", str(config.poll_time)]
    if config.debug:
        args.append("--debug")
    return subprocess.list2cmdline(args)


def build_task_definition(
    config: InstallConfig, task_config: Dict[str, Any]
) -> ScheduledTaskDefinition:
    run_level = task_config.get("run_level", "limited")
    if run_level not in RUN_LEVELS:
        logger.warning(f"Unknown run level {run_level!r}, using 'limited'")
        run_level = "limited"

    return ScheduledTaskDefinition(
        name=task_name(config.username, task_config.get("name_prefix", "aw-watcher-window-rs_")),
        executable=config.executable_path,
        arguments=build_arguments(config),
        username=config.username,
        run_level=RUN_LEVELS[run_level],
        description=task_config.get("description", ""),
    )


def connect_scheduler():
    """Connect to the local Task Scheduler service."""
    import win32com.client

    scheduler = win32com.client.Dispatch("Schedule.Service")
    scheduler.Connect()
    return scheduler


def register_task(definition: ScheduledTaskDefinition, scheduler=None):
    """
    Register (or replace) the logon task in the root folder.

    Errors raised by the Task Scheduler are not handled here.
    """
    if scheduler is None:
        scheduler = connect_scheduler()

    root_folder = scheduler.GetFolder("\\")
    task_def = scheduler.NewTask(0)

    task_def.RegistrationInfo.Description = definition.description

    trigger = task_def.Triggers.Create(TASK_TRIGGER_LOGON)
    trigger.UserId = definition.username
    trigger.Enabled = True

    action = task_def.Actions.Create(TASK_ACTION_EXEC)
    action.Path = definition.executable
    action.Arguments = definition.arguments

    principal = task_def.Principal
    principal.UserId = definition.username
    principal.LogonType = TASK_LOGON_INTERACTIVE_TOKEN
    principal.RunLevel = definition.run_level

    settings = task_def.Settings
    settings.Enabled = True
    settings.DisallowStartIfOnBatteries = definition.disallow_start_if_on_batteries
    settings.StopIfGoingOnBatteries = definition.stop_if_going_on_batteries
    settings.ExecutionTimeLimit = definition.execution_time_limit

    logger.info(f"Registering task {definition.name}: {definition.executable} {definition.arguments}")
    return root_folder.RegisterTaskDefinition(
        definition.name,
        task_def,
        TASK_CREATE_OR_UPDATE,
        definition.username,
        "",
        TASK_LOGON_INTERACTIVE_TOKEN,
    )


def find_task(name: str, scheduler=None):
    """Return the registered task called ``name``, or None."""
    if scheduler is None:
        scheduler = connect_scheduler()

    root_folder = scheduler.GetFolder("\\")
    for task in root_folder.GetTasks(TASK_ENUM_HIDDEN):
        if task.Name == name:
            return task
    return None


def unregister_task(name: str, scheduler=None) -> None:
    """Delete the task called ``name``."""
    if scheduler is None:
        scheduler = connect_scheduler()

    if find_task(name, scheduler) is None:
        raise TaskNotFoundError(name)

    logger.info(f"Deleting task {name}")
    scheduler.GetFolder("\\").DeleteTask(name, 0)


def query_task(name: str, scheduler=None) -> Optional[Dict[str, Any]]:
    """Summarize the task called ``name``, or return None if it is missing."""
    task = find_task(name, scheduler)
    if task is None:
        return None

    # COM collections are 1-based
    action = task.Definition.Actions.Item(1)
    return {
        "name": task.Name,
        "enabled": bool(task.Enabled),
        "state": TASK_STATES.get(task.State, "Unknown"),
        "command": f"{action.Path} {action.Arguments}".strip(),
    }
