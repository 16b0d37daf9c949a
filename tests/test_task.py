"""
Tests for the scheduled task definition and registration.
"""

from unittest.mock import MagicMock

import pytest

from aw_watcher_window_installer.config import InstallConfig
from aw_watcher_window_installer.exceptions import TaskNotFoundError
from aw_watcher_window_installer.task import (
    TASK_ACTION_EXEC,
    TASK_CREATE_OR_UPDATE,
    TASK_LOGON_INTERACTIVE_TOKEN,
    TASK_RUNLEVEL_HIGHEST,
    TASK_RUNLEVEL_LUA,
    TASK_TRIGGER_LOGON,
    build_arguments,
    build_task_definition,
    query_task,
    register_task,
    task_name,
    unregister_task,
)

TASK_CONFIG = {
    "name_prefix": "aw-watcher-window-rs_",
    "run_level": "limited",
    "description": "Starts the ActivityWatch window watcher at logon",
}


def make_config(**kwargs):
    values = {"username": "alice", "executable_path": "C:\\Tools\\aw-watcher-window-rs.exe"}
    values.update(kwargs)
    return InstallConfig(**values)


def scheduler_with_tasks(*names):
    scheduler = MagicMock()
    tasks = []
    for name in names:
        task = MagicMock()
        task.Name = name
        tasks.append(task)
    scheduler.GetFolder.return_value.GetTasks.return_value = tasks
    return scheduler


class TestTaskName:
    """Tests for task_name function."""

    @pytest.mark.parametrize("username", ["alice", "Bob Smith", "user.name"])
    def test_prefix_plus_username(self, username):
        assert task_name(username, "aw-watcher-window-rs_") == "aw-watcher-window-rs_" + username

    def test_different_users_do_not_collide(self):
        assert task_name("alice", "p_") != task_name("bob", "p_")


class TestBuildArguments:
    """Tests for build_arguments function."""

    def test_excludes_title(self):
        args = build_arguments(make_config(exclude_title=True))
        assert args == "--host localhost --port 5600 --exclude-title"

    def test_records_title(self):
        args = build_arguments(make_config(exclude_title=False))
        assert args == "--host localhost --port 5600"
        assert "--exclude-title" not in args

    def test_custom_server(self):
        args = build_arguments(make_config(hostname="aw.example.com", port=5666))
        assert args.startswith("--host aw.example.com --port 5666")

    def test_pass_through_options(self):
        config = make_config(
            exclude_title=False,
            exclude_title_processes=["firefox.exe", "chrome.exe"],
            include_title_processes=["code.exe"],
            poll_time=1000,
            debug=True,
        )
        assert build_arguments(config) == (
            "--host localhost --port 5600"
            " --exclude-title-processes firefox.exe,chrome.exe"
            " --include-title-processes code.exe"
            " --poll-time 1000 --debug"
        )

    def test_quotes_values_with_spaces(self):
        config = make_config(exclude_title=False, exclude_title_processes=["My App.exe"])
        assert '"My App.exe"' in build_arguments(config)


class TestBuildTaskDefinition:
    """Tests for build_task_definition function."""

    def test_definition_fields(self):
        definition = build_task_definition(make_config(), TASK_CONFIG)
        assert definition.name == "aw-watcher-window-rs_alice"
        assert definition.executable == "C:\\Tools\\aw-watcher-window-rs.exe"
        assert definition.arguments == "--host localhost --port 5600 --exclude-title"
        assert definition.username == "alice"
        assert definition.run_level == TASK_RUNLEVEL_LUA

    def test_battery_and_time_limit(self):
        definition = build_task_definition(make_config(), TASK_CONFIG)
        assert definition.disallow_start_if_on_batteries is False
        assert definition.stop_if_going_on_batteries is False
        assert definition.execution_time_limit == "PT0S"

    def test_highest_run_level(self):
        definition = build_task_definition(make_config(), {**TASK_CONFIG, "run_level": "highest"})
        assert definition.run_level == TASK_RUNLEVEL_HIGHEST

    def test_unknown_run_level_falls_back(self):
        definition = build_task_definition(make_config(), {**TASK_CONFIG, "run_level": "system"})
        assert definition.run_level == TASK_RUNLEVEL_LUA


class TestRegisterTask:
    """Tests for register_task against a mocked Task Scheduler."""

    def test_registers_logon_task(self):
        scheduler = MagicMock()
        definition = build_task_definition(make_config(), TASK_CONFIG)

        register_task(definition, scheduler)

        task_def = scheduler.NewTask.return_value
        task_def.Triggers.Create.assert_called_once_with(TASK_TRIGGER_LOGON)
        task_def.Actions.Create.assert_called_once_with(TASK_ACTION_EXEC)

        trigger = task_def.Triggers.Create.return_value
        assert trigger.UserId == "alice"

        action = task_def.Actions.Create.return_value
        assert action.Path == "C:\\Tools\\aw-watcher-window-rs.exe"
        assert action.Arguments == "--host localhost --port 5600 --exclude-title"

        assert task_def.Principal.UserId == "alice"
        assert task_def.Principal.RunLevel == TASK_RUNLEVEL_LUA
        assert task_def.Principal.LogonType == TASK_LOGON_INTERACTIVE_TOKEN

        assert task_def.Settings.DisallowStartIfOnBatteries is False
        assert task_def.Settings.StopIfGoingOnBatteries is False
        assert task_def.Settings.ExecutionTimeLimit == "PT0S"

        scheduler.GetFolder.assert_called_with("\\")
        scheduler.GetFolder.return_value.RegisterTaskDefinition.assert_called_once_with(
            "aw-watcher-window-rs_alice",
            task_def,
            TASK_CREATE_OR_UPDATE,
            "alice",
            "",
            TASK_LOGON_INTERACTIVE_TOKEN,
        )

    def test_reinstall_overwrites_by_name(self):
        """Registering twice for one user targets the same name with create-or-update."""
        scheduler = MagicMock()
        definition = build_task_definition(make_config(), TASK_CONFIG)

        register_task(definition, scheduler)
        register_task(definition, scheduler)

        calls = scheduler.GetFolder.return_value.RegisterTaskDefinition.call_args_list
        assert len(calls) == 2
        for call in calls:
            assert call.args[0] == "aw-watcher-window-rs_alice"
            assert call.args[2] == TASK_CREATE_OR_UPDATE

    def test_scheduler_errors_propagate(self):
        scheduler = MagicMock()
        scheduler.GetFolder.return_value.RegisterTaskDefinition.side_effect = OSError("denied")
        definition = build_task_definition(make_config(), TASK_CONFIG)

        with pytest.raises(OSError):
            register_task(definition, scheduler)


class TestUnregisterTask:
    """Tests for unregister_task."""

    def test_deletes_existing_task(self):
        scheduler = scheduler_with_tasks("other", "aw-watcher-window-rs_alice")

        unregister_task("aw-watcher-window-rs_alice", scheduler)

        scheduler.GetFolder.return_value.DeleteTask.assert_called_once_with(
            "aw-watcher-window-rs_alice", 0
        )

    def test_missing_task(self):
        scheduler = scheduler_with_tasks("other")

        with pytest.raises(TaskNotFoundError):
            unregister_task("aw-watcher-window-rs_alice", scheduler)
        scheduler.GetFolder.return_value.DeleteTask.assert_not_called()


class TestQueryTask:
    """Tests for query_task."""

    def test_missing_task(self):
        assert query_task("aw-watcher-window-rs_alice", scheduler_with_tasks()) is None

    def test_summary(self):
        scheduler = scheduler_with_tasks("aw-watcher-window-rs_alice")
        task = scheduler.GetFolder.return_value.GetTasks.return_value[0]
        task.Enabled = True
        task.State = 3
        action = task.Definition.Actions.Item.return_value
        action.Path = "C:\\w.exe"
        action.Arguments = "--host localhost --port 5600"

        info = query_task("aw-watcher-window-rs_alice", scheduler)

        assert info == {
            "name": "aw-watcher-window-rs_alice",
            "enabled": True,
            "state": "Ready",
            "command": "C:\\w.exe --host localhost --port 5600",
        }
        task.Definition.Actions.Item.assert_called_once_with(1)
