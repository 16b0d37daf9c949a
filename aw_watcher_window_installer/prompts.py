"""
Interactive questions asked before the task is registered.

Each function takes an ``ask`` callable (``input`` by default) so answers can
be scripted.
"""

from typing import Callable

from .exceptions import InvalidPortError

Ask = Callable[[str], str]


def ask_exclude_title(ask: Ask = input) -> bool:
    """
    Ask whether window titles should be recorded.

    Returns True when ``--exclude-title`` should be passed to the watcher.
    Only "y" opts in to recording; any other answer, including an empty one,
    keeps titles out.
    """
    answer = ask("Record window titles? [y/N]: ").strip().lower()
    return answer != "y"


def ask_hostname(ask: Ask = input, default: str = "localhost") -> str:
    """Ask for the ActivityWatch server hostname."""
    answer = ask(f"ActivityWatch server hostname [{default}]: ").strip()
    return answer or default


def ask_port(ask: Ask = input, default: int = 5600) -> int:
    """Ask for the ActivityWatch server port."""
    answer = ask(f"ActivityWatch server port [{default}]: ").strip()
    if not answer:
        return default
    return parse_port(answer)


def parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise InvalidPortError(value) from None
    if not 0 < port < 65536:
        raise InvalidPortError(value)
    return port
