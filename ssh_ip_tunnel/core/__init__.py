"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, resolve_level, get_logger, get_stdout_console, get_stderr_console
from .interfaces import CommandResult, ProcessHandle, ProcessRunner, PromptProvider
from .telemetry import Telemetry
from .utils import load_ssh_config, resolve_key_path, port_is_open

__all__ = [
    "setup_logging",
    "resolve_level",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "CommandResult",
    "ProcessHandle",
    "ProcessRunner",
    "PromptProvider",
    "Telemetry",
    "load_ssh_config",
    "resolve_key_path",
    "port_is_open",
]
