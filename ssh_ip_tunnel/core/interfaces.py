"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of a finished command"""
    program: str
    args: tuple
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


class ProcessHandle(ABC):
    """Handle to a spawned, still-owned external process"""

    @property
    @abstractmethod
    def pid(self) -> int:
        """Operating system process id"""
        pass

    @abstractmethod
    def poll(self) -> Optional[int]:
        """Return exit code if the process has exited, else None"""
        pass

    @abstractmethod
    def terminate(self) -> None:
        """Ask the process to exit (SIGTERM)"""
        pass

    @abstractmethod
    def kill(self) -> None:
        """Force the process to exit (SIGKILL)"""
        pass

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Wait up to timeout seconds; return exit code or None if still running"""
        pass

    @abstractmethod
    def read_stderr(self) -> str:
        """Captured stderr of an exited process"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release pipes held for the process. Idempotent."""
        pass


class ProcessRunner(ABC):
    """External process execution interface"""

    @abstractmethod
    def run(
        self,
        program: str,
        args: Sequence[str],
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run program to completion and capture its output.

        Raises:
            ProcessTimeoutError: If timeout is exceeded
            FileNotFoundError: If program is not installed
        """
        pass

    @abstractmethod
    def spawn(self, program: str, args: Sequence[str]) -> ProcessHandle:
        """
        Start program without waiting for it.

        Raises:
            FileNotFoundError: If program is not installed
        """
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass
