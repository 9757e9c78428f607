"""
subprocess-backed process runner
"""
import subprocess
from typing import Optional, Sequence

from ...core.exceptions import ProcessTimeoutError
from ...core.interfaces import CommandResult, ProcessHandle, ProcessRunner
from ...core.logging import get_logger

logger = get_logger(__name__)


class PopenProcessHandle(ProcessHandle):
    """ProcessHandle over subprocess.Popen"""

    def __init__(self, process: subprocess.Popen):
        self._process = process
        self._stderr: Optional[str] = None

    @property
    def pid(self) -> int:
        return self._process.pid

    def poll(self) -> Optional[int]:
        return self._process.poll()

    def terminate(self) -> None:
        if self._process.poll() is None:
            self._process.terminate()

    def kill(self) -> None:
        if self._process.poll() is None:
            self._process.kill()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        try:
            return self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def read_stderr(self) -> str:
        """Read stderr once the process is gone; empty while it still runs"""
        if self._stderr is not None:
            return self._stderr
        stderr = self._process.stderr
        if self._process.poll() is None or stderr is None or stderr.closed:
            return ""
        data = stderr.read() or b""
        stderr.close()
        self._stderr = data.decode("utf-8", errors="replace")
        return self._stderr

    def close(self) -> None:
        if self._process.stderr is not None and not self._process.stderr.closed:
            self._process.stderr.close()


class SubprocessRunner(ProcessRunner):
    """Runs external programs with the subprocess module"""

    def run(
        self,
        program: str,
        args: Sequence[str],
        timeout: Optional[float] = None,
    ) -> CommandResult:
        cmd = [program, *args]
        logger.debug(f"Running: {cmd}")
        try:
            # stdin stays attached so ssh can still prompt on the terminal
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessTimeoutError(program, timeout) from e

        return CommandResult(
            program=program,
            args=tuple(args),
            exit_code=result.returncode,
            stdout=result.stdout or b"",
            stderr=result.stderr or b"",
        )

    def spawn(self, program: str, args: Sequence[str]) -> ProcessHandle:
        cmd = [program, *args]
        logger.debug(f"Spawning: {cmd}")
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )
        return PopenProcessHandle(process)
