"""
Tunnel session - lifecycle of one SSH local-forward process

State machine:

    IDLE -> CREATING -> CREATED -> VALIDATING -> VALIDATED -> CLOSED
                 \\                       \\
                  +-> FAILED              +-> FAILED

create() and validate() are single attempts; retrying them is the caller's
business (see RetryPolicy). close() releases the tunnel process and is safe to
call any number of times from any state.
"""
import time
from typing import Callable, Optional

from ...core.constants import (
    CLOSE_GRACE_PERIOD,
    LIVENESS_POLL_INTERVAL,
    PORT_PROBE_TIMEOUT,
    SSH_PROGRAM,
    VALIDATION_MARKER,
)
from ...core.exceptions import (
    MissingExecutable,
    ProcessTimeoutError,
    TunnelCreationFailed,
    ValidationFailed,
)
from ...core.interfaces import CommandResult, ProcessHandle, ProcessRunner
from ...core.logging import get_logger
from ...core.telemetry import Telemetry
from ...core.utils import port_is_open
from .commands import tunnel_args, validation_args
from .models import SessionState, TunnelConfig, TunnelHandle, TunnelTarget

logger = get_logger(__name__)

LOCAL_HOST = "localhost"


def _handshake_completed(result: CommandResult) -> bool:
    """ssh got far enough to be refused by the server's authentication"""
    return result.exit_code == 255 and "Permission denied" in result.stderr_text


def _describe_failure(result: CommandResult) -> str:
    stderr = result.stderr_text.strip()
    if stderr:
        return f"ssh exited with status {result.exit_code}: {stderr}"
    return f"ssh exited with status {result.exit_code}"


class TunnelSession:
    """
    Owns one tunnel process from spawn to teardown.

    Args:
        runner: Process execution backend
        target: Remote device
        config: Tunnel configuration
        probe: (host, port, timeout) -> bool, checks the local end of the forward
        clock: Monotonic time source for the liveness deadline
        sleep: Sleep function between liveness polls
        liveness_timeout: Ceiling for the post-spawn liveness check
            (default: config.timeout_seconds)
        telemetry: Event collector
    """

    def __init__(
        self,
        runner: ProcessRunner,
        target: TunnelTarget,
        config: TunnelConfig,
        probe: Callable[[str, int, float], bool] = port_is_open,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        liveness_timeout: Optional[float] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        self.runner = runner
        self.target = target
        self.config = config
        self.probe = probe
        self.clock = clock
        self.sleep = sleep
        self.liveness_timeout = liveness_timeout if liveness_timeout is not None else float(config.timeout_seconds)
        self.telemetry = telemetry or Telemetry()
        self.state = SessionState.IDLE
        self._handle: Optional[TunnelHandle] = None
        self._closed = False

    def __enter__(self) -> "TunnelSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @property
    def handle(self) -> Optional[TunnelHandle]:
        return self._handle

    @property
    def local_port(self) -> int:
        return self.config.local_port

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, deadline: Optional[float] = None) -> TunnelHandle:
        """
        Spawn the tunnel process and wait until its local port listens.

        Args:
            deadline: Clock reading past which the liveness wait gives up,
                even before liveness_timeout has run out

        Returns:
            Handle of the running tunnel

        Raises:
            TunnelCreationFailed: Attempt failed; no process is left behind
            MissingExecutable: ssh is not installed
            RuntimeError: Session is not in a state that allows creation
        """
        if self.state not in (SessionState.IDLE, SessionState.CREATING):
            raise RuntimeError(f"Cannot create tunnel in state '{self.state.value}'")
        self.state = SessionState.CREATING

        port = self.config.local_port
        if self.probe(LOCAL_HOST, port, PORT_PROBE_TIMEOUT):
            raise TunnelCreationFailed(f"local port {port} is already in use")

        logger.info(f"Creating SSH tunnel to {self.target.destination} on localhost:{port}...")
        args = tunnel_args(self.target, port, self.config.strict_host_keys)
        logger.debug(f"Running SSH with args: {args}")

        try:
            process = self.runner.spawn(SSH_PROGRAM, args)
        except FileNotFoundError as e:
            raise MissingExecutable(SSH_PROGRAM) from e
        except OSError as e:
            raise TunnelCreationFailed(f"failed to execute {SSH_PROGRAM}: {e}") from e

        self.telemetry.record_event("tunnel.spawned", {"pid": process.pid, "local_port": port})

        try:
            self._await_liveness(process, port, deadline)
        except BaseException:
            self._release(process)
            raise

        self._handle = TunnelHandle(process=process, local_port=port)
        self.state = SessionState.CREATED
        self.telemetry.record_event("tunnel.created", {"pid": process.pid, "local_port": port})
        logger.info(f"SSH tunnel created (pid {process.pid})")
        return self._handle

    def _await_liveness(self, process: ProcessHandle, port: int, deadline: Optional[float] = None) -> None:
        """Poll until the process dies, the port listens, or the deadline passes"""
        started = self.clock()
        budget = self.liveness_timeout
        if deadline is not None:
            budget = max(0.0, min(budget, deadline - started))
        deadline = started + budget
        while True:
            exit_code = process.poll()
            if exit_code is not None:
                stderr = process.read_stderr().strip()
                detail = f"ssh exited with status {exit_code}"
                raise TunnelCreationFailed(f"{detail}: {stderr}" if stderr else detail)

            if self.probe(LOCAL_HOST, port, PORT_PROBE_TIMEOUT):
                return

            if self.clock() >= deadline:
                raise TunnelCreationFailed(
                    f"local port {port} not listening after {budget:g}s"
                )
            self.sleep(LIVENESS_POLL_INTERVAL)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check that an SSH server answers through the tunnel.

        Raises:
            ValidationFailed: Attempt failed
            MissingExecutable: ssh is not installed
            RuntimeError: No tunnel has been created
        """
        if self.state not in (SessionState.CREATED, SessionState.VALIDATING) or self._handle is None:
            raise RuntimeError(f"Cannot validate tunnel in state '{self.state.value}'")
        self.state = SessionState.VALIDATING

        if not self._handle.is_running():
            stderr = self._handle.process.read_stderr().strip()
            detail = f"tunnel process exited with status {self._handle.process.poll()}"
            raise ValidationFailed(f"{detail}: {stderr}" if stderr else detail)

        logger.info("Validating tunnel connectivity...")
        timeout = self.config.validation_timeout_seconds
        args = validation_args(self.target, self.local_port, self.config.strict_host_keys)

        try:
            result = self.runner.run(SSH_PROGRAM, args, timeout=timeout)
        except ProcessTimeoutError as e:
            raise ValidationFailed(f"no answer through localhost:{self.local_port} within {timeout:g}s") from e
        except FileNotFoundError as e:
            raise MissingExecutable(SSH_PROGRAM) from e

        if result.ok and VALIDATION_MARKER in result.stdout_text:
            logger.info("Tunnel validation successful")
        elif _handshake_completed(result):
            logger.info("Tunnel validation successful (SSH server answered, key not yet authorized)")
        else:
            raise ValidationFailed(_describe_failure(result))

        self.state = SessionState.VALIDATED
        self.telemetry.record_event("tunnel.validated", {"local_port": self.local_port})

    # ------------------------------------------------------------------
    # Failure / teardown
    # ------------------------------------------------------------------

    def mark_failed(self, phase: str) -> None:
        """Enter the absorbing FAILED state after retries ran out"""
        logger.debug(f"Session failed during {phase} (state '{self.state.value}')")
        self.state = SessionState.FAILED
        self.telemetry.record_event("tunnel.failed", {"phase": str(phase)})

    def close(self) -> None:
        """Terminate the tunnel process if it is still running. Idempotent."""
        if self._closed:
            return
        self._closed = True

        handle, self._handle = self._handle, None
        if handle is not None:
            self._release(handle.process)
            self.telemetry.record_event("tunnel.closed", {"pid": handle.pid})
            logger.info(f"Tunnel on localhost:{handle.local_port} closed")

        if self.state != SessionState.FAILED:
            self.state = SessionState.CLOSED

    def _release(self, process: ProcessHandle) -> None:
        try:
            if process.poll() is not None:
                logger.debug(f"Tunnel process {process.pid} already exited")
                return

            process.terminate()
            if process.wait(timeout=CLOSE_GRACE_PERIOD) is None:
                logger.warning(f"Tunnel process {process.pid} ignored SIGTERM, killing it")
                process.kill()
                process.wait(timeout=CLOSE_GRACE_PERIOD)
        finally:
            process.close()
