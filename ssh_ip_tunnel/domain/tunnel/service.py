"""
Tunnel domain service - business logic

Sequences one invocation end to end:

    resolve key -> create (retried) -> validate (retried)
        -> [architecture check] -> [key transfer] -> close

No direct dependency on CLI, Typer, or configuration files.
"""
import time
from pathlib import Path
from typing import Callable, Optional

from ...core.exceptions import TimeoutExhausted
from ...core.interfaces import ProcessRunner
from ...core.logging import get_logger
from ...core.telemetry import Telemetry
from ...core.utils import port_is_open, resolve_key_path
from .arch import ArchitectureCheck
from .key_transfer import KeyTransferStep
from .models import Phase, RetryState, TunnelConfig, TunnelResult, TunnelTarget
from .retry import RetryPolicy
from .session import TunnelSession

logger = get_logger(__name__)


class TunnelOrchestrator:
    """
    Composes RetryPolicy, TunnelSession, ArchitectureCheck and KeyTransferStep.

    The tunnel process is always torn down before run() returns or raises,
    including on KeyboardInterrupt.
    """

    def __init__(
        self,
        config: TunnelConfig,
        runner: ProcessRunner,
        telemetry: Optional[Telemetry] = None,
        probe: Callable[[str, int, float], bool] = port_is_open,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        home: Optional[Path] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Final merged configuration
            runner: Process execution backend
            telemetry: Event collector (a private one is created if omitted)
            probe: Local port probe handed to the session
            clock: Monotonic time source for deadlines
            sleep: Sleep function for backoff and liveness polling
            home: Home directory used to expand "~" in the key path
        """
        self.config = config
        self.runner = runner
        self.telemetry = telemetry or Telemetry()
        self.probe = probe
        self.clock = clock
        self.sleep = sleep
        self.home = home

    def new_session(self, target: TunnelTarget) -> TunnelSession:
        return TunnelSession(
            self.runner,
            target,
            self.config,
            probe=self.probe,
            clock=self.clock,
            sleep=self.sleep,
            telemetry=self.telemetry,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy.from_config(self.config, clock=self.clock, sleep=self.sleep)

    def run(
        self,
        target: TunnelTarget,
        key_path: Optional[str] = None,
        transfer_key: bool = True,
    ) -> TunnelResult:
        """
        Create, validate, optionally deploy the key, then close the tunnel.

        Args:
            target: Remote device
            key_path: Public key to deploy (default: config.key_path)
            transfer_key: False for tunnel-only mode

        Returns:
            TunnelResult describing the successful run

        Raises:
            InvalidKeyPath: Before any process is started
            TimeoutExhausted: Creation or validation retries ran out
            MissingExecutable: ssh is not installed
            ArchitectureDetectionFailed, NonArmCpu: With config.check_arch
            KeyTransferFailed: ssh-copy-id failed
        """
        resolved_key: Optional[Path] = None
        if transfer_key:
            resolved_key = resolve_key_path(key_path or self.config.key_path, home=self.home)
            logger.debug(f"Resolved key path: {resolved_key}")

        creation = RetryState()
        validation = RetryState()
        architecture: Optional[str] = None

        with self.new_session(target) as session:
            # a slow attempt may not outlive the creation retry budget
            deadline = self.clock() + self.config.timeout_seconds
            self._run_phase(session, lambda: session.create(deadline=deadline), Phase.CREATION, creation)
            self._run_phase(session, session.validate, Phase.VALIDATION, validation)

            if self.config.check_arch:
                architecture = ArchitectureCheck(
                    self.runner,
                    timeout=self.config.validation_timeout_seconds,
                    strict_host_keys=self.config.strict_host_keys,
                ).run(target, session.local_port)
                self.telemetry.record_event("arch.detected", {"arch": architecture})
            else:
                logger.debug("Skipping architecture check")

            if resolved_key is not None:
                KeyTransferStep(
                    self.runner,
                    timeout=self.config.key_transfer_timeout_seconds,
                    strict_host_keys=self.config.strict_host_keys,
                ).run(target, session.local_port, resolved_key)
                self.telemetry.record_event("key.transferred", {"key_path": str(resolved_key)})
            else:
                logger.info("Skipping SSH key transfer")

        return TunnelResult(
            target=target,
            local_port=self.config.local_port,
            key_path=resolved_key,
            key_transferred=resolved_key is not None,
            architecture=architecture,
            creation_attempts=creation.attempt_count,
            validation_attempts=validation.attempt_count,
        )

    def _run_phase(
        self,
        session: TunnelSession,
        operation: Callable[[], object],
        phase: Phase,
        state: RetryState,
    ) -> None:
        def on_failure(retry_state: RetryState) -> None:
            outcome = retry_state.last_outcome
            self.telemetry.record_event("tunnel.attempt_failed", {
                "phase": phase.value,
                "attempt": retry_state.attempt_count,
                "detail": outcome.detail if outcome else "",
            })

        try:
            self.retry_policy().run(operation, phase.value, state=state, on_failure=on_failure)
        except TimeoutExhausted:
            session.mark_failed(phase.value)
            raise
        finally:
            self.telemetry.record_metric(f"tunnel.{phase.value}.attempts", state.attempt_count)
