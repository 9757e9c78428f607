"""
Public key deployment through a validated tunnel
"""
from pathlib import Path

from ...core.constants import DEFAULT_KEY_TRANSFER_TIMEOUT, SSH_COPY_ID_PROGRAM
from ...core.exceptions import KeyTransferFailed, ProcessTimeoutError
from ...core.interfaces import ProcessRunner
from ...core.logging import get_logger
from .commands import key_transfer_args
from .models import TunnelTarget

logger = get_logger(__name__)


class KeyTransferStep:
    """
    Runs ssh-copy-id against the local end of the tunnel.

    Single attempt; ssh-copy-id may prompt for the device password on the
    terminal, hence the generous default timeout.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        timeout: float = DEFAULT_KEY_TRANSFER_TIMEOUT,
        strict_host_keys: bool = False,
    ):
        self.runner = runner
        self.timeout = timeout
        self.strict_host_keys = strict_host_keys

    def run(self, target: TunnelTarget, local_port: int, key_path: Path) -> None:
        """
        Deploy key_path into the remote account's authorized_keys.

        Raises:
            KeyTransferFailed: ssh-copy-id missing, timed out, or exited non-zero
        """
        logger.info(f"Transferring SSH key: {key_path}")
        args = key_transfer_args(target, local_port, key_path, self.strict_host_keys)
        logger.debug(f"Running {SSH_COPY_ID_PROGRAM} with args: {args}")

        try:
            result = self.runner.run(SSH_COPY_ID_PROGRAM, args, timeout=self.timeout)
        except FileNotFoundError as e:
            raise KeyTransferFailed(f"failed to execute {SSH_COPY_ID_PROGRAM}: not installed") from e
        except ProcessTimeoutError as e:
            raise KeyTransferFailed(str(e)) from e

        if not result.ok:
            stderr = result.stderr_text.strip()
            raise KeyTransferFailed(stderr or f"{SSH_COPY_ID_PROGRAM} exited with status {result.exit_code}")

        logger.info("SSH key transferred successfully")
