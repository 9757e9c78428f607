"""
Remote CPU architecture check
"""
from ...core.constants import DEFAULT_VALIDATION_TIMEOUT, SSH_PROGRAM
from ...core.exceptions import ArchitectureDetectionFailed, NonArmCpu, ProcessTimeoutError
from ...core.interfaces import ProcessRunner
from ...core.logging import get_logger
from .commands import remote_command_args
from .models import TunnelTarget

logger = get_logger(__name__)


def is_arm(arch: str) -> bool:
    """armv7l, armhf, aarch64, arm64 ... all count as ARM"""
    arch = arch.strip().lower()
    return arch.startswith("aarch64") or "arm" in arch


class ArchitectureCheck:
    """Reads `uname -m` through the tunnel and insists on an ARM CPU"""

    def __init__(
        self,
        runner: ProcessRunner,
        timeout: float = DEFAULT_VALIDATION_TIMEOUT,
        strict_host_keys: bool = False,
    ):
        self.runner = runner
        self.timeout = timeout
        self.strict_host_keys = strict_host_keys

    def detect(self, target: TunnelTarget, local_port: int) -> str:
        """
        Return the remote machine hardware name.

        Raises:
            ArchitectureDetectionFailed: Command failed, timed out, or printed nothing
        """
        logger.info("Detecting CPU architecture...")
        args = remote_command_args(target, local_port, "uname -m", self.strict_host_keys)

        try:
            result = self.runner.run(SSH_PROGRAM, args, timeout=self.timeout)
        except ProcessTimeoutError as e:
            raise ArchitectureDetectionFailed("timeout while detecting architecture") from e
        except FileNotFoundError as e:
            raise ArchitectureDetectionFailed(f"failed to execute {SSH_PROGRAM}: not installed") from e

        if not result.ok:
            stderr = result.stderr_text.strip()
            raise ArchitectureDetectionFailed(stderr or f"uname exited with status {result.exit_code}")

        arch = result.stdout_text.strip()
        if not arch:
            raise ArchitectureDetectionFailed("empty response from uname -m")

        logger.info(f"Detected architecture: {arch}")
        return arch

    def run(self, target: TunnelTarget, local_port: int) -> str:
        """
        Detect the architecture and require ARM.

        Raises:
            ArchitectureDetectionFailed: Architecture could not be read
            NonArmCpu: Device is not ARM based
        """
        arch = self.detect(target, local_port)
        if not is_arm(arch):
            raise NonArmCpu(arch)
        logger.info(f"Confirmed ARM architecture: {arch}")
        return arch
