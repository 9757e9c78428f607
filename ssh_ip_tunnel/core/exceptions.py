"""
Unified exception definitions
"""
from pathlib import Path
from typing import Optional, Union


class TunnelError(Exception):
    """Base exception class"""
    pass


class ConfigError(TunnelError):
    """Configuration error"""
    pass


class InvalidKeyPath(TunnelError):
    """Public key path does not resolve to an existing file"""

    def __init__(self, path: Union[str, Path], reason: str = "file does not exist"):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid SSH key path: {path} ({reason})")


class TunnelCreationFailed(TunnelError):
    """A tunnel creation attempt failed"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"SSH tunnel creation failed: {detail}")


class ValidationFailed(TunnelError):
    """A tunnel validation attempt failed"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Connection validation failed: {detail}")


class KeyTransferFailed(TunnelError):
    """SSH key deployment failed"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"SSH key transfer failed: {detail}")


class TimeoutExhausted(TunnelError):
    """Retry budget for a phase ran out"""

    def __init__(self, phase: str, last_error: Optional[BaseException] = None, attempts: int = 0):
        self.phase = phase
        self.last_error = last_error
        self.attempts = attempts
        message = f"Gave up on {phase} after {attempts} attempt(s)"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


class MissingExecutable(TunnelError):
    """Required external program is not installed"""

    def __init__(self, program: str):
        self.program = program
        super().__init__(f"Required program not found on PATH: {program}")


class ProcessTimeoutError(TunnelError):
    """External command exceeded its timeout"""

    def __init__(self, program: str, timeout: float):
        self.program = program
        self.timeout = timeout
        super().__init__(f"{program} timed out after {timeout:g}s")


class ArchitectureDetectionFailed(TunnelError):
    """Remote CPU architecture could not be determined"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Architecture detection failed: {detail}")


class NonArmCpu(TunnelError):
    """Remote device is not ARM based"""

    def __init__(self, arch: str):
        self.arch = arch
        super().__init__(
            f"Detected architecture '{arch}' is not ARM-based. "
            "This tool is designed for ARM CPUs only; drop --check-arch to override"
        )
