"""
ssh_ip_tunnel - SSH tunnel and key deployment tool for ARM devices

Creates an SSH local-port-forward tunnel to a device, validates that an SSH
server answers through it, and deploys a public key over the tunnel:
- Exponential backoff for tunnel creation and validation
- Active validation instead of fixed settle delays
- Guaranteed teardown of the tunnel process on every exit path
"""

__version__ = "0.2.0"

from .core import (
    Telemetry,
    ProcessRunner,
    ProcessHandle,
    CommandResult,
    resolve_key_path,
)
from .core.exceptions import (
    TunnelError,
    ConfigError,
    InvalidKeyPath,
    TunnelCreationFailed,
    ValidationFailed,
    KeyTransferFailed,
    TimeoutExhausted,
    MissingExecutable,
    ProcessTimeoutError,
    ArchitectureDetectionFailed,
    NonArmCpu,
)
from .domain.tunnel import (
    TunnelConfig,
    TunnelTarget,
    TunnelResult,
    RetryPolicy,
    TunnelSession,
    KeyTransferStep,
    ArchitectureCheck,
    TunnelOrchestrator,
)
from .infrastructure.process import SubprocessRunner

__all__ = [
    # Version
    "__version__",
    # Core
    "Telemetry",
    "ProcessRunner",
    "ProcessHandle",
    "CommandResult",
    "resolve_key_path",
    "SubprocessRunner",
    # Errors
    "TunnelError",
    "ConfigError",
    "InvalidKeyPath",
    "TunnelCreationFailed",
    "ValidationFailed",
    "KeyTransferFailed",
    "TimeoutExhausted",
    "MissingExecutable",
    "ProcessTimeoutError",
    "ArchitectureDetectionFailed",
    "NonArmCpu",
    # Tunnel lifecycle
    "TunnelConfig",
    "TunnelTarget",
    "TunnelResult",
    "RetryPolicy",
    "TunnelSession",
    "KeyTransferStep",
    "ArchitectureCheck",
    "TunnelOrchestrator",
]
