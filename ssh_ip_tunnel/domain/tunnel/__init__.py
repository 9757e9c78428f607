"""
Tunnel domain module
"""
from .models import (
    TunnelConfig,
    TunnelTarget,
    TunnelHandle,
    TunnelResult,
    AttemptOutcome,
    RetryState,
    SessionState,
    Phase,
)
from .retry import RetryPolicy
from .session import TunnelSession
from .key_transfer import KeyTransferStep
from .arch import ArchitectureCheck, is_arm
from .service import TunnelOrchestrator

__all__ = [
    "TunnelConfig",
    "TunnelTarget",
    "TunnelHandle",
    "TunnelResult",
    "AttemptOutcome",
    "RetryState",
    "SessionState",
    "Phase",
    "RetryPolicy",
    "TunnelSession",
    "KeyTransferStep",
    "ArchitectureCheck",
    "is_arm",
    "TunnelOrchestrator",
]
