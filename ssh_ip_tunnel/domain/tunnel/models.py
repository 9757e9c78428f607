"""
Tunnel domain models
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any

from ...core.constants import (
    DEFAULT_KEY_PATH,
    DEFAULT_LOCAL_PORT,
    DEFAULT_TUNNEL_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_VALIDATION_TIMEOUT,
    DEFAULT_KEY_TRANSFER_TIMEOUT,
    DEFAULT_SSH_PORT,
)
from ...core.exceptions import ConfigError
from ...core.interfaces import ProcessHandle


# Config file keys -> TunnelConfig fields
FILE_KEYS = {
    "default_key_path": "key_path",
    "default_port": "local_port",
    "tunnel_timeout_secs": "timeout_seconds",
    "max_retries": "max_retries",
    "validation_timeout_secs": "validation_timeout_seconds",
    "key_transfer_timeout_secs": "key_transfer_timeout_seconds",
    "strict_host_key_checking": "strict_host_keys",
    "check_arch": "check_arch",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class TunnelConfig:
    """Tunnel configuration, fixed for one invocation"""
    key_path: str = DEFAULT_KEY_PATH
    local_port: int = DEFAULT_LOCAL_PORT
    timeout_seconds: int = DEFAULT_TUNNEL_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    validation_timeout_seconds: float = DEFAULT_VALIDATION_TIMEOUT
    key_transfer_timeout_seconds: float = DEFAULT_KEY_TRANSFER_TIMEOUT
    strict_host_keys: bool = False
    check_arch: bool = False

    def __post_init__(self):
        if not isinstance(self.key_path, str) or not self.key_path.strip():
            raise ConfigError(f"Invalid key_path: {self.key_path!r}")
        if not _is_int(self.local_port) or not (1 <= self.local_port <= 65535):
            raise ConfigError(f"Invalid local_port: {self.local_port!r}, must be 1-65535")
        if not _is_number(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ConfigError(f"Invalid timeout_seconds: {self.timeout_seconds!r}, must be > 0")
        if not _is_int(self.max_retries) or self.max_retries < 0:
            raise ConfigError(f"Invalid max_retries: {self.max_retries!r}, must be >= 0")
        if not _is_number(self.validation_timeout_seconds) or self.validation_timeout_seconds <= 0:
            raise ConfigError(
                f"Invalid validation_timeout_seconds: {self.validation_timeout_seconds!r}, must be > 0"
            )
        if not _is_number(self.key_transfer_timeout_seconds) or self.key_transfer_timeout_seconds <= 0:
            raise ConfigError(
                f"Invalid key_transfer_timeout_seconds: {self.key_transfer_timeout_seconds!r}, must be > 0"
            )
        for flag in ("strict_host_keys", "check_arch"):
            if not isinstance(getattr(self, flag), bool):
                raise ConfigError(f"Invalid {flag}: {getattr(self, flag)!r}, must be true or false")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to config-file dictionary"""
        return {file_key: getattr(self, attr) for file_key, attr in FILE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TunnelConfig":
        """
        Create from a config-file dictionary.

        Accepts both file keys (default_port) and field names (local_port);
        unknown keys are ignored.
        """
        field_names = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            attr = FILE_KEYS.get(key, key)
            if attr in field_names and value is not None:
                kwargs[attr] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class TunnelTarget:
    """
    Remote device to tunnel to.

    host is what goes on the ssh command line and may be an ssh_config alias,
    in which case ssh applies the alias' HostName, Port, IdentityFile and
    ProxyJump itself. hostname and host_key_alias are filled from the same
    ssh_config entry: the real address, and the name under which the device's
    host key sits in known_hosts.
    """
    host: str
    user: str
    ssh_port: int = DEFAULT_SSH_PORT
    hostname: Optional[str] = None
    host_key_alias: Optional[str] = None

    def __post_init__(self):
        if not self.host or not self.host.strip():
            raise ConfigError("host must be a non-empty string")
        if not self.user or not self.user.strip():
            raise ConfigError("user must be a non-empty string")
        if not _is_int(self.ssh_port) or not (1 <= self.ssh_port <= 65535):
            raise ConfigError(f"Invalid ssh port: {self.ssh_port!r}, must be 1-65535")

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}"

    @property
    def forwarded_destination(self) -> str:
        """Destination as seen through the local end of the tunnel"""
        return f"{self.user}@localhost"

    @property
    def known_hosts_name(self) -> str:
        """known_hosts lookup name for the device, e.g. '10.0.0.7' or '[10.0.0.7]:2200'"""
        if self.host_key_alias:
            return self.host_key_alias
        return known_hosts_name(self.hostname or self.host, self.ssh_port)


def known_hosts_name(host: str, port: int) -> str:
    """ssh records keys of non-default ports as [host]:port"""
    if port == DEFAULT_SSH_PORT:
        return host
    return f"[{host}]:{port}"


class Phase(str, Enum):
    """Retried phases of the tunnel lifecycle"""
    CREATION = "creation"
    VALIDATION = "validation"

    def __str__(self) -> str:
        return self.value


class SessionState(str, Enum):
    """TunnelSession states"""
    IDLE = "idle"
    CREATING = "creating"
    CREATED = "created"
    VALIDATING = "validating"
    VALIDATED = "validated"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass
class TunnelHandle:
    """Running tunnel process owned by a TunnelSession"""
    process: ProcessHandle
    local_port: int

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_running(self) -> bool:
        return self.process.poll() is None


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one creation or validation attempt"""
    ok: bool
    detail: str = ""
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, detail: str = "") -> "AttemptOutcome":
        return cls(ok=True, detail=detail)

    @classmethod
    def failure(cls, error: BaseException) -> "AttemptOutcome":
        return cls(ok=False, detail=str(error), error=error)


@dataclass
class RetryState:
    """Bookkeeping for one RetryPolicy.run call"""
    attempt_count: int = 0
    elapsed: float = 0.0
    next_delay: float = 0.0
    outcomes: list[AttemptOutcome] = field(default_factory=list)

    @property
    def last_outcome(self) -> Optional[AttemptOutcome]:
        return self.outcomes[-1] if self.outcomes else None


@dataclass(frozen=True)
class TunnelResult:
    """Terminal success report of one orchestrated run"""
    target: TunnelTarget
    local_port: int
    key_path: Optional[Path] = None
    key_transferred: bool = False
    architecture: Optional[str] = None
    creation_attempts: int = 0
    validation_attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "host": self.target.host,
            "hostname": self.target.hostname,
            "user": self.target.user,
            "local_port": self.local_port,
            "key_path": str(self.key_path) if self.key_path else None,
            "key_transferred": self.key_transferred,
            "architecture": self.architecture,
            "creation_attempts": self.creation_attempts,
            "validation_attempts": self.validation_attempts,
        }
