"""
Core utility functions
"""
import socket
from pathlib import Path
from typing import Dict, Any, Optional

import paramiko

from .constants import SSH_CONFIG_PATH, DEFAULT_SSH_PORT
from .exceptions import ConfigError, InvalidKeyPath


# ============================================================
# SSH Config Management
# ============================================================

def load_ssh_config(hostname: str, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration for specified Host from ~/.ssh/config.

    Args:
        hostname: Host name in SSH configuration
        config_path: Alternative ssh_config file

    Returns:
        Dictionary containing host, user, port, host_key_alias

    Raises:
        ConfigError: If the ssh config file doesn't exist
    """
    config_path = config_path or Path(SSH_CONFIG_PATH).expanduser()
    if not config_path.exists():
        raise ConfigError(f"{config_path} does not exist")

    ssh_config = paramiko.SSHConfig.from_path(str(config_path))
    entry = ssh_config.lookup(hostname)

    return {
        "host": entry.get("hostname", hostname),
        "user": entry.get("user", None),
        "port": int(entry.get("port", DEFAULT_SSH_PORT)),
        "host_key_alias": entry.get("hostkeyalias", None),
    }


# ============================================================
# Key Path Resolution
# ============================================================

def resolve_key_path(key_path: str, home: Optional[Path] = None) -> Path:
    """
    Expand home-directory shorthand and check that the key file exists.

    Args:
        key_path: Path as given by the user or config, e.g. "~/.ssh/id_rsa.pub"
        home: Home directory to expand "~" against (default: current user's)

    Returns:
        Absolute path to an existing file

    Raises:
        InvalidKeyPath: If home is unknown, or the path is not an existing file
    """
    if not key_path or not key_path.strip():
        raise InvalidKeyPath(key_path, "empty path")

    if key_path == "~" or key_path.startswith("~/"):
        if home is None:
            try:
                home = Path.home()
            except RuntimeError as e:
                raise InvalidKeyPath(key_path, "home directory is unknown") from e
        expanded = home / key_path[2:]
    else:
        try:
            expanded = Path(key_path).expanduser()
        except RuntimeError as e:
            raise InvalidKeyPath(key_path, "cannot expand user directory") from e

    if not expanded.exists():
        raise InvalidKeyPath(expanded)
    if not expanded.is_file():
        raise InvalidKeyPath(expanded, "not a regular file")

    return expanded.absolute()


# ============================================================
# Network Helpers
# ============================================================

def port_is_open(host: str, port: int, timeout: float) -> bool:
    """Check whether something accepts TCP connections on host:port"""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False
