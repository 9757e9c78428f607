"""
Resolve the --host / --user pair into a TunnelTarget
"""
from pathlib import Path
from typing import Optional

from ...core.exceptions import ConfigError
from ...core.interfaces import PromptProvider
from ...core.logging import get_logger
from ...core.utils import load_ssh_config
from ...domain.tunnel.models import TunnelTarget, known_hosts_name

logger = get_logger(__name__)


def resolve_target(
    host: str,
    user: Optional[str] = None,
    prompt_provider: Optional[PromptProvider] = None,
    ssh_config_path: Optional[Path] = None,
) -> TunnelTarget:
    """
    Build a TunnelTarget, letting ~/.ssh/config fill in the blanks.

    host stays the ssh destination even when it is an ssh_config alias, so ssh
    keeps applying the alias' HostName, Port, IdentityFile and ProxyJump. The
    entry only supplies the default user and the name the device's host key
    is recorded under. A still-missing user is asked for interactively.

    Raises:
        ConfigError: No user given and no way to ask for one
    """
    hostname = None
    host_key_alias = None
    try:
        entry = load_ssh_config(host, ssh_config_path)
    except ConfigError:
        entry = None

    if entry:
        hostname = entry["host"]
        host_key_alias = entry["host_key_alias"] or known_hosts_name(hostname, entry["port"])
        user = user or entry["user"]
        if hostname != host:
            logger.debug(f"ssh_config alias {host} points at {hostname}:{entry['port']}")

    if not user:
        if prompt_provider is None:
            raise ConfigError(f"No SSH user given for {host}")
        user = prompt_provider.prompt("Enter SSH username", default="root")

    return TunnelTarget(host=host, user=user, hostname=hostname, host_key_alias=host_key_alias)
