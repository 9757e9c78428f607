"""
Argument lists for the ssh / ssh-copy-id invocations
"""
from pathlib import Path
from typing import List, Optional

from ...core.constants import (
    DEFAULT_SSH_PORT,
    REMOTE_FORWARD_HOST,
    REMOTE_FORWARD_PORT,
    SSH_LOG_LEVEL_OPTION,
    UNATTENDED_HOST_KEY_OPTIONS,
    VALIDATION_CONNECT_TIMEOUT,
    VALIDATION_MARKER,
)
from .models import TunnelTarget


def host_key_options(strict_host_keys: bool, host_key_alias: Optional[str] = None) -> List[str]:
    """
    -o options controlling host key verification.

    Unattended mode skips verification and never records the key: the tunnel
    is meant for first contact with a freshly provisioned device. In strict
    mode, connections through the forward name the device's known_hosts entry
    with host_key_alias, since they otherwise look up localhost:<local_port>.
    """
    options: List[str] = []
    if not strict_host_keys:
        for option in UNATTENDED_HOST_KEY_OPTIONS:
            options += ["-o", option]
    elif host_key_alias:
        options += ["-o", f"HostKeyAlias={host_key_alias}"]
    options += ["-o", SSH_LOG_LEVEL_OPTION]
    return options


def tunnel_args(target: TunnelTarget, local_port: int, strict_host_keys: bool = False) -> List[str]:
    """ssh -N -L <local_port>:localhost:22 <user>@<host>"""
    args = [
        "-N",
        "-L", f"{local_port}:{REMOTE_FORWARD_HOST}:{REMOTE_FORWARD_PORT}",
        "-o", "ExitOnForwardFailure=yes",
    ]
    if target.ssh_port != DEFAULT_SSH_PORT:
        args += ["-p", str(target.ssh_port)]
    args += host_key_options(strict_host_keys)
    args.append(target.destination)
    return args


def remote_command_args(
    target: TunnelTarget,
    local_port: int,
    command: str,
    strict_host_keys: bool = False,
    batch: bool = False,
) -> List[str]:
    """ssh -p <local_port> <user>@localhost <command>, through the tunnel"""
    args = [
        "-p", str(local_port),
        "-o", f"ConnectTimeout={VALIDATION_CONNECT_TIMEOUT}",
    ]
    if batch:
        args += ["-o", "BatchMode=yes"]
    args += host_key_options(strict_host_keys, target.known_hosts_name)
    args += [target.forwarded_destination, command]
    return args


def validation_args(target: TunnelTarget, local_port: int, strict_host_keys: bool = False) -> List[str]:
    """Non-interactive echo probe through the tunnel"""
    return remote_command_args(
        target,
        local_port,
        f"echo {VALIDATION_MARKER}",
        strict_host_keys=strict_host_keys,
        batch=True,
    )


def key_transfer_args(
    target: TunnelTarget,
    local_port: int,
    key_path: Path,
    strict_host_keys: bool = False,
) -> List[str]:
    """ssh-copy-id -i <key> -p <local_port> <user>@localhost"""
    args = ["-i", str(key_path), "-p", str(local_port)]
    if not strict_host_keys:
        for option in UNATTENDED_HOST_KEY_OPTIONS:
            args += ["-o", option]
    else:
        args += ["-o", f"HostKeyAlias={target.known_hosts_name}"]
    args.append(target.forwarded_destination)
    return args
