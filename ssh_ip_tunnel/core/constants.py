"""
Project constants definitions
"""

# ============================================================
# Default Values
# ============================================================

DEFAULT_KEY_PATH = "~/.ssh/id_rsa.pub"
DEFAULT_LOCAL_PORT = 2222
DEFAULT_TUNNEL_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_VALIDATION_TIMEOUT = 10
DEFAULT_KEY_TRANSFER_TIMEOUT = 120
DEFAULT_SSH_PORT = 22

# ============================================================
# External Programs
# ============================================================

SSH_PROGRAM = "ssh"
SSH_COPY_ID_PROGRAM = "ssh-copy-id"

# Remote side of the forward: the device's own sshd
REMOTE_FORWARD_HOST = "localhost"
REMOTE_FORWARD_PORT = 22

# ============================================================
# Retry / Backoff
# ============================================================

RETRY_INITIAL_DELAY = 0.5
RETRY_MULTIPLIER = 2.0
RETRY_MAX_DELAY = 5.0

# ============================================================
# Liveness / Validation
# ============================================================

LIVENESS_POLL_INTERVAL = 0.1
PORT_PROBE_TIMEOUT = 0.5
VALIDATION_CONNECT_TIMEOUT = 5
VALIDATION_MARKER = "tunnel_test"
CLOSE_GRACE_PERIOD = 2.0

# ============================================================
# SSH Options
# ============================================================

UNATTENDED_HOST_KEY_OPTIONS = (
    "StrictHostKeyChecking=no",
    "UserKnownHostsFile=/dev/null",
)
SSH_LOG_LEVEL_OPTION = "LogLevel=ERROR"

# ============================================================
# Configuration
# ============================================================

APP_NAME = "ssh_ip_tunnel"
CONFIG_FILE_NAME = "config.toml"
DEFAULT_CONFIG_DIR = "~/.config"
ENV_PREFIX = "SSH_IP_TUNNEL_"
LOG_LEVEL_ENV = "SSH_IP_TUNNEL_LOG"

# ============================================================
# SSH Config
# ============================================================

SSH_CONFIG_PATH = "~/.ssh/config"
