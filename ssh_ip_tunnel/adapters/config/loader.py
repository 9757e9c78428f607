"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import APP_NAME, CONFIG_FILE_NAME, DEFAULT_CONFIG_DIR, ENV_PREFIX
from ...core.exceptions import ConfigError
from ...core.logging import get_logger
from ...domain.tunnel.models import FILE_KEYS, TunnelConfig

logger = get_logger(__name__)


def default_config_path() -> Path:
    """$XDG_CONFIG_HOME/ssh_ip_tunnel/config.toml, falling back to ~/.config"""
    config_home = os.getenv("XDG_CONFIG_HOME") or DEFAULT_CONFIG_DIR
    return Path(config_home).expanduser() / APP_NAME / CONFIG_FILE_NAME


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        unknown = sorted(key for key in data if key not in FILE_KEYS)
        if unknown:
            logger.warning(f"Ignoring unknown keys in {path}: {', '.join(unknown)}")
        return {key: value for key, value in data.items() if key in FILE_KEYS}

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config = {}

        env_mappings = {
            f"{self._env_prefix}KEY_PATH": "default_key_path",
            f"{self._env_prefix}PORT": "default_port",
            f"{self._env_prefix}TIMEOUT": "tunnel_timeout_secs",
            f"{self._env_prefix}MAX_RETRIES": "max_retries",
            f"{self._env_prefix}VALIDATION_TIMEOUT": "validation_timeout_secs",
            f"{self._env_prefix}KEY_TRANSFER_TIMEOUT": "key_transfer_timeout_secs",
            f"{self._env_prefix}STRICT_HOST_KEYS": "strict_host_key_checking",
            f"{self._env_prefix}CHECK_ARCH": "check_arch",
        }

        for env_key, config_key in env_mappings.items():
            value = os.getenv(env_key)
            if value:
                config[config_key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        # Try boolean
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        # Try integer
        try:
            return int(value)
        except ValueError:
            pass

        # Try float
        try:
            return float(value)
        except ValueError:
            pass

        # Return as string
        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones; None values never override.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            for key, value in config.items():
                if value is not None:
                    result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file; when omitted the
                default location is read if it exists
            cli_overrides: CLI parameter overrides, keyed like the config file
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = [TunnelConfig().to_dict()]

        # 1. TOML file
        if toml_path:
            configs.append(self.load_toml(toml_path))
        else:
            default_path = default_config_path()
            if default_path.exists():
                logger.debug(f"Loading configuration from {default_path}")
                configs.append(self.load_toml(default_path))

        # 2. Environment variables
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        # 3. CLI overrides (highest priority)
        if cli_overrides:
            configs.append(cli_overrides)

        return self.merge_configs(*configs)

    def build(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> TunnelConfig:
        """Load, merge and validate into a TunnelConfig"""
        return TunnelConfig.from_dict(self.load(toml_path, cli_overrides, use_env))
