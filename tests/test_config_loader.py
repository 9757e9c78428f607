"""Tests for ssh_ip_tunnel.adapters.config.loader - layered configuration."""

import pytest

from ssh_ip_tunnel.adapters.config import ConfigLoader, default_config_path
from ssh_ip_tunnel.core.exceptions import ConfigError
from ssh_ip_tunnel.domain.tunnel import TunnelConfig

ENV_VARS = [
    "KEY_PATH",
    "PORT",
    "TIMEOUT",
    "MAX_RETRIES",
    "VALIDATION_TIMEOUT",
    "KEY_TRANSFER_TIMEOUT",
    "STRICT_HOST_KEYS",
    "CHECK_ARCH",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No stray SSH_IP_TUNNEL_* variables; default config dir points into tmp_path."""
    for name in ENV_VARS:
        monkeypatch.delenv(f"SSH_IP_TUNNEL_{name}", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def write_toml(tmp_path):
    def _write(text, path=None):
        path = path or tmp_path / "config.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path

    return _write


# ---------------------------------------------------------------------------
# TOML
# ---------------------------------------------------------------------------


class TestLoadToml:
    def test_reads_known_keys(self, write_toml):
        path = write_toml(
            'default_key_path = "~/.ssh/id_ed25519.pub"\n'
            "default_port = 2200\n"
            "tunnel_timeout_secs = 60\n"
            "max_retries = 5\n"
        )
        assert ConfigLoader().load_toml(path) == {
            "default_key_path": "~/.ssh/id_ed25519.pub",
            "default_port": 2200,
            "tunnel_timeout_secs": 60,
            "max_retries": 5,
        }

    def test_unknown_keys_are_dropped_with_warning(self, write_toml, caplog):
        path = write_toml("default_port = 2200\nskip_arch_validation = true\n")

        data = ConfigLoader().load_toml(path)

        assert data == {"default_port": 2200}
        assert "skip_arch_validation" in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader().load_toml(tmp_path / "nope.toml")

    def test_malformed_file(self, write_toml):
        path = write_toml("default_port = \n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            ConfigLoader().load_toml(path)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class TestLoadEnv:
    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("SSH_IP_TUNNEL_PORT", "2300")
        monkeypatch.setenv("SSH_IP_TUNNEL_STRICT_HOST_KEYS", "yes")
        monkeypatch.setenv("SSH_IP_TUNNEL_KEY_PATH", "/keys/id.pub")

        assert ConfigLoader().load_env() == {
            "default_port": 2300,
            "strict_host_key_checking": True,
            "default_key_path": "/keys/id.pub",
        }

    def test_empty_environment(self):
        assert ConfigLoader().load_env() == {}

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("OFF", False), ("42", 42), ("2.5", 2.5), ("~/.ssh/x.pub", "~/.ssh/x.pub")],
    )
    def test_convert_value(self, raw, expected):
        assert ConfigLoader()._convert_value(raw) == expected


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


class TestLoad:
    def test_defaults_only(self):
        assert ConfigLoader().build() == TunnelConfig()

    def test_merge_skips_none(self):
        merged = ConfigLoader().merge_configs({"default_port": 2222}, {"default_port": None})
        assert merged == {"default_port": 2222}

    def test_priority_cli_over_env_over_toml(self, write_toml, monkeypatch):
        path = write_toml("default_port = 2200\nmax_retries = 7\ntunnel_timeout_secs = 45\n")
        monkeypatch.setenv("SSH_IP_TUNNEL_PORT", "2300")
        monkeypatch.setenv("SSH_IP_TUNNEL_MAX_RETRIES", "1")

        config = ConfigLoader().build(toml_path=path, cli_overrides={"default_port": 2400, "max_retries": None})

        assert config.local_port == 2400
        assert config.max_retries == 1
        assert config.timeout_seconds == 45

    def test_env_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("SSH_IP_TUNNEL_PORT", "2300")
        assert ConfigLoader().build(use_env=False).local_port == 2222

    def test_default_location_is_read(self, write_toml):
        write_toml("default_port = 2500\n", path=default_config_path())
        assert ConfigLoader().build().local_port == 2500

    def test_default_location_path(self, tmp_path):
        assert default_config_path() == tmp_path / "xdg" / "ssh_ip_tunnel" / "config.toml"

    def test_invalid_value_is_rejected(self, write_toml):
        path = write_toml("default_port = 70000\n")
        with pytest.raises(ConfigError, match="1-65535"):
            ConfigLoader().build(toml_path=path)

    def test_non_bool_flag_is_rejected(self, write_toml):
        path = write_toml('check_arch = "sometimes"\n')
        with pytest.raises(ConfigError, match="check_arch"):
            ConfigLoader().build(toml_path=path)
