"""
Shared pytest fixtures for ssh_ip_tunnel unit tests.
"""

import pytest

from ssh_ip_tunnel.core.telemetry import Telemetry
from ssh_ip_tunnel.domain.tunnel import TunnelConfig, TunnelOrchestrator, TunnelSession, TunnelTarget
from tests.fakes import FakeClock, ScriptedRunner


@pytest.fixture
def runner():
    return ScriptedRunner()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def telemetry():
    return Telemetry()


@pytest.fixture
def target():
    return TunnelTarget(host="192.168.1.50", user="pi")


@pytest.fixture
def config():
    return TunnelConfig()


@pytest.fixture
def public_key(tmp_path):
    """A public key file under a fake home directory."""
    ssh_dir = tmp_path / ".ssh"
    ssh_dir.mkdir()
    key = ssh_dir / "id_rsa.pub"
    key.write_text("ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC test@host\n")
    return key


@pytest.fixture
def make_session(runner, clock, telemetry, target):
    def _make(config=None, **kwargs):
        kwargs.setdefault("probe", runner.listening)
        return TunnelSession(
            runner,
            kwargs.pop("target", target),
            config or TunnelConfig(),
            clock=clock,
            sleep=clock.sleep,
            telemetry=telemetry,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_orchestrator(runner, clock, telemetry, tmp_path):
    def _make(config=None, **kwargs):
        kwargs.setdefault("probe", runner.listening)
        return TunnelOrchestrator(
            config or TunnelConfig(),
            runner,
            telemetry=telemetry,
            clock=clock,
            sleep=clock.sleep,
            home=tmp_path,
            **kwargs,
        )

    return _make
