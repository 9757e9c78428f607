"""End-to-end tests for TunnelOrchestrator against a scripted process runner."""

import pytest

from ssh_ip_tunnel.core.exceptions import (
    InvalidKeyPath,
    KeyTransferFailed,
    MissingExecutable,
    NonArmCpu,
    TimeoutExhausted,
)
from ssh_ip_tunnel.domain.tunnel import TunnelConfig
from tests.fakes import ARCH, CREATE, TRANSFER, VALIDATE, FakeProcess, failed, ok

REFUSED = failed(255, b"ssh: connect to host localhost port 2222: Connection refused\n")


def _never_listening(host, port, timeout):
    return False


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_everything_succeeds_first_try(self, make_orchestrator, runner, target, public_key):
        result = make_orchestrator().run(target)

        assert runner.kinds() == [CREATE, VALIDATE, TRANSFER]
        assert result.key_transferred
        assert result.key_path == public_key
        assert result.creation_attempts == 1
        assert result.validation_attempts == 1
        assert runner.running() == []

    def test_flaky_creation_tunnel_only(self, make_orchestrator, runner, target):
        runner.script(CREATE, FakeProcess(exit_code=255), FakeProcess(exit_code=255), FakeProcess())

        result = make_orchestrator(TunnelConfig(max_retries=3)).run(target, transfer_key=False)

        assert runner.count(CREATE) == 3
        assert result.creation_attempts == 3
        assert runner.count(TRANSFER) == 0
        assert not result.key_transferred
        assert result.key_path is None
        assert runner.running() == []

    def test_validation_never_succeeds(self, make_orchestrator, runner, target, public_key, clock):
        runner.script(VALIDATE, REFUSED)

        with pytest.raises(TimeoutExhausted) as exc_info:
            make_orchestrator(TunnelConfig(timeout_seconds=1, max_retries=5)).run(target)

        assert exc_info.value.phase == "validation"
        assert "Connection refused" in str(exc_info.value)
        assert runner.count(TRANSFER) == 0
        assert runner.running() == []
        assert clock.now <= 1.0


# ---------------------------------------------------------------------------
# Ordering and teardown
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_invalid_key_fails_before_any_process(self, make_orchestrator, runner, target):
        with pytest.raises(InvalidKeyPath):
            make_orchestrator().run(target)
        assert runner.calls == []

    def test_explicit_key_path(self, make_orchestrator, runner, target, tmp_path):
        key = tmp_path / "deploy.pub"
        key.write_text("ssh-ed25519 AAAAC3NzaC1lZDI1NTE5 deploy\n")

        result = make_orchestrator().run(target, key_path=str(key))

        assert result.key_path == key
        assert str(key) in runner.calls[-1].args

    def test_tunnel_only_ignores_missing_key(self, make_orchestrator, runner, target):
        result = make_orchestrator().run(target, transfer_key=False)
        assert runner.kinds() == [CREATE, VALIDATE]
        assert not result.key_transferred

    def test_creation_exhausted_never_validates(self, make_orchestrator, runner, target, public_key):
        runner.script(CREATE, FakeProcess(exit_code=255, stderr="Permission denied (publickey)."))

        with pytest.raises(TimeoutExhausted) as exc_info:
            make_orchestrator(TunnelConfig(max_retries=2)).run(target)

        assert exc_info.value.phase == "creation"
        assert runner.kinds() == [CREATE, CREATE, CREATE]
        assert runner.running() == []

    def test_validation_retried_until_success(self, make_orchestrator, runner, target, public_key):
        runner.script(VALIDATE, REFUSED, REFUSED, ok(b"tunnel_test\n"))

        result = make_orchestrator().run(target)

        assert result.validation_attempts == 3
        assert runner.kinds() == [CREATE, VALIDATE, VALIDATE, VALIDATE, TRANSFER]

    def test_transfer_failure_still_closes(self, make_orchestrator, runner, target, public_key):
        runner.script(TRANSFER, failed(1, b"Permission denied (password).", "ssh-copy-id"))

        with pytest.raises(KeyTransferFailed, match="Permission denied"):
            make_orchestrator().run(target)

        assert runner.count(TRANSFER) == 1
        assert runner.processes[0].terminate_calls == 1
        assert runner.running() == []

    def test_missing_ssh_is_not_retried(self, make_orchestrator, runner, target, public_key, clock):
        runner.script(CREATE, FileNotFoundError(2, "No such file", "ssh"))

        with pytest.raises(MissingExecutable):
            make_orchestrator().run(target)

        assert runner.count(CREATE) == 1
        assert clock.sleeps == []

    def test_slow_creation_attempt_stops_at_retry_deadline(self, make_orchestrator, runner, target, clock):
        runner.script(CREATE, FakeProcess(exit_code=255), FakeProcess())

        with pytest.raises(TimeoutExhausted) as exc_info:
            make_orchestrator(TunnelConfig(timeout_seconds=2, max_retries=5), probe=_never_listening).run(
                target, transfer_key=False
            )

        assert exc_info.value.phase == "creation"
        assert "not listening after 1.5s" in str(exc_info.value)
        assert runner.count(CREATE) == 2
        assert 2.0 <= clock.now < 2.2
        assert runner.running() == []

    def test_interrupt_during_validation_closes_tunnel(self, make_orchestrator, runner, target, public_key):
        runner.script(VALIDATE, KeyboardInterrupt())

        with pytest.raises(KeyboardInterrupt):
            make_orchestrator().run(target)

        assert runner.running() == []
        assert runner.count(TRANSFER) == 0


# ---------------------------------------------------------------------------
# Architecture check
# ---------------------------------------------------------------------------


class TestArchitectureCheck:
    def test_disabled_by_default(self, make_orchestrator, runner, target, public_key):
        result = make_orchestrator().run(target)
        assert ARCH not in runner.kinds()
        assert result.architecture is None

    def test_arm_device(self, make_orchestrator, runner, target, public_key):
        result = make_orchestrator(TunnelConfig(check_arch=True)).run(target)

        assert runner.kinds() == [CREATE, VALIDATE, ARCH, TRANSFER]
        assert result.architecture == "aarch64"

    def test_non_arm_device_blocks_transfer(self, make_orchestrator, runner, target, public_key):
        runner.script(ARCH, ok(b"x86_64\n"))

        with pytest.raises(NonArmCpu):
            make_orchestrator(TunnelConfig(check_arch=True)).run(target)

        assert runner.count(TRANSFER) == 0
        assert runner.running() == []


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


class TestTelemetry:
    def test_success_events(self, make_orchestrator, target, public_key, telemetry):
        make_orchestrator().run(target)

        assert telemetry.event_names() == [
            "tunnel.spawned",
            "tunnel.created",
            "tunnel.validated",
            "key.transferred",
            "tunnel.closed",
        ]

    def test_attempt_metrics(self, make_orchestrator, runner, target, telemetry):
        runner.script(CREATE, FakeProcess(exit_code=255), FakeProcess())
        make_orchestrator().run(target, transfer_key=False)

        metrics = {m.name: m.value for m in telemetry.get_metrics()}
        assert metrics == {"tunnel.creation.attempts": 2, "tunnel.validation.attempts": 1}

        failures = telemetry.get_events("tunnel.attempt_failed")
        assert len(failures) == 1
        assert failures[0].metadata["phase"] == "creation"
        assert failures[0].metadata["attempt"] == 1

    def test_failure_event(self, make_orchestrator, runner, target, telemetry):
        runner.script(VALIDATE, REFUSED)

        with pytest.raises(TimeoutExhausted):
            make_orchestrator(TunnelConfig(timeout_seconds=1)).run(target, transfer_key=False)

        names = telemetry.event_names()
        assert "tunnel.failed" in names
        assert names[-1] == "tunnel.closed"
