"""Tests for ssh_ip_tunnel.domain.tunnel.arch - remote CPU check."""

import pytest

from ssh_ip_tunnel.core.exceptions import (
    ArchitectureDetectionFailed,
    NonArmCpu,
    ProcessTimeoutError,
)
from ssh_ip_tunnel.domain.tunnel import ArchitectureCheck, is_arm
from tests.fakes import ARCH, failed, ok


@pytest.mark.parametrize("arch", ["aarch64", "armv7l", "armv6l", "arm64", "ARMHF", "aarch64_be\n"])
def test_arm_names(arch):
    assert is_arm(arch)


@pytest.mark.parametrize("arch", ["x86_64", "i686", "riscv64", "mips", ""])
def test_non_arm_names(arch):
    assert not is_arm(arch)


class TestArchitectureCheck:
    def test_detect_runs_uname_through_tunnel(self, runner, target):
        assert ArchitectureCheck(runner).detect(target, 2222) == "aarch64"

        call = runner.calls[0]
        assert call.kind == ARCH
        assert call.program == "ssh"
        assert call.args[-2:] == ("pi@localhost", "uname -m")
        assert call.args[call.args.index("-p") + 1] == "2222"
        assert call.timeout == 10

    def test_run_accepts_arm(self, runner, target):
        runner.script(ARCH, ok(b"armv7l\n"))
        assert ArchitectureCheck(runner).run(target, 2222) == "armv7l"

    def test_run_rejects_x86(self, runner, target):
        runner.script(ARCH, ok(b"x86_64\n"))

        with pytest.raises(NonArmCpu, match="x86_64") as exc_info:
            ArchitectureCheck(runner).run(target, 2222)
        assert exc_info.value.arch == "x86_64"

    def test_empty_output(self, runner, target):
        runner.script(ARCH, ok(b"\n"))

        with pytest.raises(ArchitectureDetectionFailed, match="empty response"):
            ArchitectureCheck(runner).detect(target, 2222)

    def test_command_failure(self, runner, target):
        runner.script(ARCH, failed(255, b"pi@localhost: Permission denied (publickey).\n"))

        with pytest.raises(ArchitectureDetectionFailed, match="Permission denied"):
            ArchitectureCheck(runner).detect(target, 2222)

    def test_timeout(self, runner, target):
        runner.script(ARCH, ProcessTimeoutError("ssh", 10))

        with pytest.raises(ArchitectureDetectionFailed, match="timeout while detecting"):
            ArchitectureCheck(runner).detect(target, 2222)

    def test_missing_ssh(self, runner, target):
        runner.script(ARCH, FileNotFoundError(2, "No such file", "ssh"))

        with pytest.raises(ArchitectureDetectionFailed, match="not installed"):
            ArchitectureCheck(runner).detect(target, 2222)
