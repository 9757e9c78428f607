"""Tests for RichPromptProvider output."""

import io
from pathlib import Path

from rich.console import Console

from ssh_ip_tunnel.adapters.cli.prompts import RichPromptProvider
from ssh_ip_tunnel.core.exceptions import ValidationFailed
from ssh_ip_tunnel.domain.tunnel import TunnelResult, TunnelTarget


def make_provider():
    out, err = io.StringIO(), io.StringIO()
    provider = RichPromptProvider(
        console=Console(file=out, width=120),
        err_console=Console(file=err, width=120),
    )
    return provider, out, err


class TestRichPromptProvider:
    def test_report_full_run(self):
        provider, out, _ = make_provider()
        provider.report(TunnelResult(
            target=TunnelTarget(host="192.168.1.50", user="pi"),
            local_port=2222,
            key_path=Path("/home/dev/.ssh/id_rsa.pub"),
            key_transferred=True,
            architecture="aarch64",
            creation_attempts=2,
            validation_attempts=1,
        ))

        text = out.getvalue()
        assert "Tunnel to pi@192.168.1.50 validated on localhost:2222" in text
        assert "creation attempts" in text
        assert "aarch64" in text
        assert "/home/dev/.ssh/id_rsa.pub" in text
        assert "deployment completed" in text

    def test_report_tunnel_only(self):
        provider, out, _ = make_provider()
        provider.report(TunnelResult(target=TunnelTarget(host="board", user="pi"), local_port=2300))

        text = out.getvalue()
        assert "localhost:2300" in text
        assert "transfer skipped" in text
        assert "architecture" not in text

    def test_failure_goes_to_stderr(self):
        provider, out, err = make_provider()
        provider.failure(ValidationFailed("ssh exited with status 255: [bad] banner"))

        assert out.getvalue() == ""
        assert "ValidationFailed: Connection validation failed" in err.getvalue()
        # markup in the message is printed literally
        assert "[bad] banner" in err.getvalue()
