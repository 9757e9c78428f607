"""
Main CLI application
"""
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ...core.exceptions import TunnelError
from ...core.logging import setup_logging, resolve_level, get_logger, get_stderr_console
from ...core.telemetry import Telemetry
from ...domain.tunnel import TunnelOrchestrator
from ...infrastructure.process import SubprocessRunner
from ..config.loader import ConfigLoader
from .prompts import RichPromptProvider
from .target import resolve_target

logger = get_logger(__name__)
stderr_console = get_stderr_console()

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="ssh-ip-tunnel",
    add_completion=False,
    help="CLI tool for tunneling SSH and SSH key transfer",
    rich_markup_mode="rich",
)


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt(f"received signal {signum}")


@app.command()
def main(
    host: str = typer.Option(
        ...,
        "--host", "-H",
        help="IP address (or ssh_config alias) of the ARM device",
    ),
    user: Optional[str] = typer.Option(
        None,
        "--user", "-u",
        help="Username for SSH (default: from ssh_config, else prompted)",
    ),
    key: Optional[str] = typer.Option(
        None,
        "--key", "-k",
        help="Path to the SSH public key to transfer",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port", "-p",
        help="Local port to bind for the tunnel",
    ),
    no_key_transfer: bool = typer.Option(
        False,
        "--no-key-transfer",
        help="Only create and validate the tunnel",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Verbose logging",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Configuration file path (TOML)",
    ),
    check_arch: bool = typer.Option(
        False,
        "--check-arch",
        help="Refuse to transfer the key unless the device has an ARM CPU",
    ),
    strict_host_keys: bool = typer.Option(
        False,
        "--strict-host-keys",
        help="Keep ssh host key verification on (off by default for first-contact provisioning)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    Create an SSH tunnel to an ARM device, validate it, and deploy a public key through it.

    Examples:
        ssh-ip-tunnel -H 192.168.1.50 -u pi
        ssh-ip-tunnel -H 192.168.1.50 -u pi -k ~/.ssh/id_ed25519.pub -p 2200
        ssh-ip-tunnel -H my-board --no-key-transfer
    """
    setup_logging(level=resolve_level(verbose), log_file=log_file)
    prompt_provider = RichPromptProvider()

    cli_overrides = {
        "default_key_path": key,
        "default_port": port,
        "check_arch": True if check_arch else None,
        "strict_host_key_checking": True if strict_host_keys else None,
    }

    telemetry = Telemetry()

    # SIGTERM unwinds like Ctrl-C so the tunnel process is torn down
    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        config = ConfigLoader().build(toml_path=config_file, cli_overrides=cli_overrides)
        target = resolve_target(host, user, prompt_provider)

        if not config.strict_host_keys:
            prompt_provider.warning(
                "Host key verification is disabled for this first-contact tunnel; "
                "use --strict-host-keys to keep it"
            )

        orchestrator = TunnelOrchestrator(config, SubprocessRunner(), telemetry=telemetry)
        result = orchestrator.run(target, transfer_key=not no_key_transfer)

    except TunnelError as e:
        logger.debug("Operation failed", exc_info=True)
        prompt_provider.failure(e)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        stderr_console.print("\n[yellow]Interrupted, tunnel torn down[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)
    except Exception as e:
        logger.exception("Unexpected failure")
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
        logger.debug(f"Telemetry: {telemetry.summary()}")

    logger.debug(f"Run summary: {result.to_dict()}")
    prompt_provider.report(result)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
