"""
assetgate CLI

Command-line client for the asset transfer contract on a permissioned
ledger network.

Identity = X.509 certificate + EC private key, kept in a file-system wallet.
Sessions are opened from a connection profile; every request is signed with
the wallet identity.

Commands:
  enroll    - Provision the wallet identity
  wallet    - Inspect the wallet
  run       - Run the asset transfer workflow
  submit    - Submit a single transaction
  evaluate  - Evaluate a single query
  probe     - Inspect backing service containers
  info      - Show settings and wallet status
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import click

from .config import ASSETGATE_ENV, load_settings
from .errors import AssetGateError, DiagnosticError, SubmitError, WorkflowError
from .sigil.wallet import Wallet


# ============ Constants ============

VERSION = "1.0.0"


# ============ Banner ============


def _print_banner() -> None:
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("        A S S E T G A T E", fg="bright_white", bold=True)
        + click.style(f"      v{VERSION}", dim=True)
    )
    click.secho("        ─── Ledger Asset Transfer Client ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Error Handling ============


def _report_failure(exc: AssetGateError) -> None:
    """Print a fatal error with the step it happened in."""
    step = exc.step or type(exc).__name__
    click.secho(f"ERROR: {step} failed", fg="red", bold=True)
    cause = exc.cause if isinstance(exc, WorkflowError) else exc
    click.secho(f"  Cause: {cause}", fg="red")

    if isinstance(cause, SubmitError):
        click.echo(f"  Stage: {cause.stage}")
        if cause.tx_id:
            click.echo(f"  TX:    {cause.tx_id}")
        if isinstance(cause.diagnostics, DiagnosticError):
            click.secho(f"  Diagnostics also failed: {cause.diagnostics}", fg="yellow")
        if cause.stage != "endorse":
            click.secho(
                "  The transaction may still be committed; check before resubmitting.",
                fg="yellow",
            )


class AssetGateGroup(click.Group):
    """Command group that turns AssetGateError into an exit status."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except AssetGateError as exc:
            _report_failure(exc)
            ctx.exit(exc.exit_code)


# ============ Main CLI Group ============


@click.group(cls=AssetGateGroup, invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="assetgate")
@click.option(
    "--env-file",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Settings file (default: {ASSETGATE_ENV})",
)
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path]) -> None:
    """assetgate - Ledger asset transfer client."""
    ctx.obj = load_settings(env_file)
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .theurgy.call import evaluate, submit
from .theurgy.enroll import enroll
from .theurgy.probe import probe
from .theurgy.run import run
from .theurgy.wallet import wallet_group

cli.add_command(enroll)
cli.add_command(wallet_group)
cli.add_command(run)
cli.add_command(submit)
cli.add_command(evaluate)
cli.add_command(probe)


# ============ Info ============


@cli.command()
@click.pass_obj
def info(settings) -> None:
    """Show settings and wallet status."""
    _print_banner()

    click.secho("  Settings ───────────────────────────────", fg="cyan")
    click.echo()
    rows = [
        ("Profile:    ", str(settings.profile_path)),
        ("Channel:    ", settings.channel),
        ("Contract:   ", settings.chaincode),
        ("Timeout:    ", f"{settings.timeout:g}s"),
        ("Localhost:  ", "yes" if settings.discovery_as_localhost else "no"),
        ("Wallet:     ", str(settings.wallet_path)),
        ("User:       ", f"{settings.user} ({settings.msp_id})"),
    ]
    for label, value in rows:
        click.echo(click.style(f"  {label}", dim=True) + click.style(value, fg="bright_white"))
    click.echo()

    click.secho("  Status ─────────────────────────────────", fg="cyan")
    click.echo()
    wallet = Wallet(settings.wallet_path)
    if wallet.exists(settings.user):
        status = click.style("enrolled", fg="green")
    else:
        status = click.style("not enrolled", fg="yellow") + click.style("  (run: assetgate enroll)", dim=True)
    click.echo(click.style("  Identity:   ", dim=True) + status)
    click.echo()


# ============ Entry Points ============


def main() -> None:
    """assetgate CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
