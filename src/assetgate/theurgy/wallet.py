"""Wallet inspection commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config import Settings
from ..sigil.wallet import Wallet


@click.group("wallet")
def wallet_group() -> None:
    """Inspect the identity wallet."""
    pass


@wallet_group.command("list")
@click.option("--wallet", "wallet_path", type=click.Path(path_type=Path), default=None, help="Wallet directory")
@click.pass_obj
def wallet_list(settings: Settings, wallet_path: Optional[Path]) -> None:
    """List the labels stored in the wallet."""
    wallet = Wallet(wallet_path or settings.wallet_path)
    labels = wallet.list()
    if not labels:
        click.echo(f"No identities in {wallet.root}.")
        click.echo("Run 'assetgate enroll' to add one.")
        return

    click.echo(f"Identities in {wallet.root}: {len(labels)}")
    for label in labels:
        identity = wallet.get(label)
        click.echo(f"  {label}  ({identity.msp_id})")
