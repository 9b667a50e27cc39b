"""
Enroll - Provision the application identity into the wallet.

Idempotent: when the label is already in the wallet the credential
directory is not read at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config import Settings
from .common import ensure_identity, wallet_options


@click.command()
@wallet_options
@click.pass_obj
def enroll(
    settings: Settings,
    wallet_path: Optional[Path],
    credentials_path: Optional[Path],
    msp_id: Optional[str],
    user: Optional[str],
) -> None:
    """Store the user's certificate and key in the wallet."""
    settings = settings.with_overrides(
        wallet_path=wallet_path,
        credentials_path=credentials_path,
        msp_id=msp_id,
        user=user,
    )

    click.echo("=== assetgate enroll ===")
    click.echo()
    ensure_identity(settings)
    click.echo()
    click.secho("Enroll complete.", fg="green")
