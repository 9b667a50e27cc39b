"""
Run - Drive the asset transfer workflow end to end.

Flow:
1. Provision the wallet identity (once)
2. Connect to the gateway with the connection profile
3. Resolve the channel and bind the contract
4. Run the transaction sequence, printing every evaluate result
5. On a failed submit, inspect the ordering service containers
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config import Settings
from ..workflow import run_workflow
from .common import ensure_identity, gateway_options, open_contract, settings_probe


@click.command()
@gateway_options
@click.option(
    "--diagnose/--no-diagnose",
    default=True,
    show_default=True,
    help="Inspect backing containers when a submit fails",
)
@click.option("--probe-keyword", default=None, help="Image keyword for diagnostics [env: ASSETGATE_PROBE_KEYWORD]")
@click.pass_obj
def run(
    settings: Settings,
    profile_path: Optional[Path],
    channel: Optional[str],
    chaincode: Optional[str],
    timeout: Optional[float],
    discovery_as_localhost: Optional[bool],
    wallet_path: Optional[Path],
    credentials_path: Optional[Path],
    msp_id: Optional[str],
    user: Optional[str],
    diagnose: bool,
    probe_keyword: Optional[str],
) -> None:
    """Run the asset transfer sample against the ledger."""
    settings = settings.with_overrides(
        profile_path=profile_path,
        channel=channel,
        chaincode=chaincode,
        timeout=timeout,
        discovery_as_localhost=discovery_as_localhost,
        wallet_path=wallet_path,
        credentials_path=credentials_path,
        msp_id=msp_id,
        user=user,
        probe_keyword=probe_keyword,
    )

    click.echo("============ assetgate run starts ============")
    click.echo()

    wallet = ensure_identity(settings)
    with open_contract(settings, wallet) as contract:
        run_workflow(contract, diagnose=diagnose, probe=settings_probe(settings))

    click.echo()
    click.echo("============ assetgate run ends ============")
