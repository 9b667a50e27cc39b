"""
Single transaction commands.

    assetgate evaluate ReadAsset asset1
    assetgate submit TransferAsset asset1 Tom
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config import Settings
from ..workflow import EVALUATE, SUBMIT, Step, run_workflow
from .common import ensure_identity, gateway_options, open_contract, settings_probe


def _call(settings: Settings, step: Step, diagnose: bool) -> None:
    wallet = ensure_identity(settings)
    with open_contract(settings, wallet) as contract:
        results = run_workflow(contract, [step], diagnose=diagnose, probe=settings_probe(settings))
    if step.kind == SUBMIT:
        payload = results[0].payload
        click.secho("SUCCESS: Transaction committed", fg="green")
        if payload:
            click.echo(payload.decode("utf-8", errors="replace"))


@click.command()
@gateway_options
@click.option("--diagnose/--no-diagnose", default=True, show_default=True, help="Inspect backing containers on failure")
@click.argument("function")
@click.argument("args", nargs=-1)
@click.pass_obj
def submit(
    settings: Settings,
    function: str,
    args: tuple[str, ...],
    diagnose: bool,
    **overrides: Optional[object],
) -> None:
    """Submit a state-changing transaction FUNCTION with ARGS."""
    _call(settings.with_overrides(**overrides), Step(SUBMIT, function, args), diagnose)


@click.command()
@gateway_options
@click.argument("function")
@click.argument("args", nargs=-1)
@click.pass_obj
def evaluate(
    settings: Settings,
    function: str,
    args: tuple[str, ...],
    **overrides: Optional[object],
) -> None:
    """Evaluate a read-only transaction FUNCTION with ARGS."""
    _call(settings.with_overrides(**overrides), Step(EVALUATE, function, args), diagnose=False)
