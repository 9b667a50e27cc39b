"""Options and session plumbing shared by the gateway commands."""

from __future__ import annotations

from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterator

import click

from ..config import Settings
from ..errors import in_step
from ..pneuma.gateway import connect
from ..pneuma.probe import probe_containers
from ..pneuma.profile import load_profile
from ..pneuma.tx import Contract
from ..sigil.wallet import Wallet, provision


def wallet_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--user", default=None, help="Wallet label of the identity [env: ASSETGATE_USER]")(func)
    func = click.option("--msp-id", default=None, help="Organisation MSP ID [env: ASSETGATE_MSPID]")(func)
    func = click.option(
        "--credentials",
        "credentials_path",
        type=click.Path(path_type=Path),
        default=None,
        help="MSP directory with signcerts/ and keystore/ [env: ASSETGATE_CREDENTIALS]",
    )(func)
    func = click.option(
        "--wallet",
        "wallet_path",
        type=click.Path(path_type=Path),
        default=None,
        help="Wallet directory [env: ASSETGATE_WALLET]",
    )(func)
    return func


def gateway_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = wallet_options(func)
    func = click.option(
        "--discovery-as-localhost/--no-discovery-as-localhost",
        "discovery_as_localhost",
        default=None,
        help="Rewrite discovered hosts to localhost [env: DISCOVERY_AS_LOCALHOST]",
    )(func)
    func = click.option("--timeout", type=float, default=None, help="Connect timeout in seconds [env: ASSETGATE_TIMEOUT]")(func)
    func = click.option("--chaincode", default=None, help="Contract name [env: ASSETGATE_CHAINCODE]")(func)
    func = click.option("--channel", default=None, help="Channel name [env: ASSETGATE_CHANNEL]")(func)
    func = click.option(
        "--profile",
        "profile_path",
        type=click.Path(path_type=Path),
        default=None,
        help="Connection profile (YAML/JSON) with http(s):// gateway endpoints [env: ASSETGATE_PROFILE]",
    )(func)
    return func


def ensure_identity(settings: Settings) -> Wallet:
    """Create the wallet if needed and provision the user once."""
    wallet = Wallet(settings.wallet_path)
    click.echo(f"  Wallet:    {wallet.root}")

    with in_step("populate wallet"):
        created = provision(wallet, settings.user, settings.credentials_path, settings.msp_id)
    if created:
        click.secho(f"  Enrolled:  {settings.user} ({settings.msp_id})", fg="green")
    click.echo(f"  Labels:    {', '.join(wallet.list())}")
    return wallet


@contextmanager
def open_contract(settings: Settings, wallet: Wallet) -> Iterator[Contract]:
    """Connect, resolve the channel and bind the contract; always closes the session."""
    with in_step("load connection profile"):
        profile = load_profile(settings.profile_path)

    if settings.discovery_as_localhost:
        click.echo("  Discovery: as localhost")

    with in_step("connect to gateway"):
        gateway = connect(
            profile,
            wallet,
            settings.user,
            timeout=settings.timeout,
            discovery_as_localhost=settings.discovery_as_localhost,
        )
    with gateway:
        click.echo(f"  Identity:  {settings.user}")
        if gateway.identity.msp_id != gateway.profile.msp_id:
            click.secho(
                f"  Warning:   identity {settings.user} belongs to {gateway.identity.msp_id}, "
                f"profile organisation {gateway.profile.organization} is {gateway.profile.msp_id}",
                fg="yellow",
            )
        with in_step("get network"):
            network = gateway.get_network(settings.channel)
        click.echo(f"  Network:   {network.name}")
        contract = network.get_contract(settings.chaincode)
        click.echo(f"  Contract:  {contract.name}")
        click.echo()
        yield contract


def settings_probe(settings: Settings) -> Callable[[], Any]:
    return partial(probe_containers, keyword=settings.probe_keyword, docker_host=settings.docker_host)
