"""Probe - List backing service containers matching a keyword."""

from __future__ import annotations

from typing import Optional

import click

from ..config import Settings
from ..pneuma.probe import probe_containers


@click.command()
@click.option("--keyword", default=None, help="Image keyword [env: ASSETGATE_PROBE_KEYWORD]")
@click.option("--docker-host", default=None, help="Docker engine address [env: DOCKER_HOST]")
@click.pass_obj
def probe(settings: Settings, keyword: Optional[str], docker_host: Optional[str]) -> None:
    """Show containers whose image matches KEYWORD (default: orderer)."""
    keyword = keyword or settings.probe_keyword
    report = probe_containers(keyword=keyword, docker_host=docker_host or settings.docker_host)

    click.echo(f"Containers matching {keyword!r}: {len(report.matches)} of {report.scanned} running")
    for container in report.matches:
        click.echo()
        for line in container.describe():
            click.echo(f"  {line}")
