"""CLI handling for clipmesh.

This module provides the command-line interface for clipmesh, handling
argument parsing via click, logging configuration, and running a node with
the resulting configuration. Every option can also come from a CLIPMESH_*
environment variable.

Usage:
    clipmesh [--port N] [--peers host:port,...] [--key SECRET] [--max-mb N]
             [--poll-interval SECONDS] [--host ADDR] [--backend NAME] [--verbose]
"""

import sys

import click

from clipmesh.clipboard import BACKENDS
from clipmesh.config import DEFAULT_MAX_MB, DEFAULT_POLL_INTERVAL, SyncConfig
from clipmesh.main_logging import configure_logging
from clipmesh.main_options import PEER_ADDRESS_LIST, flatten_peers
from clipmesh.peer_constants import DEFAULT_PORT


@click.command()
@click.option(
    "--port",
    "-p",
    type=click.IntRange(0, 65535),
    default=DEFAULT_PORT,
    show_default=True,
    envvar="CLIPMESH_PORT",
    help="TCP port to accept peers on",
)
@click.option(
    "--peers",
    "-P",
    type=PEER_ADDRESS_LIST,
    multiple=True,
    envvar="CLIPMESH_PEERS",
    help="Peers to dial, as host:port[,host:port...]; may be repeated",
)
@click.option(
    "--key",
    "-k",
    default=None,
    envvar="CLIPMESH_KEY",
    help="Shared secret required from peers",
)
@click.option(
    "--max-mb",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_MAX_MB,
    show_default=True,
    envvar="CLIPMESH_MAX_MB",
    help="Largest clipboard payload to send or apply, in megabytes",
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_POLL_INTERVAL,
    show_default=True,
    envvar="CLIPMESH_POLL_INTERVAL",
    help="Seconds between clipboard polls",
)
@click.option(
    "--host",
    default="0.0.0.0",
    show_default=True,
    envvar="CLIPMESH_HOST",
    help="Address to bind the listener to",
)
@click.option(
    "--backend",
    type=click.Choice(BACKENDS),
    default="auto",
    show_default=True,
    envvar="CLIPMESH_BACKEND",
    help="Clipboard backend",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def main(
    port: int,
    peers: tuple[tuple[str, ...], ...],
    key: str | None,
    max_mb: float,
    poll_interval: float,
    host: str,
    backend: str,
    verbose: bool,
) -> None:
    """Replicate the clipboard across a mesh of peers."""
    configure_logging(verbose)

    config = SyncConfig(
        port=port,
        host=host,
        key=(key or "").strip() or None,
        peers=flatten_peers(peers),
        max_mb=max_mb,
        poll_interval=poll_interval,
        backend=backend,
    )
    _run_node(config)


def _run_node(config: SyncConfig) -> None:
    """Run a node until interrupted.

    Args:
        config: The node configuration built from the options.
    """
    import asyncio
    from clipmesh.clipboard import BackendError
    from clipmesh.node import run_node
    from clipmesh.server import ListenError

    try:
        asyncio.run(run_node(config))
    except (ListenError, BackendError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
