# src/autodrain/cli/nodes.py
"""
One-shot drain and uncordon commands, handy for operating a single node by
hand with the same logic the watchers use.
"""

import asyncio
import logging
from typing import Optional

import typer
from typing_extensions import Annotated

from ..cluster.kubernetes import KubernetesClusterClient
from ..core.config import config, parse_duration
from ..core.exceptions import ClusterError
from ..engine.drain import DrainEngine
from ..engine.recovery import RecoveryEngine
from ..models.drain import DrainResult

logger = logging.getLogger(__name__)


def _duration_option(value: Optional[str], name: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=name)


async def _drain(node: str, poll_interval: Optional[int], timeout: Optional[int]) -> DrainResult:
    cluster = KubernetesClusterClient()
    try:
        return await DrainEngine(cluster, poll_interval=poll_interval, timeout=timeout).drain(node)
    finally:
        await cluster.close()


async def _uncordon(node: str) -> None:
    cluster = KubernetesClusterClient()
    try:
        await RecoveryEngine(cluster).uncordon(node)
    finally:
        await cluster.close()


def drain(
    node: Annotated[str, typer.Argument(help="Name of the node to drain.")],
    timeout: Annotated[
        Optional[str],
        typer.Option("--timeout", help="How long to wait for pods to leave (e.g. '10m'). Defaults to DRAIN_TIMEOUT."),
    ] = None,
    poll_interval: Annotated[
        Optional[str],
        typer.Option("--poll-interval", help="Delay between pod checks (e.g. '5s'). Defaults to DRAIN_POLL_INTERVAL."),
    ] = None,
) -> None:
    """
    Cordon NODE, evict its pods except daemon-set pods, and wait for them to leave.
    """
    timeout_seconds = _duration_option(timeout, "--timeout")
    poll_seconds = _duration_option(poll_interval, "--poll-interval")
    effective_poll = poll_seconds if poll_seconds is not None else config.drain_poll_interval_seconds
    effective_timeout = timeout_seconds if timeout_seconds is not None else config.drain_timeout_seconds
    if effective_poll <= 0:
        raise typer.BadParameter("must be greater than zero.", param_hint="--poll-interval")
    if effective_timeout < effective_poll:
        raise typer.BadParameter("must not be shorter than the poll interval.", param_hint="--timeout")

    result = asyncio.run(_drain(node, poll_seconds, timeout_seconds))

    typer.echo(f"Drain of node {result.node_name}: {result.outcome.value}")
    typer.echo(f"  evicted: {len(result.evicted)}")
    typer.echo(f"  skipped daemon-set pods: {len(result.skipped_daemonset_pods)}")
    for failure in result.eviction_failures:
        typer.echo(f"  eviction failed: {failure}")
    if result.message:
        typer.echo(f"  {result.message}")

    if not result.succeeded:
        raise typer.Exit(code=1)


def uncordon(
    node: Annotated[str, typer.Argument(help="Name of the node to uncordon.")],
) -> None:
    """
    Mark NODE schedulable again.
    """
    try:
        asyncio.run(_uncordon(node))
    except ClusterError as e:
        typer.echo(f"Failed to uncordon node {node}: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Node {node} is schedulable.")
