# src/autodrain/cli/run.py
"""
Run command for the autodrain CLI.

Builds the cluster client, the engines and the dispatcher, and keeps the
two watch loops running until their streams end or the process is signalled.
"""

import asyncio
import logging
import signal
import traceback

import typer

from ..cluster.kubernetes import KubernetesClusterClient
from ..core.config import config
from ..core.exceptions import WatchError
from ..dispatcher import EventDispatcher
from ..engine.drain import DrainEngine
from ..engine.recovery import RecoveryEngine

logger = logging.getLogger(__name__)

app = typer.Typer(name="run", help="Watch the cluster and drain unhealthy nodes.")


async def _async_run() -> None:
    cluster = KubernetesClusterClient()
    drain_engine = DrainEngine(cluster)
    dispatcher = EventDispatcher(cluster, drain_engine, RecoveryEngine(cluster))
    logger.info(
        "Drain settings: poll_interval=%ss timeout=%ss match_namespace=%s",
        drain_engine.poll_interval,
        drain_engine.timeout,
        drain_engine.match_namespace,
    )

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()

    def signal_handler(signum):
        """Handle SIGTERM and SIGINT for graceful shutdown."""
        sig_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
        logger.info("Received %s, initiating graceful shutdown...", sig_name)
        main_task.cancel()

    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, signal_handler, signum)

    try:
        logger.info("Starting node watcher")
        await dispatcher.run()
    except asyncio.CancelledError:
        logger.info("Shutting down autodrain gracefully.")
    finally:
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(signum)
        await cluster.close()


@app.callback(invoke_without_command=True)
def run(ctx: typer.Context) -> None:
    """
    Start the node and event watchers.
    """
    if ctx.invoked_subcommand is not None:
        return

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logger.info("Initializing autodrain...")

    try:
        asyncio.run(_async_run())
    except WatchError as e:
        logger.error("Could not establish watch subscription: %s", e)
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}")
        logger.error("Run failed: %s", traceback.format_exc())
        raise typer.Exit(code=1)

    logger.info("Watch streams closed, exiting.")
