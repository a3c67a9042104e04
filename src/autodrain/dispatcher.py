# src/autodrain/dispatcher.py
"""
Watches nodes and cluster events and routes unhealthy or recovered nodes to
the drain and recovery engines.

Two loops run side by side: one over node status changes, one over cluster
events. Each handles its notifications one at a time, in arrival order, so a
long drain holds back the rest of its own stream but not the other one.
"""

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Optional

from .cluster.base import BaseClusterClient
from .engine.drain import DrainEngine
from .engine.recovery import RecoveryEngine
from .models.cluster import ChangeKind, EventRecord, NodeChange

logger = logging.getLogger(__name__)

NODE_DRAIN_REASONS = frozenset({"Shutdown", "NodeNotReady"})


class NodeAction(str, Enum):
    DRAIN = "drain"
    UNCORDON = "uncordon"


def classify_node_change(change: NodeChange) -> Optional[NodeAction]:
    """Maps a node notification to the action it calls for, if any."""
    if change.kind != ChangeKind.MODIFIED:
        return None

    ready = change.node.ready
    if ready in ("False", "Unknown"):
        return NodeAction.DRAIN
    if ready == "True":
        return NodeAction.UNCORDON
    return None


def is_node_drain_event(event: EventRecord) -> bool:
    return event.involved_kind == "Node" and event.reason in NODE_DRAIN_REASONS and bool(event.involved_name)


class EventDispatcher:
    """Runs the node-status loop and the cluster-event loop."""

    def __init__(self, cluster: BaseClusterClient, drain_engine: DrainEngine, recovery_engine: RecoveryEngine):
        self.cluster = cluster
        self.drain_engine = drain_engine
        self.recovery_engine = recovery_engine

    async def run(self) -> None:
        """
        Opens both subscriptions, then processes them until both streams end.

        A WatchError while opening either subscription propagates to the
        caller; nothing is processed in that case.
        """
        node_stream = await self.cluster.watch_nodes()
        event_stream = await self.cluster.watch_events()

        await asyncio.gather(
            self.watch_node_status(node_stream),
            self.watch_node_events(event_stream),
        )

    async def watch_node_status(self, stream: AsyncIterator[NodeChange]) -> None:
        try:
            async for change in stream:
                await self._handle_node_change(change)
        except Exception as e:
            logger.error("Node watch stream failed: %s", e)
        logger.warning("Node watch stream closed; node status loop exiting.")

    async def watch_node_events(self, stream: AsyncIterator[EventRecord]) -> None:
        try:
            async for event in stream:
                await self._handle_event(event)
        except Exception as e:
            logger.error("Event watch stream failed: %s", e)
        logger.warning("Event watch stream closed; cluster event loop exiting.")

    async def _handle_node_change(self, change: NodeChange) -> None:
        action = classify_node_change(change)
        if action is None:
            return

        node_name = change.node.name
        try:
            if action is NodeAction.DRAIN:
                logger.info("Node %s is not ready, draining...", node_name)
                await self.drain_engine.drain(node_name)
            else:
                logger.info("Node %s is back online, uncordoning...", node_name)
                await self.recovery_engine.uncordon(node_name)
        except Exception as e:
            logger.error("Failed to %s node %s: %s", action.value, node_name, e, exc_info=True)

    async def _handle_event(self, event: EventRecord) -> None:
        if not is_node_drain_event(event):
            return

        node_name = event.involved_name
        logger.info("Detected %s event for node %s, starting drain process", event.reason, node_name)
        try:
            await self.drain_engine.drain(node_name)
        except Exception as e:
            logger.error("Failed to drain node %s: %s", node_name, e, exc_info=True)
