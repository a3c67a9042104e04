# src/autodrain/cluster/base.py
"""
This module defines the abstract interface the drain and recovery logic uses
to talk to the cluster. Keeping the engines behind this narrow interface makes
the Kubernetes client swappable and lets tests drive them with an in-memory
cluster.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from ..models.cluster import DaemonSetSnapshot, EventRecord, NodeChange, NodeSnapshot, PodSnapshot


class BaseClusterClient(ABC):
    """
    Abstract Base Class for cluster clients.

    Implementations translate their transport errors into the exceptions of
    `autodrain.core.exceptions`: ReadError for fetches, WriteConflictError for
    node updates, EvictionError for evictions and WatchError when a
    subscription cannot be opened.
    """

    @abstractmethod
    async def get_node(self, name: str) -> NodeSnapshot:
        pass

    @abstractmethod
    async def update_node(self, node: NodeSnapshot) -> None:
        """
        Writes the node's unschedulable flag back to the cluster.

        The write must fail with WriteConflictError when the node changed
        since `node.resource_version` was read.
        """
        pass

    @abstractmethod
    async def list_pods(self, node_name: str) -> List[PodSnapshot]:
        pass

    @abstractmethod
    async def list_daemon_sets(self) -> List[DaemonSetSnapshot]:
        pass

    @abstractmethod
    async def evict(self, namespace: str, pod_name: str) -> None:
        pass

    @abstractmethod
    async def watch_nodes(self) -> AsyncIterator[NodeChange]:
        """
        Opens the node subscription and returns the stream of changes.

        Awaiting this call establishes the subscription; iteration ends when
        the underlying connection closes.
        """
        pass

    @abstractmethod
    async def watch_events(self) -> AsyncIterator[EventRecord]:
        """Opens the cluster event subscription, see `watch_nodes`."""
        pass

    async def close(self):
        """
        Clean up resources (e.g., close API clients).
        """
        pass
