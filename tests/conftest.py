# tests/conftest.py

from typing import Dict, List, Optional, Tuple

import pytest

from autodrain.cluster.base import BaseClusterClient
from autodrain.core.exceptions import EvictionError, ReadError, WriteConflictError
from autodrain.models.cluster import (
    DaemonSetSnapshot,
    EventRecord,
    NodeChange,
    NodeSnapshot,
    OwnerReference,
    PodSnapshot,
)


class FakeClusterClient(BaseClusterClient):
    """
    In-memory cluster used to drive the engines and the dispatcher.

    Evicted pods disappear at once unless listed in `stuck_pods`; failures are
    injected by setting the matching `*_error` attribute to an exception.
    """

    def __init__(self):
        self.nodes: Dict[str, NodeSnapshot] = {}
        self.pods: Dict[Tuple[str, str], PodSnapshot] = {}
        self.daemon_sets: List[DaemonSetSnapshot] = []
        self.stuck_pods: set = set()
        self.evict_errors: Dict[Tuple[str, str], str] = {}

        self.get_node_error: Optional[Exception] = None
        self.update_node_error: Optional[Exception] = None
        self.list_pods_error: Optional[Exception] = None
        self.list_pods_error_after: Optional[int] = None
        self.list_daemon_sets_error: Optional[Exception] = None
        self.watch_nodes_error: Optional[Exception] = None
        self.watch_events_error: Optional[Exception] = None

        self.node_changes: List[NodeChange] = []
        self.events: List[EventRecord] = []

        self.updates: List[NodeSnapshot] = []
        self.evictions: List[Tuple[str, str]] = []
        self.list_pods_calls = 0
        self.closed = False

    # --- helpers used by tests ---

    def add_node(self, name: str, unschedulable: bool = False, ready: Optional[str] = "True") -> NodeSnapshot:
        node = NodeSnapshot(name=name, unschedulable=unschedulable, ready=ready, resource_version="1")
        self.nodes[name] = node
        return node

    def add_pod(self, namespace: str, name: str, node_name: str, owner_kind: str = None, owner_name: str = None):
        owners = [OwnerReference(kind=owner_kind, name=owner_name)] if owner_kind else []
        pod = PodSnapshot(namespace=namespace, name=name, node_name=node_name, owner_references=owners)
        self.pods[pod.key] = pod
        return pod

    def add_daemon_set(self, namespace: str, name: str):
        self.daemon_sets.append(DaemonSetSnapshot(namespace=namespace, name=name))

    # --- BaseClusterClient ---

    async def get_node(self, name: str) -> NodeSnapshot:
        if self.get_node_error:
            raise self.get_node_error
        if name not in self.nodes:
            raise ReadError(f"Error getting node {name}: 404 Not Found")
        return self.nodes[name].model_copy()

    async def update_node(self, node: NodeSnapshot) -> None:
        self.updates.append(node)
        if self.update_node_error:
            raise self.update_node_error
        current = self.nodes.get(node.name)
        if current is None or current.resource_version != node.resource_version:
            raise WriteConflictError(f"Node {node.name} was modified concurrently")
        self.nodes[node.name] = node.model_copy(
            update={"resource_version": str(int(current.resource_version) + 1)}
        )

    async def list_pods(self, node_name: str) -> List[PodSnapshot]:
        self.list_pods_calls += 1
        if self.list_pods_error and (
            self.list_pods_error_after is None or self.list_pods_calls > self.list_pods_error_after
        ):
            raise self.list_pods_error
        return [pod for pod in self.pods.values() if pod.node_name == node_name]

    async def list_daemon_sets(self) -> List[DaemonSetSnapshot]:
        if self.list_daemon_sets_error:
            raise self.list_daemon_sets_error
        return list(self.daemon_sets)

    async def evict(self, namespace: str, pod_name: str) -> None:
        key = (namespace, pod_name)
        self.evictions.append(key)
        if key in self.evict_errors:
            raise EvictionError(self.evict_errors[key])
        if key not in self.pods:
            raise EvictionError(f"Error evicting pod {namespace}/{pod_name}: 404 Not Found")
        if key not in self.stuck_pods:
            del self.pods[key]

    async def watch_nodes(self):
        if self.watch_nodes_error:
            raise self.watch_nodes_error
        return self._iterate(self.node_changes)

    async def watch_events(self):
        if self.watch_events_error:
            raise self.watch_events_error
        return self._iterate(self.events)

    @staticmethod
    async def _iterate(items):
        for item in list(items):
            yield item

    async def close(self):
        self.closed = True


@pytest.fixture
def cluster():
    """A fresh in-memory cluster for each test."""
    return FakeClusterClient()


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Keeps the drain settings predictable regardless of the caller's environment.
    """
    monkeypatch.setenv("DRAIN_POLL_INTERVAL", "5s")
    monkeypatch.setenv("DRAIN_TIMEOUT", "10m")
    monkeypatch.setenv("DAEMONSET_MATCH_NAMESPACE", "true")


