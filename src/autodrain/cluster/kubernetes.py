# src/autodrain/cluster/kubernetes.py
"""
Cluster client backed by kubernetes_asyncio.

Converts API objects into the snapshots of `autodrain.models` and API
failures into the exceptions of `autodrain.core.exceptions`.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, List, Optional

import aiohttp
from kubernetes_asyncio import client, watch
from kubernetes_asyncio.client.rest import ApiException

from ..core.exceptions import EvictionError, ReadError, WatchError, WriteConflictError
from ..core.k8s_client import get_apps_v1_api, get_core_v1_api
from ..models.cluster import (
    ChangeKind,
    DaemonSetSnapshot,
    EventRecord,
    NodeChange,
    NodeSnapshot,
    OwnerReference,
    PodSnapshot,
)
from .base import BaseClusterClient

logger = logging.getLogger(__name__)

# Errors raised by the API server and by the HTTP transport underneath it.
API_ERRORS = (ApiException, aiohttp.ClientError, asyncio.TimeoutError)


def describe_error(e: Exception) -> str:
    if isinstance(e, ApiException):
        return f"{e.status} {e.reason}"
    return f"{type(e).__name__}: {e}"


def node_to_snapshot(node) -> NodeSnapshot:
    """Builds a NodeSnapshot from a V1Node."""
    ready = None
    status = getattr(node, "status", None)
    for condition in (status and status.conditions) or []:
        if condition.type == "Ready":
            ready = condition.status
            break

    spec = getattr(node, "spec", None)
    return NodeSnapshot(
        name=node.metadata.name,
        unschedulable=bool(spec and spec.unschedulable),
        ready=ready,
        resource_version=node.metadata.resource_version,
    )


def pod_to_snapshot(pod) -> PodSnapshot:
    owners = [OwnerReference(kind=ref.kind, name=ref.name) for ref in (pod.metadata.owner_references or [])]
    return PodSnapshot(
        namespace=pod.metadata.namespace,
        name=pod.metadata.name,
        node_name=pod.spec.node_name if pod.spec else None,
        owner_references=owners,
    )


def event_to_record(event) -> EventRecord:
    involved = event.involved_object
    return EventRecord(
        involved_kind=involved.kind if involved else None,
        involved_name=involved.name if involved else None,
        reason=event.reason,
        namespace=event.metadata.namespace if event.metadata else None,
        message=event.message,
    )


class KubernetesClusterClient(BaseClusterClient):
    """Talks to the Kubernetes API through kubernetes_asyncio."""

    def __init__(self):
        self._core = None
        self._apps = None

    async def _ensure_core(self) -> client.CoreV1Api:
        """Lazily initialize the CoreV1 client using the centralized loader."""
        if self._core:
            return self._core

        self._core = await get_core_v1_api()
        if not self._core:
            raise ReadError("Kubernetes client is not configured.")
        return self._core

    async def _ensure_apps(self) -> client.AppsV1Api:
        if self._apps:
            return self._apps

        self._apps = await get_apps_v1_api()
        if not self._apps:
            raise ReadError("Kubernetes client is not configured.")
        return self._apps

    async def get_node(self, name: str) -> NodeSnapshot:
        api = await self._ensure_core()
        try:
            node = await api.read_node(name)
        except API_ERRORS as e:
            raise ReadError(f"Error getting node {name}: {describe_error(e)}") from e
        return node_to_snapshot(node)

    async def update_node(self, node: NodeSnapshot) -> None:
        api = await self._ensure_core()
        body = {"spec": {"unschedulable": node.unschedulable}}
        if node.resource_version:
            # A stale resourceVersion makes the API server answer 409.
            body["metadata"] = {"resourceVersion": node.resource_version}
        try:
            await api.patch_node(node.name, body)
        except API_ERRORS as e:
            if getattr(e, "status", None) == 409:
                raise WriteConflictError(f"Node {node.name} was modified concurrently: {e.reason}") from e
            raise WriteConflictError(f"Error updating node {node.name}: {describe_error(e)}") from e

    async def list_pods(self, node_name: str) -> List[PodSnapshot]:
        api = await self._ensure_core()
        try:
            pod_list = await api.list_pod_for_all_namespaces(field_selector=f"spec.nodeName={node_name}")
        except API_ERRORS as e:
            raise ReadError(f"Error listing pods on node {node_name}: {describe_error(e)}") from e
        return [pod_to_snapshot(pod) for pod in pod_list.items]

    async def list_daemon_sets(self) -> List[DaemonSetSnapshot]:
        api = await self._ensure_apps()
        try:
            ds_list = await api.list_daemon_set_for_all_namespaces()
        except API_ERRORS as e:
            raise ReadError(f"Error listing daemonsets: {describe_error(e)}") from e
        return [DaemonSetSnapshot(namespace=ds.metadata.namespace, name=ds.metadata.name) for ds in ds_list.items]

    async def evict(self, namespace: str, pod_name: str) -> None:
        api = await self._ensure_core()
        eviction = client.V1Eviction(
            metadata=client.V1ObjectMeta(name=pod_name, namespace=namespace),
        )
        try:
            await api.create_namespaced_pod_eviction(name=pod_name, namespace=namespace, body=eviction)
        except API_ERRORS as e:
            raise EvictionError(f"Error evicting pod {namespace}/{pod_name}: {describe_error(e)}") from e

    async def watch_nodes(self) -> AsyncIterator[NodeChange]:
        api = await self._open_watch()
        try:
            initial = await api.list_node(limit=1)
        except API_ERRORS as e:
            raise WatchError(f"Error watching nodes: {describe_error(e)}") from e
        logger.info("Watching node status changes...")
        return self._stream(api.list_node, initial.metadata.resource_version, self._to_node_change)

    async def watch_events(self) -> AsyncIterator[EventRecord]:
        api = await self._open_watch()
        try:
            initial = await api.list_event_for_all_namespaces(limit=1)
        except API_ERRORS as e:
            raise WatchError(f"Error watching events: {describe_error(e)}") from e
        logger.info("Watching for NodeNotReady and Shutdown events...")
        return self._stream(
            api.list_event_for_all_namespaces, initial.metadata.resource_version, self._to_event_record
        )

    async def _open_watch(self) -> client.CoreV1Api:
        try:
            return await self._ensure_core()
        except ReadError as e:
            raise WatchError(str(e)) from e

    async def _stream(self, list_func: Callable, resource_version: Optional[str], convert: Callable):
        """Yields converted objects from a watch until the server closes it."""
        w = watch.Watch()
        async with w.stream(list_func, resource_version=resource_version) as stream:
            async for event in stream:
                item = convert(event)
                if item is not None:
                    yield item
        logger.debug("Watch on %s closed.", getattr(list_func, "__name__", list_func))

    @staticmethod
    def _to_node_change(event: dict) -> Optional[NodeChange]:
        obj = event.get("object")
        if not isinstance(obj, client.V1Node):
            return None
        try:
            kind = ChangeKind(event.get("type"))
        except ValueError:
            return None
        return NodeChange(kind=kind, node=node_to_snapshot(obj))

    @staticmethod
    def _to_event_record(event: dict) -> Optional[EventRecord]:
        obj = event.get("object")
        if not isinstance(obj, client.CoreV1Event):
            return None
        return event_to_record(obj)

    async def close(self):
        """Close the Kubernetes API clients if they exist."""
        if self._core:
            await self._core.api_client.close()
            self._core = None
        if self._apps:
            await self._apps.api_client.close()
            self._apps = None
        logger.debug("KubernetesClusterClient closed.")
