# src/autodrain/engine/drain.py
"""
Cordons a node, evicts the pods that are not managed by a daemon-set and
waits, up to a fixed budget, for them to leave the node.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Set, Tuple

from ..cluster.base import BaseClusterClient
from ..core.config import config
from ..core.exceptions import ClusterError, DrainTimeoutError, EvictionError
from ..models.cluster import DaemonSetSnapshot, PodSnapshot
from ..models.drain import DrainOutcome, DrainResult

logger = logging.getLogger(__name__)

PodKey = Tuple[str, str]


def daemonset_owned_pods(
    pods: Iterable[PodSnapshot],
    daemon_sets: Iterable[DaemonSetSnapshot],
    match_namespace: bool = True,
) -> Set[PodKey]:
    """
    Returns the keys of the pods owned by one of the given daemon-sets.

    With `match_namespace` the owner name has to match a daemon-set in the
    pod's own namespace; without it any daemon-set with that name counts.
    """
    if match_namespace:
        known = {(ds.namespace, ds.name) for ds in daemon_sets}
    else:
        known = {ds.name for ds in daemon_sets}

    owned = set()
    for pod in pods:
        for owner in pod.owner_references:
            if owner.kind != "DaemonSet":
                continue
            candidate = (pod.namespace, owner.name) if match_namespace else owner.name
            if candidate in known:
                owned.add(pod.key)
                break
    return owned


class DrainEngine:
    """
    Drives a single node through cordon, eviction and the convergence wait.

    The engine keeps no state between invocations: every call re-reads the
    node, the pods and the daemon-sets, so repeated triggers for the same node
    are safe.
    """

    def __init__(
        self,
        cluster: BaseClusterClient,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        match_namespace: Optional[bool] = None,
    ):
        self.cluster = cluster
        self.poll_interval = poll_interval if poll_interval is not None else config.drain_poll_interval_seconds
        self.timeout = timeout if timeout is not None else config.drain_timeout_seconds
        self.match_namespace = match_namespace if match_namespace is not None else config.DAEMONSET_MATCH_NAMESPACE

    async def drain(self, node_name: str) -> DrainResult:
        """
        Drains `node_name` and reports how it went.

        Never raises; cluster and transport failures end up in the outcome.
        """
        logger.info("Starting drain process for node %s", node_name)
        result = DrainResult(node_name=node_name, outcome=DrainOutcome.ERROR)

        try:
            await self.cordon(node_name)

            pods = await self.cluster.list_pods(node_name)
            daemon_sets = await self.cluster.list_daemon_sets()
            ds_pods = daemonset_owned_pods(pods, daemon_sets, self.match_namespace)
            result.skipped_daemonset_pods = [str(pod) for pod in pods if pod.key in ds_pods]

            await self._evict_all([pod for pod in pods if pod.key not in ds_pods], result)
            await self._wait_for_evacuation(node_name, daemon_sets)
        except DrainTimeoutError as e:
            result.outcome = DrainOutcome.TIMEOUT
            result.message = str(e)
            logger.warning("Timeout waiting for pods to be evicted: %s", e)
            return result
        except ClusterError as e:
            result.message = str(e)
            logger.warning("Drain of node %s aborted: %s", node_name, e)
            return result
        except Exception as e:
            result.message = str(e) or type(e).__name__
            logger.error("Unexpected error while draining node %s: %s", node_name, e, exc_info=True)
            return result

        result.outcome = DrainOutcome.SUCCESS
        logger.info("All non-daemonset pods have been evicted from node %s", node_name)
        return result

    async def cordon(self, node_name: str) -> bool:
        """
        Marks the node unschedulable unless it already is.

        Returns True when a write was issued. Read and write failures
        propagate as ReadError / WriteConflictError.
        """
        node = await self.cluster.get_node(node_name)
        if node.unschedulable:
            logger.info("Node %s is already marked as unschedulable, continuing with drain", node_name)
            return False

        await self.cluster.update_node(node.model_copy(update={"unschedulable": True}))
        logger.info("Successfully marked node %s as unschedulable", node_name)
        return True

    async def _evict_all(self, pods: List[PodSnapshot], result: DrainResult) -> None:
        for pod in pods:
            try:
                await self.cluster.evict(pod.namespace, pod.name)
            except EvictionError as e:
                logger.warning("Error evicting pod %s: %s", pod, e)
                result.eviction_failures.append(f"{pod}: {e}")
                continue
            logger.info("Evicted pod %s", pod)
            result.evicted.append(str(pod))

    async def _wait_for_evacuation(self, node_name: str, daemon_sets: List[DaemonSetSnapshot]) -> None:
        """
        Polls the node until only daemon-set pods remain.

        Every listing is classified again against `daemon_sets`, so a
        daemon-set pod recreated under a new name does not hold up the wait.

        Raises:
            DrainTimeoutError: When the budget runs out first.
            ReadError: On the first failed pod listing.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while True:
            if loop.time() > deadline:
                raise DrainTimeoutError(f"timeout waiting for pods to be evicted on node {node_name}")

            pods = await self.cluster.list_pods(node_name)
            ds_pods = daemonset_owned_pods(pods, daemon_sets, self.match_namespace)
            remaining = [pod for pod in pods if pod.key not in ds_pods]
            if not remaining:
                return

            logger.debug("%d pod(s) still running on node %s", len(remaining), node_name)
            await asyncio.sleep(self.poll_interval)
