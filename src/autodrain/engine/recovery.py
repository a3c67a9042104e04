# src/autodrain/engine/recovery.py

import logging

from ..cluster.base import BaseClusterClient
from ..core.exceptions import ClusterError

logger = logging.getLogger(__name__)


class RecoveryEngine:
    """Reverses the cordon applied by a drain once the node is healthy again."""

    def __init__(self, cluster: BaseClusterClient):
        self.cluster = cluster

    async def uncordon(self, node_name: str) -> None:
        """
        Clears the unschedulable flag of `node_name` if it is set.

        Raises:
            ReadError: If the node cannot be fetched.
            WriteConflictError: If the update is rejected.
        """
        try:
            node = await self.cluster.get_node(node_name)
        except ClusterError as e:
            logger.warning("Error getting node %s: %s", node_name, e)
            raise

        if not node.unschedulable:
            logger.info("Node %s is already schedulable", node_name)
            return

        try:
            await self.cluster.update_node(node.model_copy(update={"unschedulable": False}))
        except ClusterError as e:
            logger.warning("Error uncordoning node %s: %s", node_name, e)
            raise
        logger.info("Successfully uncordoned node %s", node_name)
