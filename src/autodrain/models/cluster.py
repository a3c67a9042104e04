# src/autodrain/models/cluster.py
"""
Snapshots of the cluster objects the reconciler reads.

They carry only the attributes the drain and recovery logic needs and are
rebuilt from the API on every operation; nothing here is cached.
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ChangeKind(str, Enum):
    """Kind of notification delivered by a node watch."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class NodeSnapshot(BaseModel):
    """
    Pydantic model for the parts of a Kubernetes node the reconciler acts on.

    Attributes:
        name: Node name
        unschedulable: Whether the node is cordoned
        ready: Status of the Ready condition ("True", "False", "Unknown"), None when absent
        resource_version: Version used for optimistic-concurrency writes
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Node name")
    unschedulable: bool = Field(default=False, description="Whether the node is cordoned")
    ready: Optional[str] = Field(None, description="Status of the Ready condition")
    resource_version: Optional[str] = Field(None, description="Resource version read from the API")


class OwnerReference(BaseModel):
    kind: str
    name: str


class PodSnapshot(BaseModel):
    """A pod scheduled on a node, identified by namespace and name."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    node_name: Optional[str] = None
    owner_references: List[OwnerReference] = Field(default_factory=list)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.namespace, self.name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class DaemonSetSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str


class NodeChange(BaseModel):
    """A single notification from the node watch."""

    kind: ChangeKind
    node: NodeSnapshot


class EventRecord(BaseModel):
    """A cluster event, reduced to the involved object and the reason."""

    involved_kind: Optional[str] = None
    involved_name: Optional[str] = None
    reason: Optional[str] = None
    namespace: Optional[str] = None
    message: Optional[str] = None
