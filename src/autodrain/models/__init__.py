from .cluster import (
    ChangeKind,
    DaemonSetSnapshot,
    EventRecord,
    NodeChange,
    NodeSnapshot,
    OwnerReference,
    PodSnapshot,
)
from .drain import DrainOutcome, DrainResult

__all__ = [
    "ChangeKind",
    "DaemonSetSnapshot",
    "DrainOutcome",
    "DrainResult",
    "EventRecord",
    "NodeChange",
    "NodeSnapshot",
    "OwnerReference",
    "PodSnapshot",
]
