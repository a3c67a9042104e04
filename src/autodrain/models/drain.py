# src/autodrain/models/drain.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class DrainOutcome(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"


class DrainResult(BaseModel):
    """
    Result of one drain invocation.

    Attributes:
        node_name: The node that was drained
        outcome: success, timeout or error
        evicted: Pods for which an eviction request was accepted ("namespace/name")
        eviction_failures: Pods whose eviction request failed, with the reason
        skipped_daemonset_pods: Pods left in place because a daemon-set owns them
        message: Human readable detail, mostly set on timeout or error
    """

    node_name: str
    outcome: DrainOutcome
    evicted: List[str] = Field(default_factory=list)
    eviction_failures: List[str] = Field(default_factory=list)
    skipped_daemonset_pods: List[str] = Field(default_factory=list)
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == DrainOutcome.SUCCESS
