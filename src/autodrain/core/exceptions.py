class AutoDrainError(Exception):
    """Base exception for autodrain."""

    pass


class ClusterError(AutoDrainError):
    """Base exception for errors returned by the cluster API."""

    pass


class ReadError(ClusterError):
    """Raised when a node, pod or daemon-set fetch fails."""

    pass


class WriteConflictError(ClusterError):
    """Raised when a cordon or uncordon update is rejected."""

    pass


class EvictionError(ClusterError):
    """Raised when a single pod eviction request fails."""

    pass


class WatchError(ClusterError):
    """Raised when a watch subscription cannot be established."""

    pass


class DrainTimeoutError(AutoDrainError):
    """Raised when pods are still present once the drain budget is spent."""

    pass
