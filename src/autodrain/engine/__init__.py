from .drain import DrainEngine, daemonset_owned_pods
from .recovery import RecoveryEngine

__all__ = ["DrainEngine", "RecoveryEngine", "daemonset_owned_pods"]
