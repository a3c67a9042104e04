from .base import BaseClusterClient
from .kubernetes import KubernetesClusterClient

__all__ = ["BaseClusterClient", "KubernetesClusterClient"]
