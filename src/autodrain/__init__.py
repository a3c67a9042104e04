"""Automated drain and recovery of unhealthy Kubernetes nodes."""

__version__ = "0.1.0"
