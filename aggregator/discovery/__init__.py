"""aggregator.discovery — finds labelled services through the Kubernetes API.

Exports:
    ServiceRegistry       — label-filtered scan emitting ServiceDescriptors
    ControlPlane          — interface the registry lists namespaces/services through
    KubernetesControlPlane — ControlPlane backed by the official kubernetes client
"""

from __future__ import annotations

from aggregator.discovery.kubernetes import (
    ControlPlane,
    KubernetesConfigError,
    KubernetesControlPlane,
)
from aggregator.discovery.registry import ServiceRegistry

__all__ = [
    "ControlPlane",
    "KubernetesConfigError",
    "KubernetesControlPlane",
    "ServiceRegistry",
]
