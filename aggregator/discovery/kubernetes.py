"""Kubernetes control-plane adapter.

The registry only needs two listings; this module hides the client setup
(service-account token + CA cert, or in-cluster config) behind them.
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path

from kubernetes import client, config

from aggregator.errors import AggregatorError

logger = logging.getLogger(__name__)


class KubernetesConfigError(AggregatorError):
    """Raised when a Kubernetes API client cannot be built."""


class ControlPlane(abc.ABC):
    """What service discovery needs from the cluster."""

    @abc.abstractmethod
    def list_namespaces(self) -> list[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def list_services(self, namespace: str, label_selector: str) -> list[str]:
        """Return the names of services in *namespace* matching *label_selector*."""
        raise NotImplementedError


class KubernetesControlPlane(ControlPlane):
    """:class:`ControlPlane` over ``CoreV1Api``. Calls are blocking."""

    def __init__(self, core_api: client.CoreV1Api) -> None:
        self._core = core_api

    @classmethod
    def from_service_account(
        cls,
        host: str,
        port: str,
        token_path: str,
        cert_path: str,
    ) -> "KubernetesControlPlane":
        """Build a client for ``https://host:port`` authenticated by the token file.

        With no *host* the in-cluster configuration is loaded instead.
        """
        if not host:
            try:
                config.load_incluster_config()
            except config.ConfigException as exc:
                raise KubernetesConfigError(f"No in-cluster kubernetes config: {exc}") from exc
            logger.info("Loaded in-cluster Kubernetes config")
            return cls(client.CoreV1Api())

        try:
            token = Path(token_path).read_text().strip()
        except OSError as exc:
            raise KubernetesConfigError(
                f"Could not read kubernetes token from {token_path}: {exc}"
            ) from exc

        configuration = client.Configuration()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        configuration.host = f"https://{host}:{port}" if port else f"https://{host}"
        configuration.api_key = {"authorization": token}
        configuration.api_key_prefix = {"authorization": "Bearer"}
        configuration.ssl_ca_cert = cert_path
        logger.info("Using Kubernetes API at %s", configuration.host)
        return cls(client.CoreV1Api(client.ApiClient(configuration)))

    def list_namespaces(self) -> list[str]:
        result = self._core.list_namespace()
        return [ns.metadata.name for ns in result.items]

    def list_services(self, namespace: str, label_selector: str) -> list[str]:
        result = self._core.list_namespaced_service(namespace, label_selector=label_selector)
        return [svc.metadata.name for svc in result.items]
