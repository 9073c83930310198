"""Pipeline wiring — discovery → fetch → export, plus the error logger.

:class:`Aggregator` owns the bounded queues between the stages, the single
shared HTTP client, and the lifecycle of every background task. The HTTP
server and the CLI use it as their entry point.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from aggregator.config import Settings
from aggregator.discovery import ControlPlane, KubernetesControlPlane, ServiceRegistry
from aggregator.errors import ErrorSink
from aggregator.exporters import CacheExporter, ConfluenceExporter, Exporter, ExportRouter
from aggregator.fetcher import MetadataFetcher
from aggregator.models import MetadataDocument, ServiceDescriptor

logger = logging.getLogger(__name__)


def build_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """The process-wide client shared by the fetchers and the Confluence sink."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout or None),
        limits=httpx.Limits(
            max_connections=None,
            max_keepalive_connections=128,
            keepalive_expiry=30.0,
        ),
    )


class Aggregator:
    """Runs the whole about-aggregation pipeline."""

    def __init__(
        self,
        control_plane: ControlPlane,
        client: httpx.AsyncClient,
        exporters: list[Exporter],
        cache: CacheExporter,
        label: str = "about=true",
        workers: int = 5,
        queue_size: int = 10,
        export_concurrency: int = 64,
        payload_format: str = "json",
    ) -> None:
        self.client = client
        self.cache = cache
        self.errors = ErrorSink(capacity=queue_size)
        self.services: asyncio.Queue[ServiceDescriptor] = asyncio.Queue(maxsize=queue_size)
        self.documents: asyncio.Queue[MetadataDocument] = asyncio.Queue(maxsize=queue_size)

        self.registry = ServiceRegistry(control_plane, label, self.services, self.errors)
        self.fetcher = MetadataFetcher(
            client,
            self.services,
            self.documents,
            self.errors,
            workers=workers,
            payload_format=payload_format,
        )
        self.router = ExportRouter(
            exporters, self.documents, self.errors, max_concurrency=export_concurrency
        )
        self._scans: set[asyncio.Task] = set()
        self._running = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        control_plane: ControlPlane | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> "Aggregator":
        """Build the pipeline from :class:`Settings`.

        Raises:
            ConfluenceConfigError: Confluence host or page id missing.
            KubernetesConfigError: no usable Kubernetes configuration.
        """
        client = client or build_http_client(settings.request_timeout)
        cache = CacheExporter()
        confluence = ConfluenceExporter(
            settings.confluence_host,
            settings.confluence_credentials,
            settings.confluence_page_id,
            client,
        )
        if control_plane is None:
            control_plane = KubernetesControlPlane.from_service_account(
                settings.kubernetes_service_host,
                settings.kubernetes_service_port,
                settings.kubernetes_token_path,
                settings.kubernetes_cert_path,
            )
        return cls(
            control_plane,
            client,
            [cache, confluence],
            cache,
            label=settings.label,
            workers=settings.workers,
            queue_size=settings.queue_size,
            export_concurrency=settings.export_concurrency,
            payload_format=settings.payload_format,
        )

    # ── Lifecycle ──────────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            logger.warning("Aggregator is already running")
            return
        self._running = True
        self.errors.start()
        self.fetcher.start()
        self.router.start()
        self.reload()
        logger.info("Aggregator started")

    async def stop(self) -> None:
        self._running = False
        for task in list(self._scans):
            task.cancel()
        await asyncio.gather(*self._scans, return_exceptions=True)
        await self.fetcher.stop()
        await self.router.stop()
        await self.errors.stop()
        await self.client.aclose()
        logger.info("Aggregator stopped")

    @property
    def running(self) -> bool:
        return self._running

    # ── Control ────────────────────────────────────────────────────

    def reload(self) -> asyncio.Task:
        """Start a discovery scan in the background and return immediately.

        Scans already in flight keep running.
        """
        task = asyncio.create_task(self.registry.discover())
        self._scans.add(task)
        task.add_done_callback(self._scans.discard)
        return task
