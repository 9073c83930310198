"""Bounded worker pool that polls ``__/about`` on discovered services.

All workers pull from the same descriptor queue and push to the same
document queue. A failed fetch is reported once and the service is skipped
until the next discovery scan; there is no retry.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import ValidationError

from aggregator.errors import AggregatorError, ErrorSink
from aggregator.models import AboutDoc, MetadataDocument, Payload, ServiceDescriptor

logger = logging.getLogger(__name__)


class FetchError(AggregatorError):
    """A single failed ``__/about`` fetch; the message is the reported event."""


class MetadataFetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        services: asyncio.Queue[ServiceDescriptor],
        out: asyncio.Queue[MetadataDocument],
        errors: ErrorSink,
        workers: int = 5,
        payload_format: str = "json",
    ) -> None:
        self.client = client
        self.services = services
        self.out = out
        self.errors = errors
        self.workers = workers
        self.payload_format = payload_format
        self._tasks: list[asyncio.Task] = []

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"about-fetcher-{i}")
            for i in range(self.workers)
        ]
        logger.info("Started %d __/about fetcher(s)", self.workers)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def fetch(self, service: ServiceDescriptor) -> MetadataDocument:
        """GET ``{base_url}__/about`` and build a document from the response.

        Raises:
            FetchError: on transport failure, a non-2xx status or an
                undecodable body.
        """
        try:
            # non-streaming: the body is read in full and the connection released
            response = await self.client.get(service.about_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"Could not get response from {service.base_url}: ({exc})") from exc

        if not response.is_success:
            raise FetchError(f"__/about returned {response.status_code} for {service.base_url}")

        return MetadataDocument(service=service, payload=self._decode(service, response))

    def _decode(self, service: ServiceDescriptor, response: httpx.Response) -> Payload:
        if self.payload_format == "raw":
            return response.content
        try:
            return AboutDoc.model_validate_json(response.content)
        except ValidationError as exc:
            raise FetchError(
                f"Could not json decode __/about response for {service.base_url}"
            ) from exc

    async def _worker(self, index: int) -> None:
        while True:
            service = await self.services.get()
            try:
                document = await self.fetch(service)
            except FetchError as exc:
                self.errors.report(str(exc))
            except Exception as exc:
                self.errors.report(f"Could not get response from {service.base_url}: ({exc})")
            else:
                logger.debug("worker %d fetched __/about for %s", index, service.base_url)
                await self.out.put(document)
            finally:
                self.services.task_done()
