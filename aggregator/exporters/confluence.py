"""Confluence page exporter — republishes every known service to one wiki page.

Each handled document triggers a full read-modify-write cycle: the whole
accumulated service set is rendered, the page is fetched for its current
version, and the page is written back with ``version + 1``.

There is no conditional write. If another client edits the page between our
GET and PUT, Confluence rejects the PUT (version conflict) and the failure is
reported like any other export error; the next document retries the cycle
naturally. Within this process the cycle runs under a lock so our own
updates never race each other.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aggregator.exporters.base import Exporter, ExporterError
from aggregator.exporters.templates import render_storage_body
from aggregator.models import MetadataDocument

logger = logging.getLogger(__name__)

CONTENT_PATH = "/wiki/rest/api/content/"


class ConfluenceError(ExporterError):
    """Raised when a Confluence page cannot be read or updated."""


class ConfluenceConfigError(ConfluenceError):
    """Raised at construction when the host or page id is missing."""


# ──────────────────────────────────────────────────────────────────
# Remote page shape
# ──────────────────────────────────────────────────────────────────

class StorageValue(BaseModel):
    value: str = ""
    representation: str = "storage"


class PageBody(BaseModel):
    storage: StorageValue = Field(default_factory=StorageValue)


class PageVersion(BaseModel):
    number: int


class RemoteDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str
    title: str
    status: str | None = None
    version: PageVersion
    body: PageBody = Field(default_factory=PageBody)


# ──────────────────────────────────────────────────────────────────
# Exporter
# ──────────────────────────────────────────────────────────────────

class ConfluenceExporter(Exporter):
    name = "confluence"

    def __init__(
        self,
        host: str,
        credentials: str,
        page_id: str,
        client: httpx.AsyncClient,
    ) -> None:
        if not host:
            raise ConfluenceConfigError("Confluence host is required")
        if not page_id:
            raise ConfluenceConfigError("Confluence page id is required")
        self.host = host.rstrip("/")
        self.page_id = page_id
        self._credentials = credentials
        self._client = client
        self._lock = asyncio.Lock()
        self._abouts: dict[str, MetadataDocument] = {}

    @property
    def page_url(self) -> str:
        return f"{self.host}{CONTENT_PATH}{self.page_id}"

    async def handle(self, document: MetadataDocument) -> None:
        async with self._lock:
            self._abouts[document.service.name] = document
            content = render_storage_body([self._abouts[k] for k in sorted(self._abouts)])

            try:
                page = await self.get_page()
            except ConfluenceError as exc:
                raise ConfluenceError(
                    f"Could not get confluence page with ID {self.page_id}: ({exc})"
                ) from exc

            page.body.storage = StorageValue(value=content)
            page.version.number += 1

            try:
                await self.update_page(page)
            except ConfluenceError as exc:
                raise ConfluenceError(
                    f"Could not update confluence page with ID {self.page_id}: ({exc})"
                ) from exc
            logger.debug(
                "Confluence page %s updated to version %d (%d services)",
                self.page_id, page.version.number, len(self._abouts),
            )

    async def get_page(self) -> RemoteDocument:
        response = await self._request("GET", headers={"Accept": "application/json"})
        try:
            return RemoteDocument.model_validate_json(response.content)
        except ValidationError as exc:
            raise ConfluenceError(f"Error decoding confluence response: ({exc})") from exc

    async def update_page(self, page: RemoteDocument) -> None:
        await self._request(
            "PUT",
            content=page.model_dump_json(exclude_none=True).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _request(self, method: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Basic {self._credentials}", **kwargs.pop("headers", {})}
        url = self.page_url
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ConfluenceError(f"Could not get response from {url}: ({exc})") from exc
        if response.status_code != 200:
            raise ConfluenceError(f"Confluence api returned status {response.status_code}")
        return response
