"""In-memory cache of the latest document per service, served over HTTP."""

from __future__ import annotations

import threading
from typing import Any

from aggregator.exporters.base import Exporter
from aggregator.exporters.templates import render_about_page
from aggregator.models import MetadataDocument


class CacheExporter(Exporter):
    """Keeps the most recent document for each service name.

    Entries are keyed by service name alone, so same-named services in
    different namespaces replace each other.
    """

    name = "cache"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._abouts: dict[str, MetadataDocument] = {}

    async def handle(self, document: MetadataDocument) -> None:
        with self._lock:
            self._abouts[document.service.name] = document

    def snapshot(self) -> list[MetadataDocument]:
        """Point-in-time copy of every entry, ordered by service name."""
        with self._lock:
            entries = dict(self._abouts)
        return [entries[k] for k in sorted(entries)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._abouts)

    def render_json(self) -> list[dict[str, Any]]:
        return [d.to_dict() for d in self.snapshot()]

    def render_html(self) -> str:
        return render_about_page(self.snapshot())
