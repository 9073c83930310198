"""Fan-out of fetched documents to every registered sink.

Each (document, sink) pair runs as its own task so a slow or failing sink
never holds up the others or the next document. A semaphore caps how many
sink calls execute at once; it is acquired inside the task, so dispatching
itself never waits on a sink.
"""

from __future__ import annotations

import asyncio
import logging

from aggregator.errors import ErrorSink
from aggregator.exporters.base import Exporter
from aggregator.models import MetadataDocument

logger = logging.getLogger(__name__)


class ExportRouter:
    def __init__(
        self,
        exporters: list[Exporter],
        documents: asyncio.Queue[MetadataDocument],
        errors: ErrorSink,
        max_concurrency: int = 64,
    ) -> None:
        self.exporters = exporters
        self.documents = documents
        self.errors = errors
        self._slots = asyncio.Semaphore(max_concurrency)
        self._inflight: set[asyncio.Task] = set()
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._loop())
            logger.info(
                "Export router started with sink(s): %s",
                ", ".join(e.name for e in self.exporters),
            )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        for task in list(self._inflight):
            task.cancel()
        await asyncio.gather(*self._inflight, return_exceptions=True)

    def dispatch(self, document: MetadataDocument) -> list[asyncio.Task]:
        """Spawn one sink call per exporter for *document* and return the tasks."""
        tasks = []
        for exporter in self.exporters:
            task = asyncio.create_task(self._export(exporter, document))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        return tasks

    async def drain(self) -> None:
        """Wait until every sink call dispatched so far has finished."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _loop(self) -> None:
        while True:
            document = await self.documents.get()
            self.dispatch(document)
            self.documents.task_done()

    async def _export(self, exporter: Exporter, document: MetadataDocument) -> None:
        async with self._slots:
            try:
                await exporter.handle(document)
            except Exception as exc:
                self.errors.report(str(exc) or f"Export to {exporter.name} failed: {exc!r}")
            else:
                logger.debug("exported %s to %s", document.service.name, exporter.name)
