"""Abstract sink interface.

Any destination for fetched ``__/about`` documents (the HTTP cache, a wiki
page, ...) implements this interface and is registered with the
:class:`~aggregator.exporters.router.ExportRouter`.
"""

from __future__ import annotations

import abc

from aggregator.errors import AggregatorError
from aggregator.models import MetadataDocument


class ExporterError(AggregatorError):
    """Base error for sink failures."""


class Exporter(abc.ABC):
    """A sink that records or republishes metadata documents."""

    name: str = "exporter"

    @abc.abstractmethod
    async def handle(self, document: MetadataDocument) -> None:
        """Accept one document.

        Raises whatever went wrong; the router turns it into an error event.
        """
        raise NotImplementedError
