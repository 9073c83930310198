"""aggregator.exporters — sinks for fetched ``__/about`` documents."""

from __future__ import annotations

from aggregator.exporters.base import Exporter, ExporterError
from aggregator.exporters.cache import CacheExporter
from aggregator.exporters.confluence import (
    ConfluenceConfigError,
    ConfluenceError,
    ConfluenceExporter,
)
from aggregator.exporters.router import ExportRouter

__all__ = [
    "CacheExporter",
    "ConfluenceConfigError",
    "ConfluenceError",
    "ConfluenceExporter",
    "ExportRouter",
    "Exporter",
    "ExporterError",
]
