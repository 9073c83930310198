"""About Aggregator — HTTP front end.

Exposes:
  GET  /__/about   — cached documents (JSON with ``Accept: application/json``,
                     HTML table otherwise)
  POST /reload     — trigger a background discovery scan
  GET  /health     — liveness check

Start with::

    python -m aggregator
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from aggregator import __version__
from aggregator.pipeline import Aggregator

logger = logging.getLogger(__name__)


def create_app(aggregator: Aggregator, manage_lifecycle: bool = True) -> FastAPI:
    """Build the FastAPI app around *aggregator*.

    With *manage_lifecycle* the pipeline is started and stopped with the app.
    """

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if manage_lifecycle:
            await aggregator.start()
        try:
            yield
        finally:
            if manage_lifecycle:
                await aggregator.stop()

    app = FastAPI(title="About Aggregator", version=__version__, lifespan=lifespan)

    @app.get("/__/about")
    async def about(request: Request):
        if request.headers.get("accept", "") == "application/json":
            return JSONResponse(aggregator.cache.render_json())
        return HTMLResponse(aggregator.cache.render_html())

    @app.post("/reload")
    async def reload():
        aggregator.reload()
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
