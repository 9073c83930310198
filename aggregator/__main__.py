"""About Aggregator entry point.

Usage::

    python -m aggregator [--port 8080] [--label about=true] ...

Every flag can also be set through its environment variable; see
``python -m aggregator --help``.
"""

from __future__ import annotations

import logging
import sys

from aggregator.errors import AggregatorError

logger = logging.getLogger("aggregator")


def main(argv: list[str] | None = None) -> None:
    from aggregator.config import load_settings

    try:
        settings = load_settings(argv)
    except AggregatorError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn

    from aggregator.pipeline import Aggregator
    from aggregator.server import create_app

    try:
        aggregator = Aggregator.from_settings(settings)
    except AggregatorError as exc:
        logger.error("Could not create the aggregator: %s", exc)
        sys.exit(1)

    logger.info("Listening on [%s:%d]", settings.host, settings.port)
    uvicorn.run(create_app(aggregator), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
