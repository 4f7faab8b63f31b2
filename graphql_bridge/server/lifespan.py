"""Application lifespan management - startup and shutdown sequences.

The engine is started by whoever builds the app (the GraphQL middleware
refuses an engine that has not started), so the lifespan only reports
readiness and stops the engine on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from starlette.applications import Starlette

from graphql_bridge.constants import SERVER_NAME, SERVER_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: Starlette) -> AsyncIterator[None]:
    """Log startup and stop the engine when the server shuts down."""
    app_s = app.state
    logger.info(
        "%s v%s ready. GraphQL endpoint: %s",
        SERVER_NAME,
        SERVER_VERSION,
        getattr(app_s, "graphql_path", "N/A"),
    )
    try:
        yield
    finally:
        engine = getattr(app_s, "engine", None)
        stop = getattr(engine, "stop", None)
        if callable(stop):
            logger.info("Stopping GraphQL engine...")
            stop()
        logger.info("%s shutdown sequence complete.", SERVER_NAME)
