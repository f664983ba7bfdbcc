"""Batchup Backend Application.

Entry point for the batchup planning service. The service resolves where
each file of a batch upload would be sent, using either a static chat or a
per-file routing expression, without performing the upload.

Modules:
    - upload: upload iterator, thumbnail validation, plan endpoint
    - routing: routing expressions and the static/expression policy
    - peers: peer manager interface and in-memory peer directory
    - media: content-type sniffing
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from batchup.config import get_config
from batchup.peers.manager import DirectoryPeerManager, set_peer_manager
from batchup.upload.router import router as upload_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Pillow logs every plugin it tries while identifying a file.
logging.getLogger("PIL").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    set_peer_manager(DirectoryPeerManager.from_settings(config.directory))

    yield  # Application runs here

    # Shutdown
    set_peer_manager(None)
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Batchup API",
    description="Destination routing and dry-run planning for batch file uploads",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(upload_router)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}
