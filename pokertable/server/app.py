"""
FastAPI Application Entry Point for pokertable.

This module creates and configures the FastAPI application with:
- HTTP routes for table management and actions
- WebSocket endpoint for real-time state replication
- CORS middleware for development
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pokertable import __version__
from pokertable.server.routes import router
from pokertable.server.websocket import TableManager, websocket_endpoint

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Each app gets its own TableManager, so tables never leak between app
    instances.

    Returns:
        Configured FastAPI application instance
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("pokertable server starting up...")
        yield
        await app.state.manager.shutdown()
        logger.info("pokertable server shutting down...")

    app = FastAPI(
        title="pokertable",
        description="Multiplayer Texas Hold'em table engine with WebSocket replication",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.manager = TableManager()

    # CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include HTTP routes
    app.include_router(router)

    # WebSocket endpoint
    app.websocket("/ws/{table_id}")(websocket_endpoint)

    return app


# Create the application instance
app = create_app()
