"""FastAPI application factory.

Hosts the NiceGUI pages and a health endpoint. All business logic lives in
the remote backend, so the app only manages the shared API client's
lifecycle.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ragdesk import __version__
from ragdesk.api.client import close_api_client
from ragdesk.config import get_client_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info(f"Starting ragdesk against {get_client_config().api_base_url}")
    yield
    await close_api_client()
    logger.info("Shutting down ragdesk...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="ragdesk",
        description=(
            "Web front-end for a retrieval-augmented-generation chat service. "
            "Streams answers from the remote RAG backend and manages its "
            "knowledge bases and documents."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "ragdesk", "backend": get_client_config().api_base_url}

    return application
