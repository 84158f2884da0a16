"""Main application entry point.

Runs FastAPI with the NiceGUI pages mounted on it (port 8000 by default).
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the UI on a FastAPI server.

    NiceGUI handles the pages, FastAPI the health check and docs.
    """
    import uvicorn
    from nicegui import ui

    from ragdesk.config import get_client_config
    from ragdesk.server import create_app
    from ragdesk.ui import chat_page, intake_page, knowledge_page  # noqa: F401 - Registers the pages

    app = create_app()

    ui.run_with(
        app,
        title="RAG Assistant",
        favicon="🤖",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "ragdesk-secret"),
    )

    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Chat UI available at http://localhost:{port}/")
    logger.info(f"Knowledge bases at http://localhost:{port}/knowledge")
    logger.info(f"Answers streamed from {get_client_config().api_base_url}")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
