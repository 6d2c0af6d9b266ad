import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from api import router as wiki_router
from storage import GitBackend, WikiStore

logger = logging.getLogger(__name__)


def build_store() -> WikiStore:
    """
    Open the configured wiki repository.

    Raises:
        ValueError: If WIKI_REPO_PATH is not set
        WikiStoreException: If the repository cannot be opened
    """
    if not config.WIKI_REPO_PATH:
        raise ValueError("WIKI_REPO_PATH environment variable is required. See .env.example")

    backend = GitBackend(config.WIKI_REPO_PATH, timeout=config.GIT_TIMEOUT)
    return WikiStore(
        backend,
        index_page=config.WIKI_INDEX_PAGE,
        proxy_path=config.WIKI_PROXY_PATH,
        per_page=config.PAGES_PER_LIST,
        timeout=config.GIT_TIMEOUT,
    )


def create_app(store: Optional[WikiStore] = None) -> FastAPI:
    """Create the FastAPI app around one shared WikiStore."""
    app = FastAPI(
        title="Git Wiki",
        description="Read-only API for a wiki stored in a git repository",
        version="1.0.0"
    )
    app.state.store = store or build_store()

    # Add CORS middleware so pages can be embedded from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Log what the wiki repository contains"""
        try:
            pages = app.state.store.pages()
            await pages.fetch(1)
            logger.info(
                f"Wiki repository loaded from {app.state.store.backend.root} "
                f"({pages.total_pages} listing page(s))"
            )
        except Exception as e:
            logger.error(f"Error loading wiki repository: {e}")

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "git-wiki", "storage": "git"}

    app.include_router(wiki_router)
    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    # Run the server
    uvicorn.run(
        create_app(),
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower()
    )
