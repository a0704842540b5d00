"""
FastAPI Server for the character manager
- Character store, importer and rules registry shared through app.state
- Rules index loaded in the background on startup
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from character.import_service import CharacterImporter
from config.logging_config import configure_logging
from config.settings import Settings, get_settings
from gamedata.services.rules_registry import RulesRegistry
from services.core.character_store import CharacterStore


def create_registry(settings: Settings) -> RulesRegistry:
    return RulesRegistry(
        base_url=settings.rules_base_url,
        timeout=settings.fetch_timeout,
        max_workers=settings.fetch_workers,
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CharacterStore] = None,
    registry: Optional[RulesRegistry] = None,
    setup_logging: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Settings to use (environment settings if omitted)
        store: Character store (one under CHARACTER_DATA_DIR if omitted)
        registry: Rules registry (one for RULES_BASE_URL if omitted)
        setup_logging: Install the loguru sinks

    Returns:
        Configured application
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(settings.log_level, settings.log_filter)

    store = store or CharacterStore(settings.character_data_dir)
    registry = registry or create_registry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("FastAPI server starting up...")
        if registry.index is None and settings.rules_base_url:
            app.state.index_task = asyncio.create_task(
                asyncio.to_thread(registry.load_index, settings.rules_index_path))
            logger.info("Rules index loading scheduled")

        yield

        # Shutdown
        logger.info("FastAPI server shutting down...")
        index_task = app.state.index_task
        if index_task is not None:
            done, _ = await asyncio.wait({index_task}, timeout=settings.fetch_timeout)
            if index_task in done:
                loaded = index_task.result()
                logger.info(f"Rules index load finished: loaded={loaded}")
            else:
                index_task.cancel()
                logger.warning("Rules index load still running at shutdown")
        registry.shutdown(wait=False)

    app = FastAPI(
        title="Character Manager API",
        description="Character storage, sharing and import",
        version="1.0.0",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.importer = CharacterImporter(store)
    app.state.index_task = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "detail": "An unexpected error occurred"}
        )

    from fastapi_routers import characters, system

    app.include_router(system.router, prefix="/api", tags=["system"])
    app.include_router(characters.router, prefix="/api", tags=["characters"])

    logger.info("FastAPI routers registered")
    return app


def main():
    """Main entry point for FastAPI server"""
    app = create_app()

    port = int(os.environ.get("PORT", "8000"))
    host = os.environ.get("HOST", "127.0.0.1")
    debug = os.environ.get("DEBUG", "False").lower() == "true"

    logger.info(f"Server configuration: {host}:{port} (debug={debug})")

    config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_level="info" if debug else "warning",
        reload=False
    )
    server = uvicorn.Server(config)

    try:
        server.run()
    except Exception as e:
        logger.error(f"Failed to start FastAPI server: {e}")
        raise


if __name__ == "__main__":
    main()
