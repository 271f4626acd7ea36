"""
Main entry point for the shortlink service.

The store and cache are built from configuration inside the FastAPI lifespan,
connected on startup and closed on shutdown. Set WORKERS > 1 for
multi-process scaling (each worker owns its own pool and cache client).

Usage:
    shortlink
    python -m shortlink.app

Environment variables:
    DATABASE_URL - PostgreSQL URL, or memory:// for an in-process store
    DATABASE_CREATE_TABLES - Create the schema on startup
    REDIS_URL - Redis connection URL, or memory:// (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import Config, load_config
from .common.logging_config import setup_logging
from .database import InMemoryCache, InMemoryURLStore, RedisCache, URLStorePostgres
from .service import URLShortenerService
from .shortcode import ShortCodeGenerator
from .web_app import create_app


def build_service(config: Config, logger: Optional[logging.Logger] = None) -> URLShortenerService:
    """Construct the store, cache and services described by ``config``.

    Nothing is connected yet; call ``URLShortenerService.connect``.
    """
    logger = logger or logging.getLogger(__name__)

    if config.uses_memory_store:
        logger.warning("Using in-memory store; mappings are lost on restart")
        store = InMemoryURLStore(logger=logger)
    else:
        store = URLStorePostgres(
            db_config=config.database_url,
            pool_max_size=config.database_pool_max_size,
            create_tables=config.database_create_tables,
            logger=logger,
        )

    if config.uses_memory_cache:
        cache = InMemoryCache()
    elif config.redis_url:
        cache = RedisCache(redis_url=config.redis_url, logger=logger)
    else:
        logger.info("Redis caching disabled")
        cache = None

    return URLShortenerService(
        store=store,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        logger=logger,
        max_attempts=config.max_collision_retries,
        store_timeout=config.store_timeout_seconds,
        cache_timeout=config.cache_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting shortlink service...")

    service = build_service(config, logger)
    await service.connect()
    app.state.service = service

    logger.info("Service started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down shortlink service...")
        await service.close()
        logger.info("Service stopped")


def create_asgi_app() -> FastAPI:
    """ASGI factory: config from the environment, store/cache built in the lifespan."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    app = create_app(service_instance=None, config=config, logger=logger)
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    app = create_asgi_app()
    config = app.state.config
    logger = app.state.logger

    logger.info("shortlink service")
    logger.debug(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    if config.workers > 1:
        # Each worker process calls the factory and builds its own pool
        logger.info(f"Starting {config.workers} workers on {config.host}:{config.port}")
        uvicorn.run(
            "shortlink.app:create_asgi_app",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=False,
        )
        return

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
            access_log=False,
        )
    )

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except OSError as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
