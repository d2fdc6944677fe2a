#!/usr/bin/env python3
"""
Main entry point for the short link service.

Concurrency: The server handles multiple connections simultaneously via async I/O
(FastAPI + asyncpg connection pool + redis.asyncio). Set WORKERS > 1 for
multi-process scaling across CPU cores (each worker has its own DB pool and sweeper).

Usage:
    python app.py

Environment variables:
    DATABASE_URL - PostgreSQL connection URL (memory:// for an in-process store)
    DATABASE_CREATE_TABLES - Set to true to create the schema on first connection
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    OWNER_HEADER - Header carrying the caller's identity (default X-User-Id)
    EXPIRED_SWEEP_INTERVAL_SECONDS - Seconds between expiry sweeps, 0 disables
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from shortlinks.database import create_store
from shortlinks.database.cache import RedisCache
from shortlinks.service import LinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.sweeper import ExpiredLinkSweeper
from shortlinks.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short link service...")

    store = create_store(
        config.database_url,
        pool_max_size=config.database_pool_max_size,
        timeout_seconds=config.database_timeout_seconds,
        create_tables=config.database_create_tables,
        logger=logger,
    )

    # Initialize cache (optional)
    cache = None
    if config.redis_url:
        logger.info("Connecting to Redis")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")

    generator = ShortCodeGenerator(default_length=config.short_code_length)
    service = LinkService(
        db=store,
        cache=cache,
        short_code_generator=generator,
        logger=logger,
        enable_custom_aliases=config.enable_custom_aliases,
        max_collision_retries=config.max_collision_retries,
        max_url_length=config.max_url_length,
    )

    sweeper = ExpiredLinkSweeper(
        service,
        interval_seconds=config.expired_sweep_interval_seconds,
        logger=logger,
    )
    sweeper.start()

    app.state.service = service
    app.state.sweeper = sweeper

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down short link service...")

    await sweeper.stop()
    await service.close()

    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short Link Service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    app = create_app(
        service_instance=None,  # Set in lifespan
        config=config,
        lifespan=lifespan,
    )
    app.state.logger = logger

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
