# src/forum_stage/main.py
"""Main entry point for the Forum Stage application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forum_stage.api.v1 import posts_router
from forum_stage.core.settings import settings
from forum_stage.db.redis import close_redis_client, create_redis_client
from forum_stage.services.emailer import build_emailer
from forum_stage.services.hooks import PluginHooks
from forum_stage.services.tasks import TaskTracker

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Forum Stage API",
    description="Reply creation pipeline for threaded discussions",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Plugins register on app.state.hooks before startup
app.state.hooks = PluginHooks()
app.state.tasks = TaskTracker()

app.include_router(posts_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    app.state.redis = create_redis_client()
    app.state.emailer = build_emailer(settings)
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await app.state.tasks.drain()
    await app.state.emailer.close()
    await close_redis_client(app.state.redis)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("forum_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
