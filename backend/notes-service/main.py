"""Entry point of the Notes Service.

Builds the FastAPI application and mounts the note, group, feed, user and
health routers.
"""

import logging
from contextlib import asynccontextmanager

from application.rest.routers import (
    router_feed,
    router_groups,
    router_health,
    router_notes,
    router_users,
)
from fastapi import FastAPI
from utils.dependencies import init_db, note_lock_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(
        f"Notes service started with {'Redis' if note_lock_manager.distributed else 'in-process'} note locks"
    )
    yield
    await note_lock_manager.close()


def create_app() -> FastAPI:
    """Create the FastAPI application with every router mounted.

    Returns:
        FastAPI: The configured application.
    """
    app = FastAPI(
        title="SharedNotes Notes Service",
        description="Notes, groups and feeds for SharedNotes",
        version="2.0.0",
        lifespan=lifespan,
    )
    app.include_router(router_health.router, tags=["health"])
    app.include_router(router_notes.router, tags=["notes"])
    app.include_router(router_groups.router, tags=["groups"])
    app.include_router(router_feed.router, tags=["feed"])
    app.include_router(router_users.router, tags=["users"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
