import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import close_db, get_db, init_db
from app.realtime.feed import ChangeFeed, get_change_feed
from app.realtime.session import RECONNECT_DELAY_SECONDS
from app.routers.applications import rooms_router
from app.routers.applications import router as applications_router
from app.routers.conversations import router as conversations_router
from app.routers.messages import router as messages_router

load_dotenv()

ENV = os.getenv("ENV", "")
COMMIT_HASH = os.getenv("COMMIT_HASH", "")
if ENV == "prod" and not COMMIT_HASH:
    raise ValueError("COMMIT_HASH is required for production environments")

APP_ADDR = os.getenv("HOST", "0.0.0.0")
APP_PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database on startup and release its pool on shutdown."""
    await init_db()
    logger.info(
        "Homeshare service started (env=%s, live reconnect after %ss)",
        ENV or "local",
        RECONNECT_DELAY_SECONDS,
    )
    yield
    await close_db()
    logger.info("Homeshare service stopped")


app = FastAPI(
    title="Homeshare Service",
    description="Room applications, rentals and host/student messaging",
    version=COMMIT_HASH or "dev",
    lifespan=lifespan,
)

# Student applications and the host's review of them
app.include_router(
    applications_router, prefix="/api/applications", tags=["applications"]
)
app.include_router(rooms_router, prefix="/api/rooms", tags=["applications"])

# Host/student messaging, including the live websocket
app.include_router(
    conversations_router, prefix="/api/conversations", tags=["conversations"]
)
app.include_router(messages_router, prefix="/api/messages", tags=["messages"])


@app.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Dict[str, Any]:
    """Report database reachability and how many conversations are live."""
    try:
        database_ok = (await db.execute(text("SELECT 1"))).scalar() == 1
    except (SQLAlchemyError, OSError):
        logger.exception("Health check could not reach the database")
        database_ok = False

    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "disconnected",
        "live_conversations": feed.channel_count,
        "environment": ENV,
        "version": COMMIT_HASH or "dev",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=APP_ADDR, port=APP_PORT)
