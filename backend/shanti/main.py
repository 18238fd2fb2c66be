# shanti schedule backend api
# fastapi app with async mongodb, jwt identity, and live sse analytics

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shanti.config import settings
from shanti.dependencies import get_current_owner
from shanti.services.broadcaster import SubscriberRegistry
from shanti.services.db import db
from shanti.routers import analytics, schedules

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb. shutdown: close open streams and the connection."""
    logger.info("Starting Shanti backend...")
    await db.connect()
    logger.info("Shanti backend ready")
    yield
    logger.info("Shutting down Shanti backend...")
    app.state.registry.close_all()
    await db.close()


app = FastAPI(
    title="Shanti Schedule API",
    description="Backend API for Shanti Schedule: therapy session booking and live clinic analytics",
    version="0.1.0",
    lifespan=lifespan,
)

# one registry per process, handed to handlers through get_registry
app.state.registry = SubscriberRegistry()

# cors — allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# register routers
app.include_router(schedules.router)
app.include_router(analytics.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {
        "status": "ok",
        "service": "shanti-api",
        "uptime": round(time.monotonic() - STARTED_AT, 1),
    }


@app.get("/api/me")
async def whoami(owner_id: str = Depends(get_current_owner)):
    """echo the caller identity resolved from the bearer token"""
    return {"userId": owner_id}
