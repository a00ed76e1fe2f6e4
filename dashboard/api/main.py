"""
SDR Pulse — API Server
========================

Live API layer computing sales-development metrics from Supabase tables,
with WebSocket push when the underlying data changes.

Route groups:
  /api/health              - Health check
  /api/metrics/*           - Period KPIs, funnel, leaderboard, dashboard bundle
  /api/campaigns/*         - Per-client campaign pacing
  /api/activities/*        - Activity monitor + drill-down
  /api/meetings/*          - Meeting status / notes commands
  /api/webhooks/*          - Database change notifications
  /ws/dashboard            - WebSocket live feed
"""

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scripts.lib.config import get_settings
from scripts.lib.errors import StoreError
from scripts.lib.logger import setup_logger

logger = setup_logger("api")

VERSION = "1.0.0"


# ─── Lifespan ─────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app):
    """Application startup and shutdown."""
    logger.info("Starting SDR Pulse...")

    settings = get_settings()
    logger.info("Business timezone: %s", settings.timezone)

    try:
        from scripts.lib.supabase_client import get_client
        get_client()
        logger.info("Supabase connected")
    except StoreError as e:
        logger.warning("Supabase not available: %s", e)

    logger.info("SDR Pulse ready")
    yield
    logger.info("Shutting down SDR Pulse...")


# ─── App Setup ────────────────────────────────────────────────

cors_origins = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:8001"
).split(",")

app = FastAPI(
    title="SDR Pulse",
    version=VERSION,
    description="Sales-development performance analytics: KPIs, funnel, leaderboard, "
                "campaign pacing and live activity monitoring",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Include Routers ──────────────────────────────────────────

from dashboard.api.routers.metrics import router as metrics_router
from dashboard.api.routers.campaigns import router as campaigns_router
from dashboard.api.routers.activities import router as activities_router
from dashboard.api.routers.meetings import router as meetings_router
from dashboard.api.routers.webhooks import router as webhooks_router

app.include_router(metrics_router)
app.include_router(campaigns_router)
app.include_router(activities_router)
app.include_router(meetings_router)
app.include_router(webhooks_router)


# ─── WebSocket ────────────────────────────────────────────────

from dashboard.api.websocket import websocket_endpoint, ws_manager

app.add_api_websocket_route("/ws/dashboard", websocket_endpoint)


# ─── Health ───────────────────────────────────────────────────

@app.get("/api/health", tags=["system"])
async def health():
    """Health check with service status."""
    supabase_ok = False
    try:
        from scripts.lib.supabase_client import get_client
        get_client()
        supabase_ok = True
    except StoreError:
        pass

    return {
        "status": "healthy",
        "service": "SDR Pulse",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "timezone": get_settings().timezone,
        "integrations": {
            "supabase": supabase_ok,
        },
        "websocket_connections": ws_manager.connection_count,
    }
