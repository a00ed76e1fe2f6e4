"""
SDR Pulse — Entry Point
=========================

Run: python main.py
"""

import os

from scripts.lib.config import get_settings
from scripts.lib.logger import setup_logger

logger = setup_logger("sdr-pulse")

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    port = settings.dashboard_port

    logger.info("=" * 60)
    logger.info("  SDR PULSE — Sales Development Analytics")
    logger.info("=" * 60)
    logger.info(f"  Environment : {os.getenv('ENVIRONMENT', 'development')}")
    logger.info(f"  Server      : http://0.0.0.0:{port}")
    logger.info(f"  API Docs    : http://localhost:{port}/docs")
    logger.info(f"  WebSocket   : ws://localhost:{port}/ws/dashboard")
    logger.info(f"  Timezone    : {settings.timezone}")
    logger.info(f"  Debug       : {os.getenv('DEBUG', 'false')}")
    logger.info("=" * 60)

    uvicorn.run(
        "dashboard.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("DEBUG", "false").lower() == "true",
    )
