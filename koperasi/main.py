from contextlib import asynccontextmanager

from fastapi import FastAPI
from koperasi.api import payroll
from koperasi.core.config import settings
from koperasi.services.scheduler import start_scheduler, stop_scheduler, get_scheduler_status
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Get logger for this module
logger = logging.getLogger(__name__)
logger.info("Starting Koperasi Payroll API")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    else:
        logger.info("Payroll scheduler disabled by configuration")
    yield
    stop_scheduler()


app = FastAPI(
    title="Koperasi Payroll API",
    description="Monthly payroll settlement for the cooperative",
    version=VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Include routers
app.include_router(payroll.router)


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Koperasi Payroll API", "version": VERSION}


@app.get("/api/health")
def health_check():
    """Health check endpoint: checks API, database and scheduler."""
    from koperasi.db import base
    from sqlalchemy import text
    from datetime import datetime, timezone

    db_status = "unreachable"
    db_error = None
    db = base.SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_error = str(e)
    finally:
        db.close()

    status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": status,
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "ok",
            "database": db_status,
            "scheduler": get_scheduler_status(),
        },
        **({"database_error": db_error} if db_error else {})
    }
