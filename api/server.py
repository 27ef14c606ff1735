"""
Facility OS API Server

Run with:
    uvicorn api.server:app --port 8420
    python -m cli.main serve
"""

import logging
import os
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.occupancy_router import occupancy_router
from api.response_models import HealthResponse
from facility import __version__
from facility import db as db_module
from facility.observability import CorrelationIdMiddleware

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Facility OS API",
    description="Treatment scheduling and facility occupancy",
    version=__version__,
)

# CORS middleware - configurable via CORS_ORIGINS env var
# Dev default: allow all origins; Production: set CORS_ORIGINS to comma-separated list
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(occupancy_router, prefix="/api/v1")


@app.on_event("startup")
async def ensure_schema_on_startup():
    """Create tables on first start."""
    try:
        with db_module.get_connection() as conn:
            db_module.init_schema(conn)
        logger.info("=== Facility OS Startup === DB path: %s", db_module.get_db_path())
    except Exception as e:
        logger.warning(f"DB startup check failed: {e}")


@app.get("/health", response_model=HealthResponse)
def health():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
