"""
Health Check Routes

Liveness for load balancers plus a detailed view for operators.
"""

import os
import sys
import time
from datetime import datetime, timezone
from typing import Dict, Any

import psutil
from fastapi import APIRouter, Depends

from openwrite.config.settings import APP_VERSION
from openwrite.database import Database, get_database_instance
from openwrite.security.session import verify_session

router = APIRouter(prefix="/api", tags=["health"])

# Track application start time
START_TIME = time.time()


def get_database_health(db: Database) -> Dict[str, Any]:
    """Check database connectivity and, for SQLite, the file size."""
    healthy = db.ping()
    info = {"status": "healthy" if healthy else "unhealthy", "type": db.db_type}

    if db.db_type == 'sqlite':
        db_path = db.engine.url.database
        if db_path and db_path != ':memory:' and os.path.exists(db_path):
            info["sizeMb"] = round(os.path.getsize(db_path) / (1024 * 1024), 2)
    return info


def get_memory_stats() -> Dict[str, Any]:
    """Get process memory statistics."""
    try:
        process = psutil.Process()
        mem_info = process.memory_info()
        return {
            "rssMb": round(mem_info.rss / (1024 * 1024), 2),
            "vmsMb": round(mem_info.vms / (1024 * 1024), 2),
            "percent": round(process.memory_percent(), 2),
            "numThreads": process.num_threads()
        }
    except psutil.Error as e:
        return {"error": str(e)}


@router.get("/health")
async def health_check(db: Database = Depends(get_database_instance)):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": APP_VERSION,
        "database": "healthy" if db.ping() else "unhealthy"
    }


@router.get("/health/detailed")
async def detailed_health_check(
    db: Database = Depends(get_database_instance),
    user: Dict = Depends(verify_session)
):
    """Extended health information; requires a signed-in user."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": APP_VERSION,
        "uptimeSeconds": round(time.time() - START_TIME, 1),
        "pythonVersion": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "database": get_database_health(db),
        "memory": get_memory_stats()
    }
