"""System health endpoint."""

import logging
import os
import time
from typing import Optional

import psutil
from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/system",
    tags=["System"]
)


class SystemHealth(BaseModel):
    """Model for system health data."""
    status: str
    uptime: float
    storage_backend: str
    cpu_usage: float
    memory_usage: float
    memory_rss: int
    seeded: Optional[bool] = None


@router.get("/health")
async def get_system_health(request: Request) -> SystemHealth:
    """Get system health status.

    Returns:
        SystemHealth with process uptime and resource usage
    """
    try:
        state = request.app.state
        process = psutil.Process(os.getpid())
        cpu_percent = process.cpu_percent(interval=None)
        memory = process.memory_info()

        return SystemHealth(
            status="healthy" if cpu_percent < 80 else "degraded",
            uptime=time.monotonic() - state.started_at,
            storage_backend=state.storage.backend_name,
            cpu_usage=cpu_percent,
            memory_usage=process.memory_percent(),
            memory_rss=memory.rss,
            seeded=getattr(state, 'seeded', None)
        )
    except Exception as e:
        logger.exception(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error checking system health"
        )


__all__ = ['router', 'SystemHealth']
