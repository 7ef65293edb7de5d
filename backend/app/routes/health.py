"""
Userbase Backend - Health Check and Index Routes
=================================================

What:  GET /api/health for monitoring probes and GET / as a small endpoint index.
Why:   Load balancers and container runtimes need a cheap "is it up?" check.
How:   Reports the service name, version, and timestamp in the standard
       envelope, plus a lightweight database probe (SELECT 1).

Health Check Philosophy:
    The endpoint always answers 200 while the process is serving requests.
    Database reachability is reported in `data.database` so monitoring can
    alert on it without the probe itself flapping the instance out of rotation.
"""

import logging
import time

from fastapi import APIRouter, Depends

from app.config import settings
from app.database import Database, get_database
from app.schemas.envelope import MessageEnvelope
from app.schemas.health import HealthData, HealthEnvelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/api/health",
    response_model=HealthEnvelope,
    summary="Service health check",
)
async def health_check(database: Database = Depends(get_database)) -> HealthEnvelope:
    db_status = "connected"
    try:
        await database.ping()
    except Exception as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthEnvelope(
        message=f"{settings.app_name} is running",
        data=HealthData(
            name=settings.app_name,
            environment=settings.environment,
            database=db_status,
            uptime_seconds=round(time.time() - _start_time, 2),
        ),
    )


@router.get(
    "/",
    response_model=MessageEnvelope,
    summary="Endpoint index",
    include_in_schema=False,
)
async def index() -> MessageEnvelope:
    return MessageEnvelope(
        message=f"{settings.app_name} is running",
        data={
            "endpoints": {
                "health": "/api/health",
                "docs": "/docs",
                "users": {
                    "getAll": "GET /api/users?page=1&limit=10",
                    "getOne": "GET /api/users/:id",
                    "create": "POST /api/users",
                    "update": "PUT /api/users/:id",
                    "delete": "DELETE /api/users/:id",
                },
            },
        },
    )
