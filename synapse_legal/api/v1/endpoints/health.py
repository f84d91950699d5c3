"""Health check API endpoints."""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from synapse_legal.api.dependencies import get_context
from synapse_legal.core.context import AppContext

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Health check status")
    version: str = Field(..., description="Running application version")
    service: str = Field(..., description="Service name")
    kv_store: Dict[str, Any] = Field(..., description="Key-value backend health")
    database: Optional[Dict[str, Any]] = Field(None, description="Database health, SQL backend only")


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Health check endpoint",
    description="Check if the service is running and its storage is reachable",
    operation_id="get_service_health_status",
)
async def health_check(context: Annotated[AppContext, Depends(get_context)]) -> HealthCheckResponse:
    kv_health = await context.kv_store.health_check()
    db_health = await context.db_client.health_check() if context.db_client else None

    healthy = kv_health["status"] == "healthy" and (db_health is None or db_health["status"] == "healthy")
    return HealthCheckResponse(
        status="healthy" if healthy else "degraded",
        version=context.settings.app_version,
        service=context.settings.app_name,
        kv_store=kv_health,
        database=db_health,
    )
