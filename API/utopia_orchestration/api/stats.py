from fastapi import APIRouter, Depends, Query
from typing import List

from utopia_orchestration.core.backend import get_orchestration
from utopia_orchestration.services.orchestration import Orchestration
from utopia_orchestration.schemas.stats import StatsResponse


router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=List[StatsResponse])
async def get_stats(
    container: str | None = Query(None, description="Container id or name; all containers when omitted"),
    label: str | None = Query(None, description="docker filter label=<key>[=<value>]"),
    orchestration: Orchestration = Depends(get_orchestration),
):
    filters = {"label": label} if label else None
    stats = await orchestration.get_stats(container=container, filters=filters)
    return [
        StatsResponse(
            container_id=s.container_id,
            container_name=s.container_name,
            cpu_usage=s.cpu_usage,
            memory_usage=s.memory_usage,
            disk_io=dict(s.disk_io),
            memory_io=dict(s.memory_io),
            network_io=dict(s.network_io),
            invalid_fields=sorted(s.invalid_fields),
        )
        for s in stats
    ]
