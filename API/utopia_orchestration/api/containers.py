from fastapi import APIRouter, Depends, Query, status
from typing import List

from utopia_orchestration.core.backend import get_orchestration
from utopia_orchestration.services.orchestration import Orchestration
from utopia_orchestration.schemas.container import (
    ContainerResponse,
    ContainerRunRequest,
    ContainerRunResponse,
    ExecRequest,
)


router = APIRouter(prefix="/containers", tags=["containers"])


@router.get("", response_model=List[ContainerResponse])
async def list_containers(
    name: str | None = Query(None, description="docker filter name=<value>"),
    status_filter: str | None = Query(None, alias="status", description="docker filter status=<value>"),
    label: str | None = Query(None, description="docker filter label=<key>[=<value>]"),
    orchestration: Orchestration = Depends(get_orchestration),
):
    filters = {
        key: value
        for key, value in (("name", name), ("status", status_filter), ("label", label))
        if value
    }
    containers = await orchestration.list(filters=filters or None)
    return [ContainerResponse(**c.to_dict()) for c in containers]


@router.post("", response_model=ContainerRunResponse, status_code=status.HTTP_201_CREATED)
async def run_container(
    payload: ContainerRunRequest,
    orchestration: Orchestration = Depends(get_orchestration),
):
    container_id = await orchestration.run(payload.to_spec())
    return ContainerRunResponse(id=container_id, name=payload.name)


@router.post("/{name}/exec", summary="Run a command inside a container")
async def exec_in_container(
    name: str,
    payload: ExecRequest,
    orchestration: Orchestration = Depends(get_orchestration),
):
    success = await orchestration.execute(
        name, payload.command, env=payload.env, timeout=payload.timeout
    )
    return {"name": name, "success": success}


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_container(
    name: str,
    force: bool = Query(False, description="Kill the container first if it is running"),
    orchestration: Orchestration = Depends(get_orchestration),
):
    await orchestration.remove(name, force=force)
