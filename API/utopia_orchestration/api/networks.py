from fastapi import APIRouter, Depends, status
from typing import List

from utopia_orchestration.core.backend import get_orchestration
from utopia_orchestration.services.orchestration import Orchestration
from utopia_orchestration.schemas.network import (
    NetworkAttachRequest,
    NetworkCreateRequest,
    NetworkResponse,
)


router = APIRouter(prefix="/networks", tags=["networks"])


@router.get("", response_model=List[NetworkResponse])
async def list_networks(orchestration: Orchestration = Depends(get_orchestration)):
    networks = await orchestration.list_networks()
    return [NetworkResponse(**n.to_dict()) for n in networks]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_network(
    payload: NetworkCreateRequest,
    orchestration: Orchestration = Depends(get_orchestration),
):
    await orchestration.create_network(payload.name, internal=payload.internal)
    return {"name": payload.name, "internal": payload.internal}


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_network(name: str, orchestration: Orchestration = Depends(get_orchestration)):
    await orchestration.remove_network(name)


# ---------------------------
# Attach / detach containers
# ---------------------------
@router.post("/{name}/connect")
async def connect_container(
    name: str,
    payload: NetworkAttachRequest,
    orchestration: Orchestration = Depends(get_orchestration),
):
    await orchestration.network_connect(payload.container, name)
    return {"network": name, "container": payload.container, "connected": True}


@router.post("/{name}/disconnect")
async def disconnect_container(
    name: str,
    payload: NetworkAttachRequest,
    orchestration: Orchestration = Depends(get_orchestration),
):
    await orchestration.network_disconnect(payload.container, name, force=payload.force)
    return {"network": name, "container": payload.container, "connected": False}
