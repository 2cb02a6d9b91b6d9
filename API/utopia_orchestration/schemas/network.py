from pydantic import BaseModel, Field


class NetworkCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    internal: bool = False


class NetworkAttachRequest(BaseModel):
    container: str = Field(..., min_length=1)
    force: bool = Field(False, description="Only used when disconnecting")


class NetworkResponse(BaseModel):
    id: str
    name: str
    driver: str
    scope: str
