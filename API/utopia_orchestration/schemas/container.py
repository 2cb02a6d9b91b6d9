from pydantic import BaseModel, Field
from typing import Dict, List

from utopia_orchestration.domain.container import RunSpec


class ContainerRunRequest(BaseModel):
    image: str = Field(..., description="Docker image name, e.g. nginx:latest")
    name: str = Field(..., min_length=1)
    command: List[str] = Field(default_factory=list)
    entrypoint: str = ""
    workdir: str = ""
    volumes: List[str] = Field(default_factory=list, description="host:container[:mode] binds")
    env: Dict[str, str] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)
    hostname: str = ""
    network: str = ""
    remove: bool = False
    mount_folder: str = Field("", description="Host folder bound to /tmp in the container")

    def to_spec(self) -> RunSpec:
        return RunSpec(
            image=self.image,
            name=self.name,
            command=tuple(self.command),
            entrypoint=self.entrypoint,
            workdir=self.workdir,
            volumes=tuple(self.volumes),
            env=dict(self.env),
            labels=dict(self.labels),
            hostname=self.hostname,
            network=self.network,
            remove=self.remove,
            mount_folder=self.mount_folder,
        )


class ContainerRunResponse(BaseModel):
    id: str
    name: str


class ContainerResponse(BaseModel):
    id: str
    name: str
    status: str
    labels: Dict[str, str]


class ExecRequest(BaseModel):
    command: List[str] = Field(..., min_length=1)
    env: Dict[str, str] = Field(default_factory=dict)
    timeout: int = Field(-1, description="Seconds, -1 for no timeout")

    class Config:
        json_schema_extra = {
            "example": {
                "command": ["sh", "-c", "echo hello"],
                "env": {"GREETING": "hello"},
                "timeout": 30
            }
        }
