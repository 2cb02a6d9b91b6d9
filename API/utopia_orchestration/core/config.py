from typing import Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict, NonNegativeInt


class Settings(BaseSettings):
    BACKEND: Literal["cli", "api"] = Field(
        default="cli",
        description="Which backend drives docker: the binary or the Engine HTTP API"
    )

    DOCKER_BINARY: str = "docker"

    DOCKER_HOST: Optional[str] = Field(
        default=None,
        description="Engine API base URL, e.g. unix:///var/run/docker.sock. Falls back to the environment."
    )

    NAMESPACE: str = "utopia"
    CPUS: NonNegativeInt = 0
    MEMORY_MB: NonNegativeInt = 0
    SWAP_MB: NonNegativeInt = 0

    REGISTRY_USERNAME: Optional[str] = None
    REGISTRY_PASSWORD: Optional[str] = None
    REGISTRY_EMAIL: Optional[str] = None

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = ConfigDict(
        env_file=".env"
    )
