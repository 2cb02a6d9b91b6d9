# utopia_orchestration/core/backend.py
from utopia_orchestration.core.config import Settings
from utopia_orchestration.domain.ports import Adapter, AdapterConfig
from utopia_orchestration.services.docker_api import DockerAPI
from utopia_orchestration.services.docker_cli import DockerCLI
from utopia_orchestration.services.orchestration import Orchestration


def adapter_config(settings: Settings) -> AdapterConfig:
    return AdapterConfig(
        namespace=settings.NAMESPACE,
        cpus=settings.CPUS,
        memory=settings.MEMORY_MB,
        swap=settings.SWAP_MB,
    )


def build_adapter(settings: Settings) -> Adapter:
    config = adapter_config(settings)
    if settings.BACKEND == "api":
        return DockerAPI(
            base_url=settings.DOCKER_HOST,
            username=settings.REGISTRY_USERNAME,
            password=settings.REGISTRY_PASSWORD,
            email=settings.REGISTRY_EMAIL,
            config=config,
        )
    return DockerCLI(
        binary=settings.DOCKER_BINARY,
        username=settings.REGISTRY_USERNAME,
        password=settings.REGISTRY_PASSWORD,
        config=config,
    )


def build_orchestration(settings: Settings | None = None) -> Orchestration:
    return Orchestration(build_adapter(settings or Settings()))


_orchestration: Orchestration | None = None


def get_orchestration() -> Orchestration:
    """Process-wide facade, built from Settings on first use."""
    global _orchestration
    if _orchestration is None:
        _orchestration = build_orchestration()
    return _orchestration


def reset_orchestration() -> None:
    global _orchestration
    _orchestration = None
