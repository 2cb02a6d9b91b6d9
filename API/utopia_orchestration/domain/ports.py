from dataclasses import dataclass, replace
from typing import List, Mapping, Protocol, Sequence, runtime_checkable

from utopia_orchestration.domain.container import Container, RunSpec
from utopia_orchestration.domain.network import Network
from utopia_orchestration.domain.stats import Stats


@dataclass(frozen=True)
class AdapterConfig:
    """
    Resource limits and namespace applied by `run`.
    A value of 0 means "not specified" and the limit is left to the engine.
    """
    namespace: str = "utopia"
    cpus: int = 0
    memory: int = 0  # MB
    swap: int = 0  # MB

    def __post_init__(self):
        for name in ("cpus", "memory", "swap"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if not self.namespace:
            raise ValueError("namespace must not be empty")

    def with_namespace(self, namespace: str) -> "AdapterConfig":
        return replace(self, namespace=namespace)

    def with_cpus(self, cpus: int) -> "AdapterConfig":
        return replace(self, cpus=cpus)

    def with_memory(self, memory: int) -> "AdapterConfig":
        return replace(self, memory=memory)

    def with_swap(self, swap: int) -> "AdapterConfig":
        return replace(self, swap=swap)


@runtime_checkable
class Adapter(Protocol):
    config: AdapterConfig

    # -------------------------------
    # Networks
    # -------------------------------
    async def create_network(self, name: str, internal: bool = False) -> bool:
        """Create a network. Internal networks have no external connectivity."""
        ...

    async def remove_network(self, name: str) -> bool:
        ...

    async def network_connect(self, container: str, network: str) -> bool:
        ...

    async def network_disconnect(
        self, container: str, network: str, force: bool = False
    ) -> bool:
        ...

    async def list_networks(self) -> List[Network]:
        ...

    # -------------------------------
    # Containers
    # -------------------------------
    async def get_stats(
        self,
        container: str | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> List[Stats]:
        """Usage stats of one container, or of every container matching filters."""
        ...

    async def pull(self, image: str) -> bool:
        """Pull an image. Returns False instead of raising when the pull fails."""
        ...

    async def list(self, filters: Mapping[str, str] | None = None) -> List[Container]:
        ...

    async def run(self, spec: RunSpec) -> str:
        """Create and start a container. Returns the container id."""
        ...

    async def execute(
        self,
        name: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        timeout: int = -1,
    ) -> bool:
        """
        Run a command inside a container. timeout is in seconds, -1 disables it.
        Raises ExecutionTimeoutError when the timeout elapses.
        """
        ...

    async def remove(self, name: str, force: bool = False) -> bool:
        ...

    # -------------------------------
    # Configuration
    # -------------------------------
    def with_config(self, config: AdapterConfig) -> "Adapter":
        """Return a copy of this adapter using config. The backend connection is shared."""
        ...

    def with_namespace(self, namespace: str) -> "Adapter":
        return self.with_config(self.config.with_namespace(namespace))

    def with_cpus(self, cpus: int) -> "Adapter":
        return self.with_config(self.config.with_cpus(cpus))

    def with_memory(self, memory: int) -> "Adapter":
        return self.with_config(self.config.with_memory(memory))

    def with_swap(self, swap: int) -> "Adapter":
        return self.with_config(self.config.with_swap(swap))
