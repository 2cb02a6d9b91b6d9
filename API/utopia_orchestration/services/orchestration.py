from typing import List, Mapping, Sequence

from utopia_orchestration.domain.container import Container, RunSpec
from utopia_orchestration.domain.network import Network
from utopia_orchestration.domain.ports import Adapter
from utopia_orchestration.domain.stats import Stats


class Orchestration:
    """Backend-agnostic entry point. Every call is forwarded to the adapter as is."""

    def __init__(self, adapter: Adapter):
        self.adapter = adapter

    # ------------------------------- Networks -------------------------------
    async def create_network(self, name: str, internal: bool = False) -> bool:
        return await self.adapter.create_network(name, internal=internal)

    async def remove_network(self, name: str) -> bool:
        return await self.adapter.remove_network(name)

    async def network_connect(self, container: str, network: str) -> bool:
        return await self.adapter.network_connect(container, network)

    async def network_disconnect(self, container: str, network: str, force: bool = False) -> bool:
        return await self.adapter.network_disconnect(container, network, force=force)

    async def list_networks(self) -> List[Network]:
        return await self.adapter.list_networks()

    # ------------------------------- Containers -------------------------------
    async def get_stats(
        self,
        container: str | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> List[Stats]:
        return await self.adapter.get_stats(container=container, filters=filters)

    async def pull(self, image: str) -> bool:
        return await self.adapter.pull(image)

    async def list(self, filters: Mapping[str, str] | None = None) -> List[Container]:
        return await self.adapter.list(filters=filters)

    async def run(self, spec: RunSpec) -> str:
        return await self.adapter.run(spec)

    async def execute(
        self,
        name: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        timeout: int = -1,
    ) -> bool:
        return await self.adapter.execute(name, command, env=env, timeout=timeout)

    async def remove(self, name: str, force: bool = False) -> bool:
        return await self.adapter.remove(name, force=force)

    # ------------------------------- Configuration -------------------------------
    def with_namespace(self, namespace: str) -> "Orchestration":
        return Orchestration(self.adapter.with_namespace(namespace))

    def with_cpus(self, cpus: int) -> "Orchestration":
        return Orchestration(self.adapter.with_cpus(cpus))

    def with_memory(self, memory: int) -> "Orchestration":
        return Orchestration(self.adapter.with_memory(memory))

    def with_swap(self, swap: int) -> "Orchestration":
        return Orchestration(self.adapter.with_swap(swap))
