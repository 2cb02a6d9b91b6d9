# tests/test_orchestration.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from utopia_orchestration.core.backend import adapter_config, build_adapter
from utopia_orchestration.core.config import Settings
from utopia_orchestration.domain.container import RunSpec
from utopia_orchestration.domain.ports import AdapterConfig
from utopia_orchestration.services.docker_api import DockerAPI
from utopia_orchestration.services.docker_cli import DockerCLI
from utopia_orchestration.services.orchestration import Orchestration


@pytest.mark.asyncio
async def test_orchestration_forwards_every_call():
    adapter = AsyncMock()
    orchestration = Orchestration(adapter)
    spec = RunSpec(image="alpine", name="web")

    adapter.run = AsyncMock(return_value="abc")
    adapter.list = AsyncMock(return_value=[])

    assert await orchestration.run(spec) == "abc"
    assert await orchestration.list(filters={"name": "web"}) == []
    await orchestration.execute("web", ["ls"], env={"A": "1"}, timeout=5)
    await orchestration.remove("web", force=True)
    await orchestration.pull("alpine")
    await orchestration.get_stats(container="web")
    await orchestration.create_network("backend", internal=True)
    await orchestration.remove_network("backend")
    await orchestration.network_connect("web", "backend")
    await orchestration.network_disconnect("web", "backend", force=True)
    await orchestration.list_networks()

    adapter.run.assert_awaited_once_with(spec)
    adapter.list.assert_awaited_once_with(filters={"name": "web"})
    adapter.execute.assert_awaited_once_with("web", ["ls"], env={"A": "1"}, timeout=5)
    adapter.remove.assert_awaited_once_with("web", force=True)
    adapter.pull.assert_awaited_once_with("alpine")
    adapter.get_stats.assert_awaited_once_with(container="web", filters=None)
    adapter.create_network.assert_awaited_once_with("backend", internal=True)
    adapter.remove_network.assert_awaited_once_with("backend")
    adapter.network_connect.assert_awaited_once_with("web", "backend")
    adapter.network_disconnect.assert_awaited_once_with("web", "backend", force=True)
    adapter.list_networks.assert_awaited_once_with()


def test_orchestration_configuration_wraps_new_adapter():
    orchestration = Orchestration(DockerCLI())

    configured = orchestration.with_namespace("acme").with_cpus(2).with_memory(512).with_swap(1024)

    assert configured is not orchestration
    assert orchestration.adapter.config == AdapterConfig()
    assert configured.adapter.config == AdapterConfig(namespace="acme", cpus=2, memory=512, swap=1024)


# -------------------------------
# Settings -> adapter
# -------------------------------
def test_adapter_config_from_settings():
    settings = Settings(NAMESPACE="acme", CPUS=2, MEMORY_MB=256, SWAP_MB=512)

    assert adapter_config(settings) == AdapterConfig(namespace="acme", cpus=2, memory=256, swap=512)


def test_build_adapter_cli_by_default():
    adapter = build_adapter(Settings(BACKEND="cli", DOCKER_BINARY="/usr/local/bin/docker"))

    assert isinstance(adapter, DockerCLI)
    assert adapter.binary == "/usr/local/bin/docker"


def test_build_adapter_api(monkeypatch):
    client = MagicMock()
    docker_client = MagicMock(api=client)
    monkeypatch.setattr(
        "utopia_orchestration.services.docker_api.docker.DockerClient",
        MagicMock(return_value=docker_client),
    )

    adapter = build_adapter(Settings(BACKEND="api", DOCKER_HOST="unix:///var/run/docker.sock"))

    assert isinstance(adapter, DockerAPI)
    assert adapter.client is client
