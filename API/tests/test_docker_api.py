# tests/test_docker_api.py
import base64
import json

import pytest
from unittest.mock import MagicMock
from docker.errors import APIError

from utopia_orchestration.domain.container import Container, RunSpec
from utopia_orchestration.domain.errors import BackendInvocationError, ExecutionTimeoutError
from utopia_orchestration.domain.network import Network
from utopia_orchestration.domain.ports import AdapterConfig
from utopia_orchestration.services.docker_api import DockerAPI


def _api_error(status_code: int, explanation: str) -> APIError:
    response = MagicMock(status_code=status_code)
    return APIError("error", response=response, explanation=explanation)


@pytest.fixture
def client():
    client = MagicMock()
    client.headers = {}
    return client


def test_registry_auth_header_is_base64_json(client):
    DockerAPI(username="bob", password="s3cret", email="bob@example.com", client=client)

    header = client.headers["X-Registry-Auth"]
    decoded = json.loads(base64.urlsafe_b64decode(header))
    assert decoded == {
        "username": "bob",
        "password": "s3cret",
        "serveraddress": "https://index.docker.io/v1/",
        "email": "bob@example.com",
    }


def test_no_credentials_no_header(client):
    DockerAPI(client=client)

    assert "X-Registry-Auth" not in client.headers


# -------------------------------
# Containers
# -------------------------------
@pytest.mark.asyncio
async def test_run_creates_then_starts_with_limits(client):
    client.create_container_from_config.return_value = {"Id": "abc123", "Warnings": []}
    adapter = DockerAPI(client=client, config=AdapterConfig(cpus=1, memory=64, swap=128))

    container_id = await adapter.run(RunSpec(image="alpine", name="web", env={"A!": "1"}))

    assert container_id == "abc123"
    payload = client.create_container_from_config.call_args.args[0]
    assert client.create_container_from_config.call_args.kwargs == {"name": "web"}
    assert payload["Env"] == ["A=1"]
    assert payload["HostConfig"]["NanoCpus"] == 1_000_000_000
    assert payload["HostConfig"]["Memory"] == 64 * 1024 * 1024
    assert payload["HostConfig"]["MemorySwap"] == 128 * 1024 * 1024
    assert "utopia-created" in payload["Labels"]
    client.start.assert_called_once_with("abc123")


@pytest.mark.asyncio
async def test_run_failure_raises_backend_error(client):
    client.create_container_from_config.side_effect = _api_error(409, "Conflict. name in use")
    adapter = DockerAPI(client=client)

    with pytest.raises(BackendInvocationError) as excinfo:
        await adapter.run(RunSpec(image="alpine", name="web"))

    assert excinfo.value.code == 409
    assert "Conflict" in excinfo.value.diagnostic
    client.start.assert_not_called()


@pytest.mark.asyncio
async def test_list_maps_native_fields(client):
    client.containers.return_value = [
        {"Id": "abc", "Names": ["/web"], "Status": "Up 1 second", "Labels": {"tier": "web"}},
    ]
    adapter = DockerAPI(client=client)

    containers = await adapter.list(filters={"label": "tier"})

    assert containers == [Container(name="web", id="abc", status="Up 1 second", labels={"tier": "web"})]
    client.containers.assert_called_once_with(all=True, filters={"label": "tier"})


@pytest.mark.asyncio
async def test_remove_failure(client):
    client.remove_container.side_effect = _api_error(404, "No such container: web")
    adapter = DockerAPI(client=client)

    with pytest.raises(BackendInvocationError):
        await adapter.remove("web")


@pytest.mark.asyncio
async def test_execute_success(client):
    client.exec_create.return_value = {"Id": "exec1"}
    client.exec_start.return_value = b"hello\n"
    client.exec_inspect.return_value = {"ExitCode": 0}
    adapter = DockerAPI(client=client)

    assert await adapter.execute("web", ["echo", "hello"], env={"GREETING": "hi"}) is True
    client.exec_create.assert_called_once_with("web", ["echo", "hello"], environment=["GREETING=hi"])


@pytest.mark.asyncio
async def test_execute_non_zero_exit_raises(client):
    client.exec_create.return_value = {"Id": "exec1"}
    client.exec_start.return_value = b"sh: nope: not found\n"
    client.exec_inspect.return_value = {"ExitCode": 127}
    adapter = DockerAPI(client=client)

    with pytest.raises(BackendInvocationError) as excinfo:
        await adapter.execute("web", ["nope"])

    assert excinfo.value.code == 127
    assert "not found" in excinfo.value.diagnostic


@pytest.mark.asyncio
async def test_execute_timeout_does_not_block_a_worker(client):
    client.exec_create.return_value = {"Id": "exec1"}
    client.exec_start.return_value = b""
    client.exec_inspect.return_value = {"Running": True, "ExitCode": None}
    adapter = DockerAPI(client=client)

    with pytest.raises(ExecutionTimeoutError):
        await adapter.execute("web", ["sleep", "100"], timeout=0.05)

    client.exec_start.assert_called_once_with("exec1", detach=True)
    assert client.exec_inspect.call_count >= 1


@pytest.mark.asyncio
async def test_execute_with_timeout_finishing_in_time(client):
    client.exec_create.return_value = {"Id": "exec1"}
    client.exec_start.return_value = b""
    client.exec_inspect.side_effect = [
        {"Running": True, "ExitCode": None},
        {"Running": False, "ExitCode": 0},
    ]
    adapter = DockerAPI(client=client)

    assert await adapter.execute("web", ["sleep", "0.1"], timeout=5) is True
    assert client.exec_inspect.call_count == 2


@pytest.mark.asyncio
async def test_execute_with_timeout_non_zero_exit_raises(client):
    client.exec_create.return_value = {"Id": "exec1"}
    client.exec_start.return_value = b""
    client.exec_inspect.return_value = {"Running": False, "ExitCode": 2}
    adapter = DockerAPI(client=client)

    with pytest.raises(BackendInvocationError) as excinfo:
        await adapter.execute("web", ["false"], timeout=5)

    assert excinfo.value.code == 2
    assert not isinstance(excinfo.value, ExecutionTimeoutError)


@pytest.mark.asyncio
async def test_get_stats_for_single_container(client):
    client.stats.return_value = {
        "id": "abc",
        "name": "/web",
        "cpu_stats": {"cpu_usage": {"total_usage": 200}, "system_cpu_usage": 1000, "online_cpus": 1},
        "precpu_stats": {"cpu_usage": {"total_usage": 100}, "system_cpu_usage": 500},
        "memory_stats": {"usage": 50, "limit": 100},
    }
    adapter = DockerAPI(client=client)

    stats = await adapter.get_stats(container="abc")

    assert len(stats) == 1
    assert stats[0].cpu_usage == pytest.approx(0.2)
    assert stats[0].memory_usage == pytest.approx(0.5)
    client.stats.assert_called_once_with("abc", stream=False)


@pytest.mark.asyncio
async def test_pull_reports_errors_from_progress_stream(client):
    client.pull.return_value = '{"status":"Pulling"}\n{"error":"manifest unknown"}\n'
    adapter = DockerAPI(client=client)

    assert await adapter.pull("nope:latest") is False


@pytest.mark.asyncio
async def test_pull_success_passes_auth(client):
    client.pull.return_value = '{"status":"Downloaded newer image for alpine:latest"}\n'
    adapter = DockerAPI(username="bob", password="s3cret", client=client)

    assert await adapter.pull("alpine") is True
    assert client.pull.call_args.kwargs["auth_config"]["username"] == "bob"


# -------------------------------
# Networks
# -------------------------------
@pytest.mark.asyncio
async def test_network_operations(client):
    client.networks.return_value = [{"Id": "n1", "Name": "backend", "Driver": "bridge", "Scope": "local"}]
    adapter = DockerAPI(client=client)

    assert await adapter.create_network("backend", internal=True) is True
    assert await adapter.network_connect("web", "backend") is True
    assert await adapter.network_disconnect("web", "backend", force=True) is True
    assert await adapter.list_networks() == [Network(name="backend", id="n1", driver="bridge", scope="local")]
    assert await adapter.remove_network("backend") is True

    client.create_network.assert_called_once_with("backend", internal=True)
    client.connect_container_to_network.assert_called_once_with("web", "backend")
    client.disconnect_container_from_network.assert_called_once_with("web", "backend", force=True)
    client.remove_network.assert_called_once_with("backend")


@pytest.mark.asyncio
async def test_create_network_failure(client):
    client.create_network.side_effect = _api_error(500, "pool overlaps")
    adapter = DockerAPI(client=client)

    with pytest.raises(BackendInvocationError) as excinfo:
        await adapter.create_network("backend")

    assert excinfo.value.code == 500
