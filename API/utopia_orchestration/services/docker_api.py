import asyncio
import copy
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Sequence

import docker
from docker import APIClient
from docker.auth import encode_header
from docker.errors import APIError

from utopia_orchestration.domain.container import Container, RunSpec
from utopia_orchestration.domain.errors import BackendInvocationError, ExecutionTimeoutError
from utopia_orchestration.domain.network import Network
from utopia_orchestration.domain.ports import Adapter, AdapterConfig
from utopia_orchestration.domain.stats import Stats
from utopia_orchestration.services import builders
from utopia_orchestration.services.parsing import (
    container_from_api,
    network_from_api,
    stats_from_api,
)

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "https://index.docker.io/v1/"
EXEC_POLL_INTERVAL = 0.1  # seconds between exec_inspect calls while waiting


class DockerAPI(Adapter):
    """Adapter talking to the Docker Engine HTTP API through the docker SDK's low-level client."""

    def __init__(
        self,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        email: str | None = None,
        config: AdapterConfig | None = None,
        client: APIClient | None = None,
    ):
        if client is None:
            client = (
                docker.DockerClient(base_url=base_url).api if base_url else docker.from_env().api
            )
        self.client = client
        self.config = config or AdapterConfig()
        self._auth_config: Dict[str, str] | None = None

        if username and password:
            self._auth_config = {
                "username": username,
                "password": password,
                "serveraddress": DEFAULT_REGISTRY,
            }
            if email:
                self._auth_config["email"] = email
            # session-wide header, sent with every request
            self.client.headers["X-Registry-Auth"] = encode_header(self._auth_config).decode("ascii")

    def with_config(self, config: AdapterConfig) -> "DockerAPI":
        clone = copy.copy(self)
        clone.config = config
        return clone

    async def _call(self, action: str, fn, *args, **kwargs) -> Any:
        logger.debug(f"Engine API {action}: args={args}")
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except APIError as e:
            diagnostic = e.explanation or str(e)
            logger.error(f"Engine API {action} failed ({e.status_code}): {diagnostic}")
            raise BackendInvocationError(f"Error {action}", str(diagnostic), e.status_code)

    # -------------------------------
    # Networks
    # -------------------------------
    async def create_network(self, name: str, internal: bool = False) -> bool:
        await self._call("creating network", self.client.create_network, name, internal=internal)
        return True

    async def remove_network(self, name: str) -> bool:
        await self._call("removing network", self.client.remove_network, name)
        return True

    async def network_connect(self, container: str, network: str) -> bool:
        await self._call(
            "attaching network", self.client.connect_container_to_network, container, network
        )
        return True

    async def network_disconnect(
        self, container: str, network: str, force: bool = False
    ) -> bool:
        await self._call(
            "detaching network",
            self.client.disconnect_container_from_network,
            container,
            network,
            force=force,
        )
        return True

    async def list_networks(self) -> List[Network]:
        networks = await self._call("listing networks", self.client.networks)
        return [network_from_api(n) for n in networks]

    # -------------------------------
    # Containers
    # -------------------------------
    async def get_stats(
        self,
        container: str | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> List[Stats]:
        if container is None:
            container_ids = [c.id for c in await self.list(filters=filters)]
        else:
            container_ids = [container]

        results = await asyncio.gather(
            *(
                self._call("getting stats", self.client.stats, container_id, stream=False)
                for container_id in container_ids
            )
        )
        return [stats_from_api(r) for r in results]

    async def pull(self, image: str) -> bool:
        try:
            output = await self._call(
                "pulling image", self.client.pull, image, auth_config=self._auth_config
            )
        except BackendInvocationError as e:
            logger.warning(f"Pull of {image} failed: {e.diagnostic}")
            return False

        # the engine answers 200 and reports failures inside the progress stream
        for line in str(output or "").splitlines():
            try:
                progress = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(progress, dict) and progress.get("error"):
                logger.warning(f"Pull of {image} failed: {progress['error']}")
                return False
        return True

    async def list(self, filters: Mapping[str, str] | None = None) -> List[Container]:
        containers = await self._call(
            "listing containers",
            self.client.containers,
            all=True,
            filters=dict(filters) if filters else None,
        )
        return [container_from_api(c) for c in containers]

    async def run(self, spec: RunSpec) -> str:
        created_at = int(time.time() * 1000)
        payload = builders.build_create_payload(spec, self.config, created_at)
        created = await self._call(
            "creating container",
            self.client.create_container_from_config,
            payload,
            name=spec.name,
        )
        container_id = created["Id"]
        await self._call("starting container", self.client.start, container_id)
        return container_id

    async def execute(
        self,
        name: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        timeout: int = -1,
    ) -> bool:
        """
        Run a command in a running container.

        Without a timeout the exec is attached and its output becomes the
        diagnostic on failure. With a timeout the exec is started detached
        and polled until it finishes or the deadline passes, so no worker
        thread is left blocked on a command that outlives the wait. The
        command itself keeps running inside the container after a timeout.
        """
        environment = [
            f"{builders.filter_env_key(key)}={value or ''}"
            for key, value in (env or {}).items()
            if builders.filter_env_key(key)
        ]
        exec_instance = await self._call(
            "creating exec instance",
            self.client.exec_create,
            name,
            list(command),
            environment=environment or None,
        )
        exec_id = exec_instance["Id"]

        if timeout > 0:
            output = b""
            inspected = await self._wait_exec(exec_id, name, timeout)
        else:
            output = await self._call("starting exec instance", self.client.exec_start, exec_id)
            inspected = await self._call("inspecting exec instance", self.client.exec_inspect, exec_id)

        exit_code = inspected.get("ExitCode")
        if exit_code == builders.TIMEOUT_EXIT_CODE:
            raise ExecutionTimeoutError(f"Command in {name} timed out")
        if exit_code not in (0, None):
            diagnostic = output.decode(errors="replace") if isinstance(output, bytes) else str(output)
            raise BackendInvocationError("Command failed", diagnostic.strip(), exit_code)
        return True

    async def _wait_exec(self, exec_id: str, name: str, timeout: float) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        await self._call("starting exec instance", self.client.exec_start, exec_id, detach=True)
        while True:
            inspected = await self._call("inspecting exec instance", self.client.exec_inspect, exec_id)
            if not inspected.get("Running"):
                return inspected
            if loop.time() >= deadline:
                raise ExecutionTimeoutError(f"Command in {name} timed out after {timeout}s")
            await asyncio.sleep(min(EXEC_POLL_INTERVAL, max(deadline - loop.time(), 0)))

    async def remove(self, name: str, force: bool = False) -> bool:
        await self._call("removing container", self.client.remove_container, name, force=force)
        return True
